"""Failure taxonomy for profile extraction.

All three errors are terminal for a single extraction call. The caller is
expected to recover by asking the uploader for a new screenshot.
"""

from __future__ import annotations

from typing import Iterable, Tuple


class ProfileExtractionError(RuntimeError):
    """Base class for everything ``extract_profile`` raises on purpose."""


class InvalidImageError(ProfileExtractionError):
    """Raised when the input bytes cannot be decoded or have no dimensions."""


class RecognitionError(ProfileExtractionError):
    """Raised when the OCR engine cannot process a prepared buffer.

    Args:
        pass_name: The pass whose buffer failed, when known.
    """

    def __init__(self, message: str, *, pass_name: str = "") -> None:
        self.pass_name = pass_name
        super().__init__(f"{message} (pass: {pass_name})" if pass_name else message)


class ExtractionError(ProfileExtractionError):
    """Raised when decoding and OCR worked but mandatory fields are missing.

    Args:
        missing_fields: Subset of ``("id", "kingdom", "clanTag")`` that no
            pass could read, in that order.
    """

    def __init__(self, missing_fields: Iterable[str]) -> None:
        self.missing_fields: Tuple[str, ...] = tuple(missing_fields)
        super().__init__(
            f"Could not read: {', '.join(self.missing_fields)}. "
            "(Image may be cropped/wrong screen/low quality.)"
        )


__all__ = [
    "ExtractionError",
    "InvalidImageError",
    "ProfileExtractionError",
    "RecognitionError",
]
