"""Governor Profile screenshot extraction."""

from verify_bot.ocr.errors import ExtractionError, InvalidImageError, ProfileExtractionError, RecognitionError
from verify_bot.ocr.models import ExtractionResult, ParsedCandidate
from verify_bot.ocr.pipeline import ProfileExtractor, extract_profile

__all__ = [
    "ExtractionError",
    "ExtractionResult",
    "InvalidImageError",
    "ParsedCandidate",
    "ProfileExtractionError",
    "ProfileExtractor",
    "RecognitionError",
    "extract_profile",
]
