"""OCR engine seam.

``TextRecognizer`` is the only place that talks to an OCR engine. Engines are
created per call through a context manager and closed on every exit path,
so a crashing pass cannot leak images or engine state across requests. The
default engine shells out to Tesseract through ``pytesseract``; tests inject
scripted engines through ``engine_factory``.
"""

from __future__ import annotations

import asyncio
import io
import logging
import string
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Protocol

import pytesseract
from PIL import Image, UnidentifiedImageError

from verify_bot.ocr.errors import RecognitionError
from verify_bot.ocr.models import PreparedBuffer, RecognitionOptions, RecognitionResult
from verify_bot.ocr.settings import DEFAULT_SETTINGS, ExtractionSettings

logger = logging.getLogger(__name__)

# Letters, digits, brackets and underscore: everything a "[TAG]Name" line can contain
NAME_WHITELIST = string.ascii_letters + string.digits + "[]_"

# psm 6: treat the buffer as a single uniform block of text
CARD_OPTIONS = RecognitionOptions(page_segmentation=6)
NAME_OPTIONS = RecognitionOptions(page_segmentation=6, whitelist=NAME_WHITELIST)


class RecognitionEngine(Protocol):
    def image_to_string(self, buffer: PreparedBuffer, options: RecognitionOptions) -> str:
        ...

    def close(self) -> None:
        ...


class TesseractEngine:
    """Single-use Tesseract session; tracks the images it opens."""

    def __init__(self, language: str = "eng", tesseract_cmd: Optional[str] = None) -> None:
        self.language = language
        self.tesseract_cmd = tesseract_cmd
        self._images: List[Image.Image] = []

    def _open(self, data: bytes) -> Image.Image:
        image = Image.open(io.BytesIO(data))
        self._images.append(image)
        image.load()
        return image

    def image_to_string(self, buffer: PreparedBuffer, options: RecognitionOptions) -> str:
        image = self._open(buffer.data)
        if self.tesseract_cmd:
            # pytesseract reads the binary path from module state at call time
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        return pytesseract.image_to_string(
            image,
            lang=self.language,
            config=options.to_tesseract_config(),
        )

    def close(self) -> None:
        while self._images:
            self._images.pop().close()


class TextRecognizer:
    """Runs one prepared buffer through a freshly acquired engine."""

    def __init__(
        self,
        engine_factory: Optional[Callable[[], RecognitionEngine]] = None,
        *,
        settings: ExtractionSettings = DEFAULT_SETTINGS,
    ) -> None:
        language, tesseract_cmd = settings.language, settings.tesseract_cmd
        self._engine_factory = engine_factory or (lambda: TesseractEngine(language, tesseract_cmd))

    @contextmanager
    def acquire(self) -> Iterator[RecognitionEngine]:
        engine = self._engine_factory()
        try:
            yield engine
        finally:
            engine.close()

    def recognize_sync(
        self,
        buffer: PreparedBuffer,
        options: RecognitionOptions = CARD_OPTIONS,
    ) -> RecognitionResult:
        """Return the raw text Tesseract reads from ``buffer``.

        Raises:
            RecognitionError: If the engine cannot process the buffer.
        """
        pass_name = f"{buffer.region}/{buffer.profile}"
        try:
            with self.acquire() as engine:
                text = engine.image_to_string(buffer, options)
        except RecognitionError:
            raise
        except pytesseract.TesseractNotFoundError as exc:
            raise RecognitionError("Tesseract binary is not installed", pass_name=pass_name) from exc
        except (pytesseract.TesseractError, UnidentifiedImageError, OSError, RuntimeError) as exc:
            raise RecognitionError(f"OCR engine failed: {exc}", pass_name=pass_name) from exc

        logger.debug("OCR %s -> %r", pass_name, text)
        return RecognitionResult(text=text or "", profile=buffer.profile, region=buffer.region)

    async def recognize(
        self,
        buffer: PreparedBuffer,
        options: RecognitionOptions = CARD_OPTIONS,
    ) -> RecognitionResult:
        """Run the recognition inside a thread to avoid blocking the event loop."""
        return await asyncio.to_thread(self.recognize_sync, buffer, options)


__all__ = [
    "CARD_OPTIONS",
    "NAME_OPTIONS",
    "NAME_WHITELIST",
    "RecognitionEngine",
    "TesseractEngine",
    "TextRecognizer",
]
