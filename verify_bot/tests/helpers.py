"""Shared builders for the VerifyBot tests."""

import io
from typing import Dict, List, Tuple, Union

from PIL import Image

from verify_bot.ocr.models import PreparedBuffer, RecognitionOptions


def make_image_bytes(
    width: int = 900,
    height: int = 1600,
    *,
    color: Tuple[int, int, int] = (210, 210, 210),
    fmt: str = "PNG",
) -> bytes:
    image = Image.new("RGB", (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_buffer(region: str = "card-full", profile: str = "card") -> PreparedBuffer:
    data = make_image_bytes(40, 20)
    return PreparedBuffer(data=data, profile=profile, region=region, width=40, height=20)


class ScriptedEngine:
    """Recognition engine returning canned text per pass name."""

    def __init__(self, script: Dict[str, Union[str, BaseException]], calls: List[Tuple[str, RecognitionOptions]]):
        self.script = script
        self.calls = calls
        self.closed = False

    def image_to_string(self, buffer: PreparedBuffer, options: RecognitionOptions) -> str:
        self.calls.append((buffer.region, options))
        value = self.script.get(buffer.region, "")
        if isinstance(value, BaseException):
            raise value
        return value

    def close(self) -> None:
        self.closed = True


class EngineScript:
    """Engine factory that records every engine it hands out."""

    def __init__(self, script: Dict[str, Union[str, BaseException]]):
        self.script = script
        self.calls: List[Tuple[str, RecognitionOptions]] = []
        self.engines: List[ScriptedEngine] = []

    def __call__(self) -> ScriptedEngine:
        engine = ScriptedEngine(self.script, self.calls)
        self.engines.append(engine)
        return engine

    @property
    def regions(self) -> List[str]:
        return [region for region, _ in self.calls]
