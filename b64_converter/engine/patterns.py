"""Recognizers that pull embedded base64 images out of arbitrary text.

Recognizers run in `RECOGNIZERS` order: data URIs first, then HTML `<img>`
tags, then CSS `url(...)`. Each one scans the whole input on its own and
every match is kept. Matches are never deduplicated across recognizers, so
a data URI inside an `<img>` tag is reported once by each of them.

Only when no recognizer matches is the input treated as a bare base64
payload (the "whole content" fallback), with its mime type sniffed from the
leading characters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from b64_converter.logger import get_logger

from .errors import MalformedPayloadError
from .messages import ExtractedImage, SourcePattern
from .progress import ProgressReporter

_logger = get_logger("patterns")

_SUBTYPE = r"([a-zA-Z0-9+.-]+)"
_PAYLOAD = r"([A-Za-z0-9+/=]{20,})"
_DATA_REF = rf"data:image/{_SUBTYPE};base64,{_PAYLOAD}"

_WHITESPACE = re.compile(r"\s+")
_BASE64_ONLY = re.compile(r"[A-Za-z0-9+/=]+")
MIN_WHOLE_CONTENT_LENGTH = 20

# Ordered: first matching prefix wins.
MIME_SIGNATURES: tuple[tuple[str, str], ...] = (
    ("/9j/", "image/jpeg"),
    ("iVBORw", "image/png"),
    ("R0lGOD", "image/gif"),
    ("UklGR", "image/webp"),
    ("PHN2Zz", "image/svg+xml"),
    ("Qk02", "image/bmp"),
    ("AAABAA", "image/x-icon"),
)
DEFAULT_MIME_TYPE = "image/png"

# Progress band shared by the recognizers; fallback and completion follow.
_RECOGNIZER_START = 10
_RECOGNIZER_SPAN = 70
_FALLBACK_PERCENT = 80


@dataclass(frozen=True)
class Recognizer:
    source: SourcePattern
    pattern: re.Pattern[str]

    @property
    def label(self) -> str:
        return self.source.label

    def find_all(self, text: str) -> list[ExtractedImage]:
        """All non-overlapping matches in order of appearance."""
        found: list[ExtractedImage] = []
        for match in self.pattern.finditer(text):
            subtype, payload = match.group(1), match.group(2)
            found.append(
                ExtractedImage(
                    base64=_WHITESPACE.sub("", payload),
                    mime_type=f"image/{subtype}",
                    source=self.source,
                )
            )
        return found


DATA_URI = Recognizer(SourcePattern.DATA_URI, re.compile(_DATA_REF))
HTML_IMG = Recognizer(
    SourcePattern.HTML_IMG,
    re.compile(rf"<img[^>]+src\s*=\s*[\"']{_DATA_REF}[\"'][^>]*>", re.IGNORECASE),
)
CSS_URL = Recognizer(
    SourcePattern.CSS_URL,
    re.compile(rf"url\s*\(\s*[\"']?{_DATA_REF}[\"']?\s*\)", re.IGNORECASE),
)

RECOGNIZERS: tuple[Recognizer, ...] = (DATA_URI, HTML_IMG, CSS_URL)


def sniff_mime_type(payload: str) -> str:
    for prefix, mime in MIME_SIGNATURES:
        if payload.startswith(prefix):
            return mime
    return DEFAULT_MIME_TYPE


def detect_whole_content(text: str) -> ExtractedImage | None:
    """Treat the whole input as one bare base64 payload, if it is one."""
    cleaned = _WHITESPACE.sub("", text)
    if len(cleaned) <= MIN_WHOLE_CONTENT_LENGTH or not _BASE64_ONLY.fullmatch(cleaned):
        return None
    return ExtractedImage(base64=cleaned, mime_type=sniff_mime_type(cleaned), source=SourcePattern.WHOLE_CONTENT)


def recognizer_percent(index: int, count: int) -> int:
    return _RECOGNIZER_START + int(index * _RECOGNIZER_SPAN / max(1, count))


def extract_images(
    text: str,
    reporter: ProgressReporter | None = None,
    recognizers: tuple[Recognizer, ...] = RECOGNIZERS,
) -> list[ExtractedImage]:
    """Run every recognizer over `text`, falling back to whole-content detection.

    An empty list means nothing was found; that is not an error.
    """
    if not isinstance(text, str):
        raise MalformedPayloadError(f"extract expects text, got {type(text).__name__}")
    reporter = reporter or ProgressReporter()

    results: list[ExtractedImage] = []
    for i, recognizer in enumerate(recognizers):
        reporter.report(recognizer_percent(i, len(recognizers)), f"Matching {recognizer.label} pattern...")
        found = recognizer.find_all(text)
        _logger.debug("recognizer %s: %d match(es)", recognizer.source.value, len(found))
        results.extend(found)

    if not results:
        reporter.report(_FALLBACK_PERCENT, "Trying whole-content parse...")
        whole = detect_whole_content(text)
        if whole is not None:
            results.append(whole)

    reporter.done("Extraction complete")
    return results
