"""
Archive filename encoding detection.

Legacy voicebanks are usually zipped on a Japanese or Chinese Windows
machine and carry their filenames in the local code page without the UTF-8
flag. All names of one archive are fed to a single universal charset
detector, since they must share one encoding to be read consistently.
"""

import codecs
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from chardet import UniversalDetector

from .errors import DetectionError

logger = logging.getLogger(__name__)

# Detected charsets widened to the Windows code pages they are written with.
CODEC_OVERRIDES = {
    "shift_jis": "cp932",
    "gb2312": "gb18030",
    "euc-kr": "cp949",
}

_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


@dataclass(frozen=True)
class DetectedEncoding:
    """Best guess for the text encoding of an archive."""
    encoding: str
    confidence: float
    charset: str


def resolve_codec(charset: Optional[str]) -> str:
    """Map a detector charset name to a Python codec name."""
    if not charset:
        raise DetectionError("no charset could be detected")
    name = CODEC_OVERRIDES.get(charset.lower(), charset)
    try:
        return codecs.lookup(name).name
    except LookupError:
        raise DetectionError(f"unsupported charset {charset}") from None


def detect_encoding(names: Iterable[bytes], label: str = "archive") -> DetectedEncoding:
    """
    Detect the encoding shared by a set of raw entry names.

    Args:
        names: Undecoded entry names
        label: Name used in messages (usually the archive path)

    Returns:
        DetectedEncoding carrying a Python codec name

    Raises:
        DetectionError: if no names were fed or no charset could be resolved
    """
    detector = UniversalDetector()
    fed = 0
    for name in names:
        if not name:
            continue
        detector.feed(name)
        fed += 1
        if detector.done:
            break
    detector.close()

    if fed == 0:
        raise DetectionError(f"Failed to detect encoding of {label}: no entry names")

    charset = detector.result.get("encoding")
    confidence = detector.result.get("confidence") or 0.0
    logger.info(f"{label} charset: {charset} confidence: {confidence}")
    try:
        encoding = resolve_codec(charset)
    except DetectionError as e:
        raise DetectionError(f"Failed to detect encoding of {label}: {e}") from None
    return DetectedEncoding(encoding=encoding, confidence=float(confidence), charset=charset)


def decode_text(data: bytes, encoding: str) -> str:
    """Decode control file content, honouring a byte order mark first."""
    for bom, codec in _BOMS:
        if data.startswith(bom):
            return data.decode(codec, errors="replace")
    return data.decode(encoding, errors="replace")
