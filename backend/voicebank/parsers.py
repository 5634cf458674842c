"""
Legacy Control File Parsers (parsers.py)
========================================
Line-oriented, best-effort parsers for the three control files a UTAU-style
voicebank ships with:

- oto.ini: tone-offset table, ``wavename=alias,offset,consonant,cutoff,preutter,overlap``
- character.txt: INI-like metadata, only the global ``name``/``image``/``author``/``web`` keys
- prefix.map: whitespace separated ``source target`` pairs

Every line goes through a tokenizer that either accepts it or returns a
skip reason. Malformed lines never raise; they only show up in the
``ParseStats.skipped`` count.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .models import Oto, OtoSet, PrefixMap, Voicebank
from .paths import hash_wave_ref

OTO_FIELD_COUNT = 6
GLOBAL_SECTION = ""
METADATA_KEYS = ("name", "image", "author", "web")

_INT_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")
_INT32_MIN = -(2 ** 31)
_INT32_MAX = 2 ** 31 - 1
# Only CR, LF and CRLF end a line; other Unicode breaks are line content.
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class LineResult:
    """Outcome of tokenizing one line: a value or a skip reason."""
    value: Any = None
    skip_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.skip_reason is None

    @classmethod
    def skip(cls, reason: str) -> "LineResult":
        return cls(skip_reason=reason)


# Blank and comment lines are neither accepted nor skipped.
_IGNORED = LineResult(skip_reason="")


@dataclass
class ParseStats:
    accepted: int = 0
    skipped: int = 0

    def record(self, result: LineResult) -> None:
        if result.ok:
            self.accepted += 1
        elif result.skip_reason:
            self.skipped += 1


def split_lines(text: str) -> List[str]:
    return _LINE_BREAK_RE.split(text)


def parse_int(text: str) -> int:
    """Signed 32-bit integer, or 0 if ``text`` is not one."""
    if not _INT_RE.match(text):
        return 0
    value = int(text)
    if value < _INT32_MIN or value > _INT32_MAX:
        return 0
    return value


def tokenize_oto_line(line: str) -> LineResult:
    if not line.strip():
        return _IGNORED
    parts = line.split("=")
    if len(parts) != 2:
        return LineResult.skip("expected exactly one '='")
    wav = parts[0].strip()
    fields = parts[1].split(",")
    if len(fields) != OTO_FIELD_COUNT:
        return LineResult.skip(f"expected {OTO_FIELD_COUNT} fields, got {len(fields)}")
    oto = Oto(
        name=fields[0].strip(),
        original_wav=wav,
        wav=hash_wave_ref(wav),
        offset=parse_int(fields[1]),
        consonant=parse_int(fields[2]),
        cutoff=parse_int(fields[3]),
        preutter=parse_int(fields[4]),
        overlap=parse_int(fields[5]),
    )
    return LineResult(value=oto)


def parse_oto_set(text: str) -> Tuple[OtoSet, ParseStats]:
    otos = []
    stats = ParseStats()
    for line in split_lines(text):
        result = tokenize_oto_line(line)
        stats.record(result)
        if result.ok:
            otos.append(result.value)
    return OtoSet(otos=otos), stats


def tokenize_ini_line(line: str, section: str = GLOBAL_SECTION) -> LineResult:
    """
    Tokenize one INI line.

    Returns ``("section", name)`` for a header and ``("key", (section, key, value))``
    for an assignment.
    """
    stripped = line.strip()
    if not stripped or stripped[0] in ";#":
        return _IGNORED
    if stripped.startswith("["):
        if not stripped.endswith("]"):
            return LineResult.skip("unterminated section header")
        name = stripped[1:-1].strip()
        if name.lower() == "global":
            name = GLOBAL_SECTION
        return LineResult(value=("section", name))
    key, sep, value = stripped.partition("=")
    key = key.strip()
    if not sep or not key:
        return LineResult.skip("expected key=value")
    return LineResult(value=("key", (section, key, value.strip())))


def parse_character(text: str) -> Tuple[Voicebank, ParseStats]:
    values = {}
    stats = ParseStats()
    section = GLOBAL_SECTION
    for line in split_lines(text):
        result = tokenize_ini_line(line, section)
        stats.record(result)
        if not result.ok:
            continue
        kind, payload = result.value
        if kind == "section":
            section = payload
            continue
        key_section, key, value = payload
        if key_section == GLOBAL_SECTION and key in METADATA_KEYS:
            values[key] = value
    return Voicebank(**values), stats


def tokenize_prefix_line(line: str) -> LineResult:
    tokens = line.split()
    if not tokens:
        return _IGNORED
    if len(tokens) != 2:
        return LineResult.skip(f"expected 2 tokens, got {len(tokens)}")
    return LineResult(value=(tokens[0], tokens[1]))


def parse_prefix_map(text: str) -> Tuple[PrefixMap, ParseStats]:
    mapping = {}
    stats = ParseStats()
    for line in split_lines(text):
        result = tokenize_prefix_line(line)
        stats.record(result)
        if result.ok:
            source, target = result.value
            mapping[source] = target
    return PrefixMap(map=mapping), stats
