"""
Per-entry routing for voicebank archives.

Rules are evaluated in order and the first match wins:

1. PARSE: a known control file, parsed into a JSON record in the hashed directory
2. COPY:  an image, copied under its own name into the hashed directory
3. HASH:  audio or its frequency sidecar, copied to a fully hashed path
4. DROP:  anything else
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .paths import base_name


class Route(str, Enum):
    PARSE = "parse"
    COPY = "copy"
    HASH = "hash"
    DROP = "drop"


# Control file name -> normalized record file name
CONTROL_FILES = {
    "oto.ini": "_oto.json",
    "character.txt": "_voicebank.json",
    "prefix.map": "_prefix_map.json",
}
COPIED_SUFFIXES = (".bmp", ".jpg", ".gif")
HASHED_SUFFIXES = (".wav", "_wav.frq")


@dataclass(frozen=True)
class RouteDecision:
    route: Route
    # Control file name for PARSE, matched suffix for COPY and HASH
    match: Optional[str] = None


def _match_control(key: str) -> Optional[str]:
    name = base_name(key)
    return name if name in CONTROL_FILES else None


def _suffix_matcher(suffixes: Tuple[str, ...]) -> Callable[[str], Optional[str]]:
    def match(key: str) -> Optional[str]:
        for suffix in suffixes:
            if key.endswith(suffix):
                return suffix
        return None
    return match


RULES: List[Tuple[Callable[[str], Optional[str]], Route]] = [
    (_match_control, Route.PARSE),
    (_suffix_matcher(COPIED_SUFFIXES), Route.COPY),
    (_suffix_matcher(HASHED_SUFFIXES), Route.HASH),
]


def classify(key: str) -> RouteDecision:
    """Decide what to do with the archive entry ``key``."""
    for predicate, route in RULES:
        match = predicate(key)
        if match is not None:
            return RouteDecision(route, match)
    return RouteDecision(Route.DROP)
