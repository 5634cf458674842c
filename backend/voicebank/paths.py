"""
Content-addressed path hashing.

Every segment of a source-relative path is replaced by the 8 hex digit
xxHash32 of its UTF-8 bytes, so the hashed parent is always a prefix of the
hashed child and the output is short and ASCII-only whatever the input
script. Collisions in the 32-bit space are accepted, not resolved.
"""

import re
from typing import Iterable, List

import xxhash

SEPARATOR = "/"
_SPLIT_RE = re.compile(r"[\\/]+")


def split_path(path: str) -> List[str]:
    """
    Split a source-relative path into its segments.

    Both separators are accepted since legacy archives mix them. The empty
    path is a single empty segment.
    """
    segments = [s for s in _SPLIT_RE.split(path) if s]
    return segments or [""]


def hash_segment(segment: str) -> str:
    return xxhash.xxh32(segment.encode("utf-8")).hexdigest()


def hash_segments(segments: Iterable[str]) -> str:
    hashed: List[str] = []
    for segment in segments:
        hashed.append(hash_segment(segment))
    if not hashed:
        hashed.append(hash_segment(""))
    return SEPARATOR.join(hashed)


def hash_path(path: str) -> str:
    return hash_segments(split_path(path))


def parent_path(path: str) -> str:
    """Directory part of a source-relative path ("" at the archive root)."""
    return SEPARATOR.join(split_path(path)[:-1])


def base_name(path: str) -> str:
    return split_path(path)[-1]


def hash_stem(path: str, suffix: str) -> str:
    """Hash ``path`` without ``suffix``, then reattach the suffix verbatim."""
    if suffix and path.endswith(suffix):
        path = path[: -len(suffix)]
    if path.endswith(("/", "\\")):
        # An empty stem is still a segment of its directory.
        return hash_segments(split_path(path) + [""]) + suffix
    return hash_path(path) + suffix


def hash_wave_ref(ref: str) -> str:
    """
    Hash a wave reference from a tone-offset table.

    The extension of the last segment is kept as-is, e.g. ``"sub/a.wav"``
    becomes ``"<hash(sub)>/<hash(a)>.wav"``.
    """
    name = base_name(ref)
    dot = name.rfind(".")
    if dot <= 0:
        return hash_path(ref)
    return hash_stem(ref.rstrip("\\/"), name[dot:])
