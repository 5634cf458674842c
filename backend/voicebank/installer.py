#!/usr/bin/env python3
"""
Voicebank Installer (installer.py)
==================================
Imports a voicebank archive into a normalized, content-addressed tree:

- <hashed-dir>/_oto.json, _voicebank.json, _prefix_map.json: parsed control files
- <hashed-dir>/<image name>: images copied as-is
- <hashed-path>.wav / <hashed-path>_wav.frq: audio and sidecars under hashed names

The import is a single forward pass. Nothing is rolled back on failure, so
an interrupted import leaves a partially written tree behind.

Usage:
    python -m voicebank.installer voicebank.zip --output ./Singers
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .archive import ArchiveEntry, ZipArchive, reading
from .config import MAX_ROOT_LENGTH, voicebank_root
from .encoding import DetectedEncoding, decode_text, detect_encoding
from .errors import ConfigurationError
from .parsers import ParseStats, parse_character, parse_oto_set, parse_prefix_map
from .paths import base_name, hash_path, hash_stem, parent_path
from .router import CONTROL_FILES, Route, RouteDecision, classify
from .writer import RecordWriter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]

PARSERS = {
    "oto.ini": parse_oto_set,
    "character.txt": parse_character,
    "prefix.map": parse_prefix_map,
}


class InstallState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    IMPORTING = "importing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class InstallReport:
    """Summary of one import pass."""
    archive: str
    encoding: str = ""
    confidence: float = 0.0
    total_entries: int = 0
    parsed: int = 0
    copied: int = 0
    hashed: int = 0
    dropped: int = 0
    skipped_lines: int = 0
    written: List[str] = field(default_factory=list)


def validate_root(base_path) -> str:
    """The import root must be pure ASCII and at most 80 characters."""
    text = str(base_path)
    if len(text) > MAX_ROOT_LENGTH:
        raise ConfigurationError(
            f"Path too long ({len(text)} > {MAX_ROOT_LENGTH}). Move the voicebank root to a shorter path."
        )
    if not text.isascii():
        raise ConfigurationError("Do not place the voicebank root in a non-ASCII path.")
    return text


class VoicebankInstaller:
    """
    Imports voicebank archives into one import root.

    Usage:
        installer = VoicebankInstaller("Singers", progress=lambda pct, key: print(pct, key))
        report = installer.install("teto.zip")
    """

    def __init__(self, base_path, progress: Optional[ProgressCallback] = None):
        validate_root(base_path)
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.progress = progress or (lambda percent, label: None)
        self.writer = RecordWriter(self.base_path)
        self.state = InstallState.IDLE

    def install(self, archive_path) -> InstallReport:
        """
        Import every entry of the archive at ``archive_path``.

        Raises:
            DetectionError: if the filename encoding can't be determined
            OSError: on any archive or filesystem failure
        """
        report = InstallReport(archive=str(archive_path))
        try:
            with ZipArchive(archive_path) as archive:
                self.state = InstallState.DETECTING
                detected = detect_encoding(archive.raw_names(), label=str(archive_path))
                report.encoding = detected.encoding
                report.confidence = detected.confidence

                self.state = InstallState.IMPORTING
                self.progress(0, "Analyzing archive...")
                self._import_entries(archive, detected, report)
        except Exception:
            self.state = InstallState.FAILED
            raise

        self.state = InstallState.DONE
        logger.info(
            f"Installed {archive_path}: parsed={report.parsed} copied={report.copied} "
            f"hashed={report.hashed} dropped={report.dropped} skipped_lines={report.skipped_lines}"
        )
        return report

    def _import_entries(
        self,
        archive: ZipArchive,
        detected: DetectedEncoding,
        report: InstallReport
    ) -> None:
        total = len(archive)
        report.total_entries = total
        count = 0
        for entry in archive.entries(detected.encoding):
            count += 1
            self.progress(count * 100 // total, entry.key)
            if entry.is_directory:
                continue

            decision = classify(entry.key)
            logger.debug(f"{entry.key} -> {decision.route.value}")
            if decision.route == Route.PARSE:
                self._parse_entry(entry, decision, detected.encoding, report)
                report.parsed += 1
            elif decision.route == Route.COPY:
                rel_path = f"{hash_path(parent_path(entry.key))}/{base_name(entry.key)}"
                report.written.append(self._copy_entry(entry, rel_path))
                report.copied += 1
            elif decision.route == Route.HASH:
                rel_path = hash_stem(entry.key, decision.match)
                report.written.append(self._copy_entry(entry, rel_path))
                report.hashed += 1
            else:
                report.dropped += 1

    def _parse_entry(
        self,
        entry: ArchiveEntry,
        decision: RouteDecision,
        encoding: str,
        report: InstallReport
    ) -> None:
        with reading(entry.key), entry.open() as stream:
            text = decode_text(stream.read(), encoding)
        record, stats = PARSERS[decision.match](text)
        self._note_skips(entry.key, stats, report)
        record.original_file = entry.key
        rel_path = self.writer.write_record(
            record, hash_path(parent_path(entry.key)), CONTROL_FILES[decision.match]
        )
        report.written.append(rel_path)

    def _copy_entry(self, entry: ArchiveEntry, rel_path: str) -> str:
        with reading(entry.key), entry.open() as stream:
            return self.writer.copy_stream(stream, rel_path)

    @staticmethod
    def _note_skips(key: str, stats: ParseStats, report: InstallReport) -> None:
        report.skipped_lines += stats.skipped
        if stats.skipped:
            logger.info(f"{key}: kept {stats.accepted} lines, skipped {stats.skipped} malformed")


def install_voicebank(
    archive_path,
    base_path: Optional[str] = None,
    progress: Optional[ProgressCallback] = None
) -> InstallReport:
    """
    Install one voicebank archive.

    This is the function used by the API and the CLI.

    Args:
        archive_path: Path to the voicebank archive
        base_path: Import root (default: VOICEBANK_ROOT or <project>/Singers)
        progress: Called with (percent, entry key) once per entry

    Returns:
        InstallReport for the pass
    """
    installer = VoicebankInstaller(voicebank_root(base_path), progress=progress)
    return installer.install(archive_path)


def main():
    """Standalone entry point."""
    parser = argparse.ArgumentParser(
        description='Voicebank Installer - Import a voicebank archive into a hashed tree'
    )
    parser.add_argument('archive', help='Voicebank archive (.zip)')
    parser.add_argument('-o', '--output', default=None, help='Import root (default: $VOICEBANK_ROOT)')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    try:
        report = install_voicebank(
            args.archive,
            base_path=args.output,
            progress=lambda percent, label: print(f"[{percent:3d}%] {label}")
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Installed {report.parsed + report.copied + report.hashed} files ({report.dropped} dropped)")


if __name__ == '__main__':
    main()
