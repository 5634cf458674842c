"""
Writes normalized records and copied files under the import root.

Target directories are created right before each write; existing files are
overwritten.
"""

import shutil
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel

from .models import to_json
from .paths import SEPARATOR


class RecordWriter:
    """Writes into a single import root, taking ``/``-separated relative paths."""

    def __init__(self, base_path):
        self.base_path = Path(base_path)

    def _target(self, rel_path: str) -> Path:
        target = self.base_path.joinpath(*rel_path.split(SEPARATOR))
        target.parent.mkdir(parents=True, exist_ok=True)
        return target

    def write_record(self, record: BaseModel, rel_dir: str, file_name: str) -> str:
        """
        Serialize ``record`` to ``<rel_dir>/<file_name>``.

        The record's ``file`` field is set to the relative path first so the
        written JSON points at itself.

        Returns:
            The relative path written
        """
        rel_path = f"{rel_dir}{SEPARATOR}{file_name}" if rel_dir else file_name
        record.file = rel_path
        self._target(rel_path).write_text(to_json(record), encoding="utf-8")
        return rel_path

    def copy_stream(self, stream: BinaryIO, rel_path: str) -> str:
        with self._target(rel_path).open("wb") as dst:
            shutil.copyfileobj(stream, dst)
        return rel_path
