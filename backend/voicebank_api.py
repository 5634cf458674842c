from fastapi import APIRouter, Query, BackgroundTasks, HTTPException, UploadFile, File
from pydantic import BaseModel
from typing import List
import os
import logging
import tempfile
from pathlib import Path

import aiofiles

from voicebank.config import voicebank_root
from voicebank.errors import ConfigurationError, DetectionError
from voicebank.installer import InstallReport, install_voicebank
from voicebank.library import list_voicebanks
from voicebank.models import Voicebank
from voicebank.paths import hash_path

# Setup logging
logger = logging.getLogger(__name__)


# Pydantic response model for API
class InstallReportResponse(BaseModel):
    archive: str
    encoding: str
    confidence: float
    total_entries: int
    parsed: int
    copied: int
    hashed: int
    dropped: int
    skipped_lines: int
    written: List[str]

    @classmethod
    def from_report(cls, report: InstallReport, archive_name: str) -> "InstallReportResponse":
        """Convert InstallReport dataclass to response model."""
        return cls(
            archive=archive_name,
            encoding=report.encoding,
            confidence=report.confidence,
            total_entries=report.total_entries,
            parsed=report.parsed,
            copied=report.copied,
            hashed=report.hashed,
            dropped=report.dropped,
            skipped_lines=report.skipped_lines,
            written=report.written,
        )


voicebank_router = APIRouter(prefix="/api/voicebank")


@voicebank_router.get("/list", response_model=List[Voicebank])
async def get_voicebanks():
    """
    List all installed voicebanks.
    """
    return list_voicebanks(str(voicebank_root()))


@voicebank_router.get("/hash")
async def get_hashed_path(path: str = Query(..., description="Source-relative path")):
    return {"path": path, "hashed": hash_path(path)}


async def _save_upload(file: UploadFile) -> Path:
    suffix = Path(file.filename or "voicebank.zip").suffix or ".zip"
    fd, tmp_name = tempfile.mkstemp(prefix="voicebank_", suffix=suffix)
    os.close(fd)
    async with aiofiles.open(tmp_name, "wb") as out:
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            await out.write(chunk)
    return Path(tmp_name)


def _install_and_cleanup(archive_path: Path, archive_name: str) -> InstallReport:
    try:
        report = install_voicebank(
            archive_path,
            base_path=str(voicebank_root()),
            progress=lambda percent, label: logger.debug(f"[{archive_name}] {percent}% {label}")
        )
        logger.info(f"Installed voicebank archive '{archive_name}' ({len(report.written)} files written)")
        return report
    except Exception as e:
        logger.error(f"Error installing '{archive_name}': {str(e)}")
        raise
    finally:
        archive_path.unlink(missing_ok=True)


@voicebank_router.post("/install")
async def install_archive(
    file: UploadFile = File(...),
    background: bool = Query(False),
    background_tasks: BackgroundTasks = None
):
    """
    Install an uploaded voicebank archive into the import root.

    With ``background=true`` the import runs after the response is sent.
    """
    archive_name = file.filename or "voicebank.zip"
    archive_path = await _save_upload(file)

    if background and background_tasks is not None:
        background_tasks.add_task(_install_and_cleanup, archive_path, archive_name)
        return {
            "message": f"Install started for '{archive_name}'.",
            "archive": archive_name,
        }

    try:
        report = _install_and_cleanup(archive_path, archive_name)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DetectionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=400, detail=f"Install failed: {str(e)}")
    return InstallReportResponse.from_report(report, archive_name)
