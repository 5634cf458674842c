import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .config import voicebank_root
from .models import Voicebank

logger = logging.getLogger(__name__)

VOICEBANK_RECORD = "_voicebank.json"


def list_voicebanks(base_path: Optional[str] = None) -> List[Voicebank]:
    """Every installed voicebank record under the import root, sorted by file."""
    root = voicebank_root(base_path)
    if not root.exists():
        return []

    voicebanks: List[Voicebank] = []
    for p in root.rglob(VOICEBANK_RECORD):
        try:
            voicebanks.append(Voicebank.model_validate_json(p.read_text(encoding="utf-8")))
        except (OSError, ValidationError) as e:
            logger.warning(f"Skipping unreadable voicebank record {p}: {e}")
    return sorted(voicebanks, key=lambda v: v.file or "")
