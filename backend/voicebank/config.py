import os
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ROOT = PROJECT_ROOT / "Singers"
MAX_ROOT_LENGTH = 80


def voicebank_root(root: Optional[str] = None) -> Path:
    """Import root: explicit argument, then VOICEBANK_ROOT, then <project>/Singers."""
    if root:
        return Path(root)
    env = os.getenv("VOICEBANK_ROOT")
    if env:
        return Path(env)
    return DEFAULT_ROOT
