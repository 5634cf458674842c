from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict


# Tone-offset table (oto.ini)
class Oto(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: str
    original_wav: str
    wav: str
    offset: int = 0
    consonant: int = 0
    cutoff: int = 0
    preutter: int = 0
    overlap: int = 0

class OtoSet(BaseModel):
    model_config = ConfigDict(extra="ignore")
    original_file: Optional[str] = None
    file: Optional[str] = None
    otos: List[Oto] = Field(default_factory=list)

# Voicebank metadata (character.txt)
class Voicebank(BaseModel):
    model_config = ConfigDict(extra="ignore")
    original_file: Optional[str] = None
    file: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    author: Optional[str] = None
    web: Optional[str] = None

# Pitch-prefix table (prefix.map)
class PrefixMap(BaseModel):
    model_config = ConfigDict(extra="ignore")
    original_file: Optional[str] = None
    file: Optional[str] = None
    map: Dict[str, str] = Field(default_factory=dict)


def to_json(record: BaseModel) -> str:
    """Indented JSON with unset optional fields left out."""
    return record.model_dump_json(indent=2, exclude_none=True)
