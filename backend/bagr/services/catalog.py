"""
Bagr Disc Catalog
Loading and filtering the disc catalog shown in the picker.
"""
import json
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import BaseModel, Field

DISC_TYPES = ("Distance Driver", "Fairway Driver", "Midrange", "Putter")
ALL = "all"


class Disc(BaseModel):
    """Catalog entry with flight numbers."""
    id: int
    name: str
    manufacturer: str
    type: str = Field(..., description="One of DISC_TYPES")
    speed: float
    glide: float
    turn: float
    fade: float


def load_catalog(path: Union[str, Path]) -> List[Disc]:
    """Read a ``{"discs": [...]}`` JSON catalog."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [Disc(**entry) for entry in data.get("discs", [])]


def list_manufacturers(discs: Iterable[Disc]) -> List[str]:
    return sorted({d.manufacturer for d in discs})


def filter_discs(
    discs: Iterable[Disc],
    search: str = "",
    manufacturer: str = ALL,
    disc_type: str = ALL
) -> List[Disc]:
    """
    Picker filter.

    Args:
        discs: Catalog entries
        search: Case-insensitive substring of name or manufacturer
        manufacturer: Exact manufacturer, or "all"
        disc_type: Exact disc type, or "all"

    Returns:
        Matching discs sorted by name
    """
    needle = search.lower()
    matches = [
        d for d in discs
        if (needle in d.name.lower() or needle in d.manufacturer.lower())
        and (manufacturer == ALL or d.manufacturer == manufacturer)
        and (disc_type == ALL or d.type == disc_type)
    ]
    return sorted(matches, key=lambda d: d.name.lower())
