"""
Bagr Bag Model
Disc slots, slot updates, share links and photo update sequencing.

Bags are treated as values: every operation returns a new Bag.
"""
import itertools
import json
from typing import Any, Awaitable, Dict, List, Optional, TypeVar
from urllib.parse import quote, unquote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bagr.config import config
from bagr.services.discs.types import PhotoAnalysis
from bagr.utils.logging import get_logger

T = TypeVar('T')

SHARE_PREFIX = "#bag="
SLOT_FIELDS = ("photo", "plastic", "color", "link")

# encodeURIComponent leaves these unescaped as well
_URI_COMPONENT_SAFE = "!*'()"


class BagSlot(BaseModel):
    """One slot of the bag; an empty slot has every field unset."""
    model_config = ConfigDict(populate_by_name=True)

    disc_id: Optional[int] = Field(None, alias="discId", description="Catalog id of the disc")
    photo: Optional[str] = Field(None, description="Cropped photo data URI or photo URL")
    plastic: Optional[str] = Field(None, description="Plastic type")
    color: Optional[str] = Field(None, description="Placeholder color as #RRGGBB")
    link: Optional[str] = Field(None, description="Shop link")

    @property
    def is_empty(self) -> bool:
        return self.disc_id is None


class Bag(BaseModel):
    slots: List[BagSlot] = Field(default_factory=list)
    name: str = Field("", description="Player name")


def new_bag(size: Optional[int] = None, name: str = "") -> Bag:
    """Bag of empty slots."""
    if size is None:
        size = config.DEFAULT_BAG_SIZE
    return Bag(slots=[BagSlot() for _ in range(size)], name=name)


def _replace_slot(bag: Bag, index: int, slot: BagSlot) -> Bag:
    if not 0 <= index < len(bag.slots):
        raise IndexError(f"Slot {index} out of range for bag of {len(bag.slots)}")
    slots = list(bag.slots)
    slots[index] = slot
    return bag.model_copy(update={"slots": slots})


def select_disc(bag: Bag, index: int, disc_id: int, photo: Optional[str] = None) -> Bag:
    """Put a disc in a slot, keeping the slot's photo and details unless a photo is given."""
    current = bag.slots[index] if 0 <= index < len(bag.slots) else BagSlot()
    slot = current.model_copy(update={
        "disc_id": disc_id,
        "photo": photo if photo is not None else current.photo
    })
    return _replace_slot(bag, index, slot)


def update_slot(bag: Bag, index: int, **fields: Any) -> Bag:
    """
    Update photo, plastic, color or link of one slot.

    Raises:
        ValueError: for any other field name
        IndexError: for an index outside the bag
    """
    unknown = set(fields) - set(SLOT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown slot fields: {', '.join(sorted(unknown))}")
    if not 0 <= index < len(bag.slots):
        raise IndexError(f"Slot {index} out of range for bag of {len(bag.slots)}")
    return _replace_slot(bag, index, bag.slots[index].model_copy(update=fields))


def apply_photo_analysis(bag: Bag, index: int, analysis: PhotoAnalysis) -> Bag:
    """Store a pipeline result: the crop becomes the photo, the dominant color the color."""
    return update_slot(
        bag, index,
        photo=analysis.cropped_image_data,
        color=analysis.dominant_color_hex
    )


def clear_slot(bag: Bag, index: int) -> Bag:
    return _replace_slot(bag, index, BagSlot())


def add_slot(bag: Bag) -> Bag:
    return bag.model_copy(update={"slots": list(bag.slots) + [BagSlot()]})


def remove_last_slot(bag: Bag) -> Bag:
    """Drop the last slot; a bag always keeps at least one."""
    if len(bag.slots) <= 1:
        return bag
    return bag.model_copy(update={"slots": list(bag.slots[:-1])})


def encode_share_fragment(bag: Bag) -> str:
    """
    URL fragment carrying the whole bag, e.g. ``#bag=%7B%22bag%22...``.
    """
    payload = {
        "bag": [slot.model_dump(by_alias=True) for slot in bag.slots],
        "name": bag.name
    }
    encoded = quote(json.dumps(payload, separators=(",", ":"), ensure_ascii=False), safe=_URI_COMPONENT_SAFE)
    return f"{SHARE_PREFIX}{encoded}"


def build_share_url(base_url: str, bag: Bag) -> str:
    """Share link for a bag: base_url without its fragment plus the bag fragment."""
    return base_url.split("#", 1)[0] + encode_share_fragment(bag)


def parse_share_fragment(fragment: str) -> Optional[Bag]:
    """
    Rebuild a bag from a share fragment or full share URL.

    Returns:
        The Bag, or None when there is no bag fragment or it is malformed
    """
    if "#" in fragment:
        fragment = "#" + fragment.split("#", 1)[1]
    if not fragment.startswith(SHARE_PREFIX):
        return None

    try:
        data = json.loads(unquote(fragment[len(SHARE_PREFIX):]))
        if not isinstance(data, dict):
            raise ValueError("Share payload is not an object")
        slots = data.get("bag")
        bag = new_bag() if not slots else Bag(slots=slots)
        if data.get("name"):
            bag = bag.model_copy(update={"name": str(data["name"])})
        return bag
    except (ValueError, TypeError, ValidationError) as e:
        get_logger().error(f"Failed to parse bag from share link: {str(e)}")
        return None


class PhotoUpdateCoordinator:
    """
    Last-invocation-wins sequencing of photo updates per slot.

    A second upload to a slot supersedes the first: the earlier result is
    dropped even if it finishes later.
    """

    def __init__(self):
        self._tokens = itertools.count(1)
        self._latest: Dict[int, int] = {}

    def begin(self, slot: int) -> int:
        """Register a new invocation for a slot and return its token."""
        token = next(self._tokens)
        self._latest[slot] = token
        return token

    def is_current(self, slot: int, token: int) -> bool:
        return self._latest.get(slot) == token

    async def run(self, slot: int, work: Awaitable[T]) -> Optional[T]:
        """
        Await work for a slot.

        Returns:
            The result, or None if a newer invocation for the slot started meanwhile
        """
        token = self.begin(slot)
        result = await work
        if not self.is_current(slot, token):
            get_logger().debug("Discarding superseded photo update", extra={
                "slot": slot,
                "token": token
            })
            return None
        return result
