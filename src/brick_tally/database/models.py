"""Data models for the database layer."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class SetMeta:
    """Set descriptor as reported by the parts catalog."""
    set_num: str = ""
    name: str = ""
    set_img_url: Optional[str] = None


@dataclass
class Session:
    id: Optional[int] = None
    slug: str = ""
    set_num: str = ""
    set_name: str = ""
    set_img_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class SessionPart:
    """One trackable line item: a part in one color, spare or not."""
    id: Optional[int] = None
    session_id: Optional[int] = None
    part_num: str = ""
    part_name: str = ""
    part_img_url: Optional[str] = None
    color_id: int = 0
    color_name: str = ""
    color_rgb: str = ""
    element_id: Optional[str] = None
    category: Optional[str] = None
    qty_needed: int = 0
    qty_found: int = 0
    is_spare: bool = False

    @property
    def identity(self) -> tuple[str, int, bool]:
        """The (part, color, spare) triple that is unique within a session."""
        return (self.part_num, self.color_id, self.is_spare)

    @property
    def is_complete(self) -> bool:
        return self.qty_found >= self.qty_needed

    @property
    def has_progress(self) -> bool:
        return self.qty_found > 0

    @property
    def qty_missing(self) -> int:
        return max(0, self.qty_needed - self.qty_found)


@dataclass
class SessionData:
    """A session together with all of its line items."""
    session: Session
    parts: list[SessionPart] = field(default_factory=list)
    change_seq: int = 0  # newest change-log seq at load time


@dataclass
class Manifest:
    """Raw provider output: set metadata plus unmerged part entries."""
    set_meta: SetMeta
    entries: list[dict] = field(default_factory=list)


@dataclass
class PartChange:
    """A row of the change log that feeds the realtime channel."""
    seq: int = 0
    session_id: int = 0
    part_id: int = 0
    qty_found: int = 0
    changed_at: Optional[datetime] = None


@dataclass
class RecentSession:
    slug: str = ""
    set_num: str = ""
    set_name: str = ""
    set_img_url: Optional[str] = None
    total_found: int = 0
    total_needed: int = 0
    timestamp: float = 0.0
