"""Derive the display list from a ledger snapshot.

The projection is a pure function of (items, view state, category
names).  It is recomputed in full on every change: sessions hold a few
hundred items at most, and filter/sort/group do not decompose into
cheap incremental patches.

Order of operations:
  1. split spares from regular parts (each side is projected alone)
  2. narrow to one part number ("show all colors"), if active
  3. apply the filter
  4. sort for the grouping mode
  5. fold into groups in first-seen order
"""

import unicodedata
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from brick_tally.database.models import SessionPart
from brick_tally.utils.constants import (
    FILTER_ALL,
    FILTER_COMPLETE,
    FILTER_FOUND,
    FILTER_IN_PROGRESS,
    FILTER_MODES,
    FILTER_NOT_FOUND,
    GROUP_BY_CATEGORY,
    GROUP_BY_COLOR,
    GROUP_BY_STATUS,
    GROUP_MODES,
    OTHER_CATEGORY,
    STATUS_COMPLETE,
    STATUS_INCOMPLETE,
    STATUS_LABELS,
)
from brick_tally.utils.formatters import progress_percent


@dataclass(frozen=True)
class ViewState:
    """The per-view selections that drive the projection.

    ``filter_by`` semantics:
      all          every item
      not-found    qty_found < qty_needed
      in-progress  0 < qty_found < qty_needed  (complete items excluded)
      found        qty_found > 0               (complete items included)
      complete     qty_found >= qty_needed
    """
    group_by: str = GROUP_BY_COLOR
    filter_by: str = FILTER_ALL
    similar_part_num: Optional[str] = None

    def __post_init__(self):
        if self.group_by not in GROUP_MODES:
            raise ValueError(f"Unknown grouping mode: {self.group_by}")
        if self.filter_by not in FILTER_MODES:
            raise ValueError(f"Unknown filter: {self.filter_by}")

    def with_group_by(self, group_by: str) -> "ViewState":
        return replace(self, group_by=group_by)

    def with_filter(self, filter_by: str) -> "ViewState":
        return replace(self, filter_by=filter_by)

    def narrowed_to(self, part_num: Optional[str]) -> "ViewState":
        return replace(self, similar_part_num=part_num)


@dataclass(frozen=True)
class PartGroup:
    key: str
    label: str
    parts: tuple[SessionPart, ...] = ()
    color_rgb: Optional[str] = None

    @property
    def found(self) -> int:
        return sum(p.qty_found for p in self.parts)

    @property
    def needed(self) -> int:
        return sum(p.qty_needed for p in self.parts)

    @property
    def percent(self) -> int:
        return progress_percent(self.found, self.needed)

    @property
    def is_complete(self) -> bool:
        return self.needed > 0 and self.found >= self.needed


@dataclass(frozen=True)
class Projection:
    """Read-only result of :func:`project`."""
    state: ViewState
    regular: tuple[SessionPart, ...] = ()
    spares: tuple[SessionPart, ...] = ()
    groups: tuple[PartGroup, ...] = ()
    spare_groups: tuple[PartGroup, ...] = ()
    total_needed: int = 0
    total_found: int = 0
    similar_label: Optional[str] = field(default=None)

    @property
    def percent(self) -> int:
        return progress_percent(self.total_found, self.total_needed)

    @property
    def labels(self) -> list[str]:
        return [g.label for g in self.groups]


def collation_key(text: Optional[str]) -> tuple[str, str]:
    """Case- and accent-insensitive ordering key, ties broken by raw text."""
    text = text or ""
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(c for c in decomposed if not unicodedata.combining(c))
    return folded.casefold(), text


def category_label(code: Optional[str],
                   category_names: Optional[dict] = None) -> str:
    if not code:
        return OTHER_CATEGORY
    names = category_names or {}
    return names.get(code) or f"Category {code}"


def group_key(part: SessionPart, group_by: str,
              category_names: Optional[dict] = None) -> tuple[str, str]:
    """Return (key, label) of the group ``part`` belongs to."""
    if group_by == GROUP_BY_COLOR:
        return str(part.color_id), part.color_name
    if group_by == GROUP_BY_CATEGORY:
        return (part.category or OTHER_CATEGORY,
                category_label(part.category, category_names))
    status = STATUS_COMPLETE if part.is_complete else STATUS_INCOMPLETE
    return status, STATUS_LABELS[status]


def apply_filter(parts: Iterable[SessionPart],
                 filter_by: str) -> list[SessionPart]:
    if filter_by == FILTER_ALL:
        return list(parts)
    if filter_by == FILTER_NOT_FOUND:
        return [p for p in parts if p.qty_found < p.qty_needed]
    if filter_by == FILTER_IN_PROGRESS:
        return [p for p in parts if 0 < p.qty_found < p.qty_needed]
    if filter_by == FILTER_FOUND:
        return [p for p in parts if p.qty_found > 0]
    if filter_by == FILTER_COMPLETE:
        return [p for p in parts if p.qty_found >= p.qty_needed]
    raise ValueError(f"Unknown filter: {filter_by}")


def sort_parts(parts: Iterable[SessionPart], group_by: str,
               category_names: Optional[dict] = None) -> list[SessionPart]:
    if group_by == GROUP_BY_COLOR:
        def key(p):
            return collation_key(p.color_name), collation_key(p.part_name)
    elif group_by == GROUP_BY_CATEGORY:
        def key(p):
            return (collation_key(category_label(p.category, category_names)),
                    collation_key(p.part_name))
    elif group_by == GROUP_BY_STATUS:
        def key(p):
            return p.is_complete, collation_key(p.color_name)
    else:
        raise ValueError(f"Unknown grouping mode: {group_by}")
    return sorted(parts, key=key)


def group_parts(parts: Iterable[SessionPart], group_by: str,
                category_names: Optional[dict] = None) -> list[PartGroup]:
    """Fold sorted parts into groups, ordered by each key's first member."""
    order: list[str] = []
    members: dict[str, list[SessionPart]] = {}
    meta: dict[str, tuple[str, Optional[str]]] = {}
    for part in parts:
        key, label = group_key(part, group_by, category_names)
        if key not in members:
            order.append(key)
            members[key] = []
            rgb = part.color_rgb if group_by == GROUP_BY_COLOR else None
            meta[key] = (label, rgb)
        members[key].append(part)
    return [
        PartGroup(key=k, label=meta[k][0], parts=tuple(members[k]),
                  color_rgb=meta[k][1])
        for k in order
    ]


def _project_partition(parts, state, category_names):
    if state.similar_part_num:
        parts = [p for p in parts if p.part_num == state.similar_part_num]
    parts = apply_filter(parts, state.filter_by)
    parts = sort_parts(parts, state.group_by, category_names)
    return parts, group_parts(parts, state.group_by, category_names)


def project(items: Iterable[SessionPart], state: ViewState,
            category_names: Optional[dict] = None) -> Projection:
    """Compute the full display projection for one view."""
    items = list(items)
    regular = [p for p in items if not p.is_spare]
    spares = [p for p in items if p.is_spare]

    regular_sorted, groups = _project_partition(
        regular, state, category_names)
    spares_sorted, spare_groups = _project_partition(
        spares, state, category_names)

    similar_label = None
    if state.similar_part_num:
        similar_label = next(
            (p.part_name for p in regular_sorted), state.similar_part_num
        )

    return Projection(
        state=state,
        regular=tuple(regular_sorted),
        spares=tuple(spares_sorted),
        groups=tuple(groups),
        spare_groups=tuple(spare_groups),
        total_needed=sum(p.qty_needed for p in regular),
        total_found=sum(p.qty_found for p in regular),
        similar_label=similar_label,
    )


def has_similar(items: Iterable[SessionPart], part_num: str) -> bool:
    """True when a part number appears in more than one color (non-spare)."""
    colors = {
        p.color_id for p in items
        if not p.is_spare and p.part_num == part_num
    }
    return len(colors) > 1
