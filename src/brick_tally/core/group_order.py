"""User-arranged group order and per-group collapse state.

Group labels are only meaningful within one grouping mode, so any
explicit order is dropped when the mode changes.  Collapse state is
independent of ordering and survives mode changes.
"""

from typing import Iterable, Optional, Sequence, TypeVar

from brick_tally.utils.constants import SPARES_GROUP

G = TypeVar("G")


class GroupOrderController:
    """Holds ``None`` (natural order) or an explicit list of group labels."""

    def __init__(self, group_by: Optional[str] = None):
        self.group_by = group_by
        self.order: Optional[list[str]] = None
        self.collapsed: set[str] = {SPARES_GROUP}

    # ── Ordering ────────────────────────────────────────────────

    @property
    def is_explicit(self) -> bool:
        return self.order is not None

    def current_labels(self, natural: Sequence[str]) -> list[str]:
        """The labels in display order for the given natural order."""
        if self.order is None:
            return list(natural)
        present = set(natural)
        ranked = [label for label in self.order if label in present]
        ranked_set = set(ranked)
        return ranked + [label for label in natural if label not in ranked_set]

    def reorder(self, from_label: str, to_label: str,
                natural: Sequence[str]) -> bool:
        """Move ``from_label`` to the position currently held by ``to_label``.

        Seeds the explicit order from what is currently displayed.
        Returns False (and changes nothing) when the move is a no-op.
        """
        if from_label == to_label:
            return False
        labels = self.current_labels(natural)
        if from_label not in labels or to_label not in labels:
            return False
        to_idx = labels.index(to_label)
        labels.remove(from_label)
        labels.insert(to_idx, from_label)
        self.order = labels
        return True

    def move_by(self, label: str, offset: int,
                natural: Sequence[str]) -> bool:
        """Shift a group up (negative) or down (positive) by ``offset``."""
        labels = self.current_labels(natural)
        if label not in labels:
            return False
        target = max(0, min(labels.index(label) + offset, len(labels) - 1))
        return self.reorder(label, labels[target], natural)

    def resolve(self, groups: Iterable[G], label_of=lambda g: g.label) -> list[G]:
        """Arrange groups: explicit ones first in their order, then the rest.

        Groups missing from the explicit order (e.g. a status group that
        just appeared) keep their natural relative order at the end.
        """
        groups = list(groups)
        if self.order is None:
            return groups
        rank = {label: i for i, label in enumerate(self.order)}
        explicit = [g for g in groups if label_of(g) in rank]
        explicit.sort(key=lambda g: rank[label_of(g)])
        rest = [g for g in groups if label_of(g) not in rank]
        return explicit + rest

    def invalidate_on_mode_change(self, group_by: Optional[str] = None):
        """Forget any explicit order; call whenever the grouping mode changes."""
        self.order = None
        self.group_by = group_by

    def set_group_by(self, group_by: str):
        if group_by != self.group_by:
            self.invalidate_on_mode_change(group_by)

    # ── Collapse / expand ───────────────────────────────────────

    def is_collapsed(self, label: str) -> bool:
        return label in self.collapsed

    def toggle(self, label: str) -> bool:
        """Flip one group's collapsed state. Returns the new state."""
        if label in self.collapsed:
            self.collapsed.discard(label)
            return False
        self.collapsed.add(label)
        return True

    def all_collapsed(self, labels: Iterable[str]) -> bool:
        labels = list(labels)
        return bool(labels) and all(label in self.collapsed for label in labels)

    def toggle_all(self, labels: Iterable[str]):
        """Expand everything if all are collapsed, else collapse all.

        The session page passes the spares label along with the regular
        groups, so "Collapse All" folds the spares section too and
        "Expand All" opens it.
        """
        labels = list(labels)
        if self.all_collapsed(labels):
            self.collapsed = set()
        else:
            self.collapsed = set(labels)
