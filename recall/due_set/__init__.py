"""Due-set selection (study queue)."""

from recall.due_set.filters import DueSetFilters
from recall.due_set.selector import (
    DueSet,
    DueSetEntry,
    build_due_set,
    is_difficult,
    is_recently_learned,
    select_due_set,
)

__all__ = [
    "DueSetFilters",
    "DueSet",
    "DueSetEntry",
    "build_due_set",
    "is_difficult",
    "is_recently_learned",
    "select_due_set",
]
