"""
Due-set filter options.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from recall.config import get_due_set_limit


@dataclass(frozen=True)
class DueSetFilters:
    """
    Options for a due-set query. All filters combine with AND.

    practice_all drops the "due now" predicate; shuffle replaces the
    due-date ordering with a random one. limit is applied last.
    """
    course_id: Optional[str] = None
    difficult_only: bool = False
    recently_learned: bool = False
    shuffle: bool = False
    practice_all: bool = False
    limit: Optional[int] = None

    @classmethod
    def with_default_limit(cls, **kwargs) -> "DueSetFilters":
        """Filters using DUE_SET_LIMIT when no explicit limit is given."""
        kwargs.setdefault("limit", get_due_set_limit())
        return cls(**kwargs)
