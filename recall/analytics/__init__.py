"""
Analytics package exports.
"""

from recall.analytics.service import build_review_dashboard
from recall.analytics.session import SessionTally
from recall.analytics.types import ReviewDashboardData

__all__ = [
    "build_review_dashboard",
    "SessionTally",
    "ReviewDashboardData",
]
