"""
Freight services -- call-site orchestration over the engines.

Services own snapshots, configuration and error policy.  Engines stay
pure; services decide when a failure aborts and when a default is
substituted.
"""

from freight_services.analytics_service import AnalyticsService, ReportOutcome, ReportStatus
from freight_services.quote_service import ItemRequest, QuoteService

__all__ = [
    "AnalyticsService",
    "ItemRequest",
    "QuoteService",
    "ReportOutcome",
    "ReportStatus",
]
