"""
Utility helpers used by the migration tool.

This subpackage exposes the error taxonomy and structured event logging,
the retry policy, category slugs and resolution, and the run summary.
"""

from .errors import ERRORS, report_error, report_ok
from .retry import RetryPolicy

__all__ = ["ERRORS", "RetryPolicy", "report_error", "report_ok"]
