"""Domain services package.

Pure computation shared by every backend: audit stamping and in-process
paging.  No storage access.
"""

from .auditing import AuditTrail, check_concurrency_token, utc_now
from .paging import check_sort_field, paginate

__all__ = [
    "AuditTrail",
    "check_concurrency_token",
    "check_sort_field",
    "paginate",
    "utc_now",
]
