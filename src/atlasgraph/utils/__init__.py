"""
Low-level helpers shared across atlasgraph.

No hierarchy logic should live here.
"""

from atlasgraph.utils.time import utc_now, iso_timestamp, is_iso_timestamp
from atlasgraph.utils.numeric import safe_mean, histogram

__all__ = [
    "utc_now",
    "iso_timestamp",
    "is_iso_timestamp",
    "safe_mean",
    "histogram",
]
