"""Background workers for scheduled catalog synchronization.

All tasks take seller_id as an explicit UUID string and validate it with
validate_seller_id before processing.
"""

from .base import validate_seller_id

__all__ = [
    "validate_seller_id",
]
