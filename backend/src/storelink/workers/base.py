"""Base utilities for seller-scoped background tasks.

Every task takes seller_id as an explicit UUID string (JSON serializable)
and validates it before touching provider credentials.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from ..models.seller import Seller


def validate_seller_id(seller_id: str, session: Session) -> UUID:
    """Validate that seller_id is a valid UUID and references an existing seller.

    Raises:
        ValueError: If seller_id is not a UUID or the seller does not exist
    """
    try:
        seller_uuid = UUID(str(seller_id))
    except (ValueError, AttributeError, TypeError) as e:
        raise ValueError(f"Invalid seller_id format '{seller_id}': {str(e)}")

    if session.get(Seller, seller_uuid) is None:
        raise ValueError(f"Seller {seller_id} does not exist")

    return seller_uuid
