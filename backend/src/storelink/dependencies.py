"""Shared FastAPI dependencies.

Seller resolution for every /sellers/{seller_id} route. Authorizing the
caller for the seller is left to the surrounding application.
"""

from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .errors import SellerNotFound
from .models.seller import Seller


def get_seller(seller_id: UUID, db: Session = Depends(get_db)) -> Seller:
    """Load the seller named in the path.

    Raises:
        SellerNotFound: mapped to HTTP 404
    """
    seller = db.get(Seller, seller_id)
    if seller is None:
        raise SellerNotFound(f"Seller {seller_id} not found")
    return seller
