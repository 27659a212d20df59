"""Seller API endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_seller
from ..models.seller import Seller
from .schemas import SellerCreate, SellerResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sellers", tags=["sellers"])


@router.post("", response_model=SellerResponse, status_code=status.HTTP_201_CREATED)
def create_seller(seller_data: SellerCreate, db: Session = Depends(get_db)):
    try:
        seller = Seller(name=seller_data.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    db.add(seller)
    db.commit()
    db.refresh(seller)

    logger.info(f"Seller created: {seller.id}", extra={"seller_id": str(seller.id)})
    return SellerResponse.model_validate(seller)


@router.get("/{seller_id}", response_model=SellerResponse)
def get_seller_by_id(seller: Seller = Depends(get_seller)):
    return SellerResponse.model_validate(seller)
