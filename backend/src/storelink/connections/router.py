"""Provider connection API endpoints"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..catalog.schemas import SyncSummary
from ..credentials.schemas import CredentialInput
from ..database import get_db
from ..dependencies import get_seller
from ..models.provider_credential import ProviderKind
from ..models.seller import Seller
from .schemas import ConnectResult, ConnectionStatus
from .service import ConnectionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sellers/{seller_id}/integrations", tags=["integrations"])


@router.get("/{provider_kind}", response_model=ConnectionStatus)
def get_connection(
    provider_kind: ProviderKind,
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    return ConnectionService(db).get_state(seller.id, provider_kind)


@router.post("/{provider_kind}/connect", response_model=ConnectResult)
def connect_provider(
    provider_kind: ProviderKind,
    credential_input: CredentialInput,
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    """
    Connect a provider with the submitted credentials.

    Catalog providers run the initial catalog import before responding.
    Providers with an out-of-band handshake respond with state
    pending_activation and the activation token to relay to the end user.

    Raises:
        422: Invalid credential input
        502: Provider unreachable or initial import failed
        409: Another operation is running for this provider
    """
    return ConnectionService(db).connect(seller.id, provider_kind, credential_input)


@router.post("/{provider_kind}/activation/confirm", response_model=ConnectionStatus)
def confirm_activation(
    provider_kind: ProviderKind,
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    return ConnectionService(db).confirm_activation(seller.id, provider_kind)


@router.post("/{provider_kind}/sync", response_model=SyncSummary)
def sync_catalog(
    provider_kind: ProviderKind,
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    """Run a catalog reconciliation pass now and return its summary."""
    return ConnectionService(db).sync(seller.id, provider_kind)


@router.post("/{provider_kind}/disconnect", response_model=ConnectionStatus)
def disconnect_provider(
    provider_kind: ProviderKind,
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    """Disconnect a provider. Imported items are kept but marked unavailable."""
    return ConnectionService(db).disconnect(seller.id, provider_kind)
