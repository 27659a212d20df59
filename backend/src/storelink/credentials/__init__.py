"""
Credentials module - encrypted storage of provider secrets per seller.

SSOT for "is this provider connected": a row exists for (seller, provider kind)
and its activation_state is active.
"""

from .encryption import EncryptionService, EncryptionError
from .schemas import Credential, CredentialInput
from .store import CredentialStore

__all__ = [
    "EncryptionService",
    "EncryptionError",
    "Credential",
    "CredentialInput",
    "CredentialStore",
]
