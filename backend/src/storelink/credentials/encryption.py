"""
AES-GCM Encryption for provider credential secrets

Provides encryption/decryption of provider secrets using AES-256-GCM.
Each encrypted payload includes a random nonce and authentication tag for
integrity, and is bound to its (seller, provider kind) slot through the
associated data, so a ciphertext copied into another slot fails to decrypt.

Storage format: base64(nonce (12 bytes) + ciphertext + auth tag (16 bytes))
"""

import os
import json
import base64
import binascii
import logging
from typing import Dict, Any, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.exceptions import InvalidTag

from ..config import settings


logger = logging.getLogger(__name__)

NONCE_SIZE = 12


class EncryptionError(Exception):
    """Raised when encryption or decryption fails."""
    pass


class EncryptionService:
    """
    Service for encrypting and decrypting provider secrets.

    Uses AES-256-GCM with:
    - 256-bit key from ENCRYPTION_MASTER_KEY
    - Random 96-bit nonce per encryption operation
    - Associated data binding the ciphertext to its credential slot
    """

    _encryption_key: Optional[bytes] = None

    @classmethod
    def initialize(cls, master_key_hex: Optional[str] = None) -> None:
        """
        Initialize the encryption service with the master key.

        Args:
            master_key_hex: 64-character hex string (32 bytes). If None, reads
                ENCRYPTION_MASTER_KEY from settings.

        Raises:
            EncryptionError: If key is missing or invalid
        """
        if master_key_hex is None:
            master_key_hex = settings.ENCRYPTION_MASTER_KEY

        if not master_key_hex:
            raise EncryptionError(
                "ENCRYPTION_MASTER_KEY is not set. "
                "Generate one with: python -c 'import os; print(os.urandom(32).hex())'"
            )

        try:
            key = bytes.fromhex(master_key_hex)
        except ValueError as e:
            raise EncryptionError(f"ENCRYPTION_MASTER_KEY must be a valid hex string: {e}")

        if len(key) != 32:
            raise EncryptionError(
                f"ENCRYPTION_MASTER_KEY must be 32 bytes (64 hex chars), got {len(key)} bytes"
            )

        cls._encryption_key = key
        logger.info("Credential encryption initialized with AES-256-GCM")

    @classmethod
    def _ensure_initialized(cls) -> None:
        if cls._encryption_key is None:
            cls.initialize()

    @classmethod
    def encrypt_secrets(cls, secrets: Dict[str, Any], context: str) -> str:
        """
        Encrypt a mapping of secret values.

        Args:
            secrets: Plain secret values (JSON-serializable)
            context: Slot identifier used as associated data ("<seller_id>:<kind>")

        Returns:
            Base64 text safe for a Text column

        Raises:
            EncryptionError: If encryption fails
        """
        cls._ensure_initialized()

        try:
            plaintext = json.dumps(secrets, sort_keys=True).encode('utf-8')
            nonce = os.urandom(NONCE_SIZE)
            ciphertext = AESGCM(cls._encryption_key).encrypt(nonce, plaintext, context.encode('utf-8'))
            return base64.b64encode(nonce + ciphertext).decode('ascii')
        except Exception as e:
            logger.error(f"Encryption failed: {type(e).__name__}")
            raise EncryptionError(f"Failed to encrypt secrets: {type(e).__name__}")

    @classmethod
    def decrypt_secrets(cls, encrypted: str, context: str) -> Dict[str, Any]:
        """
        Decrypt secrets written by encrypt_secrets for the same context.

        Raises:
            EncryptionError: If the payload is malformed, tampered with, bound to
                another context, or the key is wrong
        """
        cls._ensure_initialized()

        try:
            raw = base64.b64decode(encrypted.encode('ascii'), validate=True)
        except (binascii.Error, ValueError, UnicodeEncodeError):
            raise EncryptionError("Encrypted secrets are not valid base64")

        if len(raw) < NONCE_SIZE:
            raise EncryptionError("Encrypted data is too short (missing nonce)")

        nonce, ciphertext = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        try:
            plaintext = AESGCM(cls._encryption_key).decrypt(nonce, ciphertext, context.encode('utf-8'))
        except InvalidTag:
            logger.error("Decryption failed: authentication tag verification failed")
            raise EncryptionError(
                "Decryption failed: data has been tampered with, belongs to another "
                "credential slot, or the encryption key is wrong"
            )

        try:
            return json.loads(plaintext.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise EncryptionError("Decryption failed: decrypted data is not valid JSON")


# Initialize on module import when the key is configured.
# Tests call EncryptionService.initialize(test_key) explicitly.
try:
    EncryptionService.initialize()
except EncryptionError as e:
    logger.warning(f"Credential encryption not initialized: {e}")
