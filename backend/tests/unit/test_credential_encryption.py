"""Unit tests for AES-GCM credential secret encryption"""

import base64

import pytest

from storelink.credentials.encryption import EncryptionService, EncryptionError


SLOT = "11111111-1111-1111-1111-111111111111:catalog"
OTHER_SLOT = "11111111-1111-1111-1111-111111111111:messaging"


class TestEncryptionService:
    """Test encrypt/decrypt of secret mappings"""

    def test_encrypt_decrypt_preserves_secrets(self):
        """Test decrypting returns the original mapping"""
        secrets = {"access_token": "shpat_abc123", "webhook_secret": "whsec"}
        encrypted = EncryptionService.encrypt_secrets(secrets, SLOT)

        assert EncryptionService.decrypt_secrets(encrypted, SLOT) == secrets

    def test_ciphertext_does_not_contain_plaintext(self):
        """Test the stored text never contains the token"""
        encrypted = EncryptionService.encrypt_secrets({"access_token": "shpat_abc123"}, SLOT)

        assert "shpat_abc123" not in encrypted
        assert b"shpat_abc123" not in base64.b64decode(encrypted)

    def test_nonce_differs_per_encryption(self):
        """Test encrypting the same secrets twice gives different ciphertexts"""
        secrets = {"access_token": "token"}

        first = EncryptionService.encrypt_secrets(secrets, SLOT)
        second = EncryptionService.encrypt_secrets(secrets, SLOT)

        assert first != second

    def test_ciphertext_bound_to_slot(self):
        """Test a ciphertext copied into another slot fails to decrypt"""
        encrypted = EncryptionService.encrypt_secrets({"access_token": "token"}, SLOT)

        with pytest.raises(EncryptionError):
            EncryptionService.decrypt_secrets(encrypted, OTHER_SLOT)

    def test_tampered_ciphertext_rejected(self):
        """Test flipping one byte fails authentication"""
        raw = bytearray(base64.b64decode(EncryptionService.encrypt_secrets({"a": "b"}, SLOT)))
        raw[-1] ^= 0x01
        tampered = base64.b64encode(bytes(raw)).decode("ascii")

        with pytest.raises(EncryptionError):
            EncryptionService.decrypt_secrets(tampered, SLOT)

    def test_invalid_base64_rejected(self):
        with pytest.raises(EncryptionError):
            EncryptionService.decrypt_secrets("not base64!!", SLOT)

    def test_too_short_payload_rejected(self):
        with pytest.raises(EncryptionError):
            EncryptionService.decrypt_secrets(base64.b64encode(b"short").decode("ascii"), SLOT)


class TestEncryptionKeyHandling:
    """Test master key validation and rotation"""

    def test_initialize_rejects_short_key(self):
        with pytest.raises(EncryptionError, match="32 bytes"):
            EncryptionService.initialize("ab" * 16)

    def test_initialize_rejects_non_hex_key(self):
        with pytest.raises(EncryptionError, match="hex"):
            EncryptionService.initialize("zz" * 32)

