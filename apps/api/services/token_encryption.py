"""
Token Encryption Service

Encrypts and decrypts Strava OAuth tokens using Fernet symmetric encryption.
Tokens are encrypted at rest in the strava_credential table.
"""

from cryptography.fernet import Fernet, InvalidToken
from typing import Optional
import logging
from core.config import settings

logger = logging.getLogger(__name__)


class TokenEncryption:
    """Handles encryption/decryption of OAuth tokens."""

    def __init__(self, encryption_key: Optional[str], environment: str = "development"):
        if not encryption_key:
            # Fail hard in production - no auto-generated keys
            if environment == "production":
                raise RuntimeError(
                    "TOKEN_ENCRYPTION_KEY must be set in production. "
                    "Generate with: python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
                )
            logger.warning("TOKEN_ENCRYPTION_KEY not set. Generating temporary key (NOT FOR PRODUCTION)")
            encryption_key = Fernet.generate_key().decode()

        if isinstance(encryption_key, str):
            encryption_key = encryption_key.encode()

        try:
            self.cipher = Fernet(encryption_key)
        except ValueError as e:
            raise ValueError(f"Invalid encryption key format: {e}") from e

    def encrypt(self, plaintext: str) -> str:
        return self.cipher.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> Optional[str]:
        """
        Decrypt an encrypted token.

        Returns None when the ciphertext was produced under another key, which
        happens after a key rotation; the athlete then has to reconnect.
        """
        try:
            return self.cipher.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.error("Token decryption failed: key mismatch or corrupted token")
            return None


# Global instance
_token_encryption: Optional[TokenEncryption] = None


def get_token_encryption() -> TokenEncryption:
    """Get or create global token encryption instance."""
    global _token_encryption
    if _token_encryption is None:
        _token_encryption = TokenEncryption(settings.TOKEN_ENCRYPTION_KEY, settings.ENVIRONMENT)
    return _token_encryption


def encrypt_token(token: Optional[str]) -> Optional[str]:
    """Convenience function to encrypt a token."""
    if not token:
        return None
    return get_token_encryption().encrypt(token)


def decrypt_token(token: Optional[str]) -> Optional[str]:
    """Convenience function to decrypt a token."""
    if not token:
        return None
    return get_token_encryption().decrypt(token)
