"""
Refresh token encryption for storage at rest.

Uses AES-256-GCM from the cryptography library. Each encryption draws a
fresh 96-bit nonce; the result is an envelope string of three base64
parts joined by ":" (nonce, authentication tag, ciphertext).

Decryption fails closed: any malformed envelope or failed tag check
returns None instead of raising.
"""

import base64
import binascii
import logging
import os
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

KEY_ENV_VAR = "REFRESH_TOKEN_ENCRYPTION_KEY"
KEY_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16
ENVELOPE_DELIMITER = ":"

# Local development only. Production deployments must set KEY_ENV_VAR.
_DEV_KEY = "dev_dev_dev_dev_dev_dev_dev_dev_!"

# Singleton cipher instance
_cipher: Optional["TokenCipher"] = None


def derive_key(secret: str) -> bytes:
    """
    Turn a configured secret into an AES-256 key.

    The secret is padded with spaces or truncated to exactly 32 bytes. This
    keeps misconfigured development setups running; it is not a KDF.
    """
    return secret.encode("utf-8").ljust(KEY_LENGTH, b" ")[:KEY_LENGTH]


class TokenCipher:
    """AES-GCM envelope cipher bound to one key."""

    def __init__(self, secret: str):
        self._aesgcm = AESGCM(derive_key(secret))

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string into a nonce:tag:ciphertext envelope.

        Args:
            plaintext: Value to encrypt

        Returns:
            Envelope string, different on every call
        """
        nonce = secrets.token_bytes(NONCE_LENGTH)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return ENVELOPE_DELIMITER.join(
            base64.b64encode(part).decode("ascii") for part in (nonce, tag, ciphertext)
        )

    def decrypt(self, envelope: str) -> str | None:
        """
        Decrypt an envelope produced by encrypt().

        Args:
            envelope: nonce:tag:ciphertext string

        Returns:
            The plaintext, or None if the envelope is malformed or fails
            authentication (wrong key, tampered data)
        """
        parts = envelope.split(ENVELOPE_DELIMITER)
        if len(parts) != 3 or not all(parts):
            return None

        try:
            nonce, tag, ciphertext = (
                base64.b64decode(part, validate=True) for part in parts
            )
            plaintext = self._aesgcm.decrypt(nonce, ciphertext + tag, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, binascii.Error, ValueError):
            logger.warning("Refresh token envelope could not be decrypted")
            return None


def get_token_cipher() -> TokenCipher:
    """
    Get or create the process-wide cipher.

    The key comes from REFRESH_TOKEN_ENCRYPTION_KEY. When it is unset, an
    insecure development key is used and a warning is logged.
    """
    global _cipher

    if _cipher is not None:
        return _cipher

    secret = os.getenv(KEY_ENV_VAR)
    if not secret:
        logger.warning(f"{KEY_ENV_VAR} not set; using insecure default for local dev")
        secret = _DEV_KEY

    _cipher = TokenCipher(secret)
    logger.info("Token encryption initialized")
    return _cipher


def generate_encryption_key() -> str:
    """
    Generate a random value suitable for REFRESH_TOKEN_ENCRYPTION_KEY.

    Returns:
        32 URL-safe characters (exactly one AES-256 key after derivation)
    """
    return secrets.token_urlsafe(24)


def is_encryption_configured() -> bool:
    """Check if a real encryption key is configured."""
    return bool(os.getenv(KEY_ENV_VAR))


def reset_encryption() -> None:
    """
    Reset the cipher singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _cipher
    _cipher = None


if __name__ == "__main__":
    # python -m app.infrastructure.encryption
    print(generate_encryption_key())
