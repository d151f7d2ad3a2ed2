"""
Secrets encryption and log redaction.

CRITICAL SECURITY REQUIREMENTS:
- NEVER store Shopify access tokens in plaintext in the DB or logs
- All encrypt/decrypt operations MUST use this module
- Any key containing token/secret/password MUST be redacted from logs

Encryption uses Fernet with a key derived from the ENCRYPTION_KEY
environment variable.

Usage:
    from storesync.platform.secrets import encrypt_secret, decrypt_secret, redact_secrets

    encrypted = encrypt_secret(access_token)
    access_token = decrypt_secret(tenant.access_token_encrypted)
    logger.info("Store payload", extra=redact_secrets(payload))
"""

import base64
import hashlib
import logging
import os
import re
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

# Dictionary keys whose values never reach a log line
_SECRET_KEY_RE = re.compile(
    r"api[_-]?key|access[_-]?token|refresh[_-]?token|password|client[_-]?secret"
    r"|encryption[_-]?key|jwt[_-]?secret|authorization|database[_-]?url",
    re.IGNORECASE,
)

# Bearer headers, Shopify token prefixes, and credentials embedded in URLs
_SECRET_VALUE_RE = re.compile(
    r"Bearer\s+[\w.-]+"
    r"|shp(?:at|ca|pa|ss)_[A-Za-z0-9]{24,}"
    r"|(?<=://)[^/\s:@]+:[^/\s@]+(?=@)"
)

REDACTED_VALUE = "[REDACTED]"

_KDF_SALT = b"storesync-credential-salt"
_KDF_ITERATIONS = 100000


class EncryptionError(Exception):
    """Raised when encryption/decryption operations fail."""
    pass


class SecretsManager:
    """
    Fernet-based secret encryption.

    The key is derived lazily on first use so that tests and scripts can
    set ENCRYPTION_KEY before anything is encrypted.
    """

    def __init__(self, encryption_key: Optional[str] = None):
        self._explicit_key = encryption_key
        self._fernet: Optional[Fernet] = None

    def _get_fernet(self) -> Fernet:
        if self._fernet is not None:
            return self._fernet

        encryption_key = self._explicit_key or os.getenv("ENCRYPTION_KEY")
        if not encryption_key:
            logger.warning("No ENCRYPTION_KEY configured; credentials cannot be stored")
            raise EncryptionError("No encryption key configured")

        derived_key = hashlib.pbkdf2_hmac(
            "sha256",
            encryption_key.encode(),
            _KDF_SALT,
            _KDF_ITERATIONS,
            dklen=32,  # Fernet requires 32 bytes
        )
        self._fernet = Fernet(base64.urlsafe_b64encode(derived_key))
        return self._fernet

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a plaintext string.

        Raises:
            ValueError: If plaintext is empty
            EncryptionError: If no key is configured
        """
        if not plaintext:
            raise ValueError("Cannot encrypt empty string")
        return self._get_fernet().encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt an encrypted string.

        Raises:
            ValueError: If ciphertext is empty
            EncryptionError: If the key is missing or does not match
        """
        if not ciphertext:
            raise ValueError("Cannot decrypt empty string")
        try:
            decrypted = self._get_fernet().decrypt(ciphertext.encode("utf-8"))
        except InvalidToken:
            raise EncryptionError("Invalid ciphertext or wrong encryption key")
        return decrypted.decode("utf-8")


# Singleton instance
_secrets_manager = SecretsManager()


def encrypt_secret(plaintext: str) -> str:
    """Encrypt a secret for storage."""
    return _secrets_manager.encrypt(plaintext)


def decrypt_secret(ciphertext: str) -> str:
    """Decrypt a stored secret."""
    return _secrets_manager.decrypt(ciphertext)


def is_secret_key(key: Any) -> bool:
    """Check if a dictionary key names a credential."""
    return isinstance(key, str) and _SECRET_KEY_RE.search(key) is not None


def redact_value(value: Any) -> Any:
    """Mask token-shaped substrings in a string; other values pass through."""
    if isinstance(value, str):
        return _SECRET_VALUE_RE.sub(REDACTED_VALUE, value)
    return value


def redact_secrets(data: Any, max_depth: int = 10) -> Any:
    """
    Copy of a payload that is safe to log.

    Values under credential-named keys are replaced outright; every other
    string is scrubbed with redact_value. Nesting deeper than max_depth is
    returned untouched.

    Usage:
        logger.info("Shopify response", extra=redact_secrets(payload))
    """
    if max_depth < 0:
        return data
    if isinstance(data, dict):
        return {
            key: REDACTED_VALUE if is_secret_key(key) else redact_secrets(value, max_depth - 1)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return type(data)(redact_secrets(item, max_depth - 1) for item in data)
    return redact_value(data)
