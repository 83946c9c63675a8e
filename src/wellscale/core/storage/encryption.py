"""Fernet encryption for body composition payloads at rest.

Every measured metric of an entry is serialized to JSON and encrypted
before it is written to SQLite. Only identifiers, dates and the computed
scores stay in clear columns.
"""

from __future__ import annotations

import binascii
import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class FieldEncryptor:
    """Encrypts metric payloads (JSON objects) with a Fernet key.

    Usage::

        encryptor = FieldEncryptor(key=FieldEncryptor.generate_key())
        token = encryptor.encrypt({"weight": 72.4, "body_fat": 18.2})
        encryptor.decrypt(token)  # {"weight": 72.4, "body_fat": 18.2}
    """

    def __init__(self, key: str) -> None:
        """
        Raises:
            EncryptionError: If the key is empty or not a valid Fernet key.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.strip().encode("utf-8"))
        except (ValueError, binascii.Error) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, payload: dict[str, Any]) -> str:
        """Serialize ``payload`` to compact JSON and return the Fernet token."""
        if not isinstance(payload, dict):
            raise EncryptionError(
                f"Payload must be a JSON object, got {type(payload).__name__}"
            )
        try:
            plaintext = json.dumps(payload, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Encryption failed: {exc}") from exc
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> dict[str, Any]:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises:
            EncryptionError: On a wrong key, a tampered token or a payload
                that is not a JSON object.
        """
        if not token:
            raise EncryptionError("Decryption failed: empty token")
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc

        try:
            payload = json.loads(plaintext)
        except ValueError as exc:
            raise EncryptionError(f"Decryption failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise EncryptionError("Decryption failed: payload is not a JSON object")
        return payload

    @staticmethod
    def generate_key() -> str:
        """Return a new URL-safe base64 Fernet key."""
        return Fernet.generate_key().decode("utf-8")
