"""Value codecs for the key-value store.

Every persisted resource is a JSON-serializable value. ``JsonCodec`` writes it
as compact JSON text; ``EncryptedJsonCodec`` additionally wraps that text in a
Fernet token so wellness history and goals are unreadable at rest.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


@runtime_checkable
class ValueCodec(Protocol):
    """Turns Python values into stored text and back."""

    def encode(self, value: Any) -> str: ...

    def decode(self, stored: str) -> Any: ...


class JsonCodec:
    """Plain compact JSON."""

    def encode(self, value: Any) -> str:
        return json.dumps(value, separators=(",", ":"))

    def decode(self, stored: str) -> Any:
        return json.loads(stored)


class EncryptedJsonCodec:
    """JSON text sealed with Fernet symmetric encryption.

    Usage::

        codec = EncryptedJsonCodec(key=EncryptedJsonCodec.generate_key())
        token = codec.encode({"level": 2, "ap": 40})
        codec.decode(token)  # {"level": 2, "ap": 40}
    """

    def __init__(self, key: str) -> None:
        """Initialize with a Fernet key.

        Raises:
            EncryptionError: If the key is empty or invalid.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encode(self, value: Any) -> str:
        try:
            plaintext = json.dumps(value, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Value is not JSON-serializable: {exc}") from exc
        return self._fernet.encrypt(plaintext).decode("utf-8")

    def decode(self, stored: str) -> Any:
        try:
            plaintext = self._fernet.decrypt(stored.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        return json.loads(plaintext)

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64 Fernet key."""
        return Fernet.generate_key().decode("utf-8")


def build_codec(encryption_key: str = "") -> ValueCodec:
    """Pick the codec for a configured key: encrypted when a key is set."""
    if encryption_key:
        return EncryptedJsonCodec(encryption_key)
    logger.info("No ENCRYPTION_KEY configured; stored values are plain JSON")
    return JsonCodec()
