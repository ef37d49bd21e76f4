"""Fernet encryption for entry documents at rest.

Mood journals, health snapshots and addresses are personal data, so every
document body is encrypted before it reaches SQLite. Only the owner id, the
collection name and the timestamp stay in clear text for range queries.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when a document cannot be encrypted or decrypted."""


class DocumentCipher:
    """Encrypts JSON documents into Fernet tokens and back.

    Usage::

        cipher = DocumentCipher(key=DocumentCipher.generate_key())
        token = cipher.encrypt_document({"mood": "happy", "intensity": 6})
        cipher.decrypt_document(token)  # {"mood": "happy", "intensity": 6}
    """

    def __init__(self, key: str) -> None:
        """Initialize with a Fernet key.

        Raises:
            EncryptionError: If the key is empty or not a valid Fernet key.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.strip().encode("utf-8"))
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt_document(self, document: dict[str, Any]) -> str:
        """Serialize a document to compact JSON and encrypt it."""
        try:
            plaintext = json.dumps(document, separators=(",", ":"), sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Document is not JSON-serializable: {exc}") from exc
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt_document(self, token: str) -> dict[str, Any]:
        """Decrypt a token produced by :meth:`encrypt_document`.

        Raises:
            EncryptionError: On a wrong key, a tampered token, or a payload
                that is not a JSON object.
        """
        if not token:
            raise EncryptionError("Empty token")
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc

        try:
            document = json.loads(plaintext)
        except json.JSONDecodeError as exc:
            raise EncryptionError(f"Decrypted payload is not JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise EncryptionError("Decrypted payload is not a JSON object")
        return document

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64 Fernet key."""
        return Fernet.generate_key().decode("utf-8")
