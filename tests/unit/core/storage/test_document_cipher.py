"""Tests for DocumentCipher (Fernet-encrypted JSON documents)."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet

from moodtrack.core.storage.encryption import DocumentCipher, EncryptionError


@pytest.fixture
def key() -> str:
    return Fernet.generate_key().decode()


@pytest.fixture
def doc_cipher(key: str) -> DocumentCipher:
    return DocumentCipher(key)


class TestRoundTrip:
    def test_nested_document(self, doc_cipher: DocumentCipher):
        doc = {
            "mood": "happy",
            "intensity": 7,
            "health_data": {"heart_rate_value": 72.0, "noise_level_value": None},
        }
        token = doc_cipher.encrypt_document(doc)
        assert isinstance(token, str)
        assert "happy" not in token
        assert doc_cipher.decrypt_document(token) == doc

    def test_same_document_gives_distinct_tokens(self, doc_cipher: DocumentCipher):
        t1 = doc_cipher.encrypt_document({"v": 1})
        t2 = doc_cipher.encrypt_document({"v": 1})
        assert t1 != t2
        assert doc_cipher.decrypt_document(t1) == doc_cipher.decrypt_document(t2)


class TestKeyValidation:
    def test_empty_key_raises(self):
        with pytest.raises(EncryptionError, match="must not be empty"):
            DocumentCipher("")

    def test_whitespace_key_raises(self):
        with pytest.raises(EncryptionError, match="must not be empty"):
            DocumentCipher("   ")

    def test_invalid_key_raises(self):
        with pytest.raises(EncryptionError, match="Invalid encryption key"):
            DocumentCipher("not-a-valid-fernet-key")


class TestCorruptData:
    def test_wrong_key_cannot_decrypt(self, doc_cipher: DocumentCipher):
        token = doc_cipher.encrypt_document({"journal_text": "secret"})
        other = DocumentCipher(Fernet.generate_key().decode())
        with pytest.raises(EncryptionError, match="invalid token"):
            other.decrypt_document(token)

    def test_garbage_token_raises(self, doc_cipher: DocumentCipher):
        with pytest.raises(EncryptionError):
            doc_cipher.decrypt_document("not-a-valid-token")

    def test_empty_token_raises(self, doc_cipher: DocumentCipher):
        with pytest.raises(EncryptionError):
            doc_cipher.decrypt_document("")

    def test_non_object_payload_raises(self, key: str, doc_cipher: DocumentCipher):
        token = Fernet(key.encode()).encrypt(b"[1, 2, 3]").decode()
        with pytest.raises(EncryptionError, match="not a JSON object"):
            doc_cipher.decrypt_document(token)

    def test_unserializable_document_raises(self, doc_cipher: DocumentCipher):
        with pytest.raises(EncryptionError, match="not JSON-serializable"):
            doc_cipher.encrypt_document({"when": object()})


class TestGenerateKey:
    def test_generated_key_works(self):
        c = DocumentCipher(DocumentCipher.generate_key())
        assert c.decrypt_document(c.encrypt_document({"ok": True})) == {"ok": True}

    def test_each_key_is_unique(self):
        keys = {DocumentCipher.generate_key() for _ in range(10)}
        assert len(keys) == 10
