# wayfarer/app/security/codec.py
"""
Authenticated encryption of journal bodies (AES-256-GCM).

Key handling:
- The master key comes from JOURNAL_ENCRYPTION_KEY (64 hex chars).
- It is parsed once into an immutable JournalKeyConfig at process start
  and injected into every JournalCodec.
- A missing or malformed key is a ConfigurationError. There is no
  fallback to a random key: envelopes sealed under such a key could
  never be opened after a restart.

Envelope format (all lowercase hex):
- ciphertext: same length as the UTF-8 plaintext
- iv:         16 random bytes, fresh for every seal
- tag:        16 bytes (128-bit GCM tag)

This module never logs plaintext or key material.
"""
import os
import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from wayfarer.app.core.config import Settings
from wayfarer.app.core.errors import ConfigurationError, DecryptionError

KEY_BYTES = 32
IV_BYTES = 16
TAG_BYTES = 16


def generate_master_key() -> str:
    """Fresh 256-bit key as hex, suitable for JOURNAL_ENCRYPTION_KEY."""
    return secrets.token_hex(KEY_BYTES)


@dataclass(frozen=True)
class JournalKeyConfig:
    key: bytes

    def __post_init__(self):
        if len(self.key) != KEY_BYTES:
            raise ConfigurationError(
                f"Journal encryption key must be {KEY_BYTES} bytes, got {len(self.key)}"
            )

    def __repr__(self) -> str:
        return "JournalKeyConfig(key=<redacted>)"

    @classmethod
    def from_hex(cls, value: str) -> "JournalKeyConfig":
        try:
            key = bytes.fromhex(value.strip())
        except ValueError:
            raise ConfigurationError("JOURNAL_ENCRYPTION_KEY must be hex encoded") from None
        return cls(key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "JournalKeyConfig":
        if not settings.JOURNAL_ENCRYPTION_KEY or not settings.JOURNAL_ENCRYPTION_KEY.strip():
            raise ConfigurationError(
                "JOURNAL_ENCRYPTION_KEY is not set. Generate one with: "
                "python init_db.py --generate-key"
            )
        return cls.from_hex(settings.JOURNAL_ENCRYPTION_KEY)


@dataclass(frozen=True)
class EncryptionEnvelope:
    ciphertext: str
    iv: str
    tag: str


class JournalCodec:
    """Seals and opens journal bodies under the deployment master key."""

    def __init__(self, config: JournalKeyConfig):
        self._aead = AESGCM(config.key)

    def seal(self, plaintext: str) -> EncryptionEnvelope:
        iv = os.urandom(IV_BYTES)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return EncryptionEnvelope(ciphertext=ciphertext.hex(), iv=iv.hex(), tag=tag.hex())

    def open(self, envelope: EncryptionEnvelope) -> str:
        try:
            ciphertext = bytes.fromhex(envelope.ciphertext)
            iv = bytes.fromhex(envelope.iv)
            tag = bytes.fromhex(envelope.tag)
        except (TypeError, ValueError):
            raise DecryptionError("Envelope fields must be hex encoded") from None

        if len(iv) != IV_BYTES or len(tag) != TAG_BYTES:
            raise DecryptionError("Envelope IV or tag has the wrong length")

        try:
            plaintext = self._aead.decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            raise DecryptionError() from None

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionError() from None
