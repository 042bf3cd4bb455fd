"""Password-based encryption for short secrets entered by a user."""

from __future__ import annotations

import logging
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from resilient_client.core.errors import SecretFormatError

logger = logging.getLogger(__name__)

_HEX_GROUP = re.compile(r"[0-9a-fA-F]+")


class SecretCodec:
    """Encrypt secrets as ``salt:iv:authTag:ciphertext`` hex strings.

    Keys are derived per message with PBKDF2-HMAC-SHA256 from the passphrase
    and a fresh 128-bit salt; the payload is sealed with AES-256-GCM under a
    fresh 96-bit nonce, so two encryptions of the same input never match.
    """

    SALT_BYTES = 16
    IV_BYTES = 12
    TAG_BYTES = 16
    KEY_BYTES = 32
    ITERATIONS = 100_000

    def __init__(self, *, iterations: int = ITERATIONS) -> None:
        if iterations < self.ITERATIONS:
            raise ValueError(f"At least {self.ITERATIONS} PBKDF2 iterations are required.")
        self._iterations = iterations

    def encrypt(self, plaintext: str, passphrase: str) -> str:
        """Encrypt ``plaintext``; the empty string maps to itself."""
        if not plaintext:
            return ""
        salt = os.urandom(self.SALT_BYTES)
        iv = os.urandom(self.IV_BYTES)
        key = self._derive_key(passphrase, salt)
        sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[: -self.TAG_BYTES], sealed[-self.TAG_BYTES :]
        return ":".join(part.hex() for part in (salt, iv, tag, ciphertext))

    def decrypt(self, encrypted: str, passphrase: str) -> str:
        """Decrypt a value from ``encrypt``.

        Raises ``SecretFormatError`` when the value is structurally invalid.
        Returns an empty string when authentication fails (tampered data or a
        wrong passphrase).
        """
        if not encrypted:
            return ""
        salt, iv, tag, ciphertext = self._parse(encrypted)
        key = self._derive_key(passphrase, salt)
        try:
            plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            logger.warning("Secret could not be authenticated; returning empty value")
            return ""
        return plaintext.decode("utf-8")

    @staticmethod
    def is_encrypted(value: str) -> bool:
        """Structural check only: four colon-separated hex groups."""
        if not value:
            return False
        parts = value.split(":")
        return len(parts) == 4 and all(_HEX_GROUP.fullmatch(part) for part in parts)

    def _parse(self, encrypted: str) -> tuple[bytes, bytes, bytes, bytes]:
        if not self.is_encrypted(encrypted):
            raise SecretFormatError("Encrypted secret must be four colon-separated hex fields.")
        try:
            salt, iv, tag, ciphertext = (bytes.fromhex(part) for part in encrypted.split(":"))
        except ValueError as exc:
            raise SecretFormatError("Encrypted secret contains malformed hex.") from exc
        if len(salt) != self.SALT_BYTES or len(iv) != self.IV_BYTES or len(tag) != self.TAG_BYTES:
            raise SecretFormatError("Encrypted secret has unexpected field lengths.")
        return salt, iv, tag, ciphertext

    def _derive_key(self, passphrase: str, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=self.KEY_BYTES,
            salt=salt,
            iterations=self._iterations,
        )
        return kdf.derive(passphrase.encode("utf-8"))


__all__ = ["SecretCodec"]
