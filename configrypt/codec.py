"""
PrefixedCipherCodec
===================
Encrypts short strings (passwords, API keys, DSNs) into a marked form that
can sit in a .env file next to plain values:

    DB_PASSWORD=ENC:eyJpdiI6IjN1b...

The marker prefix (default "ENC:") tells encrypted values apart from plain
ones; everything after it is the authenticated envelope built by
configrypt.envelope.

Key handling: key material whose byte length differs from what the cipher
needs is normalized with SHA-256 (truncated to the key size). The rule is
deterministic, so any codec given the same key string can read the values
another one wrote.

The codec is immutable after construction and never logs.
"""

import hashlib
from typing import Optional, Union

from .ciphers import CipherSpec
from .envelope import CBCEnvelope
from .errors import EncryptionError, InvalidKeyError, InvalidPayload

DEFAULT_PREFIX = "ENC:"

KeyMaterial = Union[str, bytes]


def normalize_key(key: KeyMaterial, cipher: CipherSpec) -> bytes:
    if isinstance(key, str):
        raw = key.encode("utf-8")
    elif isinstance(key, (bytes, bytearray)):
        raw = bytes(key)
    else:
        raise InvalidKeyError(f"Encryption key must be str or bytes, not {type(key).__name__}.")
    if len(raw) == cipher.key_size:
        return raw
    return hashlib.sha256(raw).digest()[:cipher.key_size]


class PrefixedCipherCodec:
    """Prefix-marked AES-CBC encryption of configuration values."""

    def __init__(
        self,
        key: Optional[KeyMaterial],
        prefix: str = DEFAULT_PREFIX,
        cipher: Union[CipherSpec, str] = CipherSpec.AES_256_CBC,
    ):
        if not key:
            raise InvalidKeyError(
                "Encryption key cannot be empty. Please set CONFIGRYPT_KEY or APP_KEY."
            )
        self._cipher   = CipherSpec.from_name(cipher)
        self._key      = key
        self._prefix   = prefix
        self._envelope = CBCEnvelope(normalize_key(key, self._cipher), self._cipher)

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def key_material(self) -> KeyMaterial:
        """The key exactly as supplied, before normalization. Do not log it."""
        return self._key

    @property
    def cipher(self) -> CipherSpec:
        return self._cipher

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a value and prepend the prefix.
        Each call uses a fresh IV, so equal inputs give different outputs.
        """
        try:
            payload = self._envelope.seal(plaintext.encode("utf-8"))
        except (AttributeError, TypeError, ValueError) as exc:
            raise EncryptionError(f"Could not encrypt the data: {exc}") from exc
        return self._prefix + payload

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a value, removing the prefix if present.
        Bare envelopes without the prefix are accepted as well.
        """
        if self.is_encrypted(ciphertext):
            ciphertext = ciphertext[len(self._prefix):]
        data = self._envelope.open(ciphertext)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidPayload("The decrypted value is not valid UTF-8.") from exc

    def is_encrypted(self, value) -> bool:
        return isinstance(value, str) and value.startswith(self._prefix)

    def __repr__(self) -> str:
        return f"PrefixedCipherCodec(prefix={self._prefix!r}, cipher={self._cipher.value!r})"
