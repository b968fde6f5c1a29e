"""
Envelope: AES-CBC + HMAC-SHA256 (encrypt-then-MAC)
===================================================
The opaque payload that follows the prefix of an encrypted value.

AES in CBC mode gives confidentiality only, so every message carries an
HMAC-SHA256 tag computed over the base64 IV and base64 ciphertext. The tag
is checked in constant time *before* anything is decrypted.

Payload format (Laravel encrypter layout):

    base64( {"iv": b64(iv), "value": b64(ciphertext),
             "mac": hex(hmac_sha256(key, iv_b64 + value_b64)), "tag": ""} )

The plaintext inside the ciphertext is the PHP-serialized string
s:<byte length>:"<text>"; so payloads written by Laravel's Crypt facade
open here, and the other way round, given the same key.

IV:  128 bits (16 bytes) — randomly generated per message.
Tag: 256 bits (32 bytes), hex encoded.

Dependencies: cryptography >= 41.0
"""

import base64
import binascii
import hashlib
import hmac
import json
import os
import re

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .ciphers import CipherSpec
from .errors import InvalidIntegrityTag, InvalidPayload

_SERIALIZED = re.compile(rb'\As:(\d+):"(.*)";\Z', re.DOTALL)


def serialize_string(text: bytes) -> bytes:
    """Wrap raw bytes the way PHP's serialize() writes a string."""
    return b's:%d:"%s";' % (len(text), text)


def unserialize_string(data: bytes) -> bytes:
    match = _SERIALIZED.match(data)
    if match is None or int(match.group(1)) != len(match.group(2)):
        raise InvalidPayload("Could not unserialize the decrypted value.")
    return match.group(2)


def _b64decode(value) -> bytes:
    if not isinstance(value, (str, bytes)):
        raise InvalidPayload("The payload is invalid.")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidPayload("The payload is invalid.") from exc


class CBCEnvelope:
    """AES-CBC envelope with an HMAC-SHA256 integrity tag."""

    def __init__(self, key: bytes, cipher: CipherSpec = CipherSpec.AES_256_CBC):
        if len(key) != cipher.key_size:
            raise ValueError(f"{cipher} key must be {cipher.key_size} bytes.")
        self._key    = key
        self._cipher = cipher

    @property
    def cipher(self) -> CipherSpec:
        return self._cipher

    def _mac(self, iv_b64: str, value_b64: str) -> str:
        return hmac.new(
            self._key, (iv_b64 + value_b64).encode("ascii"), hashlib.sha256
        ).hexdigest()

    def seal(self, plaintext: bytes) -> str:
        """
        Encrypt and authenticate.
        Returns the base64 payload (without any prefix).
        """
        iv = os.urandom(self._cipher.iv_size)

        padder = padding.PKCS7(self._cipher.block_bits).padder()
        padded = padder.update(serialize_string(plaintext)) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ct = encryptor.update(padded) + encryptor.finalize()

        iv_b64    = base64.b64encode(iv).decode("ascii")
        value_b64 = base64.b64encode(ct).decode("ascii")
        payload = {
            "iv": iv_b64,
            "value": value_b64,
            "mac": self._mac(iv_b64, value_b64),
            "tag": "",
        }
        body = json.dumps(payload, separators=(",", ":")).encode("ascii")
        return base64.b64encode(body).decode("ascii")

    def open(self, payload: str) -> bytes:
        """
        Verify the tag, then decrypt.
        Raises InvalidPayload for anything malformed, InvalidIntegrityTag
        when the MAC does not match.
        """
        fields = self._parse(payload)

        expected = self._mac(fields["iv"], fields["value"])
        if not hmac.compare_digest(expected.encode("ascii"), fields["mac"].encode("utf-8", "surrogatepass")):
            raise InvalidIntegrityTag("The MAC is invalid.")

        iv = _b64decode(fields["iv"])
        ct = _b64decode(fields["value"])
        try:
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded    = decryptor.update(ct) + decryptor.finalize()
            unpadder  = padding.PKCS7(self._cipher.block_bits).unpadder()
            data      = unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            raise InvalidPayload("Could not decrypt the data.") from exc

        return unserialize_string(data)

    def _parse(self, payload: str) -> dict:
        raw = _b64decode(payload)
        try:
            fields = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            raise InvalidPayload("The payload is invalid.") from exc

        if not isinstance(fields, dict):
            raise InvalidPayload("The payload is invalid.")
        for name in ("iv", "value", "mac"):
            if not isinstance(fields.get(name), str):
                raise InvalidPayload("The payload is invalid.")
        _b64decode(fields["value"])
        if len(_b64decode(fields["iv"])) != self._cipher.iv_size:
            raise InvalidPayload("The payload is invalid.")
        # CBC is not an AEAD mode, a non-empty tag means the payload came
        # from a GCM encrypter.
        if fields.get("tag"):
            raise InvalidPayload(
                "Unable to use tag because the cipher algorithm does not support AEAD."
            )
        return fields
