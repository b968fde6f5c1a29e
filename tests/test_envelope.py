"""
configrypt — Envelope Test Suite
================================
Payload layout, tamper detection and PHP string serialization.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import base64
import hashlib
import hmac
import json

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from configrypt.ciphers  import CipherSpec
from configrypt.envelope import CBCEnvelope, serialize_string, unserialize_string
from configrypt.errors   import InvalidIntegrityTag, InvalidPayload

KEY = hashlib.sha256(b"envelope-test-key").digest()


def _build_payload(key, iv, plaintext, pad=True, tag=""):
    """Assemble a payload by hand, the way the PHP encrypter does."""
    if pad:
        padder = padding.PKCS7(128).padder()
        plaintext = padder.update(plaintext) + padder.finalize()
    enc = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ct  = enc.update(plaintext) + enc.finalize()
    iv_b64    = base64.b64encode(iv).decode()
    value_b64 = base64.b64encode(ct).decode()
    mac = hmac.new(key, (iv_b64 + value_b64).encode(), hashlib.sha256).hexdigest()
    body = json.dumps({"iv": iv_b64, "value": value_b64, "mac": mac, "tag": tag})
    return base64.b64encode(body.encode()).decode()


def _decode(payload):
    return json.loads(base64.b64decode(payload))

# ── Layout ────────────────────────────────────────────────────────────────────
def test_payload_fields():
    env    = CBCEnvelope(KEY)
    fields = _decode(env.seal(b"secret"))
    assert set(fields) == {"iv", "value", "mac", "tag"}
    assert len(base64.b64decode(fields["iv"])) == 16
    assert len(base64.b64decode(fields["value"])) % 16 == 0
    assert len(fields["mac"]) == 64
    assert fields["tag"] == ""

def test_opens_hand_built_payload():
    iv      = bytes(range(16))
    payload = _build_payload(KEY, iv, b's:12:"hand-crafted";')
    assert CBCEnvelope(KEY).open(payload) == b"hand-crafted"

def test_aes128_key_size_enforced():
    with pytest.raises(ValueError):
        CBCEnvelope(KEY, CipherSpec.AES_128_CBC)
    env = CBCEnvelope(KEY[:16], CipherSpec.AES_128_CBC)
    assert env.open(env.seal(b"short")) == b"short"

# ── Tampering ─────────────────────────────────────────────────────────────────
def test_modified_value_detected():
    env    = CBCEnvelope(KEY)
    fields = _decode(env.seal(b"secret"))
    ct = bytearray(base64.b64decode(fields["value"]))
    ct[0] ^= 0xFF
    fields["value"] = base64.b64encode(bytes(ct)).decode()
    tampered = base64.b64encode(json.dumps(fields).encode()).decode()
    with pytest.raises(InvalidIntegrityTag):
        env.open(tampered)

def test_modified_mac_detected():
    env    = CBCEnvelope(KEY)
    fields = _decode(env.seal(b"secret"))
    fields["mac"] = "0" * 64
    tampered = base64.b64encode(json.dumps(fields).encode()).decode()
    with pytest.raises(InvalidIntegrityTag):
        env.open(tampered)

def test_non_ascii_mac_rejected_cleanly():
    env    = CBCEnvelope(KEY)
    fields = _decode(env.seal(b"secret"))
    fields["mac"] = "é" * 64
    tampered = base64.b64encode(json.dumps(fields).encode()).decode()
    with pytest.raises(InvalidIntegrityTag):
        env.open(tampered)

# ── Malformed payloads ────────────────────────────────────────────────────────
def test_missing_field():
    body = base64.b64encode(json.dumps({"iv": "", "value": ""}).encode()).decode()
    with pytest.raises(InvalidPayload):
        CBCEnvelope(KEY).open(body)

def test_wrong_iv_length():
    payload = _build_payload(KEY, bytes(16), b's:1:"x";')
    fields  = _decode(payload)
    fields["iv"] = base64.b64encode(bytes(8)).decode()
    body = base64.b64encode(json.dumps(fields).encode()).decode()
    with pytest.raises(InvalidPayload):
        CBCEnvelope(KEY).open(body)

def test_aead_tag_rejected():
    payload = _build_payload(KEY, bytes(16), b's:1:"x";', tag="c29tZS10YWc=")
    with pytest.raises(InvalidPayload, match="AEAD"):
        CBCEnvelope(KEY).open(payload)

def test_bad_padding_with_valid_mac():
    payload = _build_payload(KEY, bytes(16), b"A" * 16, pad=False)
    with pytest.raises(InvalidPayload):
        CBCEnvelope(KEY).open(payload)

def test_unserialized_plaintext_rejected():
    payload = _build_payload(KEY, bytes(16), b"raw value, not serialized")
    with pytest.raises(InvalidPayload, match="unserialize"):
        CBCEnvelope(KEY).open(payload)

def test_deeply_nested_json_rejected():
    body = base64.b64encode(b"[" * 100_000).decode()
    with pytest.raises(InvalidPayload):
        CBCEnvelope(KEY).open(body)

# ── Serialization ─────────────────────────────────────────────────────────────
def test_serialize_counts_bytes():
    assert serialize_string(b"abc") == b's:3:"abc";'
    assert serialize_string("é".encode()) == b's:2:"\xc3\xa9";'
    assert serialize_string(b"") == b's:0:"";'

def test_unserialize_keeps_inner_quotes():
    assert unserialize_string(b's:6:"a";b"c";') == b'a";b"c'

@pytest.mark.parametrize("data", [b's:4:"abc";', b'i:3;', b's:3:"abc"', b""])
def test_unserialize_rejects_mismatch(data):
    with pytest.raises(InvalidPayload):
        unserialize_string(data)
