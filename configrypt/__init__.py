"""
configrypt — encrypted values for .env files
============================================
Keep secrets in .env files as prefixed ciphertext and decrypt them
when the application reads its configuration.

    DB_PASSWORD=ENC:eyJpdiI6...

Modules:
    codec     — PrefixedCipherCodec (encrypt / decrypt / is_encrypted)
    envelope  — AES-CBC + HMAC-SHA256 payload (Laravel encrypter layout)
    ciphers   — AES-256-CBC / AES-128-CBC specifications
    env       — EnvironmentResolver, decrypting lookups over os.environ
    config    — Settings from CONFIGRYPT_* variables and .env files
    cli       — `configrypt encrypt | decrypt | get`

License: Apache 2.0
"""

__version__  = "1.0.0"

from .ciphers import CipherSpec
from .codec   import DEFAULT_PREFIX, PrefixedCipherCodec
from .config  import Settings, build_codec, build_resolver, load_settings
from .env     import EnvironmentResolver
from .errors  import (
    ConfigryptError,
    DecryptionError,
    EncryptionError,
    InvalidIntegrityTag,
    InvalidKeyError,
    InvalidPayload,
    UnsupportedCipherError,
)

__all__ = [
    "CipherSpec",
    "DEFAULT_PREFIX",
    "PrefixedCipherCodec",
    "EnvironmentResolver",
    "Settings",
    "load_settings",
    "build_codec",
    "build_resolver",
    "ConfigryptError",
    "InvalidKeyError",
    "UnsupportedCipherError",
    "EncryptionError",
    "DecryptionError",
    "InvalidPayload",
    "InvalidIntegrityTag",
]
