"""
Exceptions
==========
Every error raised by configrypt derives from ConfigryptError, so callers
can catch the whole family with a single clause.

    ConfigryptError
    ├── InvalidKeyError          missing / empty key material
    ├── UnsupportedCipherError   unknown cipher name
    ├── EncryptionError          cipher failure while encrypting
    └── DecryptionError
        ├── InvalidPayload       envelope cannot be parsed or unpadded
        └── InvalidIntegrityTag  MAC mismatch (wrong key or tampering)
"""


class ConfigryptError(Exception):
    """Base class for all configrypt errors."""


class InvalidKeyError(ConfigryptError, ValueError):
    pass


class UnsupportedCipherError(ConfigryptError, ValueError):
    pass


class EncryptionError(ConfigryptError):
    pass


class DecryptionError(ConfigryptError):
    pass


class InvalidPayload(DecryptionError):
    pass


class InvalidIntegrityTag(DecryptionError):
    pass
