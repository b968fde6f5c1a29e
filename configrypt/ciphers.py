"""
Cipher specifications
=====================
The two block-cipher configurations configrypt understands.

    AES-256-CBC   key 32 bytes   IV 16 bytes   (default)
    AES-128-CBC   key 16 bytes   IV 16 bytes

CBC works on 128-bit AES blocks whatever the key size, so the IV is
always one block long.
"""

from enum import Enum

from .errors import UnsupportedCipherError


class CipherSpec(Enum):
    AES_256_CBC = "AES-256-CBC"
    AES_128_CBC = "AES-128-CBC"

    @property
    def key_size(self) -> int:
        return 32 if self is CipherSpec.AES_256_CBC else 16

    @property
    def iv_size(self) -> int:
        return 16

    @property
    def block_bits(self) -> int:
        return 128

    @classmethod
    def from_name(cls, name) -> "CipherSpec":
        """
        Accept a CipherSpec or a name such as "AES-256-CBC" / "aes-128-cbc".
        Raises UnsupportedCipherError for anything else.
        """
        if isinstance(name, cls):
            return name
        if isinstance(name, str):
            wanted = name.strip().upper()
            for spec in cls:
                if spec.value == wanted:
                    return spec
        supported = ", ".join(spec.value for spec in cls)
        raise UnsupportedCipherError(
            f"Unsupported cipher {name!r}. Supported ciphers are: {supported}."
        )

    def __str__(self) -> str:
        return self.value
