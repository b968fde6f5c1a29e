"""
Environment resolution
======================
Looks up variables in a key/value mapping (os.environ unless another one
is injected) and decrypts the ones carrying the codec's prefix.

Every caller asks the resolver explicitly, so nothing ever has to patch the
process environment or invalidate a cached view of it. decrypt_all() is
there for the cases where the decrypted values must be written back, and
it only touches the mapping the resolver was given.

Failure policy: a value that cannot be decrypted resolves to the caller's
default. With debug on, the failure is also logged (variable name and
error only, never the value).
"""

import logging
import os
from typing import Dict, List, MutableMapping, Optional, TypeVar

from .codec import PrefixedCipherCodec
from .errors import DecryptionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EnvironmentResolver:
    """Decrypting view over an environment mapping."""

    def __init__(
        self,
        codec: PrefixedCipherCodec,
        environ: Optional[MutableMapping[str, str]] = None,
        debug: bool = False,
    ):
        self._codec   = codec
        self._environ = os.environ if environ is None else environ
        self._debug   = debug

    @property
    def codec(self) -> PrefixedCipherCodec:
        return self._codec

    @property
    def environ(self) -> MutableMapping[str, str]:
        return self._environ

    def get(self, name: str, default: Optional[T] = None):
        """
        Return the value of `name`, decrypted if it carries the prefix.
        Missing or empty variables, and values that fail to decrypt,
        resolve to `default`.
        """
        value = self._environ.get(name)
        if not value:
            return default
        if not self._codec.is_encrypted(value):
            return value
        try:
            return self._codec.decrypt(value)
        except DecryptionError:
            self._report(name)
            return default

    def is_encrypted(self, value) -> bool:
        return self._codec.is_encrypted(value)

    def decrypt_all(self) -> List[str]:
        """
        Replace every encrypted value in the mapping with its plaintext.
        Returns the names that were decrypted; undecryptable values are
        left as they are.
        """
        decrypted = []
        for name, value in list(self._environ.items()):
            if not self._codec.is_encrypted(value):
                continue
            try:
                self._environ[name] = self._codec.decrypt(value)
            except DecryptionError:
                self._report(name)
                continue
            decrypted.append(name)
        logger.debug("Decrypted %d environment variable(s)", len(decrypted))
        return decrypted

    def get_all_decrypted(self) -> Dict[str, Optional[str]]:
        return {name: self.get(name) for name in list(self._environ)}

    def _report(self, name: str) -> None:
        if self._debug:
            logger.warning("Could not decrypt environment variable %s", name, exc_info=True)
