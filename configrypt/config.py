"""Settings loader with Pydantic validation."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, Union

from dotenv import dotenv_values
from pydantic import BaseModel, field_validator

from .ciphers import CipherSpec
from .codec import DEFAULT_PREFIX, PrefixedCipherCodec
from .env import EnvironmentResolver

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    key: Optional[str] = None
    prefix: str = DEFAULT_PREFIX
    cipher: CipherSpec = CipherSpec.AES_256_CBC
    debug: bool = False

    @field_validator("cipher", mode="before")
    @classmethod
    def _parse_cipher(cls, value):
        # UnsupportedCipherError is a ValueError, pydantic reports it as a
        # validation error.
        return CipherSpec.from_name(value)


def read_environment(
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Union[str, Path]] = None,
) -> dict:
    """Merge a .env file underneath the environment; real variables win."""
    values: dict = {}
    if env_file is not None:
        path = Path(env_file)
        if path.exists():
            values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
            logger.debug("Loaded %d entries from %s", len(values), path)
    values.update(os.environ if environ is None else environ)
    return values


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Union[str, Path]] = None,
) -> Settings:
    """Load settings from a .env file, overridden by the environment."""
    values = read_environment(environ, env_file)

    return Settings(
        key=values.get("CONFIGRYPT_KEY") or values.get("APP_KEY") or None,
        prefix=values.get("CONFIGRYPT_PREFIX", DEFAULT_PREFIX),
        cipher=values.get("CONFIGRYPT_CIPHER", CipherSpec.AES_256_CBC.value),
        debug=values.get("APP_DEBUG", "").strip().lower() in _TRUTHY,
    )


def build_codec(settings: Settings) -> PrefixedCipherCodec:
    return PrefixedCipherCodec(settings.key, prefix=settings.prefix, cipher=settings.cipher)


def build_resolver(
    settings: Settings,
    environ: Optional[MutableMapping[str, str]] = None,
) -> EnvironmentResolver:
    return EnvironmentResolver(build_codec(settings), environ, debug=settings.debug)
