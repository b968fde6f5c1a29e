"""CLI commands for configrypt."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from .config import build_codec, build_resolver, load_settings, read_environment
from .errors import ConfigryptError, DecryptionError, EncryptionError, InvalidKeyError

app = typer.Typer(
    name="configrypt",
    help="Encrypt secrets for .env files and read them back.",
    no_args_is_help=True,
)
console = Console(soft_wrap=True)

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load(env_file: str, key: Optional[str], prefix: Optional[str], cipher: Optional[str]):
    """Load settings and apply command-line overrides."""
    settings = load_settings(env_file=env_file)
    overrides = {
        name: value
        for name, value in (("key", key), ("prefix", prefix), ("cipher", cipher))
        if value is not None
    }
    if overrides:
        settings = settings.model_validate({**settings.model_dump(), **overrides})
    return settings


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]{escape(message)}[/red]", highlight=False)
    return typer.Exit(code=1)


KeyOption = typer.Option(None, "--key", "-k", help="Encryption key (default: CONFIGRYPT_KEY or APP_KEY)")
PrefixOption = typer.Option(None, "--prefix", help="Encrypted value prefix (default: CONFIGRYPT_PREFIX or ENC:)")
CipherOption = typer.Option(None, "--cipher", help="AES-256-CBC or AES-128-CBC")
EnvFileOption = typer.Option(".env", "--env-file", help=".env file to read settings from")
VerboseOption = typer.Option(False, "--verbose", "-v")


@app.command()
def encrypt(
    value: str = typer.Argument(..., help="The value to encrypt"),
    key: Optional[str] = KeyOption,
    prefix: Optional[str] = PrefixOption,
    cipher: Optional[str] = CipherOption,
    env_file: str = EnvFileOption,
    verbose: bool = VerboseOption,
):
    """Encrypt a value for use in .env files"""
    _setup_logging(verbose)

    if not value:
        raise _fail("Value cannot be empty.")

    try:
        codec = build_codec(_load(env_file, key, prefix, cipher))
        encrypted = codec.encrypt(value)
    except (InvalidKeyError, ValueError) as exc:
        raise _fail(str(exc))
    except EncryptionError as exc:
        raise _fail(f"Encryption failed: {exc}")

    logger.debug("Encrypted a %d character value with %s", len(value), codec.cipher)
    console.print("[green]Encrypted value:[/green]")
    console.print(encrypted, markup=False, emoji=False, highlight=False)
    console.print()
    console.print("[yellow]You can now use this encrypted value in your .env file:[/yellow]")
    console.print(f"SOME_SECRET={encrypted}", markup=False, emoji=False, highlight=False)


@app.command()
def decrypt(
    value: str = typer.Argument(..., help="The encrypted value to decrypt"),
    key: Optional[str] = KeyOption,
    prefix: Optional[str] = PrefixOption,
    cipher: Optional[str] = CipherOption,
    env_file: str = EnvFileOption,
    verbose: bool = VerboseOption,
):
    """Decrypt an encrypted value"""
    _setup_logging(verbose)

    if not value:
        raise _fail("Encrypted value cannot be empty.")

    try:
        codec = build_codec(_load(env_file, key, prefix, cipher))
        decrypted = codec.decrypt(value)
    except (InvalidKeyError, ValueError) as exc:
        raise _fail(str(exc))
    except DecryptionError as exc:
        console.print(f"[red]Decryption failed: {escape(str(exc))}[/red]", highlight=False)
        console.print(
            "[yellow]Make sure the value is properly encrypted and you have the correct encryption key.[/yellow]"
        )
        raise typer.Exit(code=1)

    console.print("[green]Decrypted value:[/green]")
    console.print(decrypted, markup=False, emoji=False, highlight=False)


@app.command()
def get(
    name: str = typer.Argument(..., help="Environment variable to resolve"),
    default: Optional[str] = typer.Option(None, "--default", "-d", help="Value used when the variable is unset or undecryptable"),
    key: Optional[str] = KeyOption,
    prefix: Optional[str] = PrefixOption,
    cipher: Optional[str] = CipherOption,
    env_file: str = EnvFileOption,
    verbose: bool = VerboseOption,
):
    """Print an environment variable, decrypting it if needed"""
    _setup_logging(verbose)

    try:
        settings = _load(env_file, key, prefix, cipher)
        resolver = build_resolver(settings, read_environment(env_file=env_file))
    except (ConfigryptError, ValueError) as exc:
        raise _fail(str(exc))

    resolved = resolver.get(name, default)
    if resolved is None:
        raise _fail(f"{name} is not set or could not be decrypted.")
    console.print(resolved, markup=False, emoji=False, highlight=False)


def main():
    app()


if __name__ == "__main__":
    main()
