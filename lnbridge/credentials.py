"""Resolve TLS certificate and macaroon material into connection-ready strings."""

from __future__ import annotations

from pathlib import Path

from lnbridge.config.schema import Credential, CredentialData
from lnbridge.utils.exceptions import ConfigurationError


def _read_file(option: str, path: str) -> bytes:
    try:
        return Path(path).expanduser().read_bytes()
    except OSError as exc:
        raise ConfigurationError(f'Invalid option ("{option}"): cannot read {path}: {exc.strerror}', [option]) from exc


def load_cert(value: Credential, option: str = "cert") -> str:
    """Return the PEM text of a certificate given as a path or in-memory buffer."""
    if isinstance(value, str):
        raw = _read_file(option, value)
    elif isinstance(value, CredentialData):
        raw = value.data
    else:
        raise ConfigurationError(f'Invalid option ("{option}"): Object or string expected', [option])
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f'Invalid option ("{option}"): certificate is not UTF-8 text', [option]) from exc
    return raw


def load_macaroon(value: Credential, option: str = "macaroon") -> str:
    """Return a macaroon as hex. Files and byte buffers are hex-encoded; strings are taken as hex already."""
    if isinstance(value, str):
        return _read_file(option, value).hex()
    if isinstance(value, CredentialData):
        data = value.data
        return data.hex() if isinstance(data, bytes) else data
    raise ConfigurationError(f'Invalid option ("{option}"): Object or string expected', [option])
