"""Lightning backend adapters and the name -> class registry."""

from __future__ import annotations

from typing import Any

from lnbridge.backends.base import LightningBackend, validate_options
from lnbridge.backends.clightning import CLightningBackend
from lnbridge.backends.lnd import LndBackend
from lnbridge.utils.exceptions import ConfigurationError

BACKENDS: dict[str, type[LightningBackend]] = {
    CLightningBackend.name: CLightningBackend,
    LndBackend.name: LndBackend,
}


def create_backend(name: str, options: Any) -> LightningBackend:
    """Instantiate a registered backend by name (e.g. "lnd", "c-lightning")."""
    backend_cls = BACKENDS.get((name or "").strip().lower())
    if backend_cls is None:
        known = ", ".join(sorted(BACKENDS))
        raise ConfigurationError(f'Unknown LN backend "{name}" (known: {known})', ["backend"])
    return backend_cls(options)


__all__ = [
    "BACKENDS",
    "CLightningBackend",
    "LightningBackend",
    "LndBackend",
    "create_backend",
    "validate_options",
]
