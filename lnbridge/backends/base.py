"""Backend contract shared by every Lightning node adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError

from lnbridge.config.loader import convert_keys
from lnbridge.utils.exceptions import ConfigurationError


def validate_options(name: str, model: type[BaseModel], options: Any) -> BaseModel:
    """Validate raw options against a backend's option model.

    Missing required fields and invalid values become ConfigurationError so
    callers never see pydantic internals.
    """
    if isinstance(options, model):
        return options
    if options is None:
        options = {}
    if not isinstance(options, dict):
        raise ConfigurationError(f"Invalid options for {name}: object expected")
    try:
        return model.model_validate(convert_keys(options))
    except ValidationError as exc:
        missing = [".".join(str(p) for p in e["loc"]) for e in exc.errors() if e["type"] == "missing"]
        if missing:
            raise ConfigurationError(
                f"Missing required option(s) for {name}: {', '.join(missing)}", missing
            ) from exc
        invalid = [".".join(str(p) for p in e["loc"]) for e in exc.errors()]
        details = "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors())
        raise ConfigurationError(f"Invalid option(s) for {name}: {details}", invalid) from exc


class LightningBackend(ABC):
    """Uniform control surface over one Lightning node.

    Subclasses declare `name` and `options_model`; options are validated once
    at construction.
    """

    name: ClassVar[str]
    options_model: ClassVar[type[BaseModel]]

    def __init__(self, options: Any):
        self.options = validate_options(self.name, self.options_model, options)

    async def __aenter__(self) -> LightningBackend:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open long-lived connections. Backends without any may keep the default."""

    async def close(self) -> None:
        """Release connections owned by the backend."""

    @abstractmethod
    async def get_node_uri(self) -> str: ...

    @abstractmethod
    async def open_channel(
        self,
        remote_id: str,
        local_amt: int,
        push_amt: int,
        make_private: bool,
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def pay_invoice(self, invoice: str) -> dict[str, Any]: ...

    @abstractmethod
    async def add_invoice(self, amount: int, extra: dict[str, Any] | None = None) -> str: ...
