import copy
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol, TypedDict

logger = logging.getLogger(__name__)

DEFAULT_STAGE = "dev"


class FunctionDefinitionDict(TypedDict, total=False):
    handler: str
    image: str | dict[str, Any]
    runtime: str
    architecture: str
    layers: list[str]


class Descriptor(Protocol):
    """Read/write view of a serverless deployment descriptor.

    Function configs are returned by reference; assigning to their fields mutates the
    descriptor.
    """

    @property
    def region(self) -> str: ...

    @property
    def stack_name(self) -> str: ...

    @property
    def default_layers(self) -> tuple[str, ...]: ...

    @property
    def custom(self) -> dict[str, Any]: ...

    def list_function_names(self) -> list[str]: ...

    def get_function_config(self, name: str) -> FunctionDefinitionDict: ...


class ServiceDescriptor:
    """Descriptor backed by the service JSON printed by `serverless print --format json`.

    Args:
        service: The parsed service document. It is deep-copied so the caller's dict is
                 never mutated; use `to_dict()` to read the updated document back.
    """

    def __init__(self, service: dict[str, Any]):
        if not isinstance(service, dict):
            raise TypeError(
                f"Expected service definition to be a dict, got {type(service).__name__}"
            )
        self._service = copy.deepcopy(service)
        functions = self._service.get("functions") or {}
        if not isinstance(functions, dict):
            raise TypeError(
                f"Expected 'functions' to be a mapping of names to definitions, "
                f"got {type(functions).__name__}"
            )
        for name, definition in functions.items():
            if definition is not None and not isinstance(definition, dict):
                raise TypeError(
                    f"Expected function '{name}' to be a mapping, "
                    f"got {type(definition).__name__}"
                )
        self._service["functions"] = functions

    @classmethod
    def from_file(cls, path: Path) -> "ServiceDescriptor":
        logger.debug("Loading service definition from %s", path)
        with Path.open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    @property
    def _provider(self) -> dict[str, Any]:
        return self._service.get("provider") or {}

    @property
    def service_name(self) -> str:
        service = self._service.get("service", "")
        # Older framework versions print service as {"name": ...}
        if isinstance(service, dict):
            return service.get("name", "")
        return service

    @property
    def stage(self) -> str:
        return self._provider.get("stage") or DEFAULT_STAGE

    @property
    def region(self) -> str:
        return self._provider.get("region", "")

    @property
    def stack_name(self) -> str:
        return self._provider.get("stackName") or f"{self.service_name}-{self.stage}"

    @property
    def default_layers(self) -> tuple[str, ...]:
        layers: Sequence[str] | None = self._provider.get("layers")
        return tuple(layers) if layers else ()

    @property
    def custom(self) -> dict[str, Any]:
        return self._service.get("custom") or {}

    def list_function_names(self) -> list[str]:
        return list(self._service["functions"])

    def get_function_config(self, name: str) -> FunctionDefinitionDict:
        functions = self._service["functions"]
        if name not in functions:
            raise KeyError(f"Function '{name}' is not defined in service '{self.service_name}'")
        if functions[name] is None:
            functions[name] = {}
        return functions[name]

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._service)
