"""Execution context handed to nodes by the host."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from s3vector_nodes.exceptions import ConfigurationError

_MISSING = object()


class ExecutionContext(ABC):
    """What a node can ask of the host during one invocation."""

    @abstractmethod
    def get_input_data(self) -> list[dict[str, Any]]:
        """Return the JSON payload of every input item."""
        ...

    @abstractmethod
    def get_node_parameter(
        self,
        name: str,
        item_index: int,
        default: Any = _MISSING,
    ) -> Any:
        """Return a parameter value resolved for one item.

        Raises:
            ConfigurationError: If the parameter is unset and no default
                was given.
        """
        ...

    @abstractmethod
    def get_credentials(self, name: str) -> dict[str, Any]:
        """Return the named credential's fields."""
        ...

    @abstractmethod
    def continue_on_fail(self) -> bool:
        """Whether failed items are reported instead of aborting the run."""
        ...


class StaticExecutionContext(ExecutionContext):
    """In-memory context with fixed parameters.

    ``item_parameters`` holds optional per-item overrides, the way a host
    resolves expressions against each item.
    """

    def __init__(
        self,
        items: list[dict[str, Any]],
        parameters: Mapping[str, Any] | None = None,
        item_parameters: list[Mapping[str, Any]] | None = None,
        credentials: Mapping[str, Mapping[str, Any]] | None = None,
        continue_on_fail: bool = False,
    ) -> None:
        self._items = [dict(item) for item in items]
        self._parameters = dict(parameters or {})
        self._item_parameters = [dict(p) for p in item_parameters or []]
        self._credentials = {k: dict(v) for k, v in (credentials or {}).items()}
        self._continue_on_fail = continue_on_fail

    def get_input_data(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self._items]

    def get_node_parameter(
        self,
        name: str,
        item_index: int,
        default: Any = _MISSING,
    ) -> Any:
        if item_index < len(self._item_parameters):
            overrides = self._item_parameters[item_index]
            if name in overrides:
                return overrides[name]
        if name in self._parameters:
            return self._parameters[name]
        if default is _MISSING:
            raise ConfigurationError(
                f"Missing required parameter '{name}'",
                details={"parameter": name, "item_index": item_index},
            )
        return default

    def get_credentials(self, name: str) -> dict[str, Any]:
        return dict(self._credentials.get(name, {}))

    def continue_on_fail(self) -> bool:
        return self._continue_on_fail
