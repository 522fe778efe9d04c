r"""Static registry mapping endpoint names to contracts."""

from __future__ import annotations

__all__ = ["EndpointRegistry"]

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from storepipe.endpoints.contract import EndpointContract

logger: logging.Logger = logging.getLogger(__name__)


class EndpointRegistry:
    r"""Mapping from endpoint name to ``EndpointContract``.

    The registry is filled at initialization time and can then be frozen
    so that no endpoint is added while calls are in flight.

    Args:
        contracts: Optional contracts to register immediately.

    Example:
        ```pycon
        >>> from storepipe.endpoints import (
        ...     EndpointContract,
        ...     EndpointRegistry,
        ...     ErrorShape,
        ...     HttpMethod,
        ...     void_result,
        ... )
        >>> revoke = EndpointContract(
        ...     name="auth/token/revoke",
        ...     method=HttpMethod.POST,
        ...     path="/2/auth/token/revoke",
        ...     result_shape=void_result,
        ...     error_shape=ErrorShape("RevokeError"),
        ... )
        >>> registry = EndpointRegistry([revoke]).freeze()
        >>> registry.get("auth/token/revoke").path
        '/2/auth/token/revoke'
        >>> "files/delete" in registry
        False

        ```
    """

    def __init__(self, contracts: Iterable[EndpointContract] = ()) -> None:
        self._contracts: dict[str, EndpointContract] = {}
        self._frozen = False
        for contract in contracts:
            self.register(contract)

    def __contains__(self, name: object) -> bool:
        return name in self._contracts

    def __iter__(self) -> Iterator[str]:
        return iter(self._contracts)

    def __len__(self) -> int:
        return len(self._contracts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(endpoints={len(self._contracts)}, frozen={self._frozen})"

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, contract: EndpointContract) -> EndpointContract:
        """Register a contract under its name.

        Returns:
            The registered contract.

        Raises:
            RuntimeError: If the registry is frozen.
            ValueError: If a contract with the same name is already registered.
        """
        if self._frozen:
            msg = f"Cannot register {contract.name!r}: registry is frozen"
            raise RuntimeError(msg)
        if contract.name in self._contracts:
            msg = f"Endpoint {contract.name!r} is already registered"
            raise ValueError(msg)
        self._contracts[contract.name] = contract
        logger.debug(f"Registered endpoint {contract.name} ({contract.method.value} {contract.path})")
        return contract

    def freeze(self) -> EndpointRegistry:
        """Reject any further registration and return the registry."""
        self._frozen = True
        return self

    def get(self, name: str) -> EndpointContract:
        """Return the contract registered under ``name``.

        Raises:
            KeyError: If no contract has this name.
        """
        try:
            return self._contracts[name]
        except KeyError:
            msg = f"Unknown endpoint {name!r}"
            raise KeyError(msg) from None
