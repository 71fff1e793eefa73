"""Resource source protocol and an in-memory implementation."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from tick_regen.types import ResourceType


@runtime_checkable
class ResourceSource(Protocol):
    """Pool and cost queries supplied by the host.

    Every method returns None when the data is unavailable (unknown ability,
    resource the player does not have, UI not loaded yet). Callers degrade
    to a fallback instead of failing.
    """

    def cost(self, ability_id: int | str) -> tuple[float, ResourceType] | None:
        """Return (amount, resource type) for an ability, or None if free."""
        ...

    def current(self, resource: ResourceType) -> float | None:
        """Return the player's current pool for *resource*."""
        ...

    def maximum(self, resource: ResourceType) -> float | None:
        """Return the player's maximum pool for *resource*."""
        ...


class StaticSource:
    """Mutable in-memory source for tests, demos and replayed sessions.

    Conforms to the ResourceSource protocol.

    Args:
        pools: Mapping of resource -> (current, maximum).
        costs: Mapping of ability id -> (amount, resource).
    """

    def __init__(
        self,
        pools: dict[ResourceType, tuple[float, float]] | None = None,
        costs: dict[int | str, tuple[float, ResourceType]] | None = None,
    ) -> None:
        self._pools: dict[ResourceType, list[float]] = {
            name: [cur, mx] for name, (cur, mx) in (pools or {}).items()
        }
        self._costs: dict[int | str, tuple[float, ResourceType]] = dict(costs or {})

    def set_pool(
        self, resource: ResourceType, current: float, maximum: float | None = None
    ) -> None:
        """Set the current (and optionally maximum) pool. Current is capped."""
        if resource not in self._pools:
            self._pools[resource] = [0.0, maximum if maximum is not None else current]
        pool = self._pools[resource]
        if maximum is not None:
            pool[1] = maximum
        pool[0] = min(current, pool[1])

    def add(self, resource: ResourceType, amount: float) -> None:
        """Add (or, with a negative amount, spend) from a pool."""
        pool = self._pools[resource]
        pool[0] = max(0.0, min(pool[0] + amount, pool[1]))

    def set_cost(
        self, ability_id: int | str, amount: float, resource: ResourceType
    ) -> None:
        self._costs[ability_id] = (amount, resource)

    def remove_pool(self, resource: ResourceType) -> None:
        self._pools.pop(resource, None)

    def cost(self, ability_id: int | str) -> tuple[float, ResourceType] | None:
        return self._costs.get(ability_id)

    def current(self, resource: ResourceType) -> float | None:
        pool = self._pools.get(resource)
        return pool[0] if pool is not None else None

    def maximum(self, resource: ResourceType) -> float | None:
        pool = self._pools.get(resource)
        return pool[1] if pool is not None else None
