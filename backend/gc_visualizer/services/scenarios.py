from __future__ import annotations

from typing import Callable

from ..errors import UnknownScenarioError
from ..models.schemas import ObjectSpec, Scenario


def default_scenario() -> Scenario:
    """A -> B -> C reachable from the root, D is garbage."""
    return Scenario(
        name="default",
        memory_size=36,
        root=2,
        objects=[
            ObjectSpec(id="A", address=2, size=4, fields=[8, 14, None]),
            ObjectSpec(id="B", address=8, size=3, fields=[14, None]),
            ObjectSpec(id="C", address=14, size=3, fields=[None, None]),
            ObjectSpec(id="D", address=22, size=5, fields=[None, None, None, None]),
        ],
    )


def cyclic_scenario() -> Scenario:
    """A <-> B is a live cycle, C <-> D is an unreachable one.

    B also holds a stale pointer into the middle of D's payload.
    """
    return Scenario(
        name="cyclic",
        memory_size=32,
        root=1,
        objects=[
            ObjectSpec(id="A", address=1, size=3, fields=[9, None]),
            ObjectSpec(id="C", address=5, size=3, fields=[20, None]),
            ObjectSpec(id="B", address=9, size=4, fields=[1, 22, None]),
            ObjectSpec(id="D", address=20, size=4, fields=[5, None, None]),
            ObjectSpec(id="E", address=26, size=2, fields=[None]),
        ],
    )


SCENARIOS: dict[str, Callable[[], Scenario]] = {
    "default": default_scenario,
    "cyclic": cyclic_scenario,
}


def get_scenario(name: str) -> Scenario:
    try:
        factory = SCENARIOS[name]
    except KeyError:
        raise UnknownScenarioError(name) from None
    return factory()
