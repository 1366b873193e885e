"""Phase sequencing and undo history for one simulated collection.

The controller owns the live :class:`Heap` and a stack of
:class:`HeapSnapshot` values. Forward transitions run in the order::

    idle --mark--> marked --prepare--> prepared --crunch--> crunched

Each of them first pushes the pre-transition snapshot, so ``undo`` can walk
back one phase at a time. Snapshots hold only immutable values and are never
affected by later changes to the live heap.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..errors import InvalidPhaseError, NoHistoryError
from ..models.schemas import (
    HeapObject,
    HeapSnapshot,
    HeapState,
    MappingEntry,
    ObjectSpec,
    Phase,
    Scenario,
)
from .compactor import crunch
from .heap import Heap
from .marker import mark
from .planner import prepare
from .scenarios import default_scenario

LOG = logging.getLogger("gc_visualizer.controller")


class CollectorController:
    def __init__(self, scenario: Optional[Scenario] = None, max_history: Optional[int] = None) -> None:
        self.max_history = max_history
        self._history: list[HeapSnapshot] = []
        self._scenario = scenario if scenario is not None else default_scenario()
        self._heap = Heap.from_scenario(self._scenario)

    # -- queries -----------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._heap.phase

    @property
    def objects(self) -> tuple[HeapObject, ...]:
        return self._heap.objects

    @property
    def root(self) -> Optional[int]:
        return self._heap.root

    @property
    def mapping(self) -> list[MappingEntry]:
        return self._heap.mapping_entries()

    @property
    def next_free(self) -> int:
        return self._heap.next_free

    @property
    def memory_size(self) -> int:
        return self._heap.memory_size

    @property
    def scenario_name(self) -> str:
        return self._scenario.name

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def state(self) -> HeapState:
        return HeapState(
            scenario=self.scenario_name,
            memory_size=self.memory_size,
            phase=self.phase,
            root=self.root,
            next_free=self.next_free,
            objects=list(self.objects),
            mapping=self.mapping,
            history_depth=self.history_depth,
            can_undo=self.can_undo,
            stats=self._heap.stats(),
        )

    # -- phase transitions -------------------------------------------------

    def mark(self) -> list[str]:
        """Mark from the current root. Returns ids in visitation order."""
        self._heap.require_phase("mark", Phase.idle)
        return self._advance(lambda heap: mark(heap, heap.root))

    def prepare(self) -> dict[int, int]:
        return self._advance(prepare)

    def crunch(self) -> int:
        return self._advance(crunch)

    def step(self) -> Phase:
        """Run whichever transition follows the current phase."""
        if self.phase == Phase.idle:
            self.mark()
        elif self.phase == Phase.marked:
            self.prepare()
        elif self.phase == Phase.prepared:
            self.crunch()
        else:
            raise InvalidPhaseError("step", self.phase, (Phase.idle, Phase.marked, Phase.prepared))
        return self.phase

    def new_cycle(self) -> None:
        """Return a crunched heap to ``idle`` keeping the compacted objects.

        Before crunch the root and fields already hold planned addresses
        while the objects still sit at their old ones, so only a finished
        collection can start a new cycle.
        """
        self._heap.require_phase("new cycle", Phase.crunched)
        self._advance(Heap.reset_cycle)
        LOG.info("new cycle started with %d objects", len(self._heap.objects))

    def undo(self) -> Phase:
        if not self._history:
            raise NoHistoryError()
        self._heap.restore(self._history.pop())
        LOG.info("undo: back to phase %s, %d snapshots left", self.phase.value, len(self._history))
        return self.phase

    # -- setup -------------------------------------------------------------

    def reset(self, scenario: Optional[Scenario] = None) -> None:
        """Load ``scenario`` (or reload the current one) and clear history."""
        scenario = scenario if scenario is not None else self._scenario
        heap = Heap.from_scenario(scenario)
        self._scenario = scenario
        self._heap = heap
        self._history = []
        LOG.info("reset to scenario %r (%d objects)", scenario.name, len(heap.objects))

    def set_root(self, address: Optional[int]) -> None:
        self._heap.set_root(address)

    def insert_object(self, spec: ObjectSpec) -> HeapObject:
        return self._heap.insert(spec)

    # -- internals ---------------------------------------------------------

    def _advance(self, transition: Callable[[Heap], object]):
        before = self._heap.snapshot()
        result = transition(self._heap)
        self._history.append(before)
        if self.max_history is not None and len(self._history) > self.max_history:
            del self._history[: len(self._history) - self.max_history]
        LOG.info("phase %s -> %s", before.phase.value, self.phase.value)
        return result
