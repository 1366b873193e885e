"""Heap model: a fixed-size linear address space and the objects in it.

Objects are laid out as ``[header, field_0, ..., field_{size-2}]`` starting at
their address. The heap validates its layout on construction and on every
insertion so that any state reachable through the public API satisfies:

- object ranges ``[address, address + size)`` never overlap,
- every object lies inside ``[0, memory_size)``,
- ``len(fields) == size - 1`` and ``size >= 1``,
- the root is either empty or the header address of an object.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..errors import InsufficientSpaceError, InvalidPhaseError, MalformedLayoutError
from ..models.schemas import (
    HeapObject,
    HeapSnapshot,
    HeapStats,
    MappingEntry,
    ObjectSpec,
    Phase,
    Scenario,
)

LOG = logging.getLogger("gc_visualizer.heap")


def object_from_spec(spec: ObjectSpec, address: Optional[int] = None) -> HeapObject:
    """Build a :class:`HeapObject` from an external description."""
    if address is None:
        address = spec.address
    if address is None:
        raise MalformedLayoutError(f"object {spec.id!r} has no address")
    if spec.size < 1:
        raise MalformedLayoutError(f"object {spec.id!r} has size {spec.size}, must be at least 1")
    fields = spec.fields if spec.fields is not None else [None] * (spec.size - 1)
    if len(fields) != spec.size - 1:
        raise MalformedLayoutError(
            f"object {spec.id!r} has {len(fields)} fields, expected {spec.size - 1}"
        )
    return HeapObject(id=spec.id, address=address, size=spec.size, fields=tuple(fields))


def check_layout(memory_size: int, objects: Iterable[HeapObject], root: Optional[int] = None) -> None:
    """Raise :class:`MalformedLayoutError` if the layout breaks an invariant."""
    if memory_size < 1:
        raise MalformedLayoutError(f"memory size must be positive, got {memory_size}")

    seen_ids: set[str] = set()
    ordered = sorted(objects, key=lambda o: o.address)
    for obj in ordered:
        if obj.id in seen_ids:
            raise MalformedLayoutError(f"duplicate object id {obj.id!r}")
        seen_ids.add(obj.id)
        if obj.size < 1:
            raise MalformedLayoutError(f"{obj.label} has size {obj.size}, must be at least 1")
        if len(obj.fields) != obj.size - 1:
            raise MalformedLayoutError(
                f"{obj.label} has {len(obj.fields)} fields, expected {obj.size - 1}"
            )
        if obj.address < 0 or obj.end > memory_size:
            raise MalformedLayoutError(
                f"{obj.label} spans [{obj.address}, {obj.end}) outside heap of size {memory_size}"
            )

    for prev, cur in zip(ordered, ordered[1:]):
        if prev.end > cur.address:
            raise MalformedLayoutError(f"{prev.label} overlaps {cur.label}")

    if root is not None and root not in {o.address for o in ordered}:
        raise MalformedLayoutError(f"root @{root} is not the address of an object")


class Heap:
    """The live heap of one collection cycle.

    Owns the objects, the root, the current phase, the old->new address
    mapping produced by planning, and the bump-pointer boundary ``next_free``.
    """

    def __init__(
        self,
        memory_size: int,
        objects: Iterable[HeapObject] = (),
        root: Optional[int] = None,
    ) -> None:
        objects = list(objects)
        check_layout(memory_size, objects, root)
        self.memory_size = memory_size
        self.root = root
        self.phase = Phase.idle
        self.mapping: dict[int, int] = {}
        self._objects = sorted(objects, key=lambda o: o.address)
        self.next_free = self.high_water

    @classmethod
    def from_scenario(cls, scenario: Scenario) -> "Heap":
        objects = [object_from_spec(spec) for spec in scenario.objects]
        return cls(scenario.memory_size, objects, scenario.root)

    # -- queries -----------------------------------------------------------

    @property
    def objects(self) -> tuple[HeapObject, ...]:
        """Objects ordered by address."""
        return tuple(self._objects)

    @property
    def high_water(self) -> int:
        return max((o.end for o in self._objects), default=0)

    def object_by_id(self, object_id: str) -> Optional[HeapObject]:
        for obj in self._objects:
            if obj.id == object_id:
                return obj
        return None

    def object_at(self, address: Optional[int]) -> Optional[HeapObject]:
        """Return the object whose header is at ``address``, if any."""
        if address is None:
            return None
        for obj in self._objects:
            if obj.address == address:
                return obj
        return None

    def mapping_entries(self) -> list[MappingEntry]:
        return [
            MappingEntry(old_address=old, new_address=new)
            for old, new in sorted(self.mapping.items())
        ]

    def stats(self) -> HeapStats:
        live = sum(o.size for o in self._objects)
        return HeapStats(
            object_count=len(self._objects),
            marked_count=sum(1 for o in self._objects if o.marked),
            live_cells=live,
            free_cells=self.memory_size - live,
        )

    # -- mutation ----------------------------------------------------------

    def replace_objects(self, objects: Iterable[HeapObject]) -> None:
        """Swap in a new object set produced by a phase."""
        self._objects = sorted(objects, key=lambda o: o.address)

    def require_phase(self, operation: str, *allowed: Phase) -> None:
        if self.phase not in allowed:
            LOG.warning("rejected %s in phase %s", operation, self.phase.value)
            raise InvalidPhaseError(operation, self.phase, allowed[0] if len(allowed) == 1 else allowed)

    def set_root(self, address: Optional[int]) -> None:
        self.require_phase("set root", Phase.idle)
        if address is not None and self.object_at(address) is None:
            raise MalformedLayoutError(f"root @{address} is not the address of an object")
        self.root = address
        LOG.info("root set to %s", "empty" if address is None else f"@{address}")

    def insert(self, spec: ObjectSpec) -> HeapObject:
        """Insert a new object, defaulting its address to ``next_free``."""
        self.require_phase("insert object", Phase.idle)
        obj = object_from_spec(spec, spec.address if spec.address is not None else self.next_free)
        if self.object_by_id(obj.id) is not None:
            raise MalformedLayoutError(f"duplicate object id {obj.id!r}")
        if obj.address < 0:
            raise MalformedLayoutError(f"{obj.label} has a negative address")
        if obj.end > self.memory_size:
            raise InsufficientSpaceError(
                f"{obj.label} needs cells up to {obj.end}, heap has {self.memory_size}"
            )
        for other in self._objects:
            if obj.address < other.end and other.address < obj.end:
                raise InsufficientSpaceError(f"{obj.label} overlaps {other.label}")

        self._objects = sorted(self._objects + [obj], key=lambda o: o.address)
        self.next_free = max(self.next_free, obj.end)
        LOG.info("inserted %s size=%d", obj.label, obj.size)
        return obj

    def reset_cycle(self) -> None:
        """Return to ``idle`` keeping the objects, clearing all cycle state."""
        self._objects = [
            o.model_copy(update={"marked": False, "planned_address": None})
            for o in self._objects
        ]
        self.mapping = {}
        self.phase = Phase.idle

    # -- snapshots ---------------------------------------------------------

    def snapshot(self) -> HeapSnapshot:
        return HeapSnapshot(
            objects=tuple(self._objects),
            root=self.root,
            phase=self.phase,
            mapping=tuple(sorted(self.mapping.items())),
            next_free=self.next_free,
        )

    def restore(self, snapshot: HeapSnapshot) -> None:
        self._objects = list(snapshot.objects)
        self.root = snapshot.root
        self.phase = snapshot.phase
        self.mapping = dict(snapshot.mapping)
        self.next_free = snapshot.next_free
