from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Phase(str, Enum):
    idle = "idle"
    marked = "marked"
    prepared = "prepared"
    crunched = "crunched"


class HeapObject(BaseModel):
    """An object occupying ``size`` cells starting at ``address``.

    The header is the cell at ``address``; ``fields`` are the remaining
    ``size - 1`` cells, each holding a pointer to another object's header or
    ``None``. Instances are immutable, phases replace them with copies.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    address: int
    size: int
    fields: tuple[Optional[int], ...] = ()
    marked: bool = False
    planned_address: Optional[int] = None

    @property
    def end(self) -> int:
        return self.address + self.size

    @property
    def label(self) -> str:
        return f"{self.id}@{self.address}"


class ObjectSpec(BaseModel):
    id: str
    size: int
    address: Optional[int] = None
    fields: Optional[list[Optional[int]]] = None


class Scenario(BaseModel):
    name: str
    memory_size: int
    root: Optional[int] = None
    objects: list[ObjectSpec]


class MappingEntry(BaseModel):
    old_address: int
    new_address: int


class HeapSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    objects: tuple[HeapObject, ...]
    root: Optional[int]
    phase: Phase
    mapping: tuple[tuple[int, int], ...]
    next_free: int


class HeapStats(BaseModel):
    object_count: int
    marked_count: int
    live_cells: int
    free_cells: int


class HeapState(BaseModel):
    scenario: str
    memory_size: int
    phase: Phase
    root: Optional[int]
    next_free: int
    objects: list[HeapObject]
    mapping: list[MappingEntry]
    history_depth: int
    can_undo: bool
    stats: HeapStats


class SetRootRequest(BaseModel):
    address: Optional[int] = None


class ResetRequest(BaseModel):
    scenario: Optional[Scenario] = None
    name: Optional[str] = None
