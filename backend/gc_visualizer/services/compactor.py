from __future__ import annotations

import logging

from ..models.schemas import Phase
from .heap import Heap

LOG = logging.getLogger("gc_visualizer.compactor")


def crunch(heap: Heap) -> int:
    """Move survivors to their planned addresses and drop the garbage.

    Returns the number of objects discarded.
    """
    heap.require_phase("crunch", Phase.prepared)

    survivors = [
        obj.model_copy(
            update={"address": obj.planned_address, "marked": False, "planned_address": None}
        )
        for obj in heap.objects
        if obj.marked
    ]
    dropped = len(heap.objects) - len(survivors)

    heap.replace_objects(survivors)
    heap.phase = Phase.crunched
    LOG.info("crunch complete: kept %d, discarded %d", len(survivors), dropped)
    return dropped
