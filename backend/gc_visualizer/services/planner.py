from __future__ import annotations

import logging

from ..models.schemas import Phase
from .heap import Heap

LOG = logging.getLogger("gc_visualizer.planner")


def prepare(heap: Heap) -> dict[int, int]:
    """Plan the compacted layout without moving any object.

    Marked objects are assigned contiguous addresses from 0 in address order
    by a bump-pointer cursor. Every field and the root are then retargeted
    through the resulting old->new mapping; references outside the mapping
    are left as they are. ``next_free`` becomes the final cursor.
    """
    heap.require_phase("prepare", Phase.marked)

    cursor = 0
    mapping: dict[int, int] = {}
    for obj in heap.objects:
        if obj.marked:
            mapping[obj.address] = cursor
            LOG.debug("%s planned at %d", obj.label, cursor)
            cursor += obj.size

    planned = [
        obj.model_copy(
            update={
                "planned_address": mapping.get(obj.address),
                "fields": tuple(
                    mapping.get(f, f) if f is not None else None for f in obj.fields
                ),
            }
        )
        for obj in heap.objects
    ]

    heap.replace_objects(planned)
    heap.mapping = mapping
    heap.root = mapping.get(heap.root) if heap.root is not None else None
    heap.next_free = cursor
    heap.phase = Phase.prepared
    LOG.info("prepare complete: %d survivors, next_free=%d", len(mapping), cursor)
    return dict(mapping)
