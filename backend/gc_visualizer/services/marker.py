from __future__ import annotations

import logging
from typing import Optional

from ..models.schemas import Phase
from .heap import Heap

LOG = logging.getLogger("gc_visualizer.marker")


def mark(heap: Heap, root: Optional[int]) -> list[str]:
    """Mark every object reachable from ``root``.

    Traversal is a pre-order depth-first walk following fields in order,
    driven by an explicit stack so long pointer chains cannot exhaust the
    interpreter's recursion limit. Field values that name no object header
    are leaves. Marks from any earlier traversal are cleared first, so
    marking again with the same root gives the same result.

    Returns the ids of the marked objects in visitation order.
    """
    heap.require_phase("mark", Phase.idle, Phase.marked)

    by_address = {o.address: o for o in heap.objects}
    visited: set[int] = set()
    order: list[str] = []
    stack: list[int] = [] if root is None else [root]

    while stack:
        address = stack.pop()
        if address in visited:
            continue
        obj = by_address.get(address)
        if obj is None:
            LOG.debug("skipping dangling reference @%d", address)
            continue
        visited.add(address)
        order.append(obj.id)
        stack.extend(f for f in reversed(obj.fields) if f is not None)

    heap.replace_objects(
        o.model_copy(update={"marked": o.address in visited, "planned_address": None})
        for o in heap.objects
    )
    heap.mapping = {}
    heap.phase = Phase.marked
    LOG.info("mark complete: %d of %d objects reachable", len(order), len(by_address))
    LOG.debug("visit order: %s", ", ".join(order))
    return order
