import pytest

from gc_visualizer.errors import (
    InsufficientSpaceError,
    InvalidPhaseError,
    MalformedLayoutError,
)
from gc_visualizer.models.schemas import HeapObject, ObjectSpec, Phase, Scenario
from gc_visualizer.services.heap import Heap, check_layout
from gc_visualizer.services.marker import mark
from gc_visualizer.services.scenarios import default_scenario


def obj(id, address, size, fields=None):
    if fields is None:
        fields = [None] * (size - 1)
    return HeapObject(id=id, address=address, size=size, fields=tuple(fields))


def test_default_scenario_layout():
    """The default scenario loads in address order with next_free after D."""
    heap = Heap.from_scenario(default_scenario())
    assert [o.id for o in heap.objects] == ["A", "B", "C", "D"]
    assert heap.phase == Phase.idle
    assert heap.root == 2
    assert heap.next_free == 27
    assert heap.object_at(8).id == "B"
    assert heap.object_by_id("D").address == 22
    assert heap.object_at(9) is None


def test_overlap_rejected():
    with pytest.raises(MalformedLayoutError, match="overlaps"):
        Heap(16, [obj("A", 0, 4), obj("B", 3, 2)])


def test_adjacent_objects_allowed():
    heap = Heap(4, [obj("A", 0, 2), obj("B", 2, 2)])
    assert heap.next_free == 4


def test_out_of_bounds_rejected():
    with pytest.raises(MalformedLayoutError):
        Heap(10, [obj("A", 8, 4)])
    with pytest.raises(MalformedLayoutError):
        Heap(10, [obj("A", -1, 2)])


def test_field_count_must_match_size():
    bad = HeapObject(id="A", address=0, size=3, fields=(None,))
    with pytest.raises(MalformedLayoutError, match="fields"):
        Heap(10, [bad])


def test_duplicate_ids_rejected():
    with pytest.raises(MalformedLayoutError, match="duplicate"):
        Heap(10, [obj("A", 0, 2), obj("A", 4, 2)])


def test_root_must_be_object_header():
    with pytest.raises(MalformedLayoutError, match="root"):
        Heap(10, [obj("A", 0, 3)], root=1)


def test_scenario_object_without_address_is_malformed():
    scenario = Scenario(name="x", memory_size=8, objects=[ObjectSpec(id="A", size=2)])
    with pytest.raises(MalformedLayoutError):
        Heap.from_scenario(scenario)


def test_insert_defaults_to_next_free():
    """New objects are bump-allocated at next_free with empty fields."""
    heap = Heap.from_scenario(default_scenario())
    inserted = heap.insert(ObjectSpec(id="G", size=3))
    assert inserted.address == 27
    assert inserted.fields == (None, None)
    assert heap.next_free == 30
    assert [o.id for o in heap.objects] == ["A", "B", "C", "D", "G"]


def test_insert_into_gap():
    heap = Heap.from_scenario(default_scenario())
    heap.insert(ObjectSpec(id="G", address=17, size=5, fields=[2, None, None, None]))
    assert [o.id for o in heap.objects] == ["A", "B", "C", "G", "D"]
    check_layout(heap.memory_size, heap.objects, heap.root)


def test_insert_overlap_is_insufficient_space():
    """Overlapping insertions are rejected and leave the heap unchanged."""
    heap = Heap.from_scenario(default_scenario())
    before = heap.snapshot()
    with pytest.raises(InsufficientSpaceError):
        heap.insert(ObjectSpec(id="G", address=3, size=3))
    assert heap.snapshot() == before


def test_insert_past_capacity():
    heap = Heap.from_scenario(default_scenario())
    with pytest.raises(InsufficientSpaceError) as excinfo:
        heap.insert(ObjectSpec(id="G", size=10))
    assert isinstance(excinfo.value, MalformedLayoutError)
    assert len(heap.objects) == 4


def test_insert_structural_errors():
    heap = Heap.from_scenario(default_scenario())
    with pytest.raises(MalformedLayoutError):
        heap.insert(ObjectSpec(id="A", size=2))
    with pytest.raises(MalformedLayoutError):
        heap.insert(ObjectSpec(id="G", size=0))
    with pytest.raises(MalformedLayoutError):
        heap.insert(ObjectSpec(id="G", size=3, fields=[None]))
    assert len(heap.objects) == 4


def test_insert_only_when_idle():
    heap = Heap.from_scenario(default_scenario())
    mark(heap, heap.root)
    with pytest.raises(InvalidPhaseError):
        heap.insert(ObjectSpec(id="G", size=3))


def test_set_root():
    heap = Heap.from_scenario(default_scenario())
    heap.set_root(14)
    assert heap.root == 14
    heap.set_root(None)
    assert heap.root is None
    with pytest.raises(MalformedLayoutError):
        heap.set_root(15)
    assert heap.root is None


def test_set_root_only_when_idle():
    heap = Heap.from_scenario(default_scenario())
    mark(heap, heap.root)
    with pytest.raises(InvalidPhaseError):
        heap.set_root(8)
    assert heap.root == 2


def test_snapshot_is_isolated_from_live_heap():
    """Marking after a snapshot must not show through the snapshot."""
    heap = Heap.from_scenario(default_scenario())
    snap = heap.snapshot()
    mark(heap, heap.root)
    assert not any(o.marked for o in snap.objects)
    assert snap.phase == Phase.idle

    heap.restore(snap)
    assert heap.phase == Phase.idle
    assert not any(o.marked for o in heap.objects)


def test_stats():
    heap = Heap.from_scenario(default_scenario())
    stats = heap.stats()
    assert stats.object_count == 4
    assert stats.live_cells == 15
    assert stats.free_cells == 21
    assert stats.marked_count == 0
