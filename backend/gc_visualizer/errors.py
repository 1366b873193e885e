from __future__ import annotations


class CollectorError(Exception):
    """Base class for rejected collector operations.

    A raised error always leaves the heap exactly as it was before the call.
    """


class MalformedLayoutError(CollectorError):
    """Objects overlap, fall outside the heap, or are structurally invalid."""


class InsufficientSpaceError(MalformedLayoutError):
    """An inserted object does not fit in the free space of the heap."""


class InvalidPhaseError(CollectorError):
    def __init__(self, operation: str, phase: object, expected: object) -> None:
        self.operation = operation
        self.phase = phase
        self.expected = expected
        super().__init__(f"cannot {operation} in phase {_name(phase)}, requires {_name(expected)}")


class NoHistoryError(CollectorError):
    def __init__(self) -> None:
        super().__init__("nothing to undo")


class UnknownScenarioError(CollectorError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown scenario {name!r}")


def _name(value: object) -> str:
    if isinstance(value, (list, tuple)):
        return " or ".join(_name(v) for v in value)
    return getattr(value, "value", str(value))
