from enum import Enum, auto
from typing import Any


class PortDataKind(Enum):
    STRING = "string"
    OBJECT = "object"
    ANY = "any"

    @staticmethod
    def validate(value: Any, kind: 'PortDataKind') -> bool:
        # Descriptive only: the graph never calls this on connect.
        if kind == PortDataKind.ANY or value is None:
            return True
        if kind == PortDataKind.STRING:
            return isinstance(value, str)
        if kind == PortDataKind.OBJECT:
            return isinstance(value, (dict, list))
        return False


class ExecutionStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class PointerEventType(Enum):
    PRESS = "press"
    MOVE = "move"
    RELEASE = "release"
    WHEEL = "wheel"


class PointerButton(Enum):
    PRIMARY = "primary"
    MIDDLE = "middle"
    SECONDARY = "secondary"


class InteractionMode(Enum):
    IDLE = auto()
    PANNING = auto()
    DRAGGING_NODE = auto()
    CONNECTING_EDGE = auto()


class HitKind(Enum):
    CANVAS = auto()
    NODE = auto()
    INPUT_HANDLE = auto()
    OUTPUT_HANDLE = auto()
