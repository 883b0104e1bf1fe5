"""EventBus for decoupled publish/subscribe communication."""

from enum import Enum, auto
from typing import Any, Callable
from collections import defaultdict


class EventType(Enum):
    # Transform phase
    TRANSFORMS_PROPAGATED = auto()  # data: frame (int)

    # Skinning phase, per mesh
    MESH_SKINNED = auto()           # data: mesh (str), positions (ndarray (V, 3))
    AABB_UPDATED = auto()           # data: mesh (str), aabb (Aabb)
    AABB_UNAVAILABLE = auto()       # data: mesh (str)
    SKINNING_SKIPPED = auto()       # data: mesh (str), reason (SkinningError)

    # End of tick
    FRAME_COMPLETE = auto()         # data: report (FrameReport)


class EventBus:
    """Simple publish/subscribe event system."""

    def __init__(self):
        self._handlers: dict[EventType, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def has_subscribers(self, event_type: EventType) -> bool:
        return bool(self._handlers.get(event_type))

    def publish(self, event_type: EventType, **data: Any) -> None:
        for handler in list(self._handlers[event_type]):
            handler(**data)

    def clear(self) -> None:
        self._handlers.clear()
