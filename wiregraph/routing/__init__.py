"""Interactive routing: events and the connection controller."""

from wiregraph.routing.events import (
    Backspace,
    Commit,
    ControllerState,
    Escape,
    EventContext,
    Move,
    RoutePreview,
    RouteUpdate,
    Tap,
)
from wiregraph.routing.controller import ConnectionController

__all__ = [
    "Backspace",
    "Commit",
    "ControllerState",
    "Escape",
    "EventContext",
    "Move",
    "RoutePreview",
    "RouteUpdate",
    "Tap",
    "ConnectionController",
]
