from .models import Board, BoardState, Card, Column, EntityKind
from .interface import SyncGateway
from .store import EntityStore
from .drag import DragController, DragOutcome, DropKind, DropTarget

__all__ = [
    "Board",
    "BoardState",
    "Card",
    "Column",
    "EntityKind",
    "SyncGateway",
    "EntityStore",
    "DragController",
    "DragOutcome",
    "DropKind",
    "DropTarget",
]
