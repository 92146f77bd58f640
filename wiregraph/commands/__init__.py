"""
Undo/redo command system for wiregraph.

Implements the command pattern for reversible graph edits.
"""

from wiregraph.commands.base import Command, UndoStack
from wiregraph.commands.graph_commands import SnapshotCommand, TransactionCommand

__all__ = [
    "Command",
    "UndoStack",
    "SnapshotCommand",
    "TransactionCommand",
]
