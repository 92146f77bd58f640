"""
Vertex ownership for wiregraph.

A vertex is either free (movable, prunable once isolated), bound to a
component pin, or locked in place by the surrounding application.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Hashable, Optional


class OwnershipKind(Enum):
    """Tag of the ownership variant."""
    FREE = auto()
    PIN = auto()
    LOCKED = auto()


@dataclass(frozen=True)
class Ownership:
    """
    Closed tagged variant describing who owns a vertex.

    Attributes:
        kind: Variant tag
        owner_id: Component that owns the pin (PIN only)
        pin_id: Pin reference within the owner (PIN only)
    """
    kind: OwnershipKind = OwnershipKind.FREE
    owner_id: Optional[Hashable] = None
    pin_id: Optional[Hashable] = None

    @classmethod
    def pin(cls, owner_id: Hashable, pin_id: Hashable) -> "Ownership":
        """Ownership by pin ``pin_id`` of component ``owner_id``."""
        return cls(OwnershipKind.PIN, owner_id, pin_id)

    @property
    def is_free(self) -> bool:
        return self.kind is OwnershipKind.FREE

    @property
    def is_pin(self) -> bool:
        return self.kind is OwnershipKind.PIN

    @property
    def is_bound(self) -> bool:
        """Bound vertices are never moved, merged away or culled by rules."""
        return self.kind is not OwnershipKind.FREE

    def owned_by(self, owner_id: Hashable) -> bool:
        """Check whether this is a pin of the given owner."""
        return self.kind is OwnershipKind.PIN and self.owner_id == owner_id

    def __str__(self) -> str:
        if self.kind is OwnershipKind.PIN:
            return f"pin({self.owner_id}, {self.pin_id})"
        return self.kind.name.lower()


FREE = Ownership()
LOCKED = Ownership(OwnershipKind.LOCKED)
