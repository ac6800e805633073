"""
Message: a single beacon held in the Ether for one simulation round.
"""

from dataclasses import dataclass
from enum import Enum

from sim.grid import Coordinate, SquareCoords


class NodeKind(Enum):
    """Kind of node that originated a message."""

    OBU = "obu"
    RSU = "rsu"


@dataclass(frozen=True)
class Message:
    """
    Represents a single beacon sent through the Ether.

    Attributes:
        origin_id (int): ID of the sending node.
        origin_kind (NodeKind): Whether the sender is an OBU or an RSU.
        reported (Coordinate): Position the sender claims to be at (may be spoofed).
        physical (Coordinate): Position the sender actually transmitted from.
        phy_range (int): Physical transmission range of the sender.
        coverage (SquareCoords): Coverage box around ``physical``.
    """
    origin_id: int
    origin_kind: NodeKind
    reported: Coordinate
    physical: Coordinate
    phy_range: int
    coverage: SquareCoords

    @property
    def is_spoofed(self) -> bool:
        return self.reported != self.physical


@dataclass(frozen=True)
class NeighborEntry:
    """
    A sighting of another node, recorded by a receiver for one round.

    Attributes:
        id (int): Sender ID.
        kind (NodeKind): Sender kind.
        coordinate (Coordinate): Position reported by the sender.
    """
    id: int
    kind: NodeKind
    coordinate: Coordinate
