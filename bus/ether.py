"""
Ether: the transient, round-scoped broadcast medium.

Supports:
    - Appending beacons collected during a round
    - Read-only access for the delivery phase
    - Clearing at the start of every collection phase
    - The exact Euclidean reachability test

Intended usage:
    - The simulator clears the Ether, then sends every collected message
    - On the next round OBUs and RSUs read ``messages()`` to build neighbor lists

Bulk neighbor acceptance uses the coverage-box test of
:meth:`sim.grid.Grid.boxes_overlap` on both the sender and the receiver side.
:meth:`Ether.is_reachable` is the precise test; receivers run it next to the
box test and count disagreements as false neighbors in :class:`EtherMetrics`.
"""

import logging
import math
from typing import List, Tuple

from sim.grid import Coordinate
from .message import Message
from .metrics import EtherMetrics

log = logging.getLogger(__name__)


class Ether:
    """
    In-flight message set for the current round.

    Attributes:
        metrics (EtherMetrics): Counters shared with the delivery phase.
    """

    def __init__(self):
        """Initialize an empty Ether."""
        self._messages: List[Message] = []
        self.metrics = EtherMetrics()

    def send(self, message: Message) -> None:
        """
        Put a message in flight.

        Args:
            message (Message): The beacon to append.
        """
        self._messages.append(message)
        self.metrics.sent += 1

    def clear(self) -> None:
        """Discard every message in flight."""
        self.drain()

    def drain(self) -> List[Message]:
        """
        Remove and return every message in flight.

        Returns:
            List[Message]: The messages of the round that just ended, in send order.
        """
        msgs = self._messages
        self._messages = []
        self.metrics.rounds += 1
        log.debug("ether drained count=%d", len(msgs))
        return msgs

    def messages(self) -> Tuple[Message, ...]:
        """
        Read-only view of the current round's messages.

        Returns:
            Tuple[Message, ...]: Messages in send order.
        """
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    @staticmethod
    def is_reachable(
        tx_coord: Coordinate,
        tx_range: int,
        rx_coord: Coordinate,
    ) -> bool:
        """
        Decide whether a transmission reaches a receiver.

        Args:
            tx_coord (Coordinate): Transmitter position.
            tx_range (int): Transmitter range, in cells.
            rx_coord (Coordinate): Receiver position.

        Returns:
            bool: True if the Euclidean distance is at most ``tx_range``.
        """
        distance = math.hypot(tx_coord[0] - rx_coord[0], tx_coord[1] - rx_coord[1])
        return distance <= tx_range
