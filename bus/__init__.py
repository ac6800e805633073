"""
bus: The round-scoped broadcast medium
======================================

Holds the beacons "in flight" between the collection phase of one round
and the delivery phase of the next, with the exact reachability test and
delivery counters used to audit the coverage-box approximation.

Modules
-------
message
    :class:`Message`, :class:`NeighborEntry` and :class:`NodeKind`.
ether
    :class:`Ether` send / drain / read transport.
metrics
    :class:`EtherMetrics` counter snapshot.
utils
    Failure trials and spoofed-position sampling.
"""

from .message import Message, NeighborEntry, NodeKind
from .ether   import Ether
from .metrics import EtherMetrics
from .utils   import maybe_fail, spoofed_coordinate

__all__ = [
    "Message",
    "NeighborEntry",
    "NodeKind",
    "Ether",
    "EtherMetrics",
    "maybe_fail",
    "spoofed_coordinate",
]
