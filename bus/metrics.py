"""
EtherMetrics: Tracks simple statistics for message flow through the Ether.
"""


class EtherMetrics:
    """
    Tracks metrics for sent messages, rounds and accepted deliveries.

    Attributes:
        sent (int): Total number of messages put in flight.
        rounds (int): Number of times the Ether was drained.
        delivered (int): Number of (message, receiver) pairs accepted by the coverage-box test.
        false_neighbors (int): Accepted pairs that fail the exact distance test.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.sent = 0
        self.rounds = 0
        self.delivered = 0
        self.false_neighbors = 0

    def record_delivery(self, exact_reachable: bool) -> None:
        """
        Count one accepted delivery.

        Args:
            exact_reachable (bool): Outcome of the exact reachability test for the same pair.
        """
        self.delivered += 1
        if not exact_reachable:
            self.false_neighbors += 1

    def false_neighbor_rate(self) -> float:
        """
        Share of accepted deliveries that the exact test would have rejected.

        Returns:
            float: Rate in [0, 1]; 0.0 before any delivery.
        """
        if self.delivered == 0:
            return 0.0
        return self.false_neighbors / self.delivered

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Dictionary containing 'sent', 'rounds', 'delivered', 'false_neighbors'
            and 'false_neighbor_rate'.
        """
        return {
            "sent": self.sent,
            "rounds": self.rounds,
            "delivered": self.delivered,
            "false_neighbors": self.false_neighbors,
            "false_neighbor_rate": self.false_neighbor_rate(),
        }
