"""
Metrics Tracking for the Banker's Admission Controller.

Counts admission outcomes over a run.
"""

from dataclasses import dataclass, field
from typing import Dict

from algorithms.admission import AdmissionDecision, DenialReason


@dataclass
class AdmissionMetrics:
    """
    Accumulated counters for a single run.

    Tracks:
    1. Granted and denied requests
    2. Denials broken down by reason (precondition vs unsafe state)
    3. Grants and denials per client
    """
    total_requests: int = 0
    granted: int = 0
    denied: int = 0

    reason_counts: Dict[DenialReason, int] = field(default_factory=dict)
    client_granted_counts: Dict[int, int] = field(default_factory=dict)
    client_denied_counts: Dict[int, int] = field(default_factory=dict)

    def record(self, decision: AdmissionDecision) -> None:
        """Record one admission decision."""
        self.total_requests += 1
        self.reason_counts[decision.reason] = self.reason_counts.get(decision.reason, 0) + 1

        if decision.granted:
            self.granted += 1
            counts = self.client_granted_counts
        else:
            self.denied += 1
            counts = self.client_denied_counts
        counts[decision.client_id] = counts.get(decision.client_id, 0) + 1

    @property
    def unsafe_denials(self) -> int:
        """Denials where every precondition passed but the oracle said unsafe."""
        return self.reason_counts.get(DenialReason.UNSAFE_STATE, 0)

    @property
    def precondition_denials(self) -> int:
        """Denials rejected before any tentative allocation."""
        return self.denied - self.unsafe_denials

    @property
    def grant_rate(self) -> float:
        """Granted / total requests, as a percentage (0.0 when no requests)."""
        if self.total_requests == 0:
            return 0.0
        return self.granted / self.total_requests * 100

    def summary(self) -> str:
        """Format counters for display."""
        lines = [
            "Admission Statistics:",
            f"  Total Requests: {self.total_requests}",
            f"  Granted: {self.granted}",
            f"  Denied: {self.denied}",
            f"    Failed preconditions: {self.precondition_denials}",
            f"    Unsafe state: {self.unsafe_denials}",
            f"  Grant Rate: {self.grant_rate:.1f}%",
        ]
        for reason in DenialReason:
            count = self.reason_counts.get(reason, 0)
            if count and reason != DenialReason.GRANTED:
                lines.append(f"  {reason.value}: {count}")
        return "\n".join(lines)
