"""
Event Model for the Banker's Admission Controller.

Defines event types for tracking admission decisions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from algorithms.admission import AdmissionDecision
from utils.logger import format_sequence


class EventType(Enum):
    """Types of admission events."""
    ALLOCATION = "allocation"
    DENIAL = "denial"


@dataclass
class AdmissionEvent:
    """
    Represents a single admission decision.

    Attributes:
        number: 1-based position of the request within the run
        event_type: Type of event
        client_id: Requesting client
        request: Requested instances per resource type
        reason: Reason for the decision
        safe_sequence: Safe sequence after a grant (None for denials)
    """
    number: int
    event_type: EventType
    client_id: int
    request: List[int]
    reason: str = ""
    safe_sequence: Optional[List[int]] = None

    @classmethod
    def from_decision(cls, number: int, decision: AdmissionDecision) -> "AdmissionEvent":
        """Build an event from an admission decision."""
        return cls(
            number=number,
            event_type=EventType.ALLOCATION if decision.granted else EventType.DENIAL,
            client_id=decision.client_id,
            request=list(decision.request),
            reason=decision.reason.value,
            safe_sequence=decision.safe_sequence
        )

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"Request {self.number}: P{self.client_id} requests {self.request}"

        if self.event_type == EventType.ALLOCATION:
            return f"{base} - GRANTED (safe sequence: {format_sequence(self.safe_sequence)})"
        return f"{base} - DENIED ({self.reason})"


@dataclass
class EventLog:
    """Collection of admission events."""
    events: list = None

    def __post_init__(self):
        if self.events is None:
            self.events = []

    def add(self, event: AdmissionEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_client(self, client_id: int) -> list:
        """Get all events for a specific client."""
        return [e for e in self.events if e.client_id == client_id]

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
