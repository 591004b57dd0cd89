"""
Request model for the Banker's Admission Controller.

Represents one incremental resource request made by a client.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ResourceRequest:
    """
    A single request for additional resource instances.

    Attributes:
        client_id: Index of the requesting client
        amounts: Requested instances per resource type [R]
        label: Optional human-readable tag (e.g. line number in the input)
    """
    client_id: int
    amounts: List[int] = field(default_factory=list)
    label: str = ""

    def __str__(self) -> str:
        """Format request for logging."""
        return f"P{self.client_id} requests {list(self.amounts)}"
