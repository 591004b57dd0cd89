"""
Resource Ledger for the Banker's Admission Controller.

Holds the quantitative state required by the safety algorithm: available
units per resource type, per-client maximum demand, per-client allocation
and the derived per-client need.
"""

import numpy as np
from typing import Dict, Tuple
from dataclasses import dataclass, field


class LedgerShapeError(ValueError):
    """Raised when vectors or matrices do not match the declared dimensions."""
    pass


def _as_int_array(values, name: str) -> np.ndarray:
    """
    Convert ledger input to an integer array without coercing other types.

    Floats, numeric strings and booleans are rejected rather than truncated
    or parsed; integers beyond the int64 range end up as an object array
    and are rejected the same way.
    """
    try:
        array = np.array(values)
    except (TypeError, ValueError, OverflowError) as e:
        raise LedgerShapeError(f"{name} is not a rectangular integer array: {e}")

    if array.size == 0:
        return array.astype(int)
    if not np.issubdtype(array.dtype, np.integer):
        raise LedgerShapeError(f"{name} must contain integers only, got dtype {array.dtype}")
    if array.dtype.kind == 'u' and array.max() > np.iinfo(int).max:
        raise LedgerShapeError(f"{name} has values beyond the integer range")
    return array.astype(int)


@dataclass(eq=False)
class Ledger:
    """
    Resource allocation state for one run.

    Attributes:
        available: [R] Free instances of each resource type
        maximum: [N][R] Maximum demand declared by each client
        allocation: [N][R] Instances currently held by each client
        need: [N][R] Computed as Maximum - Allocation
        total: [R] Fixed total supply, captured at construction

    Invariants:
        - every component is >= 0
        - allocation <= maximum (element-wise)
        - need == maximum - allocation
        - allocation[:, r].sum() + available[r] == total[r]
    """
    available: np.ndarray
    maximum: np.ndarray
    allocation: np.ndarray
    need: np.ndarray = field(init=False)
    total: np.ndarray = field(init=False)

    def __post_init__(self):
        """Normalise inputs to integer arrays and derive need and total supply."""
        self.available = _as_int_array(self.available, "available")
        self.maximum = _as_int_array(self.maximum, "maximum")
        self.allocation = _as_int_array(self.allocation, "allocation")

        if self.available.ndim != 1:
            raise LedgerShapeError(f"available must be a vector, got shape {self.available.shape}")

        num_resources = self.available.shape[0]
        # An empty client list parses as a 1-D array
        if self.maximum.ndim == 1 and self.maximum.size == 0 and self.allocation.size == 0:
            self.maximum = self.maximum.reshape(0, num_resources)
            self.allocation = self.allocation.reshape(0, num_resources)

        if self.maximum.ndim != 2 or self.maximum.shape[1] != num_resources:
            raise LedgerShapeError(
                f"maximum must be [N][{num_resources}], got shape {self.maximum.shape}"
            )
        if self.allocation.shape != self.maximum.shape:
            raise LedgerShapeError(
                f"allocation shape {self.allocation.shape} does not match "
                f"maximum shape {self.maximum.shape}"
            )

        self.derive_need()
        self.total = self.available + self.allocation.sum(axis=0)

    @classmethod
    def from_totals(cls, total, maximum, allocation) -> "Ledger":
        """
        Build a ledger from total instances per resource type.

        Available units are whatever the initial allocations leave free.

        Args:
            total: [R] Total instances of each resource type
            maximum: [N][R] Maximum demand matrix
            allocation: [N][R] Initial allocation matrix

        Returns:
            Ledger with available = total - sum(allocation)
        """
        total = _as_int_array(total, "total")
        allocation = _as_int_array(allocation, "allocation")
        if allocation.ndim == 1 and allocation.size == 0:
            allocation = allocation.reshape(0, total.shape[0])
        return cls(
            available=total - allocation.sum(axis=0),
            maximum=maximum,
            allocation=allocation
        )

    @property
    def num_clients(self) -> int:
        """Number of clients in the system."""
        return self.maximum.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self.available.shape[0]

    def derive_need(self) -> None:
        """Recompute every client's need row as Maximum - Allocation."""
        self.need = self.maximum - self.allocation

    def validate(self) -> bool:
        """
        Check invariants 1-3 on the current state.

        Returns:
            True if all components are non-negative, no allocation exceeds
            its maximum and need equals maximum - allocation exactly
        """
        if (self.available < 0).any() or (self.maximum < 0).any():
            return False
        if (self.allocation < 0).any() or (self.need < 0).any():
            return False
        if (self.allocation > self.maximum).any():
            return False
        return bool(np.array_equal(self.need, self.maximum - self.allocation))

    def apply(self, client_id: int, request: np.ndarray) -> None:
        """
        Move request units from available to the client's allocation.

        Performs no bounds checking; callers must check preconditions first.
        """
        self.available -= request
        self.allocation[client_id] += request
        self.need[client_id] -= request

    def revert(self, client_id: int, request: np.ndarray) -> None:
        """Exact inverse of apply() for the same client and request."""
        self.available += request
        self.allocation[client_id] -= request
        self.need[client_id] += request

    def snapshot(self) -> Dict[str, np.ndarray]:
        """
        Copy the mutable parts of the ledger.

        Returns:
            Dictionary of array copies, comparable with matches()
        """
        return {
            'available': self.available.copy(),
            'allocation': self.allocation.copy(),
            'need': self.need.copy()
        }

    def matches(self, snapshot: Dict[str, np.ndarray]) -> bool:
        """Check whether the ledger is component-wise identical to a snapshot."""
        return (
            np.array_equal(self.available, snapshot['available'])
            and np.array_equal(self.allocation, snapshot['allocation'])
            and np.array_equal(self.need, snapshot['need'])
        )

    def assert_resource_conservation(self, context=""):
        """Verify resource conservation: allocated + available = total for all resources.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If resource conservation is violated
        """
        allocated = self.allocation.sum(axis=0)

        for r_idx in range(self.num_resources):
            available = self.available[r_idx]
            total = self.total[r_idx]

            assert allocated[r_idx] + available == total, (
                f"Resource conservation violated for R{r_idx} {context}\n"
                f"  Allocated: {allocated[r_idx]}, Available: {available}, Total: {total}\n"
                f"  Allocated + Available = {allocated[r_idx] + available} != {total}"
            )

            assert available >= 0, (
                f"Negative available resources for R{r_idx} {context}\n"
                f"  Available: {available}"
            )

    def display(self) -> str:
        """
        Generate readable string representation of the ledger.

        Returns:
            Formatted string showing all vectors and matrices
        """
        header = "      " + " ".join([f"R{j:<3}" for j in range(self.num_resources)])
        output = []
        output.append("\n" + "="*60)
        output.append("LEDGER STATE")
        output.append("="*60)

        output.append("\nTotal Supply:")
        output.append("  " + self._format_vector(self.total))
        output.append("\nAvailable Resources:")
        output.append("  " + self._format_vector(self.available))

        for title, matrix in [
            ("Maximum Matrix", self.maximum),
            ("Allocation Matrix", self.allocation),
            ("Need Matrix (Max - Allocation)", self.need),
        ]:
            output.append(f"\n{title}:")
            output.append(header)
            for c in range(self.num_clients):
                row = f"  P{c}: " + " ".join([f"{matrix[c][j]:<4}" for j in range(self.num_resources)])
                output.append(row.rstrip())

        output.append("\n" + "="*60)
        return "\n".join(output)

    def _format_vector(self, vector: np.ndarray) -> str:
        return "[" + ", ".join(f"R{j}:{vector[j]}" for j in range(len(vector))) + "]"


def initialize(
    client_count: int,
    resource_type_count: int,
    available,
    maximum,
    allocation
) -> Tuple[Ledger, bool]:
    """
    Build a ledger from already-parsed input and validate it.

    Args:
        client_count: Number of clients (N)
        resource_type_count: Number of resource types (R)
        available: [R] Available vector
        maximum: [N][R] Maximum demand matrix
        allocation: [N][R] Allocation matrix

    Returns:
        Tuple of (Ledger, is_valid)

    Raises:
        LedgerShapeError: If any input does not have the declared dimensions
    """
    if client_count < 0 or resource_type_count < 0:
        raise LedgerShapeError(
            f"Counts must be non-negative (clients={client_count}, resources={resource_type_count})"
        )

    expected = (client_count, resource_type_count)
    available = _as_int_array(available, "available")
    maximum = _as_int_array(maximum, "maximum")
    allocation = _as_int_array(allocation, "allocation")

    # An empty client list parses as a 1-D array
    if client_count == 0:
        if maximum.size == 0:
            maximum = maximum.reshape(expected)
        if allocation.size == 0:
            allocation = allocation.reshape(expected)

    if available.shape != (resource_type_count,):
        raise LedgerShapeError(
            f"available has shape {available.shape}, expected ({resource_type_count},)"
        )
    if maximum.shape != expected:
        raise LedgerShapeError(f"maximum has shape {maximum.shape}, expected {expected}")
    if allocation.shape != expected:
        raise LedgerShapeError(f"allocation has shape {allocation.shape}, expected {expected}")

    ledger = Ledger(available=available, maximum=maximum, allocation=allocation)
    return ledger, ledger.validate()
