"""
Request Admission for the Banker's Admission Controller.

Every request is handled as an all-or-nothing transaction:
1. Check preconditions (no mutation on failure)
2. Tentatively allocate
3. Run the safety algorithm on the new state
4. Commit if safe, otherwise roll back to the exact pre-request ledger
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from models.ledger import Ledger
from algorithms.safety import is_safe_state


class DenialReason(Enum):
    """Outcome of an admission decision."""
    GRANTED = "granted"
    INVALID_CLIENT = "invalid client id"
    MALFORMED_REQUEST = "request has wrong number of components"
    NEGATIVE_REQUEST = "request has a negative component"
    EXCEEDS_NEED = "request exceeds declared need"
    EXCEEDS_AVAILABLE = "request exceeds available resources"
    EXCEEDS_MAXIMUM = "request would exceed maximum demand"
    UNSAFE_STATE = "granting would leave the system unsafe"


@dataclass
class AdmissionDecision:
    """
    Result of evaluating a single request.

    Attributes:
        client_id: Requesting client
        request: Requested instances per resource type
        granted: Whether the request was committed
        reason: DenialReason.GRANTED or the first check that failed
        safe_sequence: Safe sequence for the committed state (None if denied)
    """
    client_id: int
    request: List[int]
    granted: bool
    reason: DenialReason
    safe_sequence: Optional[List[int]] = None


class TentativeAllocation:
    """
    Scoped tentative allocation.

    Applies the request on enter. Unless commit() is called before the
    block exits, the request is reverted, including when the block raises.
    """

    def __init__(self, ledger: Ledger, client_id: int, request: np.ndarray):
        self.ledger = ledger
        self.client_id = client_id
        self.request = request
        self.committed = False

    def __enter__(self) -> "TentativeAllocation":
        self.ledger.apply(self.client_id, self.request)
        return self

    def commit(self) -> None:
        """Keep the tentative allocation after the block exits."""
        self.committed = True

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        if not self.committed:
            self.ledger.revert(self.client_id, self.request)
        return False


def check_preconditions(ledger: Ledger, client_id: int, request: Sequence[int]) -> Optional[DenialReason]:
    """
    Check a request against the ledger without modifying it.

    Checks run in a fixed order and the first failure is reported:
    client id, request shape, non-negative, <= need, <= available,
    allocation + request <= maximum.

    Args:
        ledger: Current ledger
        client_id: Requesting client
        request: Requested instances per resource type

    Returns:
        None if the request may be tried, otherwise the DenialReason
    """
    if not isinstance(client_id, (int, np.integer)) or isinstance(client_id, bool):
        return DenialReason.INVALID_CLIENT
    if client_id < 0 or client_id >= ledger.num_clients:
        return DenialReason.INVALID_CLIENT

    try:
        vector = np.asarray(request)
    except ValueError:
        # Ragged nested sequences
        return DenialReason.MALFORMED_REQUEST
    if vector.size == 0:
        vector = vector.astype(int)
    if vector.shape != (ledger.num_resources,) or not np.issubdtype(vector.dtype, np.integer):
        return DenialReason.MALFORMED_REQUEST

    if (vector < 0).any():
        return DenialReason.NEGATIVE_REQUEST

    if (vector > ledger.need[client_id]).any():
        return DenialReason.EXCEEDS_NEED

    if (vector > ledger.available).any():
        return DenialReason.EXCEEDS_AVAILABLE

    # Checked separately from need in case the need row has drifted
    if (ledger.allocation[client_id] + vector > ledger.maximum[client_id]).any():
        return DenialReason.EXCEEDS_MAXIMUM

    return None


def evaluate_request(ledger: Ledger, client_id: int, request: Sequence[int]) -> AdmissionDecision:
    """
    Handle a resource request using Banker's Algorithm.

    Args:
        ledger: Ledger to update (committed only if the request is granted)
        client_id: Requesting client
        request: Requested instances per resource type

    Returns:
        AdmissionDecision describing the outcome
    """
    reason = check_preconditions(ledger, client_id, request)
    if reason is not None:
        requested = list(request) if isinstance(request, (list, tuple, np.ndarray)) else [request]
        return AdmissionDecision(client_id, requested, False, reason)

    vector = np.array(request, dtype=int)
    requested = [int(amount) for amount in vector]

    with TentativeAllocation(ledger, client_id, vector) as allocation:
        is_safe, safe_seq = is_safe_state(ledger)
        if is_safe:
            allocation.commit()

    if not is_safe:
        return AdmissionDecision(client_id, requested, False, DenialReason.UNSAFE_STATE)

    # SANITY CHECK: Verify resource conservation after grant
    ledger.assert_resource_conservation(f"after granting {requested} to P{client_id}")

    return AdmissionDecision(client_id, requested, True, DenialReason.GRANTED, safe_seq)


def request_resources(ledger: Ledger, client_id: int, request: Sequence[int]) -> Tuple[bool, Optional[List[int]]]:
    """
    Request resources for a client.

    Args:
        ledger: Ledger to update
        client_id: Requesting client
        request: Requested instances per resource type

    Returns:
        Tuple of (granted, safe_sequence if granted else None)
    """
    decision = evaluate_request(ledger, client_id, request)
    return decision.granted, decision.safe_sequence
