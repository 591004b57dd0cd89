"""
Safety Algorithm (Banker's Algorithm) for the Admission Controller.

Decides whether a ledger state is safe, i.e. whether some ordering exists in
which every client can obtain its remaining need, finish and release all of
its allocation.
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple

from models.ledger import Ledger


def is_safe_state(ledger: Ledger) -> Tuple[bool, Optional[List[int]]]:
    """
    Check if the ledger is in a safe state using Banker's Algorithm.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_clients
    2. Find the lowest-index client i where Finish[i] == False and Need[i] <= Work
    3. If found: Finish[i] = True, Work += Allocation[i], add i to sequence,
       restart the scan from client 0
    4. If a full scan finds no such client the state is UNSAFE
    5. Once every client is finished the state is SAFE

    Time Complexity: O(N²×R)

    Args:
        ledger: Ledger to check (never modified)

    Returns:
        Tuple of (is_safe, safe_sequence if exists else None)

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """
    # Work is a copy so the ledger's available vector is never touched
    work = ledger.available.copy()
    finish = np.zeros(ledger.num_clients, dtype=bool)
    safe_sequence = []

    for _ in range(ledger.num_clients):
        candidate = _first_runnable_client(ledger, work, finish)

        if candidate is None:
            return False, None

        # Client can finish: add its allocation back to work
        work += ledger.allocation[candidate]
        finish[candidate] = True
        safe_sequence.append(candidate)

    return True, safe_sequence


def _first_runnable_client(ledger: Ledger, work: np.ndarray, finish: np.ndarray) -> Optional[int]:
    """Return the lowest-index unfinished client whose need fits in work."""
    for i in range(ledger.num_clients):
        if finish[i]:
            continue
        if np.all(ledger.need[i] <= work):
            return i
    return None


def verify_safe_sequence(ledger: Ledger, sequence: Sequence[int]) -> bool:
    """
    Replay a claimed safe sequence against the ledger.

    Each client in turn draws its full need from Work and then releases
    its need plus its allocation. The replay fails if Work would underflow
    at any point.

    Args:
        ledger: Ledger the sequence was computed for (never modified)
        sequence: Ordered client indices

    Returns:
        True if sequence is a permutation of all clients and never underflows
    """
    if sorted(sequence) != list(range(ledger.num_clients)):
        return False

    work = ledger.available.copy()
    for client in sequence:
        work -= ledger.need[client]
        if (work < 0).any():
            return False
        work += ledger.need[client] + ledger.allocation[client]

    return True
