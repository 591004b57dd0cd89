"""
Admission Controller Tests

Tests the precondition checks, the tentative allocation transaction and
the end-to-end request scenarios.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.ledger import Ledger
from algorithms import admission
from algorithms.admission import (
    DenialReason,
    TentativeAllocation,
    check_preconditions,
    evaluate_request,
    request_resources,
)
from algorithms.safety import verify_safe_sequence


def _two_client_ledger(available=None):
    """Two resource types (10, 5); P0 holds (4, 2) of (7, 5), P1 holds (2, 0) of (3, 0)."""
    maximum = [[7, 5], [3, 0]]
    allocation = [[4, 2], [2, 0]]
    if available is None:
        return Ledger.from_totals([10, 5], maximum, allocation)
    return Ledger(available=available, maximum=maximum, allocation=allocation)


def _textbook_ledger():
    return Ledger(
        available=[3, 3, 2],
        maximum=[[7, 5, 3], [3, 2, 2], [9, 0, 2], [2, 2, 2], [4, 3, 3]],
        allocation=[[0, 1, 0], [2, 0, 0], [3, 0, 2], [2, 1, 1], [0, 0, 2]]
    )


def test_scenario_safe_request_granted():
    """Scenario A: P1 asks for its last R0 instance."""
    print("\n" + "="*60)
    print("SCENARIO A: Safe request")
    print("="*60)

    ledger = _two_client_ledger()
    assert ledger.available.tolist() == [4, 3]

    granted, sequence = request_resources(ledger, 1, [1, 0])
    print(f"  Granted: {granted}, sequence: {sequence}")

    assert granted
    # Lowest index first: P0's need (3, 3) already fits the (3, 3) left free
    assert sequence == [0, 1]
    assert ledger.available.tolist() == [3, 3]
    assert ledger.allocation[1].tolist() == [3, 0]
    assert ledger.need[1].tolist() == [0, 0]
    assert ledger.validate()
    assert verify_safe_sequence(ledger, sequence)
    # The order P1 -> P0 is an equally valid completion
    assert verify_safe_sequence(ledger, [1, 0])
    print("  ✓ Granted and committed")


def test_scenario_short_on_r1_is_unsafe():
    """With only (3, 2) free, P0 can never reach its R1 maximum."""
    ledger = _two_client_ledger(available=[3, 2])
    before = ledger.snapshot()

    decision = evaluate_request(ledger, 1, [1, 0])

    assert not decision.granted
    assert decision.reason == DenialReason.UNSAFE_STATE
    assert ledger.matches(before)


def test_scenario_exceeds_available_denied():
    """Scenario B: nothing free, denied before any mutation."""
    ledger = _two_client_ledger(available=[0, 0])
    before = ledger.snapshot()

    decision = evaluate_request(ledger, 1, [1, 0])

    assert not decision.granted
    assert decision.reason == DenialReason.EXCEEDS_AVAILABLE
    assert decision.safe_sequence is None
    assert ledger.matches(before)


def test_scenario_exceeds_need_denied():
    """Scenario C: more than the remaining need, whatever is available."""
    ledger = _two_client_ledger(available=[100, 100])
    before = ledger.snapshot()

    assert check_preconditions(ledger, 0, [4, 0]) == DenialReason.EXCEEDS_NEED
    assert check_preconditions(ledger, 0, [0, 4]) == DenialReason.EXCEEDS_NEED
    assert request_resources(ledger, 0, [4, 0]) == (False, None)
    assert ledger.matches(before)


def test_scenario_unsafe_after_apply_reverted():
    """Scenario D: preconditions pass but no client could finish afterwards."""
    print("\n" + "="*60)
    print("SCENARIO D: Unsafe after tentative allocation")
    print("="*60)

    ledger = Ledger(available=[2], maximum=[[3], [4]], allocation=[[1], [1]])
    before = ledger.snapshot()

    assert check_preconditions(ledger, 1, [1]) is None
    granted, sequence = request_resources(ledger, 1, [1])
    print(f"  Granted: {granted}, sequence: {sequence}")

    assert not granted
    assert sequence is None
    assert ledger.matches(before)
    assert ledger.validate()
    ledger.assert_resource_conservation("after denied request")
    print("  ✓ Rolled back to the pre-request ledger")


def test_textbook_request_sequence():
    ledger = _textbook_ledger()

    first = evaluate_request(ledger, 1, [1, 0, 2])
    assert first.granted
    assert first.safe_sequence == [1, 3, 0, 2, 4]

    second = evaluate_request(ledger, 4, [3, 3, 0])
    assert second.reason == DenialReason.EXCEEDS_AVAILABLE

    before = ledger.snapshot()
    third = evaluate_request(ledger, 0, [0, 2, 0])
    assert third.reason == DenialReason.UNSAFE_STATE
    assert ledger.matches(before)
    assert ledger.available.tolist() == [2, 3, 0]


@pytest.mark.parametrize("client_id", [-1, 5, 99, True, "1", 1.0])
def test_invalid_client_denied(client_id):
    ledger = _textbook_ledger()
    before = ledger.snapshot()
    decision = evaluate_request(ledger, client_id, [0, 0, 0])
    assert decision.reason == DenialReason.INVALID_CLIENT
    assert ledger.matches(before)


def test_numpy_integer_client_accepted():
    ledger = _textbook_ledger()
    assert check_preconditions(ledger, np.int64(1), [1, 0, 2]) is None


@pytest.mark.parametrize("request_vector", [[1, 0], [1, 0, 2, 0], [1.5, 0, 0], [[1, 0, 2]], 3])
def test_malformed_request_denied(request_vector):
    ledger = _textbook_ledger()
    before = ledger.snapshot()
    decision = evaluate_request(ledger, 1, request_vector)
    assert decision.reason == DenialReason.MALFORMED_REQUEST
    assert not decision.granted
    assert ledger.matches(before)


def test_negative_component_denied_first():
    """Negative is reported even when another component exceeds need."""
    ledger = _textbook_ledger()
    assert check_preconditions(ledger, 1, [-1, 0, 99]) == DenialReason.NEGATIVE_REQUEST


def test_need_checked_before_available():
    ledger = _textbook_ledger()
    # P2 needs (6, 0, 0); asking for R1 exceeds need even though R1 is free
    assert check_preconditions(ledger, 2, [0, 1, 0]) == DenialReason.EXCEEDS_NEED
    # P0 needs (7, 4, 3); asking for 4 of R0 is within need but over the 3 free
    assert check_preconditions(ledger, 0, [4, 0, 0]) == DenialReason.EXCEEDS_AVAILABLE


def test_maximum_checked_independently_of_need():
    """A drifted need row cannot smuggle a request past the maximum."""
    ledger = _textbook_ledger()
    ledger.need[1] += np.array([5, 0, 0])
    before = ledger.snapshot()

    decision = evaluate_request(ledger, 1, [2, 0, 0])

    assert decision.reason == DenialReason.EXCEEDS_MAXIMUM
    assert ledger.matches(before)


def test_zero_request_from_safe_state_granted():
    ledger = _textbook_ledger()
    before = ledger.snapshot()
    decision = evaluate_request(ledger, 0, [0, 0, 0])
    assert decision.granted
    assert decision.safe_sequence == [1, 3, 0, 2, 4]
    assert ledger.matches(before)


def test_decision_reports_request_as_ints():
    ledger = _textbook_ledger()
    decision = evaluate_request(ledger, 1, np.array([1, 0, 2]))
    assert decision.request == [1, 0, 2]
    assert all(type(amount) is int for amount in decision.request)


def test_tentative_allocation_reverts_without_commit():
    ledger = _textbook_ledger()
    before = ledger.snapshot()

    with TentativeAllocation(ledger, 1, np.array([1, 0, 2])):
        assert ledger.allocation[1].tolist() == [3, 0, 2]

    assert ledger.matches(before)


def test_tentative_allocation_keeps_committed_state():
    ledger = _textbook_ledger()

    with TentativeAllocation(ledger, 1, np.array([1, 0, 2])) as allocation:
        allocation.commit()

    assert ledger.allocation[1].tolist() == [3, 0, 2]
    assert ledger.available.tolist() == [2, 3, 0]


def test_exception_during_safety_check_rolls_back(monkeypatch):
    ledger = _textbook_ledger()
    before = ledger.snapshot()

    def broken_oracle(_ledger):
        raise RuntimeError("oracle failed")

    monkeypatch.setattr(admission, "is_safe_state", broken_oracle)

    with pytest.raises(RuntimeError, match="oracle failed"):
        evaluate_request(ledger, 1, [1, 0, 2])

    assert ledger.matches(before)


def test_denied_requests_never_mutate():
    """Every denial path leaves available, allocation and need untouched."""
    ledger = _textbook_ledger()
    attempts = [
        (7, [0, 0, 0]),
        (1, [0, 0]),
        (1, [0, -1, 0]),
        (2, [0, 0, 1]),
        (0, [4, 0, 0]),
        (0, [0, 2, 0]),
    ]
    evaluate_request(ledger, 1, [1, 0, 2])
    for client_id, request in attempts:
        before = ledger.snapshot()
        granted, _ = request_resources(ledger, client_id, request)
        assert not granted, (client_id, request)
        assert ledger.matches(before), (client_id, request)


def main():
    """Run all admission tests."""
    test_scenario_safe_request_granted()
    test_scenario_short_on_r1_is_unsafe()
    test_scenario_exceeds_available_denied()
    test_scenario_exceeds_need_denied()
    test_scenario_unsafe_after_apply_reverted()
    test_textbook_request_sequence()
    test_negative_component_denied_first()
    test_need_checked_before_available()
    test_maximum_checked_independently_of_need()
    test_zero_request_from_safe_state_granted()
    test_tentative_allocation_reverts_without_commit()
    test_tentative_allocation_keeps_committed_state()
    test_denied_requests_never_mutate()
    print("\n✅ Admission Controller Tests PASSED")
    return 0


if __name__ == '__main__':
    sys.exit(main())
