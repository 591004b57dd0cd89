#!/usr/bin/env python3
"""
Banker's Admission Controller
Main entry point.

Loads a ledger (JSON scenario or plain-text matrices), then evaluates each
request in order, granting it only if the resulting state stays safe.
"""

import argparse
import sys
from typing import List, Optional, Tuple

from models.ledger import Ledger
from models.request import ResourceRequest
from utils.scenario_loader import load_scenario, get_scenario_description, ScenarioLoadError
from utils.matrix_reader import read_matrices
from utils.logger import AdmissionLogger
from algorithms.admission import evaluate_request
from algorithms.safety import is_safe_state, verify_safe_sequence
from analysis.events import EventLog, AdmissionEvent
from analysis.metrics import AdmissionMetrics


EXIT_OK = 0
EXIT_LOAD_ERROR = 1
EXIT_INVALID_STATE = 2


def run_admission(
    ledger: Ledger,
    requests: List[ResourceRequest],
    logger: AdmissionLogger,
    strict: bool = False
) -> Tuple[int, EventLog, AdmissionMetrics]:
    """
    Check the initial ledger and evaluate every request in order.

    Args:
        ledger: Initial ledger (updated in place by granted requests)
        requests: Requests to evaluate
        logger: Logger instance
        strict: Reject an initial state that is already unsafe

    Returns:
        Tuple of (exit_code, EventLog, AdmissionMetrics)
    """
    event_log = EventLog()
    metrics = AdmissionMetrics()

    logger.log_ledger_state("Initial ledger", ledger.display())

    is_valid = ledger.validate()
    is_safe, safe_seq = is_safe_state(ledger) if is_valid else (False, None)
    logger.log_initial_check(is_valid, is_safe, safe_seq)

    if not is_valid:
        return EXIT_INVALID_STATE, event_log, metrics
    if strict and not is_safe:
        logger.log("Strict mode: refusing to process requests from an unsafe state", "error")
        return EXIT_INVALID_STATE, event_log, metrics

    for number, request in enumerate(requests, start=1):
        decision = evaluate_request(ledger, request.client_id, request.amounts)

        logger.log_request(
            number,
            decision.client_id,
            decision.request,
            decision.granted,
            decision.reason.value,
            decision.safe_sequence
        )

        if decision.granted and logger.verbose:
            replay_ok = verify_safe_sequence(ledger, decision.safe_sequence)
            logger.log(f"  Safe sequence replay: {'OK' if replay_ok else 'FAILED'}", "debug")
            logger.log(f"  Available now: {ledger.available.tolist()}", "debug")

        event_log.add(AdmissionEvent.from_decision(number, decision))
        metrics.record(decision)

    logger.log_ledger_state("Final ledger", ledger.display())
    logger.log("\n" + metrics.summary())

    return EXIT_OK, event_log, metrics


def _load_input(args: argparse.Namespace) -> Tuple[Ledger, List[ResourceRequest]]:
    """Load the ledger and requests from the source selected on the command line."""
    if args.stdin:
        return read_matrices(sys.stdin)
    return load_scenario(args.scenario)


def _parse_request(values: List[int]) -> ResourceRequest:
    return ResourceRequest(client_id=values[0], amounts=values[1:], label="command line")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the admission controller."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm resource admission controller"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--scenario',
        type=str,
        help='Path to scenario JSON file'
    )
    source.add_argument(
        '--stdin',
        action='store_true',
        help='Read plain-text matrices from standard input'
    )
    parser.add_argument(
        '--request',
        type=int,
        nargs='+',
        action='append',
        metavar='N',
        help='Extra request: client id followed by one amount per resource type (repeatable)'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Reject an initial state that is already unsafe'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )

    args = parser.parse_args(argv)

    with AdmissionLogger(verbose=args.verbose, log_file=args.log_file) as logger:
        try:
            ledger, requests = _load_input(args)
        except (ScenarioLoadError, ValueError) as e:
            logger.log(f"Failed to load input: {e}", "error")
            return EXIT_LOAD_ERROR

        if args.scenario:
            description = get_scenario_description(args.scenario)
            if description:
                logger.log(f"Scenario: {description}")

        requests.extend(_parse_request(values) for values in args.request or [])

        exit_code, _, _ = run_admission(ledger, requests, logger, strict=args.strict)
        return exit_code


if __name__ == '__main__':
    sys.exit(main())
