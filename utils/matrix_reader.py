"""
Plain-text matrix reader for the Banker's Admission Controller.

Reads the whitespace-separated layout typed at a terminal:

    N R
    available row                (R integers)
    maximum rows                 (N lines of R integers)
    allocation rows              (N lines of R integers)
    request lines, optional      (client id followed by R integers)

Blank lines and anything after '#' on a line are ignored.
"""

from typing import List, TextIO, Tuple

from models.ledger import Ledger, LedgerShapeError, initialize
from models.request import ResourceRequest
from utils.scenario_loader import ScenarioLoadError


def _tokens(stream: TextIO) -> List[Tuple[int, str]]:
    """Return (line_number, token) pairs, skipping comments."""
    tokens = []
    for line_number, line in enumerate(stream, start=1):
        for token in line.split('#', 1)[0].split():
            tokens.append((line_number, token))
    return tokens


class _TokenCursor:
    def __init__(self, stream: TextIO):
        self._tokens = _tokens(stream)
        self._position = 0
        self.line = 0

    def next_int(self, what: str) -> int:
        if self.at_end():
            raise ScenarioLoadError(f"Unexpected end of input while reading {what}")
        self.line, token = self._tokens[self._position]
        self._position += 1
        try:
            return int(token)
        except ValueError:
            raise ScenarioLoadError(f"Line {self.line}: expected an integer for {what}, got {token!r}")

    def row(self, length: int, what: str) -> List[int]:
        return [self.next_int(f"{what}[{j}]") for j in range(length)]

    def at_end(self) -> bool:
        return self._position >= len(self._tokens)


def read_matrices(stream: TextIO) -> Tuple[Ledger, List[ResourceRequest]]:
    """
    Read a ledger and trailing requests from a text stream.

    Args:
        stream: Open text stream (file or sys.stdin)

    Returns:
        Tuple of (Ledger, requests); the ledger is not yet validated

    Raises:
        ScenarioLoadError: If the input is truncated or not integral
    """
    cursor = _TokenCursor(stream)

    num_clients = cursor.next_int("client count")
    num_resources = cursor.next_int("resource type count")
    if num_clients < 0 or num_resources < 0:
        raise ScenarioLoadError(
            f"Counts must be non-negative (clients={num_clients}, resources={num_resources})"
        )

    available = cursor.row(num_resources, "available")
    maximum = [cursor.row(num_resources, f"maximum P{c}") for c in range(num_clients)]
    allocation = [cursor.row(num_resources, f"allocation P{c}") for c in range(num_clients)]

    try:
        ledger, _ = initialize(num_clients, num_resources, available, maximum, allocation)
    except LedgerShapeError as e:
        raise ScenarioLoadError(f"Invalid matrices: {e}")

    requests = []
    while not cursor.at_end():
        client_id = cursor.next_int("request client id")
        line = cursor.line
        amounts = cursor.row(num_resources, f"request from P{client_id}")
        requests.append(ResourceRequest(client_id=client_id, amounts=amounts, label=f"line {line}"))

    return ledger, requests
