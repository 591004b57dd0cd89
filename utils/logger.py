"""
Logger utility for the Banker's Admission Controller.

Prints admission decisions to the console and, optionally, mirrors them
to a log file. Debug lines appear only in verbose mode.
"""

from typing import List, Optional, Sequence, TextIO
from datetime import datetime


LEVEL_PREFIXES = {
    "info": "",
    "debug": "[DEBUG] ",
    "warning": "[WARNING] ",
    "error": "[ERROR] ",
}


def format_sequence(sequence: Optional[Sequence[int]]) -> str:
    """Render a safe sequence as client labels, e.g. 'P1 -> P0'."""
    if not sequence:
        return "(empty)"
    return " -> ".join(f"P{client}" for client in sequence)


class AdmissionLogger:
    """
    Logger for admission decisions.

    Format: "Request N: PX requests [a, b, c] - GRANTED/DENIED (reason)"

    Use as a context manager so the mirror file is closed when the run ends.
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None):
        """
        Args:
            verbose: Also print debug lines (ledger dumps, replay checks)
            log_file: Optional path that receives a copy of every printed line
        """
        self.verbose = verbose
        self.log_file = log_file
        self.file_handle: Optional[TextIO] = None

        if log_file:
            self.file_handle = open(log_file, 'w', encoding='utf-8')
            stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Admission Log - {stamp}\n{'=' * 60}\n\n")

    def __enter__(self) -> "AdmissionLogger":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.close()
        return False

    def log(self, message: str, level: str = "info") -> None:
        """
        Print a message with its level prefix and mirror it to the log file.

        Raises:
            ValueError: For a level other than info, debug, warning or error
        """
        if level not in LEVEL_PREFIXES:
            raise ValueError(f"Unknown log level: {level!r}")
        if level == "debug" and not self.verbose:
            return

        line = LEVEL_PREFIXES[level] + message
        print(line)
        if self.file_handle:
            self.file_handle.write(line + "\n")
            self.file_handle.flush()

    def log_request(
        self,
        number: int,
        client_id: int,
        request: List[int],
        granted: bool,
        reason: str,
        safe_sequence: Optional[Sequence[int]] = None
    ) -> None:
        """
        Log an admission decision.

        Args:
            number: 1-based request number within the run
            client_id: Requesting client
            request: Requested instances per resource type
            granted: Whether the request was granted
            reason: Reason for the decision
            safe_sequence: Safe sequence after a grant
        """
        if granted:
            detail = f"GRANTED (safe sequence: {format_sequence(safe_sequence)})"
        else:
            detail = f"DENIED ({reason})"
        self.log(f"Request {number}: P{client_id} requests {list(request)} - {detail}")

    def log_initial_check(self, is_valid: bool, is_safe: bool, safe_sequence: Optional[Sequence[int]]) -> None:
        """Log the result of checking the ledger before any request."""
        if not is_valid:
            self.log("Initial ledger is malformed (negative values or allocation above maximum)", "error")
        elif is_safe:
            self.log(f"Initial state is SAFE (sequence: {format_sequence(safe_sequence)})")
        else:
            self.log("Initial state is UNSAFE - no client ordering can finish", "warning")

    def log_ledger_state(self, label: str, state_str: str) -> None:
        """
        Log ledger snapshot.

        Args:
            label: When the snapshot was taken
            state_str: Formatted ledger
        """
        if self.verbose:
            self.log(f"{label}:\n{state_str}", "debug")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None
