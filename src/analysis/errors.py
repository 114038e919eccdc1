"""Exception hierarchy for the analysis engine."""
from __future__ import annotations


class AnalysisError(Exception):
    """Base class for failures that abort a whole analysis."""


class NoLigandsError(AnalysisError):
    def __init__(self, message: str = "No ligands found in structure"):
        super().__init__(message)


class NoBindingSitesError(AnalysisError):
    def __init__(self, message: str = "No binding sites found"):
        super().__init__(message)


class InvalidTransitionError(AnalysisError):
    """Raised when a stage tries to move the progress state machine backwards."""


class AtomRecordError(ValueError):
    """A single atom record could not be parsed; only that line is dropped."""

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}")
