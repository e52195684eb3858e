"""
Exceptions raised by a review run.

Cloud misses are not errors (see review.cloud.CloudResult); only whole-run
failures are raised to the caller.
"""


class ReviewError(Exception):
    """Base class for review failures surfaced to the caller."""


class InputError(ReviewError):
    """Bad game text or analysis settings. Raised before any run state exists."""


class ParseError(InputError):
    """The PGN could not be parsed or contains illegal moves."""


class WorkerError(ReviewError):
    """A local engine worker failed more times than the retry budget allows."""


class ReportError(ReviewError):
    """The report builder rejected the evaluated positions."""

    def __init__(self, message: str = "Failed to generate report."):
        super().__init__(message)


class SaveFileError(ReviewError):
    """A saved analysis file could not be read."""

    def __init__(self, message: str = "Invalid savefile."):
        super().__init__(message)
