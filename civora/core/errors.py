"""
Civora error hierarchy.

Fatal errors (policy parsing, aggregation over nothing) stop a run; the rest
are counted per region or per citizen and the run carries on.
"""

from __future__ import annotations


class CivoraError(Exception):
    """Base class for every error raised by Civora."""
    pass


class PolicyParseFailure(CivoraError):
    """Raised when a policy cannot be turned into a valid descriptor."""
    pass


class RegionSourceMissing(CivoraError):
    """Raised by a population source that has no citizens for a region."""

    def __init__(self, region: str, detail: str = "") -> None:
        self.region = region
        message = f"No citizen source for region {region!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PerCitizenScoringError(CivoraError):
    """Raised when a single citizen cannot be scored."""

    def __init__(self, citizen_id: str, cause: Exception) -> None:
        self.citizen_id = citizen_id
        self.cause = cause
        super().__init__(f"Scoring failed for citizen {citizen_id!r}: {cause}")


class PersistenceError(CivoraError):
    """Raised when a record cannot be written to or read from storage."""
    pass


class OpinionAlreadyRecorded(PersistenceError):
    """Raised on a second write of the same (run, citizen) opinion."""
    pass


class AggregationError(CivoraError):
    """Raised when statistics are requested over an empty opinion set."""
    pass


class UnknownParameterSet(CivoraError):
    """Raised when a blend parameter version is not registered."""
    pass
