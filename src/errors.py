"""Error types and reported issues for the layout pipeline.

Data problems never escape into the rendering layer. They are recorded as
``LayoutIssue`` entries on the result; the exception classes exist so each
problem has a name and can be raised inside a stage and converted at the
boundary.
"""

from dataclasses import dataclass, field

REFERENTIAL_ERROR = "referential-error"
NO_ROOT = "no-root"
CYCLE_ASSUMPTION_VIOLATION = "cycle-assumption-violation"
INTERNAL_ERROR = "internal-error"


class LineageLayoutError(Exception):
    """Base class for layout pipeline errors."""

    code = INTERNAL_ERROR

    def __init__(self, message: str, person_ids=()):
        super().__init__(message)
        self.person_ids = tuple(person_ids)


class ReferentialError(LineageLayoutError):
    """An edge references a person id that is not in the snapshot."""

    code = REFERENTIAL_ERROR


class NoRootError(LineageLayoutError):
    """A non-empty scope has no person usable as a root."""

    code = NO_ROOT


class CycleAssumptionViolation(LineageLayoutError):
    """A person turned out to be their own ancestor."""

    code = CYCLE_ASSUMPTION_VIOLATION


class InvalidParameterError(LineageLayoutError, ValueError):
    """View parameters are out of range."""


@dataclass(frozen=True)
class LayoutIssue:
    code: str
    message: str
    person_ids: tuple = field(default_factory=tuple)

    @classmethod
    def from_error(cls, error: Exception) -> "LayoutIssue":
        if isinstance(error, LineageLayoutError):
            return cls(error.code, str(error), error.person_ids)
        return cls(INTERNAL_ERROR, f"{type(error).__name__}: {error}")
