"""
engine/errors.py
================

Typed rejections raised by the scoring engine.  Every failure is a rejection
of a single operation: the match state is left exactly as it was before the
call, so the caller can correct the input and retry.

The HTTP layer maps each class to a status code through ``status_code``.
"""


class ScoringError(Exception):
    """Base class for all engine rejections."""

    status_code = 400
    kind = "scoring_error"

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {"error": self.message, "kind": self.kind}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFound(ScoringError):
    """A match or innings reference does not resolve."""

    status_code = 404
    kind = "not_found"


class InvalidState(ScoringError):
    """Operation attempted outside its valid lifecycle state."""

    status_code = 409
    kind = "invalid_state"


class RuleViolation(ScoringError):
    """A cricket sequencing rule would be broken."""

    status_code = 422
    kind = "rule_violation"


class ValidationError(ScoringError):
    """Malformed input: missing field, wrong type, out-of-range count."""

    status_code = 400
    kind = "validation_error"


class ConcurrencyConflict(ScoringError):
    """Another writer committed against the same match first; retry."""

    status_code = 409
    kind = "concurrency_conflict"
