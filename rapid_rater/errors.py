# --------------------------- rapid_rater/errors.py ----------------------------
"""
Rapid Rater · Error Taxonomy

Adapter failures are raised as typed exceptions and caught at the
conversation engine boundary, where each one becomes a single user-facing
message. Missing fields and validation issues are not exceptions; they are
ordinary values produced by the field schema.
"""


class RapidRaterError(Exception):
    """Base class for every failure an adapter can report to the engine."""


class ExtractionError(RapidRaterError):
    """The extraction service returned something that is not a field object."""


class TranscriptionError(RapidRaterError):
    """A voice note could not be turned into text."""


class QuoteExecutionError(RapidRaterError):
    """The Rapid Rater form could not be driven to a result."""


class DeliveryError(RapidRaterError):
    """The quote email could not be sent."""
