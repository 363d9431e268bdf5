"""
Error taxonomy for the ticketing pipeline.

Routers translate these into HTTP responses:
  ConfigurationError → 500
  ValidationError    → 400
  UpstreamError      → 500 (generic message, cause logged)
  NotFoundError      → user-facing message
  ConflictError      → user-facing message
  PersistenceError   → 500
Inside post-acknowledgment callback processing they are only logged.
"""


class TicketingError(Exception):
    """Base class for every error raised by the service layer."""


class ConfigurationError(TicketingError):
    pass


class ValidationError(TicketingError):
    pass


class UpstreamError(TicketingError):
    pass


class NotFoundError(TicketingError):
    pass


class ConflictError(TicketingError):
    pass


class PersistenceError(TicketingError):
    pass
