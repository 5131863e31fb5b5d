"""
Custom exceptions for the availability results service.
These exceptions represent domain-specific errors and are part of the core business logic.
"""


class AnalyticsServiceError(Exception):
    """Base exception for availability service errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(message)


class RepositoryError(AnalyticsServiceError):
    """Raised when the backing store fails to execute a pipeline."""

    def __init__(self, message: str, source_error: Exception = None):
        self.source_error = source_error
        details = str(source_error) if source_error else None
        super().__init__(message, details)


class FormulaError(AnalyticsServiceError):
    """Raised when an availability/reliability computation is not finite."""

    def __init__(self, metric: str, avg_up: float, avg_down: float, avg_unknown: float):
        self.metric = metric
        self.avg_up = avg_up
        self.avg_down = avg_down
        self.avg_unknown = avg_unknown
        message = f"Non-finite {metric} for up={avg_up} down={avg_down} unknown={avg_unknown}"
        super().__init__(message)


class AuthenticationError(AnalyticsServiceError):
    """Raised when a request carries a missing or unknown API key."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConfigurationError(AnalyticsServiceError):
    """Raised when service configuration is invalid."""
    pass
