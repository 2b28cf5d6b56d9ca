"""Custom exception classes for gcptools."""


class GcpToolsError(Exception):
    """Base exception for all gcptools errors."""
    pass


class ParseError(GcpToolsError):
    """Raised when a console URL, argument string or input file cannot be parsed."""
    pass


class MissingIdentityFieldError(ParseError):
    """Raised when a parsed resource identity is missing a required field."""

    def __init__(self, field: str, source: str = ""):
        self.field = field
        self.source = source
        message = f"Missing required identity field '{field}'"
        if source:
            message += f" in: {source}"
        super().__init__(message)


class StateFetchError(GcpToolsError):
    """Raised when current resource state cannot be fetched from the provider."""
    pass


class ValidationError(GcpToolsError):
    """Raised when a desired value fails a business rule."""
    pass


class InvalidResizeError(ValidationError):
    """Raised when a resize target is not numeric or not larger than the current size."""
    pass


class PlanOrderError(GcpToolsError):
    """Raised when plan actions cannot be ordered by their dependency tiers."""
    pass


class ActionExecutionError(GcpToolsError):
    """Raised when a single action fails during EXECUTE mode."""

    def __init__(self, description: str, succeeded: int, returncode: int = 1, stderr: str = ""):
        self.description = description
        self.succeeded = succeeded
        self.returncode = returncode
        self.stderr = stderr
        message = (
            f"Action failed: {description} (exit code {returncode}). "
            f"{succeeded} action(s) succeeded before it; remaining actions were not attempted."
        )
        if stderr:
            message += f"\n{stderr.strip()}"
        super().__init__(message)


class ConfigError(GcpToolsError):
    """Raised when configuration is invalid or missing."""
    pass
