"""Application layer errors for the sales engine."""


class ApplicationError(Exception):
    """Base exception for all application layer errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize application error.

        Args:
            message: Error message (must be PII-safe)
        """
        super().__init__(message)
        self.message = message


class ValidationError(ApplicationError):
    """Raised when input validation fails."""

    def __init__(self, field: str, message: str) -> None:
        """
        Initialize validation error.

        Args:
            field: Field name that failed validation
            message: Error message (must be PII-safe)
        """
        super().__init__(f"{field}: {message}")
        self.field = field
        self.validation_message = message


class ConfigurationError(ApplicationError):
    """Raised when a configuration value is missing or invalid."""

    def __init__(self, key: str, message: str) -> None:
        """
        Initialize configuration error.

        Args:
            key: Configuration key
            message: Error message
        """
        super().__init__(f"{key}: {message}")
        self.key = key


class CalculationNotFoundError(ApplicationError):
    """Raised when a custom calculation id does not exist."""

    def __init__(self, calculation_id: str) -> None:
        super().__init__(f"Calculation {calculation_id} not found")
        self.calculation_id = calculation_id
