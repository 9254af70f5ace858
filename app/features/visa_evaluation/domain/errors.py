"""
Exceptions raised by the visa evaluation engines.
"""


class VisaEvaluationError(Exception):
    """Base exception for visa evaluation errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class SchemaNotFoundError(VisaEvaluationError):
    """Raised when no rule set is registered for a visa/application type pair."""

    def __init__(self, visa_type: str, application_type: str):
        super().__init__(
            f"No evaluation schema registered for {visa_type}/{application_type}",
            recoverable=True,
        )
        self.visa_type = visa_type
        self.application_type = application_type


class DataIntegrityError(VisaEvaluationError):
    """Raised when rule tables or category data are structurally invalid."""

    def __init__(self, message: str, category: str | None = None):
        super().__init__(message, recoverable=False)
        self.category = category


class RegistryLoadError(DataIntegrityError):
    """Raised when the schema registry file cannot be parsed or validated."""

    pass
