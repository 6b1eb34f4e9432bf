"""
Error classes for the token manager.

Rejected credentials are not errors: verify, exchange and refresh report
them as negative results. These exceptions cover wiring and storage faults.
"""


class TokenManagerError(Exception):
    """Base token manager error."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "TOKEN_MANAGER_ERROR"
        self.details = details or {}


class ConfigurationError(TokenManagerError):
    """Manager is wired or configured incorrectly."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message, error_code or "CONFIGURATION_ERROR", details)


class MissingStorageError(ConfigurationError):
    """No storage adapter was registered before use."""

    def __init__(self, message: str = "Storage adapter required", details: dict = None):
        super().__init__(message, "MISSING_STORAGE", details)


class StorageError(TokenManagerError):
    """Storage adapter reported a failed write."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message, error_code or "STORAGE_ERROR", details)
