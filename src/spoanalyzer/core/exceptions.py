"""Custom exceptions for the SPO Permissions Analyzer."""


class SpoAnalyzerException(Exception):
    """Base exception for all analyzer-specific exceptions."""

    pass


class InvalidStateTransitionError(SpoAnalyzerException):
    """Raised when attempting an invalid operation state transition."""

    pass


class OperationBusyError(SpoAnalyzerException):
    """Raised when an operation is requested while another one is running."""

    def __init__(self, message: str = "Another operation is already running"):
        super().__init__(message)


class MissingInputError(SpoAnalyzerException):
    """Raised when a request lacks a value the operation needs."""

    pass


class NotConnectedError(MissingInputError):
    """Raised when a live operation is requested without tenant credentials."""

    def __init__(
        self,
        message: str = "Not connected to SharePoint. Connect or start demo mode first.",
    ):
        super().__init__(message)


class AuthenticationError(SpoAnalyzerException):
    """Raised when interactive or device code authentication fails."""

    pass


class TenantConnectionError(SpoAnalyzerException):
    """Raised when a tenant call cannot be made or fails."""

    pass
