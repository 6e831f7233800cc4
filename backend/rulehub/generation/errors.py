"""Exceptions raised by the rule generation engine and its collaborators."""


class RuleHubError(Exception):
    """Base class for Rule Hub errors."""


class RepositoryError(RuleHubError):
    """Raised when a repository or store operation fails."""


class StorageError(RuleHubError):
    """Raised when an artifact cannot be stored."""


class PackageGenerationError(RuleHubError):
    """Raised when a package cannot be generated.

    Wraps the underlying failure so callers never see collaborator error types.
    """

    def __init__(self, message: str = "Failed to generate rule package"):
        self.message = message
        super().__init__(message)


class UnsupportedFormatError(PackageGenerationError):
    """Raised when no emitter exists for the requested output format."""

    def __init__(self, output_format: str):
        self.output_format = output_format
        super().__init__(f"Unsupported output format: {output_format}")
