class GraphError(Exception):
    """Base error for all user-facing rastergraph exceptions."""


class ConfigurationError(GraphError):
    """Raised when configuration is invalid or incomplete."""


class ProjectNotInitializedError(GraphError):
    """Raised when .rastergraph metadata is missing."""


class ValidationError(GraphError):
    """Raised when model invariants fail."""


class InvalidRoleError(GraphError):
    """Raised when a file attachment role is not recognized."""


class SaveError(GraphError):
    """Raised when a resource or file attachment cannot be persisted."""


class RetrieveError(GraphError):
    """Raised when stored file content cannot be read back."""


class ContentStoreError(GraphError):
    """Raised by content store implementations when a blob operation fails."""
