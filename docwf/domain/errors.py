"""Domain-level exceptions for the planning-document workflow engine.

Parse failures and precondition skips are never raised: parsers and appliers
return result values. Only the errors below cross component boundaries.
"""


class DocwfError(Exception):
    """Base class for engine errors."""

    pass


class ConfigurationError(DocwfError):
    """Raised when the workflow catalog or engine config is invalid.

    Fatal at startup; never raised once the engine is running.
    """

    pass


class DefinitionNotFound(ConfigurationError, LookupError):
    """Raised when a workflow name does not resolve in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown workflow: '{name}'")


class InvalidDefinition(DocwfError):
    """Raised when a definition cannot drive the requested operation."""

    pass


class MissingFile(DocwfError, FileNotFoundError):
    """Raised when a project document does not exist."""

    def __init__(self, name: str, path: str | None = None) -> None:
        self.name = name
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(f"Document '{name}' not found{location}")


class NoPendingProposals(DocwfError):
    """Raised when apply is requested with no pending proposal set."""

    pass


class ProviderError(DocwfError):
    """Raised when a provider fails (network, auth, timeout, etc.)."""

    pass


class DiffApplyError(DocwfError, ValueError):
    """Raised when no strategy can place a diff hunk in the document."""

    pass
