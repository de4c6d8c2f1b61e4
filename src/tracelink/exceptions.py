"""Tracelink exceptions."""

from pathlib import Path
from typing import Any


class TracelinkError(Exception):
    """Base exception for tracelink errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(TracelinkError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Storage Exceptions
# =============================================================================


class StorageError(TracelinkError):
    """Base exception for workspace storage errors."""


class StorageIOError(StorageError):
    """Raised when a workspace file cannot be read, written, or deleted.

    Attributes:
        path: Workspace-relative path of the file that caused the error.
        operation: The operation that failed ("read", "write", "delete", "list").
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and I/O context.

        Args:
            message: Human-readable error message.
            path: Workspace-relative path of the file that caused the error.
            operation: The operation that failed.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.path: str = path
        self.operation: str = operation
        self.cause: Exception | None = cause


class StorageParseError(StorageError):
    """Raised when file content cannot be parsed.

    Attributes:
        path: Workspace-relative path of the file, if known.
        line: Line number where the parse error occurred.
        content_type: The content type that failed to parse.
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        line: int | None = None,
        content_type: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and parse context.

        Args:
            message: Human-readable error message.
            path: Workspace-relative path of the file, if known.
            line: Line number where the parse error occurred.
            content_type: The content type that failed to parse.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.path: str | None = path
        self.line: int | None = line
        self.content_type: str = content_type
        self.cause: Exception | None = cause


# =============================================================================
# Artifact Exceptions
# =============================================================================


class ArtifactError(TracelinkError):
    """Base exception for artifact operations."""


class ArtifactNotFoundError(ArtifactError, KeyError):
    """Raised when an artifact cannot be found.

    Attributes:
        artifact_id: The ID of the artifact that was not found.
    """

    def __init__(self, message: str, *, artifact_id: str | None = None) -> None:
        """Initialize with error message and artifact context.

        Args:
            message: Human-readable error message.
            artifact_id: The ID of the artifact that was not found.
        """
        super().__init__(message)
        self.artifact_id: str | None = artifact_id


class ArtifactValidationError(ArtifactError, ValueError):
    """Raised when artifact data is invalid.

    Attributes:
        artifact_id: The ID of the artifact, if known.
        field: The field that failed validation, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        artifact_id: str | None = None,
        field: str | None = None,
    ) -> None:
        """Initialize with error message and validation context.

        Args:
            message: Human-readable error message.
            artifact_id: The ID of the artifact, if known.
            field: The field that failed validation, if known.
        """
        super().__init__(message)
        self.artifact_id: str | None = artifact_id
        self.field: str | None = field


# =============================================================================
# Link Exceptions
# =============================================================================


class LinkError(TracelinkError):
    """Base exception for link operations."""


class LinkNotFoundError(LinkError, KeyError):
    """Raised when a standalone link cannot be found.

    Attributes:
        link_id: The ID of the link that was not found.
    """

    def __init__(self, message: str, *, link_id: str | None = None) -> None:
        """Initialize with error message and link context."""
        super().__init__(message)
        self.link_id: str | None = link_id


class InvalidLinkError(LinkError, ValueError):
    """Raised when a link would violate the edge invariants.

    Self-loops and duplicate ``(source, target, type)`` triples are rejected.

    Attributes:
        source_id: Source artifact ID of the rejected link.
        target_id: Target artifact ID of the rejected link.
        link_type: Link type of the rejected link.
    """

    def __init__(
        self,
        message: str,
        *,
        source_id: str,
        target_id: str,
        link_type: str,
    ) -> None:
        """Initialize with error message and edge context."""
        super().__init__(message)
        self.source_id: str = source_id
        self.target_id: str = target_id
        self.link_type: str = link_type


# =============================================================================
# Project Exceptions
# =============================================================================


class ProjectError(TracelinkError):
    """Base exception for project operations."""


class ProjectNotFoundError(ProjectError, KeyError):
    """Raised when a project cannot be found.

    Attributes:
        project_id: The ID of the project that was not found.
    """

    def __init__(self, message: str, *, project_id: str | None = None) -> None:
        """Initialize with error message and project context."""
        super().__init__(message)
        self.project_id: str | None = project_id


class DuplicateProjectError(ProjectError, ValueError):
    """Raised when a project name is already taken.

    Attributes:
        name: The conflicting project name.
    """

    def __init__(self, message: str, *, name: str) -> None:
        """Initialize with error message and project name."""
        super().__init__(message)
        self.name: str = name


# =============================================================================
# ID Allocation Exceptions
# =============================================================================


class IdAllocationError(TracelinkError):
    """Base exception for identifier allocation."""


class UnknownArtifactTypeError(IdAllocationError, ValueError):
    """Raised when an ID is requested for an unconfigured kind.

    This is a programming error and is never retried.

    Attributes:
        kind: The requested kind.
        known_kinds: The kinds that are configured.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        known_kinds: tuple[str, ...] = (),
    ) -> None:
        """Initialize with error message and kind context.

        Args:
            message: Human-readable error message.
            kind: The requested kind.
            known_kinds: The kinds that are configured.
        """
        super().__init__(message)
        self.kind: str = kind
        self.known_kinds: tuple[str, ...] = known_kinds


class CounterOverflowError(IdAllocationError, ValueError):
    """Raised when a counter cannot hold the requested reservation.

    Attributes:
        kind: The counter kind.
        value: The value that was rejected.
    """

    def __init__(self, message: str, *, kind: str, value: int) -> None:
        """Initialize with error message and counter context."""
        super().__init__(message)
        self.kind: str = kind
        self.value: int = value


# =============================================================================
# Baseline Exceptions
# =============================================================================


class BaselineError(TracelinkError):
    """Base exception for baseline operations."""


class BaselineNotFoundError(BaselineError, KeyError):
    """Raised when a baseline cannot be found.

    Attributes:
        baseline_id: The ID of the baseline that was not found.
    """

    def __init__(self, message: str, *, baseline_id: str | None = None) -> None:
        """Initialize with error message and baseline context."""
        super().__init__(message)
        self.baseline_id: str | None = baseline_id


class DuplicateBaselineError(BaselineError, ValueError):
    """Raised when a baseline tag already exists in the project namespace.

    Attributes:
        tag_name: The conflicting tag name.
    """

    def __init__(self, message: str, *, tag_name: str) -> None:
        """Initialize with error message and tag context."""
        super().__init__(message)
        self.tag_name: str = tag_name


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(TracelinkError):
    """Base exception for version-control repository errors."""


class RepositoryNotInitializedError(RepositoryError):
    """Raised when no git repository is found.

    Attributes:
        path: The directory that was searched for .git.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The directory that was searched for .git.
        """
        super().__init__(message)
        self.path: Path | None = path


class RepositoryConflictError(RepositoryError):
    """Raised when a commit conflict is detected.

    Attributes:
        path: The repository root where the conflict occurred.
        details: Additional details about the conflict.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        details: str | None = None,
    ) -> None:
        """Initialize with error message and conflict context.

        Args:
            message: Human-readable error message.
            path: The repository root where the conflict occurred.
            details: Additional details about the conflict.
        """
        super().__init__(message)
        self.path: Path | None = path
        self.details: str | None = details


class RepositoryPathViolationError(RepositoryError):
    """Raised when attempting to operate on files outside the repository.

    Attributes:
        path: The path that violated the constraint.
        root: The repository root directory.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        root: Path | None = None,
    ) -> None:
        """Initialize with error message and path violation context."""
        super().__init__(message)
        self.path: Path | str | None = path
        self.root: Path | None = root


class RemoteSyncError(RepositoryError):
    """Raised when fetching from or pushing to a remote fails.

    Attributes:
        remote: The remote name or URL.
        operation: The operation that failed ("fetch" or "push").
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        remote: str,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and remote context."""
        super().__init__(message)
        self.remote: str = remote
        self.operation: str = operation
        self.cause: Exception | None = cause
