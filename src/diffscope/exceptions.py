"""diffscope exceptions."""

from typing import TYPE_CHECKING, Any

from diffscope.enums import DetectionErrorKind, DiffTarget

if TYPE_CHECKING:
    from pathlib import Path

    from diffscope.batch import BatchReport


class DiffscopeError(Exception):
    """Base exception for diffscope errors."""


class DetectionError(DiffscopeError):
    """Raised when a repository or its staged content cannot be inspected.

    Attributes:
        kind: The failure category.
        repository_path: The repository the detection ran against, if known.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        kind: DetectionErrorKind,
        message: str,
        *,
        repository_path: Path | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize with failure kind, message and repository context."""
        super().__init__(message)
        self.kind: DetectionErrorKind = kind
        self.message: str = message
        self.repository_path: Path | None = repository_path
        self.cause: BaseException | None = cause


class DiffRetrievalError(DiffscopeError):
    """Raised when diff text cannot be fetched for a target.

    Attributes:
        target: The diff target that was requested.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        target: DiffTarget,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize with error message and target context."""
        super().__init__(message)
        self.target: DiffTarget = target
        self.cause: BaseException | None = cause


class ProviderError(DiffscopeError):
    """Raised by reference providers when a VCS command fails.

    Attributes:
        command: The command that failed.
        repository_path: Working copy the command ran in.
    """

    def __init__(
        self,
        message: str,
        *,
        command: tuple[str, ...] = (),
        repository_path: Path | None = None,
    ) -> None:
        """Initialize with error message and command context."""
        super().__init__(message)
        self.command: tuple[str, ...] = command
        self.repository_path: Path | None = repository_path


class BatchCancelledError(DiffscopeError):
    """Raised when a batch is cancelled between items.

    Attributes:
        report: Results collected before cancellation was observed.
    """

    def __init__(self, message: str, *, report: BatchReport) -> None:
        """Initialize with error message and the partial report."""
        super().__init__(message)
        self.report: BatchReport = report


class ConfigError(DiffscopeError):
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
