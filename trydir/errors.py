"""Error taxonomy and exit code mapping for the CLI."""


class TryError(Exception):
    """Base error for trydir."""

    exit_code: int = 1


class ConfigError(TryError):
    """Invalid configuration or command usage."""

    exit_code = 2


class InvalidRepositoryUrl(TryError):
    """A clone URL with no usable repository name."""

    exit_code = 2


class InvalidDirectoryName(TryError):
    """A directory name that would leave the workspace root."""

    exit_code = 2


class ScanFailure(TryError):
    """Listing a workspace root failed."""

    exit_code = 3


class RenderFailure(TryError):
    """Writing to the terminal failed."""

    exit_code = 3


class InputFailure(TryError):
    """The terminal event source closed or errored.

    The selector treats this as a cancellation.
    """


class HistoryStoreFailure(TryError):
    """Reading or writing the workspace history failed."""

    exit_code = 3


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic exit code for an exception."""
    if isinstance(exc, TryError):
        return exc.exit_code
    if isinstance(exc, OSError):
        return 3
    return 1
