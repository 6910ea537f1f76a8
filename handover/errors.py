"""Exception hierarchy for Handover."""


class HandoverError(Exception):
    """Base class for all Handover errors."""
    pass


class PathOutsideScopeError(HandoverError):
    """A source path does not live under the root it is mapped from."""

    def __init__(self, source_root, source_path):
        self.source_root = source_root
        self.source_path = source_path
        super().__init__(f"{source_path} is not under {source_root}")


class DirectoryCreateError(HandoverError):
    """A destination directory could not be created."""
    pass


class FileCopyError(HandoverError):
    """A single file could not be copied."""
    pass


class CopyTimeoutError(FileCopyError):
    """A single file copy exceeded its deadline."""
    pass


class SourceRootError(HandoverError):
    """The source root of a run is missing or unreadable."""
    pass


class LogSinkError(HandoverError):
    """A run log sink could not be created or written."""
    pass


class CommandError(HandoverError):
    """An external command failed or timed out."""
    pass


class ToolInstallError(HandoverError):
    """The optional recovery utility could not be installed."""
    pass


class RecoveryError(HandoverError):
    """Base class for snapshot recovery failures.

    Recovery errors are returned to the caller inside a ``RecoveryResult``
    rather than raised out of the engine.
    """
    pass


class SnapshotUnavailable(RecoveryError):
    """No usable snapshot exists for the volume."""
    pass


class FileNotFoundInSnapshot(RecoveryError):
    """The requested path does not exist inside the chosen snapshot."""
    pass


class CopyFailed(RecoveryError):
    """The file exists in the snapshot but copying it out failed."""
    pass
