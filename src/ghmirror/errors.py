from typing import Sequence


class MirrorError(Exception):
    """Base exception of ghmirror."""


class FatalError(MirrorError):
    """Stops the whole run."""


class FatalListingError(FatalError):
    pass


class FatalCredentialError(FatalError):
    pass


class ConfigError(FatalError):
    pass


class RepositoryError(MirrorError):
    """Stops processing of one repository only."""

    def __init__(self, full_name: str, message: str):
        super().__init__(message)
        self.full_name = full_name

    def __str__(self) -> str:
        return f"{self.full_name}: {super().__str__()}"


class DirectoryCreationError(RepositoryError):
    pass


class CloneFailed(RepositoryError):
    pass


class FetchFailed(RepositoryError):
    pass


class GCFailed(RepositoryError):
    pass


class CommandError(Exception):
    def __init__(
        self,
        name: str,
        args: Sequence[str],
        returncode: int | None,
        output: str,
    ):
        super().__init__(f"{name} {' '.join(args)}: exit status {returncode}")
        self.name = name
        self.cmd_args = tuple(args)
        self.returncode = returncode
        self.output = output
