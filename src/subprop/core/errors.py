"""Errors that abort a propagation run before any repository is processed."""


class PropagationInputError(Exception):
    """Base class for fatal input errors.

    These are raised before per-repository state exists; the CLI reports them
    and exits non-zero without rendering a status table.
    """


class InvalidRepoUrlError(PropagationInputError):
    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Not a valid repository URL (no recognizable scheme): {url!r}")


class DependencyCycleError(PropagationInputError):
    def __init__(self, repo_name: str) -> None:
        self.repo_name = repo_name
        super().__init__(f"Submodule graph contains a cycle through {repo_name}")


class GraphBuildError(PropagationInputError):
    """Discovering the submodule graph failed (for example a clone failed)."""


class BaselineSnapshotError(PropagationInputError):
    """The starting commit of a repository could not be read."""


class StateNotFoundError(PropagationInputError):
    """No usable persisted propagation state exists to resume from."""
