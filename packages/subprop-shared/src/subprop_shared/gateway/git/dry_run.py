"""No-op Git wrapper for dry-run mode.

Local working-copy operations (clone, fetch, checkout, submodule updates,
staging) are delegated so a dry run shows which repositories would change.
Operations that create history or touch a remote only print what would
happen.
"""

from pathlib import Path

from subprop_shared.gateway.git.abc import Git, SubmoduleInfo
from subprop_shared.output.output import user_output


class DryRunGit(Git):
    """Wrapper that prevents commits and pushes.

    Usage:
        real_ops = RealGit()
        noop_ops = DryRunGit(real_ops)
    """

    def __init__(self, wrapped: Git) -> None:
        """Create a dry-run wrapper around a Git implementation.

        Args:
            wrapped: The Git implementation to wrap (usually RealGit or FakeGit)
        """
        self._wrapped = wrapped

    # Read-only operations: delegate to wrapped implementation

    def path_exists(self, path: Path) -> bool:
        return self._wrapped.path_exists(path)

    def list_submodules(self, repo_root: Path) -> list[SubmoduleInfo]:
        return self._wrapped.list_submodules(repo_root)

    def detect_default_branch(self, repo_root: Path) -> str:
        return self._wrapped.detect_default_branch(repo_root)

    def get_remote_head_commit(self, url: str) -> str:
        return self._wrapped.get_remote_head_commit(url)

    def has_staged_changes(self, repo_root: Path) -> bool:
        return self._wrapped.has_staged_changes(repo_root)

    # Local working-copy operations: delegate

    def clone(self, url: str, destination: Path) -> None:
        self._wrapped.clone(url, destination)

    def fetch(self, repo_root: Path) -> None:
        self._wrapped.fetch(repo_root)

    def checkout_branch(self, repo_root: Path, branch: str) -> None:
        self._wrapped.checkout_branch(repo_root, branch)

    def pull_branch(self, repo_root: Path, remote: str, branch: str) -> None:
        self._wrapped.pull_branch(repo_root, remote, branch)

    def sync_submodules(self, repo_root: Path) -> None:
        self._wrapped.sync_submodules(repo_root)

    def reinit_submodule(self, repo_root: Path, submodule_path: str) -> None:
        self._wrapped.reinit_submodule(repo_root, submodule_path)

    def checkout_commit(self, repo_root: Path, commit: str) -> None:
        self._wrapped.checkout_commit(repo_root, commit)

    def create_or_reset_branch(self, repo_root: Path, branch: str) -> None:
        self._wrapped.create_or_reset_branch(repo_root, branch)

    def add_all(self, repo_root: Path) -> None:
        self._wrapped.add_all(repo_root)

    # History and remote mutations: print only

    def commit(self, repo_root: Path, message: str) -> None:
        user_output(f"[DRY RUN] Would run: git commit -m '{message}' in {repo_root.name}")

    def force_push(self, repo_root: Path, remote: str, branch: str) -> None:
        user_output(f"[DRY RUN] Would run: git push --force {remote} {branch} in {repo_root.name}")
