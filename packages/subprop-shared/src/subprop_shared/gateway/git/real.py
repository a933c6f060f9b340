"""Production implementation of git operations using subprocess."""

import shutil
from pathlib import Path

from subprop_shared.gateway.git.abc import Git, SubmoduleInfo
from subprop_shared.subprocess_utils import (
    SubprocessCommandError,
    copied_env_for_git_subprocess,
    run_subprocess_with_context,
)


def parse_gitmodules_config(output: str) -> list[SubmoduleInfo]:
    """Parse `git config --file .gitmodules --get-regexp` output.

    Each line has the form `submodule.<name>.<key> <value>`. Names may contain
    dots and slashes, so the key is split off the right-hand side.
    """
    paths: dict[str, str] = {}
    urls: dict[str, str] = {}
    order: list[str] = []

    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        key, _, value = line.partition(" ")
        if not key.startswith("submodule."):
            continue
        name, _, field = key[len("submodule.") :].rpartition(".")
        if not name:
            continue
        if name not in order:
            order.append(name)
        if field == "path":
            paths[name] = value.strip()
        elif field == "url":
            urls[name] = value.strip()

    # A section without a url cannot be followed
    return [
        SubmoduleInfo(name=name, path=paths.get(name, name), url=urls[name])
        for name in order
        if name in urls
    ]


class RealGit(Git):
    """Real implementation of git operations using subprocess."""

    def _run(self, cmd: list[str], *, operation_context: str, cwd: Path | None) -> str:
        result = run_subprocess_with_context(
            cmd,
            operation_context=operation_context,
            cwd=cwd,
            env=copied_env_for_git_subprocess(),
        )
        return result.stdout

    # ============================================================================
    # Query Operations
    # ============================================================================

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def list_submodules(self, repo_root: Path) -> list[SubmoduleInfo]:
        if not (repo_root / ".gitmodules").exists():
            return []

        result = run_subprocess_with_context(
            ["git", "config", "--file", ".gitmodules", "--get-regexp", r"^submodule\."],
            operation_context=f"read submodule manifest of {repo_root.name}",
            cwd=repo_root,
            env=copied_env_for_git_subprocess(),
            check=False,
        )
        # Exit status 1 means the manifest has no submodule entries
        if result.returncode == 1:
            return []
        if result.returncode != 0:
            raise SubprocessCommandError(
                cmd=["git", "config", "--file", ".gitmodules", "--get-regexp"],
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
                operation_context=f"read submodule manifest of {repo_root.name}",
            )
        return parse_gitmodules_config(result.stdout)

    def detect_default_branch(self, repo_root: Path) -> str:
        result = run_subprocess_with_context(
            ["git", "symbolic-ref", "--short", "refs/remotes/origin/HEAD"],
            operation_context="resolve origin/HEAD",
            cwd=repo_root,
            env=copied_env_for_git_subprocess(),
            check=False,
        )
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip().removeprefix("origin/")

        # origin/HEAD is missing on some clones; fall back to the usual names
        for candidate in ("main", "master"):
            probe = run_subprocess_with_context(
                ["git", "rev-parse", "--verify", "--quiet", f"refs/remotes/origin/{candidate}"],
                operation_context=f"check for origin/{candidate}",
                cwd=repo_root,
                env=copied_env_for_git_subprocess(),
                check=False,
            )
            if probe.returncode == 0:
                return candidate

        msg = f"Could not determine the default branch of {repo_root}"
        raise RuntimeError(msg)

    def get_remote_head_commit(self, url: str) -> str:
        stdout = self._run(
            ["git", "ls-remote", url, "HEAD"],
            operation_context=f"read default branch head of {url}",
            cwd=None,
        )
        for line in stdout.splitlines():
            sha, _, ref = line.partition("\t")
            if ref.strip() == "HEAD" and sha:
                return sha.strip()

        msg = f"Remote {url} did not report a HEAD commit"
        raise RuntimeError(msg)

    def has_staged_changes(self, repo_root: Path) -> bool:
        result = run_subprocess_with_context(
            ["git", "diff", "--cached", "--quiet"],
            operation_context="check for staged changes",
            cwd=repo_root,
            env=copied_env_for_git_subprocess(),
            check=False,
        )
        if result.returncode == 0:
            return False
        if result.returncode == 1:
            return True
        raise SubprocessCommandError(
            cmd=["git", "diff", "--cached", "--quiet"],
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            operation_context="check for staged changes",
        )

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def clone(self, url: str, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        self._run(
            ["git", "clone", url, str(destination)],
            operation_context=f"clone {url}",
            cwd=None,
        )

    def fetch(self, repo_root: Path) -> None:
        self._run(
            ["git", "fetch", "--prune", "origin"],
            operation_context=f"fetch {repo_root.name}",
            cwd=repo_root,
        )

    def checkout_branch(self, repo_root: Path, branch: str) -> None:
        self._run(
            ["git", "checkout", branch],
            operation_context=f"checkout branch '{branch}'",
            cwd=repo_root,
        )

    def pull_branch(self, repo_root: Path, remote: str, branch: str) -> None:
        self._run(
            ["git", "pull", "--ff-only", remote, branch],
            operation_context=f"pull {remote}/{branch}",
            cwd=repo_root,
        )

    def sync_submodules(self, repo_root: Path) -> None:
        self._run(
            ["git", "submodule", "sync", "--recursive"],
            operation_context="sync submodule urls",
            cwd=repo_root,
        )
        self._run(
            ["git", "submodule", "update", "--init", "--recursive"],
            operation_context="initialize submodules",
            cwd=repo_root,
        )

    def reinit_submodule(self, repo_root: Path, submodule_path: str) -> None:
        self._run(
            ["git", "submodule", "deinit", "--force", "--", submodule_path],
            operation_context=f"deinit submodule {submodule_path}",
            cwd=repo_root,
        )
        checkout_dir = repo_root / submodule_path
        if checkout_dir.exists():
            shutil.rmtree(checkout_dir)
        module_git_dir = repo_root / ".git" / "modules" / submodule_path
        if module_git_dir.exists():
            shutil.rmtree(module_git_dir)
        self._run(
            ["git", "submodule", "update", "--init", "--recursive", "--", submodule_path],
            operation_context=f"re-initialize submodule {submodule_path}",
            cwd=repo_root,
        )

    def checkout_commit(self, repo_root: Path, commit: str) -> None:
        self._run(
            ["git", "fetch", "origin"],
            operation_context=f"fetch {repo_root.name}",
            cwd=repo_root,
        )
        self._run(
            ["git", "checkout", "--detach", commit],
            operation_context=f"checkout commit {commit}",
            cwd=repo_root,
        )

    def create_or_reset_branch(self, repo_root: Path, branch: str) -> None:
        self._run(
            ["git", "checkout", "-B", branch],
            operation_context=f"create branch '{branch}'",
            cwd=repo_root,
        )

    def add_all(self, repo_root: Path) -> None:
        self._run(
            ["git", "add", "-A"],
            operation_context="stage all changes",
            cwd=repo_root,
        )

    def commit(self, repo_root: Path, message: str) -> None:
        self._run(
            ["git", "commit", "-m", message],
            operation_context="create commit",
            cwd=repo_root,
        )

    def force_push(self, repo_root: Path, remote: str, branch: str) -> None:
        self._run(
            ["git", "push", "--force", remote, branch],
            operation_context=f"force-push '{branch}' to {remote}",
            cwd=repo_root,
        )
