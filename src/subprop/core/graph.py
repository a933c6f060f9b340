"""Discovery of the submodule dependency graph.

The graph is explored breadth-first from the root repositories. Every
repository is assigned the length of the longest submodule path from any root
(roots sit at level 0). Processing repositories in descending level order
guarantees every dependency is handled before anything that depends on it.
"""

import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from subprop.core.errors import DependencyCycleError
from subprop.core.repo_ref import RepoRef, resolve_submodule_url
from subprop_shared.gateway.git.abc import Git, SubmoduleInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoGraph:
    """Longest-path levels and URLs of every repository reachable from the roots.

    Both mappings preserve first-discovery order. excluded names the ignored
    repositories that were encountered together with all of their submodules,
    transitively; none of them appear in levels.
    """

    levels: dict[str, int]
    urls: dict[str, str]
    excluded: frozenset[str] = frozenset()

    def processing_order(self) -> tuple[str, ...]:
        return processing_order(self.levels)


def processing_order(levels: dict[str, int]) -> tuple[str, ...]:
    """Sort repository names by descending level.

    Ties keep the order of the input mapping, so identical inputs always yield
    the same order.
    """
    return tuple(sorted(levels, key=lambda name: -levels[name]))


def read_submodule_manifest(git: Git, repo_root: Path) -> list[SubmoduleInfo]:
    """List declared submodules, treating an unreadable manifest as empty."""
    try:
        return git.list_submodules(repo_root)
    except RuntimeError as e:
        logger.warning("Could not read submodule manifest of %s: %s", repo_root, e)
        return []


def ensure_local_clone(git: Git, repo: RepoRef, clone_root: Path) -> Path:
    """Clone repo into clone_root/<name> unless that path already exists."""
    checkout = clone_root / repo.name
    if not git.path_exists(checkout):
        logger.debug("Cloning %s into %s", repo.url, checkout)
        git.clone(repo.url, checkout)
    return checkout


def build_repo_graph(
    git: Git,
    *,
    roots: Sequence[RepoRef],
    ignore: frozenset[str],
    clone_root: Path,
) -> RepoGraph:
    """Discover every repository reachable from roots through submodules.

    A repository reached through several parents is traversed once per
    discovery so that its recorded level, and the levels of everything below
    it, reflect the longest path.

    Args:
        git: Git gateway used to clone repositories and read their manifests
        roots: Root repositories; each starts at level 0
        ignore: Repository names excluded together with all of their
            submodules, however else those are reachable
        clone_root: Directory holding one local clone per repository

    Raises:
        DependencyCycleError: If the submodule relation contains a cycle
        RuntimeError: If cloning a repository fails
    """
    levels: dict[str, int] = {}
    urls: dict[str, str] = {}
    for root in roots:
        levels.setdefault(root.name, 0)
        urls.setdefault(root.name, root.url)

    encountered_ignored: dict[str, RepoRef] = {}
    queue: deque[RepoRef] = deque(roots)
    while queue:
        repo = queue.popleft()
        checkout = ensure_local_clone(git, repo, clone_root)
        parent_level = levels[repo.name]

        for submodule in read_submodule_manifest(git, checkout):
            child = RepoRef.discovered(resolve_submodule_url(repo.url, submodule.url))
            if child.name in ignore:
                logger.debug("Ignoring submodule %s of %s", child.name, repo.name)
                encountered_ignored.setdefault(child.name, child)
                continue

            candidate = parent_level + 1
            # Without a cycle no path can be longer than the number of repositories.
            if candidate > len(levels):
                raise DependencyCycleError(child.name)
            if candidate > levels.get(child.name, -1):
                levels[child.name] = candidate
            urls.setdefault(child.name, child.url)
            queue.append(child)

    excluded = _ignored_closure(git, list(encountered_ignored.values()), clone_root)
    root_names = {root.name for root in roots}
    for name in excluded - root_names:
        levels.pop(name, None)
        urls.pop(name, None)

    logger.debug("Discovered %d repositories: %s", len(levels), levels)
    return RepoGraph(levels=levels, urls=urls, excluded=frozenset(excluded - root_names))


def _ignored_closure(git: Git, ignored: list[RepoRef], clone_root: Path) -> set[str]:
    """Names of the ignored repositories and everything below them.

    Their manifests are read only to learn what to leave out; none of them is
    levelled.
    """
    excluded = {repo.name for repo in ignored}
    queue: deque[RepoRef] = deque(ignored)
    while queue:
        repo = queue.popleft()
        try:
            checkout = ensure_local_clone(git, repo, clone_root)
        except RuntimeError as e:
            logger.warning("Could not clone ignored repository %s: %s", repo.name, e)
            continue
        for submodule in read_submodule_manifest(git, checkout):
            child = RepoRef.discovered(resolve_submodule_url(repo.url, submodule.url))
            if child.name not in excluded:
                excluded.add(child.name)
                queue.append(child)
    return excluded
