"""Single-slot cache of the most recently computed processing order.

Discovering the graph clones every reachable repository, so the order computed
for a root set is kept in one JSON document and reused while the root set is
unchanged.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from subprop.core.graph import build_repo_graph
from subprop.core.repo_ref import RepoRef, repo_name_from_url
from subprop_shared.gateway.git.abc import Git

logger = logging.getLogger(__name__)

ORDER_CACHE_VERSION = 1


@dataclass(frozen=True)
class CachedOrder:
    """A persisted processing order.

    Attributes:
        root_list: Root URLs the order was computed for
        repo_order: Repository names in processing order
        repo_urls: Repository name -> URL for every entry of repo_order
        ignore: Ignore list the order was computed with
        excluded: Ignored repositories and their submodules left out of the order
    """

    root_list: tuple[str, ...]
    repo_order: tuple[str, ...]
    repo_urls: dict[str, str]
    ignore: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()

    def matches(self, root_list: Sequence[str], ignore: frozenset[str]) -> bool:
        """Whether this order was computed for the same roots and ignore list."""
        cached = {repo_name_from_url(url) for url in self.root_list}
        requested = {repo_name_from_url(url) for url in root_list}
        return cached == requested and frozenset(self.ignore) == ignore


def _parse_cached_order(data: object) -> CachedOrder | None:
    if not isinstance(data, dict) or data.get("version") != ORDER_CACHE_VERSION:
        return None

    root_list = data.get("root_list")
    repo_order = data.get("repo_order")
    repo_urls = data.get("repo_urls")
    ignore = data.get("ignore", [])
    excluded = data.get("excluded", [])
    if not isinstance(root_list, list) or not all(isinstance(u, str) for u in root_list):
        return None
    if not isinstance(repo_order, list) or not all(isinstance(n, str) for n in repo_order):
        return None
    for names in (ignore, excluded):
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            return None
    if not isinstance(repo_urls, dict):
        return None
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in repo_urls.items()):
        return None
    if any(name not in repo_urls for name in repo_order):
        return None

    return CachedOrder(
        root_list=tuple(root_list),
        repo_order=tuple(repo_order),
        repo_urls={name: repo_urls[name] for name in repo_order},
        ignore=tuple(ignore),
        excluded=tuple(excluded),
    )


class OrderCache:
    """Order cache persisted as a single JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CachedOrder | None:
        """Read the cached entry regardless of its root set.

        A document that does not parse or has an unexpected shape is removed.
        """
        if not self._path.exists():
            return None

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            data = None

        entry = _parse_cached_order(data)
        if entry is None:
            logger.warning("Unrecognized order cache format in %s, clearing it", self._path)
            self.clear()
        return entry

    def get(
        self, root_list: Sequence[str], ignore: frozenset[str] = frozenset()
    ) -> CachedOrder | None:
        """Return the cached entry if it was computed for the same roots and ignore list."""
        entry = self.load()
        if entry is None:
            return None
        if not entry.matches(root_list, ignore):
            logger.debug("Cached order is for roots %s, not %s", entry.root_list, root_list)
            return None
        return entry

    def set(
        self,
        root_list: Sequence[str],
        repo_order: Sequence[str],
        repo_urls: dict[str, str],
        *,
        ignore: frozenset[str] = frozenset(),
        excluded: Sequence[str] = (),
    ) -> CachedOrder:
        entry = CachedOrder(
            root_list=tuple(root_list),
            repo_order=tuple(repo_order),
            repo_urls={name: repo_urls[name] for name in repo_order},
            ignore=tuple(sorted(ignore)),
            excluded=tuple(excluded),
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": ORDER_CACHE_VERSION,
            "root_list": list(entry.root_list),
            "repo_order": list(entry.repo_order),
            "repo_urls": entry.repo_urls,
            "ignore": list(entry.ignore),
            "excluded": list(entry.excluded),
        }
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return entry

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()


def resolve_processing_order(
    git: Git,
    cache: OrderCache,
    *,
    roots: Sequence[RepoRef],
    ignore: frozenset[str],
    clone_root: Path,
    use_cache: bool,
) -> CachedOrder:
    """Load the processing order for roots from the cache, or discover and cache it.

    A cached entry for different roots or a different ignore list is dropped
    before the graph is rebuilt.
    """
    root_list = [root.url for root in roots]
    if use_cache:
        cached = cache.get(root_list, ignore)
        if cached is not None:
            logger.debug("Using cached processing order from %s", cache.path)
            return cached
        cache.clear()

    graph = build_repo_graph(git, roots=roots, ignore=ignore, clone_root=clone_root)
    return cache.set(
        root_list,
        graph.processing_order(),
        graph.urls,
        ignore=ignore,
        excluded=sorted(graph.excluded),
    )
