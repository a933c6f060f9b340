"""Shared builders for propagation test scenarios.

Repositories are named by a short name and live under one GitHub organization.
Submodules are declared with relative URLs ("../<name>.git") at deps/<name>, so
both URL resolution and checkout paths are exercised the way real manifests do.
"""

import io
from pathlib import Path

from rich.console import Console

from subprop.cli.config import PropagateConfig
from subprop.core.context import PropagateContext
from subprop.core.order_cache import OrderCache
from subprop.core.orchestrator import PropagationSettings
from subprop_shared.gateway.git.abc import SubmoduleInfo
from subprop_shared.gateway.git.fake import FakeGit
from subprop_shared.gateway.live_display.fake import FakeLiveDisplay
from subprop_shared.gateway.review_host.fake import FakeReviewHost
from subprop_shared.gateway.review_host.select import ReviewHosts
from subprop_shared.gateway.time.fake import FakeTime

ORG_URL = "https://github.com/org"


def repo_url(name: str) -> str:
    return f"{ORG_URL}/{name}.git"


def submodule(name: str) -> SubmoduleInfo:
    return SubmoduleInfo(name=name, path=f"deps/{name}", url=f"../{name}.git")


def head(name: str) -> str:
    """Default branch head of a repository when a run starts."""
    return f"{name.lower()}0000000000000"


def graph_git(manifests: dict[str, list[str]], **kwargs) -> FakeGit:
    """FakeGit whose remotes declare the given submodules.

    Every repository named anywhere in manifests gets a default branch head
    (see head()). Extra keyword arguments are passed to FakeGit.
    """
    names = set(manifests)
    for children in manifests.values():
        names.update(children)
    remote_heads = {repo_url(name): head(name) for name in names}
    remote_heads.update(kwargs.pop("remote_heads", {}))
    return FakeGit(
        remote_submodules={
            repo_url(parent): [submodule(child) for child in children]
            for parent, children in manifests.items()
        },
        remote_heads=remote_heads,
        **kwargs,
    )


def build_test_context(
    tmp_path: Path,
    *,
    git: FakeGit | None = None,
    host: FakeReviewHost | None = None,
    time: FakeTime | None = None,
    config: PropagateConfig | None = None,
) -> PropagateContext:
    """PropagateContext writing console output to a buffer and caching under tmp_path.

    A single FakeReviewHost serves both review host kinds.
    """
    review_host = host if host is not None else FakeReviewHost()
    return PropagateContext.for_test(
        git=git,
        review_hosts=ReviewHosts(github=review_host, azure_devops=review_host),
        time=time if time is not None else FakeTime(),
        live_display=FakeLiveDisplay(),
        console=Console(file=io.StringIO(), width=200),
        order_cache=OrderCache(tmp_path / "cache" / "order-cache.json"),
        config=config,
        cwd=tmp_path,
    )


def console_text(ctx: PropagateContext) -> str:
    """Everything printed to a context built by build_test_context."""
    return ctx.console.file.getvalue()


def build_settings(tmp_path: Path, **overrides) -> PropagationSettings:
    values = {
        "work_dir": tmp_path / "runs",
        "ignore": frozenset(),
        "poll_interval": 10.0,
        "timeout_minutes": 30.0,
        "close_failed": False,
        "commit_message": "Update submodule dependencies",
        "use_cache": True,
    }
    values.update(overrides)
    return PropagationSettings(**values)
