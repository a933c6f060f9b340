"""Application context with dependency injection."""

from dataclasses import dataclass, replace
from pathlib import Path

from rich.console import Console

from subprop.cli.config import PropagateConfig
from subprop.core.order_cache import OrderCache
from subprop_shared.gateway.git.abc import Git
from subprop_shared.gateway.git.dry_run import DryRunGit
from subprop_shared.gateway.git.fake import FakeGit
from subprop_shared.gateway.git.real import RealGit
from subprop_shared.gateway.live_display.abc import LiveDisplay
from subprop_shared.gateway.live_display.fake import FakeLiveDisplay
from subprop_shared.gateway.live_display.real import RealLiveDisplay
from subprop_shared.gateway.review_host.azure_devops import AzureDevOpsReviewHost
from subprop_shared.gateway.review_host.dry_run import DryRunReviewHost
from subprop_shared.gateway.review_host.fake import FakeReviewHost
from subprop_shared.gateway.review_host.github import GitHubReviewHost
from subprop_shared.gateway.review_host.select import ReviewHosts
from subprop_shared.gateway.time.abc import Time
from subprop_shared.gateway.time.fake import FakeTime
from subprop_shared.gateway.time.real import RealTime


@dataclass(frozen=True)
class PropagateContext:
    """Immutable context holding all dependencies for subprop operations.

    Created once at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    git: Git
    review_hosts: ReviewHosts
    time: Time
    live_display: LiveDisplay
    console: Console
    order_cache: OrderCache
    config: PropagateConfig
    cwd: Path
    dry_run: bool

    def as_dry_run(self) -> "PropagateContext":
        """Same context with every mutating gateway wrapped in its dry-run variant."""
        if self.dry_run:
            return self
        return replace(
            self,
            git=DryRunGit(self.git),
            review_hosts=ReviewHosts(
                github=DryRunReviewHost(self.review_hosts.github),
                azure_devops=DryRunReviewHost(self.review_hosts.azure_devops),
            ),
            dry_run=True,
        )

    @staticmethod
    def for_test(
        git: Git | None = None,
        review_hosts: ReviewHosts | None = None,
        time: Time | None = None,
        live_display: LiveDisplay | None = None,
        console: Console | None = None,
        order_cache: OrderCache | None = None,
        config: PropagateConfig | None = None,
        cwd: Path | None = None,
        dry_run: bool = False,
    ) -> "PropagateContext":
        """Create test context with optional pre-configured gateways.

        Unspecified gateways default to empty fakes. The order cache defaults to
        a file under cwd, so pass cwd (typically tmp_path) whenever the cache is
        exercised.
        """
        if review_hosts is None:
            host = FakeReviewHost()
            review_hosts = ReviewHosts(github=host, azure_devops=host)
        resolved_cwd = cwd if cwd is not None else Path("/test/default/cwd")
        resolved_config = config if config is not None else PropagateConfig.defaults()
        return PropagateContext(
            git=git if git is not None else FakeGit(),
            review_hosts=review_hosts,
            time=time if time is not None else FakeTime(),
            live_display=live_display if live_display is not None else FakeLiveDisplay(),
            console=console if console is not None else Console(stderr=True, width=200),
            order_cache=(
                order_cache
                if order_cache is not None
                else OrderCache(resolved_cwd / ".subprop" / "order-cache.json")
            ),
            config=resolved_config,
            cwd=resolved_cwd,
            dry_run=dry_run,
        )


def create_context(*, config: PropagateConfig, dry_run: bool) -> PropagateContext:
    """Create production context with real implementations.

    Args:
        config: Loaded user configuration
        dry_run: If True, wrap mutating gateways with dry-run wrappers that
                 print intended actions without executing them
    """
    console = Console(stderr=True)
    ctx = PropagateContext(
        git=RealGit(),
        review_hosts=ReviewHosts(
            github=GitHubReviewHost(auto_merge=config.auto_merge),
            azure_devops=AzureDevOpsReviewHost(auto_merge=config.auto_merge),
        ),
        time=RealTime(),
        live_display=RealLiveDisplay(console),
        console=console,
        order_cache=OrderCache(config.order_cache_path),
        config=config,
        cwd=Path.cwd(),
        dry_run=False,
    )
    if dry_run:
        return ctx.as_dry_run()
    return ctx
