import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_POLL_INTERVAL_SECONDS = 30.0
DEFAULT_TIMEOUT_MINUTES = 60.0
DEFAULT_COMMIT_MESSAGE = "Update submodule dependencies"


def default_config_path() -> Path:
    return Path.home() / ".subprop" / "config.toml"


def default_order_cache_path() -> Path:
    return Path.home() / ".subprop" / "order-cache.json"


@dataclass(frozen=True)
class PropagateConfig:
    """In-memory representation of `~/.subprop/config.toml`.

    Example config.toml:
      # Repositories never updated, nor traversed into
      ignore = ["googletest", "vcpkg"]

      # Runs are kept under <work_dir>/<branch name>/ (defaults to the cwd)
      work_dir = "~/propagation"

      commit_message = "Update submodule dependencies"

      [poll]
      interval_seconds = 30
      timeout_minutes = 60

      [review]
      # Ask the host to merge once checks pass
      auto_merge = true
      # Close the review request of a failed repository
      close_failed = false

      [cache]
      path = "~/.subprop/order-cache.json"
    """

    ignore: tuple[str, ...]
    work_dir: Path | None  # None = current directory
    commit_message: str
    poll_interval_seconds: float
    timeout_minutes: float
    auto_merge: bool
    close_failed: bool
    order_cache_path: Path

    @staticmethod
    def defaults() -> "PropagateConfig":
        return PropagateConfig(
            ignore=(),
            work_dir=None,
            commit_message=DEFAULT_COMMIT_MESSAGE,
            poll_interval_seconds=DEFAULT_POLL_INTERVAL_SECONDS,
            timeout_minutes=DEFAULT_TIMEOUT_MINUTES,
            auto_merge=True,
            close_failed=False,
            order_cache_path=default_order_cache_path(),
        )


def _expand_path(value: object) -> Path:
    return Path(str(value)).expanduser()


def load_config(cfg_path: Path) -> PropagateConfig:
    """Load the config file if present; otherwise return defaults."""
    if not cfg_path.exists():
        return PropagateConfig.defaults()

    data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    defaults = PropagateConfig.defaults()
    poll = data.get("poll", {})
    review = data.get("review", {})
    cache = data.get("cache", {})

    work_dir = data.get("work_dir")
    cache_path = cache.get("path")
    return PropagateConfig(
        ignore=tuple(str(x) for x in data.get("ignore", [])),
        work_dir=_expand_path(work_dir) if work_dir is not None else None,
        commit_message=str(data.get("commit_message", defaults.commit_message)),
        poll_interval_seconds=float(
            poll.get("interval_seconds", defaults.poll_interval_seconds)
        ),
        timeout_minutes=float(poll.get("timeout_minutes", defaults.timeout_minutes)),
        auto_merge=bool(review.get("auto_merge", defaults.auto_merge)),
        close_failed=bool(review.get("close_failed", defaults.close_failed)),
        order_cache_path=(
            _expand_path(cache_path) if cache_path is not None else defaults.order_cache_path
        ),
    )
