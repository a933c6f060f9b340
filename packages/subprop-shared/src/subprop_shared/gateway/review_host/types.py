"""Type definitions for review request hosts."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

# Normalized status of a CI check or review policy, independent of host
CheckStatus = Literal[
    "pending",
    "running",
    "succeeded",
    "failed",
    "skipped",
    "cancelled",
    "unknown",
]

TERMINAL_CHECK_STATUSES: frozenset[CheckStatus] = frozenset(
    {"succeeded", "failed", "skipped", "cancelled"}
)
ACTIVE_CHECK_STATUSES: frozenset[CheckStatus] = frozenset({"pending", "running"})

HostKind = Literal["github", "azure_devops"]

# Synthetic check reporting whether the review request itself was merged
MERGE_CHECK_NAME = "merge"

_EXTRA_FRACTION_DIGITS = re.compile(r"(\.\d{6})\d+")


@dataclass(frozen=True)
class Check:
    """One CI check or review policy attached to a review request.

    Attributes:
        name: Display name of the check
        status: Normalized status
        start_time: When the check started, if known
        end_time: When the check finished, if known
        url: Link to the check's details page
        is_blocking: Whether the check gates merging; None means unknown,
            which is treated as blocking
    """

    name: str
    status: CheckStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    url: str | None = None
    is_blocking: bool | None = None

    @property
    def blocks(self) -> bool:
        return self.is_blocking is not False


class UnsupportedHostError(Exception):
    """Raised when a repository URL belongs to no supported review host."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No supported review host for repository URL: {url}")


def parse_host_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by gh or az.

    Returns None for missing values and for the zero timestamps both CLIs use
    for "not started yet".
    """
    if not value or value.startswith("0001-01-01"):
        return None
    # az reports seven fractional digits; fromisoformat accepts at most six
    normalized = _EXTRA_FRACTION_DIGITS.sub(r"\1", value.replace("Z", "+00:00"))
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None
