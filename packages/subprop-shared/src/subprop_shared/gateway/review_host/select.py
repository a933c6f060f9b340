"""Selection of the review host that owns a repository."""

from dataclasses import dataclass
from urllib.parse import urlsplit

from subprop_shared.gateway.review_host.abc import ReviewHost
from subprop_shared.gateway.review_host.types import HostKind, UnsupportedHostError


def classify_host(url: str) -> HostKind:
    """Decide which hosting back-end a repository or review request URL belongs to.

    Raises:
        UnsupportedHostError: If the URL matches no supported host
    """
    if "://" in url:
        host = (urlsplit(url).hostname or "").lower()
    else:
        # scp-like remote: git@github.com:org/repo.git
        host = url.partition("@")[2].partition(":")[0].lower()

    if host == "github.com" or host.endswith(".github.com"):
        return "github"
    if host in ("dev.azure.com", "ssh.dev.azure.com") or host.endswith(".visualstudio.com"):
        return "azure_devops"
    raise UnsupportedHostError(url)


@dataclass(frozen=True)
class ReviewHosts:
    """The two supported review hosts, addressed through one selection point."""

    github: ReviewHost
    azure_devops: ReviewHost

    def for_url(self, url: str) -> ReviewHost:
        """Review host owning url.

        Raises:
            UnsupportedHostError: If the URL matches no supported host
        """
        kind = classify_host(url)
        if kind == "github":
            return self.github
        return self.azure_devops
