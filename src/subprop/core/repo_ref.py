"""Repository identity derived from remote URLs."""

import posixpath
import re
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from subprop.core.errors import InvalidRepoUrlError

KNOWN_SCHEMES = frozenset({"https", "http", "ssh", "git", "file"})

# user@host:path, the scp-like syntax git accepts for ssh remotes
_SCP_LIKE_URL = re.compile(r"^[\w.+-]+@[\w.-]+:(?!//).+")


def is_valid_remote_url(url: str) -> bool:
    """Whether url looks like a git remote locator."""
    url = url.strip()
    if _SCP_LIKE_URL.match(url):
        return True
    parts = urlsplit(url)
    if parts.scheme.lower() not in KNOWN_SCHEMES:
        return False
    if parts.scheme.lower() == "file":
        return bool(parts.path)
    return bool(parts.netloc) and bool(parts.path.strip("/"))


def repo_name_from_url(url: str) -> str:
    """Derive a repository name from its URL.

    The name is the last path segment with any trailing slash and ".git"
    suffix removed, so absolute, relative and scp-like spellings of the same
    repository share one name.

    Examples:
        >>> repo_name_from_url("https://github.com/org/c-util.git")
        'c-util'
        >>> repo_name_from_url("https://dev.azure.com/org/proj/_git/c-util")
        'c-util'
        >>> repo_name_from_url("git@github.com:org/c-util.git")
        'c-util'
    """
    trimmed = url.strip().rstrip("/")
    segment = re.split(r"[/:]", trimmed)[-1]
    return segment.removesuffix(".git")


def resolve_submodule_url(parent_url: str, submodule_url: str) -> str:
    """Resolve a .gitmodules URL against the URL of the repository declaring it.

    Relative URLs ("./x", "../x") are interpreted the way git does: relative to
    the parent's remote URL treated as a directory. Anything else is returned
    unchanged.
    """
    submodule_url = submodule_url.strip()
    if not submodule_url.startswith(("./", "../")):
        return submodule_url

    parent_url = parent_url.strip().rstrip("/")
    if _SCP_LIKE_URL.match(parent_url):
        host, _, path = parent_url.partition(":")
        resolved = posixpath.normpath(posixpath.join(path, submodule_url))
        return f"{host}:{resolved}"

    parts = urlsplit(parent_url)
    resolved_path = posixpath.normpath(posixpath.join(parts.path, submodule_url))
    if not resolved_path.startswith("/"):
        resolved_path = "/" + resolved_path
    return urlunsplit((parts.scheme, parts.netloc, resolved_path, "", ""))


@dataclass(frozen=True)
class RepoRef:
    """A repository identity.

    Attributes:
        name: Name derived from url (see repo_name_from_url)
        url: Canonical remote locator
    """

    name: str
    url: str

    @staticmethod
    def from_url(url: str) -> "RepoRef":
        """Build a RepoRef from a user-supplied root URL.

        Raises:
            InvalidRepoUrlError: If url has no recognizable scheme
        """
        url = url.strip()
        if not is_valid_remote_url(url):
            raise InvalidRepoUrlError(url)
        return RepoRef(name=repo_name_from_url(url), url=url)

    @staticmethod
    def discovered(url: str) -> "RepoRef":
        """Build a RepoRef for a URL read from a submodule manifest (not validated)."""
        return RepoRef(name=repo_name_from_url(url), url=url)


def parse_root_list(text: str) -> list[RepoRef]:
    """Parse a comma-separated list of root repository URLs.

    Empty entries are ignored; duplicates (by name) keep the first spelling.

    Raises:
        InvalidRepoUrlError: If any entry is not a valid remote URL
    """
    roots: list[RepoRef] = []
    seen: set[str] = set()
    for entry in text.split(","):
        if not entry.strip():
            continue
        ref = RepoRef.from_url(entry)
        if ref.name in seen:
            continue
        seen.add(ref.name)
        roots.append(ref)
    return roots
