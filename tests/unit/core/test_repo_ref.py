"""Tests for repository identity and URL handling."""

import pytest

from subprop.core.errors import InvalidRepoUrlError
from subprop.core.repo_ref import (
    RepoRef,
    is_valid_remote_url,
    parse_root_list,
    repo_name_from_url,
    resolve_submodule_url,
)


@pytest.mark.parametrize(
    ("url", "name"),
    [
        ("https://github.com/org/c-util.git", "c-util"),
        ("https://github.com/org/c-util", "c-util"),
        ("https://github.com/org/c-util/", "c-util"),
        ("https://dev.azure.com/contoso/Platform/_git/c-util", "c-util"),
        ("git@github.com:org/c-util.git", "c-util"),
        ("git@host:c-util.git", "c-util"),
        ("../c-util.git", "c-util"),
    ],
)
def test_repo_name_from_url(url: str, name: str) -> None:
    assert repo_name_from_url(url) == name


def test_only_a_trailing_git_suffix_is_removed() -> None:
    assert repo_name_from_url("https://github.com/org/git.gitops") == "git.gitops"


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/org/lib.git",
        "ssh://git@github.com/org/lib.git",
        "git://example.com/lib.git",
        "file:///srv/git/lib.git",
        "git@github.com:org/lib.git",
    ],
)
def test_valid_remote_urls(url: str) -> None:
    assert is_valid_remote_url(url)


@pytest.mark.parametrize(
    "url",
    ["lib", "github.com/org/lib", "ftp://example.com/lib.git", "https://github.com", ""],
)
def test_invalid_remote_urls(url: str) -> None:
    assert not is_valid_remote_url(url)


def test_from_url_rejects_url_without_scheme() -> None:
    with pytest.raises(InvalidRepoUrlError) as exc_info:
        RepoRef.from_url("github.com/org/lib")

    assert exc_info.value.url == "github.com/org/lib"


def test_from_url_strips_whitespace() -> None:
    assert RepoRef.from_url("  https://github.com/org/lib.git ") == RepoRef(
        name="lib", url="https://github.com/org/lib.git"
    )


@pytest.mark.parametrize(
    ("parent", "submodule", "resolved"),
    [
        (
            "https://github.com/org/app.git",
            "../lib.git",
            "https://github.com/org/lib.git",
        ),
        (
            "https://github.com/org/app.git",
            "./vendored",
            "https://github.com/org/app.git/vendored",
        ),
        (
            "https://dev.azure.com/contoso/Platform/_git/app",
            "../lib",
            "https://dev.azure.com/contoso/Platform/_git/lib",
        ),
        (
            "git@github.com:org/app.git",
            "../lib.git",
            "git@github.com:org/lib.git",
        ),
        (
            "https://github.com/org/app.git",
            "https://github.com/other/lib.git",
            "https://github.com/other/lib.git",
        ),
    ],
)
def test_resolve_submodule_url(parent: str, submodule: str, resolved: str) -> None:
    assert resolve_submodule_url(parent, submodule) == resolved


def test_parse_root_list_skips_blanks_and_duplicates() -> None:
    roots = parse_root_list(
        "https://github.com/org/app.git, ,https://github.com/org/tool.git,"
        "git@github.com:org/app.git"
    )

    assert [root.name for root in roots] == ["app", "tool"]
    assert roots[0].url == "https://github.com/org/app.git"


def test_parse_root_list_rejects_invalid_entry() -> None:
    with pytest.raises(InvalidRepoUrlError):
        parse_root_list("https://github.com/org/app.git,not-a-url")
