"""Tests for parsing `git config --file .gitmodules --get-regexp` output."""

from subprop_shared.gateway.git.abc import SubmoduleInfo
from subprop_shared.gateway.git.real import parse_gitmodules_config


def test_parses_path_and_url_per_submodule() -> None:
    output = (
        "submodule.deps/lib.path deps/lib\n"
        "submodule.deps/lib.url ../lib.git\n"
        "submodule.tools.path third_party/tools\n"
        "submodule.tools.url https://github.com/org/tools.git\n"
    )

    assert parse_gitmodules_config(output) == [
        SubmoduleInfo(name="deps/lib", path="deps/lib", url="../lib.git"),
        SubmoduleInfo(
            name="tools", path="third_party/tools", url="https://github.com/org/tools.git"
        ),
    ]


def test_names_may_contain_dots() -> None:
    output = "submodule.lib.v2.path lib.v2\nsubmodule.lib.v2.url https://h/org/lib.v2\n"

    assert parse_gitmodules_config(output) == [
        SubmoduleInfo(name="lib.v2", path="lib.v2", url="https://h/org/lib.v2"),
    ]


def test_section_without_url_is_dropped() -> None:
    output = "submodule.orphan.path orphan\nsubmodule.lib.url ../lib\n"

    assert parse_gitmodules_config(output) == [
        SubmoduleInfo(name="lib", path="lib", url="../lib"),
    ]


def test_other_keys_and_blank_lines_are_ignored() -> None:
    output = "\nsubmodule.lib.branch main\nsubmodule.lib.url ../lib\ncore.bare false\n"

    assert parse_gitmodules_config(output) == [
        SubmoduleInfo(name="lib", path="lib", url="../lib"),
    ]


def test_empty_output_has_no_submodules() -> None:
    assert parse_gitmodules_config("") == []
