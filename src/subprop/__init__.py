"""subprop CLI entry point.

This package provides a Click-based CLI that propagates dependency updates
through a graph of git submodules, leaf repositories first. See
`subprop --help` for details.
"""
