"""Output routing helpers."""

from subprop_shared.output.output import machine_output, user_output

__all__ = [
    "machine_output",
    "user_output",
]
