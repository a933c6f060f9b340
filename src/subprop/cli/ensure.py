"""CLI error handling: turn missing preconditions into user-friendly exits."""

from pathlib import Path
from typing import NoReturn

import click

from subprop.core.state import PropagationState, find_latest_state, load_propagation_state
from subprop_shared.output.output import user_output


def exit_with_error(message: str) -> NoReturn:
    """Print a red error message and exit with code 1."""
    user_output(click.style("Error: ", fg="red") + message)
    raise SystemExit(1)


class Ensure:
    """Helpers that return the requested value or exit with an error."""

    @staticmethod
    def latest_state_path(work_dir: Path) -> Path:
        """Most recent persisted run under work_dir.

        Raises:
            SystemExit: If no run has been persisted there (with exit code 1)
        """
        state_path = find_latest_state(work_dir)
        if state_path is None:
            exit_with_error(f"No persisted propagation state found under {work_dir}")
        return state_path

    @staticmethod
    def loaded_state(state_path: Path) -> PropagationState:
        """Load state_path.

        Raises:
            SystemExit: If the document is missing or unrecognized (with exit code 1)
        """
        state = load_propagation_state(state_path)
        if state is None:
            exit_with_error(f"Unrecognized propagation state document {state_path}")
        return state
