"""Persisted state of a propagation run.

One JSON document per run lives at <work_dir>/<branch_name>/propagation-state.json
and is rewritten after every terminal per-repository transition, so an
interrupted run can be resumed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, get_args

logger = logging.getLogger(__name__)

STATE_VERSION = 1
STATE_FILENAME = "propagation-state.json"

RepoStatusValue = Literal["pending", "in-progress", "updated", "skipped", "failed"]

# Statuses kept when a run is resumed; everything else is redone.
FINISHED_STATUSES: frozenset[RepoStatusValue] = frozenset({"updated", "skipped"})


@dataclass(frozen=True)
class RepoStatus:
    """Processing status of one repository.

    Attributes:
        status: Current status
        message: Human-readable detail of the last transition
        review_request_url: Review request opened for the repository, if any
    """

    status: RepoStatusValue
    message: str = ""
    review_request_url: str | None = None


@dataclass(frozen=True)
class PropagationState:
    """Everything needed to resume a propagation run.

    Attributes:
        branch_name: Topic branch pushed to every updated repository
        repo_order: Processing order, authoritative on resume
        repo_urls: Repository name -> URL
        fixed_commits: Repository name -> commit every dependent must pin
        repo_statuses: Repository name -> status
        root_list: Root URLs the run was started with
        associated_work_item: Work item linked to every review request
        ignored: Submodule names every repository leaves untouched
    """

    branch_name: str
    repo_order: tuple[str, ...]
    repo_urls: dict[str, str]
    fixed_commits: dict[str, str]
    repo_statuses: dict[str, RepoStatus]
    root_list: tuple[str, ...]
    associated_work_item: str | None
    ignored: tuple[str, ...] = ()


def state_path_for(work_dir: Path, branch_name: str) -> Path:
    return work_dir / branch_name / STATE_FILENAME


def save_propagation_state(state_path: Path, state: PropagationState) -> None:
    """Write state to state_path, replacing any previous document.

    The document is written next to its destination first and then moved into
    place, so a crash never leaves a truncated file behind.
    """
    state_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "version": STATE_VERSION,
        "branch_name": state.branch_name,
        "repo_order": list(state.repo_order),
        "repo_urls": state.repo_urls,
        "fixed_commits": state.fixed_commits,
        "repo_statuses": {
            name: {
                "status": s.status,
                "message": s.message,
                "review_request_url": s.review_request_url,
            }
            for name, s in state.repo_statuses.items()
        },
        "root_list": list(state.root_list),
        "associated_work_item": state.associated_work_item,
        "ignored": list(state.ignored),
    }

    tmp_path = state_path.with_name(state_path.name + ".tmp")
    tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    tmp_path.replace(state_path)


def _is_str_list(value: object) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _is_str_dict(value: object) -> bool:
    return isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    )


def _parse_repo_status(data: object) -> RepoStatus | None:
    if not isinstance(data, dict):
        return None
    status = data.get("status")
    message = data.get("message", "")
    review_request_url = data.get("review_request_url")
    if status not in get_args(RepoStatusValue) or not isinstance(message, str):
        return None
    if review_request_url is not None and not isinstance(review_request_url, str):
        return None
    return RepoStatus(status=status, message=message, review_request_url=review_request_url)


def parse_propagation_state(data: object) -> PropagationState | None:
    """Validate a decoded state document.

    Returns:
        PropagationState, or None if the document is not a state document of a
        supported version
    """
    if not isinstance(data, dict) or data.get("version") != STATE_VERSION:
        return None

    branch_name = data.get("branch_name")
    repo_order = data.get("repo_order")
    repo_urls = data.get("repo_urls")
    fixed_commits = data.get("fixed_commits")
    raw_statuses = data.get("repo_statuses")
    root_list = data.get("root_list", [])
    work_item = data.get("associated_work_item")
    ignored = data.get("ignored", [])

    if not isinstance(branch_name, str) or not branch_name:
        return None
    if not _is_str_list(repo_order) or not _is_str_list(root_list) or not _is_str_list(ignored):
        return None
    if not _is_str_dict(repo_urls) or not _is_str_dict(fixed_commits):
        return None
    if any(name not in repo_urls for name in repo_order):
        return None
    if not isinstance(raw_statuses, dict):
        return None
    if work_item is not None and not isinstance(work_item, str):
        return None

    repo_statuses: dict[str, RepoStatus] = {}
    for name, raw in raw_statuses.items():
        parsed = _parse_repo_status(raw)
        if parsed is None:
            return None
        repo_statuses[name] = parsed

    return PropagationState(
        branch_name=branch_name,
        repo_order=tuple(repo_order),
        repo_urls=dict(repo_urls),
        fixed_commits=dict(fixed_commits),
        repo_statuses=repo_statuses,
        root_list=tuple(root_list),
        associated_work_item=work_item,
        ignored=tuple(ignored),
    )


def load_propagation_state(state_path: Path) -> PropagationState | None:
    """Load a persisted run.

    Returns:
        PropagationState if the file exists and is a valid state document,
        None otherwise
    """
    if not state_path.exists():
        return None

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        data = None

    state = parse_propagation_state(data)
    if state is None:
        logger.warning("Ignoring unrecognized propagation state document %s", state_path)
    return state


def find_latest_state(work_dir: Path) -> Path | None:
    """Most recently written state document of any run under work_dir."""
    if not work_dir.is_dir():
        return None
    candidates = [p for p in work_dir.glob(f"*/{STATE_FILENAME}") if p.is_file()]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)
