"""
history.py

Linear undo/redo over Snapshot values.

Two write modes:

  * ``replace_present``: live preview during a gesture; no undo step.
  * ``commit_snapshot``: push the current present onto ``past`` and clear
    ``future``.

Every snapshot crossing the history boundary is deep-copied, so no two
slots ever share a measurement map or any other nested value.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from models import Snapshot
from settings import get_settings

log = logging.getLogger(__name__)

MAX_PAST = 50


def _get_max_past() -> int:
    """Get the undo depth from settings. Default: 50."""
    return get_settings().settings.history.max_past


@dataclass(frozen=True)
class HistoryState:
    """``past`` is oldest-first; ``future[0]`` is the next redo."""
    past: Tuple[Snapshot, ...]
    present: Snapshot
    future: Tuple[Snapshot, ...]


def clone_snapshot(snapshot: Snapshot) -> Snapshot:
    """Fully independent copy of *snapshot*."""
    return copy.deepcopy(snapshot)


def create_history(initial: Snapshot) -> HistoryState:
    return HistoryState(past=(), present=clone_snapshot(initial), future=())


def can_undo(history: HistoryState) -> bool:
    return len(history.past) > 0


def can_redo(history: HistoryState) -> bool:
    return len(history.future) > 0


def _trim(past: Tuple[Snapshot, ...], max_past: Optional[int]) -> Tuple[Snapshot, ...]:
    limit = _get_max_past() if max_past is None else max_past
    if len(past) > limit:
        return past[len(past) - limit:]
    return past


def replace_present(history: HistoryState, next_snapshot: Snapshot) -> HistoryState:
    """Overwrite ``present`` without recording an undo step."""
    if next_snapshot is history.present:
        return history
    return HistoryState(past=history.past, present=clone_snapshot(next_snapshot), future=history.future)


def commit_snapshot(history: HistoryState, next_snapshot: Snapshot,
                    max_past: Optional[int] = None) -> HistoryState:
    """
    Record *next_snapshot* as a new undoable step.

    The current present moves onto ``past`` (oldest entries are dropped
    beyond the undo depth) and the redo branch is discarded.

    Args:
        history: Current history.
        next_snapshot: The new present.
        max_past: Undo depth; ``None`` reads settings.

    Returns:
        The new history.  A commit always records a step, even when
        *next_snapshot* equals the present.
    """
    past = _trim(history.past + (clone_snapshot(history.present),), max_past)
    log.debug("commit: past=%d", len(past))
    return HistoryState(past=past, present=clone_snapshot(next_snapshot), future=())


def undo(history: HistoryState) -> HistoryState:
    """Step back one commit; a no-op with an empty past."""
    if not history.past:
        return history
    previous = history.past[-1]
    return HistoryState(
        past=history.past[:-1],
        present=clone_snapshot(previous),
        future=(clone_snapshot(history.present),) + history.future,
    )


def redo(history: HistoryState, max_past: Optional[int] = None) -> HistoryState:
    """Step forward one commit; a no-op with an empty future."""
    if not history.future:
        return history
    following = history.future[0]
    return HistoryState(
        past=_trim(history.past + (clone_snapshot(history.present),), max_past),
        present=clone_snapshot(following),
        future=history.future[1:],
    )
