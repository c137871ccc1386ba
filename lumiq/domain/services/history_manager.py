from __future__ import annotations

from collections import deque

from lumiq.domain.entities.edit_state import EditState

MAX_UNDO_DEPTH = 20


class HistoryManager:
    """Linear undo/redo history over :class:`EditState` snapshots.

    The undo stack keeps at most ``max_depth`` checkpoints and drops the oldest
    one on overflow. The redo stack has no cap of its own; it only ever holds
    states moved off the undo stack, so it cannot outgrow it either.
    Recording a checkpoint after an undo discards the redo stack.
    """

    def __init__(self, max_depth: int = MAX_UNDO_DEPTH) -> None:
        if max_depth <= 0:
            raise ValueError("max_depth must be > 0")
        self.max_depth = max_depth
        self._undo: deque[EditState] = deque(maxlen=max_depth)
        self._redo: list[EditState] = []

    def record_checkpoint(self, state: EditState) -> None:
        self._undo.append(state)
        self._redo.clear()

    def undo(self, current: EditState) -> EditState | None:
        if not self._undo:
            return None
        previous = self._undo.pop()
        self._redo.append(current)
        return previous

    def redo(self, current: EditState) -> EditState | None:
        if not self._redo:
            return None
        following = self._redo.pop()
        self._undo.append(current)
        return following

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def undo_states(self) -> list[EditState]:
        """Undo stack contents, oldest first."""
        return list(self._undo)
