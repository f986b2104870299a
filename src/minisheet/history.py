from collections import deque

from minisheet.grid import Grid, Snapshot


class History:
    """Undo/redo stacks of full grid snapshots.

    The live grid is never stored in either stack. After a recorded
    mutation the top of the undo stack is the grid as it was just before
    that mutation.
    """

    def __init__(self, grid: Grid, limit: int | None = None):
        self.grid = grid
        # With a limit the oldest snapshots are evicted first
        self.undo_stack: deque[Snapshot] = deque(maxlen=limit)
        self.redo_stack: deque[Snapshot] = deque(maxlen=limit)

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def record_before_mutation(self) -> None:
        """Snapshot the grid ahead of an edit; any new edit invalidates redo."""
        self.undo_stack.append(self.grid.snapshot())
        self.redo_stack.clear()

    def undo(self) -> bool:
        if not self.undo_stack:
            return False
        self.redo_stack.append(self.grid.snapshot())
        self.grid.restore(self.undo_stack.pop())
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            return False
        self.undo_stack.append(self.grid.snapshot())
        self.grid.restore(self.redo_stack.pop())
        return True
