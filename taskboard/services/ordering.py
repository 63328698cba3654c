"""
Task Ordering Module

Pure functions that decide where a task sits on the board. Nothing here
touches storage or the network: the optimistic client and the persistence
gateway both call ``apply_move`` with the task list they currently hold, so
identical inputs always produce identical boards on both sides.

Placement modes for a move:

- numeric: the task takes exactly ``new_order``; siblings after its old slot
  move up by one and siblings at or after the new slot move down by one.
- anchor: the task lands immediately after (or before) a sibling, at the
  midpoint between the anchor and its neighbour. No sibling is rewritten.
- append: no positioning given, the task goes to the end of the column.

Whatever the mode, ``apply_move`` finishes with a normalization pass so the
stored orders of the touched columns are always ``0..n-1``.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from taskboard.core.errors import InvalidTarget, TaskNotFound
from taskboard.schemas.board import Task, utc_now_iso


@dataclass(frozen=True)
class Placement:
    """Where a moved task should land inside its target column."""
    new_order: Optional[float] = None
    after_task_id: Optional[str] = None
    before_task_id: Optional[str] = None

    def __post_init__(self):
        given = [v for v in (self.new_order, self.after_task_id, self.before_task_id) if v is not None]
        if len(given) > 1:
            raise InvalidTarget("Use only one of new_order, insert_after_task_id or insert_before_task_id")

    @property
    def mode(self) -> str:
        if self.new_order is not None:
            return "order"
        if self.after_task_id is not None:
            return "after"
        if self.before_task_id is not None:
            return "before"
        return "append"


@dataclass
class MoveResult:
    """The moved task plus every sibling whose order had to change."""
    task: Task
    shifted: List[Task] = field(default_factory=list)

    def apply_to(self, tasks: Sequence[Task]) -> List[Task]:
        """Return ``tasks`` with the moved task and shifted siblings swapped in, positions kept."""
        replacements = {t.id: t for t in self.shifted}
        replacements[self.task.id] = self.task
        return [replacements.get(t.id, t) for t in tasks]


def find_task(tasks: Iterable[Task], task_id: str) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise TaskNotFound(task_id)


def column_tasks(tasks: Sequence[Task], column_id: str, exclude_id: Optional[str] = None) -> List[Task]:
    """Tasks of one column in display order; ties keep their list position."""
    indexed = [
        (task.order, position, task)
        for position, task in enumerate(tasks)
        if task.column_id == column_id and task.id != exclude_id
    ]
    indexed.sort(key=lambda item: (item[0], item[1]))
    return [task for _, _, task in indexed]


def column_sequence(tasks: Sequence[Task], column_id: str) -> List[str]:
    """Ids of a column's tasks from top to bottom."""
    return [task.id for task in column_tasks(tasks, column_id)]


def append_order(tasks: Sequence[Task], column_id: str, exclude_id: Optional[str] = None) -> float:
    """Order value that places a task after every current task of the column."""
    orders = [t.order for t in tasks if t.column_id == column_id and t.id != exclude_id]
    if not orders:
        return 0
    return max(orders) + 1


def anchor_order(column: Sequence[Task], anchor_id: str, before: bool = False) -> float:
    """
    Order value right after (or before) ``anchor_id`` within a sorted column.

    The value is the midpoint between the anchor and its neighbour, so
    inserting between orders 1 and 2 gives 1.5. At the edges it steps one
    unit past the anchor.
    """
    ids = [t.id for t in column]
    if anchor_id not in ids:
        raise InvalidTarget(f"Anchor task {anchor_id} is not in the target column")
    index = ids.index(anchor_id)
    anchor = column[index]

    if before:
        if index == 0:
            return anchor.order - 1
        return (column[index - 1].order + anchor.order) / 2

    if index == len(column) - 1:
        return anchor.order + 1
    return (anchor.order + column[index + 1].order) / 2


def _check_column(target_column_id: str, column_ids: Optional[Iterable[str]]) -> None:
    if column_ids is not None and target_column_id not in set(column_ids):
        raise InvalidTarget(f"Column {target_column_id} does not exist in this project")


def assign_move(
    tasks: Sequence[Task],
    task_id: str,
    target_column_id: str,
    placement: Optional[Placement] = None,
    column_ids: Optional[Iterable[str]] = None,
    now: Optional[str] = None,
) -> MoveResult:
    """
    Compute the new column and order of ``task_id`` without normalizing.

    Raises:
        TaskNotFound: ``task_id`` is not in ``tasks``
        InvalidTarget: unknown column, anchor outside the target column,
            or the task anchored to itself
    """
    placement = placement or Placement()
    moved = find_task(tasks, task_id)
    _check_column(target_column_id, column_ids)

    anchor_id = placement.after_task_id or placement.before_task_id
    if anchor_id is not None and anchor_id == task_id:
        raise InvalidTarget("A task cannot be placed relative to itself")

    shifted: List[Task] = []
    if placement.mode == "order":
        new_order = placement.new_order
        orders: Dict[str, float] = {t.id: t.order for t in tasks if t.id != task_id}

        # Close the gap left in the source column
        for t in tasks:
            if t.id != task_id and t.column_id == moved.column_id and t.order > moved.order:
                orders[t.id] = orders[t.id] - 1

        # Open a slot in the destination column
        for t in tasks:
            if t.id != task_id and t.column_id == target_column_id and orders[t.id] >= new_order:
                orders[t.id] = orders[t.id] + 1

        shifted = [
            t.model_copy(update={"order": orders[t.id]})
            for t in tasks
            if t.id != task_id and orders[t.id] != t.order
        ]
    else:
        column = column_tasks(tasks, target_column_id, exclude_id=task_id)
        if placement.mode == "after":
            new_order = anchor_order(column, placement.after_task_id)
        elif placement.mode == "before":
            new_order = anchor_order(column, placement.before_task_id, before=True)
        else:
            new_order = append_order(column, target_column_id)

    updated = moved.model_copy(update={
        "column_id": target_column_id,
        "order": new_order,
        "updated_at": now or utc_now_iso(),
    })
    return MoveResult(task=updated, shifted=shifted)


def normalize(tasks: Sequence[Task], column_ids: Optional[Iterable[str]] = None) -> List[Task]:
    """
    Rewrite the orders of the given columns to ``0..n-1``.

    ``column_ids`` of None means every column that has tasks. Tasks in other
    columns are returned untouched and the input list is never mutated.
    Running it twice gives the same list as running it once.
    """
    if column_ids is None:
        targets: Set[str] = {t.column_id for t in tasks}
    else:
        targets = set(column_ids)

    new_orders: Dict[str, int] = {}
    for column_id in targets:
        for rank, task in enumerate(column_tasks(tasks, column_id)):
            new_orders[task.id] = rank

    result = []
    for task in tasks:
        rank = new_orders.get(task.id)
        if rank is None or (rank == task.order and isinstance(task.order, int)):
            result.append(task)
        else:
            result.append(task.model_copy(update={"order": rank}))
    return result


def changed_tasks(before: Sequence[Task], after: Sequence[Task]) -> List[Task]:
    """
    Tasks of ``after`` whose column or order differs from ``before``.

    A float order equal to an int (``1.0`` vs ``1``) counts as changed so
    normalized integers replace it.
    """
    previous = {t.id: (t.column_id, t.order, type(t.order)) for t in before}
    return [t for t in after if previous.get(t.id) != (t.column_id, t.order, type(t.order))]


def apply_move(
    tasks: Sequence[Task],
    task_id: str,
    target_column_id: str,
    placement: Optional[Placement] = None,
    column_ids: Optional[Iterable[str]] = None,
    now: Optional[str] = None,
) -> MoveResult:
    """
    Move a task and settle the source and destination columns.

    The affected columns are normalized before the move, so a numeric
    ``new_order`` always means "index in the destination column", and again
    after it, so the result never carries fractional orders. The returned
    ``shifted`` list holds every other task whose order changed relative to
    the input.
    """
    moved = find_task(tasks, task_id)
    _check_column(target_column_id, column_ids)
    affected = {moved.column_id, target_column_id}

    settled = normalize(tasks, affected)
    result = assign_move(settled, task_id, target_column_id, placement, now=now)
    final = normalize(result.apply_to(settled), affected)

    final_task = find_task(final, task_id)
    shifted = [t for t in changed_tasks(tasks, final) if t.id != task_id]
    return MoveResult(task=final_task, shifted=shifted)


def move_tasks(
    tasks: Sequence[Task],
    task_id: str,
    target_column_id: str,
    placement: Optional[Placement] = None,
    column_ids: Optional[Iterable[str]] = None,
    now: Optional[str] = None,
) -> List[Task]:
    """``apply_move`` returning the full settled task list."""
    return apply_move(tasks, task_id, target_column_id, placement, column_ids, now).apply_to(tasks)


def remove_task(tasks: Sequence[Task], task_id: str) -> List[Task]:
    """Drop a task and close the gap it leaves in its column."""
    removed = find_task(tasks, task_id)
    remaining = [t for t in tasks if t.id != task_id]
    return normalize(remaining, [removed.column_id])
