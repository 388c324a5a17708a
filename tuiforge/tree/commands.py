"""Command queue for serialized access to a TreeStore.

Mutations are expressed as immutable command objects and applied in FIFO
order by a single writer thread. Any thread may submit; each submission
returns a ``concurrent.futures.Future`` resolved with the outcome. Reads
(snapshots, code generation) go through the same queue so they never
observe a half-applied mutation.

Example:
    >>> from tuiforge.schema import widget_template
    >>> with CommandQueue() as commands:
    ...     root_id = commands.call(lambda store: store.root_id).result()
    ...     commands.execute(AddNode(root_id, widget_template("List"))).applied
    True
"""

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar, Union

from tuiforge.schema import Constraint, DesignTree, NodeTemplate

from .lib import MutationResult, TreeStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_STOP_TIMEOUT = 5.0


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class AddNode:
    """Append a node built from ``template`` to ``parent_id``."""

    parent_id: str
    template: NodeTemplate | dict[str, Any]

    def apply(self, store: TreeStore) -> MutationResult:
        return store.add(self.parent_id, self.template)


@dataclass(frozen=True)
class DeleteNode:
    """Remove ``node_id`` and its subtree."""

    node_id: str

    def apply(self, store: TreeStore) -> MutationResult:
        return store.delete(self.node_id)


@dataclass(frozen=True)
class MoveNode:
    """Relocate ``node_id`` into ``new_parent_id`` at ``index``."""

    node_id: str
    new_parent_id: str
    index: int | None = None

    def apply(self, store: TreeStore) -> MutationResult:
        return store.move(self.node_id, self.new_parent_id, self.index)


@dataclass(frozen=True)
class UpdateNodeProps:
    """Merge ``props`` into ``node_id``."""

    node_id: str
    props: dict[str, Any] = field(default_factory=dict)

    def apply(self, store: TreeStore) -> MutationResult:
        return store.update_node_props(self.node_id, self.props)


@dataclass(frozen=True)
class UpdateConstraint:
    """Replace constraint ``index`` of ``parent_id``."""

    parent_id: str
    index: int
    constraint: Constraint | dict[str, Any]

    def apply(self, store: TreeStore) -> MutationResult:
        return store.update_constraint(self.parent_id, self.index, self.constraint)


@dataclass(frozen=True)
class ResizeConstraint:
    """Transfer ``delta`` percent between siblings ``index`` and ``index + 1``."""

    parent_id: str
    index: int
    delta: float

    def apply(self, store: TreeStore) -> MutationResult:
        return store.resize_constraint(self.parent_id, self.index, self.delta)


@dataclass(frozen=True)
class SelectNode:
    """Select ``node_id`` (None clears the selection)."""

    node_id: str | None

    def apply(self, store: TreeStore) -> MutationResult:
        return store.select(self.node_id)


Command = Union[
    AddNode,
    DeleteNode,
    MoveNode,
    UpdateNodeProps,
    UpdateConstraint,
    ResizeConstraint,
    SelectNode,
]


# =============================================================================
# Queue
# =============================================================================


class CommandQueue:
    """Single-writer front end for a TreeStore.

    The wrapped store must not be touched directly while the queue is
    running; all access goes through ``submit`` and ``call``.

    Args:
        store: Store to own. If None, creates an empty TreeStore.
        name: Writer thread name.
    """

    def __init__(self, store: TreeStore | None = None, name: str = "TreeWriter"):
        self._store = store or TreeStore()
        self._queue: queue.Queue[tuple[Callable[[TreeStore], Any], Future] | None] = (
            queue.Queue()
        )
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()
        logger.debug(f"Started command writer thread {name}")

    @property
    def closed(self) -> bool:
        """Whether the queue no longer accepts work."""
        return self._closed.is_set()

    def submit(self, command: Command) -> "Future[MutationResult]":
        """Queue a mutation command.

        Args:
            command: Command to apply.

        Returns:
            Future resolved with the command's MutationResult.

        Raises:
            RuntimeError: If the queue has been closed.
        """
        return self.call(command.apply)

    def execute(self, command: Command, timeout: float | None = None) -> MutationResult:
        """Queue a command and wait for its result."""
        return self.submit(command).result(timeout=timeout)

    def snapshot(self) -> "Future[DesignTree]":
        """Queue a snapshot of the current tree."""
        return self.call(lambda store: store.snapshot())

    def call(self, fn: Callable[[TreeStore], T]) -> "Future[T]":
        """Run ``fn(store)`` on the writer thread.

        Exceptions raised by ``fn`` are delivered through the future.

        Raises:
            RuntimeError: If the queue has been closed.
        """
        future: Future = Future()
        with self._lock:
            if self._closed.is_set():
                raise RuntimeError("Command queue is closed")
            self._queue.put((fn, future))
        return future

    def close(self, timeout: float = DEFAULT_STOP_TIMEOUT) -> None:
        """Stop accepting work, finish queued commands and stop the writer.

        Work accepted before the call runs to completion; anything found
        behind the stop marker is cancelled.
        """
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._queue.put(None)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Command writer thread did not stop within timeout")
        else:
            logger.debug("Command writer thread stopped")

    def __enter__(self) -> "CommandQueue":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                break
            fn, future = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(fn(self._store))
            except Exception as e:
                logger.error(f"Queued tree operation failed: {e}", exc_info=True)
                future.set_exception(e)
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            if item is not None:
                _, future = item
                future.cancel()
                logger.warning("Cancelled tree operation queued after close")
