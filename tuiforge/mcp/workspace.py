"""Open designs held by a long-running server.

Each design owns a TreeStore behind its own CommandQueue, so tool calls
arriving on different threads are applied one at a time per design.
"""

import logging
import threading
from dataclasses import dataclass
from uuid import uuid4

from tuiforge.layout import LayoutPolicy
from tuiforge.schema import DesignTree, Direction
from tuiforge.tree import CommandQueue, TreeStore

logger = logging.getLogger(__name__)


@dataclass
class OpenDesign:
    """A design being edited.

    Attributes:
        id: Workspace handle for the design.
        queue: Single writer owning the design's TreeStore.
        title: Title used when saving.
        project_id: Project the design was opened from or saved to.
    """

    id: str
    queue: CommandQueue
    title: str | None = None
    project_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "design_id": self.id,
            "title": self.title,
            "project_id": self.project_id,
        }


class DesignWorkspace:
    """Registry of open designs keyed by design id.

    Args:
        policy: Share policy for new stores. If None, read from configuration.
    """

    def __init__(self, policy: LayoutPolicy | None = None):
        self._policy = policy
        self._designs: dict[str, OpenDesign] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._designs)

    def create(
        self,
        direction: Direction | str = Direction.VERTICAL,
        title: str | None = None,
    ) -> OpenDesign:
        """Open a new design with an empty root layout."""
        tree = DesignTree.empty(Direction(direction))
        return self.open(tree, title=title)

    def open(
        self,
        tree: DesignTree,
        title: str | None = None,
        project_id: str | None = None,
    ) -> OpenDesign:
        """Open an existing snapshot for editing.

        Raises:
            ValueError: If the snapshot violates a structural invariant.
        """
        store = TreeStore(tree, policy=self._policy)
        design = OpenDesign(
            id=uuid4().hex[:12],
            queue=CommandQueue(store),
            title=title,
            project_id=project_id,
        )
        with self._lock:
            self._designs[design.id] = design
        logger.info(f"Opened design {design.id} ({len(store)} nodes)")
        return design

    def get(self, design_id: str) -> OpenDesign:
        """Look up an open design.

        Raises:
            KeyError: If no design with that id is open.
        """
        with self._lock:
            design = self._designs.get(design_id)
        if design is None:
            raise KeyError(f"No open design '{design_id}'")
        return design

    def list_designs(self) -> list[OpenDesign]:
        with self._lock:
            return list(self._designs.values())

    def close(self, design_id: str) -> bool:
        """Stop a design's writer and forget it."""
        with self._lock:
            design = self._designs.pop(design_id, None)
        if design is None:
            return False
        design.queue.close()
        logger.info(f"Closed design {design_id}")
        return True

    def close_all(self) -> None:
        for design in self.list_designs():
            self.close(design.id)


# Global instance for convenience
_global_workspace: DesignWorkspace | None = None


def get_workspace() -> DesignWorkspace:
    """Get or create the global design workspace."""
    global _global_workspace
    if _global_workspace is None:
        _global_workspace = DesignWorkspace()
    return _global_workspace


def close_workspace() -> None:
    """Close every open design and clear the global workspace."""
    global _global_workspace
    if _global_workspace:
        _global_workspace.close_all()
        _global_workspace = None


__all__ = [
    "OpenDesign",
    "DesignWorkspace",
    "get_workspace",
    "close_workspace",
]
