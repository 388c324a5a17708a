"""Code target abstraction for design-tree code generation.

This module defines the abstract base class for code targets and provides
a registry/factory for accessing them by name, plus the module-level
``generate`` entry points used by the CLI and the MCP server.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from tuiforge.config import EnvVar, get_environment
from tuiforge.schema import DesignTree


class GenerationIssue(str, Enum):
    """Categories of problems a generator works around.

    Generation never fails on a bad tree; it emits a placeholder and
    records one of these instead.
    """

    MISSING_ROOT = "missing_root"
    MISSING_NODE = "missing_node"
    CYCLE = "cycle"
    CONSTRAINT_MISMATCH = "constraint_mismatch"
    INVALID_COLOR = "invalid_color"


@dataclass
class GenerationWarning:
    """Warning emitted when part of a tree could not be rendered as-is.

    Attributes:
        issue: The GenerationIssue that triggered the warning.
        node_id: ID of the node where the issue occurred.
        message: Human-readable explanation.
        value: The offending value (optional).
    """

    issue: GenerationIssue
    node_id: str
    message: str
    value: str | None = None


@dataclass
class GenerationResult:
    """Result of code generation including source text and any warnings.

    Attributes:
        code: The generated source text.
        warnings: Problems worked around during generation.
        target: Name of the target that generated this result.
    """

    code: str
    warnings: list[GenerationWarning] = field(default_factory=list)
    target: str = ""

    @property
    def has_warnings(self) -> bool:
        """Check if any warnings were emitted."""
        return len(self.warnings) > 0


class CodeTarget(ABC):
    """Abstract base class for code generation targets.

    Each target translates a DesignTree snapshot into source text for one
    terminal-UI library. Generation is pure: the same tree always yields
    the same text, and the tree is never modified.

    Subclasses must implement:
        - name: Target identifier string
        - file_extension: Extension of the generated source file
        - generate_with_warnings: Tree to source conversion

    Example:
        >>> class MyTarget(CodeTarget):
        ...     name = "my_tui"
        ...     file_extension = ".txt"
        ...     def generate_with_warnings(self, tree):
        ...         return GenerationResult(code=tree.root_id, target=self.name)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Target identifier string."""
        ...

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Generated source file extension (e.g., '.rs')."""
        ...

    @property
    def manifest_filename(self) -> str | None:
        """File name of the build manifest, if the target has one."""
        return None

    @abstractmethod
    def generate_with_warnings(self, tree: DesignTree) -> GenerationResult:
        """Generate source text and collect warnings.

        Args:
            tree: The design snapshot to translate.

        Returns:
            GenerationResult with source text and warnings.
        """
        ...

    def generate(self, tree: DesignTree) -> str:
        """Generate source text for a design snapshot.

        Args:
            tree: The design snapshot to translate.

        Returns:
            str: Complete source file contents.
        """
        return self.generate_with_warnings(tree).code

    def generate_manifest(self, project_name: str) -> str | None:
        """Generate the build manifest for a project, if the target has one."""
        return None


# Target registry - populated by target modules on import
_registry: dict[str, type[CodeTarget]] = {}


def register_target(target_cls: type[CodeTarget]) -> type[CodeTarget]:
    """Register a target class in the registry.

    Uses a temporary instance to retrieve the target name.

    Args:
        target_cls: The target class to register.

    Returns:
        The target class (for decorator chaining).

    Example:
        >>> @register_target
        ... class MyTarget(CodeTarget):
        ...     name = "my_tui"
        ...     ...
    """
    # Instantiate once to get the name property
    _registry[target_cls().name] = target_cls
    return target_cls


def get_target(name: str | None = None) -> CodeTarget:
    """Get a target instance by name.

    Args:
        name: The target identifier (e.g., "ratatui"). If None, uses the
            TUIFORGE_CODEGEN_TARGET setting.

    Returns:
        CodeTarget: An instance of the requested target.

    Raises:
        KeyError: If no target with the given name is registered.

    Example:
        >>> target = get_target("ratatui")
        >>> target.generate(tree)
    """
    name = get_environment(EnvVar.CODEGEN_TARGET, override=name)
    if name not in _registry:
        # Attempt to import target modules to trigger registration
        _import_targets()
        if name not in _registry:
            available = ", ".join(_registry.keys()) or "(none)"
            raise KeyError(f"Unknown target '{name}'. Available: {available}")
    return _registry[name]()


def list_targets() -> list[str]:
    """List all registered target names.

    Returns:
        list[str]: List of target identifier strings.

    Example:
        >>> list_targets()
        ['ratatui']
    """
    _import_targets()
    return list(_registry.keys())


def generate(tree: DesignTree, target: str | None = None) -> str:
    """Generate source text for a design snapshot.

    Args:
        tree: The design snapshot to translate.
        target: Target name. If None, uses the configured default.

    Returns:
        str: Complete source file contents.
    """
    return get_target(target).generate(tree)


def generate_with_warnings(
    tree: DesignTree, target: str | None = None
) -> GenerationResult:
    """Generate source text and collect warnings.

    Args:
        tree: The design snapshot to translate.
        target: Target name. If None, uses the configured default.

    Returns:
        GenerationResult with source text and warnings.
    """
    return get_target(target).generate_with_warnings(tree)


def generate_manifest(project_name: str, target: str | None = None) -> str | None:
    """Generate the build manifest for a project.

    Args:
        project_name: Human-readable project name.
        target: Target name. If None, uses the configured default.

    Returns:
        Manifest text, or None if the target has no manifest.
    """
    return get_target(target).generate_manifest(project_name)


def _import_targets() -> None:
    """Import target modules to trigger registration."""
    import importlib

    for module_name in ("ratatui",):
        importlib.import_module(f"tuiforge.codegen.{module_name}")
