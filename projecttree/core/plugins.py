# projecttree/core/plugins.py
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional, Type
import importlib.metadata
from loguru import logger

from .models import TreeNodeSnapshot

if TYPE_CHECKING:
    from .tree_view import TreeView


class ActionHandler(ABC):
    """
    Gives behaviour to a menu/toolbar action the tree itself only logs
    (new-file, new-folder, rename, delete, paste).
    """
    action_id: str = "" # Action id this handler serves, e.g. "rename"

    @abstractmethod
    def handle(self, view: "TreeView", node: TreeNodeSnapshot) -> None:
        """Runs the action for `node`. A delete handler only runs after confirmation."""


# --- Handler Registry ---
_handler_registry: Dict[str, Type[ActionHandler]] = {}


def register_handler(cls: Type[ActionHandler]) -> Type[ActionHandler]:
    """Decorator or function to register a handler class."""
    if not isinstance(cls, type) or not issubclass(cls, ActionHandler):
        raise TypeError("Handler must inherit from ActionHandler")
    if not cls.action_id:
        raise ValueError(f"Handler {cls.__name__} must define an 'action_id' attribute.")

    if cls.action_id in _handler_registry:
        logger.warning(f"Handler conflict: '{cls.action_id}' already registered. Overwriting.")
    _handler_registry[cls.action_id] = cls
    logger.info(f"Registered action handler for '{cls.action_id}': {cls.__name__}")
    return cls


def unregister_handler(action_id: str):
    _handler_registry.pop(action_id, None)


def load_handlers(entry_point_group: str = "projecttree.action_handlers") -> int:
    """Discovers handlers through importlib.metadata entry points. Returns how many were added."""
    logger.info(f"Discovering action handlers using entry point group: '{entry_point_group}'")
    try:
        entry_points = importlib.metadata.entry_points(group=entry_point_group)
    except Exception as e:
        logger.error(f"Error accessing entry points for group '{entry_point_group}': {e}")
        entry_points = []

    loaded_count = 0
    for ep in entry_points:
        try:
            handler_class = ep.load()
        except Exception as e:
            logger.exception(f"Failed to load action handler from entry point {ep.name}: {e}")
            continue
        if not isinstance(handler_class, type) or not issubclass(handler_class, ActionHandler):
            logger.warning(f"Entry point {ep.name} did not load an ActionHandler subclass.")
            continue
        if not handler_class.action_id:
            logger.error(f"Handler class {handler_class.__name__} from entry point {ep.name} lacks an 'action_id'.")
            continue
        if handler_class.action_id in _handler_registry:
            logger.warning(f"Handler conflict via entry point: '{handler_class.action_id}' already registered. Skipping {ep.name}.")
            continue
        _handler_registry[handler_class.action_id] = handler_class
        logger.info(f"Loaded handler for '{handler_class.action_id}' from entry point '{ep.name}'")
        loaded_count += 1

    logger.info(f"Loaded {loaded_count} action handlers via entry points. Total registered: {len(_handler_registry)}")
    return loaded_count


def get_handler(action_id: str) -> Optional[ActionHandler]:
    """Returns a fresh handler instance for `action_id`, or None."""
    cls = _handler_registry.get(action_id)
    return cls() if cls else None


def get_registered_actions() -> List[str]:
    return sorted(_handler_registry)
