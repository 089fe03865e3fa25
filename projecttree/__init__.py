# projecttree/__init__.py
import os
from loguru import logger

__version__ = "0.3.0"

# Centralized action handler loading
def _initialize_handlers():
    """Loads action handler plugins unless explicitly skipped."""
    # Allow skipping handler loading for tests or specific environments
    if os.environ.get("PROJECTTREE_SKIP_PLUGINS", "0") == "1":
        logger.info("Skipping action handler loading due to PROJECTTREE_SKIP_PLUGINS=1.")
        return

    try:
        from .core.plugins import load_handlers
        load_handlers() # Discover and register handlers from entry points
    except ImportError as e:
        logger.warning(f"Could not load action handlers during initial import: {e}")
    except Exception:
        logger.exception("An unexpected error occurred during action handler loading.")

_initialize_handlers()
