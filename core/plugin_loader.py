"""
Plugin loader for automatic discovery and registration of transform classes.
"""

import importlib
import inspect
import logging
import pathlib
import pkgutil
from typing import Dict, Type

from .interfaces import Transform

logger = logging.getLogger(__name__)

# Plugin directory relative to this file
PLUGIN_DIR = pathlib.Path(__file__).parent.parent / "plugins"
PLUGIN_PACKAGE = "plugins"

# Global registry of discovered transform classes
_REGISTRY: Dict[str, Type[Transform]] = {}


def _register_module(plugin_name: str, module_name: str) -> int:
    """Register every concrete Transform defined in *module_name*."""
    mod = importlib.import_module(module_name)
    found = 0
    for name, obj in inspect.getmembers(mod, inspect.isclass):
        if (issubclass(obj, Transform)
                and not inspect.isabstract(obj)
                and obj.__module__ == mod.__name__):
            key = f"{plugin_name}.{obj.__name__}"
            _REGISTRY[key] = obj
            found += 1
            logger.debug("Registered transform: %s", key)
    return found


def refresh_registry() -> None:
    """Import every plugin package under plugins/ and register its Transform subclasses."""
    _REGISTRY.clear()

    if not PLUGIN_DIR.exists():
        logger.warning("Plugin directory does not exist: %s", PLUGIN_DIR)
        return

    module_count = 0
    transform_count = 0

    for pkg in pkgutil.iter_modules([str(PLUGIN_DIR)]):
        if not pkg.ispkg or pkg.name.startswith("_"):
            continue
        pkg_path = PLUGIN_DIR / pkg.name
        for sub in pkgutil.iter_modules([str(pkg_path)]):
            if sub.name.startswith("_"):
                continue
            module_name = f"{PLUGIN_PACKAGE}.{pkg.name}.{sub.name}"
            try:
                transform_count += _register_module(pkg.name, module_name)
                module_count += 1
            except Exception as e:
                logger.error("Failed to load module %s: %s", module_name, e)

    logger.info("Plugin discovery complete: %d modules, %d transforms", module_count, transform_count)


def get(class_path: str) -> Type[Transform]:
    """Get a transform class by its plugin path.

    Args:
        class_path: Format 'plugin_name.ClassName' (e.g., 'hackerone.InboxTimelineFetcher')

    Returns:
        The transform class

    Raises:
        KeyError: If the class is not found
    """
    if not _REGISTRY:
        refresh_registry()

    if class_path not in _REGISTRY:
        available = list(_REGISTRY.keys())
        raise KeyError(f"Transform '{class_path}' not found. Available: {available}")

    return _REGISTRY[class_path]


def list_available() -> Dict[str, Type[Transform]]:
    """Get a copy of all registered transforms."""
    if not _REGISTRY:
        refresh_registry()
    return _REGISTRY.copy()
