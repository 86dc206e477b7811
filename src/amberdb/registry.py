"""
Entity type registry and discovery.

Entities reach the registry in three ways:

* self-registration: every concrete :class:`~amberdb.core.Entity` subclass
  registers itself when its class body executes;
* a static manifest: :meth:`EntityRegistry.load_manifest` imports an explicit
  list of modules;
* a filesystem scan: :func:`discover` walks import roots and imports every
  module it finds.

The scan only walks directories. Archives on the import path (zip, egg,
wheel) are never opened, so entities packaged inside them are not found by
:func:`discover`; list their modules in a manifest instead.
"""

from __future__ import annotations

import importlib
import inspect
import os
import sys
import sysconfig
import threading
from pathlib import Path
from typing import Iterable, Iterator

from .core.model import Entity, is_persistable
from .utils import get_logger, module_name_for

logger = get_logger("registry")

_SKIPPED_DIRS = {"__pycache__", "site-packages", "dist-packages", "node_modules"}


class EntityRegistry:
    """
    Thread-safe set of persistable types.
    """

    def __init__(self) -> None:
        self._models: dict[str, type[Entity]] = {}
        self._lock = threading.Lock()

    def register(self, model: type[Entity]) -> None:
        if not is_persistable(model):
            raise TypeError(f"{model!r} is not a persistable entity type")
        key = f"{model.__module__}.{model.__qualname__}"
        with self._lock:
            self._models[key] = model
        logger.debug("Registered entity %s", key)

    def unregister(self, model: type[Entity]) -> None:
        key = f"{model.__module__}.{model.__qualname__}"
        with self._lock:
            self._models.pop(key, None)

    def models(self) -> set[type[Entity]]:
        with self._lock:
            return set(self._models.values())

    def load_manifest(self, module_names: Iterable[str]) -> set[type[Entity]]:
        """
        Import every module in ``module_names`` and return the entities they define.

        Unlike :func:`discover`, a module that cannot be imported is an error:
        a manifest is an explicit promise that the module exists.
        """
        found: set[type[Entity]] = set()
        for module_name in module_names:
            module = importlib.import_module(module_name)
            found.update(_entities_defined_in(module))
        return found

    def __contains__(self, model: object) -> bool:
        return model in self.models()


entity_registry = EntityRegistry()


def discover(paths: Iterable[str | os.PathLike[str]] | None = None) -> set[type[Entity]]:
    """
    Scan import roots for modules and return every persistable type they define.

    ``paths`` defaults to the directories on ``sys.path`` that are not part of
    the interpreter installation. Each root must be importable, i.e. module
    names are computed relative to it. A candidate module that fails to import
    is skipped; discovery never aborts because of one bad module.
    """
    roots = list(paths) if paths is not None else list(default_scan_roots())
    found: set[type[Entity]] = set()
    for root in roots:
        root_path = Path(root)
        if not root_path.is_dir():
            logger.debug("Skipping non-directory scan root %s", root_path)
            continue
        for module_name in _iter_candidate_modules(root_path):
            module = _resolve(module_name)
            if module is None:
                continue
            found.update(_entities_defined_in(module))
    logger.info("Discovered %d entity type(s) across %d root(s)", len(found), len(roots))
    return found


def default_scan_roots() -> Iterator[Path]:
    install_paths = set()
    for key in ("stdlib", "platstdlib", "purelib", "platlib"):
        location = sysconfig.get_paths().get(key)
        if location:
            install_paths.add(Path(location).resolve())

    seen: set[Path] = set()
    for entry in sys.path:
        path = Path(entry or os.getcwd()).resolve()
        if path in seen or not path.is_dir():
            continue
        seen.add(path)
        if any(path == location or location in path.parents for location in install_paths):
            continue
        yield path


def _iter_candidate_modules(root: Path) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            name for name in dirnames if name not in _SKIPPED_DIRS and not name.startswith(".")
        )
        relative = Path(dirpath).relative_to(root).parts
        for filename in sorted(filenames):
            if not filename.endswith(".py"):
                continue
            module_name = module_name_for((*relative, filename))
            if module_name is None:
                logger.debug("Skipping unimportable file %s", Path(dirpath) / filename)
                continue
            yield module_name


def _resolve(module_name: str):
    try:
        return importlib.import_module(module_name)
    except (Exception, SystemExit) as exc:  # noqa: BLE001
        logger.debug("Skipping candidate %s: %s: %s", module_name, type(exc).__name__, exc)
        return None


def _entities_defined_in(module) -> set[type[Entity]]:
    return {
        obj
        for _, obj in inspect.getmembers(module, inspect.isclass)
        if obj.__module__ == module.__name__ and is_persistable(obj)
    }
