"""Feature modules with auto-discovery."""

from importlib import import_module
from pathlib import Path

import structlog
from fastapi import APIRouter


logger = structlog.get_logger()


def discover_modules() -> list[APIRouter]:
    """Collect the ``router`` of every feature module.

    Each subpackage of ``nexus.modules`` that ships a ``routes`` module
    exposing ``router`` is mounted. A module that fails to import is a
    startup error, not a silently missing API.

    Returns:
        List of FastAPI routers from discovered modules.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if not path.is_dir() or path.name.startswith("_"):
            continue
        if not (path / "routes.py").exists():
            continue
        module = import_module(f"nexus.modules.{path.name}.routes")
        router = getattr(module, "router", None)
        if router is not None:
            routers.append(router)
            logger.debug("module_loaded", module=path.name)

    return routers
