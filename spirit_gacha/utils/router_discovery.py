import importlib
import pkgutil

from fastapi import APIRouter, FastAPI
from loguru import logger


def discover_routers(package_name: str = "spirit_gacha.api") -> list[APIRouter]:
    """Collect the module-level `APIRouter` instances of every module in a package.

    Subpackages are scanned too.
    """
    package = importlib.import_module(package_name)
    package_path = getattr(package, "__path__", None)
    if not package_path:
        logger.warning(f"Cannot scan {package_name} for routers as it's not a package")
        return []

    routers: list[APIRouter] = []
    for module_info in pkgutil.iter_modules(package_path):
        full_module_name = f"{package_name}.{module_info.name}"
        if module_info.ispkg:
            routers.extend(discover_routers(full_module_name))
            continue

        module = importlib.import_module(full_module_name)
        found = [obj for obj in vars(module).values() if isinstance(obj, APIRouter)]
        if found:
            logger.info(f"Discovered {len(found)} router(s) in {full_module_name}")
        routers.extend(found)

    return routers


def register_routers(app: FastAPI, prefix: str = "/api") -> None:
    for router in discover_routers():
        app.include_router(router, prefix=prefix)
