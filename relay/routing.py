import os
import pkgutil
from importlib import import_module
from typing import Iterable, Iterator

from fastapi import APIRouter
from starlette.routing import BaseRoute, Route, WebSocketRoute

from relay.logging import logger

# Track registered modules to prevent duplicate logging
_registered_modules: set[str] = set()

# Router packages scanned by collect_subrouters, relative to the package dir
ROUTER_PACKAGES = ("api.http", "api.ws.consumers")


def collect_subrouters() -> APIRouter:
    """
    Collects the HTTP and WebSocket routers of the relay.

    Every module found in `api/http` and `api/ws/consumers` must expose a
    module-level `router`; each of them is included in the returned main
    router. Adding an endpoint therefore only takes dropping a module in
    one of those directories.
    """
    main_router: APIRouter = APIRouter()

    pkg_dir = os.path.dirname(__file__)
    pkg_name = os.path.basename(pkg_dir)

    for sub_package in ROUTER_PACKAGES:
        sub_dir = os.path.join(pkg_dir, *sub_package.split("."))
        for _, module, _ in pkgutil.iter_modules([sub_dir]):
            api = import_module(f".{module}", package=f"{pkg_name}.{sub_package}")
            main_router.include_router(api.router)

            qualified = f"{sub_package}.{module}"
            if qualified not in _registered_modules:
                logger.info(f'Register "{qualified}" router')
                _registered_modules.add(qualified)

    return main_router


def iter_routes(routes: Iterable[BaseRoute]) -> Iterator[BaseRoute]:
    """
    Yields every endpoint route, descending into included routers.

    Depending on the FastAPI version, `include_router` either copies the
    routes of the included router or keeps the router itself as a nested
    entry; both layouts yield the same endpoints.
    """
    for route in routes:
        if isinstance(route, (Route, WebSocketRoute)):
            yield route
            continue

        nested = getattr(route, "routes", None)
        if nested is None:
            nested = getattr(getattr(route, "router", None), "routes", None)

        if nested is None:
            yield route
        else:
            yield from iter_routes(nested)
