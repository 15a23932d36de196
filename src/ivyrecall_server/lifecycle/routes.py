from typing import Iterable

from scitrera_app_framework import get_extensions, Plugin, Variables

from ..api import EXT_MULTI_API_ROUTERS
from .fastapi import EXT_FASTAPI_SERVER

EXT_ROUTES = 'ivyrecall-server-fastapi-routes'


class RoutesPlugin(Plugin):
    """Mounts the health and recall routers on the app."""

    def extension_point_name(self, v: Variables) -> str:
        return EXT_ROUTES

    def initialize(self, v, logger) -> None:
        app = self.get_extension(EXT_FASTAPI_SERVER, v)
        routers = get_extensions(EXT_MULTI_API_ROUTERS, v)
        for router in routers.values():
            app.include_router(router)
        logger.info("Mounted API routers: %s", ", ".join(sorted(routers)))

    def get_dependencies(self, v: Variables) -> Iterable[str] | None:
        return (EXT_FASTAPI_SERVER,)
