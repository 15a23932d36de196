from contextlib import asynccontextmanager
from logging import Logger

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from scitrera_app_framework import Plugin, Variables, get_logger as _saf_get_logger, get_variables, get_extension
from scitrera_app_framework.api import ext_parse_csv
from scitrera_app_framework.core.plugins import init_all_plugins

from .. import __version__
from ..config import IVYRECALL_SERVER_CORS_ALLOW_ORIGINS, DEFAULT_IVYRECALL_SERVER_CORS_ALLOW_ORIGINS

EXT_FASTAPI_SERVER = 'ivyrecall-server-fastapi-server'

APP_NAME = "ivyrecall"
APP_DESCRIPTION = "Integrity-aware multi-stream memory recall for conversational agents"


async def get_variables_dep(request: Request) -> Variables:
    return request.app.state.v


async def get_logger(request: Request) -> Logger:
    return _saf_get_logger(request.app.state.v)


class FastApiPlugin(Plugin):
    """
    The FastAPI application. Services start and stop with the app lifespan;
    the recall endpoint is read-only, so CORS only restricts origins.
    """

    def extension_point_name(self, v: Variables) -> str:
        return EXT_FASTAPI_SERVER

    def initialize(self, v, logger) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI):
            from ..dependencies import initialize_services, shutdown_services

            await initialize_services(v)
            app.state.v = v
            try:
                yield
            finally:
                await shutdown_services(v)

        app = FastAPI(title=APP_NAME, description=APP_DESCRIPTION, version=__version__, lifespan=lifespan)

        origins = v.environ(IVYRECALL_SERVER_CORS_ALLOW_ORIGINS,
                            default=DEFAULT_IVYRECALL_SERVER_CORS_ALLOW_ORIGINS, type_fn=ext_parse_csv)
        app.add_middleware(CORSMiddleware, allow_origins=origins, allow_methods=["GET", "POST"], allow_headers=["*"])
        logger.info("FastAPI app created (CORS origins: %s)", origins)

        @app.get("/")
        async def root() -> dict:
            return {"name": APP_NAME, "version": __version__, "description": APP_DESCRIPTION}

        return app


def fastapi_app_factory(v: Variables = None) -> FastAPI:
    """Build the app; async plugin hooks run later inside the lifespan."""
    v = get_variables(v)
    init_all_plugins(v, async_enabled=False)
    return get_extension(EXT_FASTAPI_SERVER, v)
