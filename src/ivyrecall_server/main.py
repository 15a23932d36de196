"""ASGI entry point for uvicorn/gunicorn: `uvicorn ivyrecall_server.main:app`."""
from ivyrecall_server.dependencies import preconfigure
from ivyrecall_server.lifecycle.fastapi import fastapi_app_factory

app = fastapi_app_factory(preconfigure()[0])
