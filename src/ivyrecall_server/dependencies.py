"""dependency injection for ivyrecall.

Uses scitrera-app-framework plugin pattern for service initialization.
Services are lazily initialized on first access via get_extension().
"""
import logging
from logging import Logger

from scitrera_app_framework import (
    Variables, get_variables, get_logger, init_framework_desktop,
    async_plugins_ready, async_plugins_stopping
)
from .config import IVYRECALL_DATA_DIR


# noinspection PyTypeHints
def preconfigure(v: Variables = None, test_mode: bool = False, test_logger: Logger = None) -> (Variables, dict):
    """ Pre-configure the framework """
    from scitrera_app_framework import register_package_plugins
    from . import api, services, lifecycle  # noqa: F401

    additional_kwargs = {} if not test_mode else {
        'fault_handler': False,
        'fixed_logger': test_logger,
        'pyroscope': False,
        'shutdown_hooks': False,
    }

    # init framework (has internal protection against multiple invocations)
    v: Variables = init_framework_desktop(
        'ivyrecall-server',
        base_plugins=False,
        stateful_chdir=True,
        stateful_root_env_key=IVYRECALL_DATA_DIR,
        async_auto_enabled=False,  # async plugin hooks are driven by initialize_services()
        v=v,
        **additional_kwargs
    )

    logging.getLogger('aiosqlite').setLevel(logging.WARNING)
    logging.getLogger('httpcore.http11').setLevel(logging.WARNING)
    logging.getLogger('httpcore.connection').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('openai._base_client').setLevel(logging.WARNING)

    if v.get('__preconfigure_complete__', default=False):
        return v, services

    logger = get_logger(v)

    logger.debug('Registering core services')
    register_package_plugins(services.__package__, v, recursive=True)

    logger.debug('Registering lifecycle components')
    register_package_plugins(lifecycle.__package__, v, recursive=True)

    logger.debug('Registering API Routes')
    register_package_plugins(api.__package__, v, recursive=True)

    v.set('__preconfigure_complete__', True)
    return v, services


def initialize_sync(v: Variables = None) -> Variables:
    """Register and initialize plugins without running their async hooks (no storage connection)."""
    v, _ = preconfigure(v)
    from scitrera_app_framework.core.plugins import init_all_plugins
    init_all_plugins(v, async_enabled=False)
    return v


async def initialize_services(v: Variables = None) -> Variables:
    """Initialize all services on application startup."""

    v, services = preconfigure(v)
    logger = get_logger(v)

    logger.debug("Initializing services")
    from scitrera_app_framework.core.plugins import init_all_plugins
    init_all_plugins(v, async_enabled=False)  # handle sync part
    await async_plugins_ready(v)  # handle async part with sequencing managed

    return v


async def shutdown_services(v: Variables = None) -> None:
    """Shutdown all services on application shutdown."""

    v = get_variables(v)
    logger = get_logger(v)

    logger.debug("Shutting down services")
    await async_plugins_stopping(v)

    from scitrera_app_framework.core.plugins import shutdown_all_plugins
    shutdown_all_plugins(v)
