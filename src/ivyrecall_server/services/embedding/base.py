from abc import ABC, abstractmethod

from scitrera_app_framework.api import Variables, Plugin, enabled_option_pattern
from scitrera_app_framework import get_logger

from ...config import (
    IVYRECALL_EMBEDDING_PROVIDER, DEFAULT_IVYRECALL_EMBEDDING_PROVIDER,
    IVYRECALL_EMBEDDING_SERVICE, DEFAULT_IVYRECALL_EMBEDDING_SERVICE,
)
from .._constants import EXT_EMBEDDING_PROVIDER, EXT_EMBEDDING_SERVICE


class EmbeddingProvider(ABC):
    """Turns query text into a fixed-length vector; may raise on failure."""

    def __init__(self, dimensions: int, v: Variables = None):
        self.dimensions = dimensions
        self.logger = get_logger(v, name=self.__class__.__name__)

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        pass


# noinspection PyAbstractClass
class EmbeddingProviderPluginBase(Plugin):
    """Base Plugin Implementation for embedding providers."""
    PROVIDER_NAME: str = ''

    def name(self) -> str:
        return f"{EXT_EMBEDDING_PROVIDER}|{self.PROVIDER_NAME}"

    def extension_point_name(self, v: Variables) -> str:
        return EXT_EMBEDDING_PROVIDER

    def is_enabled(self, v: Variables) -> bool:
        return enabled_option_pattern(self, v, IVYRECALL_EMBEDDING_PROVIDER, self_attr='PROVIDER_NAME')

    def on_registration(self, v: Variables) -> None:
        v.set_default_value(IVYRECALL_EMBEDDING_PROVIDER, DEFAULT_IVYRECALL_EMBEDDING_PROVIDER)


# noinspection PyAbstractClass
class EmbeddingServicePluginBase(Plugin):
    """Base plugin for the embedding service wrapped around the provider."""
    PROVIDER_NAME: str = None

    def name(self) -> str:
        return f"{EXT_EMBEDDING_SERVICE}|{self.PROVIDER_NAME}"

    def extension_point_name(self, v: Variables) -> str:
        return EXT_EMBEDDING_SERVICE

    def is_enabled(self, v: Variables) -> bool:
        return enabled_option_pattern(self, v, IVYRECALL_EMBEDDING_SERVICE, self_attr='PROVIDER_NAME')

    def on_registration(self, v: Variables) -> None:
        v.set_default_value(IVYRECALL_EMBEDDING_SERVICE, DEFAULT_IVYRECALL_EMBEDDING_SERVICE)

    def get_dependencies(self, v: Variables):
        return (EXT_EMBEDDING_PROVIDER,)
