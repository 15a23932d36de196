from logging import Logger

from scitrera_app_framework import get_logger, Variables as Variables

from .base import EmbeddingProvider, EmbeddingServicePluginBase, EXT_EMBEDDING_PROVIDER
from ...utils import zero_vector


class EmbeddingService:
    """
    Query embedding for recall; embed() never raises.

    The zero vector (all zeros, provider dimensions) is the sentinel for "no embedding":
    it is returned when the caller bypasses embedding at high integrity risk, for blank
    text, and when the provider fails. The semantic stream treats it as "search nothing".
    """

    def __init__(self, provider: EmbeddingProvider, v: Variables = None):
        self.provider = provider
        self.logger = get_logger(v, name=self.__class__.__name__)
        self.logger.info("Initialized EmbeddingService (%s, %d dimensions)",
                         provider.__class__.__name__, provider.dimensions)

    @property
    def dimensions(self) -> int:
        return self.provider.dimensions

    async def embed(self, text: str, bypass: bool = False) -> list[float]:
        if bypass:
            self.logger.debug("Embedding bypassed for integrity; returning zero vector")
            return zero_vector(self.dimensions)
        if not text or not text.strip():
            return zero_vector(self.dimensions)

        try:
            return await self.provider.embed(text)
        except Exception as e:
            self.logger.warning("Embedding provider failed, using zero vector: %s", e)
            return zero_vector(self.dimensions)


class EmbeddingServicePlugin(EmbeddingServicePluginBase):
    """Default plugin for embedding service."""
    PROVIDER_NAME = 'default'

    def initialize(self, v: Variables, logger: Logger) -> EmbeddingService:
        return EmbeddingService(provider=self.get_extension(EXT_EMBEDDING_PROVIDER, v), v=v)
