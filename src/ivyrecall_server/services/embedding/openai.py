from logging import Logger
from typing import Optional

from scitrera_app_framework import Variables as Variables

from ...config import EmbeddingProviderType, IVYRECALL_EMBEDDING_MODEL, IVYRECALL_EMBEDDING_DIMENSIONS

from .base import EmbeddingProvider, EmbeddingProviderPluginBase

IVYRECALL_EMBEDDING_OPENAI_API_KEY = 'IVYRECALL_EMBEDDING_OPENAI_API_KEY'
IVYRECALL_EMBEDDING_OPENAI_BASE_URL = 'IVYRECALL_EMBEDDING_OPENAI_BASE_URL'

DEFAULT_EMBEDDING_MODEL = 'text-embedding-3-small'
DEFAULT_EMBEDDING_DIMENSIONS = 1536


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Query embeddings from the OpenAI API or any OpenAI-compatible endpoint (base_url)."""

    def __init__(self, client, model: str = DEFAULT_EMBEDDING_MODEL,
                 dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS, v: Variables = None):
        super().__init__(dimensions, v)
        self.client = client
        self.model = model

    async def embed(self, text: str) -> list[float]:
        response = await self.client.embeddings.create(input=text, model=self.model, dimensions=self.dimensions)
        return response.data[0].embedding


class OpenAIEmbeddingProviderPlugin(EmbeddingProviderPluginBase):
    PROVIDER_NAME = EmbeddingProviderType.OPENAI

    def initialize(self, v: Variables, logger: Logger) -> OpenAIEmbeddingProvider:
        import openai

        base_url: Optional[str] = v.environ(IVYRECALL_EMBEDDING_OPENAI_BASE_URL, default=None)
        client = openai.AsyncOpenAI(api_key=v.environ(IVYRECALL_EMBEDDING_OPENAI_API_KEY, default='x'),
                                    base_url=base_url)
        model = v.environ(IVYRECALL_EMBEDDING_MODEL, default=DEFAULT_EMBEDDING_MODEL)
        logger.info("OpenAI embeddings: model=%s, endpoint=%s", model, base_url or 'default')
        return OpenAIEmbeddingProvider(
            client=client,
            model=model,
            dimensions=v.environ(IVYRECALL_EMBEDDING_DIMENSIONS, default=DEFAULT_EMBEDDING_DIMENSIONS, type_fn=int),
            v=v,
        )
