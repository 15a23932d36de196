import hashlib
import re
from logging import Logger

import numpy as np
from scitrera_app_framework import Variables as Variables

from ...config import EmbeddingProviderType, IVYRECALL_EMBEDDING_DIMENSIONS

from .base import EmbeddingProvider, EmbeddingProviderPluginBase

DEFAULT_EMBEDDING_DIMENSIONS = 384

_TOKEN_RE = re.compile(r"[a-z0-9']+")


class MockEmbeddingProvider(EmbeddingProvider):
    """
    Deterministic bag-of-words embedding for tests and local runs without an API.

    Each lowercase token is hashed into one bucket; the counts are L2-normalized.
    Texts sharing words are similar and identical texts have similarity 1.0.
    """

    def __init__(self, v: Variables = None, dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS):
        super().__init__(dimensions, v)

    def _bucket(self, token: str) -> int:
        digest = hashlib.sha256(token.encode()).digest()
        return int.from_bytes(digest[:8], byteorder="big") % self.dimensions

    async def embed(self, text: str) -> list[float]:
        counts = np.zeros(self.dimensions)
        for token in _TOKEN_RE.findall(text.lower()):
            counts[self._bucket(token)] += 1.0

        norm = np.linalg.norm(counts)
        if norm > 0:
            counts /= norm
        return counts.tolist()


class MockEmbeddingProviderPlugin(EmbeddingProviderPluginBase):
    PROVIDER_NAME = EmbeddingProviderType.MOCK

    def initialize(self, v: Variables, logger: Logger) -> MockEmbeddingProvider:
        return MockEmbeddingProvider(
            v=v,
            dimensions=v.environ(IVYRECALL_EMBEDDING_DIMENSIONS, default=DEFAULT_EMBEDDING_DIMENSIONS, type_fn=int)
        )
