"""Embedding backends used to recall past transmissions.

Each transmission is indexed as a small document combining its text,
its style and the places it was heard near, so a search for a place
name finds what was received there.
"""

from __future__ import annotations

import hashlib
import json
import math
import random
import re
from typing import Protocol

from aethereal_drift.models import DriftConfig, Transmission

_TOKEN = re.compile(r"[a-z0-9']+")


def transmission_document(transmission: Transmission) -> str:
    """Text indexed for a transmission."""
    lines = [
        transmission.text,
        f"Style: {transmission.style.value.replace('_', ' ')}",
    ]
    if transmission.anchor_titles:
        lines.append("Near: " + ", ".join(transmission.anchor_titles))
    return "\n".join(lines)


def serialize_vector(vec: list[float]) -> str:
    """Serialize a vector to JSON for sqlite-vec."""
    return json.dumps(vec)


class EmbeddingBackend(Protocol):
    """Protocol for embedding backends."""

    def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    @property
    def dimensions(self) -> int:
        """Return the dimensionality of embeddings."""
        ...


class LocalEmbedding:
    """sentence-transformers model producing unit-length vectors."""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        from sentence_transformers import SentenceTransformer

        self.model = SentenceTransformer(model_name)
        self._dimensions = self.model.get_sentence_embedding_dimension()

    def embed(self, text: str) -> list[float]:
        return self.model.encode(text, normalize_embeddings=True).tolist()

    @property
    def dimensions(self) -> int:
        return self._dimensions


class OpenAIEmbedding:
    """OpenAI embeddings API.

    The text-embedding-3 models are shortened to the configured vector
    width; older models keep their native size.
    """

    _FIXED_DIMENSIONS = {"text-embedding-ada-002": 1536}

    def __init__(self, model: str = "text-embedding-3-small", dimensions: int = 384):
        from openai import OpenAI

        self.model = model
        self.client = OpenAI()
        self._dimensions = self._FIXED_DIMENSIONS.get(model, dimensions)

    def embed(self, text: str) -> list[float]:
        kwargs = {}
        if self.model not in self._FIXED_DIMENSIONS:
            kwargs["dimensions"] = self._dimensions
        response = self.client.embeddings.create(input=text, model=self.model, **kwargs)
        return response.data[0].embedding

    @property
    def dimensions(self) -> int:
        return self._dimensions


class TokenHashEmbedding:
    """Deterministic bag-of-words embedding with no model download.

    Every lowercase word maps to a fixed pseudo-random direction and a
    text is the normalized sum of its words, so texts sharing words land
    close together. Used offline and in tests.
    """

    def __init__(self, dimensions: int = 384):
        self._dimensions = dimensions
        self._vectors: dict[str, list[float]] = {}

    def _token_vector(self, token: str) -> list[float]:
        vector = self._vectors.get(token)
        if vector is None:
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            rng = random.Random(int.from_bytes(digest[:8], "big", signed=False))
            vector = [rng.gauss(0.0, 1.0) for _ in range(self._dimensions)]
            self._vectors[token] = vector
        return vector

    def embed(self, text: str) -> list[float]:
        total = [0.0] * self._dimensions
        for token in _TOKEN.findall(text.lower()):
            for i, value in enumerate(self._token_vector(token)):
                total[i] += value
        norm = math.sqrt(sum(v * v for v in total))
        if norm == 0.0:
            return total
        return [v / norm for v in total]

    @property
    def dimensions(self) -> int:
        return self._dimensions


def create_embedding(config: DriftConfig) -> EmbeddingBackend:
    """Build the embedding backend named by config.embedding_backend."""
    if config.embedding_backend == "openai":
        return OpenAIEmbedding(
            model=config.openai_embedding_model,
            dimensions=config.vector_dimensions,
        )
    if config.embedding_backend == "hash":
        return TokenHashEmbedding(dimensions=config.vector_dimensions)
    return LocalEmbedding(model_name=config.embedding_model)
