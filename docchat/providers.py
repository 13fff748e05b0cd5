"""Capability interfaces the chat pipeline depends on.

These protocols are the only seam between the pipeline and a concrete
provider. The OpenAI and FAISS adapters implement them for production, and
the test suite substitutes deterministic fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np

    from .models import IndexMatch, Turn


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into a fixed-dimension dense vector."""

    async def embed(self, text: str) -> np.ndarray: ...


@runtime_checkable
class VectorIndex(Protocol):
    """Nearest-neighbour search over pre-indexed chunk embeddings."""

    async def query(
        self,
        vector: np.ndarray,
        top_k: int,
        *,
        include_metadata: bool = True,
    ) -> list[IndexMatch]: ...


@runtime_checkable
class CompletionProvider(Protocol):
    """Stateless text generation over a list of conversation turns."""

    async def generate(
        self,
        turns: Sequence[Turn],
        system_instruction: str,
    ) -> str: ...
