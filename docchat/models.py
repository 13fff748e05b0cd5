"""Data models for the chat pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class Turn:
    """Represents a single message in a session's history."""

    role: Role
    text: str

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(Role.USER, text)

    @classmethod
    def model(cls, text: str) -> "Turn":
        return cls(Role.MODEL, text)


@dataclass
class DocumentChunk:
    """Represents a chunk of text from a document."""

    content: str
    metadata: dict[str, Any]
    embedding: np.ndarray | None = None


@dataclass
class IndexMatch:
    """A single hit returned by a vector index."""

    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


RetrievalResult = list[tuple[DocumentChunk, float]]


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one chat request, handed to the transport layer."""

    success: bool
    answer: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, answer: str) -> "PipelineResult":
        return cls(success=True, answer=answer)

    @classmethod
    def failed(cls, error: str) -> "PipelineResult":
        return cls(success=False, error=error)
