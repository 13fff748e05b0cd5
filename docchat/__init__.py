"""docchat - conversational question answering over an indexed document."""

from .api import create_app
from .completion import ChatCompletionService
from .context import ContextAssembler
from .document_processing import DocumentLoader, TextChunker
from .embeddings import EmbeddingService
from .exceptions import DocChatError, InternalError, UpstreamError, ValidationError
from .generator import FALLBACK_ANSWER, AnswerGenerator
from .ingestion import IngestionPipeline
from .models import DocumentChunk, IndexMatch, PipelineResult, Role, Turn
from .pipeline import ChatPipeline, PipelineStage
from .retriever import Retriever
from .rewriter import QueryRewriter
from .session_store import SessionStore
from .vector_store import FaissVectorStore, get_vector_store

__all__ = [
    "FALLBACK_ANSWER",
    "AnswerGenerator",
    "ChatCompletionService",
    "ChatPipeline",
    "ContextAssembler",
    "DocChatError",
    "DocumentChunk",
    "DocumentLoader",
    "EmbeddingService",
    "FaissVectorStore",
    "IndexMatch",
    "IngestionPipeline",
    "InternalError",
    "PipelineResult",
    "PipelineStage",
    "QueryRewriter",
    "Retriever",
    "Role",
    "SessionStore",
    "TextChunker",
    "Turn",
    "UpstreamError",
    "ValidationError",
    "create_app",
    "get_vector_store",
]
