"""Per-request orchestration of the conversational retrieval pipeline."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from .config import config
from .context import ContextAssembler
from .exceptions import InternalError, UpstreamError, ValidationError
from .generator import AnswerGenerator
from .models import PipelineResult
from .retriever import Retriever
from .rewriter import QueryRewriter
from .session_store import SessionStore

if TYPE_CHECKING:
    from .providers import CompletionProvider, EmbeddingProvider, VectorIndex

logger = config.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error while processing the request"


class PipelineStage(str, Enum):
    """States a request moves through."""

    START = "start"
    REWRITING = "rewriting"
    RETRIEVING = "retrieving"
    ASSEMBLING = "assembling"
    GENERATING = "generating"
    DONE = "done"
    FAILED = "failed"


class ChatPipeline:
    """Sequences rewrite, retrieval, assembly and generation for one question.

    Stages run one after another and a failing stage ends the request; nothing
    is retried. The session lock is held for the whole request so concurrent
    questions in the same session cannot interleave their history updates.

    Usage:
        pipeline = ChatPipeline.from_providers(embeddings, index, completion)
        result = await pipeline.handle("What is a stack?", "s1")
    """

    def __init__(
        self,
        sessions: SessionStore,
        rewriter: QueryRewriter,
        retriever: Retriever,
        assembler: ContextAssembler,
        generator: AnswerGenerator,
    ) -> None:
        self.sessions = sessions
        self.rewriter = rewriter
        self.retriever = retriever
        self.assembler = assembler
        self.generator = generator

    @classmethod
    def from_providers(  # noqa: PLR0913
        cls,
        embeddings: EmbeddingProvider,
        index: VectorIndex,
        completion: CompletionProvider,
        *,
        rewrite_completion: CompletionProvider | None = None,
        sessions: SessionStore | None = None,
        top_k: int | None = None,
        max_context_chars: int | None = None,
    ) -> ChatPipeline:
        """Wire the pipeline stages around the three capability providers.

        Args:
            embeddings: Embeds the standalone query.
            index: Vector index searched for grounding chunks.
            completion: Produces the grounded answer.
            rewrite_completion: Rewrites follow-ups. Defaults to ``completion``.
            sessions: History store. Defaults to a store bounded by
                config.MAX_HISTORY_TURNS, which keeps every turn unless set.
            top_k: Chunks to retrieve. Defaults to config.RETRIEVAL_TOP_K.
            max_context_chars: Context budget. Defaults to config.MAX_CONTEXT_CHARS.

        Returns:
            A ready-to-use pipeline.
        """
        if sessions is None:
            sessions = SessionStore(max_turns=config.MAX_HISTORY_TURNS)
        return cls(
            sessions=sessions,
            rewriter=QueryRewriter(rewrite_completion or completion, sessions),
            retriever=Retriever(embeddings, index, top_k=top_k),
            assembler=ContextAssembler(max_chars=max_context_chars),
            generator=AnswerGenerator(completion, sessions),
        )

    async def handle(self, question: str, session_id: str) -> PipelineResult:
        """Answer a question within a session.

        Returns:
            PipelineResult: ``ok`` with the answer, or ``failed`` with a
                human-readable error message.
        """
        try:
            if not question or not question.strip():
                msg = "Message is required"
                raise ValidationError(msg)
            async with self.sessions.lock(session_id):
                answer = await self._run(question, session_id)
        except ValidationError as exc:
            return PipelineResult.failed(str(exc))
        except UpstreamError as exc:
            logger.error(  # noqa: TRY400
                "Session %s: %s provider error: %s",
                session_id,
                exc.provider,
                exc.message,
            )
            return PipelineResult.failed(exc.message)
        except InternalError as exc:
            return PipelineResult.failed(str(exc))
        return PipelineResult.ok(answer)

    async def _run(self, question: str, session_id: str) -> str:
        """Run every stage in order.

        Raises:
            UpstreamError: If a provider call fails.
            InternalError: If anything else goes wrong.
        """
        stage = PipelineStage.START
        try:
            stage = PipelineStage.REWRITING
            query = await self.rewriter.rewrite(question, session_id)

            stage = PipelineStage.RETRIEVING
            results = await self.retriever.retrieve(query)

            stage = PipelineStage.ASSEMBLING
            context = self.assembler.assemble(results)

            stage = PipelineStage.GENERATING
            answer = await self.generator.generate(query, context, session_id)
        except UpstreamError:
            logger.warning(
                "Session %s: %s during %s",
                session_id,
                PipelineStage.FAILED.value,
                stage.value,
            )
            raise
        except Exception as exc:
            logger.exception(
                "Session %s: %s during %s",
                session_id,
                PipelineStage.FAILED.value,
                stage.value,
            )
            raise InternalError(INTERNAL_ERROR_MESSAGE) from exc

        logger.info("Session %s: pipeline %s", session_id, PipelineStage.DONE.value)
        return answer
