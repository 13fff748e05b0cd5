"""Follow-up question rewriting."""

from .config import config
from .models import Turn
from .providers import CompletionProvider
from .session_store import SessionStore

logger = config.get_logger(__name__)

REWRITE_INSTRUCTION = (
    "You are a query rewriting expert. Based on the provided chat history, "
    'rephrase the "Follow Up user Question" into a complete, standalone question '
    "that can be understood without the chat history.\n"
    "Only output the rewritten question and nothing else."
)


class QueryRewriter:
    """Turns a context-dependent follow-up into a standalone search query."""

    def __init__(
        self,
        completion: CompletionProvider,
        sessions: SessionStore,
        instruction: str = REWRITE_INSTRUCTION,
    ) -> None:
        self.completion = completion
        self.sessions = sessions
        self.instruction = instruction

    async def rewrite(self, question: str, session_id: str) -> str:
        """Generate a standalone query from the session's prior turns.

        The question is sent as a transient user turn on top of a copy of the
        persisted history; the store itself is never modified.

        Returns:
            str: The standalone query, or the original question if the model
                returned nothing.
        """
        turns = [*self.sessions.get(session_id), Turn.user(question)]
        rewritten = (await self.completion.generate(turns, self.instruction)).strip()
        if not rewritten:
            logger.warning("Empty rewrite for session %s; using question", session_id)
            return question
        logger.info("Generated standalone query: %s", rewritten)
        return rewritten
