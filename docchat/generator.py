"""Grounded answer generation."""

from .config import config
from .models import Turn
from .providers import CompletionProvider
from .session_store import SessionStore

logger = config.get_logger(__name__)

FALLBACK_ANSWER = "I could not find the answer in the provided document."

ANSWER_INSTRUCTION = f"""You are a Data Structure and Algorithm Expert.
You will be given a context of relevant information and a user question.
Your task is to answer the user's question based ONLY on the provided context.
If the answer is not in the context, you must say "{FALLBACK_ANSWER}"
Keep your answers clear, concise, and educational.

IMPORTANT: When providing code or algorithms, ALWAYS format them using markdown code blocks:
- Use triple backticks (```) to wrap code blocks
- Use single backticks (`) for inline code
- Example: ```
algorithm Example()
  // code here
end```

Context: {{context}}"""  # noqa: E501


class AnswerGenerator:
    """Answers the standalone query from the assembled context.

    The session history gains the user and model turns together, and only
    once the completion has succeeded.
    """

    def __init__(
        self,
        completion: CompletionProvider,
        sessions: SessionStore,
        instruction: str = ANSWER_INSTRUCTION,
    ) -> None:
        self.completion = completion
        self.sessions = sessions
        self.instruction = instruction

    def build_instruction(self, context: str) -> str:
        return self.instruction.format(context=context)

    async def generate(self, query: str, context: str, session_id: str) -> str:
        """Generate the answer and record the exchange in the session.

        Returns:
            str: The answer text, or the fallback sentence if the model sent
                nothing back.
        """
        question_turn = Turn.user(query)
        turns = [*self.sessions.get(session_id), question_turn]

        answer = (
            await self.completion.generate(turns, self.build_instruction(context))
        ).strip()
        if not answer:
            logger.warning("Empty answer for session %s; using fallback", session_id)
            answer = FALLBACK_ANSWER

        self.sessions.extend(session_id, [question_turn, Turn.model(answer)])
        return answer
