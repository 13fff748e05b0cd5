"""Grounding context assembly."""

from .config import config
from .models import RetrievalResult

logger = config.get_logger(__name__)

CHUNK_SEPARATOR = "\n\n---\n\n"


class ContextAssembler:
    """Joins retrieved chunk texts, in ranked order, into one context block."""

    def __init__(self, max_chars: int | None = None) -> None:
        """Initialize the assembler.

        Args:
            max_chars: Character budget for the assembled block. If None, uses
                config.MAX_CONTEXT_CHARS; 0 means no budget.
        """
        if max_chars is None:
            max_chars = config.MAX_CONTEXT_CHARS
        self.max_chars = max_chars

    def assemble(self, results: RetrievalResult) -> str:
        """Concatenate chunk texts with an explicit separator.

        With a budget, chunks are kept in ranked order until the next one would
        overflow; it and every lower-ranked chunk are dropped. The top chunk is
        always kept, truncated if it alone exceeds the budget.
        """
        texts = [chunk.content for chunk, _score in results]
        if not self.max_chars or not texts:
            return CHUNK_SEPARATOR.join(texts)

        kept = [texts[0][: self.max_chars]]
        used = len(kept[0])
        for text in texts[1:]:
            used += len(CHUNK_SEPARATOR) + len(text)
            if used > self.max_chars:
                break
            kept.append(text)

        if len(kept) < len(texts):
            logger.info(
                "Context budget of %d chars kept %d of %d chunks",
                self.max_chars,
                len(kept),
                len(texts),
            )
        return CHUNK_SEPARATOR.join(kept)
