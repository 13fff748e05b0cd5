"""Document loading and recursive text chunking for ingestion."""

from collections import deque
from pathlib import Path

import pypdf

from .config import config
from .models import DocumentChunk

logger = config.get_logger(__name__)

Span = tuple[int, int]

DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", " ", "")


class DocumentLoader:
    """Handles loading of PDF and TXT documents."""

    @staticmethod
    def load_pdf(file_path: Path) -> str:
        """Load text content from a PDF file, one paragraph block per page.

        Returns:
            The extracted text content from the PDF as a string.
        """
        try:
            with file_path.open("rb") as file:
                reader = pypdf.PdfReader(file)
                pages = [page.extract_text() or "" for page in reader.pages]
        except Exception:
            logger.exception("Error loading PDF %s", file_path)
            raise
        logger.info("Loaded %d pages from %s", len(pages), file_path.name)
        return "\n\n".join(pages)

    @staticmethod
    def load_txt(file_path: Path) -> str:
        """Load text content from a TXT file.

        Returns:
            The extracted text content from the TXT file as a string.
        """
        try:
            text = file_path.read_text(encoding="utf-8")
        except Exception:
            logger.exception("Error loading TXT %s", file_path)
            raise
        logger.info("Loaded %d characters from %s", len(text), file_path.name)
        return text

    @classmethod
    def load_document(cls, file_path: Path) -> str:
        """Load document based on file extension.

        Args:
            file_path: Path to the document file.

        Returns:
            The text content of the document as a string.

        Raises:
            ValueError: If the file type is not supported.
        """
        file_ext = file_path.suffix.lower()
        if file_ext == ".pdf":
            return cls.load_pdf(file_path)
        if file_ext == ".txt":
            return cls.load_txt(file_path)
        msg = f"Unsupported file type: {file_ext}"
        raise ValueError(msg)


class TextChunker:
    """Splits text recursively on paragraph, line, sentence and word breaks.

    The coarsest separator present in a span is tried first; pieces that are
    still longer than ``chunk_size`` are split again with the next separator,
    down to single characters. Adjacent pieces are then merged into chunks of
    at most ``chunk_size`` characters, each repeating up to ``overlap``
    characters from the end of the previous chunk.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 200,
        separators: tuple[str, ...] = DEFAULT_SEPARATORS,
    ) -> None:
        """Initialize the TextChunker with chunk size and overlap.

        Args:
            chunk_size: Maximum number of characters in a chunk.
            overlap: Maximum number of characters shared by consecutive chunks.
            separators: Break points to try, coarsest first.

        Raises:
            ValueError: If the sizes are not positive or overlap >= chunk_size.
        """
        if chunk_size <= 0 or overlap < 0:
            msg = "chunk_size must be positive and overlap non-negative"
            raise ValueError(msg)
        if overlap >= chunk_size:
            msg = f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            raise ValueError(msg)
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.separators = separators

    def chunk_text(self, text: str, source: str = "document") -> list[DocumentChunk]:
        """Split text into overlapping chunks.

        Returns:
            A list of DocumentChunk objects representing the text chunks.
        """
        chunks = []
        for start, end in self._split(text, 0, len(text), self.separators):
            raw = text[start:end]
            content = raw.strip()
            if not content:
                continue
            start += len(raw) - len(raw.lstrip())
            chunks.append(
                DocumentChunk(
                    content=content,
                    metadata={
                        "source": source,
                        "chunk_id": len(chunks),
                        "start_char": start,
                        "end_char": start + len(content),
                        "length": len(content),
                    },
                )
            )

        logger.info("Text split into %d chunks", len(chunks))
        return chunks

    def _split(
        self, text: str, start: int, end: int, separators: tuple[str, ...]
    ) -> list[Span]:
        separator, remaining = "", ()
        for i, candidate in enumerate(separators):
            if not candidate or text.find(candidate, start, end) != -1:
                separator, remaining = candidate, separators[i + 1 :]
                break

        spans: list[Span] = []
        pending: list[Span] = []
        for piece in self._pieces(text, start, end, separator):
            if piece[1] - piece[0] <= self.chunk_size:
                pending.append(piece)
                continue
            spans.extend(self._merge(pending))
            pending = []
            if remaining:
                spans.extend(self._split(text, piece[0], piece[1], remaining))
            else:
                spans.append(piece)
        spans.extend(self._merge(pending))
        return spans

    @staticmethod
    def _pieces(text: str, start: int, end: int, separator: str) -> list[Span]:
        if not separator:
            return [(i, i + 1) for i in range(start, end)]

        pieces = []
        pos = start
        while (idx := text.find(separator, pos, end)) != -1:
            pieces.append((pos, idx))
            pos = idx + len(separator)
        pieces.append((pos, end))
        return [piece for piece in pieces if piece[1] > piece[0]]

    def _merge(self, pieces: list[Span]) -> list[Span]:
        merged: list[Span] = []
        window: deque[Span] = deque()
        for piece in pieces:
            if window and piece[1] - window[0][0] > self.chunk_size:
                merged.append((window[0][0], window[-1][1]))
                while window and (
                    window[-1][1] - window[0][0] > self.overlap
                    or piece[1] - window[0][0] > self.chunk_size
                ):
                    window.popleft()
            window.append(piece)
        if window:
            merged.append((window[0][0], window[-1][1]))
        return merged
