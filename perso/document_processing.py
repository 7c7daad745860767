"""Document loading and text chunking functionality."""

from pathlib import Path

import pypdf
from pypdf import PasswordType

from .config import config
from .errors import DocumentNotFoundError, ExtractionFailedError
from .models import Document, DocumentChunk

logger = config.get_logger(__name__)


class DocumentLoader:
    """Turns a single PDF (or plain-text) file into text."""

    @staticmethod
    def load(file_path: Path | str) -> str:
        """Extract the full text of a PDF file.

        Extraction is all-or-nothing: a failure on any page fails the load.

        Returns:
            The extracted text, one ``--- Page N ---`` marker per page that
            has text. Pages without text (scans, blank pages) are skipped.

        Raises:
            DocumentNotFoundError: If the path does not exist.
            ExtractionFailedError: If the PDF cannot be read or decrypted.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise DocumentNotFoundError(file_path)

        try:
            with file_path.open("rb") as file:
                pdf_reader = pypdf.PdfReader(file)
                if pdf_reader.is_encrypted and (
                    pdf_reader.decrypt("") == PasswordType.NOT_DECRYPTED
                ):
                    msg = f"PDF '{file_path}' is encrypted"
                    raise ExtractionFailedError(msg)
                pages = []
                for page_num, page in enumerate(pdf_reader.pages):
                    page_text = page.extract_text()
                    if not page_text.strip():
                        continue
                    pages.append(f"\n--- Page {page_num + 1} ---\n{page_text}\n")
        except ExtractionFailedError:
            logger.exception("Error loading PDF %s", file_path)
            raise
        except Exception as exc:
            logger.exception("Error loading PDF %s", file_path)
            msg = f"Failed to extract text from PDF '{file_path}': {exc}"
            raise ExtractionFailedError(msg) from exc

        logger.info("Extracted text from %d pages of %s", len(pages), file_path)
        return "".join(pages)

    @staticmethod
    def load_txt(file_path: Path | str) -> str:
        """Load text content from a TXT file.

        Returns:
            The text content of the file.

        Raises:
            DocumentNotFoundError: If the path does not exist.
            ExtractionFailedError: If the file is not valid UTF-8.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise DocumentNotFoundError(file_path)

        try:
            with file_path.open(encoding="utf-8") as file:
                text = file.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.exception("Error loading TXT %s", file_path)
            msg = f"Failed to read text file '{file_path}': {exc}"
            raise ExtractionFailedError(msg) from exc

        logger.info("Successfully loaded TXT file")
        return text

    @classmethod
    def load_document(cls, file_path: Path | str) -> str:
        """Load document based on file extension.

        Returns:
            The text content of the document as a string.

        Raises:
            DocumentNotFoundError: If the path does not exist.
            ExtractionFailedError: If the file type is not supported.
        """
        file_path = Path(file_path)
        file_ext = file_path.suffix.lower()
        if file_ext == ".pdf":
            return cls.load(file_path)
        if file_ext == ".txt":
            return cls.load_txt(file_path)
        if not file_path.exists():
            raise DocumentNotFoundError(file_path)
        msg = f"Unsupported file type: {file_ext}"
        raise ExtractionFailedError(msg)

    @classmethod
    def to_document(cls, file_path: Path | str) -> Document:
        """Load a file and wrap it as a ``Document`` named after the file."""  # noqa: DOC201
        file_path = Path(file_path)
        return Document(source=file_path.name, text=cls.load_document(file_path))


class TextChunker:
    """Handles text chunking with fixed length and overlap strategy."""

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        """Initialize the TextChunker with chunk size and overlap.

        Args:
            chunk_size: The size of each text chunk. Zero or negative keeps
                the whole text as a single chunk.
            overlap: The number of overlapping characters between chunks.

        Raises:
            ValueError: If overlap is negative or not smaller than chunk_size.
        """
        if chunk_size > 0 and not 0 <= overlap < chunk_size:
            msg = f"overlap ({overlap}) must be between 0 and chunk_size ({chunk_size})"
            raise ValueError(msg)
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk_text(self, text: str, source: str = "document") -> list[DocumentChunk]:
        """Split text into overlapping chunks.

        Returns:
            A list of DocumentChunk objects representing the text chunks.
        """
        if self.chunk_size <= 0:
            if not text.strip():
                return []
            return [self._make_chunk(text, source, 0, 0, len(text))]

        chunks = []
        start = 0
        chunk_id = 0

        while start < len(text):
            end = start + self.chunk_size
            chunk_text = text[start:end]

            # Avoid splitting words, except for the final chunk
            if end < len(text) and not chunk_text.endswith(" "):
                last_space = chunk_text.rfind(" ")
                # Keep at least half a chunk after backing off
                if last_space > self.chunk_size // 2:
                    end = start + last_space
                    chunk_text = text[start:end]

            if chunk_text.strip():
                chunks.append(self._make_chunk(chunk_text, source, chunk_id, start, end))
                chunk_id += 1

            if end >= len(text):
                break
            start = max(end - self.overlap, start + 1)

        logger.info("Text split into %d chunks", len(chunks))
        return chunks

    @staticmethod
    def _make_chunk(
        chunk_text: str, source: str, chunk_id: int, start: int, end: int
    ) -> DocumentChunk:
        content = chunk_text.strip()
        return DocumentChunk(
            content=content,
            metadata={
                "source": source,
                "chunk_id": chunk_id,
                "start_char": start,
                "end_char": end,
                "length": len(content),
            },
        )
