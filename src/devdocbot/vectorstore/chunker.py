"""Fixed-size overlapping window chunking for source and documentation text.

Windows start every ``chunk_size - chunk_overlap`` characters and run for
``chunk_size`` characters, clamped to the end of the text. Every window is
classified on its own leading characters only, so a window that starts
mid-statement can be misclassified.
"""

from __future__ import annotations

import re
from typing import Iterable

from devdocbot.vectorstore.schema import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    GENERAL_SECTION,
    Chunk,
    ChunkKind,
    ChunkMetadata,
    FileContent,
)


_HEADER_PATTERN = re.compile(r"^#+\s+(.+)$", re.MULTILINE)


class CodeChunker:
    """Splits text into overlapping windows and tags each window."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be a positive integer")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    @property
    def step(self) -> int:
        return self.chunk_size - self.chunk_overlap

    def split(self, text: str) -> list[tuple[int, int]]:
        """Return the (start, end) offsets of every window over text."""
        return [
            (start, min(start + self.chunk_size, len(text)))
            for start in range(0, len(text), self.step)
        ]

    def chunk_code(self, file: FileContent, module: str | None = None) -> list[Chunk]:
        """Chunk a source file, classifying each window independently."""
        chunks = []
        for start, end, start_line, end_line in self._windows(file.content):
            content = file.content[start:end]
            chunks.append(Chunk(
                content=content,
                metadata=ChunkMetadata(
                    source_path=file.path,
                    kind=detect_chunk_kind(content),
                    module=module,
                    start_line=start_line,
                    end_line=end_line,
                ),
            ))
        return chunks

    def chunk_documentation(self, text: str, path: str) -> list[Chunk]:
        """Chunk documentation text; every window is tagged with a section."""
        chunks = []
        for start, end, start_line, end_line in self._windows(text):
            content = text[start:end]
            chunks.append(Chunk(
                content=content,
                metadata=ChunkMetadata(
                    source_path=path,
                    kind=ChunkKind.DOCUMENTATION,
                    section=detect_section(content),
                    start_line=start_line,
                    end_line=end_line,
                ),
            ))
        return chunks

    def _windows(self, text: str) -> Iterable[tuple[int, int, int, int]]:
        """Yield (start, end, start_line, end_line) with exact 1-based lines."""
        line = 1
        consumed = 0
        for start, end in self.split(text):
            line += text.count("\n", consumed, start)
            consumed = start
            yield start, end, line, line + text.count("\n", start, end)


def detect_chunk_kind(content: str) -> ChunkKind:
    """Classify a window by its leading lexical marker."""
    stripped = content.lstrip()
    if stripped.startswith("/*"):
        return ChunkKind.DOCUMENTATION
    if stripped.startswith("//"):
        return ChunkKind.COMMENT
    return ChunkKind.CODE


def detect_section(content: str) -> str:
    """Text of the first Markdown header line, or the General sentinel."""
    match = _HEADER_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    return GENERAL_SECTION


def reconstruct(chunks: Iterable[Chunk], chunk_overlap: int) -> str:
    """Rebuild the chunked text by dropping each later window's overlap."""
    parts = []
    for i, chunk in enumerate(chunks):
        parts.append(chunk.content if i == 0 else chunk.content[chunk_overlap:])
    return "".join(parts)


def create_chunker(
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
) -> CodeChunker:
    return CodeChunker(
        DEFAULT_CHUNK_SIZE if chunk_size is None else chunk_size,
        DEFAULT_CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap,
    )
