"""Generation run: feed a project's sources and docs into the vector store.

Walks the configured server/client modules, the optional swagger file,
the README and other documentation files. Problems with a single module
or file are logged, recorded as an IndexOutcome and skipped; store-level
errors stop the run.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Sequence

from devdocbot.config import DevDocBotSettings, SourceRoot
from devdocbot.utils.paths import get_output_dir, get_snapshot_path
from devdocbot.vectorstore.chunker import CodeChunker
from devdocbot.vectorstore.embeddings import EmbeddingProvider
from devdocbot.vectorstore.schema import Chunk, FileContent, SearchResult
from devdocbot.vectorstore.store import VectorStore, create_vector_store

logger = logging.getLogger(__name__)

DOC_SUFFIXES = {".md", ".mdx", ".txt"}
SKIP_DIRS = {"node_modules", "__pycache__"}
API_DOC_LABEL = "API Documentation"
README_LABEL = "Project Overview"

_BRACE_PATTERN = re.compile(r"\{([^{}]*)\}")


@dataclass
class ScannedFile:
    """A file found during a directory walk, with its text or read error."""
    path: Path
    content: str | None = None
    error: str | None = None


@dataclass
class IndexOutcome:
    """Result of feeding one input into the store."""
    path: str
    module: str | None = None
    chunks: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GenerationReport:
    """Every outcome of a generation run."""
    outcomes: list[IndexOutcome] = field(default_factory=list)
    documents_total: int = 0

    @property
    def files_indexed(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def chunks_created(self) -> int:
        return sum(o.chunks for o in self.outcomes)

    @property
    def failures(self) -> list[IndexOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_dict(self) -> dict:
        return {
            "files_indexed": self.files_indexed,
            "chunks_created": self.chunks_created,
            "documents_total": self.documents_total,
            "failures": [{"path": o.path, "module": o.module, "error": o.error} for o in self.failures],
        }


def open_store(
    project_root: Path,
    settings: DevDocBotSettings,
    embeddings: EmbeddingProvider | None = None,
    rebuild: bool = False,
) -> VectorStore:
    """Initialized store at the project's snapshot location.

    rebuild deletes the existing snapshot before it is loaded.
    """
    snapshot_path = get_snapshot_path(project_root, settings.output_dir)
    return create_vector_store(settings.vector_store, snapshot_path, embeddings, rebuild=rebuild)


def expand_braces(pattern: str) -> list[str]:
    """Expand shell-style {a,b} alternatives: '*.{ts,js}' -> ['*.ts', '*.js']."""
    match = _BRACE_PATTERN.search(pattern)
    if not match:
        return [pattern]
    head, tail = pattern[:match.start()], pattern[match.end():]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option.strip() + tail))
    return expanded


def matches_pattern(rel_path: str, pattern: str) -> bool:
    """Glob match on a POSIX relative path; a leading '**/' also matches top level."""
    for candidate in expand_braces(pattern):
        if fnmatch.fnmatchcase(rel_path, candidate):
            return True
        if candidate.startswith("**/") and fnmatch.fnmatchcase(rel_path, candidate[3:]):
            return True
    return False


def _walk(directory: Path) -> Iterator[Path]:
    """Files under directory, skipping hidden and dependency directories."""
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(
            d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")
        )
        for name in sorted(filenames):
            yield Path(dirpath) / name


def scan_files(directory: Path, pattern: str) -> Iterator[ScannedFile]:
    """Stream files under directory matching pattern, read as UTF-8.

    Raises FileNotFoundError if directory does not exist; unreadable files
    are yielded with their error instead of content.
    """
    if not directory.is_dir():
        raise FileNotFoundError(f"Could not read directory '{directory}'")
    for path in _walk(directory):
        rel = path.relative_to(directory).as_posix()
        if not matches_pattern(rel, pattern):
            continue
        try:
            yield ScannedFile(path=path, content=path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            yield ScannedFile(path=path, error=str(e))


def scan_documentation(directory: Path, exclude: Sequence[Path] = ()) -> Iterator[ScannedFile]:
    """Stream documentation files (.md, .mdx, .txt) under directory."""
    excluded = [p.resolve() for p in exclude]
    for path in _walk(directory):
        if path.suffix.lower() not in DOC_SUFFIXES:
            continue
        resolved = path.resolve()
        if any(resolved == ex or ex in resolved.parents for ex in excluded):
            continue
        try:
            yield ScannedFile(path=path, content=path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            yield ScannedFile(path=path, error=str(e))


def generate_vector_docs(
    settings: DevDocBotSettings,
    project_root: Path,
    store: VectorStore,
    rebuild: bool = False,
) -> GenerationReport:
    """Chunk and embed the project's sources and docs into store.

    Args:
        settings: Loaded project settings
        project_root: Directory the configured paths are relative to
        store: An initialized vector store
        rebuild: Clear the existing collection first instead of merging

    Returns:
        GenerationReport with one outcome per module/file considered
    """
    chunker = CodeChunker(store.config.chunk_size, store.config.chunk_overlap)
    report = GenerationReport()

    if rebuild:
        store.delete_collection()

    for label, source in (("server", settings.server), ("client", settings.client)):
        if source is not None:
            _index_source_root(project_root, label, source, chunker, store, report)

    options = settings.options
    if options.include_swagger and options.swagger_path:
        logger.info("Processing API documentation")
        _index_document(project_root / options.swagger_path, API_DOC_LABEL, chunker, store, report)

    readme = project_root / "README.md"
    if options.include_readme:
        logger.info("Processing README")
        _index_document(readme, README_LABEL, chunker, store, report)

    if options.include_docs:
        logger.info("Processing additional documentation files")
        exclude = [get_output_dir(project_root, settings.output_dir)]
        if options.include_readme:
            exclude.append(readme)
        for scanned in scan_documentation(project_root, exclude=exclude):
            rel = _relative(scanned.path, project_root)
            if scanned.error is not None:
                logger.warning("Could not read documentation file '%s': %s", rel, scanned.error)
                report.outcomes.append(IndexOutcome(path=rel, error=scanned.error))
                continue
            chunks = chunker.chunk_documentation(scanned.content or "", rel)
            _add(store, chunks, IndexOutcome(path=rel), report)

    if report.files_indexed == 0:
        logger.warning(
            "No files were processed. Check that source directories exist "
            "and that module patterns match your files."
        )

    if options.vector_store_path:
        _write_store_metadata(project_root / options.vector_store_path, store)

    report.documents_total = store.count
    return report


def _index_source_root(
    project_root: Path,
    label: str,
    source: SourceRoot,
    chunker: CodeChunker,
    store: VectorStore,
    report: GenerationReport,
) -> None:
    for name, module in source.modules.items():
        module_label = f"{label}/{name}"
        module_dir = project_root / source.root / module.path
        logger.info("Processing %s source code in %s", label, module_dir)
        if not module_dir.is_dir():
            error = f"Could not read directory '{module_dir}'"
            logger.warning("Could not process module '%s': %s", name, error)
            report.outcomes.append(IndexOutcome(
                path=_relative(module_dir, project_root), module=module_label, error=error,
            ))
            continue

        matched = 0
        for scanned in scan_files(module_dir, module.pattern):
            matched += 1
            rel = _relative(scanned.path, project_root)
            if scanned.error is not None:
                logger.warning("Could not read file '%s': %s", rel, scanned.error)
                report.outcomes.append(IndexOutcome(path=rel, module=module_label, error=scanned.error))
                continue
            chunks = chunker.chunk_code(FileContent(path=rel, content=scanned.content or ""), module_label)
            _add(store, chunks, IndexOutcome(path=rel, module=module_label), report)
        if matched == 0:
            logger.warning("No matching files found in '%s'", module_dir)


def _index_document(
    path: Path,
    label: str,
    chunker: CodeChunker,
    store: VectorStore,
    report: GenerationReport,
) -> None:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read '%s': %s", path, e)
        report.outcomes.append(IndexOutcome(path=label, error=str(e)))
        return
    _add(store, chunker.chunk_documentation(text, label), IndexOutcome(path=label), report)


def _add(store: VectorStore, chunks: list[Chunk], outcome: IndexOutcome, report: GenerationReport) -> None:
    store.add_chunks(chunks)
    outcome.chunks = len(chunks)
    report.outcomes.append(outcome)


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _write_store_metadata(path: Path, store: VectorStore) -> None:
    logger.info("Saving vector store metadata to %s", path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "config": store.config.to_dict(),
        "snapshot": str(store.snapshot_path),
        "documents": store.count,
    }, indent=2) + "\n", encoding="utf-8")


def format_context(results: Sequence[SearchResult]) -> str:
    """Render search results as the snippet block handed to an LLM prompt."""
    blocks = []
    for i, result in enumerate(results, 1):
        meta = result.metadata
        header = f"[{i}] {meta.source_path}"
        if meta.module:
            header += f" ({meta.module})"
        if meta.start_line is not None and meta.end_line is not None:
            header += f" lines {meta.start_line}-{meta.end_line}"
        if meta.section:
            header += f" section: {meta.section}"
        header += f" similarity: {result.similarity:.3f}"
        blocks.append(f"{header}\n```\n{result.content}\n```")
    return "\n\n".join(blocks)
