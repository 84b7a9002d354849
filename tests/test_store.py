"""Tests for the vector store lifecycle, persistence and search."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from devdocbot.vectorstore.errors import (
    DimensionMismatchError,
    EmbeddingError,
    EmbeddingInitError,
    SnapshotError,
    StoreNotInitializedError,
)
from devdocbot.vectorstore.schema import (
    Chunk,
    ChunkKind,
    ChunkMetadata,
    CollectionConfig,
)
from devdocbot.vectorstore.store import (
    VectorStore,
    create_vector_store,
    load_snapshot,
)


def _chunk(content: str, path: str = "src/app.ts", **meta) -> Chunk:
    return Chunk(
        content=content,
        metadata=ChunkMetadata(source_path=path, kind=meta.pop("kind", ChunkKind.CODE), **meta),
    )


@pytest.fixture
def store(small_config, snapshot_path, fake_embeddings) -> VectorStore:
    return create_vector_store(small_config, snapshot_path, fake_embeddings)


class TestInitialize:
    def test_missing_snapshot_starts_empty(self, store: VectorStore):
        assert store.is_initialized
        assert store.count == 0

    def test_loads_model_once(self, small_config, snapshot_path, fake_embeddings):
        store = create_vector_store(small_config, snapshot_path, fake_embeddings)
        assert fake_embeddings.load_calls == 1
        assert store.embeddings is fake_embeddings

    def test_model_load_failure_is_fatal(self, small_config, snapshot_path, make_embeddings):
        store = VectorStore(small_config, snapshot_path, make_embeddings(fail_load=True))
        with pytest.raises(EmbeddingInitError):
            store.initialize()
        assert not store.is_initialized

    def test_provider_dimension_must_match(self, small_config, snapshot_path, make_embeddings):
        store = VectorStore(small_config, snapshot_path, make_embeddings(dimension=8))
        with pytest.raises(DimensionMismatchError):
            store.initialize()

    def test_corrupt_snapshot_raises(self, small_config, snapshot_path, fake_embeddings):
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text("{not json")
        store = VectorStore(small_config, snapshot_path, fake_embeddings)
        with pytest.raises(SnapshotError):
            store.initialize()

    def test_structurally_invalid_snapshot_raises(self, small_config, snapshot_path, fake_embeddings):
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text(json.dumps({"documents": [{"id": "x"}], "config": small_config.to_dict()}))
        with pytest.raises(SnapshotError):
            create_vector_store(small_config, snapshot_path, fake_embeddings)

    def test_config_mismatch_raises(self, small_config, snapshot_path, fake_embeddings):
        store = create_vector_store(small_config, snapshot_path, fake_embeddings)
        store.add_chunks([_chunk("hello world")])

        other = small_config.with_overrides(chunk_size=200)
        with pytest.raises(SnapshotError):
            create_vector_store(other, snapshot_path, fake_embeddings)

    def test_rebuild_discards_mismatched_snapshot(self, small_config, snapshot_path, make_embeddings):
        store = create_vector_store(small_config, snapshot_path, make_embeddings())
        store.add_chunks([_chunk("hello world")])

        other = small_config.with_overrides(chunk_size=200)
        rebuilt = create_vector_store(other, snapshot_path, make_embeddings(), rebuild=True)
        assert rebuilt.count == 0
        assert not snapshot_path.exists()

    def test_invalid_utf8_snapshot_raises(self, small_config, snapshot_path, fake_embeddings):
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_bytes(b'{"documents": "\xff\xfe"}')
        with pytest.raises(SnapshotError, match="Corrupt snapshot"):
            create_vector_store(small_config, snapshot_path, fake_embeddings)

    def test_operations_require_initialize(self, small_config, snapshot_path, fake_embeddings):
        store = VectorStore(small_config, snapshot_path, fake_embeddings)
        with pytest.raises(StoreNotInitializedError):
            store.add_chunks([_chunk("x")])
        with pytest.raises(StoreNotInitializedError):
            store.search("x")


class TestAddChunks:
    def test_assigns_sequential_ids(self, store: VectorStore):
        docs = store.add_chunks([_chunk("alpha"), _chunk("beta")])
        more = store.add_chunks([_chunk("gamma")])
        assert [d.id for d in docs + more] == ["chunk_0", "chunk_1", "chunk_2"]

    def test_copies_content_and_metadata(self, store: VectorStore):
        chunk = _chunk("router.get('/users')", module="server/routes", start_line=3, end_line=9)
        doc = store.add_chunks([chunk])[0]
        assert doc.content == chunk.content
        assert doc.metadata == chunk.metadata
        assert len(doc.embedding) == 16

    def test_persists_whole_collection(self, store: VectorStore, snapshot_path: Path):
        store.add_chunks([_chunk("one")])
        store.add_chunks([_chunk("two")])
        data = json.loads(snapshot_path.read_text())
        assert [d["content"] for d in data["documents"]] == ["one", "two"]
        assert data["config"] == {
            "collectionName": "test",
            "dimension": 16,
            "chunkSize": 100,
            "chunkOverlap": 20,
        }
        assert data["timestamp"]
        assert not snapshot_path.with_name(snapshot_path.name + ".tmp").exists()

    def test_empty_batch_writes_nothing(self, store: VectorStore, snapshot_path: Path):
        assert store.add_chunks([]) == []
        assert not snapshot_path.exists()

    def test_embedding_failure_rolls_back_batch(self, small_config, snapshot_path, make_embeddings):
        embeddings = make_embeddings(fail_on="boom")
        store = create_vector_store(small_config, snapshot_path, embeddings)
        store.add_chunks([_chunk("kept")])

        with pytest.raises(EmbeddingError):
            store.add_chunks([_chunk("first"), _chunk("boom"), _chunk("never")])

        assert [d.content for d in store.documents] == ["kept"]
        persisted = load_snapshot(snapshot_path)
        assert [d.content for d in persisted.documents] == ["kept"]
        assert store.add_chunks([_chunk("next")])[0].id == "chunk_1"

    def test_wrong_embedding_length_rejected(self, small_config, snapshot_path, make_embeddings):
        embeddings = make_embeddings(table={"short": [1.0, 0.0]})
        store = create_vector_store(small_config, snapshot_path, embeddings)
        with pytest.raises(DimensionMismatchError):
            store.add_chunks([_chunk("fine"), _chunk("short")])
        assert store.count == 0

    def test_write_failure_keeps_memory(self, store: VectorStore, monkeypatch):
        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("devdocbot.vectorstore.store.write_snapshot", fail)
        with pytest.raises(OSError):
            store.add_chunks([_chunk("unsaved")])
        assert store.count == 1


class TestSearch:
    def test_empty_collection(self, store: VectorStore, fake_embeddings):
        assert store.search("anything", 5) == []
        assert store.search("anything", 0) == []
        assert fake_embeddings.embed_calls == 0

    def test_orthogonal_scenario(self, tmp_path: Path, make_embeddings):
        config = CollectionConfig(collection_name="t", dimension=2, chunk_size=10, chunk_overlap=0)
        embeddings = make_embeddings(
            dimension=2,
            table={"first": [1.0, 0.0], "second": [0.0, 1.0], "query": [1.0, 0.0]},
        )
        store = create_vector_store(config, tmp_path / "store.json", embeddings)
        store.add_chunks([_chunk("first"), _chunk("second")])

        results = store.search("query", 5)
        assert [r.content for r in results] == ["first", "second"]
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].similarity == pytest.approx(0.0)

    def test_limit_and_order(self, store: VectorStore):
        store.add_chunks([_chunk(f"user login handler {i}" if i % 2 else f"css styles {i}") for i in range(8)])
        results = store.search("user login", limit=3)
        assert len(results) == 3
        sims = [r.similarity for r in results]
        assert sims == sorted(sims, reverse=True)
        assert all(-1.0 <= s <= 1.0 + 1e-9 for s in sims)

    def test_negative_limit(self, store: VectorStore):
        with pytest.raises(ValueError):
            store.search("x", -1)

    def test_search_by_vector_checks_dimension(self, store: VectorStore):
        store.add_chunks([_chunk("abc")])
        with pytest.raises(DimensionMismatchError):
            store.search_by_vector([1.0, 0.0], 1)


class TestRoundTrip:
    def test_reload_yields_equal_documents(self, small_config, snapshot_path, make_embeddings):
        store = create_vector_store(small_config, snapshot_path, make_embeddings())
        store.add_chunks([
            _chunk("const a = 1;", module="server/utils", start_line=1, end_line=1),
            _chunk("# Setup\nrun it", path="README.md", kind=ChunkKind.DOCUMENTATION, section="Setup"),
            _chunk("// note", kind=ChunkKind.COMMENT),
        ])

        reloaded = create_vector_store(small_config, snapshot_path, make_embeddings())
        assert reloaded.documents == store.documents

    def test_reload_continues_ids(self, small_config, snapshot_path, make_embeddings):
        store = create_vector_store(small_config, snapshot_path, make_embeddings())
        store.add_chunks([_chunk("a"), _chunk("b")])

        reloaded = create_vector_store(small_config, snapshot_path, make_embeddings())
        doc = reloaded.add_chunks([_chunk("c")])[0]
        assert doc.id == "chunk_2"
        assert reloaded.count == 3


class TestDeleteCollection:
    def test_delete_then_search_empty(self, store: VectorStore, snapshot_path: Path, small_config, make_embeddings):
        store.add_chunks([_chunk("something")])
        assert snapshot_path.exists()

        store.delete_collection()
        assert store.search("something", 5) == []
        assert not snapshot_path.exists()

        fresh = create_vector_store(small_config, snapshot_path, make_embeddings())
        assert fresh.count == 0

    def test_delete_without_snapshot(self, store: VectorStore):
        store.delete_collection()
        store.delete_collection()
        assert store.count == 0

    def test_ids_restart_after_delete(self, store: VectorStore):
        store.add_chunks([_chunk("a")])
        store.delete_collection()
        assert store.add_chunks([_chunk("b")])[0].id == "chunk_0"


class TestLoadSnapshot:
    def test_missing_returns_none(self, tmp_path: Path):
        assert load_snapshot(tmp_path / "nope.json") is None

    def test_reads_node_snapshot_format(self, tmp_path: Path):
        path = tmp_path / "vector-store.json"
        path.write_text(json.dumps({
            "documents": [{
                "id": "chunk_0",
                "content": "export default app;",
                "metadata": {"path": "/abs/server/app.ts", "type": "code", "module": "server/app",
                             "startLine": 1, "endLine": 1},
                "embedding": [0.5, 0.5],
            }],
            "timestamp": "2024-03-01T10:00:00.000Z",
            "config": {"collectionName": "devdocbot_code", "dimension": 2, "chunkSize": 1000, "chunkOverlap": 200},
        }))
        snapshot = load_snapshot(path)
        doc = snapshot.documents[0]
        assert doc.metadata.kind == ChunkKind.CODE
        assert doc.metadata.module == "server/app"
        assert doc.embedding == (0.5, 0.5)
        assert snapshot.config.dimension == 2

    def test_per_batch_ids_are_renumbered(self, tmp_path: Path, make_embeddings):
        # Node snapshots number chunks from 0 in every file's batch
        config = CollectionConfig(dimension=2)
        path = tmp_path / "vector-store.json"
        docs = [
            {"id": "chunk_0", "content": content, "metadata": {"path": p, "type": "code"}, "embedding": [1.0, 0.0]}
            for content, p in (("a", "a.ts"), ("b", "b.ts"), ("c", "b.ts"))
        ]
        docs[2]["id"] = "chunk_1"
        path.write_text(json.dumps({
            "documents": docs,
            "timestamp": "2024-03-01T10:00:00.000Z",
            "config": config.to_dict(),
        }))

        store = create_vector_store(config, path, make_embeddings(dimension=2))
        assert [d.id for d in store.documents] == ["chunk_0", "chunk_1", "chunk_2"]
        assert [d.content for d in store.documents] == ["a", "b", "c"]
        assert store.add_chunks([_chunk("d")])[0].id == "chunk_3"
