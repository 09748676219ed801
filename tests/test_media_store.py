"""
Tests for the write-then-publish media store.
"""
import os
import re

import pytest

from conftest import stored_files
from services.media_store import MediaStore, generate_artifact_id


class TestArtifactId:
    def test_format(self):
        assert re.fullmatch(r"luma_\d+_[0-9a-f]{6}", generate_artifact_id("luma"))

    def test_timestamp_in_milliseconds(self):
        assert generate_artifact_id("sora", now=1.5).startswith("sora_1500_")

    def test_tag_is_made_file_safe(self):
        assert generate_artifact_id("Local Fallback/../x", now=0).startswith("local-fallback----x_0_")

    def test_ids_are_unique(self):
        assert len({generate_artifact_id("luma", now=1.0) for _ in range(50)}) == 50


class TestSave:
    def test_publishes_file(self, store):
        artifact = store.save(b"video-bytes", produced_by="luma", metadata={"prompt": "p"})

        assert artifact.id == "luma_test_001"
        assert artifact.relative_path == "/ai-generated-videos/luma_test_001.mp4"
        assert artifact.size_bytes == len(b"video-bytes")
        assert artifact.produced_by == "luma"
        assert artifact.mime_type == "video/mp4"
        assert artifact.metadata == {"prompt": "p"}
        assert (store.root_dir / "luma_test_001.mp4").read_bytes() == b"video-bytes"
        assert store.exists(artifact)

    def test_no_temp_files_left(self, store):
        store.save(b"abc", produced_by="haiper")
        assert os.listdir(store.root_dir) == ["haiper_test_001.mp4"]

    def test_each_save_is_a_new_artifact(self, store):
        first = store.save(b"one", produced_by="luma")
        second = store.save(b"two", produced_by="luma")
        assert first.id != second.id
        assert stored_files(store) == ["luma_test_001.mp4", "luma_test_002.mp4"]

    def test_empty_payload_rejected(self, store):
        with pytest.raises(ValueError):
            store.save(b"", produced_by="luma")
        assert os.listdir(store.root_dir) == []

    def test_failed_publish_leaves_nothing(self, store, monkeypatch):
        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(OSError):
            store.save(b"abc", produced_by="luma")
        assert os.listdir(store.root_dir) == []

    def test_metadata_is_copied(self, store):
        metadata = {"prompt": "p"}
        artifact = store.save(b"abc", produced_by="luma", metadata=metadata)
        metadata["prompt"] = "changed"
        assert artifact.metadata == {"prompt": "p"}

    def test_to_dict(self, store):
        data = store.save(b"abc", produced_by="luma").to_dict()
        assert data["id"] == "luma_test_001"
        assert data["size_bytes"] == 3
        assert "created_at" in data


class TestResolve:
    def test_public_path(self, store):
        artifact = store.save(b"abc", produced_by="luma")
        assert store.resolve(artifact.relative_path) == (store.root_dir / "luma_test_001.mp4").resolve()

    def test_bare_filename(self, store):
        assert store.resolve("x.mp4").name == "x.mp4"

    def test_escape_rejected(self, store):
        with pytest.raises(ValueError):
            store.resolve("../secret.txt")
        with pytest.raises(ValueError):
            store.resolve("nested/dir/file.mp4")

    def test_custom_prefix(self, tmp_path):
        custom = MediaStore(tmp_path, public_prefix="videos/", id_factory=lambda tag: "fixed")
        assert custom.save(b"abc", produced_by="luma").relative_path == "/videos/fixed.mp4"
