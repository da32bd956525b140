"""Tests for the storage module.

Tests cover:
- FileWorldRepository edge cases (slugs, atomic writes)
- Storage configuration functions
- Parametrized integration tests so every backend passes identical tests
"""

import random

import pytest

from blissnexus.models import World
from blissnexus.storage.config import (
    StorageBackend,
    get_storage_backend,
    get_world_repository,
)
from blissnexus.storage.file_repo import FileWorldRepository, slugify
from blissnexus.storage.memory_repo import MemoryWorldRepository
from blissnexus.storage.sqlite_repo import SQLiteWorldRepository


# ============================================================================
# FileWorldRepository Tests - Edge Cases Only
# ============================================================================


class TestFileWorldRepository:
    @pytest.fixture
    def repo(self, tmp_path):
        return FileWorldRepository(tmp_path / "worlds")

    @pytest.mark.parametrize("world_id,slug", [("Main World", "main-world"), ("../etc/passwd", "etc-passwd"), ("???", "world")])
    def test_slugify(self, world_id, slug):
        assert slugify(world_id) == slug

    def test_path_traversal_stays_inside(self, repo, tmp_path):
        repo.save_world("../escape", {"year": 1})
        assert (tmp_path / "worlds" / "escape.json").exists()
        assert not (tmp_path / "escape.json").exists()

    def test_no_temp_file_left_behind(self, repo, tmp_path):
        repo.save_world("main", {"year": 1})
        assert [p.name for p in (tmp_path / "worlds").iterdir()] == ["main.json"]


# ============================================================================
# Config Tests
# ============================================================================


class TestStorageConfig:
    def test_get_storage_backend_default(self, monkeypatch):
        monkeypatch.delenv("BLISSNEXUS_STORAGE_BACKEND", raising=False)
        assert get_storage_backend() == StorageBackend.FILE

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("BLISSNEXUS_STORAGE_BACKEND", "redis")
        with pytest.raises(ValueError, match="Unknown storage backend"):
            get_storage_backend()

    def test_factory_returns_file_repo(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BLISSNEXUS_WORLDS_PATH", str(tmp_path / "worlds"))
        assert isinstance(get_world_repository(StorageBackend.FILE), FileWorldRepository)

    def test_factory_uses_env_when_backend_not_specified(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BLISSNEXUS_STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("BLISSNEXUS_DATABASE_URI", str(tmp_path / "test.db"))
        assert isinstance(get_world_repository(), SQLiteWorldRepository)

    def test_none_backend_is_in_memory(self):
        assert isinstance(get_world_repository(StorageBackend.NONE), MemoryWorldRepository)

    def test_explicit_paths_override_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BLISSNEXUS_WORLDS_PATH", str(tmp_path / "env-worlds"))
        repo = get_world_repository(StorageBackend.FILE, worlds_path=str(tmp_path / "instance" / "worlds"))
        assert repo.worlds_path == tmp_path / "instance" / "worlds"

        db = get_world_repository(StorageBackend.SQLITE, database_uri=str(tmp_path / "instance" / "worlds.db"))
        assert db.database_path == tmp_path / "instance" / "worlds.db"


# ============================================================================
# Integration Tests - Parametrized for Every Backend
# ============================================================================


@pytest.fixture(params=["file", "sqlite", "memory"])
def world_repo(request, tmp_path):
    if request.param == "file":
        return FileWorldRepository(tmp_path / "worlds")
    if request.param == "sqlite":
        return SQLiteWorldRepository(str(tmp_path / "worlds.db"))
    return MemoryWorldRepository()


class TestWorldRepositoryIntegration:
    def test_load_missing(self, world_repo):
        assert world_repo.load_world("nowhere") is None

    def test_save_and_restore_world(self, world_repo):
        world = World.genesis(random.Random(11))
        world.nations["rex"].wars.add("vera")
        world.nations["vera"].wars.add("rex")
        world.tension = 64

        world_repo.save_world("main", world.to_blob())
        restored = World.from_blob(world_repo.load_world("main"))

        assert restored.tension == 64
        assert restored.nations["vera"].wars == {"rex"}
        assert restored.nations["sage"].cities == world.nations["sage"].cities

    def test_save_overwrites(self, world_repo):
        world_repo.save_world("main", {"year": 1})
        world_repo.save_world("main", {"year": 7})
        assert world_repo.load_world("main")["year"] == 7
        assert len(world_repo.list_worlds()) == 1

    def test_list_and_delete(self, world_repo):
        world_repo.save_world("alpha", {"year": 2})
        world_repo.save_world("beta", {"year": 3})
        assert {w["id"] for w in world_repo.list_worlds()} == {"alpha", "beta"}

        assert world_repo.delete_world("alpha") is True
        assert world_repo.delete_world("alpha") is False
        assert world_repo.load_world("alpha") is None
