"""Tests for pyreazon.runtime.cache."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from pyreazon.catalog import resolve_variant
from pyreazon.errors import AssetResolutionError
from pyreazon.runtime.cache import (
    AssetCache,
    HubRepository,
    MaxAge,
    NeverExpire,
    are_models_downloaded,
    default_cache_dir,
    download_models,
)
from pyreazon.types import Language, Precision

REPO_ID, FILES = resolve_variant(Language.JA, Precision.FP32)


class RecordingRepository:
    """In-memory stand-in for the hub that stores files in a flat folder."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fetched: list[tuple[str, bool]] = []
        self.fail_on = fail_on

    def lookup(self, repo_id, filename, cache_dir):
        path = Path(cache_dir) / repo_id / filename
        return path if path.exists() else None

    def fetch(self, repo_id, filename, cache_dir, force=False):
        if filename == self.fail_on:
            raise ConnectionError("connection reset")
        self.fetched.append((filename, force))
        path = Path(cache_dir) / repo_id / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"weights")
        return path


def test_fast_path_makes_no_network_calls(tmp_path, seed_cache, offline_hub):
    seeded = seed_cache(tmp_path, REPO_ID, FILES.filenames())

    paths = AssetCache(tmp_path).ensure_assets(REPO_ID, FILES)

    assert paths.encoder == seeded["encoder-epoch-99-avg-1.onnx"]
    assert paths.decoder == seeded["decoder-epoch-99-avg-1.onnx"]
    assert paths.joiner == seeded["joiner-epoch-99-avg-1.onnx"]
    assert paths.tokens == seeded["tokens.txt"]
    assert paths.missing() == []


def test_empty_cache_downloads_all_files(tmp_path, fake_hub):
    paths = AssetCache(tmp_path).ensure_assets(REPO_ID, FILES)

    assert [c["filename"] for c in fake_hub] == FILES.filenames()
    assert all(c["repo_id"] == REPO_ID for c in fake_hub)
    assert paths.missing() == []
    assert [path.name for _, path in paths] == [
        "encoder-epoch-99-avg-1.onnx",
        "decoder-epoch-99-avg-1.onnx",
        "joiner-epoch-99-avg-1.onnx",
        "tokens.txt",
    ]


def test_partial_cache_fetches_all_four(tmp_path, seed_cache, fake_hub):
    seed_cache(tmp_path, REPO_ID, ["tokens.txt", "encoder-epoch-99-avg-1.onnx"])

    paths = AssetCache(tmp_path).ensure_assets(REPO_ID, FILES)

    assert len(fake_hub) == 4
    assert not any(c["force"] for c in fake_hub)
    assert paths.missing() == []


def test_second_call_uses_cache(tmp_path, fake_hub):
    cache = AssetCache(tmp_path)
    first = cache.ensure_assets(REPO_ID, FILES)
    second = cache.ensure_assets(REPO_ID, FILES)

    assert first == second
    assert len(fake_hub) == 4


def test_fetch_failure_names_file(tmp_path):
    repo = RecordingRepository(fail_on="joiner-epoch-99-avg-1.onnx")
    cache = AssetCache(tmp_path, repository=repo)

    with pytest.raises(AssetResolutionError) as exc:
        cache.ensure_assets(REPO_ID, FILES)

    assert exc.value.filename == "joiner-epoch-99-avg-1.onnx"
    assert exc.value.repo_id == REPO_ID
    assert exc.value.stage == "resolution"
    assert isinstance(exc.value.__cause__, ConnectionError)
    # Files after the failing one are never attempted
    assert "tokens.txt" not in [name for name, _ in repo.fetched]


def test_hub_error_becomes_resolution_error(tmp_path, monkeypatch):
    from pyreazon.runtime import cache as cache_module

    def broken_download(**kwargs):
        raise OSError(f"404 for {kwargs['filename']}")

    monkeypatch.setattr(cache_module, "hf_hub_download", broken_download)

    with pytest.raises(AssetResolutionError, match="encoder-epoch-99-avg-1.onnx"):
        AssetCache(tmp_path).ensure_assets(REPO_ID, FILES)


def test_cache_root_creation_failure(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file")
    cache = AssetCache(blocker / "cache", repository=RecordingRepository())

    with pytest.raises(AssetResolutionError) as exc:
        cache.ensure_assets(REPO_ID, FILES)

    assert exc.value.filename is None
    assert isinstance(exc.value.__cause__, OSError)


def test_force_refetches_everything(tmp_path):
    repo = RecordingRepository()
    cache = AssetCache(tmp_path, repository=repo)
    cache.ensure_assets(REPO_ID, FILES)
    cache.ensure_assets(REPO_ID, FILES, force=True)

    assert len(repo.fetched) == 8
    assert all(force for _, force in repo.fetched[4:])


def test_progress_callback(tmp_path):
    progress = []
    cache = AssetCache(tmp_path, repository=RecordingRepository())

    cache.ensure_assets(
        REPO_ID, FILES, progress_callback=lambda *args: progress.append(args)
    )

    assert progress == [
        ("encoder-epoch-99-avg-1.onnx", 1, 4),
        ("decoder-epoch-99-avg-1.onnx", 2, 4),
        ("joiner-epoch-99-avg-1.onnx", 3, 4),
        ("tokens.txt", 4, 4),
    ]


def test_lock_file_is_released(tmp_path):
    from filelock import FileLock

    cache = AssetCache(tmp_path, repository=RecordingRepository())
    cache.ensure_assets(REPO_ID, FILES)

    lock = FileLock(str(cache.lock_path(REPO_ID)))
    lock.acquire(timeout=0)
    lock.release()


class LateWriterRepository(RecordingRepository):
    """Misses on the first probe, then another writer fills the cache."""

    def __init__(self, files) -> None:
        super().__init__()
        self.files = files
        self.lookups = 0

    def lookup(self, repo_id, filename, cache_dir):
        self.lookups += 1
        if self.lookups <= len(self.files):
            if self.lookups == len(self.files):
                for name in self.files.filenames():
                    path = Path(cache_dir) / repo_id / name
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_bytes(b"weights")
            return None
        return super().lookup(repo_id, filename, cache_dir)

    def fetch(self, repo_id, filename, cache_dir, force=False):
        raise AssertionError(f"unexpected fetch: {filename}")


def test_concurrent_writer_result_is_reused(tmp_path):
    repo = LateWriterRepository(FILES)
    cache = AssetCache(tmp_path, repository=repo)

    paths = cache.ensure_assets(REPO_ID, FILES)

    assert repo.fetched == []
    assert repo.lookups == 2 * len(FILES)
    assert paths.missing() == []
    assert paths.joiner == tmp_path / REPO_ID / "joiner-epoch-99-avg-1.onnx"


class TestPolicies:
    def test_never_expire(self, tmp_path):
        path = tmp_path / "a.onnx"
        assert NeverExpire().is_usable(path) is False
        path.write_bytes(b"x")
        os.utime(path, (0, 0))
        assert NeverExpire().is_usable(path) is True

    def test_max_age(self, tmp_path):
        path = tmp_path / "a.onnx"
        path.write_bytes(b"x")
        os.utime(path, (1000, 1000))

        assert MaxAge(60, clock=lambda: 1030).is_usable(path) is True
        assert MaxAge(60, clock=lambda: 1100).is_usable(path) is False

    def test_max_age_rejects_negative(self):
        with pytest.raises(ValueError):
            MaxAge(-1)

    def test_stale_entries_are_refetched(self, tmp_path):
        repo = RecordingRepository()
        AssetCache(tmp_path, repository=repo).ensure_assets(REPO_ID, FILES)
        stale = tmp_path / REPO_ID / "tokens.txt"
        os.utime(stale, (0, 0))

        cache = AssetCache(tmp_path, repository=repo, policy=MaxAge(3600))
        cache.ensure_assets(REPO_ID, FILES)

        second_round = dict(repo.fetched[4:])
        assert second_round["tokens.txt"] is True
        assert second_round["encoder-epoch-99-avg-1.onnx"] is False


class TestHubRepository:
    def test_lookup_hit(self, tmp_path, seed_cache):
        seeded = seed_cache(tmp_path, REPO_ID, ["tokens.txt"])
        assert HubRepository().lookup(REPO_ID, "tokens.txt", tmp_path) == seeded[
            "tokens.txt"
        ]

    def test_lookup_miss(self, tmp_path, seed_cache):
        seed_cache(tmp_path, REPO_ID, ["tokens.txt"])
        repo = HubRepository()
        assert repo.lookup(REPO_ID, "encoder-epoch-99-avg-1.onnx", tmp_path) is None
        assert repo.lookup("other/repo", "tokens.txt", tmp_path) is None


def test_default_cache_dir(monkeypatch):
    from huggingface_hub import constants

    monkeypatch.setattr(constants, "HF_HUB_CACHE", "/tmp/hub-cache")
    assert default_cache_dir() == Path("/tmp/hub-cache")
    assert AssetCache().root == Path("/tmp/hub-cache")


def test_download_models(tmp_path, fake_hub):
    paths = download_models(
        tmp_path, precision=Precision.INT8, language=Language.JA_EN_MLS_5K
    )

    assert paths.encoder.name == "encoder-epoch-21-avg-1.int8.onnx"
    assert paths.decoder.name == "decoder-epoch-21-avg-1.int8.onnx"
    assert paths.joiner.name == "joiner-epoch-21-avg-1.int8.onnx"
    assert paths.tokens.name == "tokens.txt"
    assert fake_hub[0]["repo_id"] == (
        "reazon-research/reazonspeech-k2-v2-ja-en-mls-5k-corrected"
    )


def test_are_models_downloaded(tmp_path, seed_cache, offline_hub):
    assert are_models_downloaded(tmp_path) is False
    seed_cache(tmp_path, REPO_ID, FILES.filenames()[:3])
    assert are_models_downloaded(tmp_path) is False
    seed_cache(tmp_path, REPO_ID, ["tokens.txt"])
    assert are_models_downloaded(tmp_path) is True
