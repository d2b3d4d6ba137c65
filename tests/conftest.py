from __future__ import annotations

from pathlib import Path

import pytest

from pyreazon.runtime import cache as cache_module

REVISION = "0123456789abcdef0123456789abcdef01234567"


def seed_hub_cache(root: Path, repo_id: str, filenames, content: bytes = b"x") -> dict[str, Path]:
    """Lay files out the way huggingface_hub stores them in its cache."""
    repo_dir = root / ("models--" + repo_id.replace("/", "--"))
    (repo_dir / "refs").mkdir(parents=True, exist_ok=True)
    (repo_dir / "refs" / "main").write_text(REVISION)
    snapshot = repo_dir / "snapshots" / REVISION
    snapshot.mkdir(parents=True, exist_ok=True)
    out = {}
    for name in filenames:
        path = snapshot / name
        path.write_bytes(content)
        out[name] = path
    return out


@pytest.fixture
def fake_hub(monkeypatch):
    """Replace hf_hub_download with an offline fake that records calls."""
    calls: list[dict] = []

    def fake_download(*, repo_id, filename, cache_dir, force_download=False, **kwargs):
        _ = kwargs
        calls.append(
            {"repo_id": repo_id, "filename": filename, "force": force_download}
        )
        return str(seed_hub_cache(Path(cache_dir), repo_id, [filename])[filename])

    monkeypatch.setattr(cache_module, "hf_hub_download", fake_download)
    return calls


@pytest.fixture
def offline_hub(monkeypatch):
    """Fail loudly if anything tries to reach the network."""

    def no_network(**kwargs):
        raise AssertionError(f"unexpected download: {kwargs.get('filename')}")

    monkeypatch.setattr(cache_module, "hf_hub_download", no_network)


@pytest.fixture
def seed_cache():
    return seed_hub_cache


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "PYREAZON_LANGUAGE",
        "PYREAZON_PRECISION",
        "PYREAZON_CACHE_DIR",
        "PYREAZON_PROVIDER",
        "PYREAZON_NUM_THREADS",
    ):
        monkeypatch.delenv(name, raising=False)
