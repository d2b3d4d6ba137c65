"""Local asset cache backed by the Hugging Face Hub cache layout."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from filelock import FileLock
from huggingface_hub import constants as hf_constants
from huggingface_hub import hf_hub_download, try_to_load_from_cache

from ..catalog import resolve_variant
from ..errors import AssetResolutionError
from ..types import AssetFileSet, AssetPaths, Language, Precision

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class CachePolicy(Protocol):
    def is_usable(self, path: Path) -> bool: ...


class RemoteRepository(Protocol):
    def lookup(self, repo_id: str, filename: str, cache_dir: Path) -> Path | None: ...
    def fetch(
        self, repo_id: str, filename: str, cache_dir: Path, force: bool = False
    ) -> Path: ...


class NeverExpire:
    """Cached files never expire and are never revalidated against the hub.

    Any file already present is used as-is, so a warm cache works offline
    and always yields the same weights.
    """

    def is_usable(self, path: Path) -> bool:
        return path.is_file()


class MaxAge:
    """Cached files are usable until they are older than ``max_age`` seconds."""

    def __init__(
        self, max_age: float, clock: Callable[[], float] = time.time
    ) -> None:
        if max_age < 0:
            raise ValueError("max_age must be >= 0")
        self.max_age = max_age
        self._clock = clock

    def is_usable(self, path: Path) -> bool:
        if not path.is_file():
            return False
        return self._clock() - path.stat().st_mtime <= self.max_age


class HubRepository:
    """Read-only access to model repositories on the Hugging Face Hub."""

    repo_type = "model"

    def lookup(self, repo_id: str, filename: str, cache_dir: Path) -> Path | None:
        cached = try_to_load_from_cache(
            repo_id=repo_id,
            filename=filename,
            cache_dir=str(cache_dir),
            repo_type=self.repo_type,
        )
        # Either None or a "known missing" sentinel when not cached
        if isinstance(cached, str):
            return Path(cached)
        return None

    def fetch(
        self, repo_id: str, filename: str, cache_dir: Path, force: bool = False
    ) -> Path:
        # hf_hub_download writes to an .incomplete file and renames it into
        # place, so readers never see a partial asset.
        downloaded_path = hf_hub_download(
            repo_id=repo_id,
            filename=filename,
            repo_type=self.repo_type,
            cache_dir=str(cache_dir),
            force_download=force,
        )
        return Path(downloaded_path)


def default_cache_dir() -> Path:
    """Get the platform default hub cache directory."""
    return Path(hf_constants.HF_HUB_CACHE)


def _repo_folder_name(repo_id: str) -> str:
    return "models--" + repo_id.replace("/", "--")


class AssetCache:
    """
    Resolve asset file sets to local paths, downloading on a cache miss.

    Args:
        cache_dir: Cache root (defaults to the hub cache)
        policy: Freshness policy deciding whether a cached file may be reused
        repository: Remote repository adapter
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        *,
        policy: CachePolicy | None = None,
        repository: RemoteRepository | None = None,
    ) -> None:
        self.root = Path(cache_dir).expanduser() if cache_dir else default_cache_dir()
        self.policy: CachePolicy = policy or NeverExpire()
        self.repository: RemoteRepository = repository or HubRepository()

    def lock_path(self, repo_id: str) -> Path:
        return self.root / ".locks" / "pyreazon" / f"{_repo_folder_name(repo_id)}.lock"

    def probe(self, repo_id: str, files: AssetFileSet) -> dict[str, Path]:
        """Return the usable cached path of every role that resolves locally."""
        found: dict[str, Path] = {}
        for role, filename in files:
            path = self.repository.lookup(repo_id, filename, self.root)
            if path is not None and self.policy.is_usable(path):
                found[role] = path
            else:
                logger.debug(f"Cache miss for {repo_id}/{filename}")
        return found

    def is_cached(self, repo_id: str, files: AssetFileSet) -> bool:
        return len(self.probe(repo_id, files)) == len(files)

    def ensure_assets(
        self,
        repo_id: str,
        files: AssetFileSet,
        *,
        progress_callback: ProgressCallback | None = None,
        force: bool = False,
    ) -> AssetPaths:
        """
        Make sure all four assets are in the cache and return their paths.

        When every file is already cached no network access happens.
        Otherwise all four files are fetched; any failure aborts the whole
        resolution.

        Args:
            repo_id: Hugging Face repository ID
            files: Asset file names inside the repository
            progress_callback: Optional callback (filename, current, total)
            force: Force re-download even if files exist

        Returns:
            Local paths of the four assets

        Raises:
            AssetResolutionError: If the cache root cannot be created or a
                file cannot be fetched
        """
        if not force:
            cached = self.probe(repo_id, files)
            if len(cached) == len(files):
                logger.debug(f"All model files for {repo_id} found in {self.root}")
                return AssetPaths(**cached)

        lock_path = self.lock_path(repo_id)
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AssetResolutionError(
                f"Cannot create cache directory {self.root}: {e}", repo_id
            ) from e

        with FileLock(str(lock_path)):
            if not force:
                # Another process may have finished the download meanwhile
                cached = self.probe(repo_id, files)
                if len(cached) == len(files):
                    return AssetPaths(**cached)
            return self._fetch_all(repo_id, files, progress_callback, force)

    def _fetch_all(
        self,
        repo_id: str,
        files: AssetFileSet,
        progress_callback: ProgressCallback | None,
        force: bool,
    ) -> AssetPaths:
        logger.info(f"Downloading model files from Hugging Face: {repo_id}")
        total = len(files)
        paths: dict[str, Path] = {}

        for idx, (role, filename) in enumerate(files):
            if progress_callback:
                progress_callback(filename, idx + 1, total)

            refetch = force
            existing = self.repository.lookup(repo_id, filename, self.root)
            if existing is not None and not self.policy.is_usable(existing):
                logger.warning(f"Cached {filename} is stale, downloading again")
                refetch = True

            logger.debug(f"Fetching {repo_id}/{filename}")
            try:
                paths[role] = self.repository.fetch(
                    repo_id, filename, self.root, force=refetch
                )
            except Exception as e:
                raise AssetResolutionError(
                    f"Failed to download {filename} from {repo_id}: {e}",
                    repo_id,
                    filename,
                ) from e

        logger.info(f"Model files for {repo_id} stored in {self.root}")
        return AssetPaths(**paths)


# =============================================================================
# Download functions
# =============================================================================


def download_models(
    cache_dir: str | Path | None = None,
    precision: Precision | None = None,
    language: Language | None = None,
    progress_callback: ProgressCallback | None = None,
    force: bool = False,
) -> AssetPaths:
    """
    Resolve the model files for a variant, downloading any that are missing.

    Args:
        cache_dir: Cache root (defaults to the hub cache)
        precision: Weight quantization (default fp32)
        language: Model family (default ja)
        progress_callback: Optional callback (filename, current, total)
        force: Force re-download even if files exist

    Returns:
        Local paths of encoder, decoder, joiner and tokens
    """
    repo_id, files = resolve_variant(
        language or Language.JA, precision or Precision.FP32
    )
    return AssetCache(cache_dir).ensure_assets(
        repo_id, files, progress_callback=progress_callback, force=force
    )


def are_models_downloaded(
    cache_dir: str | Path | None = None,
    precision: Precision | None = None,
    language: Language | None = None,
) -> bool:
    """Check whether all model files for a variant are cached."""
    repo_id, files = resolve_variant(
        language or Language.JA, precision or Precision.FP32
    )
    return AssetCache(cache_dir).is_cached(repo_id, files)
