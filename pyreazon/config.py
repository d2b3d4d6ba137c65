from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, replace
from typing import Any

from .constants import (
    DEFAULT_CONFIG,
    ENV_CACHE_DIR,
    ENV_LANGUAGE,
    ENV_NUM_THREADS,
    ENV_PRECISION,
    ENV_PROVIDER,
)
from .errors import ConfigurationError
from .types import Language, Precision

logger = logging.getLogger(__name__)

# Execution providers understood by the inference engine
PROVIDERS = ("cpu", "cuda", "coreml", "directml", "xnnpack", "nnapi", "trt")


def default_provider(platform: str) -> str:
    """Platform default execution provider: CoreML on macOS, CPU elsewhere."""
    if platform == "darwin":
        return "coreml"
    return "cpu"


def resolve_provider(requested: str | None = None, *, platform: str | None = None) -> str:
    """
    Select the execution provider.

    Priority: explicit request, then the PYREAZON_PROVIDER environment
    variable, then the platform default.

    Args:
        requested: Explicit provider name (case-insensitive)
        platform: Platform identity as in ``sys.platform`` (defaults to the host)

    Returns:
        Lower-case provider name

    Raises:
        ConfigurationError: If the provider name is unknown
    """
    if requested:
        provider = requested
    elif os.getenv(ENV_PROVIDER):
        provider = os.environ[ENV_PROVIDER]
        logger.info(f"Using provider from {ENV_PROVIDER} env: {provider}")
    else:
        provider = default_provider(platform or sys.platform)

    provider = provider.strip().lower()
    if provider not in PROVIDERS:
        raise ConfigurationError("provider", provider, list(PROVIDERS))
    return provider


@dataclass(frozen=True)
class RecognizerConfig:
    """User-facing configuration for :class:`~pyreazon.ReazonSpeech`.

    Frozen so a config can be shared between recognizers safely.
    """

    language: Language = Language(DEFAULT_CONFIG["language"])
    precision: Precision = Precision(DEFAULT_CONFIG["precision"])

    # Cache root; None means the hub cache
    cache_dir: str | None = None

    # Execution provider; None means env override or platform default
    provider: str | None = None
    num_threads: int = int(DEFAULT_CONFIG["num_threads"])
    debug: bool = bool(DEFAULT_CONFIG["debug"])

    # Platform identity used for the default provider; None means sys.platform
    platform: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.language, Language):
            object.__setattr__(self, "language", Language.from_string(self.language))
        if not isinstance(self.precision, Precision):
            object.__setattr__(
                self, "precision", Precision.from_string(self.precision)
            )
        if self.provider is not None:
            provider = self.provider.strip().lower()
            if provider not in PROVIDERS:
                raise ConfigurationError("provider", provider, list(PROVIDERS))
            object.__setattr__(self, "provider", provider)
        if self.num_threads < 1:
            raise ConfigurationError(
                "num_threads",
                str(self.num_threads),
                message=f"num_threads must be >= 1, got {self.num_threads}",
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> RecognizerConfig:
        """Build a config from PYREAZON_* environment variables.

        Keyword overrides take precedence over the environment.
        """
        values: dict[str, Any] = {}
        if os.getenv(ENV_LANGUAGE):
            values["language"] = os.environ[ENV_LANGUAGE]
        if os.getenv(ENV_PRECISION):
            values["precision"] = os.environ[ENV_PRECISION]
        if os.getenv(ENV_CACHE_DIR):
            values["cache_dir"] = os.environ[ENV_CACHE_DIR]
        if os.getenv(ENV_PROVIDER):
            values["provider"] = os.environ[ENV_PROVIDER]
        threads = os.getenv(ENV_NUM_THREADS)
        if threads:
            try:
                values["num_threads"] = int(threads)
            except ValueError as e:
                raise ConfigurationError(
                    "num_threads",
                    threads,
                    message=f"{ENV_NUM_THREADS} must be an integer, got {threads}",
                ) from e
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> RecognizerConfig:
        return replace(self, **overrides)
