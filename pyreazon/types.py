from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np

from .errors import ConfigurationError, PreprocessingError


class Precision(str, Enum):
    """On-disk weight variant used for encoder, decoder and joiner.

    ``INT8_FP32`` quantizes encoder and joiner but keeps the decoder in
    full precision.
    """

    FP32 = "fp32"
    INT8 = "int8"
    INT8_FP32 = "int8-fp32"

    @classmethod
    def from_string(cls, value: str) -> Precision:
        """Convert string to Precision, case-insensitive."""
        value_lower = value.strip().lower().replace("_", "-")
        for member in cls:
            if member.value == value_lower:
                return member
        raise ConfigurationError("precision", value, [m.value for m in cls])

    def as_str(self) -> str:
        return self.value


class Language(str, Enum):
    """Model family; selects the remote repository and its epoch count."""

    JA = "ja"
    JA_EN = "ja-en"
    JA_EN_MLS_5K = "ja-en-mls-5k"

    @classmethod
    def from_string(cls, value: str) -> Language:
        """Convert string to Language, case-insensitive."""
        value_lower = value.strip().lower().replace("_", "-")
        for member in cls:
            if member.value == value_lower:
                return member
        raise ConfigurationError("language", value, [m.value for m in cls])

    def as_str(self) -> str:
        return self.value


ASSET_ROLES = ("encoder", "decoder", "joiner", "tokens")


@dataclass(frozen=True)
class AssetFileSet:
    """Concrete file names of the four assets inside one repository."""

    encoder: str
    decoder: str
    joiner: str
    tokens: str = "tokens.txt"

    def __iter__(self) -> Iterator[tuple[str, str]]:
        for role in ASSET_ROLES:
            yield role, getattr(self, role)

    def __len__(self) -> int:
        return len(ASSET_ROLES)

    def filenames(self) -> list[str]:
        return [name for _, name in self]


@dataclass(frozen=True)
class AssetPaths:
    """Local paths of a resolved asset set."""

    encoder: Path
    decoder: Path
    joiner: Path
    tokens: Path

    def __iter__(self) -> Iterator[tuple[str, Path]]:
        for role in ASSET_ROLES:
            yield role, getattr(self, role)

    def missing(self) -> list[str]:
        """Roles whose path is not an existing file."""
        return [role for role, path in self if not path.is_file()]


@dataclass
class AudioData:
    samples: np.ndarray
    sample_rate: int

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            raise PreprocessingError(f"Invalid sample rate: {self.sample_rate}")
        return len(self.samples) / self.sample_rate


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    # Seconds, measured before silence padding
    audio_duration: float
