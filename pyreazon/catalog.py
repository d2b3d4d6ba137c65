"""Lookup table from (language, precision) to repository and asset names."""

from __future__ import annotations

from dataclasses import dataclass

from .types import AssetFileSet, Language, Precision

TOKENS_FILENAME = "tokens.txt"

# Suffix inserted before ".onnx" for quantized weights
INT8_SUFFIX = ".int8"


@dataclass(frozen=True)
class LanguageModel:
    repo_id: str
    # Training epoch baked into the published file names
    epoch: int


LANGUAGE_MODELS: dict[Language, LanguageModel] = {
    Language.JA: LanguageModel("reazon-research/reazonspeech-k2-v2", 99),
    Language.JA_EN: LanguageModel("reazon-research/reazonspeech-k2-v2-ja-en", 35),
    Language.JA_EN_MLS_5K: LanguageModel(
        "reazon-research/reazonspeech-k2-v2-ja-en-mls-5k-corrected", 21
    ),
}

# Per-role quantization for each precision
PRECISION_SUFFIXES: dict[Precision, dict[str, str]] = {
    Precision.FP32: {"encoder": "", "decoder": "", "joiner": ""},
    Precision.INT8: {
        "encoder": INT8_SUFFIX,
        "decoder": INT8_SUFFIX,
        "joiner": INT8_SUFFIX,
    },
    Precision.INT8_FP32: {
        "encoder": INT8_SUFFIX,
        "decoder": "",
        "joiner": INT8_SUFFIX,
    },
}


def get_model_filename(role: str, epoch: int, suffix: str = "") -> str:
    """Get the published ONNX filename for one model role."""
    return f"{role}-epoch-{epoch}-avg-1{suffix}.onnx"


def resolve_variant(
    language: Language = Language.JA,
    precision: Precision = Precision.FP32,
) -> tuple[str, AssetFileSet]:
    """
    Map a model variant to its repository and asset file names.

    Args:
        language: Model family
        precision: Weight quantization

    Returns:
        Tuple of (repo_id, file names)
    """
    model = LANGUAGE_MODELS[language]
    suffixes = PRECISION_SUFFIXES[precision]
    files = AssetFileSet(
        encoder=get_model_filename("encoder", model.epoch, suffixes["encoder"]),
        decoder=get_model_filename("decoder", model.epoch, suffixes["decoder"]),
        joiner=get_model_filename("joiner", model.epoch, suffixes["joiner"]),
        tokens=TOKENS_FILENAME,
    )
    return model.repo_id, files


def list_variants() -> list[tuple[Language, Precision]]:
    """All (language, precision) pairs the catalog can resolve."""
    return [(lang, prec) for lang in LANGUAGE_MODELS for prec in PRECISION_SUFFIXES]


class VariantCatalog:
    """Stateless facade over :func:`resolve_variant`."""

    @staticmethod
    def resolve(
        language: Language, precision: Precision
    ) -> tuple[str, AssetFileSet]:
        return resolve_variant(language, precision)

    @staticmethod
    def variants() -> list[tuple[Language, Precision]]:
        return list_variants()
