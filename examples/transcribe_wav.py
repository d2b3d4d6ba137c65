#!/usr/bin/env python3
"""
Transcribe a WAV file with ReazonSpeech.

Model files are downloaded from Hugging Face on first use and reused from
the local cache afterwards.

Usage:
    python examples/transcribe_wav.py speech.wav [precision] [language]

    precision: fp32 (default), int8, int8-fp32
    language:  ja (default), ja-en, ja-en-mls-5k

    When omitted, PYREAZON_PRECISION and PYREAZON_LANGUAGE are used.

Output:
    Recognized text, audio duration and real-time factor
"""

import logging
import sys
import time

import pyreazon


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    path = sys.argv[1]
    # Command line arguments override PYREAZON_PRECISION / PYREAZON_LANGUAGE
    overrides = {}
    if len(sys.argv) > 2:
        overrides["precision"] = sys.argv[2]
    if len(sys.argv) > 3:
        overrides["language"] = sys.argv[3]
    config = pyreazon.RecognizerConfig.from_env(**overrides)

    print("Initializing ReazonSpeech (k2-asr)...")
    with pyreazon.ReazonSpeech(config) as asr:
        print(f"Provider: {asr.provider}")
        print(f"Transcribing: {path}")

        start = time.time()
        result = asr.transcribe_file(path)
        elapsed = time.time() - start

    rtf = elapsed / result.audio_duration if result.audio_duration else 0.0

    print("\nRecognition Result:")
    print("-------------------")
    print(result.text)
    print("-------------------")
    print(f"Audio duration: {result.audio_duration:.2f}s")
    print(f"Elapsed: {elapsed:.2f}s (RTF {rtf:.3f})")


if __name__ == "__main__":
    main()
