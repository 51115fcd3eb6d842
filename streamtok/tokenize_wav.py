"""
Tokenize a mono wav file by streaming it through `StreamingEncoder`.

The file is read in fixed-duration chunks to exercise the streaming path
exactly as a live source would. No resampling is done; the file must
already be at the model's sample rate.

    python -m streamtok.tokenize_wav --model checkpoints/codec_init.pt \\
        --input speech.wav --output speech_codes.npy --num_codebooks 8
"""

import argparse
from pathlib import Path

import numpy as np
import soundfile as sf

from .streaming import CodeBuffer, StreamingEncoder


def tokenize_wav(
    model_path: Path,
    input_path: Path,
    num_codebooks: int = 8,
    chunk_ms: float = 80.0,
    device: str = "cpu",
) -> CodeBuffer:
    encoder = StreamingEncoder.create(model_path, num_codebooks, device=device)
    try:
        info = sf.info(str(input_path))
        if info.samplerate != encoder.sample_rate:
            raise ValueError(
                f"{input_path} is {info.samplerate} Hz but the model expects {encoder.sample_rate} Hz"
            )
        if info.channels != 1:
            raise ValueError(f"{input_path} has {info.channels} channels, expected mono")

        chunk = max(1, int(encoder.sample_rate * chunk_ms / 1000))
        parts = []
        for block in sf.blocks(str(input_path), blocksize=chunk, dtype="float32"):
            parts.append(encoder.encode_step(block))
        codes = CodeBuffer.concatenate(parts) if parts else CodeBuffer.empty(num_codebooks)
        print(
            f"Encoded {input_path}: {codes.num_steps} steps x {codes.num_codebooks} codebooks "
            f"({encoder.pending_samples} trailing samples dropped)"
        )
        return codes
    finally:
        encoder.destroy()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stream a wav file through the tokenizer.")
    parser.add_argument("--model", type=str, required=True)
    parser.add_argument("--input", type=str, required=True)
    parser.add_argument("--output", type=str, required=True)
    parser.add_argument("--num_codebooks", type=int, default=8)
    parser.add_argument("--chunk_ms", type=float, default=80.0)
    parser.add_argument("--device", type=str, default="cpu")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    codes = tokenize_wav(
        Path(args.model),
        Path(args.input),
        num_codebooks=args.num_codebooks,
        chunk_ms=args.chunk_ms,
        device=args.device,
    )
    np.save(args.output, codes.codes)
    print(f"Saved codes to {args.output}")
