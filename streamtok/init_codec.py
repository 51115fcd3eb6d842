"""
Write a randomly initialised codec checkpoint.

Useful for wiring up the streaming pipeline before trained weights are
available:

    python -m streamtok.init_codec --output checkpoints/codec_init.pt --num_codebooks 8
"""

import argparse
from pathlib import Path
from typing import Optional, Sequence

import torch

from .codec import CodecConfig, CodecModel


def init_codec(output: Path, cfg: CodecConfig, seed: int = 0) -> CodecModel:
    output.parent.mkdir(parents=True, exist_ok=True)
    torch.manual_seed(seed)
    model = CodecModel(cfg)
    model.save_checkpoint(output)
    print(f"Saved codec checkpoint to {output} (frame_size={cfg.frame_size}, codebooks={cfg.num_codebooks})")
    return model


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    defaults = CodecConfig()
    parser = argparse.ArgumentParser(description="Create a randomly initialised codec checkpoint.")
    parser.add_argument("--output", type=str, required=True)
    parser.add_argument("--sample_rate", type=int, default=defaults.sample_rate)
    parser.add_argument("--frame_rate", type=float, default=defaults.frame_rate)
    # sample_rate / frame_rate must equal prod(ratios) * downsample_stride
    parser.add_argument("--ratios", type=int, nargs="+", default=list(defaults.ratios))
    parser.add_argument("--downsample_stride", type=int, default=defaults.downsample_stride)
    parser.add_argument("--num_codebooks", type=int, default=defaults.num_codebooks)
    parser.add_argument("--codebook_size", type=int, default=defaults.codebook_size)
    parser.add_argument("--dim", type=int, default=defaults.dim)
    parser.add_argument("--n_filters", type=int, default=defaults.n_filters)
    parser.add_argument("--seed", type=int, default=0)
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> CodecConfig:
    return CodecConfig(
        sample_rate=args.sample_rate,
        frame_rate=args.frame_rate,
        ratios=tuple(args.ratios),
        downsample_stride=args.downsample_stride,
        num_codebooks=args.num_codebooks,
        codebook_size=args.codebook_size,
        dim=args.dim,
        n_filters=args.n_filters,
    )


if __name__ == "__main__":
    args = parse_args()
    init_codec(Path(args.output), config_from_args(args), seed=args.seed)
