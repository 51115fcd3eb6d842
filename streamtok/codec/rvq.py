from dataclasses import dataclass
from typing import List, Optional

import torch
import torch.nn as nn


@dataclass
class ResidualVectorQuantizerConfig:
    """Configuration for the residual vector quantizer.

    Attributes:
        dim: Dimensionality of latent vectors to quantize.
        num_codebooks: Maximum number of residual quantization stages.
        codebook_size: Number of entries per codebook.
    """

    dim: int = 256
    num_codebooks: int = 32
    codebook_size: int = 2048


class ResidualVectorQuantizer(nn.Module):
    """Residual vector quantizer (RVQ), inference side only.

    Each stage picks the nearest codeword to the residual left by the
    previous stages. Quantizing with fewer stages than the maximum uses
    the leading codebooks only, so the first `n` indices never depend on
    how many stages are requested.
    """

    def __init__(self, cfg: ResidualVectorQuantizerConfig):
        super().__init__()
        self.cfg = cfg

        codebooks = []
        for _ in range(cfg.num_codebooks):
            # Codebook is [codebook_size, dim]
            emb = nn.Embedding(cfg.codebook_size, cfg.dim)
            nn.init.uniform_(emb.weight, -1.0 / cfg.codebook_size, 1.0 / cfg.codebook_size)
            codebooks.append(emb)
        self.codebooks = nn.ModuleList(codebooks)

    @property
    def num_codebooks(self) -> int:
        return self.cfg.num_codebooks

    @property
    def codebook_size(self) -> int:
        return self.cfg.codebook_size

    def encode(self, z: torch.Tensor, num_codebooks: Optional[int] = None) -> torch.Tensor:
        """Map latents to codebook indices.

        Args:
            z: Latent tensor of shape [B, T, D].
            num_codebooks: Number of leading stages to use (defaults to all).

        Returns:
            indices: Long tensor of shape [B, num_codebooks, T].
        """
        assert z.dim() == 3, "Expected latent tensor of shape [B, T, D]"
        B, T, D = z.shape
        assert D == self.cfg.dim, f"Expected last dim={self.cfg.dim}, got {D}"
        n_q = self.num_codebooks if num_codebooks is None else num_codebooks
        assert 1 <= n_q <= self.num_codebooks, f"num_codebooks must be in [1, {self.num_codebooks}], got {n_q}"

        residual = z.reshape(-1, D)
        all_indices: List[torch.Tensor] = []

        for codebook in self.codebooks[:n_q]:
            # dist(x, e) = ||x||^2 + ||e||^2 - 2 x·e, over [B*T, K]
            codebook_weight = codebook.weight
            x_sq = (residual ** 2).sum(dim=1, keepdim=True)
            e_sq = (codebook_weight ** 2).sum(dim=1)
            distances = x_sq + e_sq.unsqueeze(0) - 2.0 * residual @ codebook_weight.t()

            indices = torch.argmin(distances, dim=1)
            all_indices.append(indices.view(B, T))
            residual = residual - codebook(indices)

        return torch.stack(all_indices, dim=1)

