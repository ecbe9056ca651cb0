import math
import torch
import torch.nn as nn
import torch.nn.functional as F
from attn_mask import causal_mask
from config import HeadConfig
from init_schemes import linear

class AttentionHead(nn.Module):
    """Single causal self-attention head (explicit shapes).

      x:       (B, T, n_embd)          T <= block_size
      q, k, v: (B, T, head_size)
      scores:  (B, T, T) = q @ k^T / sqrt(head_size), future positions filled with mask_value
      weights: (B, T, T) = softmax over the key axis
      out:     (B, T, head_size) = dropout(weights) @ v
    """
    def __init__(self, cfg: HeadConfig, device=None, trace_shapes: bool = False):
        super().__init__()
        self.cfg = cfg
        self.key = linear(cfg.n_embd, cfg.head_size, cfg.initializer, device=device)
        self.query = linear(cfg.n_embd, cfg.head_size, cfg.initializer, device=device)
        self.value = linear(cfg.n_embd, cfg.head_size, cfg.initializer, device=device)
        # one (block, block) mask broadcast over the batch; derived from block_size so not saved
        self.register_buffer('mask', causal_mask(cfg.block_size, device=device), persistent=False)
        self.dropout = nn.Dropout(cfg.dropout)
        self.scale = 1.0 / math.sqrt(cfg.head_size)
        self.mask_value = cfg.mask_value
        self.trace_shapes = trace_shapes

    def attention_weights(self, x: torch.Tensor) -> torch.Tensor:
        """Post-softmax, pre-dropout weights: (B, T, T)."""
        if x.dim() != 3:
            raise ValueError(f"expected input of shape (B, T, C), got {tuple(x.shape)}")
        T = x.size(1)
        if T > self.mask.size(-1):
            raise RuntimeError(f"sequence length {T} exceeds block_size {self.mask.size(-1)} (causal mask is too small)")
        k = self.key(x)    # (B,T,hs)
        q = self.query(x)  # (B,T,hs)
        if self.trace_shapes:
            print(f"q {q.shape}  k {k.shape}")
        # (B,T,hs) @ (B,hs,T) -> (B,T,T)
        wei = torch.matmul(q, k.transpose(-2, -1)) * self.scale
        wei = wei.masked_fill(self.mask[:T, :T], self.mask_value)
        return F.softmax(wei, dim=-1)

    def forward(self, x: torch.Tensor) -> torch.Tensor:  # x: (B, T, n_embd)
        w = self.dropout(self.attention_weights(x))
        v = self.value(x)  # (B,T,hs)
        out = torch.matmul(w, v)  # (B,T,T) @ (B,T,hs) -> (B,T,hs)
        if self.trace_shapes:
            print(f"weights {w.shape}  v {v.shape}  out {out.shape}")
        return out
