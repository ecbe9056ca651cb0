from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
import torch
import torch.nn as nn
from config import HeadConfig, MultiHeadAttentionConfig
from init_schemes import linear
from single_head import AttentionHead

class MultiHeadAttention(nn.Module):
    """Independent causal heads, concatenated and projected back to n_embd.

    Dimensions:
      x:       (B, T, n_embd)
      head i:  (B, T, head_size)                  every head sees the same x
      concat:  (B, T, head_size * head_count)     in head-index order
      proj:    (B, T, n_embd)
      out:     dropout(proj)                      same shape as x

    Heads never share weights. With `parallel_heads` the per-head forwards run
    on a thread pool (created on first use, one worker per head, reused across
    calls); results are still joined in head-index order.
    """
    def __init__(self, cfg: MultiHeadAttentionConfig, head_cfg: HeadConfig, device=None):
        super().__init__()
        if cfg.head_size * cfg.head_count != cfg.proj_in_features:
            raise ValueError(
                f"head_size * head_count = {cfg.head_size} * {cfg.head_count} = {cfg.head_size * cfg.head_count} "
                f"does not match the output projection input ({cfg.head_size} * n_head={cfg.n_head} = {cfg.proj_in_features})"
            )
        if head_cfg.head_size != cfg.head_size:
            raise ValueError(f"head config has head_size={head_cfg.head_size}, expected {cfg.head_size}")
        if head_cfg.n_embd != cfg.n_embd:
            raise ValueError(f"head config has n_embd={head_cfg.n_embd}, expected {cfg.n_embd}")
        self.cfg = cfg
        self.heads = nn.ModuleList([AttentionHead(head_cfg, device=device) for _ in range(cfg.head_count)])
        self.proj = linear(cfg.proj_in_features, cfg.n_embd, cfg.initializer, device=device)
        self.dropout = nn.Dropout(cfg.dropout)
        self.parallel_heads = cfg.parallel_heads
        self._pool: ThreadPoolExecutor | None = None

    def __getstate__(self):
        # executors hold locks and threads; a copy starts without one
        state = self.__dict__.copy()
        state["_pool"] = None
        return state

    def _executor(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(max_workers=len(self.heads), thread_name_prefix="attn-head")
        return self._pool

    def _run_heads(self, fn, x: torch.Tensor) -> list[torch.Tensor]:
        if not self.parallel_heads or len(self.heads) == 1:
            return [fn(h, x) for h in self.heads]
        grad = torch.is_grad_enabled()  # grad mode is thread-local

        def run(h):
            with torch.set_grad_enabled(grad):
                return fn(h, x)

        # map() yields in submission order, i.e. head-index order
        return list(self._executor().map(run, self.heads))

    def forward(self, x: torch.Tensor) -> torch.Tensor:  # (B,T,n_embd)
        outs = self._run_heads(lambda h, inp: h(inp), x)
        y = torch.cat(outs, dim=-1)  # (B,T,head_size*head_count)
        y = self.proj(y)             # (B,T,n_embd)
        return self.dropout(y)

    @torch.no_grad()
    def attention_maps(self, x: torch.Tensor) -> torch.Tensor:
        """Per-head attention weights stacked as (B, H, T, T)."""
        return torch.stack(self._run_heads(lambda h, inp: h.attention_weights(inp), x), dim=1)
