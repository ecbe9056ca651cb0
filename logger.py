from __future__ import annotations
import time
from pathlib import Path
from typing import Any, Dict, Optional
import torch

class NoopLogger:
    def log(self, step: Optional[int] = None, **kv: Any):
        pass
    def hist(self, tag: str, values: Any, step: Optional[int] = None):
        pass
    def image(self, tag: str, img, step: Optional[int] = None):
        pass
    def flush(self):
        pass
    def close(self):
        pass

class TBLogger(NoopLogger):
    """
    TensorBoard backend.
      - logger.log(step=..., **{"attn/entropy": 1.2})
      - logger.hist("params/heads.0.key.weight", tensor, step)
      - logger.image("attn/head0/map", CHW_or_HWC_array, step)
    Tensors with one element are logged as scalars, small tensors as histograms,
    large tensors as mean/std scalars.
    """
    def __init__(self, out_dir: str, flush_secs: int = 10, run_name: str | None = None):
        self.w = None
        run_name = run_name or time.strftime("%Y%m%d-%H%M%S")
        run_dir = Path(out_dir) / run_name
        run_dir.mkdir(parents=True, exist_ok=True)
        try:
            from torch.utils.tensorboard import SummaryWriter
            self.w = SummaryWriter(log_dir=str(run_dir), flush_secs=flush_secs)
        except ImportError as e:
            print(f"[TBLogger] TensorBoard not available: {e}. Logging disabled.")
        self._auto_hist_max_elems = 2048
        self.run_dir = str(run_dir)

    def log(self, step: Optional[int] = None, **kv: Any):
        if not self.w: return
        for k, v in kv.items():
            if isinstance(v, torch.Tensor):
                numel = v.numel()
                if numel == 1:
                    self.w.add_scalar(k, float(v.item()), global_step=step)
                elif numel <= self._auto_hist_max_elems:
                    self.w.add_histogram(k, v.detach().cpu(), global_step=step)
                else:
                    arr = v.detach().float().cpu()
                    self.w.add_scalar(k + "/mean", float(arr.mean()), global_step=step)
                    self.w.add_scalar(k + "/std", float(arr.std()), global_step=step)
            else:
                self.w.add_scalar(k, float(v), global_step=step)

    def hist(self, tag: str, values: Any, step: Optional[int] = None):
        if not self.w: return
        if isinstance(values, torch.Tensor):
            values = values.detach().cpu()
        self.w.add_histogram(tag, values, global_step=step)

    def image(self, tag: str, img, step: Optional[int] = None):
        """img: torch.Tensor or numpy array, [C,H,W] or [H,W,C]"""
        if not self.w: return
        chw = getattr(img, "ndim", 0) == 3 and img.shape[0] in (1, 3)
        self.w.add_image(tag, img, global_step=step, dataformats="CHW" if chw else "HWC")

    def flush(self):
        if self.w:
            self.w.flush()

    def close(self):
        if self.w:
            self.w.close()


def init_logger(which: str, out_dir: str = "runs/attention"):
    if which == 'tensorboard':
        tb = TBLogger(out_dir)
        return tb if tb.w is not None else NoopLogger()
    return NoopLogger()


# ----------------------------- attention diagnostics ----------------------------- #
@torch.no_grad()
def attention_stats(w: torch.Tensor, window: int = 2) -> Dict[str, float]:
    """w: (..., Tq, Tk) attention weights (rows sum to 1).
    entropy:        mean over rows of -sum p log p
    diagonal_mass:  mean over rows of the weight within `window` of the diagonal
    """
    eps = 1e-12
    p = w.clamp_min(eps)
    ent = (-p * p.log()).sum(dim=-1).mean().item()
    Tq, Tk = w.shape[-2:]
    i = torch.arange(Tq, device=w.device).unsqueeze(-1)
    j = torch.arange(Tk, device=w.device).unsqueeze(0)
    diag = (w * ((j - i).abs() <= window)).sum(dim=-1).mean().item()
    return {"entropy": ent, f"diagonal_mass_w{window}": diag}


def log_attention(logger, name: str, w: torch.Tensor, step: int, window: int = 2):
    stats = attention_stats(w, window=window)
    logger.log(step=step, **{f"attn/{name}/{k}": v for k, v in stats.items()})
    return stats


def log_attention_module(logger, mha, x: torch.Tensor, step: int, window: int = 2) -> Dict[str, Dict[str, float]]:
    """Per head of a MultiHeadAttention: entropy/diagonal scalars, the first
    batch element's (1, T, T) attention map as an image, and weight histograms."""
    w = mha.attention_maps(x)  # (B,H,T,T)
    stats = {}
    for h, head in enumerate(mha.heads):
        stats[f"head{h}"] = log_attention(logger, f"head{h}", w[:, h], step, window=window)
        logger.image(f"attn/head{h}/map", w[0, h:h+1].cpu(), step)
        for name, p in head.named_parameters():
            logger.hist(f"params/heads.{h}.{name}", p, step)
    logger.flush()
    return stats
