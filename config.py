from __future__ import annotations
import argparse
from dataclasses import dataclass, field, replace
from init_schemes import Initializer

MASK_VALUE = -1.0e4  # a value too low can turn softmax into NaN under low precision


def _check_positive(**sizes: int):
    for name, v in sizes.items():
        if v <= 0:
            raise ValueError(f"{name} must be > 0, got {v}")


def _check_dropout(p: float):
    if not 0.0 <= p < 1.0:
        raise ValueError(f"dropout must be in [0, 1), got {p}")


@dataclass(frozen=True)
class HeadConfig:
    """Single attention head.

    block_size is the context window: inputs may have any T <= block_size.
    batch_size is kept for bookkeeping (demos and `causal_mask(..., batch_size)`);
    the head itself broadcasts its mask over whatever batch it receives.
    """
    batch_size: int
    block_size: int
    n_embd: int
    head_size: int
    dropout: float = 0.0
    initializer: Initializer = field(default_factory=Initializer)
    mask_value: float = MASK_VALUE

    def __post_init__(self):
        _check_positive(batch_size=self.batch_size, block_size=self.block_size,
                        n_embd=self.n_embd, head_size=self.head_size)
        _check_dropout(self.dropout)

    def with_(self, **changes) -> "HeadConfig":
        return replace(self, **changes)

    def init(self, device=None, trace_shapes: bool = False):
        from single_head import AttentionHead
        return AttentionHead(self, device=device, trace_shapes=trace_shapes)


@dataclass(frozen=True)
class MultiHeadAttentionConfig:
    """Multi-head wrapper.

    head_count: heads actually built.
    n_head:     count used to size the output projection (head_size * n_head inputs).
    The two must agree; a mismatch is rejected when the module is built.
    """
    head_count: int
    n_head: int
    head_size: int
    n_embd: int
    dropout: float = 0.0
    initializer: Initializer = field(default_factory=Initializer)
    parallel_heads: bool = False

    def __post_init__(self):
        _check_positive(head_count=self.head_count, n_head=self.n_head,
                        head_size=self.head_size, n_embd=self.n_embd)
        _check_dropout(self.dropout)

    @property
    def proj_in_features(self) -> int:
        return self.head_size * self.n_head

    def with_(self, **changes) -> "MultiHeadAttentionConfig":
        return replace(self, **changes)

    def init(self, head_config: HeadConfig, device=None):
        from multi_head import MultiHeadAttention
        return MultiHeadAttention(self, head_config, device=device)


# ---- argparse plumbing (used by the demos) ----
def add_attention_args(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
    g = p.add_argument_group("attention")
    g.add_argument('--batch_size', type=int, default=1)
    g.add_argument('--block_size', type=int, default=8)
    g.add_argument('--n_embd', type=int, default=12)
    g.add_argument('--n_head', type=int, default=3)
    g.add_argument('--head_size', type=int, default=None, help="defaults to n_embd // n_head")
    g.add_argument('--dropout', type=float, default=0.0)
    g.add_argument('--init', type=str, default='kaiming_uniform',
                   help="initializer, e.g. kaiming_uniform | normal:0,0.02 | xavier_uniform:1.0")
    g.add_argument('--mask_value', type=float, default=MASK_VALUE)
    g.add_argument('--parallel_heads', action='store_true')
    return p


def configs_from_args(args: argparse.Namespace) -> tuple[HeadConfig, MultiHeadAttentionConfig]:
    head_size = args.head_size or args.n_embd // args.n_head
    init = Initializer.from_string(args.init)
    head_cfg = HeadConfig(
        batch_size=args.batch_size, block_size=args.block_size, n_embd=args.n_embd,
        head_size=head_size, dropout=args.dropout, initializer=init, mask_value=args.mask_value,
    )
    mha_cfg = MultiHeadAttentionConfig(
        head_count=args.n_head, n_head=args.n_head, head_size=head_size, n_embd=args.n_embd,
        dropout=args.dropout, initializer=init, parallel_heads=args.parallel_heads,
    )
    return head_cfg, mha_cfg
