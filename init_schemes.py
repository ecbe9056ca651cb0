"""Parameter-initialization strategies for the attention projections.

An `Initializer` is a small, immutable description of *how* to fill a
tensor. It is carried around in the configs and applied once, when a
`nn.Linear` is built.

Kaiming:  uniform U(-b, b) with b = gain * sqrt(3 / fan)
          normal  N(0, std)  with std = gain / sqrt(fan)
          fan = fan_in, or fan_out when `fan_out_only`
Xavier:   uniform b = gain * sqrt(6 / (fan_in + fan_out))
          normal  std = gain * sqrt(2 / (fan_in + fan_out))

The default (kaiming_uniform, gain = 1/sqrt(3)) gives U(-1/sqrt(fan_in), 1/sqrt(fan_in)).
"""
from __future__ import annotations
import math
from dataclasses import dataclass
import torch
import torch.nn as nn

KINDS = (
    "constant", "ones", "zeros", "uniform", "normal",
    "kaiming_uniform", "kaiming_normal", "xavier_uniform", "xavier_normal",
)


@dataclass(frozen=True)
class Initializer:
    kind: str = "kaiming_uniform"
    gain: float = 1.0 / math.sqrt(3.0)
    fan_out_only: bool = False
    value: float = 0.0      # constant
    low: float = 0.0        # uniform
    high: float = 1.0
    mean: float = 0.0       # normal
    std: float = 1.0

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"unknown initializer kind {self.kind!r}; expected one of {KINDS}")
        if self.kind == "uniform" and self.low >= self.high:
            raise ValueError(f"uniform initializer needs low < high, got [{self.low}, {self.high})")
        if self.kind == "normal" and self.std < 0:
            raise ValueError(f"normal initializer needs std >= 0, got {self.std}")

    # ---- constructors ----
    @classmethod
    def constant(cls, value: float):
        return cls(kind="constant", value=value)

    @classmethod
    def ones(cls):
        return cls(kind="ones")

    @classmethod
    def zeros(cls):
        return cls(kind="zeros")

    @classmethod
    def uniform(cls, low: float, high: float):
        return cls(kind="uniform", low=low, high=high)

    @classmethod
    def normal(cls, mean: float, std: float):
        return cls(kind="normal", mean=mean, std=std)

    @classmethod
    def kaiming_uniform(cls, gain: float = 1.0 / math.sqrt(3.0), fan_out_only: bool = False):
        return cls(kind="kaiming_uniform", gain=gain, fan_out_only=fan_out_only)

    @classmethod
    def kaiming_normal(cls, gain: float = 1.0, fan_out_only: bool = False):
        return cls(kind="kaiming_normal", gain=gain, fan_out_only=fan_out_only)

    @classmethod
    def xavier_uniform(cls, gain: float = 1.0):
        return cls(kind="xavier_uniform", gain=gain)

    @classmethod
    def xavier_normal(cls, gain: float = 1.0):
        return cls(kind="xavier_normal", gain=gain)

    @classmethod
    def from_string(cls, spec: str) -> "Initializer":
        """Parse 'kind' or 'kind:a,b' (CLI friendly).

        normal:0,0.02   uniform:-0.1,0.1   constant:0.5
        kaiming_uniform:1.0   kaiming_normal:1.0,fan_out   xavier_uniform:1.0
        """
        kind, _, rest = spec.strip().partition(":")
        args = [a.strip() for a in rest.split(",") if a.strip()]
        try:
            if kind in ("ones", "zeros"):
                return getattr(cls, kind)()
            if kind == "constant":
                return cls.constant(float(args[0]))
            if kind in ("uniform", "normal"):
                return getattr(cls, kind)(float(args[0]), float(args[1]))
            if kind in ("kaiming_uniform", "kaiming_normal"):
                kw = {}
                if args:
                    kw["gain"] = float(args[0])
                if len(args) > 1:
                    kw["fan_out_only"] = args[1] == "fan_out"
                return getattr(cls, kind)(**kw)
            if kind in ("xavier_uniform", "xavier_normal"):
                return getattr(cls, kind)(*(float(a) for a in args[:1]))
        except IndexError:
            raise ValueError(f"initializer {kind!r} is missing arguments: {spec!r}") from None
        raise ValueError(f"unknown initializer kind {kind!r} in {spec!r}")

    # ---- application ----
    def _fan(self, fan_in: int | None, fan_out: int | None) -> int:
        fan = fan_out if self.fan_out_only else fan_in
        if fan is None:
            side = "fan_out" if self.fan_out_only else "fan_in"
            raise ValueError(f"{self.kind} initialization requires {side}")
        return fan

    @torch.no_grad()
    def init_(self, t: torch.Tensor, fan_in: int | None = None, fan_out: int | None = None) -> torch.Tensor:
        """Fill `t` in place and return it."""
        k = self.kind
        if k == "constant":
            return nn.init.constant_(t, self.value)
        if k == "ones":
            return nn.init.ones_(t)
        if k == "zeros":
            return nn.init.zeros_(t)
        if k == "uniform":
            return nn.init.uniform_(t, self.low, self.high)
        if k == "normal":
            return nn.init.normal_(t, self.mean, self.std)
        if k == "kaiming_uniform":
            b = self.gain * math.sqrt(3.0 / self._fan(fan_in, fan_out))
            return nn.init.uniform_(t, -b, b)
        if k == "kaiming_normal":
            return nn.init.normal_(t, 0.0, self.gain / math.sqrt(self._fan(fan_in, fan_out)))
        if fan_in is None or fan_out is None:
            raise ValueError(f"{k} initialization requires both fan_in and fan_out")
        if k == "xavier_uniform":
            b = self.gain * math.sqrt(6.0 / (fan_in + fan_out))
            return nn.init.uniform_(t, -b, b)
        return nn.init.normal_(t, 0.0, self.gain * math.sqrt(2.0 / (fan_in + fan_out)))

    def init_linear(self, layer: nn.Linear) -> nn.Linear:
        # bias shares the weight's fans
        fan_out, fan_in = layer.weight.shape
        self.init_(layer.weight, fan_in, fan_out)
        if layer.bias is not None:
            self.init_(layer.bias, fan_in, fan_out)
        return layer


def linear(in_features: int, out_features: int, initializer: Initializer | None = None,
           device=None, bias: bool = True) -> nn.Linear:
    layer = nn.Linear(in_features, out_features, bias=bias, device=device)
    return (initializer or Initializer()).init_linear(layer)
