import math
import pytest
import torch
from init_schemes import Initializer, linear

def test_default_is_kaiming_uniform_fan_in():
    torch.manual_seed(0)
    lin = linear(16, 8)
    bound = 1.0 / math.sqrt(16)
    assert lin.weight.abs().max() <= bound
    assert lin.bias.abs().max() <= bound
    assert lin.weight.abs().max() > 0.5 * bound

def test_kaiming_fan_out_only():
    torch.manual_seed(0)
    init = Initializer.kaiming_uniform(gain=1.0, fan_out_only=True)
    lin = linear(100, 4, init)
    assert lin.weight.abs().max() <= math.sqrt(3.0 / 4)

def test_xavier_uniform_bound():
    torch.manual_seed(0)
    lin = linear(30, 10, Initializer.xavier_uniform())
    assert lin.weight.abs().max() <= math.sqrt(6.0 / 40)

def test_normal_std():
    torch.manual_seed(0)
    lin = linear(512, 512, Initializer.normal(0.0, 0.02))
    assert abs(lin.weight.std().item() - 0.02) < 0.002
    assert abs(lin.weight.mean().item()) < 0.002

def test_constant_like_kinds():
    assert torch.all(linear(3, 2, Initializer.ones()).weight == 1.0)
    assert torch.all(linear(3, 2, Initializer.zeros()).bias == 0.0)
    assert torch.all(linear(3, 2, Initializer.constant(0.25)).weight == 0.25)

def test_uniform_range():
    torch.manual_seed(0)
    w = linear(20, 20, Initializer.uniform(-0.1, 0.3)).weight
    assert w.min() >= -0.1 and w.max() < 0.3

def test_linear_on_device_without_bias():
    lin = linear(4, 3, device=torch.device('cpu'), bias=False)
    assert lin.bias is None
    assert lin.weight.device.type == 'cpu'

@pytest.mark.parametrize("spec,expected", [
    ("kaiming_uniform", Initializer.kaiming_uniform()),
    ("kaiming_normal:2.0,fan_out", Initializer.kaiming_normal(2.0, True)),
    ("normal:0,0.02", Initializer.normal(0.0, 0.02)),
    ("uniform:-1,1", Initializer.uniform(-1.0, 1.0)),
    ("constant:0.5", Initializer.constant(0.5)),
    ("xavier_normal", Initializer.xavier_normal()),
    ("zeros", Initializer.zeros()),
])
def test_from_string(spec, expected):
    assert Initializer.from_string(spec) == expected

def test_bad_initializers_raise():
    with pytest.raises(ValueError):
        Initializer.from_string("orthogonal")
    with pytest.raises(ValueError):
        Initializer.from_string("normal:0")
    with pytest.raises(ValueError):
        Initializer(kind="bogus")
    with pytest.raises(ValueError):
        Initializer.uniform(1.0, 1.0)

def test_kaiming_needs_fan():
    with pytest.raises(ValueError):
        Initializer.kaiming_uniform().init_(torch.empty(3))
    with pytest.raises(ValueError):
        Initializer.xavier_uniform().init_(torch.empty(3), fan_in=3)

@pytest.mark.parametrize("init,fn", [
    (Initializer.constant(0.5), "constant_"),
    (Initializer.ones(), "ones_"),
    (Initializer.zeros(), "zeros_"),
    (Initializer.uniform(-0.1, 0.1), "uniform_"),
    (Initializer.normal(0.0, 0.02), "normal_"),
    (Initializer.kaiming_uniform(), "uniform_"),
    (Initializer.xavier_normal(), "normal_"),
])
def test_kinds_fill_through_nn_init(monkeypatch, init, fn):
    layer = torch.nn.Linear(6, 3)
    calls = []
    real = getattr(torch.nn.init, fn)
    def spy(t, *a, **kw):
        calls.append(tuple(t.shape))
        return real(t, *a, **kw)
    monkeypatch.setattr(torch.nn.init, fn, spy)
    init.init_linear(layer)
    # weight then bias
    assert calls == [(3, 6), (3,)]
