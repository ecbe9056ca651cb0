import math
import pytest
import torch
from config import HeadConfig, MultiHeadAttentionConfig
from logger import NoopLogger, TBLogger, attention_stats, init_logger, log_attention, log_attention_module

def test_identity_attention_stats():
    w = torch.eye(4).expand(2, 4, 4)
    s = attention_stats(w, window=0)
    assert s["entropy"] == pytest.approx(0.0, abs=1e-6)
    assert s["diagonal_mass_w0"] == pytest.approx(1.0)

def test_uniform_attention_stats():
    w = torch.full((1, 4, 4), 0.25)
    s = attention_stats(w, window=0)
    assert s["entropy"] == pytest.approx(math.log(4), rel=1e-5)
    assert s["diagonal_mass_w0"] == pytest.approx(0.25)

class _Recorder(NoopLogger):
    def __init__(self):
        self.calls = []
    def log(self, step=None, **kv):
        self.calls.append((step, kv))

def test_log_attention_prefixes_keys():
    rec = _Recorder()
    log_attention(rec, "head0", torch.eye(3).unsqueeze(0), step=5)
    step, kv = rec.calls[0]
    assert step == 5
    assert set(kv) == {"attn/head0/entropy", "attn/head0/diagonal_mass_w2"}

def test_noop_logger():
    lg = init_logger('none')
    assert isinstance(lg, NoopLogger)
    lg.log(step=0, loss=1.0)
    lg.hist("x", torch.randn(3))
    lg.close()

def test_tensorboard_logger_writes_events(tmp_path):
    pytest.importorskip("tensorboard")
    lg = TBLogger(str(tmp_path), run_name="run")
    lg.log(step=0, scalar=1.0, small=torch.randn(10), one=torch.tensor(2.0))
    log_attention(lg, "head0", torch.softmax(torch.randn(1, 4, 4), -1), step=1)
    lg.close()
    assert any((tmp_path / "run").iterdir())

def _mha(H=2, C=8):
    head_cfg = HeadConfig(batch_size=1, block_size=4, n_embd=C, head_size=C // H)
    return MultiHeadAttentionConfig(head_count=H, n_head=H, head_size=C // H, n_embd=C).init(head_cfg).eval()

class _FullRecorder(_Recorder):
    def __init__(self):
        super().__init__()
        self.images, self.hists, self.flushed = [], [], 0
    def image(self, tag, img, step=None):
        self.images.append((tag, tuple(img.shape)))
    def hist(self, tag, values, step=None):
        self.hists.append(tag)
    def flush(self):
        self.flushed += 1

def test_log_attention_module_routes_maps_and_weights():
    rec = _FullRecorder()
    stats = log_attention_module(rec, _mha(), torch.randn(1, 4, 8), step=3)
    assert set(stats) == {"head0", "head1"}
    assert rec.images == [("attn/head0/map", (1, 4, 4)), ("attn/head1/map", (1, 4, 4))]
    assert "params/heads.0.key.weight" in rec.hists
    assert "params/heads.1.value.bias" in rec.hists
    assert len(rec.hists) == 2 * 6
    assert rec.flushed == 1
    assert len(rec.calls) == 2

def test_tensorboard_logger_writes_maps_and_histograms(tmp_path):
    pytest.importorskip("tensorboard")
    from tensorboard.backend.event_processing.event_accumulator import EventAccumulator
    lg = TBLogger(str(tmp_path), run_name="mha")
    log_attention_module(lg, _mha(), torch.randn(1, 4, 8), step=0)
    lg.close()
    acc = EventAccumulator(str(tmp_path / "mha"), size_guidance={"images": 0, "histograms": 0})
    acc.Reload()
    tags = acc.Tags()
    assert "attn/head0/map" in tags["images"]
    assert "params/heads.1.query.weight" in tags["histograms"]
    assert "attn/head1/entropy" in tags["scalars"]
