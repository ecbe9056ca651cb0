# Repository layout
#
#   orchestrator.py               # runs demos/tests/visualizations
#   attn_mask.py                  # causal mask helper (True = masked future position)
#   init_schemes.py               # parameter-initialization strategies (kaiming/xavier/normal/...)
#   config.py                     # HeadConfig / MultiHeadAttentionConfig + argparse flags
#   single_head.py                # AttentionHead: scaled dot-product, causal mask, dropout
#   multi_head.py                 # MultiHeadAttention: independent heads -> concat -> proj -> dropout
#   logger.py                     # metrics backends (tensorboard / noop) + attention stats
#   attn_numpy_demo.py            # NumPy reference of causal attention on tiny numbers
#   vis_utils.py                  # plotting helpers (mask & attention maps)
#   demo_mha_shapes.py            # prints per-head shapes step-by-step
#   demo_visualize_multi_head.py  # saves attention heatmaps per head (grid)
#   out/                          # (created at runtime) images & logs live here
#   tests/
#     test_causal_mask.py         # mask shape and diagonal rule
#     test_attn_math.py           # torch head vs NumPy reference
#     test_single_head.py         # causality, row-stochastic weights, scaling, dropout, errors
#     test_multi_head.py          # shape, head independence, config errors, parallel heads
#     test_init_schemes.py        # initializer bounds and parsing
#     test_config.py              # config validation and CLI plumbing
#     test_logger.py              # attention stats + logger backends
#
# Run from the repository root (CPU ok):
#   python orchestrator.py --visualize


import subprocess, sys, pathlib, argparse, shlex

ROOT = pathlib.Path(__file__).resolve().parent
OUT = ROOT / "out"


def run(cmd: str):
    print(f"\n>>> {cmd}")
    res = subprocess.run(shlex.split(cmd), cwd=ROOT)
    if res.returncode != 0:
        sys.exit(res.returncode)


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--visualize", action="store_true", help="run visualization scripts and save PNGs to ./out")
    p.add_argument("--tensorboard", action="store_true", help="also log attention stats to runs/attention")
    args = p.parse_args()

    OUT.mkdir(exist_ok=True)

    # sanity check: NumPy tiny example
    run(f"{sys.executable} attn_numpy_demo.py")

    # unit tests
    run(f"{sys.executable} -m pytest -q tests")

    # per-head shape walkthrough
    run(f"{sys.executable} demo_mha_shapes.py")

    if args.visualize:
        log = "--log tensorboard" if args.tensorboard else ""
        run(f"{sys.executable} demo_visualize_multi_head.py {log}")
        print(f"\nVisualization images saved to: {OUT}")

    print("\nAll demos/tests completed. ✅")


if __name__ == "__main__":
    main()
