"""Visualize multi-head causal attention weights per head (grid) and optionally
log per-head entropy / diagonal mass, attention maps and weight histograms to TensorBoard."""
import argparse
import torch
from config import add_attention_args, configs_from_args
from logger import init_logger, log_attention_module
from vis_utils import save_attention_heads_grid, save_matrix_heatmap


def main():
    p = add_attention_args(argparse.ArgumentParser())
    p.add_argument('--seq_len', type=int, default=None, help="defaults to block_size")
    p.add_argument('--seed', type=int, default=0)
    p.add_argument('--log', choices=['none', 'tensorboard'], default='none')
    p.add_argument('--log_dir', type=str, default='runs/attention')
    args = p.parse_args()

    torch.manual_seed(args.seed)
    head_cfg, mha_cfg = configs_from_args(args)
    mha = mha_cfg.init(head_cfg)
    mha.eval()

    T = args.seq_len or head_cfg.block_size
    x = torch.randn(head_cfg.batch_size, T, head_cfg.n_embd)
    w = mha.attention_maps(x)  # (B, H, T, T)
    print(f"attention maps {tuple(w.shape)}  output {tuple(mha(x).shape)}")

    save_matrix_heatmap(mha.heads[0].mask[:T, :T].cpu().numpy(), "Causal mask (True = masked)",
                        "causal_mask.png", xlabel="Key pos", ylabel="Query pos")
    save_attention_heads_grid(w.cpu().numpy(), filename="multi_head_attn_grid.png")

    logger = init_logger('tensorboard' if args.log == 'tensorboard' else 'none', args.log_dir)
    for name, stats in log_attention_module(logger, mha, x, step=0).items():
        print(f"{name}: " + "  ".join(f"{k}={v:.4f}" for k, v in stats.items()))
    logger.close()


if __name__ == "__main__":
    main()
