"""Walkthrough of multi-head causal attention with explicit shapes, head by head.
Generates a text log at ./out/mha_shapes.txt.
"""
import os
import torch
from config import HeadConfig, MultiHeadAttentionConfig

OUT_TXT = os.path.join(os.path.dirname(__file__), 'out', 'mha_shapes.txt')


def log(s):
    print(s)
    with open(OUT_TXT, 'a') as f:
        f.write(s + "\n")


if __name__ == "__main__":
    os.makedirs(os.path.dirname(OUT_TXT), exist_ok=True)
    open(OUT_TXT, 'w').close()

    torch.manual_seed(0)
    B, T, n_embd, n_head = 1, 5, 12, 3
    head_size = n_embd // n_head
    head_cfg = HeadConfig(batch_size=B, block_size=8, n_embd=n_embd, head_size=head_size)
    mha = MultiHeadAttentionConfig(head_count=n_head, n_head=n_head, head_size=head_size, n_embd=n_embd).init(head_cfg)
    mha.eval()
    x = torch.randn(B, T, n_embd)

    log(f"Input x:           {tuple(x.shape)} = (B,T,n_embd)")
    log(f"causal mask:       {tuple(mha.heads[0].mask[:T, :T].shape)} (block_size={head_cfg.block_size}, sliced to T)")
    outs = []
    with torch.no_grad():
        for i, head in enumerate(mha.heads):
            q, k, v = head.query(x), head.key(x), head.value(x)
            log(f"head {i} q,k,v:     q={tuple(q.shape)} k={tuple(k.shape)} v={tuple(v.shape)} = (B,T,head_size)")
            w = head.attention_weights(x)
            log(f"head {i} weights:   {tuple(w.shape)} = (B,T,T)  scale=1/sqrt({head_size})={head.scale:.4f}")
            out = head(x)
            log(f"head {i} out:       {tuple(out.shape)} = (B,T,head_size)")
            outs.append(out)
        cat = torch.cat(outs, dim=-1)
        log(f"concat heads:      {tuple(cat.shape)} = (B,T,head_size*heads)")
        y = mha.proj(cat)
        log(f"final proj:        {tuple(y.shape)} = (B,T,n_embd)")
        assert torch.allclose(y, mha(x), atol=1e-6)

    log("\nLegend:")
    log("  B=batch, T=sequence length, n_embd=embedding size, heads=head_count, head_size=n_embd/heads")
    log("  each head owns separate query/key/value Linears; outputs are joined in head order")
