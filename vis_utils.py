import os
import numpy as np
import matplotlib.pyplot as plt

OUT_DIR = os.path.join(os.path.dirname(__file__), 'out')


def _save(filename: str, out_dir: str | None) -> str:
    out_dir = out_dir or OUT_DIR
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, filename)
    plt.savefig(path, bbox_inches='tight')
    plt.close()
    print(f"Saved: {path}")
    return path


def save_matrix_heatmap(mat: np.ndarray, title: str, filename: str, xlabel: str = '', ylabel: str = '',
                        out_dir: str | None = None) -> str:
    """Single matrix heatmap, e.g. the causal mask or one head's weights (T, T)."""
    plt.figure()
    plt.imshow(mat, aspect='auto')
    plt.title(title)
    plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.colorbar()
    return _save(filename, out_dir)


def save_attention_heads_grid(weights: np.ndarray, filename: str, title_prefix: str = "Head",
                              out_dir: str | None = None) -> str:
    """Plot all heads in a single grid figure (first batch element).
    weights: (B, H, T, T)
    """
    _, H, T, _ = weights.shape
    cols = min(4, H)
    rows = (H + cols - 1) // cols
    plt.figure(figsize=(3*cols, 3*rows))
    for h in range(H):
        ax = plt.subplot(rows, cols, h+1)
        ax.imshow(weights[0, h], aspect='auto', vmin=0.0, vmax=1.0)
        ax.set_title(f"{title_prefix} {h}")
        ax.set_xlabel('Key pos')
        ax.set_ylabel('Query pos')
    plt.tight_layout()
    return _save(filename, out_dir)
