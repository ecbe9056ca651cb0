"""Causal self-attention on a tiny example (NumPy only).
We use T=3 tokens, n_embd=4, head_size=2, single head, with bias-free projections.
Run directly to print intermediate tensors; the tests import `numpy_causal_attention`
as a reference for the torch head.

Dimensions summary (single head)
--------------------------------
X:          (B=1, T=3, n_embd=4)
Wq/Wk/Wv:   (n_embd=4, head_size=2)
Q,K,V:      (1, 3, 2)
Scores:     (1, 3, 3)   = Q @ K^T / sqrt(head_size), future -> -1e4
Weights:    (1, 3, 3)   = softmax over last dim
Output:     (1, 3, 2)   = Weights @ V
"""
import numpy as np

X = np.array([[[0.1, 0.2, 0.3, 0.4],
               [0.5, 0.4, 0.3, 0.2],
               [0.0, 0.1, 0.0, 0.1]]], dtype=np.float32)

# Fixed weights for determinism (learned in real models).
Wq = np.array([[ 0.2, -0.1],
               [ 0.0,  0.1],
               [ 0.1,  0.2],
               [-0.1,  0.0]], dtype=np.float32)
Wk = np.array([[ 0.1,  0.1],
               [ 0.0, -0.1],
               [ 0.2,  0.0],
               [ 0.0,  0.2]], dtype=np.float32)
Wv = np.array([[ 0.1,  0.0],
               [-0.1,  0.1],
               [ 0.2, -0.1],
               [ 0.0,  0.2]], dtype=np.float32)


def numpy_causal_attention(X, Wq, Wk, Wv, mask_value: float = -1.0e4):
    """Returns (weights, out) for x @ W projections (no bias)."""
    Q, K, V = X @ Wq, X @ Wk, X @ Wv
    T = X.shape[1]
    scores = (Q @ K.transpose(0, 2, 1)) / np.sqrt(Q.shape[-1])
    mask = np.triu(np.ones((T, T), dtype=bool), k=1)
    scores = np.where(mask, mask_value, scores)
    weights = np.exp(scores - scores.max(axis=-1, keepdims=True))
    weights = weights / weights.sum(axis=-1, keepdims=True)
    return weights, weights @ V


if __name__ == "__main__":
    np.set_printoptions(precision=4, suppress=True)
    print("Q=\n", (X @ Wq)[0])
    print("K=\n", (X @ Wk)[0])
    print("V=\n", (X @ Wv)[0])
    weights, out = numpy_causal_attention(X, Wq, Wk, Wv)
    print("Weights shape:", weights.shape, "\nAttention Weights (causal)=\n", weights[0])
    print("Row sums:", weights[0].sum(axis=-1))
    print("Output shape:", out.shape, "\nOutput=\n", out[0])
