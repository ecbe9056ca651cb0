import torch

def causal_mask(T: int, batch_size: int | None = None, device=None):
    """Returns a bool mask where True means *masked* (key j lies after query i).
    Built from a lower-triangular matrix of ones, then inverted.
    Shape: (T, T), or (batch_size, T, T) when batch_size is given.
    """
    tril = torch.tril(torch.ones((T, T), dtype=torch.int64, device=device))
    m = tril == 0
    if batch_size is not None:
        m = m.unsqueeze(0).expand(batch_size, T, T).contiguous()
    return m
