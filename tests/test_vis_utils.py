import os
import numpy as np
from vis_utils import save_attention_heads_grid, save_matrix_heatmap

def test_save_attention_grid(tmp_path):
    w = np.random.rand(1, 3, 5, 5)
    path = save_attention_heads_grid(w, "grid.png", out_dir=str(tmp_path))
    assert os.path.exists(path)

def test_save_matrix_heatmap(tmp_path):
    path = save_matrix_heatmap(np.triu(np.ones((4, 4)), 1), "mask", "mask.png", out_dir=str(tmp_path))
    assert os.path.exists(path)
