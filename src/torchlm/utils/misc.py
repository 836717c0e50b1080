import torch

# --- Numeric environment ---
DEVICE = torch.device("cuda" if torch.cuda.is_available() else "cpu")
"""Device (CPU or CUDA GPU) used for tensors created by torchlm helpers."""

DEFAULT_DTYPE = torch.float64
"""Floating point precision for residuals, Jacobians and the normal equations."""

torch.set_default_dtype(DEFAULT_DTYPE)
