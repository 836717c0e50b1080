import torch

# Below this rotation angle the Rodrigues coefficients use their Taylor expansions.
_SMALL_ANGLE = 1e-8


def skew_symmetric(v: torch.Tensor) -> torch.Tensor:
    """
    Convert a 3-vector or batch of 3-vectors to skew-symmetric matrices.
    Args:
        v (torch.Tensor): Input tensor of shape (..., 3).
    Returns:
        torch.Tensor: Skew-symmetric matrices of shape (..., 3, 3).
    """
    x, y, z = v.unbind(dim=-1)
    zero = torch.zeros_like(x)
    return torch.stack([
        zero, -z, y,
        z, zero, -x,
        -y, x, zero,
    ], dim=-1).reshape(*v.shape[:-1], 3, 3)


def se3_exp_map(delta: torch.Tensor) -> torch.Tensor:
    """
    SE(3) exponential map.
    Args:
        delta (torch.Tensor): Tangent vector(s) of shape (..., 6) ordered as
            (translation_x, y, z, rotation_x, y, z).
    Returns:
        torch.Tensor: Homogeneous transformation(s) of shape (..., 4, 4).
    """
    trans = delta[..., :3]
    omega = delta[..., 3:]

    theta = torch.linalg.norm(omega, dim=-1)[..., None, None]  # (...,1,1)
    small = theta < _SMALL_ANGLE
    safe = torch.where(small, torch.ones_like(theta), theta)
    theta_sq = theta ** 2

    a = torch.where(small, 1.0 - theta_sq / 6.0, torch.sin(safe) / safe)
    b = torch.where(small, 0.5 - theta_sq / 24.0, (1.0 - torch.cos(safe)) / safe ** 2)
    c = torch.where(small, 1.0 / 6.0 - theta_sq / 120.0, (safe - torch.sin(safe)) / safe ** 3)

    W = skew_symmetric(omega)
    W_sq = W @ W
    eye = torch.eye(3, device=delta.device, dtype=delta.dtype)
    R = eye + a * W + b * W_sq
    V = eye + b * W + c * W_sq

    T = torch.zeros(*delta.shape[:-1], 4, 4, device=delta.device, dtype=delta.dtype)
    T[..., :3, :3] = R
    T[..., :3, 3] = (V @ trans.unsqueeze(-1)).squeeze(-1)
    T[..., 3, 3] = 1.0
    return T


def se3_apply_delta(pose: torch.Tensor, delta: torch.Tensor) -> torch.Tensor:
    """
    Left-multiplicative pose update, ``exp(delta) @ pose``.

    Suitable as the ``apply_delta`` of a pose refinement problem; the input pose is not modified.
    """
    return se3_exp_map(delta.to(dtype=pose.dtype, device=pose.device)) @ pose


def se3_normalize(pose: torch.Tensor) -> torch.Tensor:
    """
    Project the rotation block of a (..., 4, 4) pose back onto SO(3).

    Repeated updates let round-off accumulate in the rotation; the closest
    rotation in the Frobenius sense is U @ diag(1, 1, det) @ Vh from its SVD.
    """
    U, _, Vh = torch.linalg.svd(pose[..., :3, :3])
    det = torch.linalg.det(U @ Vh)
    D = torch.ones(*det.shape, 3, device=pose.device, dtype=pose.dtype)
    D[..., 2] = torch.sign(det)
    out = pose.clone()
    out[..., :3, :3] = U @ torch.diag_embed(D) @ Vh
    return out


def transform_points(pose: torch.Tensor, points: torch.Tensor) -> torch.Tensor:
    """
    Apply a (4, 4) pose to (N, 3) points.
    Returns:
        torch.Tensor: Transformed points of shape (N, 3).
    """
    return points @ pose[:3, :3].T + pose[:3, 3]


def point_alignment_jacobian(points: torch.Tensor) -> torch.Tensor:
    """
    Jacobians of already transformed points with respect to a left SE(3) perturbation.

    For q = T p and T' = exp(delta) T, dq'/ddelta at 0 is [I | -[q]x]. It is returned
    transposed, one (6, 3) matrix per point, which is the layout the solver expects
    for the Jacobian of the negative residual ``q - target``.

    Args:
        points (torch.Tensor): Transformed points q of shape (N, 3).
    Returns:
        torch.Tensor: Shape (N, 6, 3).
    """
    eye = torch.eye(3, device=points.device, dtype=points.dtype).expand(points.shape[0], 3, 3)
    # (-[q]x)^T == [q]x
    return torch.cat([eye, skew_symmetric(points)], dim=-2)
