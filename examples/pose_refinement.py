import torch
from torchlm import optimize, SolverOptions
from torchlm.lie_math import (
    se3_exp_map, se3_apply_delta, se3_normalize, transform_points, point_alignment_jacobian,
)
from torchlm.utils.misc import DEVICE, DEFAULT_DTYPE

# 1. A point cloud and its copy under an unknown rigid transform
points = torch.rand(100, 3, dtype=DEFAULT_DTYPE, device=DEVICE) * 2.0 - 1.0
target_params = torch.tensor([0.1, -0.2, 0.15, 0.05, -0.03, 0.08], dtype=DEFAULT_DTYPE, device=DEVICE)
target_pose = se3_exp_map(target_params)
observed = transform_points(target_pose, points)

# 2. One sample per point, three residual components each
def residuals(pose: torch.Tensor) -> torch.Tensor:
    return (observed - transform_points(pose, points)).T

def jacobians(pose: torch.Tensor):
    return iter(point_alignment_jacobian(transform_points(pose, points)))

# 3. Refine from the identity, keeping the rotation orthonormal along the way
init = torch.eye(4, dtype=DEFAULT_DTYPE, device=DEVICE)
final_pose = optimize(SolverOptions(threshold=1e-16), init, se3_apply_delta, residuals, jacobians,
                      normalize=se3_normalize)
print("Solution: ", final_pose)

assert torch.allclose(final_pose, target_pose, atol=1e-6)
print("Pose refinement example finished successfully.")
