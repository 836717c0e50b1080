from .se3 import (
    skew_symmetric, se3_exp_map, se3_apply_delta, se3_normalize,
    transform_points, point_alignment_jacobian,
)

__all__ = [
    "skew_symmetric",
    "se3_exp_map",
    "se3_apply_delta",
    "se3_normalize",
    "transform_points",
    "point_alignment_jacobian"
]
