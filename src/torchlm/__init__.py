# Top-level __init__.py for torchlm package

# Core components
from .core.problem import LeastSquaresProblem

# Solvers
from .solvers.options import SolverOptions
from .solvers.result import OptimizationResult, Termination
from .solvers.lm import LevenbergMarquardtSolver, optimize

# Lie Math (pose refinement helpers)
from .lie_math.se3 import se3_exp_map, se3_apply_delta, se3_normalize

# Numeric environment: tensors built by torchlm helpers and tests use DEVICE and float64
from .utils.misc import DEVICE, DEFAULT_DTYPE

__all__ = [
    "LeastSquaresProblem",
    "SolverOptions", "OptimizationResult", "Termination",
    "LevenbergMarquardtSolver", "optimize",
    "se3_exp_map", "se3_apply_delta", "se3_normalize",
    "DEVICE", "DEFAULT_DTYPE"
]

__version__ = "0.1.0"
