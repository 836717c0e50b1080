from .options import SolverOptions
from .result import OptimizationResult, Termination
from .lm import LevenbergMarquardtSolver, optimize

__all__ = [
    "SolverOptions",
    "OptimizationResult",
    "Termination",
    "LevenbergMarquardtSolver",
    "optimize"
]
