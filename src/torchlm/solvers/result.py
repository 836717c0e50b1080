import enum
from dataclasses import dataclass, field
from typing import Any, List


class Termination(enum.Enum):
    """Reason the solver stopped iterating."""
    CONVERGED = "converged"   # average squared residual dropped below the threshold
    DIVERGED = "diverged"     # consecutive divergence limit reached
    EXHAUSTED = "exhausted"   # max_iterations executed


@dataclass
class OptimizationResult:
    """
    Outcome of one Levenberg-Marquardt run.

    Attributes:
        model (Any): Best guess found. Equal to the initial guess if nothing improved it.
        sum_of_squares (float): Sum of squared residuals at ``model``.
        lambda_ (float): Damping value when the solver stopped.
        iterations (int): Number of iterations executed.
        termination (Termination): Why the loop ended.
        history (List[float]): Sum-of-squares after every iteration.
    """
    model: Any
    sum_of_squares: float
    lambda_: float
    iterations: int
    termination: Termination
    history: List[float] = field(default_factory=list)
