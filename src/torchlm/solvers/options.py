from dataclasses import dataclass


@dataclass(frozen=True)
class SolverOptions:
    """
    Configuration options for the Levenberg-Marquardt solver.

    Instances are immutable; use ``dataclasses.replace`` to derive a modified copy.
    Values are not checked on construction. Out-of-range settings degrade
    convergence but never make the solver crash or loop forever. Call
    :meth:`validate` to reject them explicitly.

    Args:
        max_iterations (int): Maximum number of times the guess may be updated.
        consecutive_divergence_limit (int): Number of consecutive iterations without an
            improvement after which the solver gives up. Once the solution is as good as
            it gets, lambda keeps growing towards gradient descent; this limit stops the
            solver from spending the remaining iterations doing so.
        initial_lambda (float): Starting damping value. High lambda behaves like gradient
            descent, low lambda like Gauss-Newton. Must not be exactly 0.0, since lambda
            is only ever changed by multiplication.
        lambda_converge (float): Multiplier (below 1.0) used to form the smaller of the two
            damping values tried on every iteration.
        lambda_diverge (float): Multiplier (above 1.0, ideally above 1/lambda_converge)
            applied to lambda when an iteration fails to improve the sum-of-squares.
        threshold (float): Average squared residual below which the solver stops early.
            0.0 keeps it running for all ``max_iterations``.
        verbose (bool): If True, print optimization progress.
    """
    max_iterations: int = 1000
    consecutive_divergence_limit: int = 5
    initial_lambda: float = 50.0
    lambda_converge: float = 0.8
    lambda_diverge: float = 2.0
    threshold: float = 0.0
    verbose: bool = False

    def validate(self) -> "SolverOptions":
        """
        Checks the documented constraints on every field.

        Returns:
            SolverOptions: ``self``, so the call can be chained.

        Raises:
            ValueError: If a field is outside its valid range.
        """
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if self.consecutive_divergence_limit < 0:
            raise ValueError(
                f"consecutive_divergence_limit must be >= 0, got {self.consecutive_divergence_limit}")
        if not self.initial_lambda > 0.0:
            raise ValueError(f"initial_lambda must be > 0, got {self.initial_lambda}")
        if not 0.0 < self.lambda_converge < 1.0:
            raise ValueError(f"lambda_converge must be in (0, 1), got {self.lambda_converge}")
        if not self.lambda_diverge > 1.0:
            raise ValueError(f"lambda_diverge must be > 1, got {self.lambda_diverge}")
        if not self.threshold >= 0.0:
            raise ValueError(f"threshold must be >= 0, got {self.threshold}")
        return self
