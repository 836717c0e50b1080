import torch
import math
from typing import Callable, Generic, Iterable, Optional, Tuple

from .options import SolverOptions
from .result import OptimizationResult, Termination
from ..core.problem import LeastSquaresProblem, M

# (lambda, guess, residuals, sum_of_squares) produced by one damped trial step
_Trial = Tuple[float, M, torch.Tensor, float]


class LevenbergMarquardtSolver(Generic[M]):
    """
    Solves a least-squares problem using the Levenberg-Marquardt algorithm.

    Every iteration tries two damping values, ``lambda * lambda_converge`` and
    ``lambda`` itself, and keeps whichever lowers the sum-of-squares more. If
    neither improves on the current guess, lambda is multiplied by
    ``lambda_diverge`` so the next steps lean further towards gradient descent.

    Args:
        problem (LeastSquaresProblem): The problem definition.
        options (Optional[SolverOptions], optional): Solver configuration. Defaults to SolverOptions().
        validate_options (bool, optional): If True, reject out-of-range options with a
            ValueError before any iteration runs. Defaults to False.
    """
    def __init__(self, problem: LeastSquaresProblem[M], options: Optional[SolverOptions] = None,
                 validate_options: bool = False):
        self.problem = problem
        self.options = options if options else SolverOptions()
        if validate_options:
            self.options.validate()

    def _trial(self, guess: M, hessian: torch.Tensor, gradient: torch.Tensor, lam: float) -> Optional[_Trial]:
        """
        Takes one damped Gauss-Newton step from ``guess``.

        Returns:
            Optional[_Trial]: The candidate, or None if (JJ^T + lambda * diag(JJ^T))
            is singular or the new sum-of-squares is not finite.
        """
        hessian_damped = hessian.clone()
        hessian_damped.diagonal().mul_(lam + 1.0)
        try:
            delta = torch.linalg.inv(hessian_damped) @ gradient
        except torch.linalg.LinAlgError:
            return None

        new_guess = self.problem.retract(guess, delta)
        new_res, new_sum = self.problem.evaluate(new_guess)
        if not math.isfinite(new_sum):
            return None
        return lam, new_guess, new_res, new_sum

    def run(self, init: M) -> OptimizationResult:
        """
        Executes the Levenberg-Marquardt optimization algorithm.

        Args:
            init (M): Initial guess. Should be close to the solution; a sample consensus
                method is a good way to get one.

        Returns:
            OptimizationResult: The best guess found and how the run ended.
        """
        opts = self.options
        lam = opts.initial_lambda
        guess = init
        res, sum_of_squares = self.problem.evaluate(guess)
        total = res.numel()
        consecutive_divergences = 0
        termination = Termination.EXHAUSTED
        history = []

        if opts.verbose:
            print("Starting Levenberg-Marquardt Optimization")
            header = f"{'Iter':>4} | {'Cost':>12} | {'Lambda':>10} | {'Step':>8} | {'Div':>3}"
            print(header)
            print("-" * len(header))

        for i in range(opts.max_iterations):
            smaller_lambda = lam * opts.lambda_converge

            system = self.problem.build_system(guess, res)
            candidate = None
            if system is not None:
                hessian, gradient = system
                smaller = self._trial(guess, hessian, gradient, smaller_lambda)
                current = self._trial(guess, hessian, gradient, lam)
                if smaller is not None and current is not None:
                    candidate = smaller if smaller[3] < current[3] else current
                else:
                    candidate = smaller if smaller is not None else current

            if candidate is None:
                # Both inversions failed (or produced NaN/inf); a larger lambda may fix that.
                if opts.verbose:
                    print(f"Warning: No valid step at iter {i} with lambda={lam:.2e}. Increasing lambda.")
                lam *= opts.lambda_diverge
                consecutive_divergences += 1
                step = "failed"
            elif candidate[3] > sum_of_squares:
                lam *= opts.lambda_diverge
                consecutive_divergences += 1
                step = "rejected"
            else:
                lam, guess, res, sum_of_squares = candidate
                consecutive_divergences = 0
                step = "accepted"
            history.append(sum_of_squares)

            if opts.verbose:
                print(f"{i:4} | {sum_of_squares:12.6e} | {lam:10.3e} | {step:>8} | {consecutive_divergences:3}")

            if consecutive_divergences >= opts.consecutive_divergence_limit:
                termination = Termination.DIVERGED
                break

            if sum_of_squares < opts.threshold * total:
                termination = Termination.CONVERGED
                break

        if opts.verbose:
            if termination is Termination.CONVERGED:
                print("Converged: Average squared residual below threshold.")
            elif termination is Termination.DIVERGED:
                print("Stopped: Consecutive divergence limit reached.")
            else:
                print("Reached max iterations.")

        return OptimizationResult(model=guess, sum_of_squares=sum_of_squares, lambda_=lam,
                                  iterations=len(history), termination=termination, history=history)

    def solve(self, init: M) -> M:
        """
        Runs the solver and returns only the refined guess.

        Returns:
            M: The best guess found.
        """
        return self.run(init).model


def optimize(config: SolverOptions,
             init: M,
             apply_delta: Callable[[M, torch.Tensor], M],
             residuals: Callable[[M], torch.Tensor],
             jacobians: Callable[[M], Iterable[torch.Tensor]],
             normalize: Optional[Callable[[M], M]] = None) -> M:
    """
    Refines ``init`` with Levenberg-Marquardt and returns the best guess found.

    All stopping conditions return a model; recompute the residuals of the
    result if you need to know how good it is. See :class:`LeastSquaresProblem`
    for the contracts of the callables.
    """
    problem = LeastSquaresProblem(apply_delta, residuals, jacobians, normalize)
    return LevenbergMarquardtSolver(problem, config).solve(init)
