import torch
from torchlm.solvers import LevenbergMarquardtSolver, SolverOptions
from torchlm.core import LeastSquaresProblem
from torchlm.utils.misc import DEVICE, DEFAULT_DTYPE

# 1. Noisy samples of y = a * exp(-b * t)
true_params = torch.tensor([2.0, 0.5], dtype=DEFAULT_DTYPE, device=DEVICE)
t = torch.linspace(0.0, 4.0, 50, dtype=DEFAULT_DTYPE, device=DEVICE)
y = true_params[0] * torch.exp(-true_params[1] * t) + 0.01 * torch.randn_like(t)

# 2. Residuals are expected minus actual, one column per sample
def residuals(params: torch.Tensor) -> torch.Tensor:
    return (y - params[0] * torch.exp(-params[1] * t)).unsqueeze(0)

# 3. Jacobians of the negative residual (i.e. of the model), one (2, 1) matrix per sample
def jacobians(params: torch.Tensor):
    for t_i in t:
        e = torch.exp(-params[1] * t_i)
        yield torch.stack([e, -params[0] * t_i * e]).unsqueeze(-1)

problem = LeastSquaresProblem(apply_delta=lambda p, d: p + d, residuals=residuals, jacobians=jacobians)

# 4. Configure and run the solver
options = SolverOptions(verbose=False, threshold=1e-4)  # Set verbose=True to see steps
result = LevenbergMarquardtSolver(problem, options).run(torch.tensor([1.0, 0.1], dtype=DEFAULT_DTYPE, device=DEVICE))
print("Solution: ", result.model)
print(f"Stopped after {result.iterations} iterations ({result.termination.value}), cost {result.sum_of_squares:.3e}")

assert torch.allclose(result.model, true_params, atol=5e-2)
print("Levenberg-Marquardt example finished successfully.")
