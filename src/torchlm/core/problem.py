import torch
from typing import Callable, Generic, Iterable, Optional, Tuple, TypeVar

M = TypeVar("M")


class LeastSquaresProblem(Generic[M]):
    """
    Defines a least-squares optimization problem over a model of any type.

    The problem is described entirely by user-supplied functions; the solver
    never looks inside the model itself.

    Note that the Jacobians are laid out with one column per residual component,
    i.e. a sample's Jacobian has shape (P, J) where P is the number of parameters
    and J the number of residual components per sample. If you computed it the usual
    row-per-residual way, pass its transpose.

    Args:
        apply_delta (Callable[[M, torch.Tensor], M]): Returns a new model from the old one
            and a parameter update of shape (P,). Must not modify its input.
        residuals (Callable[[M], torch.Tensor]): Returns expected minus actual values as a
            (J, S) matrix, one column per sample. A 1-D result is treated as one sample.
        jacobians (Callable[[M], Iterable[torch.Tensor]]): Yields, per sample and in column
            order, the (P, J) Jacobian of the negative residual with respect to the parameters.
        normalize (Optional[Callable[[M], M]], optional): Applied to every new guess, e.g. to
            wrap angles or keep a rotation orthonormal. Defaults to None.
    """
    def __init__(self,
                 apply_delta: Callable[[M, torch.Tensor], M],
                 residuals: Callable[[M], torch.Tensor],
                 jacobians: Callable[[M], Iterable[torch.Tensor]],
                 normalize: Optional[Callable[[M], M]] = None):
        self.apply_delta = apply_delta
        self.residuals = residuals
        self.jacobians = jacobians
        self.normalize = normalize

    def evaluate(self, model: M) -> Tuple[torch.Tensor, float]:
        """
        Computes the residual matrix of a model and its sum of squares.

        Returns:
            Tuple[torch.Tensor, float]:
                - residuals (torch.Tensor): Shape (J, S).
                - sum_of_squares (float): Squared Frobenius norm of the residuals.
        """
        res = self.residuals(model)
        if res.ndim == 1:
            res = res.unsqueeze(-1)
        return res, torch.sum(res ** 2).item()

    def build_system(self, model: M, res: torch.Tensor) -> Optional[Tuple[torch.Tensor, torch.Tensor]]:
        """
        Accumulates the Gauss-Newton normal equations sample by sample.

        Jacobians are pulled lazily from ``self.jacobians(model)`` and zipped with the
        columns of ``res``, so at most one of them is held at a time.

        Args:
            model (M): The linearization point.
            res (torch.Tensor): Residual matrix of ``model``, shape (J, S).

        Returns:
            Optional[Tuple[torch.Tensor, torch.Tensor]]:
                - hessian (torch.Tensor): Sum of J @ J^T. Shape (P, P).
                - gradient (torch.Tensor): Sum of J @ r. Shape (P,).
            None if no Jacobian was produced.
        """
        hessian = None
        gradient = None
        for jacobian, r in zip(self.jacobians(model), res.unbind(dim=1)):
            jacobian = jacobian.to(dtype=res.dtype, device=res.device)
            if jacobian.ndim == 1:  # single residual component per sample
                jacobian = jacobian.unsqueeze(-1)
            if hessian is None:
                hessian = jacobian @ jacobian.T
                gradient = jacobian @ r
            else:
                hessian = hessian + jacobian @ jacobian.T
                gradient = gradient + jacobian @ r
        if hessian is None:
            return None
        return hessian, gradient

    def retract(self, model: M, delta: torch.Tensor) -> M:
        """Applies a parameter update, then the optional normalization."""
        new_model = self.apply_delta(model, delta)
        if self.normalize is not None:
            new_model = self.normalize(new_model)
        return new_model
