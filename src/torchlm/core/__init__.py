from .problem import LeastSquaresProblem

__all__ = [
    "LeastSquaresProblem"
]
