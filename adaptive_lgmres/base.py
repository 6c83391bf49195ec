"""
Base class, result container and input checks for the LGMRES solvers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import time
import warnings

import numpy as np
import scipy.sparse


EPS = np.finfo(np.float64).eps


class InputError(ValueError):
    """Malformed operator, right-hand side, initial guess or cycle parameters."""


class ParameterClampWarning(UserWarning):
    """A numeric parameter was outside its usable range and has been clamped."""


@dataclass
class SolverResult:
    """Container for solver results and diagnostics."""
    solution: np.ndarray
    converged: bool
    iterations: int
    final_residual_norm: float
    residual_history: List[float]
    elapsed_time: float
    solver_name: str

    # Additional diagnostics
    initial_residual_norm: float = 0.0
    relative_residual: float = 0.0
    restart_history: List[int] = field(default_factory=list)
    method: str = ""

    def __post_init__(self):
        if self.initial_residual_norm > 0:
            self.relative_residual = self.final_residual_norm / self.initial_residual_norm

    @property
    def flag(self) -> int:
        """Convergence flag: 1 if converged, 0 otherwise."""
        return 1 if self.converged else 0


def clamp_tolerance(tol: float) -> float:
    """
    Clamp the relative tolerance into [eps, 1 - eps).

    A ParameterClampWarning is emitted whenever the value is changed.
    """
    tol = float(tol)
    if tol < EPS:
        warnings.warn("Tolerance is too small and it will be changed to eps.",
                      ParameterClampWarning, stacklevel=3)
        return EPS
    if tol >= 1.0:
        warnings.warn("Tolerance is too large and it will be changed to 1-eps.",
                      ParameterClampWarning, stacklevel=3)
        return 1.0 - EPS
    return tol


def as_operator(A):
    """Return A as a float64 dense array, or as a CSR matrix if it is sparse."""
    if scipy.sparse.issparse(A):
        return scipy.sparse.csr_matrix(A, dtype=np.float64)
    return np.asarray(A, dtype=np.float64)


def validate_system(A,
                    b: np.ndarray,
                    x0: Optional[np.ndarray] = None) -> Tuple[object, np.ndarray, np.ndarray]:
    """
    Check shapes of the linear system and return normalized copies.

    Parameters
    ----------
    A : array_like or sparse matrix
        Square system matrix (n x n)
    b : array_like
        Right-hand side, shape (n,) or (n, 1)
    x0 : array_like, optional
        Initial guess with the same shape rules as b. Zero vector if None.

    Returns
    -------
    tuple
        (A, b, x0) with b and x0 flattened to float64 vectors of length n

    Raises
    ------
    InputError
        If any operand is empty, A is not square, or the dimensions disagree.
    """
    A = as_operator(A)
    if A.ndim != 2 or A.shape[0] == 0 or A.shape[1] == 0:
        raise InputError("Matrix A cannot be empty.")
    if A.shape[0] != A.shape[1]:
        raise InputError("Matrix A must be square.")
    n = A.shape[0]

    b = _as_column(b, "Vector b")
    if b.size == 0:
        raise InputError("Vector b cannot be empty.")
    if b.size != n:
        raise InputError("Dimension mismatch between matrix A and vector b.")

    if x0 is None:
        x0 = np.zeros(n, dtype=np.float64)
    else:
        x0 = _as_column(x0, "Initial guess x0")
        if x0.size != n:
            raise InputError("Dimension mismatch between matrix A and initial guess x0.")

    return A, b, x0


def _as_column(v, name: str) -> np.ndarray:
    v = np.asarray(v, dtype=np.float64)
    if v.ndim == 2 and v.shape[1] == 1:
        v = v[:, 0]
    if v.ndim != 1:
        raise InputError(f"{name} must be a column vector.")
    return v.copy()


class IterativeSolver(ABC):
    """
    Abstract base class for restarted Krylov solvers.

    Solves: A @ x = b

    Subclasses implement one solve and report per-cycle relative residuals;
    timing and final residual bookkeeping happen here.
    """

    def __init__(self,
                 tolerance: float = 1e-6,
                 max_cycles: Optional[int] = None,
                 verbose: bool = False):
        """
        Initialize solver with convergence parameters.

        Parameters
        ----------
        tolerance : float
            Stopping criterion for the relative residual ||b - Ax|| / ||b - Ax0||
        max_cycles : int, optional
            Maximum number of restart cycles. Defaults to min(n, 10).
        verbose : bool
            Print cycle progress
        """
        self.tolerance = tolerance
        self.max_cycles = max_cycles
        self.verbose = verbose
        self.name = "IterativeSolver"

    @abstractmethod
    def _solve_impl(self,
                    A,
                    b: np.ndarray,
                    x0: np.ndarray,
                    tol: float,
                    maxit: int) -> dict:
        """
        Internal solve implementation.

        Returns
        -------
        dict
            Keys: solution, converged, cycles, residual_history,
            restart_history, method
        """
        pass

    def solve(self,
              A,
              b: np.ndarray,
              x0: Optional[np.ndarray] = None) -> SolverResult:
        """
        Solve the linear system A @ x = b.

        Parameters
        ----------
        A : np.ndarray or sparse matrix
            Square system matrix (n x n)
        b : np.ndarray
            Right-hand side vector (n,)
        x0 : np.ndarray, optional
            Initial guess. If None, uses zero vector.

        Returns
        -------
        SolverResult
            Solution and convergence diagnostics
        """
        A, b, x0 = validate_system(A, b, x0)
        n = b.size

        maxit = self.max_cycles if self.max_cycles is not None else min(n, 10)
        if maxit < 1:
            raise InputError("maxit must be a positive integer.")
        tol = clamp_tolerance(self.tolerance)

        initial_residual_norm = np.linalg.norm(b - A @ x0)

        # Time the solve
        start_time = time.perf_counter()
        outcome = self._solve_impl(A, b, x0, tol, maxit)
        elapsed_time = time.perf_counter() - start_time

        x = outcome['solution']
        final_residual_norm = np.linalg.norm(b - A @ x)

        return SolverResult(
            solution=x,
            converged=outcome['converged'],
            iterations=outcome['cycles'],
            final_residual_norm=final_residual_norm,
            residual_history=outcome['residual_history'],
            elapsed_time=elapsed_time,
            solver_name=self.name,
            initial_residual_norm=initial_residual_norm,
            restart_history=outcome.get('restart_history', []),
            method=outcome.get('method', self.name),
        )

    def _log(self, cycle: int, restart: int, relative_residual: float,
             projected_residual: Optional[float] = None):
        """Log cycle progress."""
        if self.verbose:
            line = (f"  {self.name} cycle {cycle:4d}: m = {restart:3d}, "
                    f"||r||/||r0|| = {relative_residual:.6e}")
            if projected_residual is not None:
                line += f" (projected {projected_residual:.6e})"
            print(line)
