"""
Projected Least-Squares Solve
=============================

Solves the small problem that closes every GMRES cycle:

    min_y || β e_1 - H y ||

where H is the (s+1) x s upper Hessenberg matrix produced by the Arnoldi
process. Each subdiagonal entry is removed with a Givens rotation

    [ c  s ] [ H(j, j)   ]   [ ρ ]          c = H(j, j) / ρ
    [-s  c ] [ H(j+1, j) ] = [ 0 ],         s = H(j+1, j) / ρ

applied to the two affected rows of H and g only. The leading s x s block is
then upper triangular and y follows by back-substitution. After the
rotations |g(s)| equals the residual norm of the minimizer.

Reference: Saad, "Iterative Methods for Sparse Linear Systems", 2nd ed.,
Section 6.5.3.
"""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from scipy.linalg import lstsq, solve_triangular


EPS_DIAG = np.finfo(np.float64).eps


@dataclass
class LeastSquaresResult:
    """Minimizer of the projected problem and its residual norm."""
    y: np.ndarray
    residual_norm: float


def givens_rotation(a: float, b: float) -> Tuple[float, float]:
    """
    Rotation (c, s) mapping (a, b) onto (hypot(a, b), 0).

    A zero pair gives the identity rotation.
    """
    rho = np.hypot(a, b)
    if rho == 0.0:
        return 1.0, 0.0
    return a / rho, b / rho


def apply_rotation(M: np.ndarray, j: int, c: float, s: float) -> None:
    """Rotate rows j and j+1 of M in place."""
    upper = c * M[j] + s * M[j + 1]
    lower = -s * M[j] + c * M[j + 1]
    M[j] = upper
    M[j + 1] = lower


def triangularize(H: np.ndarray, beta: float) -> Tuple[np.ndarray, np.ndarray, List[Tuple[float, float]]]:
    """
    Reduce H to upper triangular form with Givens rotations.

    Parameters
    ----------
    H : np.ndarray
        Upper Hessenberg matrix, shape (s+1, s). Not modified.
    beta : float
        Norm of the cycle's starting residual

    Returns
    -------
    tuple
        (R, g, rotations) where R is the rotated (s+1, s) matrix, g the
        rotated right-hand side β e_1 and rotations the (c, s) pairs.
    """
    s = H.shape[1]
    R = np.array(H, dtype=np.float64, copy=True)
    g = np.zeros(s + 1, dtype=np.float64)
    g[0] = beta

    rotations = []
    for j in range(s):
        c, sn = givens_rotation(R[j, j], R[j + 1, j])
        apply_rotation(R, j, c, sn)
        apply_rotation(g, j, c, sn)
        R[j + 1, j] = 0.0
        rotations.append((c, sn))

    return R, g, rotations


def solve_projected(H: np.ndarray, beta: float) -> LeastSquaresResult:
    """
    Minimize ||β e_1 - H y|| over y.

    Parameters
    ----------
    H : np.ndarray
        Upper Hessenberg matrix, shape (s+1, s)
    beta : float
        Norm of the cycle's starting residual

    Returns
    -------
    LeastSquaresResult
        Minimizer y (length s) and the residual norm |g(s)|
    """
    s = H.shape[1]
    R, g, _ = triangularize(H, beta)

    upper = R[:s, :s]
    rhs = g[:s]
    diag = np.abs(np.diag(upper))
    if s > 0 and diag.min() > EPS_DIAG * max(diag.max(), 1.0):
        y = solve_triangular(upper, rhs, lower=False)
        residual_norm = abs(g[s])
    else:
        # Singular triangle: only possible for a singular operator
        y = lstsq(upper, rhs)[0]
        residual_norm = np.hypot(np.linalg.norm(upper @ y - rhs), g[s])

    return LeastSquaresResult(y=y, residual_norm=float(residual_norm))

