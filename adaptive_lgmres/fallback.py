"""
Classical GMRES fallbacks.

Used when the adaptive method collapses to a classical one: a restart size
equal to the problem size (full GMRES) or no correction vectors (GMRES(m)).
Both delegate to scipy.sparse.linalg.gmres and report the per-iteration
residual trace in the same relative form as the adaptive solver.
"""

from typing import List

import numpy as np
from scipy.sparse.linalg import gmres


def gmres_fallback(A,
                   b: np.ndarray,
                   x0: np.ndarray,
                   restart: int,
                   tol: float,
                   maxit: int) -> dict:
    """
    Solve A @ x = b with scipy's GMRES(restart).

    Parameters
    ----------
    A : np.ndarray or sparse matrix
        System matrix (n x n)
    b : np.ndarray
        Right-hand side (n,)
    x0 : np.ndarray
        Initial guess (n,)
    restart : int
        Krylov dimension per cycle; restart = n gives unrestarted GMRES
    tol : float
        Relative residual tolerance
    maxit : int
        Maximum number of restart cycles

    Returns
    -------
    dict
        solution, converged, cycles, residual_history (one entry per inner
        iteration, relative to the initial residual, closed by the true final
        residual)
    """
    r0_norm = np.linalg.norm(b - A @ x0)
    b_norm = np.linalg.norm(b)
    inner: List[float] = []

    def record(pr_norm):
        # scipy reports the residual estimate relative to ||b||
        inner.append(pr_norm * b_norm)

    x, info = gmres(A, b, x0=x0, rtol=tol, atol=0.0, restart=restart,
                    maxiter=maxit, callback=record, callback_type='pr_norm')

    trace = [r0_norm] + inner
    final = np.linalg.norm(b - A @ x)
    if trace[-1] != final:
        trace.append(final)

    if r0_norm > 0:
        relative = [r / r0_norm for r in trace]
    else:
        relative = [1.0] + [0.0] * (len(trace) - 1)

    return {
        'solution': x,
        'converged': info == 0,
        'cycles': int(np.ceil(len(inner) / min(restart, b.size))),
        'residual_history': relative,
    }
