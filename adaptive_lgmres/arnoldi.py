"""
Arnoldi Orthogonalization with Augmented Directions
===================================================

Builds the orthonormal basis V = [v_1, ..., v_{s+1}] and the upper Hessenberg
matrix H such that

    A W = V H,      W = [z_1, ..., z_s]

with modified Gram-Schmidt. The vector z_j fed to the operator at step j
comes from a direction provider:

- KrylovDirections: z_j = v_j, the classical Arnoldi process, so W = V[:, :s]
  and span(V) is the Krylov subspace K_{s+1}(A, r_0).
- AugmentedDirections: z_j = v_j for the first m steps, then the retained
  correction vectors of previous cycles, most recent first. This is the
  LGMRES subspace of Baker, Jessup & Manteuffel; it is not a Krylov subspace
  but V stays orthonormal by construction.

The update of the current cycle is x <- x + W y, where y solves the projected
least-squares problem.

Reference: Baker, Jessup & Manteuffel, "A technique for accelerating the
convergence of restarted GMRES", SIAM J. Matrix Anal. Appl. 26(4), 2005.
"""

from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np


# Orthogonalized candidate norms at or below this fraction of the candidate's
# original norm count as breakdown.
BREAKDOWN_TOLERANCE = 1e-14


@dataclass
class ArnoldiResult:
    """Basis, Hessenberg matrix and applied directions of one cycle."""
    V: np.ndarray          # (n, size + 1); (n, size) after a breakdown
    H: np.ndarray          # (size + 1, size), upper Hessenberg; last row zero after a breakdown
    W: np.ndarray          # (n, size), W[:, j] is the vector A was applied to
    size: int
    breakdown: bool = False


class KrylovDirections:
    """Plain Arnoldi: every step applies the operator to the last basis vector."""

    def __call__(self, j: int, V: np.ndarray) -> np.ndarray:
        return V[:, j]


class AugmentedDirections:
    """
    First `m` steps follow the Krylov sequence, the remaining ones use
    stored correction vectors.

    Parameters
    ----------
    m : int
        Number of Krylov directions
    corrections : sequence of np.ndarray
        Correction vectors, most recent first
    """

    def __init__(self, m: int, corrections: Sequence[np.ndarray]):
        self.m = m
        self.corrections = list(corrections)

    def __len__(self) -> int:
        return self.m + len(self.corrections)

    def __call__(self, j: int, V: np.ndarray) -> np.ndarray:
        if j < self.m:
            return V[:, j]
        return self.corrections[j - self.m]


class KrylovBuilder:
    """
    Modified Gram-Schmidt Arnoldi process over a pluggable direction provider.

    Parameters
    ----------
    matvec : callable
        v -> A @ v
    breakdown_tol : float
        Relative threshold under which an orthogonalized candidate is treated
        as lying in the span of the current basis
    """

    def __init__(self,
                 matvec: Callable[[np.ndarray], np.ndarray],
                 breakdown_tol: float = BREAKDOWN_TOLERANCE):
        self.matvec = matvec
        self.breakdown_tol = breakdown_tol

    def build(self,
              r0: np.ndarray,
              beta: float,
              size: int,
              directions: Callable[[int, np.ndarray], np.ndarray] = None) -> ArnoldiResult:
        """
        Run `size` Arnoldi steps from the residual r0.

        Parameters
        ----------
        r0 : np.ndarray
            Starting residual (n,)
        beta : float
            ||r0||, must be positive
        size : int
            Requested subspace dimension s
        directions : callable, optional
            (j, V) -> z_j. Plain Krylov directions if None.

        Returns
        -------
        ArnoldiResult
            Truncated to the reached dimension if a breakdown occurs. V then
            holds only the orthonormal vectors v_1..v_size and A W = V H[:size].
        """
        if directions is None:
            directions = KrylovDirections()

        n = r0.shape[0]
        V = np.zeros((n, size + 1), dtype=np.float64)
        W = np.zeros((n, size), dtype=np.float64)
        H = np.zeros((size + 1, size), dtype=np.float64)

        V[:, 0] = r0 / beta

        for j in range(size):
            z = directions(j, V)
            W[:, j] = z
            w = self.matvec(z)
            w_norm = np.linalg.norm(w)

            # Modified Gram-Schmidt against v_1, ..., v_{j+1}
            for i in range(j + 1):
                H[i, j] = np.dot(w, V[:, i])
                w = w - H[i, j] * V[:, i]

            h_next = np.linalg.norm(w)
            if h_next == 0.0 or h_next <= self.breakdown_tol * w_norm:
                # Lucky breakdown: the basis spans the solution correction
                H[j + 1, j] = 0.0
                reached = j + 1
                return ArnoldiResult(
                    V=V[:, :reached],
                    H=H[:reached + 1, :reached],
                    W=W[:, :reached],
                    size=reached,
                    breakdown=True,
                )

            H[j + 1, j] = h_next
            V[:, j + 1] = w / h_next

        return ArnoldiResult(V=V, H=H, W=W, size=size)
