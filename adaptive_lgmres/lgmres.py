"""
Adaptive LGMRES Solver
======================

Solves A @ x = b with restarted LGMRES ("loose" GMRES): every restart cycle
searches the subspace

    span{v_1, ..., v_m} + span{z_1, ..., z_d}

where v_i is the Arnoldi basis built from the current residual and z_i are
corrections x_i - x_{i-1} kept from the d most recent cycles. Keeping the
corrections preserves information that plain GMRES(m) discards at every
restart. The restart size m itself is retuned each cycle by a PD controller
on the residual history (see restart_control).

Cycle sequence:

    SEED       one GMRES cycle of dimension m + k from the initial guess
    PLAIN      first main-loop cycle, Arnoldi of dimension m, no corrections
    AUGMENTED  all later cycles, Arnoldi of dimension m plus d corrections

A restart size equal to n or k = 0 reduces the method to full GMRES or
GMRES(m); both go straight to scipy's GMRES (see fallback).

Reference: Baker, Jessup & Manteuffel, "A technique for accelerating the
convergence of restarted GMRES", SIAM J. Matrix Anal. Appl. 26(4), 2005.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from .arnoldi import AugmentedDirections, KrylovBuilder, KrylovDirections
from .base import InputError, IterativeSolver, SolverResult
from .correction_bank import CorrectionVectorBank
from .fallback import gmres_fallback
from .least_squares import solve_projected
from .restart_control import RestartController, RestartSettings


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_TOLERANCE = 1e-6
DEFAULT_CORRECTIONS = 3
DEFAULT_RESTART_CAP = 10


class CycleState(Enum):
    SEED = "seed"
    PLAIN = "plain"
    AUGMENTED = "augmented"
    CONVERGED = "converged"
    MAX_ITER = "max_iter"
    DEGENERATE_FALLBACK = "degenerate_fallback"


@dataclass
class ResidualHistory:
    """Append-only record of (cycle, absolute, relative) residual norms."""
    entries: List[Tuple[int, float, float]] = field(default_factory=list)

    def append(self, cycle: int, absolute: float) -> float:
        """Record a residual norm and return it relative to the first entry."""
        if not self.entries:
            relative = 1.0
        else:
            initial = self.entries[0][1]
            relative = absolute / initial if initial > 0 else 0.0
        self.entries.append((cycle, float(absolute), float(relative)))
        return relative

    @property
    def absolute(self) -> List[float]:
        return [e[1] for e in self.entries]

    @property
    def relative(self) -> List[float]:
        return [e[2] for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


class CycleDriver:
    """
    Runs one adaptive LGMRES solve.

    The driver owns all state shared between cycles: the iterate, the residual
    history, the correction bank and the restart controller. Bases and
    Hessenberg matrices live only inside a cycle.

    Parameters
    ----------
    A : np.ndarray or sparse matrix
        System matrix (n x n)
    b : np.ndarray
        Right-hand side (n,)
    x0 : np.ndarray
        Initial guess (n,)
    m : int
        Initial restart size, 1 <= m <= n
    k : int
        Number of correction vectors to retain, k >= 0
    tol : float
        Relative residual tolerance
    maxit : int
        Cycle budget
    settings : RestartSettings, optional
        Controller bounds and gains
    log : callable, optional
        (cycle, m, relative_residual, projected_residual) -> None, called after
        every cycle. projected_residual is the least-squares estimate |g(s)|
        relative to the initial residual.
    """

    def __init__(self, A, b: np.ndarray, x0: np.ndarray,
                 m: int, k: int, tol: float, maxit: int,
                 settings: Optional[RestartSettings] = None,
                 log: Optional[Callable[[int, int, float, float], None]] = None):
        self.A = A
        self.b = b
        self.x0 = x0
        self.n = b.size
        self.m = m
        self.k = k
        self.tol = tol
        self.maxit = maxit
        self.settings = (settings or RestartSettings()).resolved(self.n)
        self.log = log

        self.state = CycleState.SEED
        self.history = ResidualHistory()
        self.relres: List[float] = []
        self.restart_history: List[int] = []
        self.bank: Optional[CorrectionVectorBank] = None
        self.controller: Optional[RestartController] = None
        self.builder = KrylovBuilder(lambda v: self.A @ v)

    @property
    def is_degenerate(self) -> bool:
        return self.m == self.n or self.k == 0

    def run(self) -> dict:
        """Execute the solve and return the raw outcome."""
        if self.is_degenerate:
            return self._run_fallback()

        x = self.x0.copy()
        r = self.b - self.A @ x
        beta = np.linalg.norm(r)
        self.history.append(0, beta)
        self.relres.append(1.0)

        if beta == 0.0:
            self.state = CycleState.CONVERGED
            return self._outcome(x, cycles=0)

        self.bank = CorrectionVectorBank(self.n, self.k)
        self.controller = RestartController(self.m, self.settings)

        # Seeding cycle: one unrestarted GMRES(m + k) cycle
        size = min(self.m + self.k, self.n - 1)
        x_new, r, beta, _, projected = self._cycle(x, r, beta, size, KrylovDirections())
        relative = self.history.append(1, beta)
        self._report(1, size, relative, projected)

        if relative < self.tol:
            self.relres.append(relative)
            self.state = CycleState.CONVERGED
            return self._outcome(x_new, cycles=1)

        self.bank.push(x_new - x)
        x = x_new
        if len(self.relres) >= self.maxit:
            self.state = CycleState.MAX_ITER
            return self._outcome(x, cycles=len(self.relres))

        self.state = CycleState.PLAIN
        while self.state in (CycleState.PLAIN, CycleState.AUGMENTED):
            m, _ = self.controller.update(self.history.absolute)
            self.restart_history.append(m)

            if self.state is CycleState.PLAIN:
                directions = KrylovDirections()
                size = m
            else:
                d = min(len(self.bank), self.k, self.n - 1 - m)
                directions = AugmentedDirections(m, self.bank.newest_first(d))
                size = len(directions)

            x, r, beta, correction, projected = self._cycle(x, r, beta, size, directions)
            cycle = len(self.history)
            relative = self.history.append(cycle, beta)
            self.relres.append(relative)
            self.bank.push(correction)
            self._report(cycle, m, relative, projected)

            if relative < self.tol:
                self.state = CycleState.CONVERGED
            elif len(self.relres) >= self.maxit:
                self.state = CycleState.MAX_ITER
            else:
                self.state = CycleState.AUGMENTED

        return self._outcome(x, cycles=len(self.relres))

    def _cycle(self, x: np.ndarray, r: np.ndarray, beta: float, size: int,
               directions) -> Tuple[np.ndarray, np.ndarray, float, np.ndarray, float]:
        """One restart cycle: basis, projected solve, update of x and r."""
        arnoldi = self.builder.build(r, beta, size, directions)
        projected = solve_projected(arnoldi.H, beta)

        correction = arnoldi.W @ projected.y
        x = x + correction
        r = self.b - self.A @ x
        estimate = projected.residual_norm / self.history.absolute[0]
        return x, r, np.linalg.norm(r), correction, estimate

    def _run_fallback(self) -> dict:
        self.state = CycleState.DEGENERATE_FALLBACK
        if self.m == self.n:
            method = "GMRES"
            restart = self.n
        else:
            method = "GMRES(m)"
            restart = self.m
        outcome = gmres_fallback(self.A, self.b, self.x0, restart, self.tol, self.maxit)
        outcome['method'] = method
        outcome['restart_history'] = []
        return outcome

    def _report(self, cycle: int, m: int, relative: float, projected: float):
        if self.log is not None:
            self.log(cycle, m, relative, projected)

    def _outcome(self, x: np.ndarray, cycles: int) -> dict:
        return {
            'solution': x,
            'converged': self.state is CycleState.CONVERGED,
            'cycles': cycles,
            'residual_history': list(self.relres),
            'restart_history': list(self.restart_history),
            'method': "LGMRES",
        }


class AdaptiveLGMRESSolver(IterativeSolver):
    """
    LGMRES with PD-controlled restart size.

    Key properties:
    - Augments each restart subspace with corrections from earlier cycles
    - Adapts the restart size to the observed convergence rate
    - Falls back to full GMRES when m = n and to GMRES(m) when k = 0
    - Never raises on stagnation or breakdown; check `converged`
    """

    def __init__(self,
                 restart: Optional[int] = None,
                 n_corrections: int = DEFAULT_CORRECTIONS,
                 restart_settings: Optional[RestartSettings] = None,
                 tolerance: float = DEFAULT_TOLERANCE,
                 *args, **kwargs):
        """
        Initialize the adaptive LGMRES solver.

        Parameters
        ----------
        restart : int, optional
            Initial restart size m. Defaults to min(n, 10).
        n_corrections : int
            Number k of correction vectors carried between cycles (1..5 is
            typical). k = 0 selects plain GMRES(m).
        restart_settings : RestartSettings, optional
            Bounds and gains of the restart-size controller
        tolerance : float
            Relative residual tolerance, clamped into [eps, 1 - eps)
        """
        super().__init__(tolerance, *args, **kwargs)
        self.restart = restart
        self.n_corrections = n_corrections
        self.restart_settings = restart_settings
        self.name = "Adaptive LGMRES"

    def _solve_impl(self,
                    A,
                    b: np.ndarray,
                    x0: np.ndarray,
                    tol: float,
                    maxit: int) -> dict:
        n = b.size
        m = self.restart if self.restart is not None else min(n, DEFAULT_RESTART_CAP)
        if not 1 <= m <= n:
            raise InputError("m must satisfy: 1 <= m <= n.")
        if self.n_corrections < 0:
            raise InputError("k must be a non-negative integer.")

        driver = CycleDriver(A, b, x0, m, self.n_corrections, tol, maxit,
                             settings=self.restart_settings, log=self._log)
        if driver.is_degenerate and self.verbose:
            which = "Full GMRES" if m == n else "GMRES(m)"
            print(f"  {self.name}: {which} will be used")
        return driver.run()


def adaptive_lgmres(A,
                    b: np.ndarray,
                    m: Optional[int] = None,
                    k: int = DEFAULT_CORRECTIONS,
                    tol: float = DEFAULT_TOLERANCE,
                    maxit: Optional[int] = None,
                    x0: Optional[np.ndarray] = None,
                    **kwargs) -> SolverResult:
    """
    Solve A @ x = b with adaptive LGMRES.

    Shorthand for AdaptiveLGMRESSolver(m, k, tolerance=tol,
    max_cycles=maxit, **kwargs).solve(A, b, x0).
    """
    solver = AdaptiveLGMRESSolver(restart=m, n_corrections=k, tolerance=tol,
                                  max_cycles=maxit, **kwargs)
    return solver.solve(A, b, x0)
