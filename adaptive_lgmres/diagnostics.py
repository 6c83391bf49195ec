#!/usr/bin/env python3
"""
Numerical Diagnostics for Restarted Krylov Solvers
==================================================

Compares adaptive LGMRES against classical GMRES(m) on a set of generated
test problems, using a direct solve as the reference solution.

Metrics Computed:
    1. Relative Residual Norm: ||b - Ax|| / ||b - Ax0||
    2. Relative Solution Error: ||x - x*|| / ||x*||
       where x* is the LAPACK reference solution
    3. Restart Cycles and the final restart size chosen by the controller
    4. Wall-clock Runtime: per-solve timing

Run with ``python -m adaptive_lgmres.diagnostics``.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.linalg import solve as direct_solve

from .base import SolverResult
from .lgmres import AdaptiveLGMRESSolver

# =============================================================================
# CONFIGURATION
# =============================================================================

# Solver parameters (identical across all solvers)
TOLERANCE = 1e-8
MAX_CYCLES = 200
RESTART = 10
N_CORRECTIONS = 3

PROBLEM_SIZE = 100
SEED = 0


# =============================================================================
# TEST PROBLEMS
# =============================================================================

def diagonal_problem(n: int, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """Diagonal matrix with eigenvalues spread over [1, n]."""
    A = np.diag(np.linspace(1.0, float(n), n))
    return A, np.ones(n)


def convection_diffusion_problem(n: int,
                                 rng: np.random.Generator,
                                 peclet: float = 0.5) -> Tuple[np.ndarray, np.ndarray]:
    """
    Central-difference 1D convection-diffusion operator.

    Nonsymmetric tridiagonal matrix (-1 - P, 2, -1 + P); restarted GMRES
    tends to stagnate on it for small restart sizes.
    """
    A = (2.0 * np.eye(n)
         + (-1.0 - peclet) * np.eye(n, k=-1)
         + (-1.0 + peclet) * np.eye(n, k=1))
    return A, np.ones(n)


def random_dominant_problem(n: int, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """Random nonsymmetric matrix made diagonally dominant."""
    A = rng.standard_normal((n, n))
    A += np.diag(np.abs(A).sum(axis=1))
    return A, rng.standard_normal(n)


PROBLEMS: Dict[str, Callable[[int, np.random.Generator], Tuple[np.ndarray, np.ndarray]]] = {
    'diagonal': diagonal_problem,
    'convection_diffusion': convection_diffusion_problem,
    'random_dominant': random_dominant_problem,
}


# =============================================================================
# DATA CLASSES FOR DIAGNOSTICS
# =============================================================================

@dataclass
class SolverDiagnostics:
    """Container for numerical diagnostics of a single solve."""
    problem: str
    solver_name: str
    method: str

    # Convergence metrics
    converged: bool
    cycles: int
    wall_clock_time: float

    # Residual metrics
    relative_residual: float
    residual_history: List[float]

    # Error metrics (relative to reference solution)
    relative_solution_error: float

    # Restart-size trace (adaptive solver only)
    restart_history: List[int] = field(default_factory=list)

    @property
    def final_restart(self) -> Optional[int]:
        return self.restart_history[-1] if self.restart_history else None


@dataclass
class SolverDiagnosticsCollection:
    """Diagnostics across all test problems for one solver."""
    solver_name: str
    diagnostics: List[SolverDiagnostics] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame for analysis."""
        records = []
        for d in self.diagnostics:
            records.append({
                'problem': d.problem,
                'solver': d.solver_name,
                'method': d.method,
                'converged': d.converged,
                'cycles': d.cycles,
                'wall_clock_time_ms': d.wall_clock_time * 1000,
                'relative_residual': d.relative_residual,
                'relative_solution_error': d.relative_solution_error,
                'final_restart': d.final_restart,
            })
        return pd.DataFrame(records)

    def get_distribution_stats(self, metric: str) -> Dict[str, float]:
        """Compute distribution statistics for a given metric."""
        values = self.to_dataframe()[metric].dropna()
        return {
            'mean': values.mean(),
            'min': values.min(),
            'median': values.median(),
            'max': values.max(),
        }


# =============================================================================
# DIAGNOSTICS RUNNER
# =============================================================================

def build_solvers(restart: int = RESTART,
                  n_corrections: int = N_CORRECTIONS,
                  tol: float = TOLERANCE,
                  max_cycles: int = MAX_CYCLES) -> Dict[str, AdaptiveLGMRESSolver]:
    """Adaptive LGMRES and its k = 0 counterpart, GMRES(m)."""
    return {
        'LGMRES': AdaptiveLGMRESSolver(restart=restart, n_corrections=n_corrections,
                                       tolerance=tol, max_cycles=max_cycles),
        'GMRES_m': AdaptiveLGMRESSolver(restart=restart, n_corrections=0,
                                        tolerance=tol, max_cycles=max_cycles),
    }


def diagnose(result: SolverResult, x_ref: np.ndarray, problem: str,
             solver_name: str) -> SolverDiagnostics:
    """Turn a SolverResult into a SolverDiagnostics record."""
    error = np.linalg.norm(result.solution - x_ref) / np.linalg.norm(x_ref)
    return SolverDiagnostics(
        problem=problem,
        solver_name=solver_name,
        method=result.method,
        converged=result.converged,
        cycles=result.iterations,
        wall_clock_time=result.elapsed_time,
        relative_residual=result.relative_residual,
        residual_history=list(result.residual_history),
        relative_solution_error=error,
        restart_history=list(result.restart_history),
    )


def run_diagnostics_for_problem(A: np.ndarray,
                                b: np.ndarray,
                                problem: str,
                                solvers: Dict[str, AdaptiveLGMRESSolver]) -> Dict[str, SolverDiagnostics]:
    """Run all solvers on a single problem."""
    x_ref = direct_solve(A, b)
    results = {}
    for name, solver in solvers.items():
        result = solver.solve(A, b)
        results[name] = diagnose(result, x_ref, problem, name)
    return results


def run_full_diagnostics(n: int = PROBLEM_SIZE,
                         seed: int = SEED,
                         solvers: Optional[Dict[str, AdaptiveLGMRESSolver]] = None,
                         verbose: bool = True) -> Dict[str, SolverDiagnosticsCollection]:
    """Run diagnostics on every registered test problem."""
    rng = np.random.default_rng(seed)
    if solvers is None:
        solvers = build_solvers()

    if verbose:
        print("=" * 80)
        print("NUMERICAL DIAGNOSTICS FOR RESTARTED KRYLOV SOLVERS")
        print("=" * 80)
        print(f"\nConfiguration:")
        print(f"  Problem size: {n}")
        print(f"  Tolerance: {TOLERANCE:.2e}")
        print(f"  Max Cycles: {MAX_CYCLES}")
        print(f"  Reference solution: Direct solver (LAPACK)")

    collections = {name: SolverDiagnosticsCollection(solver_name=name) for name in solvers}

    for problem, factory in PROBLEMS.items():
        A, b = factory(n, rng)
        results = run_diagnostics_for_problem(A, b, problem, solvers)

        for solver_name, diag in results.items():
            collections[solver_name].diagnostics.append(diag)

        if verbose:
            print(f"\n  Problem: {problem}")
            for solver_name, d in results.items():
                status = "✓" if d.converged else "✗"
                print(f"    {solver_name:8s}: {d.cycles:4d} cycles, "
                      f"||r||/||r0|| = {d.relative_residual:.2e}, "
                      f"||x-x*||/||x*|| = {d.relative_solution_error:.2e} [{status}]")

    return collections


def compute_summary(collections: Dict[str, SolverDiagnosticsCollection]) -> pd.DataFrame:
    """One row per solver with convergence rate and mean costs."""
    rows = []
    for solver_name, collection in collections.items():
        df = collection.to_dataframe()
        rows.append({
            'solver': solver_name,
            'convergence_rate': df['converged'].mean(),
            'mean_cycles': df['cycles'].mean(),
            'mean_time_ms': df['wall_clock_time_ms'].mean(),
            'max_relative_residual': df['relative_residual'].max(),
            'max_relative_solution_error': df['relative_solution_error'].max(),
        })
    return pd.DataFrame(rows)


def main():
    """Main execution function."""
    collections = run_full_diagnostics(verbose=True)
    summary = compute_summary(collections)

    print("\n" + "=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print(summary.to_string(index=False, float_format='%.3e'))

    return collections, summary


if __name__ == '__main__':
    collections, summary = main()
