"""
Convergence figures for LGMRES runs.
"""

import os
from typing import Dict, Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from .base import SolverResult

# Set style
sns.set_palette('husl')

SOLVER_COLORS = {
    'LGMRES': '#3498db',
    'GMRES_m': '#e74c3c',
}


def plot_convergence(results: Dict[str, SolverResult],
                     path: str,
                     tolerance: Optional[float] = None,
                     title: str = 'Convergence Curves') -> str:
    """
    Semilog plot of the relative residual per cycle for each solver.

    Returns the path of the saved figure.
    """
    with plt.style.context('seaborn-v0_8-whitegrid'):
        fig, ax = plt.subplots(figsize=(8, 5))
        for name, result in results.items():
            history = result.residual_history
            ax.semilogy(range(len(history)), history, label=name,
                        color=SOLVER_COLORS.get(name), linewidth=2, marker='o', markersize=3)
        if tolerance is not None:
            ax.axhline(tolerance, color='gray', linestyle='--', label='Tolerance')
        ax.set_xlabel('Cycle', fontsize=12)
        ax.set_ylabel('||r|| / ||r0||', fontsize=12)
        ax.set_title(title, fontsize=12, fontweight='bold')
        ax.legend(loc='upper right')
        fig.tight_layout()
        _save(fig, path)
    return path


def plot_restart_history(result: SolverResult, path: str) -> str:
    """Step plot of the restart size chosen by the controller in each cycle."""
    with plt.style.context('seaborn-v0_8-whitegrid'):
        fig, ax = plt.subplots(figsize=(8, 4))
        sizes = result.restart_history
        ax.step(range(1, len(sizes) + 1), sizes, where='mid',
                color=SOLVER_COLORS['LGMRES'], linewidth=2)
        ax.set_xlabel('Cycle', fontsize=12)
        ax.set_ylabel('Restart size m', fontsize=12)
        ax.set_title('Restart Size Adaptation', fontsize=12, fontweight='bold')
        fig.tight_layout()
        _save(fig, path)
    return path


def _save(fig, path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
