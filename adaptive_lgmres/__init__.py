"""
Adaptive LGMRES
===============

Restarted Krylov solver for square linear systems

    A x = b

that augments each restart subspace with correction vectors from previous
cycles (LGMRES) and retunes the restart size every cycle with a
proportional-derivative controller.

Components:
- least_squares: Givens triangularization of the projected problem
- arnoldi: modified Gram-Schmidt Arnoldi with augmented directions
- correction_bank: bounded FIFO store of correction vectors
- restart_control: PD law for the restart size
- lgmres: cycle driver and public solver
"""

from .base import (
    InputError,
    IterativeSolver,
    ParameterClampWarning,
    SolverResult,
)
from .restart_control import RestartController, RestartSettings
from .lgmres import AdaptiveLGMRESSolver, CycleDriver, CycleState, adaptive_lgmres

__all__ = [
    'IterativeSolver',
    'SolverResult',
    'InputError',
    'ParameterClampWarning',
    'RestartController',
    'RestartSettings',
    'AdaptiveLGMRESSolver',
    'CycleDriver',
    'CycleState',
    'adaptive_lgmres',
]
