import numpy as np
import pytest

from adaptive_lgmres import adaptive_lgmres
from adaptive_lgmres.diagnostics import (
    PROBLEMS,
    build_solvers,
    compute_summary,
    run_full_diagnostics,
)
from adaptive_lgmres.plotting import plot_convergence, plot_restart_history


@pytest.fixture(scope="module")
def collections():
    solvers = build_solvers(restart=5, n_corrections=2, tol=1e-8, max_cycles=60)
    return run_full_diagnostics(n=24, seed=1, solvers=solvers, verbose=False)


def test_one_record_per_problem(collections):
    assert set(collections) == {'LGMRES', 'GMRES_m'}
    for collection in collections.values():
        df = collection.to_dataframe()
        assert list(df['problem']) == list(PROBLEMS)


def test_methods_reported(collections):
    assert set(collections['LGMRES'].to_dataframe()['method']) == {'LGMRES'}
    assert set(collections['GMRES_m'].to_dataframe()['method']) == {'GMRES(m)'}


def test_diagonal_problem_solved_accurately(collections):
    df = collections['LGMRES'].to_dataframe().set_index('problem')
    assert df.loc['diagonal', 'converged']
    assert df.loc['diagonal', 'relative_solution_error'] < 1e-6


def test_summary_table(collections):
    summary = compute_summary(collections)
    assert list(summary['solver']) == ['LGMRES', 'GMRES_m']
    assert summary['convergence_rate'].between(0.0, 1.0).all()


def test_distribution_stats(collections):
    stats = collections['LGMRES'].get_distribution_stats('cycles')
    assert stats['min'] <= stats['median'] <= stats['max']


def test_figures_written(tmp_path):
    A = np.diag(np.linspace(1.0, 10.0, 20))
    b = np.ones(20)
    results = {
        'LGMRES': adaptive_lgmres(A, b, m=3, k=2, tol=1e-10, maxit=20),
        'GMRES_m': adaptive_lgmres(A, b, m=3, k=0, tol=1e-10, maxit=20),
    }

    conv = plot_convergence(results, str(tmp_path / 'figures' / 'convergence.png'), tolerance=1e-10)
    restart = plot_restart_history(results['LGMRES'], str(tmp_path / 'restart.png'))

    assert (tmp_path / 'figures' / 'convergence.png').stat().st_size > 0
    assert (tmp_path / 'restart.png').stat().st_size > 0
    assert conv.endswith('convergence.png') and restart.endswith('restart.png')
