import numpy as np
import pytest

from adaptive_lgmres.restart_control import (
    RestartController,
    RestartSettings,
    convergence_factors,
)


def controller(m=5, n=20, **kwargs):
    return RestartController(m, RestartSettings(**kwargs).resolved(n))


def test_first_call_returns_base_size():
    ctrl = controller(m=5)
    assert ctrl.update([1.0, 0.9]) == (5, 5)


def test_stagnation_increases_restart():
    ctrl = controller(m=5)
    ctrl.update([1.0, 0.99])
    m, m_initial = ctrl.update([1.0, 0.99, 0.98])
    assert m > 5
    assert m_initial == m


def test_fast_convergence_decreases_restart():
    ctrl = controller(m=8)
    ctrl.update([1.0, 1e-2])
    m, _ = ctrl.update([1.0, 1e-2, 1e-5])
    assert m < 8


def test_response_is_monotone_in_stagnation():
    sizes = []
    for ratio in [1e-4, 1e-2, 0.1, 0.5, 0.9, 1.0, 2.0]:
        ctrl = controller(m=10, n=40)
        ctrl.update([1.0, 0.5])
        sizes.append(ctrl.update([1.0, 0.5, 0.5 * ratio])[0])
    assert sizes == sorted(sizes)


def test_out_of_range_steps_towards_bound():
    # A huge gain would overshoot m_max; the size moves by m_step only
    ctrl = controller(m=5, n=10, alpha0=100.0, m_step=2)
    ctrl.update([1.0, 1.0])
    m, _ = ctrl.update([1.0, 1.0, 1.0])
    assert m == 7

    ctrl = controller(m=5, n=10, alpha0=100.0, m_step=2)
    ctrl.update([1.0, 1.0])
    m, _ = ctrl.update([1.0, 1.0, 1e-12])
    assert m == 3


@pytest.mark.parametrize("seed", range(5))
def test_restart_stays_within_bounds(seed):
    rng = np.random.default_rng(seed)
    n = 12
    ctrl = controller(m=6, n=n, alpha0=3.0, delta0=1.5)
    residuals = [1.0]
    for _ in range(40):
        residuals.append(residuals[-1] * rng.uniform(1e-3, 1.5))
        m, m_initial = ctrl.update(residuals)
        assert 1 <= m <= n - 1
        assert m_initial == m


def test_derivative_term_reacts_to_slowdown():
    history = [1.0, 1e-2, 5e-3]   # second cycle much slower than the first
    plain = controller(m=6, delta0=0.0)
    pd = controller(m=6, delta0=2.0)
    assert pd.next_size(6, history) > plain.next_size(6, history)


def test_deterministic():
    history = [1.0, 0.4, 0.3, 0.25]
    assert controller().next_size(5, history) == controller().next_size(5, history)


def test_resolved_defaults_to_n_minus_one():
    settings = RestartSettings().resolved(15)
    assert settings.m_max == 14
    assert settings.m_min == 1
    assert RestartSettings(m_max=50).resolved(15).m_max == 14


def test_convergence_factors():
    assert np.allclose(convergence_factors([1.0, 0.1, 0.01]), [-1.0, -1.0])
    assert np.all(np.isfinite(convergence_factors([1.0, 0.0])))


def test_fast_cycle_lowers_restart_by_one_step():
    ctrl = controller(m=6)
    ctrl.update([1.0, 1e-2])
    m, _ = ctrl.update([1.0, 1e-2, 1e-10])
    assert m == 5

    ctrl = controller(m=6, m_step=2)
    ctrl.update([1.0, 1e-2])
    m, _ = ctrl.update([1.0, 1e-2, 1e-10])
    assert m == 4


def test_default_target_is_one_decade_per_cycle():
    # Meeting the target leaves m unchanged
    assert controller(m=6).next_size(6, [1.0, 0.09]) == 6
    # Halving it is too slow and grows m
    assert controller(m=6).next_size(6, [1.0, 0.5]) > 6
