import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def nonsymmetric_system(rng):
    """Well-conditioned nonsymmetric 30 x 30 system."""
    n = 30
    A = rng.standard_normal((n, n))
    A += np.diag(np.abs(A).sum(axis=1))
    b = rng.standard_normal(n)
    return A, b


@pytest.fixture
def convection_diffusion():
    """Convection-diffusion matrix whose field of values stays away from 0."""
    n = 60
    A = 4.0 * np.eye(n) - 1.5 * np.eye(n, k=-1) - 0.5 * np.eye(n, k=1)
    return A, np.ones(n)


@pytest.fixture
def stagnating_system():
    """Strongly non-normal tridiagonal matrix on which short cycles stall."""
    n = 60
    A = 2.0 * np.eye(n) - 1.5 * np.eye(n, k=-1) - 0.5 * np.eye(n, k=1)
    return A, np.ones(n)
