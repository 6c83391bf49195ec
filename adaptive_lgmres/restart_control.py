"""
PD Control of the Restart Size
==============================

Chooses the restart size m of the next LGMRES cycle from the residual
history. With r_j the residual norm after cycle j, the convergence factor in
decades is

    p_j = log10(r_j / r_{j-1})          (negative while converging)

and the controller acts on

    e_j = p_j + log10(1 / target_reduction)      (proportional)
    D_j = p_j - p_{j-1}                           (derivative)

    Δ_j = ceil(alpha0 * e_j + delta0 * D_j)
    m_raw = m + max(Δ_j, -m_step)

e_j > 0 means the last cycle reduced the residual by less than the target
factor (one decade by default), so m grows; a cycle that beats the target
shrinks m, but never by more than m_step per cycle. A single fast cycle
therefore cannot drop m to m_min, from where the basis may be too small to
reach the target again. A positive D_j (convergence slowing down) pushes m up
when delta0 > 0.

When m_raw leaves [m_min, m_max] the new size moves from m by a single
m_step towards the violated bound instead of jumping to it.

The gains and the setpoint are tuning parameters, not derived constants.
Defaults: alpha0 = 2, delta0 = 0, m_min = 1, m_max = n - 1, m_step = 1,
target_reduction = 0.1.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

import numpy as np


@dataclass
class RestartSettings:
    """Bounds and gains of the restart-size controller."""
    m_min: int = 1
    m_max: Optional[int] = None   # n - 1 when left unset
    m_step: int = 1
    alpha0: float = 2.0
    delta0: float = 0.0
    target_reduction: float = 0.1

    def resolved(self, n: int) -> 'RestartSettings':
        """Copy with m_max filled in for a problem of size n."""
        m_max = self.m_max if self.m_max is not None else max(n - 1, 1)
        return replace(self, m_max=max(min(m_max, max(n - 1, 1)), self.m_min))


class RestartController:
    """
    Proportional-derivative law for the restart size.

    Parameters
    ----------
    m_initial : int
        Base restart size used for the first cycle after seeding
    settings : RestartSettings
        Bounds and gains; m_max must already be resolved
    """

    def __init__(self, m_initial: int, settings: RestartSettings):
        self.settings = settings
        self.m_initial = int(np.clip(m_initial, settings.m_min, settings.m_max))
        self.m = self.m_initial
        self._calls = 0

    def update(self, residuals: Sequence[float]) -> Tuple[int, int]:
        """
        Compute the restart size for the next cycle.

        Parameters
        ----------
        residuals : sequence of float
            Absolute residual norms of all cycles so far, oldest first

        Returns
        -------
        tuple
            (m, m_initial) for the next cycle
        """
        self._calls += 1
        if self._calls == 1 or len(residuals) < 2:
            self.m = self.m_initial
            return self.m, self.m_initial

        m_next = self.next_size(self.m, residuals)
        self.m = m_next
        self.m_initial = m_next
        return self.m, self.m_initial

    def next_size(self, m: int, residuals: Sequence[float]) -> int:
        """Apply the PD law to m given the residual history."""
        s = self.settings
        p = convergence_factors(residuals)

        error = p[-1] + np.log10(1.0 / s.target_reduction)
        derivative = p[-1] - p[-2] if len(p) >= 2 else 0.0
        adjustment = int(np.ceil(s.alpha0 * error + s.delta0 * derivative))
        adjustment = max(adjustment, -s.m_step)
        m_raw = m + adjustment

        if m_raw > s.m_max:
            return min(m + s.m_step, s.m_max)
        if m_raw < s.m_min:
            return max(m - s.m_step, s.m_min)
        return m_raw


def convergence_factors(residuals: Sequence[float]) -> np.ndarray:
    """log10(r_j / r_{j-1}) for consecutive residual norms."""
    r = np.asarray(residuals, dtype=np.float64)
    tiny = np.finfo(np.float64).tiny
    logs = np.log10(np.maximum(r, tiny))
    return np.diff(logs)
