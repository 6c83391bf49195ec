"""
Bounded store of the correction vectors carried between LGMRES cycles.
"""

from typing import List

import numpy as np


class CorrectionVectorBank:
    """
    Ring buffer holding at most `capacity` correction vectors.

    Vectors are stored as columns of a preallocated (n, capacity) array.
    Once full, each push overwrites the oldest slot, so eviction costs no
    copies of the remaining vectors.

    Parameters
    ----------
    n : int
        Vector dimension
    capacity : int
        Maximum number of retained vectors (k >= 1)
    """

    def __init__(self, n: int, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._store = np.zeros((n, capacity), dtype=np.float64)
        self._sequence = [0] * capacity
        self._oldest = 0
        self._size = 0
        self._pushed = 0

    def __len__(self) -> int:
        return self._size

    def push(self, vector: np.ndarray) -> None:
        """Append a copy of `vector`, evicting the oldest entry when full."""
        if self._size < self.capacity:
            slot = (self._oldest + self._size) % self.capacity
            self._size += 1
        else:
            slot = self._oldest
            self._oldest = (self._oldest + 1) % self.capacity
        self._store[:, slot] = vector
        self._sequence[slot] = self._pushed
        self._pushed += 1

    def _slots_oldest_first(self) -> List[int]:
        return [(self._oldest + i) % self.capacity for i in range(self._size)]

    def newest_first(self, count: int = None) -> List[np.ndarray]:
        """
        Return up to `count` stored vectors, most recent first.

        The returned arrays are views into the bank; callers must not modify
        them.
        """
        slots = self._slots_oldest_first()[::-1]
        if count is not None:
            slots = slots[:count]
        return [self._store[:, slot] for slot in slots]

    def sequence_numbers(self) -> List[int]:
        """Insertion tags of the stored vectors, oldest first."""
        return [self._sequence[slot] for slot in self._slots_oldest_first()]
