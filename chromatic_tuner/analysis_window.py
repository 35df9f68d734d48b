"""
Fixed-capacity sample buffer holding the most recent filtered samples.
"""

import numpy as np


class AnalysisWindow:
    """
    Ring buffer of the last `capacity` samples.

    Storage is a preallocated array with a write cursor and a fill count,
    so pushing never reallocates. Samples keep their arrival order; once the
    buffer is full the oldest ones are overwritten first.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data = np.zeros(capacity, dtype=np.float64)
        self._cursor = 0  # next write position
        self._count = 0

    def push(self, samples: np.ndarray):
        """Append samples, evicting the oldest beyond capacity."""
        samples = np.asarray(samples, dtype=np.float64).ravel()
        n = len(samples)
        if n == 0:
            return

        if n >= self.capacity:
            self._data[:] = samples[-self.capacity :]
            self._cursor = 0
            self._count = self.capacity
            return

        end = self._cursor + n
        if end <= self.capacity:
            self._data[self._cursor : end] = samples
        else:
            split = self.capacity - self._cursor
            self._data[self._cursor :] = samples[:split]
            self._data[: n - split] = samples[split:]
        self._cursor = end % self.capacity
        self._count = min(self.capacity, self._count + n)

    def is_full(self) -> bool:
        return self._count == self.capacity

    def snapshot(self) -> np.ndarray:
        """
        Copy of the buffered samples, oldest first.

        Only meaningful when is_full() is True; before that the result is
        just the samples received so far.
        """
        if self._count < self.capacity:
            return self._data[: self._count].copy()
        return np.roll(self._data, -self._cursor)

    def clear(self):
        self._data[:] = 0.0
        self._cursor = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count
