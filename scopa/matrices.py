"""Dense numeric matrix and vector used by the regression code."""

from __future__ import annotations


class Matrix:
    """A zero-initialised rows x cols matrix of floats.

    Reads outside the matrix return 0.0 and writes outside it are ignored.
    """

    def __init__(self, rows: int, cols: int) -> None:
        if rows > 0 and cols > 0:
            self.rows = rows
            self.cols = cols
        else:
            self.rows = 0
            self.cols = 0
        self._data = [[0.0] * self.cols for _ in range(self.rows)]

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def _inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def __getitem__(self, key: tuple[int, int]) -> float:
        row, col = key
        if self._inside(row, col):
            return self._data[row][col]
        return 0.0

    def __setitem__(self, key: tuple[int, int], value: float) -> None:
        row, col = key
        if self._inside(row, col):
            self._data[row][col] = float(value)

    def invert_symmetric(self) -> bool:
        """Invert a symmetric matrix in place.

        Returns False, leaving the matrix unchanged, when it is empty,
        not square, or singular.
        """
        n = self.rows
        if n < 1 or n != self.cols:
            return False
        a = [list(row) for row in self._data]
        t = [0.0] * n
        q = [0.0] * n
        pending = [True] * n
        pivot = 0
        for _ in range(n):
            big = 0.0
            for candidate in range(n):
                magnitude = abs(a[candidate][candidate])
                if magnitude > big and pending[candidate]:
                    big = magnitude
                    pivot = candidate
            if big == 0:
                return False
            pending[pivot] = False
            q[pivot] = 1 / a[pivot][pivot]
            t[pivot] = 1.0
            a[pivot][pivot] = 0.0
            for l in range(pivot):
                t[l] = a[l][pivot]
                if pending[l]:
                    q[l] = -a[l][pivot] * q[pivot]
                else:
                    q[l] = a[l][pivot] * q[pivot]
                a[l][pivot] = 0.0
            for l in range(pivot + 1, n):
                t[l] = a[pivot][l] if pending[l] else -a[pivot][l]
                q[l] = -a[pivot][l] * q[pivot]
                a[pivot][l] = 0.0
            for l in range(n):
                for k in range(l, n):
                    a[l][k] += t[l] * q[k]
        for m in range(1, n):
            for j in range(m):
                a[m][j] = a[j][m]
        self._data = a
        return True

    def format(self) -> str:
        """Render as tab-separated lines, each starting with its row number."""
        return "".join(
            str(i) + "".join(f"\t{v:g}" for v in row) + "\n"
            for i, row in enumerate(self._data)
        )


class Vector:
    """A zero-initialised vector of floats.

    Reads outside the vector return 0.0 and writes outside it are ignored.
    """

    def __init__(self, size: int) -> None:
        self._data = [0.0] * max(size, 0)

    def __getitem__(self, index: int) -> float:
        if 0 <= index < len(self._data):
            return self._data[index]
        return 0.0

    def __setitem__(self, index: int, value: float) -> None:
        if 0 <= index < len(self._data):
            self._data[index] = float(value)

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self):
        return iter(self._data)

    def format(self) -> str:
        """Render as lines of index and value separated by a tab."""
        return "".join(f"{i}\t{v:g}\n" for i, v in enumerate(self._data))