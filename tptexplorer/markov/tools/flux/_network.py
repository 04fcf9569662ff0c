import numpy as np
from scipy.sparse import csr_matrix, issparse


class FluxNetwork:
    r""" Sparse, non-negative flux matrix with a fixed sparsity structure.

    Flux can only be removed from the stored entries, never added to new ones, so that the structure of the matrix
    stays fixed for the lifetime of the network. This makes the whole mutable state of a network its data buffer,
    which can be saved with :meth:`snapshot` and written back with :meth:`restore`.

    Parameters
    ----------
    flux : (n, n) ndarray or scipy.sparse matrix
        Non-negative flux values.
    copy : bool, default=True
        Whether to copy the input. A sparse input is converted to CSR format in any case.

    Examples
    --------
    >>> import numpy as np
    >>> network = FluxNetwork(np.array([[0., 2.], [0., 0.]]))
    >>> saved = network.snapshot()
    >>> network.subtract(0, 1, 1.5)
    >>> network[0, 1]
    0.5
    >>> network.restore(saved)
    >>> network[0, 1]
    2.0
    """

    def __init__(self, flux, copy=True):
        if issparse(flux):
            matrix = csr_matrix(flux, dtype=float, copy=copy)
        else:
            matrix = csr_matrix(np.asarray(flux, dtype=float))
        if matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"Flux matrix must be square, but had shape {matrix.shape}.")
        matrix.sum_duplicates()
        matrix.eliminate_zeros()
        matrix.sort_indices()
        if np.any(matrix.data < 0):
            raise ValueError("Flux matrix must not contain negative entries.")
        self._matrix = matrix

    @property
    def n_states(self) -> int:
        return self._matrix.shape[0]

    @property
    def shape(self):
        return self._matrix.shape

    @property
    def nnz(self) -> int:
        r""" Number of stored entries, including those which were reduced to zero. """
        return self._matrix.nnz

    @property
    def matrix(self) -> csr_matrix:
        r""" The underlying CSR matrix. It is shared, not copied. """
        return self._matrix

    @property
    def writeable(self) -> bool:
        return bool(self._matrix.data.flags.writeable)

    def freeze(self):
        r""" Makes the network read-only. Subsequent modifications raise a ValueError. """
        self._matrix.data.setflags(write=False)
        return self

    def row(self, i):
        r""" Outgoing entries of state `i`.

        Returns
        -------
        columns : ndarray of int
            Sorted target states of the stored entries. This is a view.
        values : ndarray of float
            The corresponding flux values. This is a view.
        """
        start, stop = self._matrix.indptr[i], self._matrix.indptr[i + 1]
        return self._matrix.indices[start:stop], self._matrix.data[start:stop]

    def _position(self, i, j):
        columns, _ = self.row(i)
        k = np.searchsorted(columns, j)
        if k < len(columns) and columns[k] == j:
            return self._matrix.indptr[i] + k
        return None

    def __getitem__(self, item):
        i, j = item
        position = self._position(i, j)
        return 0. if position is None else float(self._matrix.data[position])

    def subtract(self, i, j, amount):
        r""" Removes `amount` of flux from the entry `(i, j)`. The entry does not become negative, rounding
        residues below zero are clamped.

        Raises
        ------
        KeyError
            If `(i, j)` is not a stored entry of the network.
        """
        position = self._position(i, j)
        if position is None:
            raise KeyError(f"({i}, {j}) is not an edge of the flux network.")
        data = self._matrix.data
        data[position] = max(data[position] - amount, 0.)

    def snapshot(self) -> np.ndarray:
        r""" Copy of the current flux values, to be handed to :meth:`restore`. """
        return self._matrix.data.copy()

    def restore(self, snapshot):
        r""" Overwrites the flux values with a snapshot taken from this network or from a network with the
        same sparsity structure. """
        snapshot = snapshot.snapshot() if isinstance(snapshot, FluxNetwork) else np.asarray(snapshot)
        if snapshot.shape != self._matrix.data.shape:
            raise ValueError(f"Snapshot with {snapshot.shape[0]} entries does not fit a network "
                             f"with {self.nnz} entries.")
        np.copyto(self._matrix.data, snapshot)

    def copy(self) -> "FluxNetwork":
        r""" Writeable deep copy of this network. """
        return FluxNetwork(self._matrix, copy=True)

    def sum(self) -> float:
        return float(self._matrix.data.sum())

    def toarray(self) -> np.ndarray:
        return self._matrix.toarray()
