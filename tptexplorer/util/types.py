from typing import Tuple, Optional, Union

import numpy as np
from scipy.sparse import spmatrix, issparse


def ensure_floating_array(arr, shape: Tuple = None, ndim: int = None, size=None,
                          accept_sparse=True) -> Union[np.ndarray, spmatrix]:
    return ensure_array(arr, shape=shape, ndim=ndim, size=size, dtype=np.floating, accept_sparse=accept_sparse)


def ensure_array(arr, shape: Optional[Tuple] = None, ndim: Optional[int] = None,
                 dtype=None, size=None, accept_sparse=True) -> Union[np.ndarray, spmatrix]:
    if issparse(arr) and not accept_sparse:
        arr = arr.toarray()
    else:
        if isinstance(arr, (set, frozenset)):
            arr = np.asarray(sorted(arr))
        if not isinstance(arr, np.ndarray) and not issparse(arr):
            arr = np.asanyarray(arr)

    if shape is not None and arr.shape != shape:
        raise ValueError(f"Shape of provided array was {arr.shape} != {shape}")
    if ndim is not None and arr.ndim != ndim:
        raise ValueError(f"ndim of provided array was {arr.ndim} != {ndim}")
    if size is not None and np.size(arr) != size:
        raise ValueError(f"size of provided array was {np.size(arr)} != {size}")
    if dtype is not None and not np.issubdtype(arr.dtype, dtype):
        raise ValueError(f"Array got incompatible dtype: {arr.dtype} is not a subtype of {dtype}.")
    return arr


def ensure_state_set(states, n_states: int, name: str = 'states') -> np.ndarray:
    r""" Converts a collection of state indices into a one-dimensional integer array, preserving the order in
    which the states were given. Sets are ordered ascending.

    Parameters
    ----------
    states : array_like or set of int
        The state indices.
    n_states : int
        Number of states, all indices must lie in `[0, n_states)`.
    name : str, default='states'
        Name used in error messages.

    Returns
    -------
    states : (k,) ndarray of int
        The state indices.

    Raises
    ------
    ValueError
        If the set is empty, contains duplicates or out-of-range indices.

    Examples
    --------
    >>> ensure_state_set([3, 1], n_states=5)
    array([3, 1])
    """
    states = ensure_array(states, ndim=1) if not np.isscalar(states) else np.array([states])
    if states.size == 0:
        raise ValueError(f"set of {name} is empty")
    if not np.issubdtype(states.dtype, np.integer):
        raise ValueError(f"{name} must be integer state indices, got dtype {states.dtype}")
    if np.any(states < 0) or np.any(states >= n_states):
        raise ValueError(f"{name} contains indices outside of [0, {n_states})")
    if np.unique(states).size != states.size:
        raise ValueError(f"{name} contains duplicate states")
    return states.astype(int, copy=False)


def state_mask(states, n_states: int) -> np.ndarray:
    r""" Boolean membership mask of size `n_states` for a set of state indices.

    >>> state_mask([0, 2], 4)
    array([ True, False,  True, False])
    """
    mask = np.zeros(n_states, dtype=bool)
    mask[np.asarray(states, dtype=int)] = True
    return mask
