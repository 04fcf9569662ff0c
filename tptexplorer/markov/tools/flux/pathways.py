r"""Decomposition of a flux network into reaction pathways by repeated
extraction of the currently dominant path.

Starting from a single source state, a depth-first search always follows the
outgoing edge of largest remaining flux. Dead ends are rejected and the search
backtracks to the next-best edge, until a target state is reached. The
bottleneck (minimal flux) of the found path is then subtracted along all of its
edges, so that repeated calls enumerate paths of decreasing importance.

"""
import logging
import warnings
from typing import NamedTuple, Optional

import numpy as np

from ._network import FluxNetwork
from ....util.types import ensure_state_set, state_mask

log = logging.getLogger(__name__)

_UNVISITED, _ON_PATH, _REJECTED = 0, 1, 2


class Pathway(NamedTuple):
    r""" A reaction pathway through a flux network.

    Attributes
    ----------
    states : (k,) ndarray of int
        Visited states from the source state to the target state.
    fluxes : (k-1,) ndarray of float
        Flux of each path edge at the time the path was found.
    capacity : float
        Bottleneck flux, the minimum of `fluxes`.
    """
    states: np.ndarray
    fluxes: np.ndarray
    capacity: float

    @property
    def edges(self):
        r""" Path edges as list of state index pairs. """
        return [(int(i), int(j)) for i, j in zip(self.states[:-1], self.states[1:])]


def dominant_pathway(F: FluxNetwork, start: int, target_mask: np.ndarray) -> Optional[Pathway]:
    r"""Find the path of greedily chosen maximal flux edges from `start` into the target set.

    Parameters
    ----------
    F : FluxNetwork
        The flux network, it is not modified.
    start : int
        The state to start from.
    target_mask : (n,) ndarray of bool
        Membership mask of the target set.

    Returns
    -------
    pathway : Pathway or None
        The path, or None if no target state can be reached along positive flux.

    Notes
    -----
    Among the edges with positive flux leading to states that are neither on the current path nor rejected, the
    one with maximal flux is followed; ties go to the lowest state index. States without such an edge are
    rejected for the remainder of the search.
    """
    status = np.zeros(F.n_states, dtype=np.int8)
    status[start] = _ON_PATH
    stack = [int(start)]
    fluxes = []

    while stack:
        state = stack[-1]
        columns, values = F.row(state)
        candidates = (values > 0.) & (status[columns] == _UNVISITED)
        if not np.any(candidates):
            status[state] = _REJECTED
            stack.pop()
            if fluxes:
                fluxes.pop()
            continue
        k = int(np.argmax(np.where(candidates, values, -np.inf)))
        successor = int(columns[k])
        stack.append(successor)
        fluxes.append(float(values[k]))
        if target_mask[successor]:
            fluxes = np.array(fluxes)
            return Pathway(states=np.array(stack, dtype=int), fluxes=fluxes, capacity=float(fluxes.min()))
        status[successor] = _ON_PATH
    return None


def capacity(F: FluxNetwork, path) -> float:
    r"""Compute capacity (min. current) of path.

    Parameters
    ----------
    F : FluxNetwork
        The flux network
    path : array_like
        Reaction path as sequence of states

    Returns
    -------
    c : float
        Capacity (min. current of path)
    """
    return min(F[i, j] for i, j in zip(path[:-1], path[1:]))


def remove_path(F: FluxNetwork, path, amount=None) -> float:
    r"""Remove capacity along a path from flux network, in place.

    Parameters
    ----------
    F : FluxNetwork
        The flux network, modified in place.
    path : array_like
        Reaction path as sequence of states
    amount : float, optional, default=None
        Flux to remove, defaults to the capacity of the path.

    Returns
    -------
    c : float
        The removed flux.
    """
    c = capacity(F, path) if amount is None else amount
    for i, j in zip(path[:-1], path[1:]):
        F.subtract(i, j, c)
    return c


class PathDecomposer:
    r""" Stateful decomposition of a flux network into pathways from a source set into a target set.

    The decomposer keeps the original flux network read-only and works on a copy of it. Every call to
    :meth:`next_pathway` removes the found path's capacity from the working copy, :meth:`reset` discards all
    removals.

    Parameters
    ----------
    flux : (n, n) ndarray or scipy.sparse matrix or FluxNetwork
        The (net) flux network.
    source_states : array_like
        Source states. Only the first given source state seeds the path search.
    target_states : array_like
        Target states, disjoint from the source states.

    Examples
    --------
    >>> import numpy as np
    >>> F = np.zeros((4, 4))
    >>> F[0, 1], F[1, 3], F[0, 2], F[2, 3] = 3., 2., 1., 1.
    >>> decomposer = PathDecomposer(F, [0], [3])
    >>> [(p.states.tolist(), p.capacity) for p in decomposer]
    [([0, 1, 3], 2.0), ([0, 2, 3], 1.0)]
    >>> print(decomposer.next_pathway())
    None
    """

    def __init__(self, flux, source_states, target_states):
        original = flux.copy() if isinstance(flux, FluxNetwork) else FluxNetwork(flux)
        self._original = original.freeze()
        self._saved = self._original.snapshot()
        self._source_states = ensure_state_set(source_states, original.n_states, name='source states')
        self._target_states = ensure_state_set(target_states, original.n_states, name='target states')
        if np.intersect1d(self._source_states, self._target_states).size > 0:
            raise ValueError("Source and target states have to be disjoint")
        self._target_mask = state_mask(self._target_states, original.n_states)
        self._working = self._original.copy()
        self._extracted = []

    @property
    def source_states(self) -> np.ndarray:
        return self._source_states

    @property
    def target_states(self) -> np.ndarray:
        return self._target_states

    @property
    def start_state(self) -> int:
        r""" The state every path search starts from, which is the first source state. """
        return int(self._source_states[0])

    @property
    def original(self) -> FluxNetwork:
        r""" The read-only flux network the decomposer was created with. """
        return self._original

    @property
    def working(self) -> FluxNetwork:
        r""" The residual flux network after removal of all pathways extracted since the last reset. """
        return self._working

    @property
    def extracted(self):
        r""" Pathways extracted since the last reset, in order of extraction. """
        return list(self._extracted)

    @property
    def extracted_flux(self) -> float:
        r""" Sum of the capacities of all pathways extracted since the last reset. """
        return float(sum(p.capacity for p in self._extracted))

    def find_pathway(self) -> Optional[Pathway]:
        r""" The pathway the next call to :meth:`next_pathway` would extract, without removing it. """
        return dominant_pathway(self._working, self.start_state, self._target_mask)

    def next_pathway(self) -> Optional[Pathway]:
        r""" Finds the currently dominant pathway and removes its capacity from the working flux network.

        Returns
        -------
        pathway : Pathway or None
            The pathway, or None if no pathway remains from the start state. In that case no further pathways
            will be found until :meth:`reset` is called.
        """
        pathway = self.find_pathway()
        if pathway is None:
            log.debug("no pathway left from state %d", self.start_state)
            return None
        remove_path(self._working, pathway.states, amount=pathway.capacity)
        self._extracted.append(pathway)
        log.debug("extracted pathway %s with capacity %.3e", pathway.states.tolist(), pathway.capacity)
        return pathway

    def reset(self):
        r""" Restores the working flux network to the original network. """
        self._working.restore(self._saved)
        self._extracted = []

    def __iter__(self):
        while True:
            pathway = self.next_pathway()
            if pathway is None:
                return
            yield pathway

    def pathways(self, fraction=1.0, maxiter=1000, total=None, tol=1e-14):
        r"""Extract pathways until a fraction of the total flux is covered or no pathway is left.

        Parameters
        ----------
        fraction : float, optional
            Fraction of total flux to assemble in pathway decomposition
        maxiter : int, optional
            Maximum number of pathways for decomposition
        total : float, optional, default=None
            The total flux the fraction refers to. Defaults to the original outflow of the start state.
        tol : float, optional
            Floating point tolerance. The iteration is terminated once the
            relative capacity of all discovered path matches the desired
            fraction within floating point tolerance

        Returns
        -------
        paths : list
            List of pathways as arrays of states
        capacities: list
            List of capacities corresponding to each reactions pathway in paths
        """
        if total is None:
            total = float(self._original.row(self.start_state)[1].sum())
        paths, capacities = [], []
        if total <= 0:
            return paths, capacities

        covered = 0.0
        while True:
            pathway = self.next_pathway()
            if pathway is None:
                break
            paths.append(pathway.states)
            capacities.append(pathway.capacity)
            covered += pathway.capacity
            if abs(covered / total - fraction) <= tol or covered / total >= fraction:
                break
            if len(paths) >= maxiter:
                warnings.warn("Maximum number of iterations reached", RuntimeWarning)
                break
        return paths, capacities
