import logging

import networkx as nx
import numpy as np
from scipy.sparse import csr_matrix

from ._graph import StateIndex
from ..util.exceptions import InvalidGraphError

log = logging.getLogger(__name__)


def transition_matrix_from_graph(graph: nx.DiGraph, probability_key: str = 'probability',
                                 state_index: StateIndex = None, validate: bool = False,
                                 row_sum_tolerance: float = 1e-8) -> csr_matrix:
    r""" Reconstructs the transition matrix backing a state graph.

    Every edge `(s, t)` with a nonzero transition probability `p` yields :math:`T_{st} = p`. A self-loop edge
    with vanishing probability marks an absorbing state and yields :math:`T_{ss} = 1`. Edges between distinct
    states with vanishing probability are not stored.

    Parameters
    ----------
    graph : networkx.DiGraph
        The state graph. Nodes are mapped to state indices in their iteration order.
    probability_key : str, default='probability'
        Edge attribute holding the transition probability.
    state_index : StateIndex, optional, default=None
        Precomputed node to state mapping for `graph`.
    validate : bool, default=False
        Whether to check that the edge attributes are probabilities and that no row sums to more than one.
        Without validation a missing attribute still raises, but malformed values are accepted as they are.
    row_sum_tolerance : float, default=1e-8
        Tolerance for the row sum check, only used when `validate` is True.

    Returns
    -------
    T : (n, n) scipy.sparse.csr_matrix
        The transition matrix with sorted column indices.

    Raises
    ------
    InvalidGraphError
        If an edge lacks the probability attribute or, with `validate`, holds something that is not a
        probability.

    Examples
    --------
    >>> import networkx as nx
    >>> g = nx.DiGraph()
    >>> g.add_edge(0, 1, probability=1.)
    >>> g.add_edge(1, 1, probability=0.)
    >>> transition_matrix_from_graph(g).toarray()
    array([[0., 1.],
           [0., 1.]])
    """
    if state_index is None:
        state_index = StateIndex(graph)
    n = state_index.n_states

    entries = {}
    for u, v, data in graph.edges(data=True):
        if probability_key not in data:
            raise InvalidGraphError(f"Edge ({u!r}, {v!r}) has no attribute '{probability_key}'.")
        p = float(data[probability_key])
        s, t = state_index.index_of(u), state_index.index_of(v)
        if validate and not (np.isfinite(p) and 0. <= p <= 1.):
            raise InvalidGraphError(f"Edge ({u!r}, {v!r}) carries {p}, which is not a probability.")
        if p != 0:
            entries[s, t] = p
        elif s == t:
            entries[s, t] = 1.

    if len(entries) > 0:
        rows, cols = np.array(list(entries.keys()), dtype=int).T
        data = np.fromiter(entries.values(), dtype=float, count=len(entries))
    else:
        rows = cols = np.empty(0, dtype=int)
        data = np.empty(0, dtype=float)
    T = csr_matrix((data, (rows, cols)), shape=(n, n))
    T.sort_indices()

    if validate:
        row_sums = np.asarray(T.sum(axis=1)).ravel()
        offending = np.where(row_sums > 1. + row_sum_tolerance)[0]
        if offending.size > 0:
            raise InvalidGraphError(f"Outgoing probabilities of states {offending.tolist()} sum to more than one.")
    log.debug("transition matrix with %d states and %d nonzero entries reconstructed", n, T.nnz)
    return T
