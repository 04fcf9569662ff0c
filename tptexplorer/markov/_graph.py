r""" Translation between the nodes of a :class:`networkx.DiGraph` and the integer state indices used by the
matrices of a transition path analysis, as well as reading and writing of the graph attributes involved. """

import logging
from typing import Hashable, Iterable, List, Tuple

import networkx as nx
import numpy as np

from ..util.exceptions import InvalidGraphError

log = logging.getLogger(__name__)


class StateIndex:
    r""" Bidirectional mapping between graph nodes and state indices. The state index of a node is its
    position in the iteration order of the graph's nodes.

    Parameters
    ----------
    graph : networkx.DiGraph
        The graph.

    Examples
    --------
    >>> import networkx as nx
    >>> g = nx.DiGraph()
    >>> g.add_edge('a', 'b')
    >>> index = StateIndex(g)
    >>> index.index_of('b'), index.node_of(0)
    (1, 'a')
    """

    def __init__(self, graph: nx.DiGraph):
        self._nodes = list(graph.nodes)
        self._indices = {node: i for i, node in enumerate(self._nodes)}

    @property
    def n_states(self) -> int:
        """ Number of states. """
        return len(self._nodes)

    @property
    def nodes(self) -> List[Hashable]:
        """ Graph nodes ordered by state index. """
        return list(self._nodes)

    def __len__(self):
        return self.n_states

    def __contains__(self, node):
        try:
            return node in self._indices
        except TypeError:
            return False

    def index_of(self, node) -> int:
        try:
            return self._indices[node]
        except KeyError:
            raise ValueError(f"Node {node!r} is not part of the graph.") from None

    def indices_of(self, nodes: Iterable[Hashable]) -> np.ndarray:
        r""" State indices of a collection of nodes in the order given. A single node which is not itself
        iterable (or is a string) is treated as a one-element collection, as is a node of the graph which happens
        to be iterable itself, e.g. a tuple. """
        if isinstance(nodes, (str, bytes)) or not isinstance(nodes, Iterable) or nodes in self:
            nodes = [nodes]
        return np.array([self.index_of(node) for node in nodes], dtype=int)

    def node_of(self, index: int):
        return self._nodes[index]

    def edge_of(self, edge: Tuple[int, int]):
        r""" Translates an edge given as pair of state indices into a pair of graph nodes. """
        return self._nodes[edge[0]], self._nodes[edge[1]]


def node_attribute_vector(graph: nx.DiGraph, key: str, state_index: StateIndex = None) -> np.ndarray:
    r""" Collects a float node attribute into a vector indexed by state.

    Raises
    ------
    InvalidGraphError
        If a node does not carry the attribute or the value is not a finite number.
    """
    if state_index is None:
        state_index = StateIndex(graph)
    values = np.empty(state_index.n_states)
    for i, node in enumerate(state_index.nodes):
        try:
            values[i] = float(graph.nodes[node][key])
        except KeyError:
            raise InvalidGraphError(f"Node {node!r} has no attribute '{key}'.") from None
        except (TypeError, ValueError):
            raise InvalidGraphError(f"Attribute '{key}' of node {node!r} is not a number: "
                                    f"{graph.nodes[node][key]!r}.") from None
    if not np.all(np.isfinite(values)):
        raise InvalidGraphError(f"Attribute '{key}' contains non-finite values.")
    return values


def initialize_flux_annotations(graph: nx.DiGraph, key: str = 'flux'):
    r""" Sets the flux annotation of every node and every edge of the graph to zero.

    Parameters
    ----------
    graph : networkx.DiGraph
        The graph, modified in place.
    key : str, default='flux'
        Attribute name of the annotation.
    """
    nx.set_node_attributes(graph, 0., key)
    nx.set_edge_attributes(graph, 0., key)


def add_path_flux(graph: nx.DiGraph, edges, amount: float, key: str = 'flux'):
    r""" Increments the flux annotation along a path in the graph. For every edge `(u, v)` the edge itself as
    well as both of its end nodes receive `amount`, so that interior nodes of a path are credited once per
    adjacent path edge. Missing annotations count as zero.

    Parameters
    ----------
    graph : networkx.DiGraph
        The graph, modified in place.
    edges : list of tuple
        Path edges as pairs of graph nodes.
    amount : float
        The flux to add.
    key : str, default='flux'
        Attribute name of the annotation.
    """
    for u, v in edges:
        source, target = graph.nodes[u], graph.nodes[v]
        source[key] = source.get(key, 0.) + amount
        target[key] = target.get(key, 0.) + amount
        edge = graph.edges[u, v]
        edge[key] = edge.get(key, 0.) + amount
