import logging
from typing import List, Optional, Tuple

import networkx as nx
import numpy as np

from ._graph import StateIndex, add_path_flux, initialize_flux_annotations, node_attribute_vector
from ._reactive_flux import ReactiveFlux
from ._transition_matrix import transition_matrix_from_graph
from .tools.analysis import CommittorSolution, solve_committor, backward_committor, reversed_backward_committor
from .tools.flux import FluxNetwork, Pathway, flux_matrix, to_netflux
from ..util.exceptions import InvalidGraphError
from ..util.types import ensure_state_set

log = logging.getLogger(__name__)


class TPTSession:
    r""" Transition path analysis of a state graph with repeated extraction of dominant pathways.

    On construction the transition matrix is reconstructed from the edge probabilities of the graph, the forward
    committor between source and target states is solved for, and the net reactive flux network is computed. Each
    call to :meth:`next_path` then extracts the currently dominant pathway from the first source state into the
    target set, removes its bottleneck flux from a working copy of the flux network and records the extracted flux
    on the graph.

    Parameters
    ----------
    graph : networkx.DiGraph
        The state graph. Nodes carry their equilibrium occupancy, edges their transition probability. The graph must
        not be structurally modified for the lifetime of the session.
    source : node or iterable of nodes
        Source states. Only the first given source node seeds the pathway search.
    target : node or iterable of nodes
        Target states, disjoint from the source states.
    probability_key : str, default='probability'
        Edge attribute holding transition probabilities.
    eq_prob_key : str, default='eqProb'
        Node attribute holding equilibrium occupancies.
    flux_key : str, default='flux'
        Node and edge attribute the extracted flux is accumulated in.
    solver : str, default='gmres'
        Linear solver for the committor, see :func:`tptexplorer.markov.tools.analysis.solve_committor`.
    preconditioner : str or None, default='ilu'
        Preconditioner of the iterative solvers.
    tol : float, default=1e-10
        Relative tolerance of the iterative solvers.
    maxiter : int, optional, default=None
        Iteration limit of the iterative solvers.
    callback : callable, optional, default=None
        Invoked as ``callback(iteration, residual)`` during the committor solve.
    on_not_converged : str, default='warn'
        'warn' continues with the last iterate of a non-converged solve and issues a
        :class:`tptexplorer.util.exceptions.NotConvergedWarning`, 'raise' raises a
        :class:`tptexplorer.util.exceptions.NotConvergedError`.
    netflux_mode : str, default='literal'
        How opposing gross fluxes are combined, see :func:`tptexplorer.markov.tools.flux.to_netflux`.
    backward : str, default='complement'
        'complement' takes the backward committor as one minus the forward committor, 'reversed' solves for it on
        the time-reversed chain.
    validate : bool, default=False
        Whether to check that edge probabilities and equilibrium occupancies are probabilities.

    Notes
    -----
    :meth:`reset` restores the working flux network but leaves the flux annotations on the graph untouched, they
    keep accumulating over resets. Use :meth:`reset_annotations` to clear them.

    The session is not thread-safe, calls to :meth:`next_path` and :meth:`reset` have to be serialized.

    Examples
    --------
    >>> import networkx as nx
    >>> g = nx.DiGraph()
    >>> g.add_nodes_from([(0, dict(eqProb=.5)), (1, dict(eqProb=.3)), (2, dict(eqProb=.2))])
    >>> g.add_edge(0, 1, probability=.5)
    >>> g.add_edge(0, 2, probability=.5)
    >>> g.add_edge(1, 2, probability=1.)
    >>> session = TPTSession(g, source=[0], target=[2])
    >>> session.next_path()
    [(0, 2)]
    >>> session.next_path()
    []
    """

    def __init__(self, graph: nx.DiGraph, source, target, probability_key='probability', eq_prob_key='eqProb',
                 flux_key='flux', solver='gmres', preconditioner='ilu', tol=1e-10, maxiter=None, callback=None,
                 on_not_converged='warn', netflux_mode='literal', backward='complement', validate=False):
        if not graph.is_directed():
            raise ValueError("Transition path analysis requires a directed graph.")
        if backward not in ('complement', 'reversed'):
            raise ValueError(f"Unknown backward committor mode {backward}, supported are 'complement' and 'reversed'.")
        self._graph = graph
        self._flux_key = flux_key
        self._state_index = StateIndex(graph)
        n_states = self._state_index.n_states
        if n_states == 0:
            raise ValueError("The graph has no states.")

        source_states = ensure_state_set(self._state_index.indices_of(source), n_states, name='source states')
        target_states = ensure_state_set(self._state_index.indices_of(target), n_states, name='target states')
        if np.intersect1d(source_states, target_states).size > 0:
            raise ValueError("Source and target states have to be disjoint")

        self._transition_matrix = transition_matrix_from_graph(graph, probability_key=probability_key,
                                                               state_index=self._state_index, validate=validate)
        self._transition_matrix.data.setflags(write=False)
        log.debug("transition matrix reconstructed")
        eq_probs = node_attribute_vector(graph, eq_prob_key, self._state_index)
        if validate and (np.any(eq_probs < 0) or np.any(eq_probs > 1)):
            raise InvalidGraphError(f"Attribute '{eq_prob_key}' contains values outside of [0, 1].")

        solver_kwargs = dict(solver=solver, preconditioner=preconditioner, tol=tol, maxiter=maxiter,
                             callback=callback, on_not_converged=on_not_converged)
        self._committor_solution = solve_committor(self._transition_matrix, source_states, target_states,
                                                   **solver_kwargs)
        qplus = self._committor_solution.forward
        log.debug("forward committor obtained")
        if backward == 'complement':
            qminus = backward_committor(qplus)
        else:
            qminus = reversed_backward_committor(self._transition_matrix, source_states, target_states, eq_probs,
                                                 **solver_kwargs)
        log.debug("backward committor obtained")

        gross_flux = flux_matrix(self._transition_matrix, eq_probs, qminus, qplus, netflux=False)
        net_flux = to_netflux(gross_flux, mode=netflux_mode)
        self._reactive_flux = ReactiveFlux(source_states, target_states, net_flux=net_flux,
                                           stationary_distribution=eq_probs, qminus=qminus, qplus=qplus,
                                           gross_flux=gross_flux)
        self._decomposer = self._reactive_flux.decomposer()
        log.debug("flux network with %d edges obtained, total flux %.3e", self._decomposer.original.nnz,
                  self._reactive_flux.total_flux)

    @property
    def graph(self) -> nx.DiGraph:
        return self._graph

    @property
    def state_index(self) -> StateIndex:
        r""" Mapping between graph nodes and state indices. """
        return self._state_index

    @property
    def source_states(self) -> np.ndarray:
        return self._decomposer.source_states

    @property
    def target_states(self) -> np.ndarray:
        return self._decomposer.target_states

    @property
    def transition_matrix(self):
        r""" The reconstructed transition matrix as read-only CSR matrix. """
        return self._transition_matrix

    @property
    def committor_solution(self) -> CommittorSolution:
        r""" Forward committor together with the diagnostics of the linear solve, e.g. whether it converged. """
        return self._committor_solution

    @property
    def forward_committor(self) -> np.ndarray:
        return self._reactive_flux.forward_committor

    @property
    def backward_committor(self) -> np.ndarray:
        return self._reactive_flux.backward_committor

    @property
    def stationary_distribution(self) -> np.ndarray:
        r""" Equilibrium occupancies as read from the graph. """
        return self._reactive_flux.stationary_distribution

    @property
    def reactive_flux(self) -> ReactiveFlux:
        return self._reactive_flux

    @property
    def net_flux(self) -> FluxNetwork:
        r""" The original, read-only net flux network. """
        return self._decomposer.original

    @property
    def working_flux(self) -> FluxNetwork:
        r""" The residual net flux network after the pathways extracted since the last reset. """
        return self._decomposer.working

    def _edges(self, pathway: Pathway) -> List[Tuple]:
        return [self._state_index.edge_of(edge) for edge in pathway.edges]

    def next_pathway(self) -> Optional[Pathway]:
        r""" Extracts the currently dominant pathway and records its capacity on the graph.

        Returns
        -------
        pathway : Pathway or None
            The pathway in terms of state indices, None if no pathway is left.
        """
        pathway = self._decomposer.next_pathway()
        if pathway is not None:
            add_path_flux(self._graph, self._edges(pathway), pathway.capacity, key=self._flux_key)
        return pathway

    def next_path(self) -> List[Tuple]:
        r""" Extracts the currently dominant pathway and records its capacity on the graph.

        For every edge `(u, v)` of the path, the flux annotations of `u`, `v` and of the edge are incremented by
        the bottleneck flux of the path.

        Returns
        -------
        edges : list of tuple
            The path as list of graph edges `(u, v)` from a source node to a target node. The list is empty if no
            pathway is left, in which case further calls stay empty until :meth:`reset`.
        """
        pathway = self.next_pathway()
        return [] if pathway is None else self._edges(pathway)

    def paths(self, max_paths=None):
        r""" Generator over :meth:`next_path` until no path is left or `max_paths` paths have been extracted. """
        count = 0
        while max_paths is None or count < max_paths:
            path = self.next_path()
            if not path:
                return
            count += 1
            yield path

    def reset(self):
        r""" Restores the working flux network to the original net flux. The flux annotations on the graph are
        not reverted. """
        self._decomposer.reset()

    def reset_annotations(self):
        r""" Sets the flux annotations of all nodes and edges of the graph to zero. """
        initialize_flux_annotations(self._graph, key=self._flux_key)
