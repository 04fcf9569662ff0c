r"""Reactive flux of the A->B reaction on a transition matrix, bundled with its committors and rates.

"""
import logging
from typing import Iterable

import numpy as np

from .tools import flux as tptapi
from .tools.analysis import solve_committor, backward_committor, reversed_backward_committor
from ..util.types import ensure_floating_array, ensure_state_set

log = logging.getLogger(__name__)


class ReactiveFlux:
    r""" Net flux network of the A->B reaction together with the per-state quantities it was computed from.

    The net flux is held as read-only :class:`tptexplorer.markov.tools.flux.FluxNetwork`. Pathways are extracted
    by fresh :class:`tptexplorer.markov.tools.flux.PathDecomposer` instances, so that the network itself is never
    consumed.

    Parameters
    ----------
    source_states : array_like
        Source states A.
    target_states : array_like
        Target states B, disjoint from A.
    net_flux : (n, n) ndarray or scipy.sparse matrix or FluxNetwork
        Net flux of the reaction.
    stationary_distribution : (n,) ndarray, optional
        Equilibrium occupancies, required for :attr:`rate` and :attr:`mfpt`.
    qminus : (n,) ndarray, optional
        Backward committor, required for :attr:`rate` and :attr:`mfpt`.
    qplus : (n,) ndarray, optional
        Forward committor.
    gross_flux : (n, n) ndarray or scipy.sparse matrix, optional
        Gross flux the net flux was derived from.

    See also
    --------
    reactive_flux : Computes ReactiveFlux instances from a transition matrix
    tptexplorer.markov.TPTSession : Interactive pathway extraction on a state graph
    """

    def __init__(self, source_states, target_states, net_flux, stationary_distribution=None,
                 qminus=None, qplus=None, gross_flux=None):
        network = net_flux.copy() if isinstance(net_flux, tptapi.FluxNetwork) else tptapi.FluxNetwork(net_flux)
        self._network = network.freeze()
        self._source_states = ensure_state_set(source_states, network.n_states, name='source states')
        self._target_states = ensure_state_set(target_states, network.n_states, name='target states')
        if np.intersect1d(self._source_states, self._target_states).size > 0:
            raise ValueError("Source and target states have to be disjoint")
        self._stationary_distribution = stationary_distribution
        self._qminus = qminus
        self._qplus = qplus
        self._gross_flux = gross_flux

        self._total_flux = tptapi.total_flux(network.matrix, self._source_states)
        if stationary_distribution is None or qminus is None:
            self._rate = None
        else:
            self._rate = tptapi.rate(self._total_flux, stationary_distribution, qminus)

    def __repr__(self):
        return f"{self.__class__.__name__}(n_states={self.n_states}, " \
               f"source_states={self._source_states.tolist()}, target_states={self._target_states.tolist()}, " \
               f"total_flux={self._total_flux:.6g})"

    @property
    def n_states(self) -> int:
        return self._network.n_states

    @property
    def source_states(self) -> np.ndarray:
        return self._source_states

    @property
    def target_states(self) -> np.ndarray:
        return self._target_states

    @property
    def intermediate_states(self) -> np.ndarray:
        r""" States which are neither source nor target states, in ascending order. """
        boundary = np.concatenate((self._source_states, self._target_states))
        return np.setdiff1d(np.arange(self.n_states), boundary)

    @property
    def stationary_distribution(self):
        return self._stationary_distribution

    @property
    def net_flux(self) -> tptapi.FluxNetwork:
        r""" Read-only net flux network. Units are :math:`1/ \mathrm{time}`. """
        return self._network

    @property
    def gross_flux(self):
        r""" Gross flux if available. Units are :math:`1/ \mathrm{time}`. """
        return self._gross_flux

    @property
    def forward_committor(self):
        return self._qplus

    @property
    def backward_committor(self):
        return self._qminus

    @property
    def total_flux(self) -> float:
        r""" Net flux leaving the source states. Units are :math:`1/ \mathrm{time}`. """
        return self._total_flux

    @property
    def rate(self):
        r""" Reaction events per unit time, None without equilibrium occupancies and backward committor. """
        return self._rate

    @property
    def mfpt(self):
        r""" Mean first passage time from A to B, the inverse of :attr:`rate`. It is None if the rate is unknown
        and infinite if no flux reaches the target states. """
        if self._rate is None:
            return None
        return np.inf if self._rate == 0 else 1. / self._rate

    def decomposer(self) -> tptapi.PathDecomposer:
        r""" A new path decomposer working on a copy of the net flux network. """
        return tptapi.PathDecomposer(self._network, self._source_states, self._target_states)

    def pathways(self, fraction=1.0, maxiter=1000):
        r"""Dominant reaction pathways covering a fraction of the flux leaving the first source state.

        Parameters
        ----------
        fraction : float, optional
            Fraction of the outflow of the first source state to cover.
        maxiter : int, optional
            Maximum number of pathways.

        Returns
        -------
        paths : list of ndarray
            Pathways as sequences of states, in order of extraction.
        capacities : list of float
            Bottleneck flux of each pathway.
        """
        return self.decomposer().pathways(fraction=fraction, maxiter=maxiter)

    def major_flux(self, fraction=0.9):
        r""" Part of the net flux carried by the dominant pathways which cover `fraction` of the flux.

        Returns
        -------
        flux : (n, n) ndarray
            Sum of the capacities of the extracted pathways along their edges.
        """
        decomposer = self.decomposer()
        decomposer.pathways(fraction=fraction)
        flux = np.zeros((self.n_states, self.n_states))
        for pathway in decomposer.extracted:
            np.add.at(flux, (pathway.states[:-1], pathway.states[1:]), pathway.capacity)
        return flux


def reactive_flux(transition_matrix, source_states: Iterable[int], target_states: Iterable[int],
                  stationary_distribution, qminus=None, qplus=None, netflux_mode='literal',
                  backward='complement', **solver_kwargs) -> ReactiveFlux:
    r""" Computes the A->B reactive flux using transition path theory (TPT).

    Parameters
    ----------
    transition_matrix : (M, M) ndarray or scipy.sparse matrix
        The transition matrix.
    source_states : array_like
        List of integer state labels for set A
    target_states : array_like
        List of integer state labels for set B
    stationary_distribution : (M,) ndarray
        Equilibrium occupancy of every state.
    qminus : (M,) ndarray (optional)
        Backward committor for A->B reaction, computed according to `backward` if not given.
    qplus : (M,) ndarray (optional)
        Forward committor for A-> B reaction, computed with :func:`solve_committor` if not given.
    netflux_mode : str, default='literal'
        How opposing gross fluxes are combined, see :func:`tptexplorer.markov.tools.flux.to_netflux`.
    backward : str, default='complement'
        How the backward committor is obtained if not given: 'complement' takes one minus the forward committor,
        which assumes a reversible chain, 'reversed' solves for the forward committor of the time-reversed chain.
    **solver_kwargs
        Options for :func:`tptexplorer.markov.tools.analysis.solve_committor`.

    Returns
    -------
    tpt: ReactiveFlux
        The net flux network with committors, equilibrium occupancies and rates.

    Examples
    --------
    >>> import numpy as np
    >>> T = np.array([[0., 1., 0.], [0., 0., 1.], [0., 0., 1.]])
    >>> flux = reactive_flux(T, [0], [2], stationary_distribution=np.array([.5, .25, .25]))
    >>> flux.total_flux
    0.5
    """
    n_states = transition_matrix.shape[0]
    source_states = ensure_state_set(source_states, n_states, name='source states')
    target_states = ensure_state_set(target_states, n_states, name='target states')
    stationary_distribution = ensure_floating_array(np.asarray(stationary_distribution, dtype=float),
                                                    shape=(n_states,))

    if backward not in ('complement', 'reversed'):
        raise ValueError(f"Unknown backward committor mode {backward}, supported are 'complement' and 'reversed'.")
    if qplus is None:
        qplus = solve_committor(transition_matrix, source_states, target_states, **solver_kwargs).forward
    if qminus is None:
        if backward == 'complement':
            qminus = backward_committor(qplus)
        else:
            qminus = reversed_backward_committor(transition_matrix, source_states, target_states,
                                                 stationary_distribution, **solver_kwargs)
    gross_flux = tptapi.flux_matrix(transition_matrix, stationary_distribution, qminus, qplus, netflux=False)
    net_flux = tptapi.to_netflux(gross_flux, mode=netflux_mode)
    return ReactiveFlux(source_states, target_states, net_flux=net_flux,
                        stationary_distribution=stationary_distribution,
                        qminus=qminus, qplus=qplus, gross_flux=gross_flux)
