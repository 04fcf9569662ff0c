r"""Flux matrices of the A->B reaction and the scalar quantities derived from them.

Sparse inputs give sparse CSR results, dense inputs dense arrays.
"""
import numpy as _np
from scipy.sparse import csr_matrix, issparse

from ....util.sparse import remove_entries, remove_negative_entries
from ....util.types import state_mask

__docformat__ = "restructuredtext en"

NETFLUX_MODES = ('literal', 'difference')


def _off_diagonal(matrix):
    coo = matrix.tocoo()
    keep = (coo.row != coo.col) & (coo.data > 0)
    result = csr_matrix((coo.data[keep], (coo.row[keep], coo.col[keep])), shape=coo.shape)
    result.sort_indices()
    return result


def flux_matrix(T, pi, qminus, qplus, netflux=True, mode='literal'):
    r"""Reactive flux between every pair of states.

    Parameters
    ----------
    T : (M, M) ndarray or scipy.sparse matrix
        Transition matrix.
    pi : (M,) ndarray
        Equilibrium occupancies.
    qminus : (M,) ndarray
        Backward committor.
    qplus : (M,) ndarray
        Forward committor.
    netflux : bool, default=True
        Whether to turn the gross flux into a net flux with :func:`to_netflux`.
    mode : str, default='literal'
        Net flux mode, see :func:`to_netflux`.

    Returns
    -------
    flux : (M, M) ndarray or scipy.sparse.csr_matrix
        Gross or net flux. The diagonal is zero and there are no negative entries.

    Notes
    -----
    The gross flux of an edge is the probability current carried by reactive trajectories,

    .. math:: f_{ij} = \pi_i q^{(-)}_i T_{ij} q^{(+)}_j, \quad i \neq j.

    Committors outside of [0, 1], e.g. from a solve that did not converge, can make the product negative. Such
    entries carry no reactive current and are dropped.
    """
    weight = _np.asarray(pi, dtype=float) * _np.asarray(qminus, dtype=float)
    qplus = _np.asarray(qplus, dtype=float)
    if issparse(T):
        flux = _off_diagonal(csr_matrix(T, dtype=float).multiply(weight[:, None]).multiply(qplus[None, :]))
    else:
        flux = weight[:, None] * _np.asarray(T, dtype=float) * qplus[None, :]
        _np.fill_diagonal(flux, 0.)
        flux = _np.maximum(flux, 0.)
    return to_netflux(flux, mode=mode) if netflux else flux


def to_netflux(flux, mode='literal'):
    r"""Removes opposing flux from every pair of states.

    Parameters
    ----------
    flux : (M, M) ndarray or scipy.sparse matrix
        Gross flux.
    mode : str, default='literal'
        'literal' keeps the gross value :math:`f_{ij}` wherever :math:`f_{ij} \geq f_{ji}` and drops it otherwise,
        'difference' stores the effective current :math:`\max \{ f_{ij}-f_{ji}, 0 \}`.

    Returns
    -------
    netflux : (M, M) ndarray or scipy.sparse.csr_matrix
        Net flux, at most one direction of each pair of states carries flux unless both are equal.

    Notes
    -----
    The effective current of [1]_ is what `mode='difference'` computes. Opposing fluxes of equal magnitude are
    both kept in literal mode and both vanish in difference mode.

    References
    ----------
    .. [1] P. Metzner, C. Schuette and E. Vanden-Eijnden.
        Transition Path Theory for Markov Jump Processes.
        Multiscale Model Simul 7: 1192-1219 (2009)

    Examples
    --------
    >>> import numpy as np
    >>> f = np.array([[0., 3.], [1., 0.]])
    >>> to_netflux(f)
    array([[0., 3.],
           [0., 0.]])
    >>> to_netflux(f, mode='difference')
    array([[0., 2.],
           [0., 0.]])
    """
    if mode not in NETFLUX_MODES:
        raise ValueError(f"Unknown net flux mode {mode}, supported are {NETFLUX_MODES}.")
    if not issparse(flux):
        flux = _np.asarray(flux)
        balance = flux - flux.T
        return _np.maximum(balance, 0.) if mode == 'difference' else _np.where(balance < 0, 0., flux)
    flux = flux.tocsr()
    balance = flux - flux.T
    if mode == 'difference':
        netflux = remove_negative_entries(balance).tocsr()
    else:
        netflux = remove_entries(flux, balance < 0)
    netflux.sort_indices()
    return netflux


def flux_production(F):
    r"""Outflow minus inflow of every state.

    Positive values mark flux sources, negative values flux sinks.

    Examples
    --------
    >>> import numpy as np
    >>> flux_production(np.array([[0., 2.], [0., 0.]]))
    array([ 2., -2.])
    """
    outflow = _np.asarray(F.sum(axis=1)).ravel()
    inflow = _np.asarray(F.sum(axis=0)).ravel()
    return outflow - inflow


def total_flux(F, A=None):
    r"""Total flux of the reaction.

    Parameters
    ----------
    F : (M, M) ndarray or scipy.sparse matrix
        Flux matrix.
    A : array_like, optional
        Source states. If given, the flux leaving A towards states outside of A is summed up, otherwise the
        positive flux production over all states.

    Returns
    -------
    total : float
        Total reactive flux.
    """
    if A is None:
        return float(_np.maximum(flux_production(F), 0.).sum())
    inside = state_mask(A, F.shape[0])
    if issparse(F):
        F = F.tocoo()
        return float(F.data[inside[F.row] & ~inside[F.col]].sum())
    F = _np.asarray(F)
    return float(F[_np.ix_(inside, ~inside)].sum())


def rate(totflux, pi, qminus):
    r"""Number of A->B reaction events per time step.

    The total flux is normalized by the probability of having last visited A,

    .. math:: k_{AB} = \frac{F}{\sum_i \pi_i q^{(-)}_i},

    see [1]_.

    References
    ----------
    .. [1] F. Noe, Ch. Schuette, E. Vanden-Eijnden, L. Reich and
        T. Weikl: Constructing the Full Ensemble of Folding Pathways
        from Short Off-Equilibrium Simulations.
        Proc. Natl. Acad. Sci. USA, 106, 19011-19016 (2009)
    """
    return float(totflux / _np.dot(_np.asarray(pi, dtype=float), _np.asarray(qminus, dtype=float)))


def mfpt(totflux, pi, qminus):
    r"""Mean first passage time of the A->B reaction, the inverse of :func:`rate`.

    A vanishing rate yields an infinite passage time.
    """
    k = rate(totflux, pi, qminus)
    return _np.inf if k == 0 else 1. / k
