r"""
=============================================
Committor computation for transition networks
=============================================

.. currentmodule:: tptexplorer.markov.tools.analysis

.. autosummary::
   :toctree: generated/

   committor - Forward and backward committor
   solve_committor - Forward committor with solver diagnostics
   forward_committor
   backward_committor
   reversed_backward_committor
   CommittorSolution

"""

from ._committor import CommittorSolution, solve_committor, forward_committor, backward_committor, \
    reversed_backward_committor


def committor(T, A, B, forward=True, mu=None, **solver_kwargs):
    r"""Compute the committor between sets of microstates.

    The committor assigns to each microstate a probability that being
    at this state, the set B will be hit next, rather than set A
    (forward committor), or that the set A has been hit previously
    rather than set B (backward committor).

    Parameters
    ----------
    T : (M, M) ndarray or scipy.sparse matrix
        Transition matrix
    A : array_like
        List of integer state labels for set A
    B : array_like
        List of integer state labels for set B
    forward : bool
        If True compute the forward committor, else
        compute the backward committor.
    mu : (M,) ndarray, optional, default=None
        Equilibrium occupancies. If given, the backward committor is computed on the
        time-reversed chain, otherwise as complement of the forward committor.
    **solver_kwargs
        Options of :func:`solve_committor`.

    Returns
    -------
    q : (M,) ndarray
        Vector of comittor probabilities.

    Notes
    -----
    Without `mu` the backward committor is obtained as complement of the forward
    committor, which assumes a reversible chain.

    Examples
    --------
    >>> import numpy as np
    >>> T = np.array([[0.89, 0.1, 0.01], [0.5, 0.0, 0.5], [0.0, 0.1, 0.9]])
    >>> np.round(committor(T, [0], [2]), 4)
    array([0. , 0.5, 1. ])
    """
    if not forward and mu is not None:
        return reversed_backward_committor(T, A, B, mu, **solver_kwargs)
    qplus = forward_committor(T, A, B, **solver_kwargs)
    return qplus if forward else backward_committor(qplus)
