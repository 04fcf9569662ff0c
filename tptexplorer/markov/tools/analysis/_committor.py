r"""This module provides functions for the computation of forward and
backward committors by solving the boundary-value problem with sparse,
iterative linear solvers.

"""
import logging
from typing import NamedTuple

import numpy as np
from scipy.sparse import csr_matrix, diags, issparse
from scipy.sparse.csgraph import breadth_first_order
from scipy.sparse.linalg import LinearOperator, bicgstab, cg, gmres, spilu, spsolve

from ....util.exceptions import NotConvergedError, NotConvergedWarning, raise_or_warn
from ....util.types import ensure_state_set, state_mask

log = logging.getLogger(__name__)

SOLVERS = ('gmres', 'bicgstab', 'cg', 'direct')
PRECONDITIONERS = ('ilu', 'jacobi', None)


class CommittorSolution(NamedTuple):
    r""" Result of a forward committor computation.

    Attributes
    ----------
    forward : (n,) ndarray
        The forward committor. Boundary values are exact, interior values are the solution of the linear system.
        If the solver did not converge, they are its last iterate clipped to [0, 1].
    converged : bool
        Whether the solver reached the requested tolerance.
    info : int
        Exit code of the solver: zero on success, the number of iterations performed if the iteration limit was
        reached, and negative on breakdown or illegal input.
    n_iterations : int
        Number of iterations performed, zero for the direct solver.
    residual : float
        Relative residual norm :math:`\|b - Wx\| / \|b\|` of the returned vector.
    solver : str
        The solver that produced the solution.
    """
    forward: np.ndarray
    converged: bool
    info: int
    n_iterations: int
    residual: float
    solver: str

    @property
    def backward(self) -> np.ndarray:
        r""" Backward committor :math:`1 - q^+`, valid for reversible chains. """
        return backward_committor(self.forward)


def _reaches(T, mask):
    r""" Boolean mask of the states from which a state in `mask` can be reached along nonzero transitions. """
    n = T.shape[0]
    L = T.tocoo()
    nonzero = L.data != 0
    sink = np.where(mask)[0]
    """Reversed edges plus an auxiliary state n with an edge into every masked state"""
    rows = np.concatenate((L.col[nonzero], np.full(sink.size, n)))
    cols = np.concatenate((L.row[nonzero], sink))
    G = csr_matrix((np.ones(rows.size), (rows, cols)), shape=(n + 1, n + 1))
    reached = breadth_first_order(G, n, directed=True, return_predecessors=False)
    result = np.zeros(n + 1, dtype=bool)
    result[reached] = True
    return result[:n]


def _set_up_linear_system(T, A, B):
    r"""Assemble left-hand side W and right-hand side r of the committor system.

    Rows of boundary states are identity rows, interior rows read

    .. math:: (1 - T_{ii}) u_i - \sum_{j \in I, j \neq i} T_{ij} u_j = \sum_{j \in B} T_{ij}

    so that columns of boundary states are folded into the right-hand side. Interior states from which B
    cannot be reached get identity rows and committor zero, this keeps W regular for reducible chains.
    """
    n = T.shape[0]
    source_mask = state_mask(A, n)
    target_mask = state_mask(B, n)
    boundary = source_mask | target_mask
    interior = ~boundary

    """States that never reach B, among them absorbing states and closed classes"""
    diagonal = np.ones(n)
    diagonal[interior] -= T.diagonal()[interior]
    trapped = interior & ((diagonal == 0.) | ~_reaches(T, target_mask))
    diagonal[trapped] = 1.
    if np.any(trapped):
        log.debug("%d intermediate states cannot reach the target set and get committor zero",
                  np.count_nonzero(trapped))

    """Interior block of the generator I - T"""
    L = T.tocoo()
    active = interior & ~trapped
    keep = active[L.row] & interior[L.col] & (L.row != L.col)

    rows = np.concatenate((L.row[keep], np.arange(n)))
    cols = np.concatenate((L.col[keep], np.arange(n)))
    data = np.concatenate((-L.data[keep], diagonal))
    W = csr_matrix((data, (rows, cols)), shape=(n, n))
    W.sort_indices()

    r = np.asarray(T[:, np.where(target_mask)[0]].sum(axis=1)).ravel()
    r[~active] = 0.
    r[target_mask] = 1.
    return W, r, source_mask, target_mask


def _preconditioner(W, preconditioner):
    if preconditioner is None:
        return None
    elif preconditioner == 'jacobi':
        d = W.diagonal()
        d[d == 0] = 1.
        return diags(1. / d)
    elif preconditioner == 'ilu':
        try:
            ilu = spilu(W.tocsc())
        except RuntimeError as e:
            log.warning("incomplete LU factorization failed (%s), solving without preconditioner", e)
            return None
        return LinearOperator(W.shape, ilu.solve)
    raise ValueError(f"Unknown preconditioner {preconditioner}, supported are {PRECONDITIONERS}.")


def solve_committor(T, A, B, solver='gmres', preconditioner='ilu', tol=1e-10, maxiter=None, callback=None,
                    on_not_converged='warn') -> CommittorSolution:
    r"""Forward committor between given sets, together with diagnostics of the linear solve.

    The forward committor u(x) between sets A and B is the probability
    for the chain starting in x to reach B before reaching A.

    Parameters
    ----------
    T : (M, M) ndarray or scipy.sparse matrix
        Transition matrix
    A : array_like
        List of integer state labels for set A
    B : array_like
        List of integer state labels for set B
    solver : str, default='gmres'
        One of 'gmres', 'bicgstab', 'cg' or 'direct'. The Krylov methods GMRES and BiCGSTAB are valid for the
        generally non-symmetric committor system. CG assumes a symmetric positive definite system and is only
        guaranteed to work for symmetric transition matrices. 'direct' uses a sparse LU decomposition.
    preconditioner : str or None, default='ilu'
        'ilu' for an incomplete LU factorization, 'jacobi' for diagonal scaling or None. Ignored by the direct
        solver.
    tol : float, default=1e-10
        Relative tolerance of the iterative solvers.
    maxiter : int, optional, default=None
        Maximum number of iterations, defaults to the solver's own limit.
    callback : callable, optional, default=None
        Invoked as ``callback(iteration, residual)`` after every iteration of an iterative solver, see
        :class:`tptexplorer.util.callbacks.IterationReporter`.
    on_not_converged : str, default='warn'
        If the iterative solver fails to reach the tolerance the last iterate is returned and a
        :class:`NotConvergedWarning` is issued ('warn'), or a :class:`NotConvergedError` is raised ('raise').

    Returns
    -------
    solution : CommittorSolution
        Forward committor and solver diagnostics.

    Notes
    -----
    The forward committor is a solution to the following
    boundary-value problem

    .. math::

        \sum_j L_{ij} u_{j}=0    for i in X\(A u B) (I)
                      u_{i}=0    for i \in A        (II)
                      u_{i}=1    for i \in B        (III)

    with generator matrix L=(P-I).

    Examples
    --------
    >>> import numpy as np
    >>> T = np.array([[0., 1., 0.], [0., 0., 1.], [0., 0., 1.]])
    >>> solution = solve_committor(T, [0], [2])
    >>> solution.forward
    array([0., 1., 1.])
    >>> bool(solution.converged)
    True
    """
    if solver not in SOLVERS:
        raise ValueError(f"Unknown solver {solver}, supported are {SOLVERS}.")
    if on_not_converged not in ('warn', 'raise'):
        raise ValueError(f'Unsupported value of on_not_converged ({on_not_converged}). Should be "raise" or "warn".')
    T = csr_matrix(T, dtype=float) if not issparse(T) else T.tocsr().astype(float)
    n = T.shape[0]
    if T.shape != (n, n):
        raise ValueError(f"Transition matrix must be square, but had shape {T.shape}.")
    A = ensure_state_set(A, n, name='source states')
    B = ensure_state_set(B, n, name='target states')
    if np.intersect1d(A, B).size > 0:
        raise ValueError("Sets A and B have to be disjoint")

    W, r, source_mask, target_mask = _set_up_linear_system(T, A, B)

    n_iterations = 0
    if solver == 'direct':
        u = spsolve(W.tocsc(), r)
        info = 0 if np.all(np.isfinite(u)) else -1
    else:
        def count(arg):
            nonlocal n_iterations
            n_iterations += 1
            if callback is not None:
                if solver == 'gmres':
                    residual = float(arg)
                else:
                    residual = float(np.linalg.norm(r - W.dot(arg)) / np.linalg.norm(r))
                callback(n_iterations, residual)

        M = _preconditioner(W, preconditioner)
        x0 = np.zeros(n)
        x0[target_mask] = 1.
        if solver == 'gmres':
            u, info = gmres(W, r, x0=x0, rtol=tol, atol=0., maxiter=maxiter, M=M, callback=count,
                            callback_type='pr_norm')
        elif solver == 'bicgstab':
            u, info = bicgstab(W, r, x0=x0, rtol=tol, atol=0., maxiter=maxiter, M=M, callback=count)
        else:
            u, info = cg(W, r, x0=x0, rtol=tol, atol=0., maxiter=maxiter, M=M, callback=count)

    u = np.asarray(u, dtype=float)
    residual = float(np.linalg.norm(r - W.dot(u)) / np.linalg.norm(r))
    converged = info == 0
    """Boundary values hold exactly"""
    u[source_mask] = 0.
    u[target_mask] = 1.

    if converged:
        log.debug("committor solved by %s after %d iterations, relative residual %.3e", solver, n_iterations,
                  residual)
    else:
        np.clip(u, 0., 1., out=u)
        msg = f"Committor solver {solver} did not converge (info={info}) after {n_iterations} iterations, " \
              f"relative residual {residual:.3e}. Returning the last iterate clipped to [0, 1]."
        log.warning(msg)
        raise_or_warn(msg, on_error=on_not_converged, warning=NotConvergedWarning, exception=NotConvergedError)
    return CommittorSolution(forward=u, converged=converged, info=int(info), n_iterations=n_iterations,
                             residual=residual, solver=solver)


def forward_committor(T, A, B, **solver_kwargs):
    r"""Forward committor between given sets.

    The forward committor u(x) between sets A and B is the probability
    for the chain starting in x to reach B before reaching A.

    Parameters
    ----------
    T : (M, M) ndarray or scipy.sparse matrix
        Transition matrix
    A : array_like
        List of integer state labels for set A
    B : array_like
        List of integer state labels for set B
    **solver_kwargs
        Passed on to :func:`solve_committor`.

    Returns
    -------
    u : (M, ) ndarray
        Vector of forward committor probabilities
    """
    return solve_committor(T, A, B, **solver_kwargs).forward


def backward_committor(qplus):
    r"""Backward committor from the forward committor of a reversible chain.

    For a reversible chain the probability to have last visited A rather than B
    is the complement of the forward committor, :math:`q^-_i = 1 - q^+_i`.

    Parameters
    ----------
    qplus : (M, ) ndarray
        Forward committor

    Returns
    -------
    qminus : (M, ) ndarray
        Backward committor
    """
    return 1.0 - np.asarray(qplus, dtype=float)


def reversed_backward_committor(T, A, B, mu, **solver_kwargs):
    r"""Backward committor between given sets from the time-reversed chain.

    The backward committor u(x) between sets A and B is the
    probability for the chain arriving in x to have come from A last
    rather than from B. It is the forward committor from B to A of the
    time-reversed chain :math:`\tilde{T}_{ij} = \mu_j T_{ji} / \mu_i`.

    Parameters
    ----------
    T : (M, M) ndarray or scipy.sparse matrix
        Transition matrix
    A : array_like
        List of integer state labels for set A
    B : array_like
        List of integer state labels for set B
    mu : (M, ) ndarray
        Equilibrium occupancies. States with vanishing occupancy have no reversed transitions.
    **solver_kwargs
        Passed on to :func:`solve_committor`.

    Returns
    -------
    u : (M, ) ndarray
        Vector of backward committor probabilities

    Notes
    -----
    For a reversible chain this coincides with :func:`backward_committor`.
    """
    T = csr_matrix(T, dtype=float) if not issparse(T) else T.tocsr().astype(float)
    mu = np.asarray(mu, dtype=float)
    if mu.shape != (T.shape[0],):
        raise ValueError(f"Equilibrium occupancies must have shape ({T.shape[0]},), but had shape {mu.shape}.")
    inverse = np.zeros_like(mu)
    np.divide(1., mu, out=inverse, where=mu > 0)
    T_reversed = diags(inverse).dot(T.T.dot(diags(mu))).tocsr()
    return solve_committor(T_reversed, B, A, **solver_kwargs).forward
