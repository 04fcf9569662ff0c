r"""Unit tests for the reactive flux computation and the ReactiveFlux object."""
import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_equal, assert_
from scipy.sparse import csr_matrix, issparse

from tptexplorer.markov import reactive_flux, ReactiveFlux
from tptexplorer.markov.tools.flux import FluxNetwork, flux_matrix, to_netflux, flux_production, total_flux, rate, \
    mfpt


def _dense(matrix):
    return matrix.toarray() if issparse(matrix) or isinstance(matrix, FluxNetwork) else np.asarray(matrix)


@pytest.fixture
def tpt(five_state_system, sparse_mode):
    P = five_state_system['P']
    if sparse_mode:
        P = csr_matrix(P)
    return reactive_flux(P, five_state_system['A'], five_state_system['B'],
                         stationary_distribution=five_state_system['mu'], netflux_mode='difference',
                         backward='reversed')


def test_reference_values(tpt, five_state_system):
    assert_allclose(tpt.forward_committor, five_state_system['committor'], atol=1e-7)
    assert_allclose(tpt.backward_committor, five_state_system['backward_committor'], atol=1e-7)
    assert_allclose(_dense(tpt.gross_flux), five_state_system['gross_flux'], atol=1e-8)
    assert_allclose(_dense(tpt.net_flux), five_state_system['net_flux'], atol=1e-8)
    assert_allclose(tpt.total_flux, five_state_system['total_flux'], rtol=1e-8)
    assert_allclose(tpt.rate, five_state_system['rate'], rtol=1e-8)
    assert_allclose(tpt.mfpt, five_state_system['mfpt'], rtol=1e-8)


def test_sets(tpt):
    assert_equal(tpt.n_states, 5)
    assert_equal(tpt.source_states, [0])
    assert_equal(tpt.target_states, [4])
    assert_equal(tpt.intermediate_states, [1, 2, 3])


def test_pathways(tpt, five_state_system):
    paths, capacities = tpt.pathways()
    assert_equal(len(paths), len(five_state_system['paths']))
    for path, ref_path in zip(paths, five_state_system['paths']):
        assert_equal(path, ref_path)
    assert_allclose(capacities, five_state_system['capacities'], rtol=1e-8)
    assert_allclose(np.sum(capacities), tpt.total_flux, rtol=1e-8)


def test_major_flux(tpt, five_state_system):
    paths, capacities = tpt.pathways(fraction=.95)
    assert_equal(len(paths), 2)
    ref_major_flux = np.array([[0., 0.00720339, 0.00308717, 0., 0.],
                               [0., 0., 0., 0., 0.00720339],
                               [0., 0., 0., 0., 0.00308717],
                               [0., 0., 0., 0., 0.],
                               [0., 0., 0., 0., 0.]])
    assert_allclose(tpt.major_flux(fraction=.95), ref_major_flux, atol=1e-8)


def test_complement_backward_committor(five_state_system):
    tpt = reactive_flux(five_state_system['P'], [0], [4], stationary_distribution=five_state_system['mu'])
    assert_allclose(tpt.backward_committor, 1. - tpt.forward_committor)


def test_given_committors(five_state_system):
    P, mu = five_state_system['P'], five_state_system['mu']
    tpt = reactive_flux(P, [0], [4], stationary_distribution=mu, qminus=five_state_system['backward_committor'],
                        qplus=five_state_system['committor'], netflux_mode='difference')
    assert_allclose(_dense(tpt.net_flux), five_state_system['net_flux'], atol=1e-7)


def test_invalid_backward_mode(five_state_system):
    with pytest.raises(ValueError):
        reactive_flux(five_state_system['P'], [0], [4], five_state_system['mu'], backward='forward')


def test_invalid_stationary_distribution(five_state_system):
    with pytest.raises(ValueError):
        reactive_flux(five_state_system['P'], [0], [4], np.ones(4) / 4.)


def test_flux_without_distribution():
    flux = ReactiveFlux([0], [1], net_flux=np.array([[0., 1.], [0., 0.]]))
    assert_equal(flux.total_flux, 1.)
    assert_(flux.rate is None)


@pytest.mark.parametrize("mode,expected", [
    ('literal', [[0., 3., 0.], [0., 0., 2.], [0., 2., 0.]]),
    ('difference', [[0., 2., 0.], [0., 0., 0.], [0., 0., 0.]]),
])
def test_netflux_modes(sparse_mode, mode, expected):
    gross = np.array([[0., 3., 0.], [1., 0., 2.], [0., 2., 0.]])
    if sparse_mode:
        gross = csr_matrix(gross)
    net = to_netflux(gross, mode=mode)
    assert_equal(issparse(net), sparse_mode)
    assert_equal(_dense(net), expected)
    if sparse_mode:
        # dropped entries are not stored
        assert_equal(net.nnz, np.count_nonzero(expected))


def test_unknown_netflux_mode():
    with pytest.raises(ValueError):
        to_netflux(np.zeros((2, 2)), mode='max')


def test_flux_matrix(sparse_mode):
    T = np.array([[.5, .5, 0.], [.25, .5, .25], [0., .5, .5]])
    pi = np.array([.25, .5, .25])
    qplus = np.array([0., .5, 1.])
    qminus = 1. - qplus
    if sparse_mode:
        T = csr_matrix(T)
    gross = flux_matrix(T, pi, qminus, qplus, netflux=False)
    expected = np.array([[0., .25 * .5 * .5, 0.],
                         [.5 * .5 * .25 * 0., 0., .5 * .5 * .25 * 1.],
                         [0., 0., 0.]])
    assert_allclose(_dense(gross), expected)
    if sparse_mode:
        assert_equal(gross.diagonal(), 0.)
        assert_equal(gross.nnz, 2)
    net = flux_matrix(T, pi, qminus, qplus)
    assert_allclose(_dense(net), expected)


def test_flux_production_and_totals():
    F = np.array([[0., 2., 1.], [0., 0., 2.], [0., 0., 0.]])
    assert_equal(flux_production(F), [3., 0., -3.])
    assert_equal(total_flux(F), 3.)
    assert_equal(total_flux(csr_matrix(F), [0]), 3.)
    assert_equal(total_flux(F, [0, 1]), 3.)
    pi = np.array([.5, .25, .25])
    qminus = np.array([1., .5, 0.])
    assert_allclose(rate(3., pi, qminus), 3. / .625)
    assert_allclose(mfpt(3., pi, qminus), .625 / 3.)


def test_flux_matrix_drops_negative_entries(sparse_mode):
    T = np.array([[0., 1., 0.], [.5, 0., .5], [0., 1., 0.]])
    pi = np.array([.25, .5, .25])
    # iterate of a solve which did not converge, overshooting at the intermediate state
    qplus = np.array([0., -.2, 1.])
    if sparse_mode:
        T = csr_matrix(T)
    gross = _dense(flux_matrix(T, pi, 1. - qplus, qplus, netflux=False))
    assert_(np.all(gross >= 0))
    assert_equal(gross[0, 1], 0.)
    assert_allclose(gross[1, 2], .5 * 1.2 * .5)
    FluxNetwork(gross)


def test_net_flux_is_read_only(tpt):
    assert_(isinstance(tpt.net_flux, FluxNetwork))
    assert_(not tpt.net_flux.writeable)
    # pathway extraction does not consume the network
    first = tpt.pathways()
    second = tpt.pathways()
    assert_allclose(first[1], second[1])


def test_decomposer(tpt, five_state_system):
    decomposer = tpt.decomposer()
    pathway = decomposer.next_pathway()
    assert_equal(pathway.states, five_state_system['paths'][0])
    assert_allclose(tpt.net_flux.toarray(), five_state_system['net_flux'], atol=1e-8)


def test_mfpt_without_rate():
    flux = ReactiveFlux([0], [1], net_flux=np.array([[0., 1.], [0., 0.]]))
    assert_(flux.mfpt is None)


def test_mfpt_without_reactive_flux():
    T = np.array([[1., 0., 0.], [0., .5, .5], [0., .5, .5]])
    flux = reactive_flux(T, [0], [2], stationary_distribution=np.array([.5, .25, .25]))
    assert_equal(flux.total_flux, 0.)
    assert_equal(flux.rate, 0.)
    assert_equal(flux.mfpt, np.inf)
    assert_equal(mfpt(0., np.array([.5, .5]), np.array([1., 0.])), np.inf)
