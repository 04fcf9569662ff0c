# pytest specific configuration file containing eg fixtures.
import os
import random

import networkx as nx
import numpy as np
import pytest


class ProgressMock:
    def __init__(self, total=1, **_):
        self.total = total
        self.n = 0
        self.n_close_calls = 0
        self.n_update_calls = 0
        self.description = None

    def set_description(self, description):
        self.description = description

    def update(self, n=1):
        self.n += n
        self.n_update_calls += 1

    def close(self): self.n_close_calls += 1


@pytest.fixture
def fixed_seed():
    random.seed(42)
    np.random.mtrand.seed(42)
    yield
    new_seed = int.from_bytes(os.urandom(16), 'big') % (2 ** 32 - 1)
    random.seed(new_seed)
    np.random.mtrand.seed(new_seed)


@pytest.fixture(params=[False, True], ids=lambda x: f"{'sparse' if x else 'dense'}")
def sparse_mode(request):
    yield request.param


@pytest.fixture
def progress_mock():
    return ProgressMock


@pytest.fixture
def five_state_system():
    """5-state toy system with reference values of a transition path analysis from state 0 to state 4."""
    P = np.array([[0.8, 0.15, 0.05, 0.0, 0.0],
                  [0.1, 0.75, 0.05, 0.05, 0.05],
                  [0.05, 0.1, 0.8, 0.0, 0.05],
                  [0.0, 0.2, 0.0, 0.8, 0.0],
                  [0.0, 0.02, 0.02, 0.0, 0.96]])
    evals, evecs = np.linalg.eig(P.T)
    mu = np.real(evecs[:, np.argmax(np.real(evals))])
    mu /= mu.sum()
    return dict(
        P=P, mu=mu, A=[0], B=[4],
        committor=np.array([0., 0.35714286, 0.42857143, 0.35714286, 1.]),
        backward_committor=np.array([1., 0.65384615, 0.53125, 0.65384615, 0.]),
        gross_flux=np.array([[0., 0.00771792, 0.00308717, 0., 0.],
                             [0., 0., 0.00308717, 0.00257264, 0.00720339],
                             [0., 0.00257264, 0., 0., 0.00360169],
                             [0., 0.00257264, 0., 0., 0.],
                             [0., 0., 0., 0., 0.]]),
        net_flux=np.array([[0., 7.71791768e-03, 3.08716707e-03, 0., 0.],
                           [0., 0., 5.14527845e-04, 0., 7.20338983e-03],
                           [0., 0., 0., 0., 3.60169492e-03],
                           [0., 0., 0., 0., 0.],
                           [0., 0., 0., 0., 0.]]),
        total_flux=0.0108050847458,
        rate=0.0272727272727,
        mfpt=36.6666666667,
        paths=[[0, 1, 4], [0, 2, 4], [0, 1, 2, 4]],
        capacities=[0.00720338983051, 0.00308716707022, 0.000514527845036],
    )


@pytest.fixture
def five_state_graph(five_state_system):
    """The 5-state toy system as state graph with string labels."""
    P, mu = five_state_system['P'], five_state_system['mu']
    graph = nx.DiGraph()
    for i in range(P.shape[0]):
        graph.add_node(f"s{i}", eqProb=mu[i])
    for i, j in zip(*np.nonzero(P)):
        graph.add_edge(f"s{i}", f"s{j}", probability=P[i, j])
    return graph


@pytest.fixture
def chain_graph():
    """Three states a -> b -> c where c is absorbing."""
    graph = nx.DiGraph()
    graph.add_node('a', eqProb=.5)
    graph.add_node('b', eqProb=.25)
    graph.add_node('c', eqProb=.25)
    graph.add_edge('a', 'b', probability=1.)
    graph.add_edge('b', 'c', probability=1.)
    graph.add_edge('c', 'c', probability=0.)
    return graph


def random_walk(n):
    """Unbiased random walk on a chain of n states, its committor from the first to the last state is linear."""
    T = np.zeros((n, n))
    for i in range(1, n - 1):
        T[i, i - 1] = T[i, i + 1] = .5
    T[0, 1] = T[n - 1, n - 2] = 1.
    return T


@pytest.fixture
def walk():
    return random_walk
