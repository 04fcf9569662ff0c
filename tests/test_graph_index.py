import networkx as nx
import numpy as np
import pytest
from numpy.testing import assert_equal, assert_

from tptexplorer.markov import StateIndex, initialize_flux_annotations, add_path_flux, node_attribute_vector
from tptexplorer.util.exceptions import InvalidGraphError


@pytest.fixture
def graph():
    g = nx.DiGraph()
    g.add_node('ab', eqProb=.2)
    g.add_node(('x', 1), eqProb=.3)
    g.add_node(7, eqProb=.5)
    g.add_edge('ab', ('x', 1))
    g.add_edge(('x', 1), 7)
    return g


def test_state_index(graph):
    index = StateIndex(graph)
    assert_equal(len(index), 3)
    assert_equal(index.n_states, 3)
    assert_equal(index.index_of(('x', 1)), 1)
    assert_equal(index.node_of(2), 7)
    assert_equal(index.edge_of((0, 1)), ('ab', ('x', 1)))
    assert_('ab' in index)
    assert_('a' not in index)
    with pytest.raises(ValueError):
        index.index_of('a')


def test_indices_of(graph):
    index = StateIndex(graph)
    assert_equal(index.indices_of('ab'), [0])
    assert_equal(index.indices_of(7), [2])
    assert_equal(index.indices_of([7, 'ab']), [2, 0])
    assert_equal(index.indices_of(('x', 1)), [1])
    assert_equal(index.indices_of([('x', 1), 7]), [1, 2])
    assert_(['ab'] not in index)
    with pytest.raises(ValueError):
        index.indices_of(['ab', 'missing'])


def test_node_attribute_vector(graph):
    assert_equal(node_attribute_vector(graph, 'eqProb'), [.2, .3, .5])


@pytest.mark.parametrize("value", [None, 'x', np.nan, np.inf])
def test_node_attribute_vector_invalid(graph, value):
    graph.nodes[7]['eqProb'] = value
    with pytest.raises(InvalidGraphError):
        node_attribute_vector(graph, 'eqProb')


def test_node_attribute_vector_missing(graph):
    with pytest.raises(InvalidGraphError):
        node_attribute_vector(graph, 'other')


def test_flux_annotations(graph):
    initialize_flux_annotations(graph)
    for node in graph.nodes:
        assert_equal(graph.nodes[node]['flux'], 0.)
    for u, v in graph.edges:
        assert_equal(graph.edges[u, v]['flux'], 0.)

    add_path_flux(graph, [('ab', ('x', 1)), (('x', 1), 7)], .5)
    assert_equal(graph.nodes['ab']['flux'], .5)
    assert_equal(graph.nodes[('x', 1)]['flux'], 1.)
    assert_equal(graph.nodes[7]['flux'], .5)
    assert_equal(graph.edges['ab', ('x', 1)]['flux'], .5)

    add_path_flux(graph, [('ab', ('x', 1))], .25)
    assert_equal(graph.nodes['ab']['flux'], .75)
    assert_equal(graph.nodes[('x', 1)]['flux'], 1.25)

    initialize_flux_annotations(graph)
    assert_equal(graph.nodes[('x', 1)]['flux'], 0.)


def test_add_path_flux_without_annotations(graph):
    add_path_flux(graph, [(('x', 1), 7)], 2., key='f')
    assert_equal(graph.nodes[7]['f'], 2.)
    assert_equal(graph.edges[('x', 1), 7]['f'], 2.)
    assert_('f' not in graph.nodes['ab'])
