r"""
.. currentmodule: tptexplorer.markov

===============================================================================
Transition path analysis of state graphs
===============================================================================

.. autosummary::
    :toctree: generated/
    :template: class_nomodule.rst

    TPTSession

    ReactiveFlux
    reactive_flux

    transition_matrix_from_graph

===============================================================================
Utilities
===============================================================================

.. autosummary::
    :toctree: generated/
    :template: class_nomodule.rst

    StateIndex
    initialize_flux_annotations
"""

from . import tools

from ._graph import StateIndex, initialize_flux_annotations, add_path_flux, node_attribute_vector
from ._transition_matrix import transition_matrix_from_graph
from ._reactive_flux import ReactiveFlux, reactive_flux
from ._session import TPTSession
