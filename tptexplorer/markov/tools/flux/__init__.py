r"""
============================
Transition path theory tools
============================

.. currentmodule:: tptexplorer.markov.tools.flux

This module (:mod:`tptexplorer.markov.tools.flux`) contains functions to compute reactive flux networks and
find dominant reaction pathways in such networks.

Reactive flux
=============

.. autosummary::
   :toctree: generated/

   flux_matrix - TPT flux network
   to_netflux - Netflux from gross flux
   flux_production - Net flux-production for all states
   FluxNetwork - Flux matrix with snapshot and restore

Reaction rates and fluxes
=========================

.. autosummary::
   :toctree: generated/

   total_flux
   rate
   mfpt


Pathway decomposition
=====================

.. autosummary::
   :toctree: generated/

   PathDecomposer
   Pathway
   dominant_pathway
   capacity
   remove_path

"""

from .api import flux_matrix, to_netflux, flux_production
from .api import total_flux, rate, mfpt
from ._network import FluxNetwork
from .pathways import PathDecomposer, Pathway, dominant_pathway, capacity, remove_path
