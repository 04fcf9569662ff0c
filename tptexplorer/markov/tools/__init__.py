r"""
The numerical core of a transition path analysis: committors (:mod:`tptexplorer.markov.tools.analysis`) and
reactive flux networks with their pathway decomposition (:mod:`tptexplorer.markov.tools.flux`).
"""
from . import analysis
from . import flux
