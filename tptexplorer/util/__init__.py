r"""
.. currentmodule: tptexplorer.util

===============================================================================
Type utilities
===============================================================================

.. autosummary::
    :toctree: generated/
    :template: class_nomodule.rst

    types.ensure_array
    types.ensure_state_set
    types.state_mask

===============================================================================
Other utilities
===============================================================================
.. autosummary::
    :toctree: generated/
    :template: class_nomodule.rst

    callbacks.supports_progress_interface
    callbacks.ProgressCallback
    callbacks.IterationErrorProgressCallback
    callbacks.IterationReporter

    sparse.remove_negative_entries
    sparse.remove_entries
"""

from . import types
from . import callbacks
from . import exceptions
from . import sparse
