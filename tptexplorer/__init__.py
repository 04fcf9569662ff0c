import logging

__version__ = '0.1.0'

from . import util
from . import markov

from .markov import TPTSession

logging.getLogger(__name__).addHandler(logging.NullHandler())
