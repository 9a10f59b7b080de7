"""
Electron Propagation Package

This package propagates electron wavefunctions and laser fields through a
chain of components (apertures, lenses, knife edges, free space and laser
phase imprints), as used to model ultrafast electron microscopy experiments.
"""

import logging

import jax

# complex128 fields throughout
jax.config.update("jax_enable_x64", True)

from .constants import *
from .exceptions import *
from .config import *
from .grid import *
from .aberrations import *
from .imaging import *
from .waves import *
from .padding import *
from .interpolation import *
from .kernels import *
from .components import *
from .pipeline import *

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
