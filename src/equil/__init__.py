"""
*EQUIL*

Hydrostatic equilibrium initialization of black-oil reservoir states.
"""

from ._precision import *  # noqa
from .config import *  # noqa
from .constants import *  # noqa
from .errors import *  # noqa
from .types import *  # noqa
from .grids import *  # noqa
from .properties import *  # noqa
from .records import *  # noqa
from .regions import *  # noqa
from .density import *  # noqa
from .miscibility import *  # noqa
from .pressures import *  # noqa
from .saturations import *  # noqa
from .ratios import *  # noqa
from .initialization import *  # noqa
from .utils import *  # noqa

__version__ = "0.1.0"
