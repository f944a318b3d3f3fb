"""External property collaborators: PVT and capillary pressure evaluators."""

from .base import *  # noqa
from .capillary_pressures import *  # noqa
from .evaluator import *  # noqa
from .pvt import *  # noqa
