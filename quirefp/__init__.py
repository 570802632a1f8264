#
# Bit-exact tri-mode arithmetic: IEEE-754 compatible, mixed-precision and posit reductions
# over a shared exact quire
#

from .formats import *
from .errors import *
from .context import *
from .canonical import *
from .rounding import *
from .quantizer import *
from .product import *
from .quire import *
from .mode import *
from .engine import *

from . import (canonical, context, engine, errors, formats, mode, product, quantizer, quire,
               rounding)


__version__ = '0.1.0'

__all__ = (formats.__all__ + errors.__all__ + context.__all__ + canonical.__all__ +
           rounding.__all__ + quantizer.__all__ + product.__all__ + quire.__all__ +
           mode.__all__ + engine.__all__)
