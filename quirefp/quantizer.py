#
# The input quantizer: projects an operand onto the lattice of the target IEEE format before
# it enters the pipeline.  Only IEEE-Compat mode uses it.
#

from .canonical import Canonical, NumberClass, decode
from .context import InvalidNaR
from .formats import FormatKind
from .rounding import round_ieee


__all__ = ('OP_QUANTIZE', 'quantize')


OP_QUANTIZE = 'quantize'


def quantize(value, fmt, context):
    '''Return the canonical value rounded onto IEEE format fmt.

    Values already decoded from fmt pass through unchanged, except that signalling NaNs
    are quietened.  Zeroes from other formats become +0 and a NaR becomes the default
    quiet NaN.  Everything else is rounded by the context exactly as the IEEE final rounder
    would round it, with the same flags.
    '''
    if fmt.kind != FormatKind.IEEE:
        raise TypeError('the input quantizer targets IEEE formats only')

    if value.fmt == fmt and not value.is_snan():
        return value

    op_tuple = (OP_QUANTIZE, value)
    if value.number_class == NumberClass.ZERO:
        return Canonical.zero(False, fmt)
    if value.number_class == NumberClass.NAR:
        bits = InvalidNaR(op_tuple, fmt.make_default_nan()).signal(context)
    else:
        bits = round_ieee(value, fmt, context, op_tuple)
    return decode(bits, fmt)
