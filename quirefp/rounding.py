#
# The final rounders.  Each turns a canonical value, typically a finalized quire, into an
# encoding of the target format with a single rounding.
#

from .canonical import NumberClass
from .context import (Context, Inexact, InvalidNaR, Overflow, SignallingNaNOperand,
                      UnderflowExact, UnderflowInexact)
from .formats import (FormatKind, LF_EXACTLY_ZERO, ROUND_HALF_EVEN, round_up,
                      split_significand)


__all__ = ('OP_ROUND', 'round_ieee', 'round_posit', 'encode')


OP_ROUND = 'round'


def _lost(guard, round_bit, sticky):
    return guard * 2 + bool(round_bit or sticky)


def round_ieee(value, fmt, context, op_tuple=None):
    '''Return the encoding in IEEE format fmt of the canonical value, correctly rounded by the
    context.  Exceptions are signalled in the context.'''
    op_tuple = op_tuple or (OP_ROUND, value)
    number_class = value.number_class

    if number_class == NumberClass.FINITE:
        return _round_ieee_finite(value, fmt, context, op_tuple)
    if number_class == NumberClass.ZERO:
        return fmt.make_zero(value.sign)
    if number_class == NumberClass.INFINITY:
        return fmt.make_infinity(value.sign)
    if number_class == NumberClass.NAN:
        result = fmt.make_nan(value.sign, False, value.significand)
        if value.signalling:
            result = SignallingNaNOperand(op_tuple, result).signal(context)
        return result
    # A NaR is the invalid marker of posit arithmetic
    return InvalidNaR(op_tuple, fmt.make_default_nan()).signal(context)


def _round_ieee_finite(value, fmt, context, op_tuple):
    sign = value.sign
    significand = value.significand
    size = significand.bit_length()
    scale = value.exponent_int() + size - 1

    # Keep precision bits, fewer if the result is subnormal.  A non-positive keep means
    # the value lies below the smallest subnormal's lattice.
    keep = fmt.precision - max(0, fmt.e_min - scale)
    drop = size - keep
    kept, guard, round_bit, sticky = value.truncate(keep)
    lost = _lost(guard, round_bit, sticky)

    if round_up(context.rounding, lost, sign, bool(kept & 1)):
        kept += 1
        # If the significand now overflows, halve it and increment the exponent
        if kept > fmt.max_significand:
            kept >>= 1
            drop += 1

    # The exponent of the integer bit position
    exponent = value.exponent_int() + drop + fmt.precision - 1
    if exponent > fmt.e_max:
        return Overflow(op_tuple, fmt.make_overflow_value(context.rounding, sign)).signal(context)

    if kept >= fmt.int_bit:
        result = fmt.pack(sign, exponent + fmt.bias, kept - fmt.int_bit)
    else:
        result = fmt.pack(sign, 0, kept)

    if context.tininess_after:
        is_tiny = _is_tiny_after_rounding(value, scale, fmt, context)
    else:
        is_tiny = scale < fmt.e_min

    is_inexact = lost != LF_EXACTLY_ZERO
    if is_tiny:
        cls = UnderflowInexact if is_inexact else UnderflowExact
        return cls(op_tuple, result).signal(context)
    if is_inexact:
        return Inexact(op_tuple, result).signal(context)
    return result


def _is_tiny_after_rounding(value, scale, fmt, context):
    '''Return True if the value rounded to the format's precision with an unbounded exponent
    range lies strictly between ±2^e_min.'''
    if scale >= fmt.e_min:
        return False
    if scale < fmt.e_min - 1:
        return True
    kept, guard, round_bit, sticky = value.truncate(fmt.precision)
    if round_up(context.rounding, _lost(guard, round_bit, sticky), value.sign, bool(kept & 1)):
        kept += 1
    # Carrying out of the precision reaches 2^e_min
    return kept <= fmt.max_significand


def round_posit(value, fmt, context=None, op_tuple=None):
    '''Return the posit encoding in format fmt of the canonical value, rounded to nearest with
    ties to even.

    Posits have no status flags: the context is accepted so the rounders are
    interchangeable, but is never updated.  NaNs, infinities and NaRs all become NaR.
    '''
    number_class = value.number_class
    if number_class == NumberClass.ZERO:
        return 0
    if number_class != NumberClass.FINITE:
        return fmt.nar
    magnitude = _posit_magnitude(value, fmt)
    return fmt.negate(magnitude) if value.sign else magnitude


def _posit_magnitude(value, fmt):
    '''Return the pattern of the posit nearest the absolute value of a finite canonical
    value.'''
    scale = value.scale()
    # Never round to zero or to NaR
    if scale >= fmt.max_scale:
        return fmt.maxpos
    if scale < -fmt.max_scale:
        return 1

    regime = scale >> fmt.es
    exponent_field = scale & (fmt.useed_log2 - 1)
    if regime >= 0:
        # regime + 1 ones terminated by a zero
        regime_bits = ((1 << (regime + 1)) - 1) << 1
        regime_length = regime + 2
    else:
        # -regime zeros terminated by a one
        regime_bits = 1
        regime_length = 1 - regime

    significand = value.significand
    frac_bits = significand.bit_length() - 1
    fraction = significand - (1 << frac_bits)

    # Lay out the untruncated pattern, then round it to the width left after the sign bit.
    # The fraction available shrinks as the regime grows.
    body = (((regime_bits << fmt.es) | exponent_field) << frac_bits) | fraction
    drop = regime_length + fmt.es + frac_bits - (fmt.width - 1)
    kept, guard, round_bit, sticky = split_significand(body, drop, value.sticky)
    if round_up(ROUND_HALF_EVEN, _lost(guard, round_bit, sticky), False, bool(kept & 1)):
        kept += 1
    return kept


def encode(value, fmt):
    '''Return the encoding of a canonical value in fmt, rounding to nearest if necessary.

    Unlike round_ieee, signalling NaNs stay signalling, so decoding then encoding any
    pattern reproduces it.'''
    if fmt.kind == FormatKind.POSIT:
        return round_posit(value, fmt)
    if value.number_class == NumberClass.NAN:
        return fmt.make_nan(value.sign, value.signalling, value.significand)
    return round_ieee(value, fmt, Context())
