#
# The aligner / multiplier.  Forms exact partial products of canonical operands; nothing here
# rounds.
#

from collections import namedtuple

from .canonical import NumberClass
from .context import (DivideByZero, InvalidDivide, InvalidMultiply, SignallingNaNOperand)


__all__ = ('OP_MULTIPLY', 'OP_DIVIDE', 'OP_TERM', 'PartialProduct', 'exact_product',
           'exact_term', 'exact_quotient', 'nan_key')


OP_MULTIPLY = 'multiply'
OP_DIVIDE = 'divide'
OP_TERM = 'term'


class PartialProduct(namedtuple('PartialProduct', 'sign number_class exponent significand sticky')):
    '''An exact contribution to a quire.

    Finite values have the magnitude significand * 2^exponent, significand being an
    unsigned integer of whatever width the product needs.  sticky is set if non-zero bits
    of unknown value lie below the significand, as for a truncated quotient.  NaN products
    hold the payload of the propagated NaN in significand.
    '''

    @classmethod
    def zero(cls, sign):
        return cls(bool(sign), NumberClass.ZERO, 0, 0, False)

    @classmethod
    def infinity(cls, sign):
        return cls(bool(sign), NumberClass.INFINITY, 0, 0, False)

    @classmethod
    def nan(cls, sign, payload):
        return cls(bool(sign), NumberClass.NAN, 0, payload, False)

    @classmethod
    def nar(cls):
        return cls(True, NumberClass.NAR, 0, 0, False)

    @classmethod
    def invalid(cls, number_class):
        '''The default result of an invalid operation: NaR, or the default quiet NaN.'''
        if number_class == NumberClass.NAR:
            return cls.nar()
        return cls.nan(False, 0)

    def value(self):
        '''Return the exact value of a finite product as a (numerator, denominator) pair.'''
        if self.number_class == NumberClass.ZERO:
            return (0, 1)
        assert self.number_class == NumberClass.FINITE
        n = -self.significand if self.sign else self.significand
        if self.exponent >= 0:
            return n << self.exponent, 1
        return n, 1 << -self.exponent


def nan_key(sign, payload):
    '''An ordering on NaNs.  The NaN propagated from several is the greatest, so that the
    choice does not depend on operand order.'''
    return (payload, sign)


def _propagate_nan(operands, op_tuple, context):
    '''Return the NaN partial product for operands of which at least one is a NaN and none is
    a NaR.  Signal SignallingNaNOperand if any NaN is signalling.'''
    nans = [value for value in operands if value.is_nan()]
    nan = max(nans, key=lambda value: nan_key(value.sign, value.significand))
    result = PartialProduct.nan(nan.sign, nan.significand)
    if any(value.signalling for value in nans):
        result = SignallingNaNOperand(op_tuple, result).signal(context)
    return result


def exact_term(value, context):
    '''Return a canonical value as a partial product, as if multiplied by one.'''
    number_class = value.number_class
    if number_class == NumberClass.FINITE:
        return PartialProduct(value.sign, number_class, value.exponent_int(),
                              value.significand, value.sticky)
    if number_class == NumberClass.ZERO:
        return PartialProduct.zero(value.sign)
    if number_class == NumberClass.INFINITY:
        return PartialProduct.infinity(value.sign)
    if number_class == NumberClass.NAN:
        return _propagate_nan((value, ), (OP_TERM, value), context)
    return PartialProduct.nar()


def exact_product(lhs, rhs, context, invalid=NumberClass.NAN):
    '''Return the exact product of two canonical values.

    NaR beats NaN which beats everything else.  Zero times infinity is an invalid operation
    whose result is of class invalid: NumberClass.NAN or NumberClass.NAR.
    '''
    op_tuple = (OP_MULTIPLY, lhs, rhs)
    classes = {lhs.number_class, rhs.number_class}
    sign = lhs.sign ^ rhs.sign

    if NumberClass.NAR in classes:
        return PartialProduct.nar()
    if NumberClass.NAN in classes:
        return _propagate_nan((lhs, rhs), op_tuple, context)
    if NumberClass.INFINITY in classes:
        if NumberClass.ZERO in classes:
            return InvalidMultiply(op_tuple, PartialProduct.invalid(invalid)).signal(context)
        return PartialProduct.infinity(sign)
    if NumberClass.ZERO in classes:
        return PartialProduct.zero(sign)

    # Both finite and non-zero: the significand product is exact at full width
    return PartialProduct(sign, NumberClass.FINITE,
                          lhs.exponent_int() + rhs.exponent_int(),
                          lhs.significand * rhs.significand,
                          lhs.sticky or rhs.sticky)


def exact_quotient(lhs, rhs, precision, context, invalid=NumberClass.NAN,
                   min_exponent=None):
    '''Return lhs / rhs truncated to at least precision + 1 significant bits; a non-zero
    remainder sets the sticky bit.  This is enough for a single correct rounding to any
    format of the given precision.

    If min_exponent is given the quotient is also developed down to the bit of weight
    2^min_exponent, so that a quire whose least significant bit has that weight receives
    every bit of the quotient it can hold.
    '''
    op_tuple = (OP_DIVIDE, lhs, rhs)
    classes = {lhs.number_class, rhs.number_class}
    sign = lhs.sign ^ rhs.sign

    if NumberClass.NAR in classes:
        return PartialProduct.nar()
    if NumberClass.NAN in classes:
        return _propagate_nan((lhs, rhs), op_tuple, context)

    if lhs.is_infinite():
        # infinity / infinity is an invalid op; infinity / finite is infinity
        if rhs.is_infinite():
            return InvalidDivide(op_tuple, PartialProduct.invalid(invalid)).signal(context)
        return PartialProduct.infinity(sign)
    if rhs.is_infinite():
        return PartialProduct.zero(sign)
    if rhs.is_zero():
        # 0 / 0 -> invalid;  finite / 0 -> infinity
        if lhs.is_zero():
            return InvalidDivide(op_tuple, PartialProduct.invalid(invalid)).signal(context)
        return DivideByZero(op_tuple, PartialProduct.infinity(sign)).signal(context)
    if lhs.is_zero():
        return PartialProduct.zero(sign)

    lhs_sig = lhs.significand
    rhs_sig = rhs.significand
    shift = max(0, precision + 1 + rhs_sig.bit_length() - lhs_sig.bit_length())
    if min_exponent is not None:
        shift = max(shift, lhs.exponent_int() - rhs.exponent_int() - min_exponent)
    quotient, remainder = divmod(lhs_sig << shift, rhs_sig)
    return PartialProduct(sign, NumberClass.FINITE,
                          lhs.exponent_int() - rhs.exponent_int() - shift,
                          quotient,
                          bool(remainder) or lhs.sticky or rhs.sticky)
