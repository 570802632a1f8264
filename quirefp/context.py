#
# The rounding and status-flag context, and the numeric signals that update it
#

import copy
import logging

from .formats import Flags, ROUND_HALF_EVEN, ALL_ROUNDINGS


__all__ = ('Context', 'NumericSignal', 'Invalid', 'SignallingNaNOperand', 'InvalidAdd',
           'InvalidMultiply', 'InvalidDivide', 'InvalidNaR', 'DivideByZero', 'Inexact',
           'Overflow', 'Underflow', 'UnderflowExact', 'UnderflowInexact')


logger = logging.getLogger(__name__)


class Context:
    '''The execution context for one reduction.  Carries the rounding mode, status flags and
    whether tininess is detected before or after rounding.'''

    __slots__ = ('rounding', 'flags', 'tininess_after')

    def __init__(self, *, rounding=ROUND_HALF_EVEN, flags=0, tininess_after=True):
        '''rounding is one of the ROUND_ constants and controls the rounding of inexact IEEE
        results.  flags represents the initially raised flags.  tininess_after indicates
        if tininess is detected before or after rounding.
        '''
        if rounding not in ALL_ROUNDINGS:
            raise ValueError(f'unknown rounding mode {rounding!r}')
        self.rounding = rounding
        self.flags = Flags(flags)
        self.tininess_after = tininess_after

    def copy(self):
        '''Return a copy of the context.'''
        return copy.copy(self)

    def fresh(self):
        '''Return a copy of the context with no flags raised.'''
        result = self.copy()
        result.flags = Flags(0)
        return result

    def __repr__(self):
        return (f'<Context rounding={self.rounding} flags={self.flags!r} '
                f'tininess_after={self.tininess_after}>')


#
# Signals
#

class NumericSignal(ArithmeticError):
    '''All numeric exceptions signalled by the pipeline subclass from this.

    NumericSignal expects two arguments:

         def __init__(self, op_tuple, result):

    op_tuple is a tuple of the operation name and operands causing the signal.  result is
    the default result that exception handling delivers; its type depends on the stage
    signalling.

    Signals are never raised.  signal() raises the associated flag in the context and
    returns the default result, which is the only exception handling the engine offers.
    '''

    flag_to_raise = Flags(0)

    @property
    def op_tuple(self):
        return self.args[0]

    @property
    def default_result(self):
        return self.args[1]

    def signal(self, context):
        '''Raise our flag in the context and return the default result.'''
        if self.flag_to_raise:
            logger.debug('%s signalled by %s', self.__class__.__name__, self.op_tuple[0])
        context.flags |= self.flag_to_raise
        return self.default_result


#
# Invalid - sub-exceptions name the operand-domain violation
#

class Invalid(NumericSignal):
    '''Signalled when an operation has no usefully definable result.'''

    flag_to_raise = Flags.INVALID


class SignallingNaNOperand(Invalid):
    '''Signalled when an operand is a signalling NaN.'''


class InvalidAdd(Invalid):
    '''Signalled when infinities of opposite sign meet in an accumulation.'''


class InvalidMultiply(Invalid):
    '''Signalled when multiplying a zero and an infinity.'''


class InvalidDivide(Invalid):
    '''Signalled when dividing two zeros or two infinities.'''


class InvalidNaR(Invalid):
    '''Signalled when a posit NaR reaches an IEEE result.'''


class DivideByZero(NumericSignal, ZeroDivisionError):
    '''A finite non-zero value divided by zero.'''

    flag_to_raise = Flags.DIV_BY_ZERO


class Inexact(NumericSignal):
    '''Signalled when the infinitely precise result cannot be represented.'''

    flag_to_raise = Flags.INEXACT


class Overflow(NumericSignal):
    '''Signalled when, after rounding, the result would have an exponent exceeding e_max.'''

    flag_to_raise = Flags.OVERFLOW

    def signal(self, context):
        '''Standard handling, then signal inexact.'''
        result = super().signal(context)
        return Inexact(self.op_tuple, result).signal(context)


class Underflow(NumericSignal):
    '''Signalled when a tiny non-zero result is detected.  Tininess means the result computed
    as though with unbounded exponent range would lie strictly between ±2^e_min.  Tininess
    can be detected before or after rounding.'''


class UnderflowExact(Underflow):
    '''An exact underflow.  Raises no flag.'''


class UnderflowInexact(Underflow):
    '''An inexact underflow.'''

    flag_to_raise = Flags.UNDERFLOW

    def signal(self, context):
        '''Standard handling, then signal inexact.'''
        result = super().signal(context)
        return Inexact(self.op_tuple, result).signal(context)
