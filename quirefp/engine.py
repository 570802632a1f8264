#
# The pipeline.  A Reduction wires decoder, quantizer, multiplier, quire and final rounder
# together as the mode dictates; the operations below are reductions of fixed shape.
#

import logging

import attr

from .canonical import NumberClass, decode
from .context import Context
from .formats import Flags, FormatKind
from .mode import configure
from .product import exact_product, exact_quotient, exact_term
from .quantizer import quantize
from .quire import DEFAULT_BANK_WIDTH, Quire, QuireLayout


__all__ = ('ReductionResult', 'Reduction', 'dot', 'fsum', 'add', 'subtract', 'multiply',
           'divide', 'fma', 'convert')


logger = logging.getLogger(__name__)


@attr.s(slots=True, frozen=True)
class ReductionResult:
    '''The outcome of one reduction: the result encoding in format fmt, the exception flags
    raised (always empty for posit results), and how many times a final rounder ran.'''

    bits = attr.ib()
    fmt = attr.ib()
    flags = attr.ib()
    mode = attr.ib()
    roundings = attr.ib()

    def value(self):
        '''Return the result decoded to a Canonical value.'''
        return decode(self.bits, self.fmt)

    def is_nar(self):
        return self.fmt.kind == FormatKind.POSIT and self.bits == self.fmt.nar


class Reduction:
    '''One reduction through the pipeline.

    Operands are raw encodings of format fmt.  Add products, terms and quotients in any
    number, then call result() once.

    In MPP and Posit modes every contribution enters one quire and a single final rounding
    produces the result, so the result does not depend on the order of contributions.  In
    IEEE-Compat mode operands are first quantized onto the result format, and each
    contribution is a fused step acc = round(acc + contribution) through a fresh quire:
    the semantics of scalar IEEE code.
    '''

    def __init__(self, fmt, mode, context=None, result_fmt=None,
                 bank_width=DEFAULT_BANK_WIDTH):
        '''context supplies the rounding mode and tininess detection, and receives the
        reduction's flags when it completes.  If None a default context is used.'''
        self.config = configure(mode)
        self.fmt = fmt
        self.result_fmt = self.config.result_format(fmt, result_fmt)
        self.context = context if context is not None else Context()
        # The flags of this reduction alone
        self.local = self.context.fresh()
        if self.config.quantize:
            self.layout = QuireLayout.for_formats(self.result_fmt, bank_width=bank_width)
        else:
            self.layout = QuireLayout.for_formats(fmt, self.result_fmt, bank_width=bank_width)
        self.roundings = 0
        self.terms = 0
        self._quire = None if self.config.sequential else self._new_quire()
        self._bits = None
        self._done = False
        logger.debug('%s reduction of %r to %r with a %d-bit quire', self.config.mode.name,
                     fmt, self.result_fmt, self.layout.width)

    def _new_quire(self):
        return Quire(self.layout, self.config.invalid)

    def _operand(self, raw, negate=False):
        value = decode(raw, self.fmt)
        if self.config.quantize:
            value = quantize(value, self.result_fmt, self.local)
        # NaNs and NaR pass through negation unchanged
        if negate and value.number_class not in (NumberClass.NAN, NumberClass.NAR):
            value = value._replace(sign=not value.sign)
        return value

    def add_product(self, lhs, rhs):
        '''Accumulate lhs * rhs.'''
        self._check_open()
        product = exact_product(self._operand(lhs), self._operand(rhs), self.local,
                                self.config.invalid)
        self._deposit(product)

    def add_term(self, value, negate=False):
        '''Accumulate value, or its negation if negate is True.'''
        self._check_open()
        self._deposit(exact_term(self._operand(value, negate), self.local))

    def add_quotient(self, lhs, rhs):
        '''Accumulate lhs / rhs.  The quotient is exact down to the quire's least significant
        bit; a non-zero remainder survives as the quire's sticky bit.'''
        self._check_open()
        quotient = exact_quotient(self._operand(lhs), self._operand(rhs),
                                  self.result_fmt.precision + 2, self.local,
                                  self.config.invalid, self.layout.base_exponent)
        self._deposit(quotient)

    def _check_open(self):
        if self._done:
            raise RuntimeError('reduction has already produced its result')

    def _deposit(self, product):
        self.terms += 1
        if not self.config.sequential:
            self._quire.accumulate(product)
            return
        quire = self._new_quire()
        if self._bits is not None:
            quire.accumulate(exact_term(decode(self._bits, self.result_fmt), self.local))
        quire.accumulate(product)
        self._bits = self._round(quire)

    def _round(self, quire):
        self.roundings += 1
        value = quire.finalize(self.local)
        return self.config.rounder(value, self.result_fmt, self.local)

    def result(self):
        '''Round the reduction and return a ReductionResult.  The reduction's flags are also
        raised in the caller's context.'''
        self._check_open()
        self._done = True
        if not self.config.sequential:
            bits = self._round(self._quire)
        elif self._bits is None:
            # An empty reduction rounds an empty quire
            bits = self._round(self._new_quire())
        else:
            bits = self._bits

        flags = self.local.flags if self.config.reports_flags else Flags(0)
        self.context.flags |= flags
        logger.debug('%s reduction of %d terms gave %#x flags=%r', self.config.mode.name,
                     self.terms, bits, flags)
        return ReductionResult(bits=bits, fmt=self.result_fmt, flags=flags,
                               mode=self.config.mode, roundings=self.roundings)


def dot(xs, ys, fmt, mode, context=None, result_fmt=None):
    '''Return the dot product of two equal-length operand sequences.'''
    xs, ys = list(xs), list(ys)
    if len(xs) != len(ys):
        raise ValueError(f'operand sequences differ in length: {len(xs)} and {len(ys)}')
    reduction = Reduction(fmt, mode, context, result_fmt)
    for x, y in zip(xs, ys):
        reduction.add_product(x, y)
    return reduction.result()


def fsum(xs, fmt, mode, context=None, result_fmt=None):
    '''Return the sum of a sequence of operands.'''
    reduction = Reduction(fmt, mode, context, result_fmt)
    for x in xs:
        reduction.add_term(x)
    return reduction.result()


def add(lhs, rhs, fmt, mode, context=None, result_fmt=None):
    '''Return lhs + rhs.'''
    return fsum((lhs, rhs), fmt, mode, context, result_fmt)


def subtract(lhs, rhs, fmt, mode, context=None, result_fmt=None):
    '''Return lhs - rhs.'''
    reduction = Reduction(fmt, mode, context, result_fmt)
    reduction.add_term(lhs)
    reduction.add_term(rhs, negate=True)
    return reduction.result()


def multiply(lhs, rhs, fmt, mode, context=None, result_fmt=None):
    '''Return lhs * rhs.'''
    return dot((lhs, ), (rhs, ), fmt, mode, context, result_fmt)


def divide(lhs, rhs, fmt, mode, context=None, result_fmt=None):
    '''Return lhs / rhs.'''
    reduction = Reduction(fmt, mode, context, result_fmt)
    reduction.add_quotient(lhs, rhs)
    return reduction.result()


def fma(lhs, rhs, addend, fmt, mode, context=None, result_fmt=None):
    '''Return lhs * rhs + addend with a single rounding of the sum.'''
    reduction = Reduction(fmt, mode, context, result_fmt)
    # The addend goes first so that, in IEEE-Compat mode, the product and addend meet in
    # one fused step
    reduction.add_term(addend)
    reduction.add_product(lhs, rhs)
    return reduction.result()


def convert(value, fmt, mode, context=None, result_fmt=None):
    '''Return value converted to the mode's result format.'''
    return fsum((value, ), fmt, mode, context, result_fmt)
