#
# The quire: an exact, banked, two's complement fixed-point accumulator
#

import logging

import attr

from .canonical import Canonical, NumberClass
from .context import InvalidAdd
from .errors import ConfigurationError, QuireOverflow
from .formats import FormatKind, ROUND_FLOOR
from .product import nan_key


__all__ = ('OP_FINALIZE', 'DEFAULT_BANK_WIDTH', 'CARRY_BITS', 'QuireLayout', 'Quire',
           'quire_width')


logger = logging.getLogger(__name__)

OP_FINALIZE = 'finalize'

DEFAULT_BANK_WIDTH = 64

# Headroom above the largest product so that long reductions cannot overflow
CARRY_BITS = 30


def _product_range(fmt):
    '''Return (lo, hi): the weight of the least significant bit any product or quotient of two
    values of fmt can have, and a weight no bit of their magnitudes reaches.'''
    if fmt.kind == FormatKind.POSIT:
        # minpos^2 up to maxpos^2 = maxpos / minpos
        return -2 * fmt.max_scale, 2 * fmt.max_scale + 1
    lsb = fmt.e_min - fmt.precision + 1
    # Products lie below 2^(2 * (e_max + 1)).  The largest quotient, largest finite over
    # smallest subnormal, lies below 2^(e_max + 1 - lsb).
    return 2 * lsb, max(2 * (fmt.e_max + 1), fmt.e_max + 1 - lsb)


@attr.s(slots=True, frozen=True)
class QuireLayout:
    '''The geometry of a quire: width bits in banks of bank_width bits whose least
    significant bit has weight 2^base_exponent.'''

    width = attr.ib()
    bank_width = attr.ib()
    base_exponent = attr.ib()

    @width.validator
    def _check_width(self, _attribute, value):
        if value % self.bank_width:
            raise ConfigurationError(f'quire width {value} is not a whole number of '
                                     f'{self.bank_width}-bit banks')

    @property
    def bank_count(self):
        return self.width // self.bank_width

    @classmethod
    def for_formats(cls, *fmts, bank_width=DEFAULT_BANK_WIDTH):
        '''Return the layout of a quire accumulating products and quotients of values of the
        given formats.

        A single posit format gets the standard width 2^(es + 2) * n.  Otherwise the width
        covers the product range of every format plus CARRY_BITS and a sign bit.  Widths
        are rounded up to whole banks; quires narrower than bank_width are one bank.
        '''
        if not fmts:
            raise ValueError('at least one format is required')
        if not isinstance(bank_width, int) or bank_width < 1:
            raise ValueError('bank_width must be a positive integer')
        ranges = [_product_range(fmt) for fmt in fmts]
        lo = min(pair[0] for pair in ranges)
        hi = max(pair[1] for pair in ranges)
        width = hi - lo + CARRY_BITS + 1
        if len(set(fmts)) == 1 and fmts[0].kind == FormatKind.POSIT:
            fmt = fmts[0]
            width = max((1 << (fmt.es + 2)) * fmt.width, hi - lo + 2)
        bank_width = min(bank_width, width)
        width = -(-width // bank_width) * bank_width
        return cls(width=width, bank_width=bank_width, base_exponent=lo)


def quire_width(fmt, bank_width=DEFAULT_BANK_WIDTH):
    '''Return the width in bits of the quire for reductions over fmt.'''
    return QuireLayout.for_formats(fmt, bank_width=bank_width).width


class Quire:
    '''An exact accumulator of partial products.

    The banks, least significant first, read together as one width-bit two's complement
    integer always equal the exact sum of the finite partial products accumulated, in
    units of 2^base_exponent.  Bits below the least significant bank are kept only as a
    sticky bit.  Infinities, NaNs, NaR and the signs of zero contributions are tracked
    beside the banks.

    Accumulation is associative and commutative: the state after any permutation of the
    same partial products is identical.  A quire is finalized exactly once.
    '''

    __slots__ = ('layout', 'invalid', 'banks', 'sticky_signs', 'nan', 'nar', 'infinities',
                 'zero_signs', 'nonzero', 'consumed')

    def __init__(self, layout, invalid=NumberClass.NAN):
        '''invalid is the class of the value delivered when infinities of opposite signs are
        accumulated: NumberClass.NAN or NumberClass.NAR.'''
        self.layout = layout
        self.invalid = invalid
        self.banks = [0] * layout.bank_count
        self.sticky_signs = set()
        self.nan = None
        self.nar = False
        self.infinities = set()
        self.zero_signs = set()
        self.nonzero = False
        self.consumed = False

    def __repr__(self):
        return (f'<Quire width={self.layout.width} value={self.to_int()} '
                f'sticky={self.sticky}>')

    @property
    def sticky(self):
        return bool(self.sticky_signs)

    def _check_open(self):
        if self.consumed:
            raise RuntimeError('quire has already been consumed')

    def is_negative(self):
        return bool(self.banks[-1] >> (self.layout.bank_width - 1))

    def to_int(self):
        '''Return the banks as a signed integer, in units of 2^base_exponent.'''
        value = 0
        for bank in reversed(self.banks):
            value = (value << self.layout.bank_width) | bank
        if self.is_negative():
            value -= 1 << self.layout.width
        return value

    def accumulate(self, product):
        '''Add a partial product exactly.'''
        self._check_open()
        number_class = product.number_class
        if number_class == NumberClass.FINITE:
            self.nonzero = True
            self._add_finite(product.sign, product.exponent, product.significand,
                             product.sticky)
        elif number_class == NumberClass.ZERO:
            self.zero_signs.add(product.sign)
        elif number_class == NumberClass.INFINITY:
            self.infinities.add(product.sign)
        elif number_class == NumberClass.NAN:
            key = nan_key(product.sign, product.significand)
            if self.nan is None or key > self.nan:
                self.nan = key
        else:
            self.nar = True

    def merge(self, other):
        '''Add the contents of another quire of the same layout and consume it.'''
        self._check_open()
        other._check_open()
        if other.layout != self.layout:
            raise ConfigurationError('cannot merge quires of different layouts')
        other.consumed = True

        negative = self.is_negative()
        self._add_banks(0, other.to_int() % (1 << self.layout.width))
        self._check_overflow(negative, other.is_negative())
        self.sticky_signs |= other.sticky_signs
        if other.nan is not None and (self.nan is None or other.nan > self.nan):
            self.nan = other.nan
        self.nar |= other.nar
        self.infinities |= other.infinities
        self.zero_signs |= other.zero_signs
        self.nonzero |= other.nonzero

    def _add_finite(self, sign, exponent, significand, sticky):
        layout = self.layout
        offset = exponent - layout.base_exponent
        if offset < 0:
            # Compress bits below the least significant bank into the sticky bit
            if significand & ((1 << -offset) - 1):
                sticky = True
            significand >>= -offset
            offset = 0
        if sticky:
            self.sticky_signs.add(sign)
        if not significand:
            return
        if offset + significand.bit_length() >= layout.width:
            logger.debug('partial product 2^%d * %d exceeds the quire', exponent, significand)
            raise QuireOverflow(f'partial product does not fit a {layout.width}-bit quire')

        # Only the banks the significand spans, and those a carry reaches, are touched
        index, bit = divmod(offset, layout.bank_width)
        chunk = significand << bit
        negative = self.is_negative()
        if sign:
            self._subtract_banks(index, chunk)
        else:
            self._add_banks(index, chunk)
        self._check_overflow(negative, sign)

    def _check_overflow(self, was_negative, addend_negative):
        # Adding like-signed values cannot change the sign of a two's complement sum
        if was_negative == addend_negative and self.is_negative() != was_negative:
            logger.debug('quire of width %d overflowed', self.layout.width)
            raise QuireOverflow(f'sum overflows a {self.layout.width}-bit quire')

    def _add_banks(self, index, chunk):
        bank_width = self.layout.bank_width
        mask = (1 << bank_width) - 1
        banks = self.banks
        carry = 0
        # Carries out of the most significant bank wrap, as in two's complement
        while (chunk or carry) and index < len(banks):
            total = banks[index] + (chunk & mask) + carry
            banks[index] = total & mask
            carry = total >> bank_width
            chunk >>= bank_width
            index += 1

    def _subtract_banks(self, index, chunk):
        bank_width = self.layout.bank_width
        mask = (1 << bank_width) - 1
        banks = self.banks
        borrow = 0
        while (chunk or borrow) and index < len(banks):
            total = banks[index] - (chunk & mask) - borrow
            banks[index] = total & mask
            borrow = int(total < 0)
            chunk >>= bank_width
            index += 1

    def _magnitude(self):
        '''Return (sign, magnitude) of the banks.  The leading non-zero bank is found by a
        scan from the most significant end; banks above it are not read.'''
        bank_width = self.layout.bank_width
        mask = (1 << bank_width) - 1
        negative = self.is_negative()
        banks = self.banks
        if negative:
            # Two's complement negation, bank by bank
            banks = []
            carry = 1
            for bank in self.banks:
                total = (~bank & mask) + carry
                banks.append(total & mask)
                carry = total >> bank_width

        top = len(banks)
        while top and not banks[top - 1]:
            top -= 1
        magnitude = 0
        for bank in reversed(banks[:top]):
            magnitude = (magnitude << bank_width) | bank
        return negative, magnitude

    def _zero_sign(self, rounding):
        '''The sign of an exact zero sum.  Zeroes all of one sign keep it; otherwise the sum
        is +0 except when rounding towards negative infinity.'''
        if not self.nonzero:
            if self.zero_signs == {True}:
                return True
            if self.zero_signs != {False, True}:
                return False
        return rounding == ROUND_FLOOR

    def finalize(self, context):
        '''Consume the quire and return its value as a normalized Canonical value, unrounded.

        NaR beats NaN, which beats infinities of opposite signs (an invalid operation),
        which beat an infinity, which beats the finite sum.
        '''
        self._check_open()
        self.consumed = True
        op_tuple = (OP_FINALIZE, self)

        if self.nar:
            return Canonical.nar()
        if self.nan is not None:
            payload, sign = self.nan
            return Canonical.nan(sign, payload)
        if len(self.infinities) == 2:
            if self.invalid == NumberClass.NAR:
                result = Canonical.nar()
            else:
                result = Canonical.nan(False)
            return InvalidAdd(op_tuple, result).signal(context)
        if self.infinities:
            return Canonical.infinity(next(iter(self.infinities)))

        sign, magnitude = self._magnitude()
        exponent_int = self.layout.base_exponent
        if self.sticky_signs:
            if len(self.sticky_signs) == 1:
                sticky_sign = next(iter(self.sticky_signs))
            else:
                sticky_sign = sign
            if not magnitude:
                # Only bits below the quire remain: a tiny value of known sign
                sign = sticky_sign
                magnitude = 1
                exponent_int -= 2
            elif sticky_sign != sign:
                # The lost bits reduce the magnitude; step just below it
                magnitude = (magnitude << 2) - 1
                exponent_int -= 2
        elif not magnitude:
            return Canonical.zero(self._zero_sign(context.rounding))

        frac_bits = magnitude.bit_length() - 1
        return Canonical.finite(sign, exponent_int + frac_bits, magnitude, frac_bits,
                                sticky=bool(self.sticky_signs))
