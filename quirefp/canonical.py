#
# Canonical values and the decoder from IEEE and posit encodings
#

import sys
from collections import namedtuple
from enum import IntEnum

from .errors import WidthMismatch
from .formats import FormatKind, split_significand


__all__ = ('NumberClass', 'Canonical', 'decode', 'regime_run', 'to_int')


class NumberClass(IntEnum):
    ZERO = 0
    FINITE = 1
    INFINITY = 2
    NAN = 3
    NAR = 4


class Canonical(namedtuple('Canonical',
                           'fmt sign number_class exponent significand frac_bits '
                           'sticky signalling')):
    '''A decoded value in a format-independent representation.

    Finite values have the magnitude

            significand * 2^(exponent - frac_bits)

    i.e. significand is an unsigned fixed-point number with frac_bits fraction bits and
    exponent the weight of its binary point.  Normalized values have a single integer bit
    so that exponent is the unbounded scale of the value; IEEE subnormals keep exponent
    e_min and an unnormalized significand.  sticky is set if non-zero bits of unknown
    value were lost below the significand.

    NaNs hold their payload (without the quiet bit) in significand and set signalling
    for signalling NaNs.  fmt is the format the value was decoded from, or None for
    computed values.
    '''

    @classmethod
    def zero(cls, sign, fmt=None):
        return cls(fmt, bool(sign), NumberClass.ZERO, 0, 0, 0, False, False)

    @classmethod
    def infinity(cls, sign, fmt=None):
        return cls(fmt, bool(sign), NumberClass.INFINITY, 0, 0, 0, False, False)

    @classmethod
    def nan(cls, sign, payload=0, signalling=False, fmt=None):
        return cls(fmt, bool(sign), NumberClass.NAN, 0, payload, 0, False, signalling)

    @classmethod
    def nar(cls, fmt=None):
        return cls(fmt, True, NumberClass.NAR, 0, 0, 0, False, False)

    @classmethod
    def finite(cls, sign, exponent, significand, frac_bits, sticky=False, fmt=None):
        return cls(fmt, bool(sign), NumberClass.FINITE, exponent, significand, frac_bits,
                   bool(sticky), False)

    def is_zero(self):
        return self.number_class == NumberClass.ZERO

    def is_finite(self):
        return self.number_class in (NumberClass.ZERO, NumberClass.FINITE)

    def is_finite_non_zero(self):
        return self.number_class == NumberClass.FINITE

    def is_infinite(self):
        return self.number_class == NumberClass.INFINITY

    def is_nan(self):
        return self.number_class == NumberClass.NAN

    def is_snan(self):
        return self.number_class == NumberClass.NAN and self.signalling

    def is_nar(self):
        return self.number_class == NumberClass.NAR

    def exponent_int(self):
        '''Return the weight of the significand's least significant bit.'''
        return self.exponent - self.frac_bits

    def scale(self):
        '''Return the exponent of the leading bit, i.e. floor(log2(abs(value))).'''
        assert self.number_class == NumberClass.FINITE
        return self.exponent_int() + self.significand.bit_length() - 1

    def truncate(self, precision):
        '''Return (kept, guard, round, sticky): the significand truncated to its leading
        precision significant bits, and the bits it loses.  A precision wider than the
        significand pads kept with zeroes.'''
        assert self.number_class == NumberClass.FINITE
        return split_significand(self.significand,
                                 self.significand.bit_length() - precision, self.sticky)

    def as_integer_ratio(self):
        '''Return a pair (n, d) of integers that represent the value as a fraction in lowest
        terms and with a positive denominator.  Lost sticky bits are not represented.'''
        if not self.is_finite():
            if self.number_class == NumberClass.INFINITY:
                raise OverflowError('cannot convert an infinity to an integer ratio')
            raise ValueError('cannot convert a NaN or NaR to an integer ratio')
        if self.number_class == NumberClass.ZERO:
            return (0, 1)
        exp = self.exponent_int()
        significand = self.significand
        while exp < 0 and not (significand & 1):
            significand >>= 1
            exp += 1

        if exp >= 0:
            n, d = significand << exp, 1
        else:
            n, d = significand, 1 << -exp
        return (-n if self.sign else n), d


def to_int(raw, fmt, endianness=None):
    '''Return the raw operand as an integer bit pattern checked against the format width.

    raw is an int, or bytes of the given endianness ('big' or 'little'; host-native if
    None).
    '''
    if isinstance(raw, (bytes, bytearray, memoryview)):
        size = (fmt.width + 7) // 8
        if len(raw) != size:
            raise WidthMismatch(f'expected {size} bytes for {fmt!r}; got {len(raw)}')
        raw = int.from_bytes(raw, endianness or sys.byteorder)
    elif not isinstance(raw, int) or isinstance(raw, bool):
        raise TypeError(f'operand must be an int or bytes, not {type(raw).__name__}')
    if raw < 0 or raw >> fmt.width:
        raise WidthMismatch(f'operand {raw:#x} does not fit {fmt!r}')
    return raw


def decode(raw, fmt, endianness=None):
    '''Decode an IEEE or posit encoding into a Canonical value.  Total over all bit patterns
    of the format's width; no rounding is possible.'''
    bits = to_int(raw, fmt, endianness)
    if fmt.kind == FormatKind.POSIT:
        return _decode_posit(bits, fmt)
    return _decode_ieee(bits, fmt)


def _decode_ieee(bits, fmt):
    sign, biased_exponent, fraction = fmt.unpack(bits)
    if biased_exponent == fmt.exponent_mask:
        if fraction == 0:
            return Canonical.infinity(sign, fmt)
        signalling = not fraction & fmt.quiet_bit
        return Canonical.nan(sign, fraction & (fmt.quiet_bit - 1), signalling, fmt)
    if biased_exponent == 0:
        if fraction == 0:
            return Canonical.zero(sign, fmt)
        # Subnormal: exponent is e_min with no integer bit
        return Canonical.finite(sign, fmt.e_min, fraction, fmt.fraction_bits, fmt=fmt)
    return Canonical.finite(sign, biased_exponent - fmt.bias, fraction | fmt.int_bit,
                            fmt.fraction_bits, fmt=fmt)


def regime_run(body, nbits):
    '''Measure the regime of a posit body of nbits bits (the pattern after the sign bit).

    Returns (run_length, regime) where run_length counts the identical leading bits and
    regime is the value k they encode: a run of m ones is m - 1, a run of m zeros is -m.
    '''
    if (body >> (nbits - 1)) & 1:
        # Leading ones: count them by locating the first zero
        run_length = nbits - (~body & ((1 << nbits) - 1)).bit_length()
        return run_length, run_length - 1
    run_length = nbits - body.bit_length()
    return run_length, -run_length


def _decode_posit(bits, fmt):
    if bits == 0:
        return Canonical.zero(False, fmt)
    if bits == fmt.nar:
        return Canonical.nar(fmt)

    sign = bool(bits & fmt.nar)
    if sign:
        bits = fmt.negate(bits)

    nbits = fmt.width - 1
    run_length, regime = regime_run(bits, nbits)
    # Skip the run and its terminating bit, if any
    remaining = max(nbits - run_length - 1, 0)
    body = bits & ((1 << remaining) - 1)

    # Exponent bits cut off by the end of the pattern read as zero
    if remaining >= fmt.es:
        frac_bits = remaining - fmt.es
        exponent_field = body >> frac_bits
    else:
        frac_bits = 0
        exponent_field = body << (fmt.es - remaining)
    fraction = body & ((1 << frac_bits) - 1)

    exponent = regime * fmt.useed_log2 + exponent_field
    return Canonical.finite(sign, exponent, fraction | (1 << frac_bits), frac_bits, fmt=fmt)
