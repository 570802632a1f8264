#
# Format descriptors, rounding modes and status flags shared by every pipeline stage
#

from enum import IntEnum, IntFlag
from typing import NamedTuple


__all__ = ('FormatKind', 'Flags', 'IEEEFormat', 'PositFormat',
           'ROUND_CEILING', 'ROUND_FLOOR', 'ROUND_DOWN', 'ROUND_HALF_EVEN', 'ALL_ROUNDINGS',
           'LF_EXACTLY_ZERO', 'LF_LESS_THAN_HALF', 'LF_EXACTLY_HALF', 'LF_MORE_THAN_HALF',
           'SUPPORTED_WIDTHS', 'IEEEhalf', 'IEEEsingle', 'IEEEdouble',
           'Posit8', 'Posit16', 'Posit32', 'Posit64',
           'round_up', 'split_significand')


# Rounding modes
ROUND_CEILING   = 'ROUND_CEILING'       # Towards +infinity
ROUND_FLOOR     = 'ROUND_FLOOR'         # Towards -infinity
ROUND_DOWN      = 'ROUND_DOWN'          # Towards zero
ROUND_HALF_EVEN = 'ROUND_HALF_EVEN'     # To nearest with ties towards even

ALL_ROUNDINGS = (ROUND_HALF_EVEN, ROUND_DOWN, ROUND_CEILING, ROUND_FLOOR)

# Interchange widths with a standard IEEE format and a matching-width posit.
SUPPORTED_WIDTHS = (16, 32, 64)


class FormatKind(IntEnum):
    IEEE = 0
    POSIT = 1


# Operation status flags.
class Flags(IntFlag):
    INVALID     = 0x01
    DIV_BY_ZERO = 0x02
    OVERFLOW    = 0x04
    UNDERFLOW   = 0x08
    INEXACT     = 0x10


# When bits are discarded by a rounding step these indicate what fraction of the new LSB
# they represented.  It combines the roles of the guard, round and sticky bits.
LF_EXACTLY_ZERO = 0           # 000000
LF_LESS_THAN_HALF = 1         # 0xxxxx  x's not all zero
LF_EXACTLY_HALF = 2           # 100000
LF_MORE_THAN_HALF = 3         # 1xxxxx  x's not all zero


class IEEEFormat(NamedTuple):
    '''An IEEE-754 binary interchange format.  Only instantiate indirectly through the from_
    constructors.

    precision is the number of bits in the significand including the implicit integer
    bit, so the encoding holds precision - 1 fraction bits.

    e_max is the largest e such that 2^e is representable; e_min = 1 - e_max is the
    smallest e such that 2^e is not subnormal.  The smallest subnormal is then
    2^(e_min - (precision - 1)).
    '''

    width: int
    precision: int
    e_width: int
    e_max: int
    e_min: int

    # All a function of the values above
    bias: int
    fraction_bits: int
    int_bit: int
    quiet_bit: int
    max_significand: int
    exponent_mask: int

    @classmethod
    def from_pair(cls, precision, e_width):
        '''Construct from the specified precision and exponent width.  All constructors
        ultimately call this one.'''
        if not all(isinstance(arg, int) for arg in (precision, e_width)):
            raise TypeError('precision and e_width must be integers')
        if precision < 3:
            raise ValueError('precision must be at least 3 bits')
        if e_width < 2:
            raise ValueError('e_width must be at least 2 bits')
        e_max = (1 << (e_width - 1)) - 1
        return cls(width=precision + e_width,
                   precision=precision,
                   e_width=e_width,
                   e_max=e_max,
                   e_min=1 - e_max,
                   bias=e_max,
                   fraction_bits=precision - 1,
                   int_bit=1 << (precision - 1),
                   quiet_bit=1 << (precision - 2),
                   max_significand=(1 << precision) - 1,
                   exponent_mask=(1 << e_width) - 1)

    @classmethod
    def from_IEEE(cls, fmt_width):
        '''The IEEE-754 required format for the given width.'''
        if fmt_width == 16:
            precision = 11
        elif fmt_width == 32:
            precision = 24
        elif fmt_width == 64:
            precision = 53
        else:
            raise ValueError(f'no standard IEEE-754 format of width {fmt_width}')
        return cls.from_pair(precision, fmt_width - precision)

    @property
    def kind(self):
        return FormatKind.IEEE

    def __repr__(self):
        return f'IEEEFormat(width={self.width}, precision={self.precision})'

    def pack(self, sign, biased_exponent, fraction):
        '''Return the encoding of the given IEEE fields as an integer.'''
        if not 0 <= fraction < self.int_bit:
            raise ValueError('fraction out of range')
        if not 0 <= biased_exponent <= self.exponent_mask:
            raise ValueError('biased exponent out of range')
        return (((int(sign) << self.e_width) | biased_exponent) << self.fraction_bits) | fraction

    def unpack(self, bits):
        '''Split an encoding into its (sign, biased exponent, fraction) fields.'''
        fraction = bits & (self.int_bit - 1)
        bits >>= self.fraction_bits
        biased_exponent = bits & self.exponent_mask
        return bool(bits >> self.e_width), biased_exponent, fraction

    def make_zero(self, sign):
        return self.pack(sign, 0, 0)

    def make_infinity(self, sign):
        return self.pack(sign, self.exponent_mask, 0)

    def make_largest_finite(self, sign):
        return self.pack(sign, self.exponent_mask - 1, self.int_bit - 1)

    def make_nan(self, sign, is_signalling, payload):
        '''Return a NaN encoding with the given sign, signalling status and payload.

        Payload changes, either through loss of most significant bits, or because the payload
        is invalid for a signalling NaN, are silent.'''
        if payload < 0:
            raise ValueError(f'NaN payload cannot be negative: {payload}')
        payload &= self.quiet_bit - 1
        if is_signalling:
            payload = max(payload, 1)
        else:
            payload |= self.quiet_bit
        return self.pack(sign, self.exponent_mask, payload)

    def make_default_nan(self):
        '''The quiet NaN delivered by invalid operations.'''
        return self.make_nan(False, False, 0)

    def make_overflow_value(self, rounding, sign):
        '''Return the encoding to deliver on overflow with the given sign.'''
        if round_up(rounding, LF_MORE_THAN_HALF, sign, False):
            return self.make_infinity(sign)
        return self.make_largest_finite(sign)


class PositFormat(NamedTuple):
    '''A posit format of width bits with an exponent field of es bits.

    A finite non-zero posit has the value (-1)^s * 2^(k * 2^es + e) * 1.f where k is the
    run-length coded regime.  The scale of the largest posit, maxpos, is max_scale; that
    of the smallest, minpos, is -max_scale.
    '''

    width: int
    es: int

    # All a function of the values above
    useed_log2: int
    max_scale: int
    precision: int
    nar: int
    maxpos: int
    mask: int

    @classmethod
    def from_width(cls, width, es=2):
        '''Construct a posit format.  The 2022 posit standard fixes es at 2.'''
        if not all(isinstance(arg, int) for arg in (width, es)):
            raise TypeError('width and es must be integers')
        if width < 3:
            raise ValueError('posit width must be at least 3 bits')
        if es < 0:
            raise ValueError('es cannot be negative')
        useed_log2 = 1 << es
        return cls(width=width,
                   es=es,
                   useed_log2=useed_log2,
                   max_scale=(width - 2) * useed_log2,
                   # The widest fraction follows a two-bit regime
                   precision=max(width - 3 - es, 0) + 1,
                   nar=1 << (width - 1),
                   maxpos=(1 << (width - 1)) - 1,
                   mask=(1 << width) - 1)

    @property
    def kind(self):
        return FormatKind.POSIT

    def __repr__(self):
        return f'PositFormat(width={self.width}, es={self.es})'

    def negate(self, bits):
        '''Return the two's complement of the pattern, which negates a posit.'''
        return -bits & self.mask


#
# Rounding helpers
#

def split_significand(significand, bits, sticky=False):
    '''Shift the significand right the given number of bits (left if negative).

    Returns (kept, guard, round, sticky).  The incoming sticky indicates non-zero bits
    already lost below the significand and is merged into the outgoing one.
    '''
    if bits <= 0:
        return significand << -bits, 0, 0, bool(sticky)
    kept = significand >> bits
    guard = (significand >> (bits - 1)) & 1
    if bits >= 2:
        round_bit = (significand >> (bits - 2)) & 1
        sticky = sticky or bool(significand & ((1 << (bits - 2)) - 1))
    else:
        round_bit = 0
    return kept, guard, round_bit, bool(sticky)


def round_up(rounding, lost, sign, is_odd):
    '''Return True if, when an operation is inexact, the result should be rounded up (i.e.,
    away from zero by incrementing the significand).

    sign is the sign of the number, and is_odd indicates if the LSB of the new
    significand is set, which is needed for ties-to-even rounding.
    '''
    if lost == LF_EXACTLY_ZERO:
        return False

    if rounding == ROUND_HALF_EVEN:
        if lost == LF_EXACTLY_HALF:
            return is_odd
        return lost == LF_MORE_THAN_HALF
    if rounding == ROUND_CEILING:
        return not sign
    if rounding == ROUND_FLOOR:
        return bool(sign)
    if rounding == ROUND_DOWN:
        return False
    raise ValueError(f'unknown rounding mode {rounding!r}')


#
# Predefined formats
#

IEEEhalf = IEEEFormat.from_IEEE(16)
IEEEsingle = IEEEFormat.from_IEEE(32)
IEEEdouble = IEEEFormat.from_IEEE(64)

Posit8 = PositFormat.from_width(8)
Posit16 = PositFormat.from_width(16)
Posit32 = PositFormat.from_width(32)
Posit64 = PositFormat.from_width(64)
