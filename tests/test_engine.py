import logging
import random
from fractions import Fraction
from itertools import product
from math import copysign, inf, isinf, isnan, nan
from struct import pack, unpack

import pytest

from quirefp import *


corner_doubles = (0.0, -0.0, 1.0, -1.0, 1.5, -3.0, 0.1, 1 / 3, 2.0 ** 53, 1 + 2.0 ** -52,
                  5e-324, -5e-324, 2.2250738585072014e-308, -2.225073858507201e-308,
                  1e-308, 1.7976931348623157e308, -1.7976931348623157e308, 1e308,
                  inf, -inf, nan)

fma_doubles = (0.0, -0.0, 1.0, -1.5, 0.1, 5e-324, -2.2250738585072014e-308,
               1.7976931348623157e308, 1e-300, 1 + 2.0 ** -52, inf, nan)

bit_exact_modes = (Mode.IEEE_COMPAT, Mode.MPP)

# NaNs with distinct payloads: 0x123 quiet, 0x456 quiet and negative, 0x789 signalling
quiet_nan = 0x7ff8000000000123
negative_quiet_nan = 0xfff8000000000456
signalling_nan = 0x7ff0000000000789
quietened_nan = 0x7ff8000000000789


def double_bits(x):
    return unpack('<Q', pack('<d', x))[0]


def single_bits(x):
    return unpack('<I', pack('<f', x))[0]


def half_bits(x):
    return unpack('<H', pack('<e', x))[0]


def posit32_bits(x):
    return encode(decode(single_bits(x), IEEEsingle), Posit32)


def value_of(value):
    return Fraction(*value.as_integer_ratio())


def canonical(q):
    sign = q < 0
    q = abs(q)
    n, d = q.numerator, q.denominator
    shift = max(0, 100 + d.bit_length() - n.bit_length())
    significand, remainder = divmod(n << shift, d)
    frac_bits = significand.bit_length() - 1
    return Canonical.finite(sign, frac_bits - shift, significand, frac_bits,
                            sticky=bool(remainder))


def random_double(generator):
    while True:
        x = unpack('<d', pack('<Q', generator.getrandbits(64)))[0]
        if not isnan(x):
            return x


#
# A reference evaluator over Python floats, with Fraction arithmetic for the exact result
#

def to_double(q):
    try:
        x = float(q)
    except OverflowError:
        return inf if q > 0 else -inf
    return copysign(0.0, q) if x == 0 else x


def is_tiny_double(q):
    q = abs(q)
    if q >= Fraction(1, 2**1022):
        return False
    if q < Fraction(1, 2**1023):
        return True
    return round(q * 2**(1023 + 52)) < 2**53


def rounding_flags(exact, x):
    if isinf(x):
        return Flags.OVERFLOW | Flags.INEXACT
    if Fraction(x) == exact:
        return 0
    if is_tiny_double(exact):
        return Flags.UNDERFLOW | Flags.INEXACT
    return Flags.INEXACT


def reference_binary(op, a, b):
    '''Return (result, flags) with flags None if not checked.'''
    if isnan(a) or isnan(b):
        return nan, None
    if op == 'divide' and b == 0:
        if a == 0:
            return nan, Flags.INVALID
        if isinf(a):
            return copysign(inf, a) * copysign(1.0, b), 0
        return copysign(inf, a) * copysign(1.0, b), Flags.DIV_BY_ZERO
    x = {
        'add': lambda: a + b,
        'subtract': lambda: a - b,
        'multiply': lambda: a * b,
        'divide': lambda: a / b,
    }[op]()
    if isinf(a) or isinf(b):
        return x, Flags.INVALID if isnan(x) else 0
    exact = {
        'add': lambda: Fraction(a) + Fraction(b),
        'subtract': lambda: Fraction(a) - Fraction(b),
        'multiply': lambda: Fraction(a) * Fraction(b),
        'divide': lambda: Fraction(a) / Fraction(b),
    }[op]()
    return x, rounding_flags(exact, x)


def reference_fma(a, b, c):
    if isnan(a) or isnan(b) or isnan(c):
        return nan, None
    if isinf(a) or isinf(b):
        if a == 0 or b == 0:
            return nan, Flags.INVALID
        product_infinity = copysign(inf, a) * copysign(1.0, b)
        if isinf(c) and c != product_infinity:
            return nan, Flags.INVALID
        return product_infinity, 0
    if isinf(c):
        return c, 0
    exact = Fraction(a) * Fraction(b) + Fraction(c)
    if exact == 0:
        if (a == 0 or b == 0) and c == 0:
            product_negative = (copysign(1.0, a) * copysign(1.0, b)) < 0
            x = -0.0 if product_negative and copysign(1.0, c) < 0 else 0.0
        else:
            x = 0.0
        return x, 0
    x = to_double(exact)
    return x, rounding_flags(exact, x)


def check(result, x, flags):
    assert result.fmt == IEEEdouble
    if isnan(x):
        assert result.value().is_nan()
    else:
        assert result.bits == double_bits(x)
    if flags is not None:
        assert result.flags == flags


class TestIEEEBitExact:

    @pytest.mark.parametrize('mode, op', product(bit_exact_modes,
                                                 ('add', 'subtract', 'multiply', 'divide')))
    def test_corner_cases(self, mode, op):
        function = globals()[op]
        for a, b in product(corner_doubles, repeat=2):
            result = function(double_bits(a), double_bits(b), IEEEdouble, mode)
            check(result, *reference_binary(op, a, b))

    @pytest.mark.parametrize('mode, op', product(bit_exact_modes,
                                                 ('add', 'subtract', 'multiply', 'divide')))
    def test_random(self, mode, op):
        generator = random.Random(op)
        function = globals()[op]
        for _ in range(400):
            a, b = random_double(generator), random_double(generator)
            if op in ('add', 'subtract') and generator.random() < 0.5:
                # Bring the exponents close for cancellation
                b = a * (1 + generator.uniform(-2.0 ** -20, 2.0 ** -20))
            result = function(double_bits(a), double_bits(b), IEEEdouble, mode)
            check(result, *reference_binary(op, a, b))

    @pytest.mark.parametrize('mode', bit_exact_modes)
    def test_fma_corner_cases(self, mode):
        for a, b, c in product(fma_doubles, repeat=3):
            result = fma(double_bits(a), double_bits(b), double_bits(c), IEEEdouble, mode)
            check(result, *reference_fma(a, b, c))

    @pytest.mark.parametrize('mode', bit_exact_modes)
    def test_fma_random(self, mode):
        generator = random.Random(5)
        for _ in range(400):
            a = generator.uniform(-1, 1) * 2.0 ** generator.randint(-540, 510)
            b = generator.uniform(-1, 1) * 2.0 ** generator.randint(-540, 510)
            if generator.random() < 0.5:
                # Nearly cancel the product
                c = -(a * b)
            else:
                c = generator.uniform(-1, 1) * 2.0 ** generator.randint(-1074, 1023)
            result = fma(double_bits(a), double_bits(b), double_bits(c), IEEEdouble, mode)
            check(result, *reference_fma(a, b, c))

    @pytest.mark.parametrize('mode', bit_exact_modes)
    def test_fma_single_rounding(self, mode):
        # (1 + 2^-30)^2 - 1 is exact only when the product is not rounded first
        a = 1 + 2.0 ** -30
        result = fma(double_bits(a), double_bits(a), double_bits(-1.0), IEEEdouble, mode)
        assert result.bits == double_bits(2.0 ** -29 + 2.0 ** -60)
        assert result.flags == 0

    @pytest.mark.parametrize('rounding, answer', (
        (ROUND_HALF_EVEN, 0.0),
        (ROUND_FLOOR, -0.0),
    ))
    def test_exact_cancellation_sign(self, rounding, answer):
        for mode in bit_exact_modes:
            context = Context(rounding=rounding)
            result = subtract(double_bits(1.5), double_bits(1.5), IEEEdouble, mode, context)
            assert result.bits == double_bits(answer)

    @pytest.mark.parametrize('rounding, answer', (
        (ROUND_HALF_EVEN, 1.0),
        (ROUND_DOWN, 1.0),
        (ROUND_FLOOR, 1.0),
        (ROUND_CEILING, 1 + 2.0 ** -52),
    ))
    def test_directed_rounding(self, rounding, answer):
        for mode in bit_exact_modes:
            context = Context(rounding=rounding)
            result = add(double_bits(1.0), double_bits(2.0 ** -60), IEEEdouble, mode, context)
            assert result.bits == double_bits(answer)
            assert context.flags == Flags.INEXACT


class TestNaNPropagation:

    @pytest.mark.parametrize('lhs, rhs, answer, flags', (
        (quiet_nan, double_bits(1.0), quiet_nan, 0),
        (double_bits(-2.5), negative_quiet_nan, negative_quiet_nan, 0),
        (quiet_nan, negative_quiet_nan, negative_quiet_nan, 0),
        (negative_quiet_nan, quiet_nan, negative_quiet_nan, 0),
        (signalling_nan, double_bits(1.0), quietened_nan, Flags.INVALID),
        (double_bits(0.0), signalling_nan, quietened_nan, Flags.INVALID),
        (signalling_nan, quiet_nan, quietened_nan, Flags.INVALID),
        (negative_quiet_nan, signalling_nan, quietened_nan, Flags.INVALID),
        (double_bits(inf), quiet_nan, quiet_nan, 0),
    ))
    @pytest.mark.parametrize('op', ('add', 'subtract', 'multiply', 'divide'))
    @pytest.mark.parametrize('mode', bit_exact_modes)
    def test_binary(self, mode, op, lhs, rhs, answer, flags):
        function = globals()[op]
        context = Context()
        result = function(lhs, rhs, IEEEdouble, mode, context)
        assert result.bits == answer
        assert result.flags == flags
        assert context.flags == flags

    @pytest.mark.parametrize('a, b, c, answer, flags', (
        (quiet_nan, double_bits(2.0), double_bits(1.0), quiet_nan, 0),
        (double_bits(2.0), double_bits(3.0), negative_quiet_nan, negative_quiet_nan, 0),
        (quiet_nan, double_bits(2.0), negative_quiet_nan, negative_quiet_nan, 0),
        (signalling_nan, double_bits(2.0), quiet_nan, quietened_nan, Flags.INVALID),
        (double_bits(2.0), quiet_nan, signalling_nan, quietened_nan, Flags.INVALID),
        (double_bits(inf), double_bits(-1.0), quiet_nan, quiet_nan, 0),
    ))
    @pytest.mark.parametrize('mode', bit_exact_modes)
    def test_fma(self, mode, a, b, c, answer, flags):
        result = fma(a, b, c, IEEEdouble, mode)
        assert result.bits == answer
        assert result.flags == flags

    @pytest.mark.parametrize('mode', bit_exact_modes)
    def test_subtract_keeps_sign(self, mode):
        assert subtract(double_bits(1.0), quiet_nan, IEEEdouble, mode).bits == quiet_nan
        result = subtract(negative_quiet_nan, double_bits(1.0), IEEEdouble, mode)
        assert result.bits == negative_quiet_nan

    @pytest.mark.parametrize('mode', bit_exact_modes)
    def test_single_precision(self, mode):
        # Payloads survive in the narrower format too
        result = add(0x7fc00456, single_bits(1.0), IEEEsingle, mode)
        assert result.bits == 0x7fc00456
        result = multiply(0xff800321, single_bits(1.0), IEEEsingle, mode)
        assert result.bits == 0xffc00321
        assert result.flags == Flags.INVALID


class TestScenarios:

    def test_cancellation_ieee_compat(self):
        xs = [single_bits(x) for x in (1e8, 1.0, -1e8)]
        context = Context()
        result = fsum(xs, IEEEsingle, Mode.IEEE_COMPAT, context)
        assert result.bits == single_bits(0.0)
        assert result.flags == Flags.INEXACT
        assert context.flags == Flags.INEXACT
        assert result.roundings == 3

    def test_cancellation_mpp(self):
        xs = [single_bits(x) for x in (1e8, 1.0, -1e8)]
        ones = [single_bits(1.0)] * 3
        context = Context()
        for result in (fsum(xs, IEEEsingle, Mode.MPP, context),
                       dot(xs, ones, IEEEsingle, Mode.MPP, context)):
            assert result.bits == single_bits(1.0)
            assert result.flags == 0
            assert result.roundings == 1
        assert context.flags == 0

    def test_cancellation_posit(self):
        xs = [posit32_bits(x) for x in (1e8, 1.0, -1e8)]
        assert xs[2] == Posit32.negate(xs[0])
        context = Context()
        result = fsum(xs, Posit32, Mode.POSIT, context)
        assert result.bits == 0x40000000
        assert result.flags == 0
        assert result.roundings == 1
        assert context.flags == 0

    def test_determinism(self):
        xs = [single_bits(x) for x in [2.0 ** 24] + [1.0] * 9998 + [-2.0 ** 24]]
        ys = [single_bits(1.0)] * len(xs)

        forward = dot(xs, ys, IEEEsingle, Mode.IEEE_COMPAT)
        reverse = dot(xs[::-1], ys, IEEEsingle, Mode.IEEE_COMPAT)
        assert forward.bits == single_bits(0.0)
        assert reverse.bits == single_bits(9998.0)
        assert forward.roundings == reverse.roundings == 10000

        forward = dot(xs, ys, IEEEsingle, Mode.MPP)
        reverse = dot(xs[::-1], ys, IEEEsingle, Mode.MPP)
        assert forward == reverse
        assert forward.bits == single_bits(9998.0)
        assert forward.roundings == 1

        forward = dot(xs, ys, IEEEsingle, Mode.POSIT)
        reverse = dot(xs[::-1], ys, IEEEsingle, Mode.POSIT)
        assert forward == reverse
        assert forward.fmt == Posit32
        assert value_of(forward.value()) == 9998

    def test_fewer_special_results_when_overflows_cancel(self):
        generator = random.Random(2024)
        specials = {mode: 0 for mode in Mode}
        for _ in range(50):
            large = generator.uniform(1, 2) * 2.0 ** generator.randint(70, 100)
            other = generator.uniform(1, 2) * 2.0 ** generator.randint(60, 90)
            # Products that overflow single precision but cancel exactly
            pairs = [(large, other), (-large, other)]
            for _ in range(8):
                pairs.append((generator.choice((-1, 1)) * generator.uniform(1, 2)
                              * 2.0 ** generator.randint(-20, 20),
                              generator.uniform(1, 2) * 2.0 ** generator.randint(-20, 20)))
            generator.shuffle(pairs)
            xs = [single_bits(x) for x, _ in pairs]
            ys = [single_bits(y) for _, y in pairs]
            for mode in Mode:
                result = dot(xs, ys, IEEEsingle, mode)
                value = result.value()
                if not value.is_finite():
                    specials[mode] += 1
        assert specials[Mode.IEEE_COMPAT] >= 10 * max(specials[Mode.MPP], 1)
        assert specials[Mode.MPP] == 0
        assert specials[Mode.POSIT] == 0

    def test_special_results_log_uniform(self):
        generator = random.Random(86)
        specials = {mode: 0 for mode in Mode}
        nans = {mode: 0 for mode in Mode}

        def log_uniform():
            sign = generator.choice((-1, 1))
            return single_bits(sign * 2.0 ** generator.uniform(-100, 100))

        for _ in range(300):
            xs = [log_uniform() for _ in range(8)]
            ys = [log_uniform() for _ in range(8)]
            for mode in Mode:
                value = dot(xs, ys, IEEEsingle, mode).value()
                if not value.is_finite():
                    specials[mode] += 1
                if value.is_nan():
                    nans[mode] += 1
        assert specials[Mode.MPP] <= specials[Mode.IEEE_COMPAT]
        # Overflowed products of opposite signs only meet as infinities in IEEE-Compat mode
        assert nans[Mode.IEEE_COMPAT] > 0
        assert nans[Mode.MPP] == 0
        assert specials[Mode.POSIT] == 0

    @pytest.mark.parametrize('mode', (Mode.MPP, Mode.POSIT))
    def test_order_independent(self, mode):
        generator = random.Random(int(mode))
        xs = [single_bits(generator.uniform(-1, 1) * 2.0 ** generator.randint(-60, 60))
              for _ in range(40)]
        ys = [single_bits(generator.uniform(-1, 1) * 2.0 ** generator.randint(-60, 60))
              for _ in range(40)]
        pairs = list(zip(xs, ys))
        reference = None
        for _ in range(6):
            generator.shuffle(pairs)
            result = dot([x for x, _ in pairs], [y for _, y in pairs], IEEEsingle, mode)
            reference = reference or result
            assert result == reference

    def test_mixed_precision(self):
        x = half_bits(60000.0)
        # Too large for the operand format, not for the accumulation
        result = dot([x], [x], IEEEhalf, Mode.MPP, result_fmt=IEEEsingle)
        assert result.bits == single_bits(3.6e9)
        assert result.flags == 0
        result = dot([x], [x], IEEEhalf, Mode.IEEE_COMPAT)
        assert result.bits == half_bits(inf)
        assert result.flags == Flags.OVERFLOW | Flags.INEXACT
        result = dot([x], [x], IEEEhalf, Mode.IEEE_COMPAT, result_fmt=IEEEsingle)
        assert result.bits == single_bits(3.6e9)


class TestPositMode:

    @pytest.fixture
    def context(self):
        return Context()

    def test_nar_propagates(self, context):
        xs = [posit32_bits(x) for x in (1.0, 2.0, 3.0)]
        ys = [posit32_bits(1.0), Posit32.nar, posit32_bits(0.0)]
        result = dot(xs, ys, Posit32, Mode.POSIT, context)
        assert result.is_nar()
        assert result.flags == 0
        assert context.flags == 0

    def test_zero_times_nar(self, context):
        result = multiply(0, Posit32.nar, Posit32, Mode.POSIT, context)
        assert result.is_nar()

    @pytest.mark.parametrize('lhs, rhs', (
        (inf, 1.0),
        (nan, 0.0),
        (0.0, inf),
    ))
    def test_ieee_specials_become_nar(self, context, lhs, rhs):
        result = multiply(single_bits(lhs), single_bits(rhs), IEEEsingle, Mode.POSIT, context)
        assert result.is_nar()
        assert result.flags == 0
        assert context.flags == 0

    def test_opposite_infinities(self, context):
        result = fsum([single_bits(inf), single_bits(-inf)], IEEEsingle, Mode.POSIT, context)
        assert result.is_nar()
        assert context.flags == 0

    def test_divide(self, context):
        one, three = posit32_bits(1.0), posit32_bits(3.0)
        result = divide(one, three, Posit32, Mode.POSIT, context)
        assert result.bits == round_posit(canonical(Fraction(1, 3)), Posit32)
        assert divide(one, 0, Posit32, Mode.POSIT, context).is_nar()
        assert divide(0, one, Posit32, Mode.POSIT, context).bits == 0

    def test_subtract(self, context):
        one = posit32_bits(1.0)
        assert subtract(one, one, Posit32, Mode.POSIT, context).bits == 0
        assert subtract(one, Posit32.nar, Posit32, Mode.POSIT, context).is_nar()
        result = subtract(0, one, Posit32, Mode.POSIT, context)
        assert result.bits == Posit32.negate(one)

    def test_saturates(self, context):
        big = posit32_bits(2.0 ** 100)
        result = multiply(big, big, Posit32, Mode.POSIT, context)
        assert result.bits == Posit32.maxpos
        small = posit32_bits(2.0 ** -100)
        result = multiply(small, Posit32.negate(small), Posit32, Mode.POSIT, context)
        assert result.bits == Posit32.negate(1)

    def test_nar_in_mpp_mode(self, context):
        result = fsum([Posit32.nar], Posit32, Mode.MPP, context)
        assert result.fmt == IEEEsingle
        assert result.value().is_nan()
        assert result.flags == Flags.INVALID


class TestReduction:

    @pytest.mark.parametrize('mode, roundings', (
        (Mode.IEEE_COMPAT, 100),
        (Mode.MPP, 1),
        (Mode.POSIT, 1),
    ))
    def test_roundings(self, mode, roundings):
        xs = [single_bits(x / 7) for x in range(100)]
        result = dot(xs, xs, IEEEsingle, mode)
        assert result.roundings == roundings

    @pytest.mark.parametrize('mode', Mode)
    def test_empty(self, mode):
        result = fsum([], IEEEsingle, mode)
        assert result.bits == 0
        assert result.roundings == 1
        assert result.flags == 0

    def test_flags_accumulate_in_context(self):
        context = Context(flags=Flags.DIV_BY_ZERO)
        result = add(double_bits(1.0), double_bits(2.0 ** -60), IEEEdouble, Mode.MPP, context)
        assert result.flags == Flags.INEXACT
        assert context.flags == Flags.DIV_BY_ZERO | Flags.INEXACT

    def test_quantizer_flags(self):
        # Only IEEE-Compat quantizes, so only it loses the low bits of the operand
        x = double_bits(1 + 2.0 ** -40)
        result = convert(x, IEEEdouble, Mode.IEEE_COMPAT, result_fmt=IEEEsingle)
        assert result.bits == single_bits(1.0)
        assert result.flags == Flags.INEXACT
        result = multiply(x, x, IEEEdouble, Mode.IEEE_COMPAT, result_fmt=IEEEsingle)
        assert result.bits == single_bits(1.0)
        result = fma(x, x, double_bits(-1.0), IEEEdouble, Mode.IEEE_COMPAT,
                     result_fmt=IEEEsingle)
        assert result.bits == single_bits(0.0)
        result = fma(x, x, double_bits(-1.0), IEEEdouble, Mode.MPP, result_fmt=IEEEsingle)
        assert result.bits == single_bits(2.0 ** -39 + 2.0 ** -80)
        assert result.flags == Flags.INEXACT

    def test_convert(self):
        result = convert(double_bits(1 / 3), IEEEdouble, Mode.MPP, result_fmt=IEEEsingle)
        assert result.bits == single_bits(1 / 3)
        assert result.flags == Flags.INEXACT
        assert convert(0x4000, Posit16, Mode.MPP).bits == half_bits(1.0)
        assert convert(single_bits(1.0), IEEEsingle, Mode.POSIT).bits == 0x40000000
        result = convert(Posit16.maxpos, Posit16, Mode.MPP)
        assert result.bits == half_bits(inf)
        assert result.flags == Flags.OVERFLOW | Flags.INEXACT

    def test_bank_width(self):
        xs = [single_bits(x / 3) for x in range(-20, 20)]
        reduction = Reduction(IEEEsingle, Mode.MPP, bank_width=16)
        for x in xs:
            reduction.add_product(x, x)
        assert reduction.layout.bank_width == 16
        assert reduction.result() == dot(xs, xs, IEEEsingle, Mode.MPP)

    def test_mixed_contributions(self):
        reduction = Reduction(IEEEdouble, Mode.MPP)
        reduction.add_product(double_bits(3.0), double_bits(5.0))
        reduction.add_term(double_bits(1.0), negate=True)
        reduction.add_quotient(double_bits(1.0), double_bits(4.0))
        result = reduction.result()
        assert result.bits == double_bits(14.25)
        assert result.flags == 0

    def test_quotient_cancelled_by_term(self):
        # 1/3 - fl(1/3) keeps only the quotient's bits below the double's precision
        reduction = Reduction(IEEEdouble, Mode.MPP)
        reduction.add_quotient(double_bits(1.0), double_bits(3.0))
        reduction.add_term(double_bits(1 / 3), negate=True)
        result = reduction.result()
        assert result.bits == double_bits(to_double(Fraction(1, 3) - Fraction(1 / 3)))
        assert result.flags == Flags.INEXACT

    def test_quotient_cancelled_by_product(self):
        reduction = Reduction(IEEEsingle, Mode.MPP)
        reduction.add_quotient(single_bits(2.0), single_bits(7.0))
        reduction.add_product(single_bits(2 / 7), single_bits(-1.0))
        result = reduction.result()
        exact = Fraction(2, 7) - value_of(decode(single_bits(2 / 7), IEEEsingle))
        assert exact != 0
        assert result.bits == round_ieee(canonical(exact), IEEEsingle, Context())

    def test_quotient_cancelled_posit(self):
        third = posit32_bits(1 / 3)
        reduction = Reduction(Posit32, Mode.POSIT)
        reduction.add_quotient(posit32_bits(1.0), posit32_bits(3.0))
        reduction.add_term(third, negate=True)
        result = reduction.result()
        exact = Fraction(1, 3) - value_of(decode(third, Posit32))
        assert exact != 0
        assert result.bits == round_posit(canonical(exact), Posit32)

    def test_result_once(self):
        reduction = Reduction(IEEEsingle, Mode.MPP)
        reduction.add_term(single_bits(1.0))
        reduction.result()
        with pytest.raises(RuntimeError):
            reduction.result()
        with pytest.raises(RuntimeError):
            reduction.add_term(single_bits(1.0))

    def test_dot_lengths_differ(self):
        with pytest.raises(ValueError):
            dot([0, 0], [0], IEEEsingle, Mode.MPP)

    def test_unsupported_mode(self):
        with pytest.raises(UnsupportedMode):
            fsum([0], IEEEsingle, 0b11)

    def test_register_mode(self):
        result = fsum([single_bits(2.0)], IEEEsingle, 0b01)
        assert result.mode is Mode.MPP
        assert result.bits == single_bits(2.0)

    def test_width_mismatch(self):
        with pytest.raises(WidthMismatch):
            fsum([1 << 32], IEEEsingle, Mode.MPP)
        with pytest.raises(WidthMismatch):
            fsum([b'\x00\x00'], IEEEsingle, Mode.MPP)

    def test_result_format_mismatch(self):
        with pytest.raises(ConfigurationError):
            fsum([0], IEEEsingle, Mode.POSIT, result_fmt=IEEEsingle)

    def test_bytes_operands(self):
        result = add(pack('=f', 1.5), pack('=f', 2.0), IEEEsingle, Mode.MPP)
        assert result.bits == single_bits(3.5)

    def test_debug_logging(self, caplog):
        caplog.set_level(logging.DEBUG, logger='quirefp')
        fsum([single_bits(1.0), single_bits(2.0 ** -30)], IEEEsingle, Mode.IEEE_COMPAT)
        messages = [record.getMessage() for record in caplog.records]
        assert any('IEEE_COMPAT reduction of 2 terms' in message for message in messages)
        assert any('Inexact signalled' in message for message in messages)
