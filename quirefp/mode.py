#
# The mode controller: a pure lookup from a mode to the pipeline configuration
#

from enum import IntEnum

import attr

from .canonical import NumberClass
from .errors import ConfigurationError, UnsupportedMode
from .formats import FormatKind, IEEEFormat, PositFormat
from .rounding import round_ieee, round_posit


__all__ = ('Mode', 'ModeConfig', 'configure')


class Mode(IntEnum):
    '''Pipeline modes, valued as their encoding in the 2-bit mode-control register.'''
    IEEE_COMPAT = 0b00
    MPP = 0b01
    POSIT = 0b10

    @classmethod
    def from_register(cls, value):
        '''Decode a mode-control register value.  0b11 is reserved.'''
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedMode(f'mode register value {value!r} is not supported') from None


@attr.s(slots=True, frozen=True)
class ModeConfig:
    '''What a mode switches on.

    quantize: whether operands pass through the input quantizer.
    rounder: the final rounder, round_ieee or round_posit.
    invalid: the class of value invalid operations produce, NaN or NaR.
    sequential: whether reductions round after every term, as scalar IEEE code does.
    reports_flags: whether the IEEE flag set is reported.
    '''

    mode = attr.ib()
    quantize = attr.ib()
    rounder = attr.ib()
    invalid = attr.ib()
    sequential = attr.ib()
    reports_flags = attr.ib()

    @property
    def result_kind(self):
        return FormatKind.POSIT if self.rounder is round_posit else FormatKind.IEEE

    def result_format(self, fmt, result_fmt=None):
        '''Return the format results are rounded to for operands of format fmt.

        Defaults to fmt if the rounder produces its kind, otherwise to the format of the
        same width of the rounder's kind.
        '''
        kind = self.result_kind
        if result_fmt is not None:
            if result_fmt.kind != kind:
                raise ConfigurationError(f'{self.mode.name} mode cannot round to {result_fmt!r}')
            return result_fmt
        if fmt.kind == kind:
            return fmt
        if kind == FormatKind.POSIT:
            return PositFormat.from_width(fmt.width)
        try:
            return IEEEFormat.from_IEEE(fmt.width)
        except ValueError:
            raise ConfigurationError(f'no IEEE format matches {fmt!r}') from None


_MODE_TABLE = {
    Mode.IEEE_COMPAT: ModeConfig(mode=Mode.IEEE_COMPAT, quantize=True, rounder=round_ieee,
                                 invalid=NumberClass.NAN, sequential=True, reports_flags=True),
    Mode.MPP: ModeConfig(mode=Mode.MPP, quantize=False, rounder=round_ieee,
                         invalid=NumberClass.NAN, sequential=False, reports_flags=True),
    Mode.POSIT: ModeConfig(mode=Mode.POSIT, quantize=False, rounder=round_posit,
                           invalid=NumberClass.NAR, sequential=False, reports_flags=False),
}


def configure(mode):
    '''Return the ModeConfig of a mode.  Anything but the three modes raises UnsupportedMode.'''
    if isinstance(mode, bool) or not isinstance(mode, int):
        raise UnsupportedMode(f'unsupported mode {mode!r}')
    return _MODE_TABLE[Mode.from_register(mode)]
