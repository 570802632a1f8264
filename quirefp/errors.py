#
# Configuration errors.  These are programming errors and are raised immediately; numeric
# exceptions are never raised, see context.py.
#

__all__ = ('ConfigurationError', 'UnsupportedMode', 'WidthMismatch', 'QuireOverflow')


class ConfigurationError(Exception):
    '''Base class of errors in how the engine was configured or called.'''


class UnsupportedMode(ConfigurationError, ValueError):
    '''A mode value outside IEEE-Compat, MPP and Posit, including the reserved register
    encoding 0b11.'''


class WidthMismatch(ConfigurationError, ValueError):
    '''An operand does not fit the width declared by its format descriptor.'''


class QuireOverflow(ConfigurationError):
    '''A partial product or running sum does not fit the declared quire width.  The quire
    width is chosen so that this cannot happen for supported reductions; seeing it means
    the layout was configured too narrow.'''
