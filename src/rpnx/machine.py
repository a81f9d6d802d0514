'''
Operand stack and numeric mode of the calculator.

Every value is stored as a float, whatever the mode. In the integer modes
the stored float is always the canonical (masked and sign extended) value
for the current word width.
'''

import math
import sys

from .logging import log
from .util import EmptyStack, DomainError


LONGLONG_BITS = 64
LLONG_MIN = -(1 << 63)
LLONG_MAX = (1 << 63) - 1

MODES = {
    'F': 'float',
    'D': 'signed decimal',
    'U': 'unsigned decimal',
    'H': 'hex',
    'O': 'octal',
    'B': 'binary',
    'R': 'raw hex float',
}
FLOATING_MODES = 'FR'


def floating_mode(mode):
    return mode in FLOATING_MODES


def detect_epsilon():
    '''
    Halve until 1 + eps/2 no longer differs from 1.

    Returns the epsilon and the number of decimal digits it allows.
    '''
    epsilon = 1.0
    while 1.0 + epsilon / 2.0 > 1.0:
        epsilon /= 2.0
    return epsilon, int(-math.log10(epsilon))


def round_half_away(x, digits):
    '''
    Round to ``digits`` decimal places, ties away from zero.

    Scales by a power of ten, rounds and scales back. Values too small for
    the scale to be representable are returned as is.
    '''
    if digits > sys.float_info.max_10_exp:
        return x
    scale = 10.0 ** digits
    return math.copysign(math.floor(abs(x) * scale + 0.5) / scale, x)


class Machine:
    '''
    Arithmetic stack machine state.

    Holds the operand stack, the numeric mode and word width, the lastx
    register, off-stack storage and every user setting. Operators and the
    infix compiler all act on one of these.
    '''

    DEFAULT_MODE = 'F'
    DEFAULT_FLOAT_DIGITS = 6
    DEFAULT_FLOAT_SPECIFIER = 'g'
    DEFAULT_DECIMAL_POINT = '.'
    DEFAULT_THOUSANDS_SEP = ','
    DEFAULT_CURRENCY = '$'
    DEFAULT_DIGIT_SEPARATORS = True
    REGISTERS = 5
    # Integers must survive the trip through the float mantissa.
    MAX_INT_WIDTH = min(LONGLONG_BITS, sys.float_info.mant_dig)

    def __init__(self, mode=None, width=None, float_digits=None,
                 decimal_point=None, thousands_sep=None, currency=None,
                 digitseparators=None):
        cls = type(self)
        self.stack = []
        self.stack_mark = 0
        self.mode = mode or cls.DEFAULT_MODE
        if self.mode not in MODES:
            raise ValueError('No such mode {}'.format(self.mode))
        self.epsilon, self.max_precision = detect_epsilon()
        self._setup_width(width or cls.MAX_INT_WIDTH)

        self.float_digits = float_digits or cls.DEFAULT_FLOAT_DIGITS
        self.float_specifier = cls.DEFAULT_FLOAT_SPECIFIER
        self.decimal_point = decimal_point or cls.DEFAULT_DECIMAL_POINT
        self.thousands_sep = (cls.DEFAULT_THOUSANDS_SEP
                              if thousands_sep is None else thousands_sep)
        self.currency = cls.DEFAULT_CURRENCY if currency is None else currency
        self.digitseparators = (cls.DEFAULT_DIGIT_SEPARATORS
                                if digitseparators is None
                                else digitseparators)

        self.rounding = True
        self.trig_degrees = True
        self.autoprint = True
        self.suppress_autoprint = False
        self.exit_on_error = False
        self.raw_hex_input_ok = False
        self.tracing = 0

        self.lastx = 0.0
        self.lastx_frozen = False
        self.frozen_lastx = 0.0
        self._infix_saved = None

        self.registers = [0.0] * cls.REGISTERS
        self.variables = dict()

        self.pending = []
        self.error_seen = False
        self.quiet = False

    # Word width

    def _setup_width(self, bits):
        self.int_width = bits
        self.int_sign_bit = 1 << (bits - 1)
        self.int_mask = (1 << bits) - 1
        self.int_max = self.int_mask >> 1
        self.int_min = -self.int_sign_bit

    def set_width(self, bits):
        '''
        Clamp and set the integer word width.

        In an integer mode the stack is re-masked; returns the
        (index, old value) pairs that changed.
        '''
        bits = max(2, min(int(bits), type(self).MAX_INT_WIDTH))
        self._setup_width(bits)
        if floating_mode(self.mode):
            return []
        return self._mask_stack()

    @property
    def word_width(self):
        '''
        Width used by bitwise operators: the word width, or 64 when floating.
        '''
        if floating_mode(self.mode):
            return LONGLONG_BITS
        return self.int_width

    @property
    def word_mask(self):
        return (1 << self.word_width) - 1

    def sign_extend(self, n):
        n &= self.int_mask
        if n & self.int_sign_bit:
            n -= 1 << self.int_width
        return n

    def canonical(self, value):
        '''
        The value as the current integer width represents it.

        Non-finite values have no integer form; they become the most
        negative integer.
        '''
        if not math.isfinite(value):
            return float(self.int_min)
        return float(self.sign_extend(int(value)))

    def _mask_stack(self):
        changed = []
        for i, value in enumerate(self.stack):
            n = self.canonical(value)
            if not math.isfinite(value) or n != value:
                changed.append((i, value))
                self.stack[i] = n
        return changed

    # Mode

    def set_mode(self, mode):
        '''
        Switch mode. Entering an integer mode canonicalizes the stack.

        Returns the (index, old value) pairs that lost accuracy.
        '''
        if mode not in MODES:
            raise DomainError('no such mode {!r}'.format(mode))
        self.mode = mode
        if floating_mode(mode):
            return []
        return self._mask_stack()

    @property
    def floating(self):
        return floating_mode(self.mode)

    # Float stabilization

    def snap(self, x):
        '''
        Tidy floating point detritus from a computed result.

        Values very close to an integer become that integer, everything
        else is rounded to the precision the float can really hold.
        '''
        if not self.rounding or x == 0 or not math.isfinite(x):
            return x

        abs_x = abs(x)
        # Tolerance scales with magnitude.
        tolerance = self.epsilon * 20
        if abs_x > 1:
            tolerance *= abs_x

        r = round_half_away(x, 0)
        if abs(x - r) <= tolerance:
            if x != r:
                log.debug('snap %r to %r', x, r)
            return r

        r = round_half_away(
            x, self.max_precision - math.ceil(math.log10(abs_x)))
        if x != r:
            log.debug('round %r to %r', x, r)
        return r

    # Stack

    def push(self, value):
        '''
        Push a value, masked and sign extended in the integer modes.
        '''
        value = float(value)
        if not self.floating:
            value = self.canonical(value)
        self.stack.append(value)
        log.debug(' pushed %r', value)

    def result_push(self, value):
        '''
        Push a computed result, snapping it first.
        '''
        self.push(self.snap(float(value)))

    def restore(self, *values):
        '''
        Put back operands, deepest first, exactly as they were popped.
        '''
        self.stack.extend(values)

    def peek(self):
        if not self.stack:
            raise EmptyStack('empty stack')
        return self.stack[-1]

    def pop(self):
        if not self.stack:
            raise EmptyStack('empty stack')
        value = self.stack.pop()
        self._drop_mark()
        log.debug(' popped %r', value)
        return value

    def popn(self, n):
        '''
        Pop n operands, returned deepest first.

        For binary operators that is (y, x). Nothing is popped unless all
        n operands are there.
        '''
        if len(self.stack) < n:
            raise EmptyStack('empty stack')
        values = self.stack[-n:]
        del self.stack[-n:]
        self._drop_mark()
        return values

    def _drop_mark(self):
        # remove a stack mark if we've gone below it
        if len(self.stack) < self.stack_mark:
            self.stack_mark = 0

    def clear(self):
        if self.stack:
            self.lastx = self.stack[-1]
        self.stack.clear()
        self.stack_mark = 0

    # lastx

    def recall_lastx(self):
        if self.lastx_frozen:
            return self.frozen_lastx
        return self.lastx

    def freeze_lastx(self):
        '''
        Keep lastx at its pre-expression value while infix output runs.
        '''
        if not self.lastx_frozen:
            self.frozen_lastx = self.stack[-1] if self.stack else 0.0
            self.lastx_frozen = True
            self._infix_saved = list(self.stack)

    def thaw_lastx(self):
        '''
        Commit lastx once the infix output is used up.
        '''
        if not self.lastx_frozen:
            return
        self.lastx_frozen = False
        self.lastx = self.frozen_lastx
        changed = len(self.stack) - len(self._infix_saved)
        self._infix_saved = None
        if changed != 1:
            self.error('BUG: stack changed by {} after infix'.format(changed))

    def abandon_infix(self):
        '''
        Put the stack back the way it was before a failed infix expression.
        '''
        if not self.lastx_frozen:
            return
        self.stack[:] = self._infix_saved
        self._infix_saved = None
        self.lastx_frozen = False
        self.lastx = self.frozen_lastx
        self._drop_mark()

    # Storage

    def get_variable(self, name):
        return self.variables.setdefault(name, 0.0)

    def set_variable(self, name, value):
        self.variables[name] = value

    # Reporting

    def emit(self, *args, **kwargs):
        '''
        Regular output. Silent while quiet.
        '''
        if not self.quiet:
            print(*args, file=sys.stdout, **kwargs)

    def info(self, message):
        '''
        Queue feedback, shown only if the line ends after this command.
        '''
        self.pending.append(message)

    def clear_pending(self):
        self.pending.clear()

    def flush_pending(self):
        for message in self.pending:
            self.emit(message)
        self.pending.clear()

    def error(self, message, kind='error'):
        sys.stdout.flush()
        print(' {}: {}'.format(kind, message), file=sys.stderr)
        self.error_seen = True
        if self.exit_on_error:
            raise SystemExit(4)

    def warn(self, message):
        self.error(message, kind='warning')

    def exit_status(self):
        '''
        0 when top of stack is true, 1 when it is zero, 2 when empty.
        '''
        if not self.stack:
            return 2
        return int(self.stack[-1] == 0)
