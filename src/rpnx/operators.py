'''
Operators and the operator catalog.

One table drives both RPN execution (name, implementation, operand count)
and the infix grammar (precedence, associativity). An operator's
implementation takes the Machine; a string implementation names a method
of the Evaluator instead, for commands that need the input line or the
loop itself.
'''

from collections import namedtuple
from functools import wraps
import math

from . import display
from .logging import set_tracing
from .machine import LLONG_MIN, LLONG_MAX, LONGLONG_BITS
from .util import RPNError, DomainError, wrap_user_errors


# Operand counts other than 0, 1 and 2.
SYM = -1     # a named number, like pi or r1
LVAL = -2    # can be assigned to, like s1

LEFT = 'left'
RIGHT = 'right'


class Operator(namedtuple('Operator', 'name func help operands prec assoc')):
    '''
    Descriptor for one operator name. Immutable.
    '''
    __slots__ = ()

    @property
    def right_assoc(self):
        return self.assoc == RIGHT

    @property
    def unary(self):
        return self.operands == 1

    @property
    def binary(self):
        return self.operands == 2


def op(name, func, help=None, operands=0, prec=0, assoc=None):
    if assoc is None:
        assoc = RIGHT if operands == 1 else LEFT
    return Operator(name, func, help, operands, prec, assoc)


# Operator shapes

def _push_result(machine, value, snap):
    if snap:
        machine.result_push(value)
    else:
        machine.push(value)


def unary(snap=True, floating=False):
    '''
    Operator on x alone. Remembers x as lastx.

    :param snap: Result is a computed float, snap it.
    :param floating: Only makes sense in floating modes.
    '''
    def decorator(f):
        compute = wrap_user_errors(
            f.__name__.strip('_') + ': bad operand {1!r}')(f)

        @wraps(f)
        def wrapper(machine):
            if floating and not machine.floating:
                raise DomainError('trig functions make no sense in '
                                  'integer mode')
            x, = machine.popn(1)
            try:
                result = compute(machine, x)
            except RPNError:
                machine.restore(x)
                raise
            _push_result(machine, result, snap)
            machine.lastx = x
        return wrapper
    return decorator


def binary(snap=True, floating=False):
    '''
    Operator computing y OP x. Remembers x as lastx.
    '''
    def decorator(f):
        compute = wrap_user_errors(
            f.__name__.strip('_') + ': bad operands {1!r}, {2!r}')(f)

        @wraps(f)
        def wrapper(machine):
            if floating and not machine.floating:
                raise DomainError('trig functions make no sense in '
                                  'integer mode')
            y, x = machine.popn(2)
            try:
                result = compute(machine, y, x)
            except RPNError:
                machine.restore(y, x)
                raise
            _push_result(machine, result, snap)
            machine.lastx = x
        return wrapper
    return decorator


def _in_range(*values):
    return all(LLONG_MIN <= v <= LLONG_MAX for v in values)


def bitwise(f):
    '''
    Binary operator on 64 bit integers.

    A non-finite operand is the result (NaN winning over infinities).
    '''
    @wraps(f)
    def wrapper(machine):
        y, x = machine.popn(2)
        for value in (y, x):
            if math.isnan(value):
                machine.push(value)
                return
        for value in (y, x):
            if math.isinf(value):
                machine.push(value)
                return
        if not _in_range(y, x):
            machine.restore(y, x)
            raise DomainError('bitwise operand(s) bigger/smaller than '
                              'LLONG_MAX/MIN')
        try:
            result = f(machine, int(y), int(x))
        except RPNError:
            machine.restore(y, x)
            raise
        machine.push(result)
        machine.lastx = x
    return wrapper


def _signed64(n):
    n &= (1 << LONGLONG_BITS) - 1
    if n > LLONG_MAX:
        n -= 1 << LONGLONG_BITS
    return n


# Arithmetic

@binary()
def add(machine, y, x):
    return y + x


@binary()
def subtract(machine, y, x):
    return y - x


@binary()
def multiply(machine, y, x):
    return y * x


@binary()
def divide(machine, y, x):
    if x == 0:
        raise DomainError('division by zero')
    return y / x


@binary()
def modulo(machine, y, x):
    if x == 0:
        raise DomainError('modulo by zero')
    return math.fmod(y, x)


@binary()
def power(machine, y, x):
    try:
        return math.pow(y, x)
    except OverflowError:
        negative = y < 0 and x == int(x) and int(x) % 2
        return -math.inf if negative else math.inf


@unary()
def exponential(machine, x):
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


@unary()
def recip(machine, x):
    if x == 0:
        raise DomainError('reciprocal of zero')
    return 1.0 / x


@unary()
def squareroot(machine, x):
    if x < 0:
        raise DomainError('square root of negative number')
    return math.sqrt(x)


@unary(snap=False)
def chsign(machine, x):
    return -x


@unary(snap=False)
def absolute(machine, x):
    return abs(x)


def nop(machine):
    pass


@unary()
def fraction(machine, x):
    if not math.isfinite(x):
        return math.nan
    return x - math.trunc(x)


@unary()
def integer(machine, x):
    if not math.isfinite(x):
        return x
    return math.trunc(x)


def _logarithm(base):
    def logarithm(machine, x):
        if x < 0:
            raise DomainError('logarithm of negative number')
        if x == 0:
            return -math.inf
        if base == 2:
            return math.log2(x)
        elif base == 10:
            return math.log10(x)
        return math.log(x)
    logarithm.__name__ = 'log{}'.format(base or '')
    return unary()(logarithm)


log_natural = _logarithm(None)
log_base2 = _logarithm(2)
log_base10 = _logarithm(10)


# Trig, in degrees or radians

def user_angle_to_radians(machine, angle):
    return math.radians(angle) if machine.trig_degrees else angle


def radians_to_user_angle(machine, rads):
    return math.degrees(rads) if machine.trig_degrees else rads


@unary(floating=True)
def sine(machine, x):
    return math.sin(user_angle_to_radians(machine, x))


@unary(floating=True)
def cosine(machine, x):
    return math.cos(user_angle_to_radians(machine, x))


@unary(floating=True)
def tangent(machine, x):
    # tan() goes undefined at +/-90
    degrees = x if machine.trig_degrees else math.degrees(x)
    if math.isfinite(x) and math.fmod(machine.snap(degrees) - 90, 180) == 0:
        return math.nan
    return math.tan(user_angle_to_radians(machine, x))


@unary(floating=True)
def asine(machine, x):
    return radians_to_user_angle(machine, math.asin(x))


@unary(floating=True)
def acosine(machine, x):
    return radians_to_user_angle(machine, math.acos(x))


@unary(floating=True)
def atangent(machine, x):
    return radians_to_user_angle(machine, math.atan(x))


@binary(floating=True)
def atangent2(machine, y, x):
    return radians_to_user_angle(machine, math.atan2(y, x))


# Bitwise

def _shift_count(machine, count):
    if count < 0:
        raise DomainError('shift by negative not allowed')
    if count >= machine.word_width:
        raise DomainError('shift by {} or more bits not allowed'.format(
            machine.word_width))


@bitwise
def rshift(machine, y, x):
    _shift_count(machine, x)
    # logical, not arithmetic
    return (y & machine.word_mask) >> x


@bitwise
def lshift(machine, y, x):
    _shift_count(machine, x)
    return _signed64(y << x)


@bitwise
def bitwise_and(machine, y, x):
    return y & x


@bitwise
def bitwise_or(machine, y, x):
    return y | x


@bitwise
def bitwise_xor(machine, y, x):
    return y ^ x


@bitwise
def setbit(machine, y, x):
    if x < 0:
        raise DomainError('negative bit number not allowed')
    if x >= LONGLONG_BITS:
        return y
    return _signed64(y | (1 << x))


@bitwise
def clearbit(machine, y, x):
    if x < 0:
        raise DomainError('negative bit number not allowed')
    if x >= LONGLONG_BITS:
        return y
    return _signed64(y & ~(1 << x))


def bitwise_not(machine):
    x, = machine.popn(1)
    if not math.isfinite(x):
        machine.push(x)
        return
    if not _in_range(x):
        machine.restore(x)
        raise DomainError('bitwise operand bigger/smaller than '
                          'LLONG_MAX/MIN')
    machine.push(~int(x))
    machine.lastx = x


# Logical

@binary(snap=False)
def logical_and(machine, y, x):
    return bool(y) and bool(x)


@binary(snap=False)
def logical_or(machine, y, x):
    return bool(y) or bool(x)


@binary(snap=False)
def is_eq(machine, y, x):
    return y == x


@binary(snap=False)
def is_neq(machine, y, x):
    return y != x


@binary(snap=False)
def is_lt(machine, y, x):
    return y < x


@binary(snap=False)
def is_le(machine, y, x):
    return y <= x


@binary(snap=False)
def is_gt(machine, y, x):
    return y > x


@binary(snap=False)
def is_ge(machine, y, x):
    return y >= x


@unary(snap=False)
def logical_not(machine, x):
    return x == 0


def assignment(machine):
    '''
    Marker only. The infix compiler and the evaluator give it meaning.
    '''


def close_paren(machine):
    # The command in error has already run; all we can do is complain.
    machine.warn('mismatched/extra parentheses')
    return False


# Stack manipulation

def clear(machine):
    machine.clear()


def rolldown(machine):
    machine.lastx = machine.pop()


def enter(machine):
    x = machine.peek()
    machine.push(x)


def exchange(machine):
    y, x = machine.popn(2)
    machine.restore(x, y)


def repush(machine):
    machine.push(machine.recall_lastx())


def mark(machine):
    n, = machine.popn(1)
    count = len(machine.stack)
    if n == -1:
        # special case: clear the mark
        machine.stack_mark = 0
    elif not 0 <= n <= count:
        machine.restore(n)
        raise DomainError('bad mark, range between 0 and stack length '
                          '({}), or -1 to clear'.format(count))
    else:
        machine.stack_mark = count - int(n)


def _sum_to_mark(machine, average):
    if len(machine.stack) <= machine.stack_mark:
        raise DomainError('nothing to {}'.format('avg' if average else 'sum'))
    values = machine.popn(len(machine.stack) - machine.stack_mark)
    machine.stack_mark = 0
    total = sum(values)
    machine.result_push(total / len(values) if average else total)


def stack_sum(machine):
    _sum_to_mark(machine, average=False)


def stack_avg(machine):
    _sum_to_mark(machine, average=True)


# Constants and storage

def store(location):
    def store(machine):
        machine.registers[location - 1] = machine.peek()
    store.__name__ = 'store{}'.format(location)
    return store


def recall(location):
    def recall(machine):
        machine.push(machine.registers[location - 1])
    recall.__name__ = 'recall{}'.format(location)
    return recall


def push_pi(machine):
    machine.push(math.pi)


def push_e(machine):
    machine.push(math.e)


# Unit conversions

def conversion(name, convert):
    def converter(machine, x):
        return convert(x)
    converter.__name__ = name
    return unary()(converter)


units_in_mm = conversion('in_mm', lambda a: a * 25.4)
units_mm_in = conversion('mm_in', lambda a: a / 25.4)
units_ft_m = conversion('ft_m', lambda a: a / 3.28084)
units_m_ft = conversion('m_ft', lambda a: a * 3.28084)
units_mi_km = conversion('mi_km', lambda a: a / 0.6213712)
units_km_mi = conversion('km_mi', lambda a: a * 0.6213712)
units_F_C = conversion('F_C', lambda a: (a - 32.0) / 1.8)
units_C_F = conversion('C_F', lambda a: a * 1.8 + 32.0)
units_oz_g = conversion('oz_g', lambda a: a * 28.3495)
units_g_oz = conversion('g_oz', lambda a: a / 28.3495)
units_oz_ml = conversion('oz_ml', lambda a: a * 29.5735)
units_ml_oz = conversion('ml_oz', lambda a: a / 29.5735)
units_qt_l = conversion('qt_l', lambda a: a / 1.05669)
units_l_qt = conversion('l_qt', lambda a: a * 1.05669)
units_deg_rad = conversion('deg_rad', math.radians)
units_rad_deg = conversion('rad_deg', math.degrees)


# Display

def printer(fmt):
    def print_top(machine):
        display.print_top(machine, fmt)
    print_top.__name__ = 'print_{}'.format(fmt or 'top')
    return print_top


def printall(machine):
    display.print_stack(machine)


def printstate(machine):
    display.print_state(machine)


# Modes and settings

def _pop_int(machine):
    n, = machine.popn(1)
    if not math.isfinite(n):
        machine.restore(n)
        raise DomainError('expected a whole number, got {!r}'.format(n))
    return int(n)


def _toggle(machine):
    want, = machine.popn(1)
    if want not in (0, 1):
        machine.warn('toggle commands usually take 0 or 1 as their argument')
    return want != 0


def mode_switch(mode):
    def switch(machine):
        changed = machine.set_mode(mode)
        machine.info(display.describe_mode(machine))
        display.print_stack(machine, changed)
    switch.__name__ = 'mode_{}'.format(mode)
    return switch


def modeinfo(machine):
    machine.info(display.describe_mode(machine))
    machine.suppress_autoprint = True


def precision(machine):
    machine.float_digits = abs(_pop_int(machine))
    limited = ''
    # this is total digits, so '0' doesn't make sense
    if machine.float_digits < 1:
        machine.float_digits = 1
    elif machine.float_digits > machine.max_precision:
        machine.float_digits = machine.max_precision
        limited = 'the maximum of '
    machine.float_specifier = 'g'
    machine.info(' Will show {}{} significant digit{}.'.format(
        limited, machine.float_digits,
        '' if machine.float_digits == 1 else 's'))
    if machine.mode != 'F':
        machine.info(' Not in floating decimal mode, float precision'
                     ' recorded but ignored.')


def decimal_length(machine):
    # digits after the decimal, so '0' is okay
    machine.float_digits = min(abs(_pop_int(machine)), machine.max_precision)
    machine.float_specifier = 'f'
    if machine.float_digits == 0:
        machine.info(' Will show no digits after the decimal.')
    else:
        machine.info(' Will show at most {} digit{} after the decimal.'.format(
            machine.float_digits, '' if machine.float_digits == 1 else 's'))
    if machine.mode != 'F':
        machine.info(' Not in floating decimal mode, decimal'
                     ' length is recorded but ignored.')


def width(machine):
    bits = _pop_int(machine)
    maximum = machine.MAX_INT_WIDTH
    if bits == 0:
        bits = maximum
    elif bits > maximum:
        bits = maximum
        machine.emit(' Width out of range, set to max ({})'.format(bits))
    elif bits < 2:
        bits = 2
        machine.emit(' Width out of range, set to min ({})'.format(bits))

    changed = machine.set_width(bits)
    machine.info(' Integers are now {} bits wide.'.format(machine.int_width))
    if machine.floating:
        machine.info(' In floating mode, integer width'
                     ' is recorded but ignored.')
    coerced = sum(1 for _, old in changed if not math.isfinite(old))
    if coerced:
        machine.warn('{} non-finite value{} converted to integer'.format(
            coerced, '' if coerced == 1 else 's'))


def use_degrees(machine):
    machine.trig_degrees = _toggle(machine)
    machine.info(' trig functions will now use {}'.format(
        'degrees' if machine.trig_degrees else 'radians'))


def autoprint(machine):
    machine.autoprint = _toggle(machine)
    machine.info(' Autoprinting is now {}'.format(
        'on' if machine.autoprint else 'off'))


def separators(machine):
    want = _toggle(machine)
    if not machine.thousands_sep:
        machine.digitseparators = False
        machine.info(' No thousands separator defined, so no numeric'
                     ' separators.')
        return
    machine.digitseparators = want
    machine.info(' Numeric separators now {}'.format('on' if want else 'off'))


def rounding(machine):
    machine.rounding = _toggle(machine)
    machine.info(' Float snapping/rounding is now {}'.format(
        'on' if machine.rounding else 'off'))


def tracing(machine):
    machine.tracing = set_tracing(_pop_int(machine))
    machine.emit(' internal tracing is now level {}'.format(machine.tracing))


def enable_errexit(machine):
    machine.exit_on_error = _toggle(machine)
    machine.info(' errors and warnings will {} cause exit'.format(
        'now' if machine.exit_on_error else 'not'))


# The catalog. Entries without help share the help of the next entry.
SECTIONS = [
    ('Numerical operators with two operands:', [
        op('+', add, None, 2, 18),
        op('-', subtract, 'Add and subtract x and y', 2, 18),
        op('*', multiply, None, 2, 20),
        op('x', multiply, 'Multiply x and y', 2, 20),
        op('/', divide, None, 2, 20),
        op('%', modulo, 'Divide and modulo of y by x', 2, 20),
        op('^', power, None, 2, 22, RIGHT),
        op('**', power, "Raise y to the x'th power", 2, 22, RIGHT),
        op('>>', rshift, None, 2, 16),
        op('<<', lshift, 'Right/left logical shift of y by x bits', 2, 16),
        op('&', bitwise_and, None, 2, 14),
        op('|', bitwise_or, None, 2, 10),
        op('xor', bitwise_xor, 'Bitwise AND, OR, and XOR of y and x', 2, 12),
        op('setb', setbit, None, 2, 10),
        op('clearb', clearbit, 'Set and clear bit x in y', 2, 14),
        op('=', assignment, 'Assignment (to storage locations)', 2, 1),
    ]),
    ('Numerical operators with one operand:', [
        op('~', bitwise_not, "Bitwise NOT of x (1's complement)", 1, 26),
        op('chs', chsign, None, 1, 26),
        op('negate', chsign, "Change sign of x (2's complement)", 1, 26),
        op('nop', nop, 'Does nothing', 1, 26),
        op('recip', recip, None, 1, 26),
        op('sqrt', squareroot, 'Reciprocal and square root of x', 1, 26),
        op('sin', sine, None, 1, 26),
        op('cos', cosine, None, 1, 26),
        op('tan', tangent, None, 1, 26),
        op('asin', asine, None, 1, 26),
        op('acos', acosine, None, 1, 26),
        op('atan', atangent, 'Trig functions', 1, 26),
        op('atan2', atangent2, 'Arctan of y/x (2 operands)', 2, 26),
        op('exp', exponential, "Raise e to the x'th power", 1, 26),
        op('ln', log_natural, None, 1, 26),
        op('log2', log_base2, None, 1, 26),
        op('log10', log_base10, 'Natural, base 2, and base 10 logarithms',
           1, 26),
        op('abs', absolute, None, 1, 26),
        op('frac', fraction, None, 1, 26),
        op('int', integer, 'Absolute value, fractional and integer parts '
           'of x', 1, 26),
        op('(', 'open_paren', None, 0, 28),
        op(')', close_paren, 'Begin and end "infix" expression'),
    ]),
    ('Logical operators (mostly two operands):', [
        op('&&', logical_and, None, 2, 4),
        op('||', logical_or, 'Logical AND and OR', 2, 2),
        op('==', is_eq, None, 2, 6),
        op('!=', is_neq, None, 2, 6),
        op('<', is_lt, None, 2, 8),
        op('<=', is_le, None, 2, 8),
        op('>', is_gt, None, 2, 8),
        op('>=', is_ge, 'Arithmetic comparisons', 2, 8),
        op('!', logical_not, 'Logical NOT of x', 1, 26),
    ]),
    ('Stack manipulation:', [
        op('clear', clear, 'Clear stack'),
        op('pop', rolldown, 'Pop (and discard) x'),
        op('push', enter, None),
        op('dup', enter, 'Push (a duplicate of) x'),
        op('lastx', repush, None, SYM),
        op('lx', repush, 'Fetch previous value of x', SYM),
        op('exch', exchange, None),
        op('swap', exchange, 'Exchange x and y'),
        op('mark', mark, 'Mark stack for later summing'),
        op('sum', stack_sum, 'Sum stack to "mark", or entire stack if no '
           'mark'),
        op('avg', stack_avg, 'Average stack to "mark", or entire stack if '
           'no mark'),
    ]),
    ('Constants and storage (no operands):', [
        op('store', store(1), None, LVAL),
        op('recall', recall(1), 'Same as s1 and r1', SYM),
        op('s1', store(1), None, LVAL),
        op('s2', store(2), None, LVAL),
        op('s3', store(3), None, LVAL),
        op('s4', store(4), None, LVAL),
        op('s5', store(5), 'Save x off-stack (to 5 locations)', LVAL),
        op('r1', recall(1), None, SYM),
        op('r2', recall(2), None, SYM),
        op('r3', recall(3), None, SYM),
        op('r4', recall(4), None, SYM),
        op('r5', recall(5), 'Fetch x (from 5 locations)', SYM),
        op('pi', push_pi, 'Push constant pi', SYM),
        op('e', push_e, 'Push constant e', SYM),
    ]),
    ('Unit conversions (one operand):', [
        op('i2mm', units_in_mm, None, 1, 26),
        op('mm2i', units_mm_in, 'inches / millimeters', 1, 26),
        op('ft2m', units_ft_m, None, 1, 26),
        op('m2ft', units_m_ft, 'feet / meters', 1, 26),
        op('mi2km', units_mi_km, None, 1, 26),
        op('km2mi', units_km_mi, 'miles / kilometers', 1, 26),
        op('f2c', units_F_C, None, 1, 26),
        op('c2f', units_C_F, 'degrees F/C', 1, 26),
        op('oz2g', units_oz_g, None, 1, 26),
        op('g2oz', units_g_oz, 'ounces / grams', 1, 26),
        op('oz2ml', units_oz_ml, None, 1, 26),
        op('ml2oz', units_ml_oz, 'ounces / milliliters', 1, 26),
        op('q2l', units_qt_l, None, 1, 26),
        op('l2q', units_l_qt, 'quarts / liters', 1, 26),
        op('d2r', units_deg_rad, None, 1, 26),
        op('r2d', units_rad_deg, 'degrees / radians', 1, 26),
    ]),
    ('Display:', [
        op('P', printall, 'Print whole stack according to mode'),
        op('p', printer(None), 'Print x according to mode'),
        op('f', printer('F'), None),
        op('d', printer('D'), None),
        op('u', printer('U'), 'Print x as float, decimal, unsigned decimal,'),
        op('h', printer('H'), None),
        op('o', printer('O'), None),
        op('b', printer('B'), '     hex, octal, or binary'),
        op('state', printstate, 'Show calculator state'),
    ]),
    ('Modes:', [
        op('F', mode_switch('F'), None),
        op('D', mode_switch('D'), None),
        op('U', mode_switch('U'), 'Switch to floating point, decimal, '
           'unsigned decimal,'),
        op('H', mode_switch('H'), None),
        op('O', mode_switch('O'), None),
        op('B', mode_switch('B'), '     hex, octal, or binary modes'),
        op('precision', precision, None),
        op('k', precision, 'Float format: number of significant digits'),
        op('decimals', decimal_length, None),
        op('K', decimal_length, 'Float format: digits after decimal'),
        op('width', width, None),
        op('w', width, 'Set effective word size for integer modes'),
        op('degrees', use_degrees, 'Toggle trig functions: degrees (1) or '
           'radians (0)'),
        op('autoprint', autoprint, None),
        op('a', autoprint, 'Toggle autoprinting on/off with 0/1'),
        op('separators', separators, None),
        op('s', separators, 'Toggle numeric separators (i.e., commas) '
           'on/off (0/1)'),
        op('mode', modeinfo, 'Display current mode parameters'),
    ]),
    ('Debug support:', [
        op('r', printer('R'), 'Print x as raw floating hex'),
        op('R', mode_switch('R'), 'Switch to raw floating hex mode'),
        op('rounding', rounding, 'Toggle snapping and rounding of floats'),
        op('tracing', tracing, 'Set debug tracing level (0, 1, 2)'),
    ]),
    ('Housekeeping:', [
        op('?', 'help', None),
        op('help', 'help', 'Show this list'),
        op('precedence', 'precedence', 'List infix operator precedence'),
        op('quit', 'quit', None),
        op('q', 'quit', None),
        op('exit', 'quit', 'Leave the calculator'),
        op('errorexit', enable_errexit, 'Toggle exiting on error and '
           'warning'),
    ]),
]

OPERATORS = tuple(operator
                  for _, operators in SECTIONS
                  for operator in operators)

_BY_NAME = {operator.name: operator for operator in OPERATORS}
assert len(_BY_NAME) == len(OPERATORS), 'duplicate operator name'


def lookup(name):
    '''
    Exact-match an operator name. None if there's no such operator.
    '''
    return _BY_NAME.get(name)


__all__ = ["Operator", "OPERATORS", "SECTIONS", "SYM", "LVAL", "lookup"]
