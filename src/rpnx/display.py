'''
Textual rendering of stack values.
'''

import math
import sys

from .machine import MODES, LONGLONG_BITS, floating_mode


def _group(digits, size, sep):
    '''
    Insert sep every size digits, counting from the right.
    '''
    if not sep:
        return digits
    head = len(digits) % size or size
    groups = [digits[:head]]
    groups.extend(digits[i:i + size] for i in range(head, len(digits), size))
    return sep.join(groups)


def _localize(machine, text):
    table = {}
    if machine.decimal_point != '.':
        table[ord('.')] = machine.decimal_point
    if machine.thousands_sep != ',':
        table[ord(',')] = machine.thousands_sep
    return text.translate(table) if table else text


def format_float(machine, value):
    sep = ',' if machine.digitseparators and machine.thousands_sep else ''
    if machine.float_specifier != 'f':
        text = format(value, '{}.{}g'.format(sep, machine.float_digits))
        return _localize(machine, text)

    # Don't show more digits than are significant: trim decimals as the
    # integral part grows.
    text = format(value, '{}.{}f'.format(sep, machine.float_digits))
    integral = text.split('.')[0]
    leading = sum(c.isdigit() for c in integral)
    # in "0.34", the 0 doesn't count toward significant digits
    if integral.lstrip('-') == '0':
        leading = 0
    decimals = max(0, min(machine.float_digits,
                          machine.max_precision - leading))
    text = format(value, '{}.{}f'.format(sep, decimals))
    return _localize(machine, text)


def format_value(machine, value, fmt=None):
    '''
    Render value in a display format (a mode letter).

    Returns the text and whether the integer formats had to truncate
    the value to show it.
    '''
    fmt = fmt or machine.mode
    if fmt == 'R':
        machine.raw_hex_input_ok = True
        return value.hex(), False
    if floating_mode(fmt) or not math.isfinite(value):
        return format_float(machine, value), False

    n = machine.canonical(value)
    changed = n != value
    sep = machine.thousands_sep if machine.digitseparators else ''
    bits = int(n) & machine.int_mask

    if fmt == 'H':
        text = '0x' + _group(format(bits, 'x'), 4, sep)
    elif fmt == 'O':
        text = '0' + _group(format(bits, 'o'), 3, sep)
    elif fmt == 'B':
        width = LONGLONG_BITS if machine.floating else machine.int_width
        text = '0b' + _group(format(bits, '0{}b'.format(width)), 8, sep)
    elif fmt == 'U':
        text = _group(str(bits), 3, sep)
    else:
        signed = machine.sign_extend(bits)
        text = ('-' if signed < 0 else '') + \
            _group(str(abs(signed)), 3, sep)
    return text, changed


def show(machine, value, fmt=None):
    '''
    Print one value, warning if the format loses accuracy.
    '''
    text, changed = format_value(machine, value, fmt)
    machine.emit(' ' + text)
    machine.suppress_autoprint = True
    if changed:
        machine.warn('display format loses accuracy')


def print_top(machine, fmt=None):
    if machine.stack:
        show(machine, machine.stack[-1], fmt)
    machine.suppress_autoprint = True


def print_stack(machine, changed=()):
    '''
    Print the whole stack, top last, in the active mode.

    :param changed: (index, old value) pairs that a mode change truncated.
    '''
    lost = dict(changed)
    for i, value in enumerate(machine.stack):
        text, _ = format_value(machine, value)
        machine.emit(' ' + text)
        if i in lost:
            machine.warn('accuracy lost, was {:.{}g}'.format(
                lost[i], machine.max_precision))
    machine.suppress_autoprint = True


def describe_mode(machine):
    message = ' Mode is {}. '.format(MODES[machine.mode])
    if machine.mode == 'F':
        if machine.float_specifier == 'g':
            what = 'of total precision'
        else:
            what = 'after the decimal'
        message += ' Displaying {} digits {}.'.format(machine.float_digits,
                                                      what)
    elif machine.mode == 'R':
        message += ' Displaying using floating hexadecimal.'
    else:
        message += ' Integer math with {} bits.'.format(machine.int_width)
    return message


def print_state(machine):
    emit = machine.emit
    emit()
    emit(' Current mode is {}'.format(machine.mode))
    emit()
    emit(' In floating mode:')
    emit('  max precision is {} decimal digits'.format(machine.max_precision))
    emit('  current display mode is "{} {}"'.format(
        machine.float_digits,
        'decimals' if machine.float_specifier == 'f' else 'precision'))
    emit('  snapping/rounding is {}'.format('on' if machine.rounding
                                            else 'off'))
    emit('  trig functions use {}'.format('degrees' if machine.trig_degrees
                                          else 'radians'))
    emit()
    emit(' In integer modes:')
    emit('  width is {} bits'.format(machine.int_width))
    for label, n in [('mask', machine.int_mask),
                     ('sign bit', machine.int_sign_bit),
                     ('max', machine.int_max),
                     ('min', machine.int_min & machine.int_mask)]:
        emit('  {:9} 0x{:x}'.format(label + ':', n))
    emit()
    emit(' Stack, top comes first:')
    if not machine.stack:
        emit('{:>16}'.format('<empty>'))
    for value in reversed(machine.stack):
        integral = int(value) if math.isfinite(value) else 0
        emit(' {:>#20x}   {!r:>24}   {}'.format(
            integral & ((1 << LONGLONG_BITS) - 1), value, value.hex()))
    emit(' stack count {}, stack mark {}'.format(len(machine.stack),
                                                 machine.stack_mark))
    if machine.variables:
        emit(' Variables:')
        for name, value in machine.variables.items():
            emit('  {} = {!r}'.format(name, value))
    emit()
    emit(' Float: mantissa {} bits, epsilon {!r} ({})'.format(
        sys.float_info.mant_dig, machine.epsilon, machine.epsilon.hex()))
    emit(' Decimal point {!r}, thousands separator {!r}, currency {!r}'
         .format(machine.decimal_point, machine.thousands_sep,
                 machine.currency))
    machine.suppress_autoprint = True


def print_help(machine, sections):
    '''
    List every command, grouped, with shared help text.

    :param sections: (title, operators) pairs from the catalog.
    '''
    emit = machine.emit
    emit(' rpnx -- an RPN calculator with infix expressions')
    emit('  Entering a number pushes it on the stack.')
    emit('  Operators replace either one or two stack values with their '
         'result.')
    emit('  Infix expressions are entered using (...), as in: '
         '(sin(30)^2 + cos(30)^2)')
    emit("  Below, 'x' refers to top-of-stack, 'y' to the value beneath.")
    for title, operators in sections:
        emit()
        emit(' ' + title)
        names = []
        for op in operators:
            names.append(op.name)
            if op.help is not None:
                emit('{:>21}     {}'.format(' ' + ', '.join(names), op.help))
                names = []
    machine.suppress_autoprint = True


def print_precedence(machine, operators):
    '''
    List infix operators from highest to lowest precedence.
    '''
    rows = {}
    right = set()
    for op in operators:
        if op.prec <= 0:
            continue
        rows.setdefault(op.prec, []).append(op.name)
        if op.right_assoc:
            right.add(op.prec)
    machine.emit(' Precedence for operators in infix expressions, from')
    machine.emit('  top to bottom in order of descending precedence.')
    machine.emit(" Rows marked 'R' associate right to left.")
    for i, prec in enumerate(sorted(rows, reverse=True), start=1):
        machine.emit(' {:<2}  {}     {}'.format(i, 'R' if prec in right else ' ',
                                             ' '.join(rows[prec])))
    machine.suppress_autoprint = True
