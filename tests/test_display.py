'''
Formatting of stack values
'''

import math

from rpnx.display import format_value, print_stack, print_state, describe_mode
from rpnx.machine import Machine

from pytest import mark


@mark.parametrize('fmt, value, text', [
    ('H', 255, '0xff'),
    ('O', 8, '010'),
    ('B', 5, '0b00000000,00000101'),
    ('D', -1, '-1'),
    ('U', -1, '65,535'),
    ('D', 1234, '1,234'),
])
def test_integer_formats(fmt, value, text):
    m = Machine(mode='D', width=16)
    m.push(value)
    assert format_value(m, m.stack[-1], fmt) == (text, False)


def test_hex_groups_by_four():
    m = Machine(mode='H', width=32)
    m.push(0x12345)
    assert format_value(m, m.stack[-1]) == ('0x1,2345', False)


def test_binary_is_64_bits_in_float_mode():
    m = Machine(width=8)
    text, _ = format_value(m, 1.0, 'B')
    assert text.startswith('0b00000000,')
    assert len(text.replace(',', '')) == 2 + 64


def test_without_separators():
    m = Machine(digitseparators=False)
    assert format_value(m, 1234567.0, 'D') == ('1234567', False)
    assert format_value(m, 1234.5) == ('1234.5', False)


def test_fraction_in_integer_format_loses_accuracy():
    m = Machine()
    assert format_value(m, 3.5, 'D') == ('3', True)


def test_float_formats():
    m = Machine()
    assert format_value(m, 1234.5) == ('1,234.5', False)
    assert format_value(m, 1234567.0) == ('1.23457e+06', False)
    m.float_specifier = 'f'
    m.float_digits = 2
    assert format_value(m, math.pi) == ('3.14', False)


def test_decimals_limited_by_precision():
    m = Machine(digitseparators=False)
    m.float_specifier = 'f'
    m.float_digits = 10
    assert format_value(m, 123456789012.5)[0] == '123456789012.500'


def test_non_finite_always_float():
    m = Machine(mode='H')
    assert format_value(m, math.inf) == ('inf', False)


def test_raw_hex():
    m = Machine()
    assert format_value(m, 3.0, 'R') == ('0x1.8000000000000p+1', False)
    assert m.raw_hex_input_ok


def test_localized_separators():
    m = Machine(decimal_point=',', thousands_sep='.')
    assert format_value(m, 1234.5) == ('1.234,5', False)


def test_print_stack(capsys):
    m = Machine(mode='H')
    m.push(10)
    m.push(11)
    print_stack(m, [(1, 11.5)])
    captured = capsys.readouterr()
    assert captured.out == ' 0xa\n 0xb\n'
    assert 'accuracy lost, was 11.5' in captured.err
    assert m.suppress_autoprint


def test_describe_mode():
    assert 'Integer math with 53 bits' in describe_mode(Machine(mode='H'))
    assert '6 digits of total precision' in describe_mode(Machine())


def test_print_state(capsys):
    m = Machine()
    m.push(255)
    m.set_variable('_v', 2.0)
    print_state(m)
    out = capsys.readouterr().out
    assert ' Current mode is F' in out
    assert '0xff' in out
    assert '_v = 2.0' in out
    assert 'stack count 1, stack mark 0' in out
