'''
Stack, modes, and float snapping
'''

import math

from rpnx.machine import Machine, detect_epsilon, round_half_away
from rpnx.util import EmptyStack, DomainError

from pytest import raises


def test_lifo():
    m = Machine()
    for n in 1, 2, 3:
        m.push(n)
    assert [m.pop(), m.pop(), m.pop()] == [3.0, 2.0, 1.0]
    with raises(EmptyStack):
        m.pop()


def test_popn_is_all_or_nothing():
    m = Machine()
    m.push(1)
    with raises(EmptyStack):
        m.popn(2)
    assert m.stack == [1.0]
    m.push(2)
    assert m.popn(2) == [1.0, 2.0]
    assert m.stack == []


def test_epsilon():
    assert detect_epsilon() == (2.0 ** -52, 15)
    m = Machine()
    assert m.max_precision == 15
    assert m.MAX_INT_WIDTH == 53


def test_canonical_in_integer_mode():
    m = Machine(mode='D', width=8)
    for value in 300, -1, 255, 128, 2.75:
        m.push(value)
    assert m.stack == [44.0, -1.0, -1.0, -128.0, 2.0]


def test_non_finite_becomes_most_negative():
    m = Machine(mode='D', width=8)
    m.push(math.inf)
    m.push(math.nan)
    assert m.stack == [-128.0, -128.0]


def test_float_mode_leaves_values_alone():
    m = Machine(width=8)
    m.push(300.5)
    assert m.stack == [300.5]


def test_set_mode_masks_stack():
    m = Machine()
    m.push(3.5)
    m.push(7)
    assert m.set_mode('D') == [(0, 3.5)]
    assert m.stack == [3.0, 7.0]
    assert m.set_mode('F') == []
    with raises(DomainError):
        m.set_mode('Z')


def test_set_width_clamps():
    m = Machine()
    m.set_width(100)
    assert m.int_width == 53
    m.set_width(1)
    assert m.int_width == 2
    assert m.int_mask == 3
    assert m.int_max == 1
    assert m.int_min == -2


def test_word_width():
    m = Machine(width=8)
    assert m.word_width == 64
    m.set_mode('H')
    assert m.word_width == 8
    assert m.word_mask == 0xff


def test_snap_to_integer():
    m = Machine()
    assert m.snap(math.sin(math.pi)) == 0.0
    assert m.snap(0.9999999999999999) == 1.0
    assert m.snap(1e20 + 1000) == 1e20 + 1000


def test_snap_rounds_detritus():
    m = Machine()
    assert m.snap(0.1 + 0.2) == 0.3
    assert m.snap(0.1 + 0.2) != 0.1 + 0.2


def test_round_half_away():
    assert round_half_away(2.5, 0) == 3.0
    assert round_half_away(-2.5, 0) == -3.0
    assert round_half_away(0.125, 2) == 0.13
    assert round_half_away(-0.125, 2) == -0.13
    assert round_half_away(1e-300, 320) == 1e-300


def test_snap_rounds_ties_away_from_zero():
    m = Machine()
    # 15 significant digits leaves no decimals, so .5 is a tie
    assert m.snap(101234567890122.5) == 101234567890123.0
    assert m.snap(-101234567890122.5) == -101234567890123.0


def test_snap_off():
    m = Machine()
    m.rounding = False
    assert m.snap(0.1 + 0.2) == 0.1 + 0.2


def test_snap_non_finite():
    m = Machine()
    assert m.snap(math.inf) == math.inf
    assert math.isnan(m.snap(math.nan))


def test_push_does_not_snap():
    m = Machine()
    m.push(0.1 + 0.2)
    m.result_push(0.1 + 0.2)
    assert m.stack == [0.1 + 0.2, 0.3]


def test_clear_remembers_top():
    m = Machine()
    m.push(4)
    m.push(5)
    m.clear()
    assert m.stack == []
    assert m.lastx == 5.0


def test_lastx_freeze_and_thaw(capsys):
    m = Machine()
    m.push(5)
    m.lastx = 1.0
    m.freeze_lastx()
    assert m.recall_lastx() == 5.0
    m.push(6)
    m.lastx = 9.0
    m.thaw_lastx()
    assert m.lastx == 5.0
    assert not m.error_seen


def test_lastx_freeze_on_empty_stack():
    m = Machine()
    m.freeze_lastx()
    m.push(1)
    m.thaw_lastx()
    assert m.lastx == 0.0


def test_thaw_reports_stack_imbalance(capsys):
    m = Machine()
    m.push(5)
    m.freeze_lastx()
    m.thaw_lastx()
    assert m.error_seen
    assert 'stack changed by 0 after infix' in capsys.readouterr().err


def test_abandon_infix():
    m = Machine()
    m.push(1)
    m.push(2)
    m.freeze_lastx()
    m.pop()
    m.push(9)
    m.push(10)
    m.abandon_infix()
    assert m.stack == [1.0, 2.0]
    assert not m.lastx_frozen
    assert m.lastx == 2.0


def test_variables():
    m = Machine()
    assert m.get_variable('_a') == 0.0
    assert '_a' in m.variables
    m.set_variable('_a', 3.0)
    assert m.get_variable('_a') == 3.0


def test_exit_status():
    m = Machine()
    assert m.exit_status() == 2
    m.push(0)
    assert m.exit_status() == 1
    m.push(5)
    assert m.exit_status() == 0


def test_error_reporting(capsys):
    m = Machine()
    m.error('oops')
    m.warn('hmm')
    err = capsys.readouterr().err
    assert ' error: oops' in err
    assert ' warning: hmm' in err
    assert m.error_seen


def test_exit_on_error(capsys):
    m = Machine()
    m.exit_on_error = True
    with raises(SystemExit) as e:
        m.warn('hmm')
    assert e.value.code == 4


def test_quiet_suppresses_output(capsys):
    m = Machine()
    m.quiet = True
    m.emit('hello')
    m.quiet = False
    m.info('pending')
    m.flush_pending()
    assert capsys.readouterr().out == 'pending\n'
