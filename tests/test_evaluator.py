'''
Whole lines through the evaluator
'''

import logging

from rpnx.evaluator import Evaluator
from rpnx.logging import log, set_tracing
from rpnx.machine import Machine

from pytest import raises, mark


def evaluate(*lines, **settings):
    evaluator = Evaluator(Machine(**settings))
    for line in lines:
        evaluator.feed(line)
    return evaluator.machine


def stack(*lines, **settings):
    return evaluate(*lines, **settings).stack


@mark.parametrize('line, expected', [
    ('3 4 +', 7.0),
    ('(3 + 4)', 7.0),
    ('(2 + 3 * 4)', 14.0),
    ('((2 + 3) * 4)', 20.0),
    ('(2 ^ 3 ^ 2)', 512.0),
    ('(-3 + 4)', 1.0),
    ('(3 - -4)', 7.0),
    ('((1/3) * 3)', 1.0),
    ('(sin(30)^2 + cos(30)^2)', 1.0),
    ('(+3)', 3.0),
    ('(2 > 1 && 1 > 2 || 1)', 1.0),
])
def test_expressions(line, expected):
    assert stack(line) == [expected]


def test_rpn_and_infix_agree():
    assert stack('2 3 4 * +') == stack('(2 + 3 * 4)')


def test_infix_mixed_with_rpn():
    assert stack('10 (3 + 4) *') == [70.0]


def test_autoprint(capsys):
    evaluate('3 4 +')
    assert capsys.readouterr().out == ' 7\n'


def test_no_autoprint_after_number(capsys):
    evaluate('3 4')
    assert capsys.readouterr().out == ''


def test_autoprint_off(capsys):
    evaluate('0 a', '3 4 +')
    assert capsys.readouterr().out == ' Autoprinting is now off\n'


def test_settings_message_only_at_end_of_line(capsys):
    evaluate('3 k 1 2 +')
    assert capsys.readouterr().out == ' 3\n'
    evaluate('3 k')
    assert capsys.readouterr().out == ' Will show 3 significant digits.\n'


def test_precision_display(capsys):
    evaluate('2 k', '(1/3)')
    assert capsys.readouterr().out.splitlines()[-1] == ' 0.33'


def test_width_then_mode():
    m = evaluate('300 8 w D')
    assert m.stack == [44.0]
    m = evaluate('300 8 w D', 'F')
    assert m.stack == [44.0]


def test_integer_mode_truncates():
    assert stack('D 7 2 /') == [3.0]


def test_mode_change_reports_lost_accuracy(capsys):
    assert stack('3.5 D') == [3.0]
    captured = capsys.readouterr()
    assert 'accuracy lost, was 3.5' in captured.err
    assert captured.out.startswith(' 3\n')


def test_division_by_zero(capsys):
    m = evaluate('5 0 /')
    assert m.stack == [5.0, 0.0]
    assert m.error_seen
    captured = capsys.readouterr()
    assert 'division by zero' in captured.err
    assert captured.out == ''


def test_error_does_not_abort_line(capsys):
    assert stack('5 0 / 3') == [5.0, 0.0, 3.0]


def test_unclosed_expression_pushes_nothing(capsys):
    m = evaluate('(2 + 3')
    assert m.stack == []
    assert 'missing parentheses' in capsys.readouterr().err


def test_syntax_error_aborts_line(capsys):
    assert stack('1 (2 3) 4') == [1.0]
    assert 'bad expression sequence' in capsys.readouterr().err


def test_infix_failure_restores_stack(capsys):
    assert stack('1 (2 / (3 - 3)) 5') == [1.0, 5.0]
    assert 'division by zero' in capsys.readouterr().err


def test_unknown_word(capsys):
    assert stack('3 foo 4') == [3.0, 4.0]
    assert "unrecognized input 'foo'" in capsys.readouterr().err


def test_stray_close_paren(capsys):
    assert stack('3 )') == [3.0]
    captured = capsys.readouterr()
    assert 'mismatched/extra parentheses' in captured.err
    assert captured.out == ''


def test_comments_and_separators():
    assert stack('1,000 $2 + # and a comment') == [1002.0]


def test_lastx():
    assert stack('3 4 + lastx') == [7.0, 4.0]


def test_lastx_after_infix():
    assert stack('10 (3 + 4) lastx') == [10.0, 7.0, 10.0]
    assert stack('(3 + 4) lx') == [7.0, 0.0]


def test_lastx_inside_infix():
    assert stack('5 (lastx + 1)') == [5.0, 6.0]


def test_variables():
    m = evaluate('(_x = 3 + 4)', '_x 1 +')
    assert m.stack == [7.0, 8.0]
    assert m.variables == {'_x': 7.0}


def test_unset_variable_is_zero():
    assert stack('_nothing') == [0.0]


def test_rpn_assignment(capsys):
    m = evaluate('5 = _y')
    assert m.stack == [5.0]
    assert m.variables['_y'] == 5.0
    assert capsys.readouterr().out == ''


def test_rpn_assignment_needs_variable(capsys):
    assert stack('5 = 6') == [5.0]
    assert stack('5 =') == [5.0]
    assert "'=' must be followed by a variable" in capsys.readouterr().err


@mark.parametrize('line', ['_x', '3 = _x', '(_x = 3)', '(3 + 4) _x'])
def test_no_autoprint_after_variable(capsys, line):
    evaluate(line)
    assert capsys.readouterr().out == ''


def test_autoprint_after_variable_arithmetic(capsys):
    evaluate('(_x = 3)', '_x 1 +')
    assert capsys.readouterr().out == ' 4\n'


def test_register_assignment():
    assert stack('(s1 = 6) r1') == [6.0, 6.0]


def test_raw_hex_round_trip(capsys):
    m = evaluate('3 r', '0x1.8p1')
    assert m.stack == [3.0, 3.0]
    assert capsys.readouterr().out == ' 0x1.8000000000000p+1\n'


def test_help(capsys):
    evaluate('help')
    out = capsys.readouterr().out
    assert 'Stack manipulation:' in out
    assert 'Show this list' in out


def test_precedence(capsys):
    evaluate('precedence')
    assert 'R     ^ **' in capsys.readouterr().out


@mark.parametrize('line, status', [
    ('3 q', 0),
    ('0 quit', 1),
    ('exit', 2),
])
def test_quit(capsys, line, status):
    with raises(SystemExit) as e:
        evaluate(line)
    assert e.value.code == status


def test_quit_prints_top(capsys):
    with raises(SystemExit):
        evaluate('6 7 x q')
    assert capsys.readouterr().out == ' 42\n'


def test_errorexit(capsys):
    with raises(SystemExit) as e:
        evaluate('1 errorexit', '5 0 /')
    assert e.value.code == 4


def test_run_returns_status():
    assert Evaluator().run(['3 4 -']) == 0
    assert Evaluator().run(['2 2 -']) == 1
    assert Evaluator().run(['']) == 2


def test_tracing(capsys):
    evaluate('2 tracing')
    assert log.level == logging.DEBUG
    set_tracing(0)
    assert log.level == logging.WARNING


def test_tracing_left_on(capsys):
    evaluate('1 tracing')
    assert log.level == logging.INFO


def test_tracing_off_in_next_test():
    assert log.level == logging.WARNING
