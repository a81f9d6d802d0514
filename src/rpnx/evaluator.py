'''
The main loop: tokens in, operators run.

Tokens come from the input line, except while an infix expression's RPN
output is queued; that queue is always drained first.
'''

from collections import deque

from . import display
from .infix import InfixCompiler
from .lexer import (NUMERIC, OP, SYMBOLIC, LVALUE, VARIABLE, EOL, UNKNOWN,
                    Cursor, Lexer, strip_input)
from .logging import log
from .machine import Machine
from .operators import OPERATORS, SECTIONS, assignment
from .util import RPNError, RPNSyntaxError


# Token kinds that auto display the top of stack when they end a line.
AUTOPRINT_KINDS = (OP, SYMBOLIC)


class Evaluator:
    '''
    Feeds input lines through a Machine.

    Errors never escape feed(): they are reported and the loop goes on,
    either with the next token or, for syntax errors, the next line.
    SystemExit does escape, from quit or exit-on-error.
    '''

    def __init__(self, machine=None, lexer=None):
        self.machine = machine or Machine()
        self.lexer = lexer or Lexer(self.machine)
        self.compiler = InfixCompiler(self.lexer)
        self.queue = deque()
        self.cursor = Cursor('')
        self.assign_next = False
        self.last_kind = None
        self.last_ok = True

    def next_token(self):
        '''
        Returns the next token, and whether it came from the infix queue.
        '''
        if self.queue:
            self.machine.freeze_lastx()
            return self.queue.popleft(), True
        self.machine.thaw_lastx()
        return self.lexer.next_token(self.cursor), False

    def feed(self, line):
        '''
        Evaluate one line of input.
        '''
        machine = self.machine
        self.cursor = Cursor(strip_input(line, machine.thousands_sep,
                                         machine.currency))
        while True:
            queued = False
            try:
                token, queued = self.next_token()
                if token.kind == EOL:
                    if self.assign_next:
                        raise RPNSyntaxError(
                            "'=' must be followed by a variable")
                    self.end_of_line()
                    return
                machine.clear_pending()
                self.dispatch(token)
            except RPNSyntaxError as e:
                # Abort entire rest of line
                self._abort()
                self.cursor.discard()
                self.last_ok = False
                machine.error(e.args[0])
            except RPNError as e:
                self.last_ok = False
                if queued:
                    self._abort()
                machine.error(e.args[0])

    def _abort(self):
        self.queue.clear()
        self.assign_next = False
        self.machine.abandon_infix()

    def dispatch(self, token):
        machine = self.machine
        kind = token.kind
        self.last_kind = kind
        self.last_ok = True

        if self.assign_next:
            self.assign_next = False
            if kind != VARIABLE:
                raise RPNSyntaxError("'=' must be followed by a variable")
            token = token._replace(write=True)

        if kind == NUMERIC:
            machine.push(token.value)
        elif kind == VARIABLE:
            if token.write:
                machine.set_variable(token.value, machine.peek())
            else:
                machine.push(machine.get_variable(token.value))
        elif kind in (OP, SYMBOLIC, LVALUE):
            self.apply(token.value)
        elif kind == UNKNOWN:
            self.last_ok = False
            machine.error("unrecognized input '{}'".format(token.text))
        else:
            raise RPNSyntaxError('unexpected token {!r}'.format(token))

    def apply(self, op):
        '''
        Run one operator. String implementations are methods here.
        '''
        log.info('invoking %s', op.name)
        if isinstance(op.func, str):
            result = getattr(self, op.func)()
        elif op.func is assignment:
            result = self.assign()
        else:
            result = op.func(self.machine)
        if result is False:
            self.last_ok = False

    def end_of_line(self):
        machine = self.machine
        machine.flush_pending()
        if machine.autoprint and not machine.suppress_autoprint and \
           self.last_kind in AUTOPRINT_KINDS and self.last_ok:
            display.print_top(machine)
        machine.suppress_autoprint = False
        self.last_kind = None
        self.last_ok = True

    # Commands needing the input line or the loop

    def open_paren(self):
        self.queue.extend(self.compiler.compile(self.cursor))

    def assign(self):
        '''
        RPN assignment: "= _name" stores x in the variable.
        '''
        self.assign_next = True

    def help(self):
        display.print_help(self.machine, SECTIONS)

    def precedence(self):
        display.print_precedence(self.machine, OPERATORS)

    def quit(self):
        machine = self.machine
        if machine.autoprint and not machine.suppress_autoprint:
            display.print_top(machine)
        raise SystemExit(machine.exit_status())

    def run(self, lines):
        '''
        Feed every line. Returns the exit status.
        '''
        for line in lines:
            self.feed(line)
        return self.machine.exit_status()


__all__ = ['Evaluator']
