'''
Infix to RPN compilation.

This is Dijkstra's shunting yard: operands go straight to the output,
operators wait on their own stack until something of lower precedence
shows up. The operator table supplies precedence and associativity, so
the RPN produced evaluates exactly like the hand-written equivalent.
'''

from .lexer import (NUMERIC, OP, SYMBOLIC, LVALUE, VARIABLE, EOL, UNKNOWN,
                    describe, operator_token)
from .logging import log
from .operators import lookup, assignment
from .util import RPNSyntaxError, UnrecognizedInput


# After a + or -, these mean it was binary after all.
BINARY_FOLLOWERS = ' \t\v\r\n)+-'


def is_open(token):
    return token.kind == OP and token.value.name == '('


def is_close(token):
    return token.kind == OP and token.value.name == ')'


def is_operand(token):
    '''
    True if token is, or completes, something that yields a value.
    '''
    return (token.kind in (NUMERIC, SYMBOLIC) or
            (token.kind == VARIABLE and not token.write) or
            is_close(token))


def precedence(token):
    if token.kind in (OP, LVALUE):
        return token.value.prec
    return 0


class InfixCompiler:
    '''
    Turns the rest of a parenthesized expression into RPN tokens.

    Reads directly from the input line, which must hold the whole
    expression.
    '''

    def __init__(self, lexer):
        self.lexer = lexer
        self.open_paren = operator_token(lookup('('))
        self.chsign = operator_token(lookup('chs'))
        self.nop = operator_token(lookup('nop'))
        self.operator_stack = []
        self.output_stack = []

    def _dump(self):
        log.debug('operator stack: %s',
                  ' '.join(map(describe, self.operator_stack)) or '<empty>')
        log.debug('output stack: %s',
                  ' '.join(map(describe, self.output_stack)) or '<empty>')

    def _sequence_error(self, previous, token):
        raise RPNSyntaxError('bad expression sequence, at {} and {}'.format(
            describe(previous), describe(token)))

    def _pop_while(self, keep_going):
        while self.operator_stack:
            top = self.operator_stack[-1]
            if is_open(top) or not keep_going(top):
                break
            self.output_stack.append(self.operator_stack.pop())

    def compile(self, cursor):
        '''
        Compile from just after the opening "(" through its matching ")".

        Returns the tokens in the order they are to be run. Raises
        RPNSyntaxError, having consumed the rest of the line, on any
        malformed expression; nothing is returned then.
        '''
        try:
            return self._compile(cursor)
        except RPNSyntaxError:
            cursor.discard()
            raise
        finally:
            self.operator_stack.clear()
            self.output_stack.clear()

    def _compile(self, cursor):
        operator_stack = self.operator_stack
        output_stack = self.output_stack
        operator_stack.clear()
        output_stack.clear()

        # the '(' the user typed
        operator_stack.append(self.open_paren)
        paren_count = 1
        previous = before_previous = self.open_paren

        while paren_count:
            self._dump()
            token = self.lexer.next_token(cursor, rpn=False)
            if token.kind == EOL:
                break
            if token.kind == UNKNOWN:
                raise UnrecognizedInput(token.text)

            if previous.kind == LVALUE and not (
                    token.kind == OP and token.value.func is assignment):
                self._sequence_error(previous, token)

            if token.kind == LVALUE:
                if not is_open(previous):
                    self._sequence_error(previous, token)
                operator_stack.append(token)

            elif token.kind in (NUMERIC, SYMBOLIC, VARIABLE):
                if is_operand(previous):
                    self._sequence_error(previous, token)
                output_stack.append(token)

            elif is_open(token):
                if is_operand(previous):
                    self._sequence_error(previous, token)
                operator_stack.append(token)
                paren_count += 1

            elif is_close(token):
                if not is_operand(previous):
                    self._sequence_error(previous, token)
                # Process until matching opening paren
                self._pop_while(lambda top: True)
                if not operator_stack:
                    raise RPNSyntaxError('missing parentheses?')
                operator_stack.pop()
                # f(x) style: a unary operator binds to its parentheses
                if operator_stack and operator_stack[-1].kind == OP and \
                   operator_stack[-1].value.unary:
                    output_stack.append(operator_stack.pop())
                paren_count -= 1

            elif token.kind == OP and token.value.func is assignment:
                self._assign(previous, before_previous, token)

            elif token.kind == OP and token.value.unary:
                self._unary(previous, token)

            elif token.kind == OP and token.value.binary:
                op = token.value
                # +/- are unary if the previous token isn't something
                # that will become an operand, and the next character
                # isn't whitespace, ), +, -, or the end of the line.
                next_char = cursor.peek()
                if op.name in '+-' and not is_operand(previous) and \
                   next_char and next_char not in BINARY_FOLLOWERS:
                    token = self.chsign if op.name == '-' else self.nop
                    log.debug('%s is now %s', op.name, token.text)
                    self._unary(previous, token)
                else:
                    self._binary(previous, token)

            else:
                raise RPNSyntaxError("'{}' unsuitable in infix expression"
                                     .format(token.text))

            before_previous, previous = previous, token

        if paren_count:
            raise RPNSyntaxError('missing parentheses')

        while operator_stack:
            output_stack.append(operator_stack.pop())
        rpn = list(output_stack)
        log.info('infix as rpn: %s', ' '.join(map(describe, rpn)))
        return rpn

    def _assign(self, previous, before_previous, token):
        if previous.kind == LVALUE:
            # the storage operator is already waiting on the stack
            return
        if previous.kind == VARIABLE and not previous.write and \
           is_open(before_previous):
            self.output_stack.pop()
            self.operator_stack.append(previous._replace(write=True))
            return
        self._sequence_error(previous, token)

    def _unary(self, previous, token):
        if is_operand(previous):
            self._sequence_error(previous, token)
        # Right associative: equal precedence stays put.
        prec = precedence(token)
        self._pop_while(lambda top: precedence(top) > prec)
        self.operator_stack.append(token)

    def _binary(self, previous, token):
        if not is_operand(previous):
            self._sequence_error(previous, token)
        op = token.value
        stack = self.operator_stack

        def yields(top):
            top_prec = precedence(top)
            if top_prec == op.prec and top.kind == OP and \
               top.value.right_assoc and top.value.binary:
                # a ** b ** c is a ** (b ** c)
                return False
            return top_prec >= op.prec

        self._pop_while(yields)
        stack.append(token)


__all__ = ['InfixCompiler']
