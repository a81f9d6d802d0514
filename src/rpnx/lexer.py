from collections import namedtuple
from functools import reduce
import operator
import string

import regex

from .logging import log
from .operators import lookup, SYM, LVAL
from .util import UnrecognizedInput


# Token kinds
NUMERIC = 'number'
OP = 'operator'
SYMBOLIC = 'symbolic'   # named number: pi, r1, lastx
LVALUE = 'lvalue'       # assignable storage: s1
VARIABLE = 'variable'   # _name
EOL = 'eol'
UNKNOWN = 'unknown'

# value: float for numbers, Operator for operators, name for variables.
# write: variable is assigned to rather than read.
Token = namedtuple('Token', 'kind value text write',
                   defaults=(None, '', False))

EOL_TOKEN = Token(EOL, text='EOL')

# Parser hack: hard-coded list of double punctuation operators.
DOUBLE_PUNCTUATION = ('>>', '<<', '>=', '<=', '==', '!=', '&&', '||', '**')


def operator_token(op, text=None):
    '''
    Wrap a catalog entry in a token of the right kind.
    '''
    if op.operands == SYM:
        kind = SYMBOLIC
    elif op.operands == LVAL:
        kind = LVALUE
    else:
        kind = OP
    return Token(kind, op, text or op.name)


def describe(token):
    '''
    Short quoted form of a token, for messages and traces.
    '''
    if token.kind == VARIABLE:
        return "'{}{}'".format('=' if token.write else '', token.value)
    return "'{}'".format(token.text)


def strip_input(line, thousands_sep=',', currency='$'):
    '''
    Remove comments, thousands separators and currency symbols.
    '''
    line = line.split('#', 1)[0]
    for needle in thousands_sep, currency:
        if needle:
            line = line.replace(needle, '')
    return line


class Cursor:
    '''
    Read position in one line of input.
    '''

    def __init__(self, text):
        self.text = text
        self.pos = 0

    def skip_space(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def at_end(self):
        return self.pos >= len(self.text)

    def peek(self):
        '''
        Next character, or '' at end of line.
        '''
        return self.text[self.pos:self.pos + 1]

    @property
    def rest(self):
        return self.text[self.pos:]

    def discard(self):
        self.pos = len(self.text)


class Lexer:
    '''
    Tokenizer for RPN input and infix expressions.

    Numbers are matched by regex; everything else is a name looked up in
    the operator catalog.
    '''
    # Hex. Floating hex (0x1.8p+1) only once raw hex output was used.
    HEX = r'''
           (?<hex>
               0[xX][0-9a-fA-F]+
           )
           '''
    RAW_HEX = r'''
               (?<rawhex>
                   0[xX]
                   (?:
                       [0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?
                       |
                       \.[0-9a-fA-F]+
                   )
                   (?:[pP][-+]?\d+)?
               )
               '''
    BINARY = r'(?<binary>0[bB][01]+)'
    # Leading 0 then an octal digit. 08, 0.5, and 0 are decimal.
    OCTAL = r'(?<octal>0[0-7]+)'
    # 1, 12, 1{dp}, 1{dp}3, {dp}2, any of those with an exponent.
    DECIMAL = r'''
               (?<decimal>
                   (?:
                       \d+
                       (?:{dp}\d*)?
                   |
                       {dp}\d+
                   )
                   (?:[eE][-+]?\d+)?
               )
               '''
    # A radix prefix with nothing usable after it.
    BAD_PREFIX = r'(?<bad>0[xXbB])'

    VARIABLE = r'_[A-Za-z0-9]\w*'
    WORD = r'[A-Za-z][A-Za-z0-9_]*'

    # Default regex flags for matching lexemes
    FLAGS = reduce(operator.__or__,
                   {regex.VERSION1,
                    regex.VERBOSE},
                   0)

    def __init__(self, machine=None):
        '''
        :param machine: Supplies the decimal point, and whether floating
                        hex input has been enabled.
        '''
        self.machine = machine
        cls = type(self)
        self.decimal_point = machine.decimal_point if machine else '.'
        decimal = cls.DECIMAL.format(dp=regex.escape(self.decimal_point))
        flags = cls.FLAGS
        self.number = regex.compile(
            r'|'.join([cls.HEX, cls.BINARY, cls.OCTAL, cls.BAD_PREFIX,
                       decimal]),
            flags=flags)
        self.raw_number = regex.compile(
            r'|'.join([cls.RAW_HEX, cls.BINARY, cls.OCTAL, cls.BAD_PREFIX,
                       decimal]),
            flags=flags)
        self.variable = regex.compile(cls.VARIABLE, flags=flags)
        self.word = regex.compile(cls.WORD, flags=flags)

    @property
    def pattern(self):
        '''
        Current number grammar, for display.
        '''
        return self._number_regex().pattern

    def _number_regex(self):
        if self.machine is not None and self.machine.raw_hex_input_ok:
            return self.raw_number
        return self.number

    def _is_decimal_point(self, text, pos):
        return text.startswith(self.decimal_point, pos)

    def next_token(self, cursor, rpn=True):
        '''
        Produce one token from cursor, advancing past it.

        In RPN a leading + or - binds to the number after it. In infix, the
        compiler decides what a + or - means.
        '''
        cursor.skip_space()
        if cursor.at_end():
            return EOL_TOKEN

        text, pos = cursor.text, cursor.pos
        start = pos
        sign = 1.0
        if rpn and text[pos] in '+-':
            following = text[pos + 1:pos + 2]
            if following.isdigit() or self._is_decimal_point(text, pos + 1):
                if text[pos] == '-':
                    sign = -1.0
                pos += 1
            elif following == '' or following.isspace():
                return self._name(cursor, pos, 1)
            else:
                return self._unknown(cursor, pos)

        match = self._number_regex().match(text, pos)
        if match is not None and match.lastgroup != 'bad':
            value = self._convert(match)
            cursor.pos = match.end()
            token = Token(NUMERIC, sign * value, text[start:cursor.pos])
            log.info('token %s', describe(token))
            return token
        elif match is not None:
            return self._unknown(cursor, pos)

        match = self.variable.match(text, pos)
        if match is not None:
            cursor.pos = match.end()
            return Token(VARIABLE, match.group(0), match.group(0))

        match = self.word.match(text, pos)
        if match is not None:
            return self._name(cursor, pos, len(match.group(0)))

        if text[pos] in string.punctuation:
            length = 2 if text[pos:pos + 2] in DOUBLE_PUNCTUATION else 1
            return self._name(cursor, pos, length)

        cursor.discard()
        raise UnrecognizedInput(text[pos], 'illegal character in input')

    def _name(self, cursor, pos, length):
        name = cursor.text[pos:pos + length]
        op = lookup(name)
        if op is None:
            return self._unknown(cursor, pos)
        cursor.pos = pos + length
        token = operator_token(op)
        log.info('token %s', describe(token))
        return token

    def _unknown(self, cursor, pos):
        word = cursor.text[pos:].split(None, 1)[0]
        cursor.pos = pos + len(word)
        return Token(UNKNOWN, None, word)

    def _convert(self, match):
        kind = match.lastgroup
        digits = match.group(kind)
        try:
            if kind == 'hex':
                return float(int(digits, 16))
            elif kind == 'rawhex':
                return float.fromhex(digits)
            elif kind == 'binary':
                return float(int(digits[2:], 2))
            elif kind == 'octal':
                return float(int(digits, 8))
            return float(digits.replace(self.decimal_point, '.'))
        except OverflowError:
            return float('inf')

    def lex(self, line, rpn=True):
        '''
        Take a line and yield all its tokens, up to end of line.
        '''
        cursor = Cursor(line)
        while True:
            token = self.next_token(cursor, rpn)
            if token.kind == EOL:
                return
            yield token
