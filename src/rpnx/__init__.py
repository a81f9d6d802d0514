'''
RPN calculator with infix expressions.

Plain old arithmetic, bitwise and logical operators, trig, logarithms, unit
conversions, and your usual stack operators. Anything in parentheses is an
infix expression, compiled to RPN and run on the same stack, so
"3 4 +" and "(3 + 4)" are the same thing.

Every value is a float. The integer modes (signed and unsigned decimal,
hex, octal, binary) keep it masked to a word width of up to 53 bits, the
most a float can hold exactly.
'''

# TODO: Persistent history for the interactive prompt.

from .cli import CLI
from .evaluator import Evaluator
from .infix import InfixCompiler
from .lexer import Lexer
from .machine import Machine


__all__ = 'Machine', 'Lexer', 'InfixCompiler', 'Evaluator', 'CLI'
