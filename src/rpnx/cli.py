from os import environ, isatty
from sys import stdin, stdout, exit
from argparse import ArgumentParser, REMAINDER, OPTIONAL

from prompt_toolkit import PromptSession

from .evaluator import Evaluator
from .lexer import Lexer, describe
from .logging import set_tracing
from .machine import Machine
from .util import RPNError


class InteractiveInput:
    def __init__(self, prompt):
        self.prompt = prompt

    def __iter__(self):
        try:
            session = PromptSession(message=self.prompt,
                                    vi_mode=True,
                                    enable_suspend=True,
                                    enable_open_in_editor=True,
                                    history=None,
                                    prompt_continuation=' ' * len(self.prompt),
                                    # Certainly not! But be explicit.
                                    erase_when_done=False)
            while True:
                yield session.prompt()
        except EOFError:
            return


class EchoingInput:
    '''
    Lines from a file or pipe, echoed so they show up mixed with the output.
    '''

    def __init__(self, lines, echo=print):
        self.lines = lines
        self.echo = echo

    def __iter__(self):
        for line in self.lines:
            line = line.rstrip('\n')
            self.echo(line)
            yield line


class CLI:
    '''
    Command line interface to the rpnx calculator.
    '''

    DEFAULT_PROMPT = '> '
    INIT_VARIABLE = 'RPNX_INIT'

    def dumper(self):
        '''
        Dump every token of every line: kind, text, and what it means.
        '''
        lexer = Lexer(Machine())
        print('<kind>\t<text>\t<meaning>')
        for line in self._lines():
            try:
                for token in lexer.lex(line):
                    print(token.kind, repr(token.text), describe(token),
                          sep='\t')
            except RPNError as e:
                print(e.args[0])
        return 0

    def executor(self):
        '''
        Run the calculator over all input. Returns the exit status.
        '''
        evaluator = self.evaluator
        machine = evaluator.machine

        init = environ.get(self.INIT_VARIABLE)
        if init:
            machine.quiet = True
            try:
                evaluator.feed(init)
            finally:
                machine.quiet = False

        if self.args.commands:
            evaluator.feed(' '.join(self.args.commands))
        return evaluator.run(self._lines())

    def raw_grammar(self):
        '''
        Print the number grammar, as the lexer currently has it.
        '''
        print(self.evaluator.lexer.pattern)
        return 0

    def _lines(self):
        expressions = self.args.expressions
        if expressions is stdin:
            return self._prompting_input()
        return expressions

    def _prompting_input(self):
        '''
        Prompt if asked to, or if both stdin and stdout are ttys.
        Otherwise read stdin, echoing each line.
        '''
        if self.args.prompt or \
           isatty(stdin.fileno()) and isatty(stdout.fileno()):
            return InteractiveInput(prompt=self.args.prompt or
                                    self.DEFAULT_PROMPT)
        else:
            return EchoingInput(stdin)

    def __init__(self, evaluator=None):
        '''
        Create ready to run CLI.

        Does not run or parse command line arguments.
        '''
        self.evaluator = evaluator or Evaluator()
        self.argument_parser = ArgumentParser(
            description='RPN calculator with infix expressions')
        self.argument_parser.add_argument('-v', '--verbose',
                                          action='store_true')
        int_nonint_groups = self.argument_parser.add_mutually_exclusive_group()
        int_nonint_groups.add_argument('-e', '--expression',
                                       nargs=REMAINDER,
                                       dest='expressions')
        int_nonint_groups.add_argument('-p', '--prompt',
                                       nargs=OPTIONAL,
                                       const=self.DEFAULT_PROMPT)
        main_groups = self.argument_parser.add_mutually_exclusive_group()
        for short_, long_, action in [('-G', '--raw-grammar',
                                       self.raw_grammar),
                                      ('-D', '--dump', self.dumper)]:
            main_groups.add_argument(short_, long_,
                                     action='store_const',
                                     const=action,
                                     dest='action')
        # Initial commands, as if they were the first line of input.
        self.argument_parser.add_argument('commands', nargs='*')
        self.argument_parser.set_defaults(action=self.executor,
                                          expressions=stdin)

    def run(self, *, args=None):
        '''
        Run CLI, given these args, or the process's own.
        '''
        self.args = self.argument_parser.parse_args(args)
        if self.args.verbose:
            self.evaluator.machine.tracing = set_tracing(1)
        try:
            status = self.args.action()
        except KeyboardInterrupt:
            exit(1)
        except MemoryError:
            exit(3)
        exit(status)
