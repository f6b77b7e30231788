"""Session control for the rnj language: runs source text through the lexer, parser, resolver and interpreter, either
for a whole file or line by line in command-line mode. A session keeps one Interpreter for its whole life, so globals
defined by one command-line entry are visible to the next.
"""

import logging

from rnj.core.interpreter import Interpreter
from rnj.core.lexer import Lexer
from rnj.core.parser import Parser
from rnj.core.printer import display
from rnj.core.resolver import Resolver
from rnj.lang.error import GenericException

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class Session:
    """Governs a rnj session: one interpreter, one error handler, one source of diagnostics."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path, cmd_line, out=None, show_ast=False):
        self.error_handler = error_handler
        self.path = path              # used for error messages
        self.cmd_line = cmd_line      # whether or not in command-line mode
        self.show_ast = show_ast      # display each program's AST before running it

        self.interpreter = Interpreter(out)
        self.line_num = 0
        self.to_exec = []             # statements waiting for run

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            try:
                with open(path, "r", encoding="utf-8") as file:
                    source = file.read()
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)

            self.error_handler.register_file(path, source)
            self.add(source)

        elif not cmd_line:
            raise GenericException("'<in>' is a reserved filename", diagnosis=False)

        else:
            self.error_handler.register_file(path)

    @staticmethod
    def preprocess_line(line, add_to_prev):
        """Preprocesses a line from the command-line. Returns the line and whether it needs a continuation: a line
        continues while it has more '{' than '}'. add_to_prev is the text gathered so far, if any.
        """
        if add_to_prev:
            line = add_to_prev + "\n" + line
        line = line.rstrip()
        return line, line.count("{") > line.count("}")

    def add(self, source):
        """Lexes, parses and resolves source, queueing its statements for run. Raises the first error of the first
        stage that fails (after reporting the others of that stage).
        """
        if self.cmd_line:
            for line in source.split("\n"):
                self.line_num += 1
                self.error_handler.register_line(self.path, line, self.line_num)
            source = "\n" * (self.line_num - source.count("\n") - 1) + source  # keep line numbers global

        lexer = Lexer(source)
        tokens = lexer.scan()
        self._halt_on(lexer.errors)
        logger.debug("%s: scanned %d token(s)", self.path, len(tokens))

        parser = Parser(tokens)
        statements = parser.parse()
        self._halt_on(parser.errors)
        logger.debug("%s: parsed %d statement(s)", self.path, len(statements))

        if self.show_ast:
            print(display(statements))

        Resolver(self.interpreter).resolve(statements)
        logger.debug("%s: resolved, %d local reference(s) in table", self.path, len(self.interpreter.locals))

        self.to_exec.extend(statements)

    def run(self):
        """Runs all queued statements. Will raise any runtime error that is encountered."""
        statements, self.to_exec = self.to_exec, []
        self.interpreter.interpret(statements)

    def _halt_on(self, errors):
        if errors:
            for error in errors[:-1]:
                self.error_handler.report(error)
            raise errors[-1]
