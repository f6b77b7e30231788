"""Error handling for the rnj language. Only GenericExceptions should be encountered while running a program: if another
type of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Every stage raises (or collects) its own subclass:
    - LexError: unterminated string, unexpected character (recoverable, scanning continues)
    - ParseError: unexpected token, invalid assignment target, too many arguments (parser resynchronizes)
    - ResolutionError: duplicate declaration, self-referential initializer, misplaced return/break/this
    - RnjRuntimeError: type mismatch, division by zero, undefined variable/property, bad call
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error message so that it can be used to throw a rnj error. The `{}` slots in msg are filled with
    exprs, which are bolded when the error is displayed.
    """
    label = "error"
    exit_code = 65

    def __init__(self, msg, exprs=None, line=None, lexeme=None, diagnosis=True, internal=False):
        if exprs is None:
            exprs = []
        if isinstance(exprs, str):
            exprs = [exprs]

        self.template = msg
        self.exprs = list(exprs)
        self.msg = msg.format(*self.exprs) if self.exprs else msg
        self.line = line
        self.lexeme = lexeme if lexeme is not None else (str(self.exprs[0]) if self.exprs else "")

        self.diagnosis = diagnosis
        self.internal = internal

        super().__init__(self.msg)

    @classmethod
    def at(cls, token, msg, *exprs):
        """Builds an error located at token. An EOF token has no lexeme, so nothing is highlighted for it."""
        return cls(msg, list(exprs), line=token.line, lexeme=token.lexeme)

    def colored_msg(self):
        """Message with its expr snippets bolded."""
        if not self.exprs:
            return self.template
        return self.template.format(*(colored(expr, attrs=["bold"]) for expr in self.exprs))


class LexError(GenericException):
    label = "lex error"


class ParseError(GenericException):
    label = "syntax error"


class ResolutionError(GenericException):
    label = "resolution error"


class RnjRuntimeError(GenericException):
    label = "runtime error"
    exit_code = 70


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report rnj errors instead."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream
        self.sources = {}   # path: source lines, used to echo the offending line
        self.path = None    # path of the source currently being run

    def register_file(self, path, source=""):
        """Registers path (and its source text) as the source currently being run."""
        self.sources[path] = source.splitlines()
        self.path = path

    def register_line(self, path, line, line_num):
        """Registers a single line of path (command-line mode), replacing any previous line with that number."""
        lines = self.sources.setdefault(path, [])
        while len(lines) < line_num:
            lines.append("")
        lines[line_num - 1] = line
        self.path = path

    @staticmethod
    def diagnose(line, lexeme, color=ERROR):
        """Returns line with the first occurence of lexeme highlighted and underlined, or None if lexeme isn't in
        line.
        """
        start = line.find(lexeme) if lexeme else -1
        if start == -1:
            return None
        end = start + len(lexeme)

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def _source_line(self, line_num):
        lines = self.sources.get(self.path, [])
        if line_num is not None and 0 < line_num <= len(lines):
            return lines[line_num - 1]
        return None

    def report(self, error):
        """Prints error using the registered source. Does not exit."""
        location = f"{self.path}:" if self.path else ""
        if error.line is not None:
            location += f"{error.line}:"

        error_msg = colored(f"{location} ", attrs=["bold"]) if location else ""
        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])
        error_msg += colored(f"{error.label}: ", ErrorHandler.ERROR, attrs=["bold"]) + error.colored_msg()
        self._print(error_msg)

        if not error.internal and error.diagnosis:
            line = self._source_line(error.line)
            diagnosis = ErrorHandler.diagnose(line, error.lexeme) if line is not None else None
            if diagnosis:
                self._print(diagnosis)

    def throw(self, error):
        """Reports error and exits if this handler is fatal."""
        self.report(error)
        if self.fatal:
            sys.exit(error.exit_code)

    def _print(self, text):
        print(text, file=self.stream if self.stream is not None else sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt", diagnosis=False))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(RnjRuntimeError("maximum recursion depth exceeded", diagnosis=False))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            do_exit = True

        return not do_exit
