"""Handles interactive/command-line mode for the rnj interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """rnj interpreter shell."""
    intro = "rnj interpreter :: Python backend\nType 'help' for more information, 'exit' to leave."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_line = ""

    def default(self, line):
        """Executes arbitrary rnj source."""
        line, add_to_prev = self.sess.preprocess_line(line, self._tmp_line)

        if add_to_prev:
            self._tmp_line = line
            self.prompt = self.secondary_prompt
            return

        self._tmp_line = ""
        self.prompt = self._tmp_prompt

        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.sess.add(line)
            self.sess.run()

    def onecmd(self, line):
        """Routes every line to default while a continuation is pending, so `exit` or `help` inside a block body are
        treated as source.
        """
        if self._tmp_line:
            return self.default(line)
        return super().onecmd(line)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the rnj interpreter!\n\n"
              "rnj is a small dynamically-typed scripting language with C-like syntax: variables, \n"
              "if/while/for, first-class functions with closures ('def'), and structs with a \n"
              "'construct' method.\n\n"
              "Try it out by typing 'def sq(x) { return x * x; }'. Next, try typing \n"
              "'println sq(4);'. This will print 16. A line with an unclosed '{' continues \n"
              "on the next line.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
