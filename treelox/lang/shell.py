"""Handles interactive mode for the treelox interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """treelox interpreter shell."""
    intro = "treelox :: Python backend\nType 'help' for more information, 'exit' or Ctrl-D to quit."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations
    commands = {"exit", "help", "EOF"}

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sess = sess
        self._tmp_line = ""

    def parseline(self, line):
        """Only a bare command word is a shell command. Anything else, even "exit = 3;", is treelox input."""
        if line.strip() in Shell.commands:
            return super().parseline(line.strip())
        return None, None, line

    def default(self, line):
        """Executes arbitrary treelox input. Lines are joined while a block is left open."""
        line = self._tmp_line + line + "\n"

        if line.count("{") > line.count("}"):
            self._tmp_line = line
            self.prompt = self.secondary_prompt
            return

        self._tmp_line = ""
        self.prompt = self._tmp_prompt

        error_handler = self.sess.error_handler
        error_handler.reset()
        with error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.sess.run_prompt(line)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to treelox!\n\n"
              "Type a statement such as 'var x = 1;' to run it, or a bare expression such as \n"
              "'x + 2' to see its value. Definitions are kept for the rest of the session. A line \n"
              "that leaves a '{' open continues on the next line.", file=self.stdout)

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
