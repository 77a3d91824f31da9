import io
import unittest

from treelox.lang.error import ErrorHandler
from treelox.lang.session import Session
from treelox.lang.shell import Shell


class ShellTestCase(unittest.TestCase):

    def setUp(self):
        self.out, self.err = io.StringIO(), io.StringIO()
        self.sess = Session(ErrorHandler(self.err, color=False), self.out)
        self.shell = Shell(self.sess, stdin=io.StringIO(), stdout=io.StringIO())

    def test_lines(self):
        self.shell.onecmd("var a = 1;")
        self.shell.onecmd("a + 1")
        self.shell.onecmd("print a;")
        self.assertEqual("2\n1\n", self.out.getvalue())

    def test_continuation(self):
        self.shell.onecmd("fun f() {")
        self.assertEqual(Shell.secondary_prompt, self.shell.prompt)

        self.shell.onecmd("return 3; }")
        self.assertEqual(Shell._tmp_prompt, self.shell.prompt)

        self.shell.onecmd("f()")
        self.assertEqual("3\n", self.out.getvalue())

    def test_error_flag_reset(self):
        self.shell.onecmd("print ;")
        self.shell.onecmd("1")
        self.assertEqual("1\n", self.out.getvalue())
        self.assertEqual("[line 1] Error at ';': Expect expression.\n", self.err.getvalue())

    def test_line_starting_with_bang(self):
        self.shell.onecmd("!true")
        self.assertEqual("false\n", self.out.getvalue())

    def test_exit(self):
        self.assertTrue(self.shell.onecmd("exit"))
        self.assertTrue(self.shell.onecmd("EOF"))
        self.assertFalse(self.shell.onecmd(""))

    def test_command_words_as_names(self):
        self.shell.onecmd("var exit = 0;")
        self.shell.onecmd("var help = 0;")
        self.assertFalse(self.shell.onecmd("exit = 3;"))
        self.assertFalse(self.shell.onecmd("help = 4;"))
        self.shell.onecmd("help + exit")
        self.shell.onecmd("print help;")
        self.assertEqual("7\n4\n", self.out.getvalue())
        self.assertEqual("", self.shell.stdout.getvalue())

    def test_bare_help(self):
        self.shell.onecmd("  help ")
        self.assertIn("Welcome to treelox!", self.shell.stdout.getvalue())
        self.assertEqual("", self.out.getvalue())

    def test_cmdloop(self):
        shell = Shell(self.sess, stdin=io.StringIO("var a = 2;\n\na * 3\n"), stdout=io.StringIO())
        shell.use_rawinput = False
        shell.cmdloop()
        self.assertEqual("6\n", self.out.getvalue())


if __name__ == '__main__':
    unittest.main()
