"""Command-line entry point for treelox: runs a script, or starts the interactive shell without one. Installed as the
treelox console script.
"""

import argparse
import sys

from treelox.lang.error import ErrorHandler
from treelox.lang.session import Session
from treelox.lang.shell import Shell


EX_USAGE = 64
RECURSION_LIMIT = 10000  # deep enough for recursive treelox programs, see Interpreter._eval_call


def main(argv=None):
    """Runs the treelox interpreter. Returns (and, from the console script, exits with) the exit status."""
    parser = argparse.ArgumentParser(prog="treelox")
    parser.add_argument("script", help="script to run (if empty, goes to interactive mode)", nargs="*")
    args = parser.parse_args(argv)

    if len(args.script) > 1:
        print("Usage: treelox [script]")
        return EX_USAGE

    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

    with ErrorHandler() as error_handler:
        sess = Session(error_handler)
        if args.script:
            return sess.run_file(args.script[0])

        Shell(sess).cmdloop()
        return 0


if __name__ == "__main__":
    sys.exit(main())
