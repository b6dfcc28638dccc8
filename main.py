# main.py

"""
Command-line front end for the calculator engine in calculator.py.

Settings come from the environment (optionally a .env file) and can be overridden on the command line. Without
arguments the program starts an interactive REPL; with -e it evaluates one expression and exits.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Union

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from calculator import Calculator, CalculatorError, format_postfix

# Try to import readline for line editing and command history.
try:
    import readline
except ImportError:
    readline = None  # On Windows, readline may not be available.

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


# ---------------------------
# Settings
# ---------------------------

class CalculatorSettings(BaseModel):
    """Runtime settings for the calculator front end."""
    prompt: str = "> "
    log_level: str = "WARNING"
    strict: bool = False

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @classmethod
    def from_env(cls) -> "CalculatorSettings":
        """Build settings from CALC_* environment variables, loading a .env file first if there is one."""
        load_dotenv(find_dotenv(usecwd=True))
        values = {}
        if os.getenv("CALC_PROMPT") is not None:
            values["prompt"] = os.getenv("CALC_PROMPT")
        if os.getenv("CALC_LOG_LEVEL"):
            values["log_level"] = os.getenv("CALC_LOG_LEVEL")
        if os.getenv("CALC_STRICT"):
            values["strict"] = os.getenv("CALC_STRICT")
        return cls(**values)


def format_result(result: float) -> Union[int, float]:
    """Print integral results without a trailing .0."""
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


# ---------------------------
# Help Handler
# ---------------------------

class HelpHandler:
    """
    Prints usage instructions for the calculator.
    """
    HELP_TEXT = """
Calculator Help
---------------
Supported operations (non-negative whole numbers only):
  - Addition:           1 + 2
  - Subtraction:        3 - 4
  - Multiplication:     5 * 6
  - Division:           7 / 8
  - Power:              2 ^ 3   (right-associative: 2^3^2 is 2^(3^2))
  - Parentheses:        (1 + 2) * 3

Special commands:
  - help            : Show this help message
  - postfix <expr>  : Show the expression in postfix (RPN) order
  - exit/quit       : Exit the calculator

Examples:
  > 2 + 3 * 4
  14
  > postfix 2 + 3 * 4
  2 3 4 * +
  > 1 / 0
  Error: Division with 0
"""

    @staticmethod
    def print_help():
        print(HelpHandler.HELP_TEXT.strip())


# ---------------------------
# CLI Handler (REPL)
# ---------------------------

class CLIHandler:
    """
    Handles the REPL loop and user interaction.
    """
    def __init__(self, settings: Optional[CalculatorSettings] = None):
        self.settings = settings or CalculatorSettings()
        self.calculator = Calculator(strict=self.settings.strict)
        self.running = True
        self._setup_history()

    def _setup_history(self):
        if readline is not None:
            readline.parse_and_bind('set editing-mode emacs')
        else:
            logger.warning("Command history is not available on this platform")

    def handle(self, line: str):
        """Evaluate one line of input and print the outcome."""
        command, _, rest = line.partition(' ')
        try:
            if command.lower() == 'postfix':
                print(format_postfix(self.calculator.to_postfix(rest)))
            else:
                print(format_result(self.calculator.eval(line)))
        except CalculatorError as e:
            print(f"Error: {e}")
        except Exception as e:
            logger.exception("Unexpected error while evaluating %r", line)
            print(f"Unexpected error: {e}")

    def run(self):
        """
        Main REPL loop.
        """
        while self.running:
            try:
                line = input(self.settings.prompt)
            except (EOFError, KeyboardInterrupt):
                print()  # Newline for clean exit
                break

            line = line.strip()
            if not line:
                continue

            # Handle special commands
            if line.lower() in ('exit', 'quit'):
                self.running = False
                print("Goodbye!")
                break
            elif line.lower() == 'help':
                HelpHandler.print_help()
                continue

            # Parse and evaluate the expression
            self.handle(line)


# ---------------------------
# Main Entry Point
# ---------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate arithmetic expressions.")
    parser.add_argument(
        "-e", "--expression",
        type=str,
        help="Evaluate a single expression and exit.",
    )
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Reject unknown characters instead of ignoring them (default: off, or CALC_STRICT).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: WARNING, or CALC_LOG_LEVEL).",
    )
    parser.add_argument(
        "--prompt",
        type=str,
        help="REPL prompt (default: '> ', or CALC_PROMPT).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the calculator application.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = {
        "strict": args.strict,
        "log_level": args.log_level,
        "prompt": args.prompt,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        settings = CalculatorSettings.from_env()
        if overrides:
            settings = CalculatorSettings(**{**settings.model_dump(), **overrides})
    except ValidationError as e:
        parser.error(str(e))

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    # basicConfig is a no-op once the root logger has handlers.
    logging.getLogger().setLevel(settings.log_level)
    logger.debug("Starting with settings: %s", settings)

    if args.expression is not None:
        try:
            result = Calculator(strict=settings.strict).eval(args.expression)
        except CalculatorError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(format_result(result))
        return 0

    print("Welcome to the Calculator!")
    print("Type 'help' for instructions, or 'exit' to quit.")
    cli = CLIHandler(settings)
    cli.run()
    return 0

if __name__ == '__main__':
    sys.exit(main())
