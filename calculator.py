# calculator.py

"""
Overview of Implementation Approach
-----------------------------------
This module is the evaluation engine behind the calculator REPL. An expression string goes through a strictly
linear pipeline: the tokenizer splits it into tokens, a count-based check makes sure operands and operators balance,
the shunting-yard converter rewrites the infix tokens in postfix (Reverse Polish) order, and the postfix evaluator
reduces them to a single number with an operand stack. Nothing is kept between calls, so one Calculator can be
shared freely.

Modules, Classes, and Functions Implemented
-------------------------------------------
- Error classes: CalculatorError, MissingOperandError, MissingOperatorError, DivisionByZeroError,
  UnexpectedCharacterError, UnknownOperatorError
- Tokens: TokenType, Token, serialize, format_postfix
- Operator table: Associativity, OPERATORS, get_precedence, get_associativity
- Tokenizer: Tokenizer
- Structural check: check_balance
- Converter: PostfixConverter
- Evaluator: Evaluator
- Facade: Calculator
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ---------------------------
# Error Classes
# ---------------------------

MISSING_OPERAND = "Missing or bad operand"
DIV_BY_ZERO = "Division with 0"
MISSING_OPERATOR = "Missing operator or parenthesis"
OP_NOT_FOUND = "Operator not found"


class CalculatorError(Exception):
    """Base class for errors caused by the expression the user typed."""
    pass

class MissingOperandError(CalculatorError):
    """Raised when an operator lacks one of its operands."""
    def __init__(self, message: str = MISSING_OPERAND):
        super().__init__(message)

class MissingOperatorError(CalculatorError):
    """Raised when operands are not joined by operators, or brackets do not match."""
    def __init__(self, message: str = MISSING_OPERATOR):
        super().__init__(message)

class DivisionByZeroError(CalculatorError):
    """Raised when the divisor evaluates to exactly 0."""
    def __init__(self, message: str = DIV_BY_ZERO):
        super().__init__(message)

class UnexpectedCharacterError(CalculatorError):
    """Raised by a strict tokenizer on a character outside the expression alphabet."""
    def __init__(self, char: str, pos: int):
        super().__init__(f"Unexpected character '{char}' at position {pos}")
        self.char = char
        self.pos = pos

class UnknownOperatorError(RuntimeError):
    """
    Raised when an operator symbol outside the supported set reaches the operator table or the evaluator.
    It signals an internal defect and is not a CalculatorError.
    """
    def __init__(self, symbol: str):
        super().__init__(f"{OP_NOT_FOUND}: {symbol!r}")
        self.symbol = symbol


# ---------------------------
# Tokens
# ---------------------------

class TokenType:
    """Enumeration of token types."""
    NUMBER = 'NUMBER'
    OPERATOR = 'OPERATOR'
    LPAREN = 'LPAREN'
    RPAREN = 'RPAREN'

@dataclass(frozen=True)
class Token:
    """
    A lexical token. NUMBER tokens carry a float value and their digit text; the other kinds carry their symbol.
    """
    type: str
    text: str
    value: Optional[float] = None
    pos: int = 0

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.text!r}, pos={self.pos})"

    @classmethod
    def number(cls, digits: str, pos: int = 0) -> "Token":
        return cls(TokenType.NUMBER, digits, float(digits), pos)

    @classmethod
    def operator(cls, symbol: str, pos: int = 0) -> "Token":
        return cls(TokenType.OPERATOR, symbol, None, pos)

    @classmethod
    def lparen(cls, pos: int = 0) -> "Token":
        return cls(TokenType.LPAREN, '(', None, pos)

    @classmethod
    def rparen(cls, pos: int = 0) -> "Token":
        return cls(TokenType.RPAREN, ')', None, pos)


def serialize(tokens: List[Token]) -> str:
    """Join tokens back into expression text, without whitespace."""
    return ''.join(str(token) for token in tokens)

def format_postfix(tokens: List[Token]) -> str:
    """Render a postfix token list the way RPN is usually written, e.g. '2 3 4 * +'."""
    return ' '.join(str(token) for token in tokens)


# ---------------------------
# Operator Table
# ---------------------------

class Associativity(Enum):
    LEFT = 'left'
    RIGHT = 'right'

# symbol -> (precedence, associativity). Higher number binds tighter.
OPERATORS: Dict[str, Tuple[int, Associativity]] = {
    '+': (2, Associativity.LEFT),
    '-': (2, Associativity.LEFT),
    '*': (3, Associativity.LEFT),
    '/': (3, Associativity.LEFT),
    '^': (4, Associativity.RIGHT),
}

def get_precedence(symbol: str) -> int:
    try:
        return OPERATORS[symbol][0]
    except KeyError:
        raise UnknownOperatorError(symbol) from None

def get_associativity(symbol: str) -> Associativity:
    try:
        return OPERATORS[symbol][1]
    except KeyError:
        raise UnknownOperatorError(symbol) from None


# ---------------------------
# Tokenizer
# ---------------------------

class Tokenizer:
    """
    Converts an input string into a list of tokens.

    Runs of decimal digits become one NUMBER token, each of + - * / ^ ( ) becomes its own token and whitespace is
    skipped. Any other character is dropped silently, unless the tokenizer is strict, in which case it raises
    UnexpectedCharacterError.
    """
    def __init__(self, text: str, strict: bool = False):
        self.text = text
        self.strict = strict
        self.tokens: List[Token] = []
        self._tokenize()

    def _tokenize(self):
        digits = ''
        start = 0
        for pos, char in enumerate(self.text):
            # ASCII digits only; str.isdigit() also matches superscripts, which float() cannot parse.
            if '0' <= char <= '9':
                if not digits:
                    start = pos
                digits += char
                continue

            if digits:
                self.tokens.append(Token.number(digits, start))
                digits = ''

            if char in OPERATORS:
                self.tokens.append(Token.operator(char, pos))
            elif char == '(':
                self.tokens.append(Token.lparen(pos))
            elif char == ')':
                self.tokens.append(Token.rparen(pos))
            elif char.isspace():
                pass
            elif self.strict:
                logger.debug("Rejecting unrecognised character %r at position %d", char, pos)
                raise UnexpectedCharacterError(char, pos)
            else:
                logger.debug("Dropping unrecognised character %r at position %d", char, pos)

        if digits:
            self.tokens.append(Token.number(digits, start))
        logger.debug("Tokenized %r into %d tokens", self.text, len(self.tokens))


# ---------------------------
# Structural Check
# ---------------------------

def check_balance(tokens: List[Token]) -> bool:
    """
    Check that the expression has exactly one operator less than it has operands, ignoring parentheses.

    This is an aggregate count only; where the operators sit is left to the converter and the evaluator.

    Raises:
        MissingOperandError: if there are too many operators for the operands.
        MissingOperatorError: if there are too few operators for the operands.
    """
    operands = sum(1 for token in tokens if token.type == TokenType.NUMBER)
    operators = sum(1 for token in tokens if token.type == TokenType.OPERATOR)

    if operands - 1 < operators:
        logger.debug("Balance check failed: %d operands, %d operators", operands, operators)
        raise MissingOperandError()
    elif operands - 1 > operators:
        logger.debug("Balance check failed: %d operands, %d operators", operands, operators)
        raise MissingOperatorError()
    logger.debug("Balance check passed: %d operands, %d operators", operands, operators)
    return True


# ---------------------------
# Infix to Postfix Converter
# ---------------------------

class PostfixConverter:
    """
    Shunting-yard conversion of infix tokens to postfix order.

    Operators wait on a stack until an incoming operator of lower precedence (or equal precedence, when the incoming
    one is left-associative) pushes them to the output. Opening brackets act as a floor on the stack. Unmatched
    brackets in either direction raise MissingOperatorError.
    """
    def convert(self, tokens: List[Token]) -> List[Token]:
        output: List[Token] = []
        stack: List[Token] = []

        for token in tokens:
            if token.type == TokenType.NUMBER:
                output.append(token)
            elif token.type == TokenType.LPAREN:
                stack.append(token)
            elif token.type == TokenType.RPAREN:
                while stack and stack[-1].type != TokenType.LPAREN:
                    output.append(stack.pop())
                if not stack:
                    logger.debug("Closing bracket at position %d has no partner", token.pos)
                    raise MissingOperatorError()
                stack.pop()
            elif token.type == TokenType.OPERATOR:
                while stack and stack[-1].type != TokenType.LPAREN and self._yields_to(stack[-1], token):
                    output.append(stack.pop())
                stack.append(token)
            else:
                raise UnknownOperatorError(token.text)

        while stack:
            top = stack.pop()
            if top.type == TokenType.LPAREN:
                logger.debug("Opening bracket at position %d is never closed", top.pos)
                raise MissingOperatorError()
            output.append(top)

        return output

    @staticmethod
    def _yields_to(top: Token, incoming: Token) -> bool:
        """True if the operator on top of the stack must be output before the incoming operator is pushed."""
        top_prec = get_precedence(top.text)
        incoming_prec = get_precedence(incoming.text)
        if top_prec > incoming_prec:
            return True
        return top_prec == incoming_prec and get_associativity(incoming.text) == Associativity.LEFT


# ---------------------------
# Postfix Evaluator
# ---------------------------

def _power(base: float, exponent: float) -> float:
    """IEEE-style pow: overflow and zero to a negative power give a signed infinity, other domain errors nan."""
    exponent = float(exponent)
    odd_integer = exponent.is_integer() and exponent % 2 == 1
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.copysign(math.inf, base) if odd_integer else math.inf
    except ValueError:
        if base == 0:
            return math.copysign(math.inf, base) if odd_integer else math.inf
        return math.nan


class Evaluator:
    """
    Evaluates a postfix token list with an operand stack.

    For every operator the top of the stack is the right-hand operand and the value below it the left-hand one.
    """
    def eval(self, postfix: List[Token]) -> float:
        stack: List[float] = []

        for token in postfix:
            if token.type == TokenType.NUMBER:
                stack.append(token.value)
            elif token.type == TokenType.OPERATOR:
                if len(stack) < 2:
                    logger.debug("Operator %r at position %d is short of operands", token.text, token.pos)
                    raise MissingOperandError()
                right = stack.pop()
                left = stack.pop()
                stack.append(self.apply(token.text, left, right))
            else:
                raise UnknownOperatorError(token.text)

        if len(stack) != 1:
            # Only reachable when the balance check was skipped.
            logger.debug("Postfix evaluation left %d values on the stack", len(stack))
            raise MissingOperatorError() if stack else MissingOperandError()
        return stack.pop()

    @staticmethod
    def apply(symbol: str, left: float, right: float) -> float:
        if symbol == '+':
            return left + right
        elif symbol == '-':
            return left - right
        elif symbol == '*':
            return left * right
        elif symbol == '/':
            if right == 0:
                logger.debug("Division of %r by zero", left)
                raise DivisionByZeroError()
            return left / right
        elif symbol == '^':
            return _power(left, right)
        raise UnknownOperatorError(symbol)


# ---------------------------
# Facade
# ---------------------------

class Calculator:
    """
    Runs the full pipeline for one expression at a time.

    Args:
        strict: reject characters outside digits, operators, brackets and whitespace instead of dropping them.
    """
    def __init__(self, strict: bool = False):
        self.strict = strict
        self.converter = PostfixConverter()
        self.evaluator = Evaluator()

    def tokenize(self, expr: str) -> List[Token]:
        return Tokenizer(expr, strict=self.strict).tokens

    def to_postfix(self, expr: str) -> List[Token]:
        """Tokenize, check and convert an expression, returning its postfix tokens."""
        tokens = self.tokenize(expr)
        check_balance(tokens)
        return self.converter.convert(tokens)

    def eval(self, expr: str) -> float:
        """
        Evaluate an expression string.

        Returns:
            The result as a float, or nan when the expression is empty.

        Raises:
            CalculatorError: for any malformed expression or a division by zero.
        """
        if len(expr) == 0:
            return math.nan
        postfix = self.to_postfix(expr)
        logger.debug("Postfix for %r: %s", expr, format_postfix(postfix))
        result = self.evaluator.eval(postfix)
        logger.debug("Result for %r: %r", expr, result)
        return result
