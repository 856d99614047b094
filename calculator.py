"""Calculator.

A single pass, left to right, addition and subtraction calculator.

1) Start with a result of 0, no pending number, a sign of +1 and an empty
stack of frames. A frame holds the result and sign of the enclosing scope
while a parenthesised group is being evaluated.

2) Scan the characters in the expression.
    - If the character is a digit, append it to the pending number.
    - If the character is a space, skip the character.
    - If the character is '+' or '-', fold the pending number into the
    result with the current sign and remember the new sign.
    - If the character is a '(', suspend the result and sign in a frame and
    start again from 0.
    - If the character is a ')', fold the pending number and merge the
    result into the suspended frame.
    - Else the character is invalid, raise MalformedCharacterError.

3) Fold any remaining number. Close any group left open, innermost first, as
if the missing ')' were appended. Return the result.
"""

import dataclasses
import logging
import sys
import typing as t

logger = logging.getLogger(__name__)

TokenKind = t.Literal["digit", "plus", "minus", "open", "close"]

UnmatchedClosePolicy = t.Literal["raise", "ignore"]

Sign = t.Literal[1, -1]

# Characters that are tokens on their own. Digits are handled separately.
token_map: t.Final[dict[str, TokenKind]] = {
    "+": "plus",
    "-": "minus",
    "(": "open",
    ")": "close",
}

_UNMATCHED_CLOSE_POLICIES: t.Final[tuple[UnmatchedClosePolicy, ...]] = (
    "raise",
    "ignore",
)


class CalculationError(ValueError):
    """Raised when an expression cannot be calculated.

    Args:
        message: A human readable description of the problem.
        expression: The expression being calculated.
        position: The offset of the offending character.

    """

    def __init__(self, message: str, expression: str, position: int) -> None:
        super().__init__(f"{message} at position {position}: {expression!r}")
        self.expression = expression
        self.position = position


class MalformedCharacterError(CalculationError):
    """A character outside of the accepted alphabet was found."""


class UnmatchedCloseError(CalculationError):
    """A ')' was found with no open group to close."""


@dataclasses.dataclass(frozen=True, slots=True)
class Token:
    """A classified character.

    Args:
        kind: What the character means.
        position: The offset of the character in the expression.
        value: The digit value, only set for digits.

    """

    kind: TokenKind
    position: int
    value: int | None = None


def is_digit(test_char: str, /) -> bool:
    """Return True if the character is an ASCII digit."""
    # isdigit() and isnumeric() accept characters like '²' and '五'.
    return "0" <= test_char <= "9"


def scan(expression: str, /) -> t.Iterator[Token]:
    """Lazily classify the characters of an expression.

    Spaces are dropped. Any character outside of the accepted alphabet raises
    as soon as it is reached.

    Raises:
        MalformedCharacterError: If a character is not a digit, space or one
            of '+', '-', '(' or ')'.

    """
    for position, test_char in enumerate(expression):
        if test_char == " ":
            continue

        if is_digit(test_char):
            yield Token("digit", position, ord(test_char) - ord("0"))
            continue

        kind = token_map.get(test_char)
        if kind is None:
            raise MalformedCharacterError(
                f"Unexpected character {test_char!r}",
                expression,
                position,
            )

        yield Token(kind, position)


T = t.TypeVar("T")


class Stack(t.Generic[T]):
    """Basic stack implementation to encapsulate list operations."""

    __slots__ = ("_array",)

    def __init__(self) -> None:
        """Initialize the backing array."""
        self._array: t.Final[list[T]] = []

    def push(self, item: T, /) -> None:
        """Push to the stack."""
        self._array.append(item)

    def pop(self) -> T:
        """Pop from the stack."""
        return self._array.pop()

    def empty(self) -> bool:
        """Return True if the stack is empty."""
        return not len(self)

    def __len__(self) -> int:
        """Return the size of the stack."""
        return len(self._array)


@dataclasses.dataclass(frozen=True, slots=True)
class Frame:
    """The suspended state of the scope enclosing a group.

    Args:
        result: The result of the enclosing scope when the group was opened.
        sign: The sign the group's value is added with.

    """

    result: int
    sign: Sign


@dataclasses.dataclass(slots=True)
class Accumulator:
    """Fold a stream of tokens into a single integer.

    Args:
        expression: The expression being calculated, used for error messages.
        unmatched_close: What to do with a ')' that has no open group.

    Attributes:
        result: The combined value of all complete terms at the current depth.
        pending_number: The number being parsed, or None if there is none.
        sign: The sign the pending number will be folded in with.

    """

    expression: str = ""
    unmatched_close: UnmatchedClosePolicy = "raise"

    result: int = 0
    pending_number: int | None = None
    sign: Sign = 1
    _frames: Stack[Frame] = dataclasses.field(default_factory=Stack)

    @property
    def depth(self) -> int:
        """The number of groups currently open."""
        return len(self._frames)

    def feed(self, token: Token, /) -> None:
        """Apply a single token."""
        if token.kind == "digit":
            digit = t.cast(int, token.value)
            self.pending_number = (self.pending_number or 0) * 10 + digit
            return

        if token.kind == "close" and self._frames.empty():
            if self.unmatched_close == "raise":
                raise UnmatchedCloseError(
                    "Unmatched ')'",
                    self.expression,
                    token.position,
                )
            # Inert, the number being parsed carries on. e.g: "1)2" is 12.
            logger.debug(
                "Ignoring unmatched ')' at position %d", token.position,
            )
            return

        # Every other token ends the number being parsed.
        self._fold_pending_number()

        if token.kind == "plus":
            self.sign = 1
        elif token.kind == "minus":
            self.sign = -1
        elif token.kind == "open":
            self._frames.push(Frame(self.result, self.sign))
            self.result = 0
            self.sign = 1
        else:
            self._close_group()

    def finish(self) -> int:
        """Fold the remaining number, close open groups and return the result.

        Groups that are still open are closed innermost first, as if the
        missing ')' were appended to the end of the expression. e.g:
        "-(3+(4+5)" is calculated as "-(3+(4+5))".
        """
        self._fold_pending_number()

        if not self._frames.empty():
            logger.debug(
                "Implicitly closing %d unterminated group(s) in %r",
                len(self._frames),
                self.expression,
            )

        while not self._frames.empty():
            self._close_group()

        return self.result

    def _fold_pending_number(self) -> None:
        if self.pending_number is None:
            return

        self.result += self.sign * self.pending_number
        self.pending_number = None

    def _close_group(self) -> None:
        frame: t.Final = self._frames.pop()
        self.result = frame.result + frame.sign * self.result
        self.sign = 1


def calculate(
    expression: str,
    /,
    *,
    unmatched_close: UnmatchedClosePolicy = "raise",
) -> int:
    """Calculate an addition and subtraction expression.

    Args:
        expression: The expression to calculate, e.g. "1 - (2 + 3)".
        unmatched_close: "raise" to reject a ')' with no open group, or
            "ignore" to skip it without changing any state.

    Returns:
        int: The value of the expression. An empty expression is 0.

    Raises:
        MalformedCharacterError: If the expression has an invalid character.
        UnmatchedCloseError: If a ')' has no open group and the policy is
            "raise".
        ValueError: If unmatched_close is not a known policy.

    """
    if unmatched_close not in _UNMATCHED_CLOSE_POLICIES:
        raise ValueError(f"Unknown unmatched_close policy: {unmatched_close!r}")

    accumulator: t.Final = Accumulator(expression, unmatched_close)

    for token in scan(expression):
        accumulator.feed(token)

    return accumulator.finish()


# -----------------------Test Runner ----------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class TestCase:
    """Defines a single test scenario.

    Args:
        description: A brief summary of what this case tests.
        expected: The expected result, or an exception type if an error is
            expected.
        expression: An expression string to calculate.

    """

    # Stop pytest from collecting this as a test class.
    __test__: t.ClassVar[bool] = False

    description: str
    expected: int | type[CalculationError]
    expression: str


def run_test(test: TestCase, /) -> int | type[CalculationError]:
    """Calculate a test case, returning the error type if one is raised."""
    try:
        return calculate(test.expression)
    except CalculationError as error:
        return type(error)


def run_tests(test_cases: t.Iterable[TestCase]) -> None:
    """Run all tests cases."""
    failure_count: int = 0
    for test in test_cases:
        result = run_test(test)
        if result != test.expected:
            print(
                f"FAILED ({test.expression}): {test.description}. ({result} !="
                f" {test.expected}).",
            )
            failure_count += 1
            continue

        print(f"PASSED ({test.expression}): {test.description}.")

    if failure_count:
        sys.exit(1)


TEST_CASES: t.Final[tuple[TestCase, ...]] = (
    # ------------- Basic Operations --------------------------------
    TestCase(
        description="Simple addition",
        expected=2,
        expression="1 + 1",
    ),
    TestCase(
        description="Simple subtraction",
        expected=0,
        expression="1 - 1",
    ),
    TestCase(description="No operators", expected=7, expression="7"),
    TestCase("Leading minus", -1, "-2 + 1"),
    TestCase("Leading plus", 3, "+3"),
    # ----------- Multi-digit and whitespace ------------------------
    TestCase("Double-digit numbers", 20, "10 + 10"),
    TestCase("Leading 0 addition", 1, "0001+0000"),
    TestCase("Surrounding whitespace", 42, "   42   "),
    TestCase("No whitespace", 3, "1+2"),
    # ------------- Nesting -----------------------------------------
    TestCase("Whitespace in parenthesis", 3, "(1 + 2)"),
    TestCase("Operator after parenthesis", 4, "(1 + 1) + 2"),
    TestCase("Two distinct scopes", 6, "(1 + 1) + (1 + 3)"),
    TestCase("Subtraction in parenthesis", 0, "(1 - 1)"),
    TestCase("Addition after subtraction scope", 1, "(1 - 1) + 1"),
    TestCase("Deeply nested scopes", 29, "(1+(4+5+2)+3)+(6+8)"),
    TestCase("Nested scopes with subtraction", 23, "(1+(4+5+2)-3)+(6+8)"),
    TestCase("Many redundant matching parenthesis", 1, "(((((1)))))"),
    TestCase("Minus distributes over nested scope", 8, "10 - (3 - 1)"),
    # ----------- Unary minus ---------------------------------------
    TestCase("Negative number in parenthesis", -1, "1 + (-2)"),
    TestCase("Negative number cancels out", 0, "1 + (-1)"),
    TestCase("Minus on negative number", 3, "1 - (-2)"),
    TestCase("Negated scope", -3, "-(1 + 2)"),
    # ----------- Unterminated expressions --------------------------
    TestCase("Unterminated nested scopes", -12, "- (3 + (4 + 5)"),
    TestCase("Lone open parenthesis", 0, "("),
    TestCase("Unterminated root scope", 4, "(4"),
    TestCase("Unterminated nested scope", 4, "((4)"),
    # ----------- Empty expressions ---------------------------------
    TestCase("Empty expression", 0, ""),
    TestCase("Empty expression with whitespace", 0, "   "),
    TestCase("Nested empty expression", 0, "()"),
    # ----------- Invalid characters --------------------------------
    TestCase("Multiplication", MalformedCharacterError, "2 * 3"),
    TestCase("Decimal Numbers", MalformedCharacterError, "2.5"),
    TestCase("Global numeric characters", MalformedCharacterError, "五-五"),
    TestCase("Superscript character", MalformedCharacterError, "2²"),
    TestCase("Tab is not whitespace", MalformedCharacterError, "1\t+ 2"),
    # ----------- Invalid Parenthesis -------------------------------
    TestCase("Unmatched close", UnmatchedCloseError, "4)"),
    TestCase("Inverse parenthesis", UnmatchedCloseError, ")4("),
    TestCase("Too many closes", UnmatchedCloseError, "(4))"),
)


if __name__ == "__main__":
    run_tests(TEST_CASES)
