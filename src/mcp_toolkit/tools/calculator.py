"""Calculator tool: arithmetic, trigonometric, logarithmic and rounding operations."""

import logging
import math
from enum import Enum

from pydantic import Field

from mcp_toolkit.exceptions import CalculationError
from mcp_toolkit.tools.toolset import (
    CallContext,
    OperationSpec,
    ToolDescriptor,
    ToolParameters,
    Toolset,
    define_tool,
)

logger = logging.getLogger(__name__)

MAX_ROUND_DIGITS = 15


class CalculatorOperation(str, Enum):
    ADD = "Add"
    SUBTRACT = "Subtract"
    MULTIPLY = "Multiply"
    DIVIDE = "Divide"
    POWER = "Power"
    SQUARE_ROOT = "SquareRoot"
    MODULO = "Modulo"
    ABS = "Abs"
    LOG = "Log"
    SIN = "Sin"
    COS = "Cos"
    TAN = "Tan"
    ROUND = "Round"
    FLOOR = "Floor"
    CEILING = "Ceiling"


class CalculatorParameters(ToolParameters):
    operation: CalculatorOperation
    a: float = Field(default=0.0, description="First operand")
    b: float = Field(default=0.0, description="Second operand (ignored by unary operations)")


def format_number(value: float) -> str:
    """Render integral values without a trailing ``.0``.

    Example:
        >>> format_number(3.0), format_number(2.5)
        ('3', '2.5')
    """
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _divide(a: float, b: float) -> float:
    if b == 0:
        raise CalculationError("Cannot divide by zero")
    return a / b


def _square_root(a: float, b: float) -> float:
    if a < 0:
        raise CalculationError("Cannot calculate square root of negative number")
    return math.sqrt(a)


def _modulo(a: float, b: float) -> float:
    if b == 0:
        raise CalculationError("Cannot calculate modulo with zero")
    # Remainder takes the sign of the dividend
    return math.fmod(a, b)


def _log(a: float, b: float) -> float:
    if a <= 0 or b <= 0 or b == 1:
        raise CalculationError(
            "Invalid logarithm parameters: number and base must be positive and base must not be 1"
        )
    return math.log(a, b)


def _round(a: float, b: float) -> float:
    digits = int(b)
    if not 0 <= digits <= MAX_ROUND_DIGITS:
        raise CalculationError(f"Decimal places must be between 0 and {MAX_ROUND_DIGITS}")
    return round(a, digits)


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError as e:
        raise CalculationError(f"Result of {a} ** {b} is too large") from e
    except ValueError as e:
        raise CalculationError(f"{a} ** {b} is not a real number") from e


OPERATIONS = {
    CalculatorOperation.ADD: (
        lambda a, b: a + b,
        "Adds two numbers and returns their sum",
        ("a: First number to add", "b: Second number to add"),
    ),
    CalculatorOperation.SUBTRACT: (
        lambda a, b: a - b,
        "Subtracts the second number from the first and returns the difference",
        ("a: Starting number", "b: Number to subtract"),
    ),
    CalculatorOperation.MULTIPLY: (
        lambda a, b: a * b,
        "Multiplies two numbers and returns their product",
        ("a: First factor", "b: Second factor"),
    ),
    CalculatorOperation.DIVIDE: (
        _divide,
        "Divides the first number by the second and returns the quotient",
        ("a: Dividend (number to divide)", "b: Divisor (non-zero)"),
    ),
    CalculatorOperation.POWER: (
        _power,
        "Raises the first number to the power of the second",
        ("a: Base", "b: Exponent"),
    ),
    CalculatorOperation.SQUARE_ROOT: (
        _square_root,
        "Calculates the square root of the first number",
        ("a: Number (non-negative)", "b: Not used"),
    ),
    CalculatorOperation.MODULO: (
        _modulo,
        "Calculates the remainder of dividing the first number by the second",
        ("a: Dividend", "b: Divisor (non-zero)"),
    ),
    CalculatorOperation.ABS: (
        lambda a, b: abs(a),
        "Calculates the absolute value of the first number",
        ("a: Number to transform", "b: Not used"),
    ),
    CalculatorOperation.LOG: (
        _log,
        "Calculates the logarithm of the first number with the second as base",
        ("a: Number (strictly positive)", "b: Logarithm base (strictly positive and not equal to 1)"),
    ),
    CalculatorOperation.SIN: (
        lambda a, b: math.sin(a),
        "Calculates the sine of the first number (in radians)",
        ("a: Angle in radians", "b: Not used"),
    ),
    CalculatorOperation.COS: (
        lambda a, b: math.cos(a),
        "Calculates the cosine of the first number (in radians)",
        ("a: Angle in radians", "b: Not used"),
    ),
    CalculatorOperation.TAN: (
        lambda a, b: math.tan(a),
        "Calculates the tangent of the first number (in radians)",
        ("a: Angle in radians", "b: Not used"),
    ),
    CalculatorOperation.ROUND: (
        _round,
        "Rounds the first number to the number of decimal places specified by the second",
        ("a: Number to round", "b: Number of decimal places (integer)"),
    ),
    CalculatorOperation.FLOOR: (
        lambda a, b: float(math.floor(a)),
        "Rounds down the first number to the nearest integer",
        ("a: Number to round", "b: Not used"),
    ),
    CalculatorOperation.CEILING: (
        lambda a, b: float(math.ceil(a)),
        "Rounds up the first number to the nearest integer",
        ("a: Number to round", "b: Not used"),
    ),
}


class CalculatorTools(Toolset):
    """Single ``Calculator`` tool with one operation per math function."""

    def get_tools(self) -> list[ToolDescriptor]:
        """Get list of calculator tools."""
        return [
            define_tool(
                "Calculator",
                CalculatorParameters,
                {
                    operation: OperationSpec(
                        handler=self.calculate,
                        description=description,
                        parameters=parameters,
                    )
                    for operation, (_, description, parameters) in OPERATIONS.items()
                },
            )
        ]

    async def calculate(self, params: CalculatorParameters, context: CallContext) -> str:
        function, _, _ = OPERATIONS[params.operation]
        try:
            result = function(params.a, params.b)
        except OverflowError as e:
            raise CalculationError(f"{params.operation.value} overflowed: {e}") from e
        if math.isnan(result):
            raise CalculationError(f"{params.operation.value} produced no real result")
        return format_number(result)
