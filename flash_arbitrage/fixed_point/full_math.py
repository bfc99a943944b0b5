"""
256-bit fixed-point multiply/divide helpers.

Python integers never overflow, so the intermediate product is always exact;
only the final result is bounded to the uint256 range the on-chain venues
operate in.
"""

from ..exceptions import ArithmeticOverflow

MAX_UINT128 = (1 << 128) - 1
MAX_UINT160 = (1 << 160) - 1
MAX_UINT256 = (1 << 256) - 1

Q96 = 1 << 96
RESOLUTION = 96


def _check_operands(a: int, b: int, denominator: int) -> None:
    if a < 0 or b < 0 or denominator < 0:
        raise ArithmeticOverflow(
            "mul_div operands must be non-negative",
            details={"a": a, "b": b, "denominator": denominator},
        )
    if denominator == 0:
        raise ArithmeticOverflow("mul_div by zero")


def _bound(result: int) -> int:
    if result > MAX_UINT256:
        raise ArithmeticOverflow(
            "mul_div result exceeds uint256", details={"result_bits": result.bit_length()}
        )
    return result


def mul_div(a: int, b: int, denominator: int) -> int:
    """Return floor(a * b / denominator) with full intermediate precision."""
    _check_operands(a, b, denominator)
    return _bound((a * b) // denominator)


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """Return ceil(a * b / denominator) with full intermediate precision."""
    _check_operands(a, b, denominator)
    quotient, remainder = divmod(a * b, denominator)
    if remainder:
        quotient += 1
    return _bound(quotient)


def div_rounding_up(x: int, y: int) -> int:
    if y == 0:
        raise ArithmeticOverflow("division by zero")
    return -(-x // y)


def to_uint160(value: int) -> int:
    if value < 0 or value > MAX_UINT160:
        raise ArithmeticOverflow("value does not fit in uint160", details={"value": value})
    return value
