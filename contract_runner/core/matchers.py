import math
from typing import Any, Callable, Dict, Optional

from contract_runner.core.exceptions import AssertionFailure
from contract_runner.models.test_case import Matcher

EPSILON = 1e-6


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> Optional[float]:
    """Coerce numbers and numeric strings to float; None for anything else"""
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def values_equal(expected: Any, actual: Any) -> bool:
    """Deep equality with numeric coercion and a float tolerance of EPSILON"""
    if _is_number(expected) or _is_number(actual):
        left, right = to_number(expected), to_number(actual)
        if left is None or right is None:
            return False
        return math.isclose(left, right, rel_tol=0.0, abs_tol=EPSILON)

    if isinstance(expected, list) and isinstance(actual, list):
        return len(expected) == len(actual) and all(
            values_equal(e, a) for e, a in zip(expected, actual))

    if isinstance(expected, dict) and isinstance(actual, dict):
        return expected.keys() == actual.keys() and all(
            values_equal(expected[k], actual[k]) for k in expected)

    return expected == actual


def _require_number(value: Any, role: str) -> float:
    number = to_number(value)
    if number is None:
        raise AssertionFailure(f"{role} value {value!r} is not numeric", actual=value)
    return number


def _require_size(value: Any) -> int:
    if isinstance(value, (list, dict, str)):
        return len(value)
    raise AssertionFailure(f"value {value!r} has no size", actual=value)


def _compare(op: Callable[[float, float], bool], symbol: str) -> Callable[[Any, Any], None]:
    def check(actual: Any, expected: Any) -> None:
        left = _require_number(actual, "actual")
        right = _require_number(expected, "expected")
        if not op(left, right):
            raise AssertionFailure(f"expected a value {symbol} {expected!r} but was {actual!r}",
                                   expected=expected, actual=actual)
    return check


def _every_item(op: Callable[[float, float], bool], symbol: str) -> Callable[[Any, Any], None]:
    def check(actual: Any, expected: Any) -> None:
        if not isinstance(actual, list):
            raise AssertionFailure(f"expected an array but was {actual!r}", expected=expected, actual=actual)
        bound = _require_number(expected, "expected")
        for index, item in enumerate(actual):
            number = to_number(item)
            if number is None or not op(number, bound):
                raise AssertionFailure(
                    f"expected every item {symbol} {expected!r} but item [{index}] was {item!r}",
                    expected=expected, actual=actual)
    return check


def _equals(actual: Any, expected: Any) -> None:
    if not values_equal(expected, actual):
        raise AssertionFailure(f"expected {expected!r} but was {actual!r}", expected=expected, actual=actual)


def _not_equals(actual: Any, expected: Any) -> None:
    if values_equal(expected, actual):
        raise AssertionFailure(f"expected a value other than {expected!r}", expected=expected, actual=actual)


def _not_empty(actual: Any, expected: Any) -> None:
    if _require_size(actual) == 0:
        raise AssertionFailure(f"expected a non-empty value but was {actual!r}",
                               expected="not empty", actual=actual)


def _size_greater_than(actual: Any, expected: Any) -> None:
    size = _require_size(actual)
    bound = _require_number(expected, "expected")
    if not size > bound:
        raise AssertionFailure(f"expected size > {expected!r} but size was {size}",
                               expected=expected, actual=size)


def _size_equals(actual: Any, expected: Any) -> None:
    size = _require_size(actual)
    if not values_equal(expected, size):
        raise AssertionFailure(f"expected size {expected!r} but size was {size}",
                               expected=expected, actual=size)


def _contains(actual: Any, expected: Any) -> None:
    if isinstance(actual, str) and isinstance(expected, str):
        found = expected in actual
    elif isinstance(actual, list):
        found = any(values_equal(expected, item) for item in actual)
    else:
        raise AssertionFailure(f"expected an array or string but was {actual!r}",
                               expected=expected, actual=actual)
    if not found:
        raise AssertionFailure(f"expected {actual!r} to contain {expected!r}", expected=expected, actual=actual)


MATCHERS: Dict[Matcher, Callable[[Any, Any], None]] = {
    Matcher.EQUALS: _equals,
    Matcher.NOT_EQUALS: _not_equals,
    Matcher.GREATER_THAN: _compare(lambda a, b: a > b, ">"),
    Matcher.GREATER_THAN_OR_EQUAL: _compare(lambda a, b: a >= b, ">="),
    Matcher.LESS_THAN: _compare(lambda a, b: a < b, "<"),
    Matcher.LESS_THAN_OR_EQUAL: _compare(lambda a, b: a <= b, "<="),
    Matcher.NOT_EMPTY: _not_empty,
    Matcher.EVERY_ITEM_GREATER_OR_EQUAL: _every_item(lambda a, b: a >= b, ">="),
    Matcher.EVERY_ITEM_LESS_OR_EQUAL: _every_item(lambda a, b: a <= b, "<="),
    Matcher.SIZE_GREATER_THAN: _size_greater_than,
    Matcher.SIZE_EQUALS: _size_equals,
    Matcher.CONTAINS: _contains,
}


def apply_matcher(matcher: Matcher, actual: Any, expected: Any) -> None:
    """
    Check ``actual`` against ``expected`` with the named matcher.

    Raises:
        AssertionFailure: describing the mismatch
    """
    MATCHERS[matcher](actual, expected)
