"""Condition evaluator - matches a grant's conditions against request context."""

from collections.abc import Mapping

from accessgate.domain.value_objects import Scalar


def _scalar_equal(expected: Scalar, actual: object) -> bool:
    # bool is an int subclass; True must not match 1.
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and expected is actual
    if isinstance(expected, (int, float)):
        return isinstance(actual, (int, float)) and expected == actual
    return isinstance(actual, str) and expected == actual


class ConditionEvaluator:
    """Equality-only condition language.

    Every key in ``conditions`` must be present in ``context`` with an equal
    scalar value. No operators, no nesting.
    """

    def matches(
        self,
        conditions: Mapping[str, Scalar] | None,
        context: Mapping[str, object] | None,
    ) -> bool:
        """Return True if the grant applies to this request context."""
        if not conditions:
            return True
        if not context:
            return False
        for key, expected in conditions.items():
            if key not in context:
                return False
            if not _scalar_equal(expected, context[key]):
                return False
        return True
