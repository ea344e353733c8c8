from __future__ import annotations

from typing import Any


class ExpressionError(ValueError):
    pass


def evaluate(expr: Any, properties: dict[str, Any], feature_id: Any = None) -> Any:
    """
    Evaluate the subset of style expressions the engine emits.

    Supported: literal, get, has, id, to-string, ==, !=, !, all, any, in, case.
    Non-list values evaluate to themselves.
    """
    if not isinstance(expr, list):
        return expr
    if not expr:
        raise ExpressionError("Empty expression")

    op, args = expr[0], expr[1:]
    if op == "literal":
        return args[0] if args else None
    if op == "get":
        return properties.get(str(args[0]))
    if op == "has":
        return str(args[0]) in properties
    if op == "id":
        return feature_id
    if op == "to-string":
        v = evaluate(args[0], properties, feature_id)
        return "" if v is None else str(v)
    if op in ("==", "!="):
        left = evaluate(args[0], properties, feature_id)
        right = evaluate(args[1], properties, feature_id)
        return left == right if op == "==" else left != right
    if op == "!":
        return not bool(evaluate(args[0], properties, feature_id))
    if op == "all":
        return all(bool(evaluate(a, properties, feature_id)) for a in args)
    if op == "any":
        return any(bool(evaluate(a, properties, feature_id)) for a in args)
    if op == "in":
        needle = evaluate(args[0], properties, feature_id)
        haystack = evaluate(args[1], properties, feature_id)
        if haystack is None:
            return False
        return needle in haystack
    if op == "case":
        # ["case", cond1, out1, cond2, out2, ..., fallback]
        pairs, fallback = args[:-1], args[-1]
        for i in range(0, len(pairs) - 1, 2):
            if bool(evaluate(pairs[i], properties, feature_id)):
                return evaluate(pairs[i + 1], properties, feature_id)
        return evaluate(fallback, properties, feature_id)
    raise ExpressionError(f"Unsupported expression operator: {op!r}")


def matches(expr: Any, properties: dict[str, Any], feature_id: Any = None) -> bool:
    if expr is None:
        return True
    return bool(evaluate(expr, properties, feature_id))
