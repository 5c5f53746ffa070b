"""Document query matching.

Queries are dicts of field -> condition. A condition is either a literal
(equality) or a dict with one of ``$in``, ``$nin``, ``$ne``.
"""

from typing import Any

OPERATORS = frozenset({"$in", "$nin", "$ne"})


def _condition_matches(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and set(condition) <= OPERATORS:
        for op, operand in condition.items():
            if op == "$in" and value not in operand:
                return False
            if op == "$nin" and value in operand:
                return False
            if op == "$ne" and value == operand:
                return False
        return True
    return value == condition


def matches(doc: dict, query: dict | None) -> bool:
    """Whether ``doc`` satisfies every condition in ``query``."""
    if not query:
        return True
    return all(_condition_matches(doc.get(field), condition) for field, condition in query.items())


def candidate_values(condition: Any) -> list | None:
    """Values an index lookup can use for ``condition``, or None when it can't help."""
    if isinstance(condition, dict):
        if set(condition) == {"$in"} and None not in condition["$in"]:
            return list(condition["$in"])
        return None
    if condition is None:
        return None
    return [condition]
