from __future__ import annotations
import copy
from typing import Any, Dict, List, Mapping

from .errors import InvalidUpdateError

Document = Dict[str, Any]

SET = "$set"
PUSH = "$push"
PULL = "$pull"
# Applied in this order when several are present
UPDATE_OPS = (SET, PUSH, PULL)

_MISSING = object()


def values_equal(a: Any, b: Any) -> bool:
    # JSON booleans are not numbers: True must not match 1
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def matches(document: Mapping[str, Any], query: Mapping[str, Any] | None) -> bool:
    """
    Exact field equality: every key of `query` must be present in `document`
    with an equal value. Keys absent from the query are unconstrained, so an
    empty query matches every document.
    """
    if not query:
        return True
    for k, v in query.items():
        val = document.get(k, _MISSING)
        if val is _MISSING or not values_equal(val, v):
            return False
    return True


def pull_matching(items: List[Any], condition: Any) -> List[Any]:
    """
    Return `items` without the elements satisfying `condition`, keeping order.
    A mapping condition is a sub-query matched against mapping elements; any
    other condition removes elements equal to it.
    """
    if isinstance(condition, Mapping):
        return [it for it in items if not (isinstance(it, Mapping) and matches(it, condition))]
    return [it for it in items if not values_equal(it, condition)]


def has_operators(update: Mapping[str, Any]) -> bool:
    return any(op in update for op in UPDATE_OPS)


def validate_update(update: Any) -> None:
    if not isinstance(update, Mapping):
        raise InvalidUpdateError(f"update must be a mapping, got {type(update).__name__}")
    if not has_operators(update):
        # whole-object merge, any keys allowed
        return
    for k, v in update.items():
        if k not in UPDATE_OPS:
            raise InvalidUpdateError(f"unsupported update operator {k!r}")
        if not isinstance(v, Mapping):
            raise InvalidUpdateError(f"{k} expects a mapping of field -> value")


def apply_update(document: Mapping[str, Any], update: Mapping[str, Any]) -> Document:
    """
    Apply an update specification and return the new document; `document`
    itself is left untouched.

    Supported: $set (shallow merge), $push (append to list, creating it when
    absent), $pull (remove matching list elements). An update without any of
    these operators is merged into the document as a whole.
    """
    validate_update(update)
    out: Document = copy.deepcopy(dict(document))

    if not has_operators(update):
        out.update(copy.deepcopy(dict(update)))
        return out

    for field, value in update.get(SET, {}).items():
        out[field] = copy.deepcopy(value)

    for field, value in update.get(PUSH, {}).items():
        cur = out.get(field, _MISSING)
        if cur is _MISSING:
            cur = []
        elif not isinstance(cur, list):
            # null included, as MongoDB rejects it too
            raise InvalidUpdateError(f"cannot $push to non-list field {field!r}")
        cur.append(copy.deepcopy(value))
        out[field] = cur

    for field, condition in update.get(PULL, {}).items():
        cur = out.get(field)
        if isinstance(cur, list):
            out[field] = pull_matching(cur, condition)

    return out


def seed_upsert(query: Mapping[str, Any] | None, update: Mapping[str, Any]) -> Document:
    """Document inserted by an upsert that matched nothing: query fields, then the update."""
    return apply_update(dict(query or {}), update)
