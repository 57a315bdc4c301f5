"""Single-result jq filters over fetched JSON."""

from __future__ import annotations

import json
from typing import Any

import jq

from apicollect.errors import FilterError, MoreThanOneResultError


def encode_json(value: Any) -> bytes:
    return json.dumps(value, sort_keys=True, separators=(",", ":")).encode("utf-8")


def apply_filter(raw: bytes, expression: str) -> bytes:
    """Run *expression* over the JSON document *raw* and return its one result.

    Raises FilterError when the expression does not compile, the input is not
    JSON, evaluation fails or nothing is produced.  Raises
    MoreThanOneResultError (a FilterError carrying the first result) when the
    expression emits more than one value.
    """
    try:
        program = jq.compile(expression)
    except ValueError as exc:
        raise FilterError(f"could not create filter '{expression}': {exc}") from exc

    try:
        document = json.loads(raw)
    except ValueError as exc:
        raise FilterError(f"error unmarshalling json: {exc}") from exc

    try:
        results = program.input_value(document).all()
    except ValueError as exc:
        raise FilterError(f"error while filtering with '{expression}': {exc}") from exc

    if not results:
        raise FilterError(f"couldn't get filtered object: filter '{expression}' produced no result")
    first = encode_json(results[0])
    if len(results) > 1:
        raise MoreThanOneResultError(expression, first)
    return first
