"""
Reversal request parsing.

Turns the caller's payload into a ``ReturnRequest``.  Accepted shapes:

    {"invoice_id": 10}                                      full reversal
    {"invoice_id": 10, "include_item_list": []}             full reversal
    {"invoice_id": 10, "include_item_list": null}           full reversal
    {"invoice_id": 10, "include_item_list": [{"item_id": 5, "qty": 4}]}

Anything else raises ``MalformedRequestError``.  Keys other than
``invoice_id`` and ``include_item_list`` are ignored.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ledger_kernel.domain.dtos import ReturnLine, ReturnRequest
from ledger_kernel.exceptions import MalformedRequestError


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _decode(payload: str | bytes | bytearray | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(payload, Mapping):
        return payload
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedRequestError(f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedRequestError(f"expected a JSON object, got {type(data).__name__}")
        return data
    raise MalformedRequestError(f"unsupported payload type {type(payload).__name__}")


def _parse_line(index: int, raw: Any) -> ReturnLine:
    where = f"include_item_list[{index}]"
    if not isinstance(raw, Mapping):
        raise MalformedRequestError("must be an object", field=where)

    item_id = raw.get("item_id")
    if not _is_int(item_id):
        raise MalformedRequestError(f"item_id must be an integer, got {item_id!r}", field=f"{where}.item_id")

    qty = raw.get("qty")
    if not _is_int(qty) or qty <= 0:
        raise MalformedRequestError(f"qty must be a positive integer, got {qty!r}", field=f"{where}.qty")

    return ReturnLine(item_id=item_id, qty=qty)


def parse_return_request(payload: str | bytes | bytearray | Mapping[str, Any]) -> ReturnRequest:
    """
    Parse and validate a reversal payload.

    Raises:
        MalformedRequestError: the payload is not valid JSON, or does not
            have the expected shape and types.
    """
    data = _decode(payload)

    invoice_id = data.get("invoice_id")
    if not _is_int(invoice_id) or invoice_id <= 0:
        raise MalformedRequestError(
            f"invoice_id must be a positive integer, got {invoice_id!r}", field="invoice_id"
        )

    raw_items = data.get("include_item_list")
    if raw_items is None:
        return ReturnRequest(invoice_id=invoice_id)
    if not isinstance(raw_items, list):
        raise MalformedRequestError(
            f"must be a list, got {type(raw_items).__name__}", field="include_item_list"
        )

    return ReturnRequest(
        invoice_id=invoice_id,
        include_items=tuple(_parse_line(i, raw) for i, raw in enumerate(raw_items)),
    )
