"""HMAC helpers shared by the payment gateway adapters."""

import hashlib
import hmac
import json
import secrets
from decimal import Decimal
from typing import Any

HASHES = {
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}

# JavaScript prints numbers positionally inside this range, with an exponent outside it
JS_POSITIONAL_MIN = Decimal("1e-6")
JS_POSITIONAL_MAX = Decimal("1e21")


def canonical_payload(timestamp: str, nonce: str, body: str | bytes) -> bytes:
    """Bytes both crypto-pay gateways sign: timestamp, nonce and body, newline-terminated."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return f"{timestamp}\n{nonce}\n".encode("utf-8") + body + b"\n"


def hmac_hex(key: str | bytes, message: str | bytes, algorithm: str = "sha512") -> str:
    if isinstance(key, str):
        key = key.encode("utf-8")
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(key, message, HASHES[algorithm]).hexdigest()


def generate_nonce(length: int) -> str:
    """Random alphanumeric nonce of exactly `length` characters."""
    return secrets.token_hex((length + 1) // 2)[:length]


def compact_json(payload: Any) -> str:
    """Serialization used as the signed request body."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def js_number(value: int | float | Decimal) -> str:
    """Formats a number the way JavaScript's JSON.stringify does."""
    if isinstance(value, float):
        value = Decimal(repr(value))
    number = Decimal(value)
    if not number.is_finite():
        return "null"
    if number.is_zero():
        return "0"
    number = number.normalize()
    if JS_POSITIONAL_MIN <= abs(number) < JS_POSITIONAL_MAX:
        return format(number, "f")

    sign, digits, exponent = number.as_tuple()
    mantissa = "".join(str(digit) for digit in digits)
    power = exponent + len(digits) - 1
    if len(mantissa) > 1:
        mantissa = f"{mantissa[0]}.{mantissa[1:]}"
    return f"{'-' if sign else ''}{mantissa}e{'+' if power >= 0 else '-'}{abs(power)}"


def sorted_compact_json(payload: Any) -> str:
    """
    Key-sorted (recursively) compact JSON, independent of transport field order.

    Numbers are rendered like JavaScript so the output matches what a Node
    signer produces: `100.0` becomes `100` and `0.00001234` keeps its
    positional form. Parse bodies with `parse_float=Decimal` before calling
    this to keep the exact digits that were sent.
    """
    if isinstance(payload, dict):
        members = (
            f"{json.dumps(str(key), ensure_ascii=False)}:{sorted_compact_json(value)}"
            for key, value in sorted(payload.items(), key=lambda item: str(item[0]))
        )
        return "{" + ",".join(members) + "}"
    if isinstance(payload, (list, tuple)):
        return "[" + ",".join(sorted_compact_json(item) for item in payload) + "]"
    if payload is None or isinstance(payload, (bool, str)):
        return json.dumps(payload, ensure_ascii=False)
    if isinstance(payload, (int, float, Decimal)):
        return js_number(payload)
    raise TypeError(f"cannot serialize {type(payload).__name__} for signing")


def signatures_match(expected: str, provided: str | None, case_sensitive: bool = False) -> bool:
    if not provided:
        return False
    if not case_sensitive:
        expected, provided = expected.lower(), provided.lower()
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
