from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext

# Wide enough for any uint256 raw amount.
_PRECISION = 80


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def to_erc20_raw(amount_tokens: str | int | float | Decimal, decimals: int) -> int:
    try:
        amt = _to_decimal(amount_tokens)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount_tokens}") from exc
    if not amt.is_finite():
        raise ValueError(f"Invalid token amount: {amount_tokens}")
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scale = Decimal(10) ** int(decimals)
        return int((amt * scale).to_integral_value(rounding=ROUND_DOWN))


def from_erc20_raw(amount_raw: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(int(amount_raw)) / (Decimal(10) ** int(decimals))


def format_units(amount_raw: int, decimals: int) -> str:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = from_erc20_raw(amount_raw, decimals)
        text = format(value.normalize(), "f")
    return text if text != "-0" else "0"
