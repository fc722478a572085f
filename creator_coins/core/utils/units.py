from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from creator_coins.core.constants.chains import CHAIN_EXPLORER_URLS


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def to_wei_eth(amount_eth: str | int | float | Decimal) -> int:
    """Convert a decimal token amount (18 decimals) to wei, rounding down."""
    try:
        amt = _to_decimal(amount_eth)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount_eth}") from exc
    if not amt.is_finite():
        raise ValueError(f"Invalid amount: {amount_eth}")
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    return int((amt * Decimal(10**18)).to_integral_value(rounding=ROUND_DOWN))


def from_wei_eth(amount_wei: int) -> Decimal:
    return Decimal(int(amount_wei)) / Decimal(10**18)


def explorer_url(
    chain_id: int, *, address: str | None = None, tx_hash: str | None = None
) -> str | None:
    base = CHAIN_EXPLORER_URLS.get(int(chain_id))
    if base is None:
        return None
    if tx_hash:
        return f"{base}tx/{tx_hash}"
    if address:
        return f"{base}address/{address}"
    return base
