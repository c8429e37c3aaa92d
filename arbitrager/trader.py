import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from solders.pubkey import Pubkey as PublicKey

from .jupiter_client import Jupiter, RouteInfo
from .tokens import Token


# Lightweight structured logging for the poll loop
def _log(event: str, **fields):
    parts = [f"{event}"]
    for k, v in fields.items():
        if v is not None:
            parts.append(f"{k}={v}")
    print(" ".join(parts))


def unix_timestamp() -> int:
    return int(time.time())


def to_smallest_units(amount, decimals: int) -> int:
    """round(amount * 10**decimals), halves rounded up."""
    return int((Decimal(str(amount)) * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_HALF_UP))


def format_units(units: int, decimals: int) -> str:
    return str(Decimal(int(units)) / (Decimal(10) ** decimals))


def get_routes(
    jupiter: Jupiter,
    input_token: Optional[Token],
    output_token: Optional[Token],
    input_amount,
    slippage_bps: int,
) -> Optional[RouteInfo]:
    """Best route for input_amount (UI units) of input_token, or None.
    Unresolved tokens short-circuit before any request; quote errors are logged and swallowed.
    """
    try:
        if not input_token or not output_token:
            return None

        amount_units = to_smallest_units(input_amount, input_token.decimals)
        routes = jupiter.compute_routes(
            input_mint=PublicKey.from_string(input_token.address),
            output_mint=PublicKey.from_string(output_token.address),
            amount=amount_units,
            slippage_bps=slippage_bps,
            force_fetch=True,
        )
        if not routes:
            return None

        best = routes[0]
        print(
            "Best quote: ",
            format_units(best.out_amount, output_token.decimals),
            f"({output_token.symbol})",
            len(routes),
        )
        return best
    except Exception as e:
        print(f"[quote] error: {e}")
        return None


def should_execute(route: Optional[RouteInfo]) -> bool:
    # Literal rule: quoted input below the slippage-adjusted output threshold
    return route is not None and route.in_amount < route.other_amount_threshold


def execute_swap(jupiter: Jupiter, route_info: RouteInfo):
    """Prepare and send the swap. Errors reported by the aggregator are logged;
    anything raised while preparing or sending propagates to the caller.
    """
    print("try to create tx", unix_timestamp())
    exchange = jupiter.exchange(route_info)
    print("tx " + str(unix_timestamp()), "prepared" if exchange.transaction is not None else "not prepared")

    swap_result = exchange.execute()
    print("tx created", unix_timestamp())

    if swap_result.error:
        print("SWAP ERROR " + str(unix_timestamp()), swap_result.error)
        return swap_result

    print(f"https://explorer.solana.com/tx/{swap_result.txid}")
    print(f"inputAddress={swap_result.input_address} outputAddress={swap_result.output_address}")
    print(f"inputAmount={swap_result.input_amount} outputAmount={swap_result.output_amount}")
    _log("SWAP_CONFIRMED", txid=swap_result.txid, in_units=swap_result.input_amount, out_units=swap_result.output_amount)
    return swap_result
