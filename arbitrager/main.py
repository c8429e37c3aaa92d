import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
from solana.rpc.api import Client
from solders.keypair import Keypair
from solders.pubkey import Pubkey as PublicKey

from . import config, solana_client, tokens as token_catalog, trader
from .jupiter_client import Jupiter
from .tokens import Token


@dataclass
class Session:
    """Long-lived objects built once at startup and shared by the loop."""
    connection: Client
    keypair: Keypair
    jupiter: Jupiter
    tokens: List[Token]
    route_map: Dict[str, List[str]]
    input_token: Optional[Token]
    output_token: Optional[Token]
    possible_pairs: Dict[str, Optional[Token]] = field(default_factory=dict)


def bootstrap() -> Session:
    """Connect, load the token catalog and the Jupiter session. Any failure here is fatal."""
    keypair = solana_client.load_wallet_keypair()
    connection = solana_client.connect(config.RPC_URL)
    tokens = token_catalog.fetch_token_list(config.TOKEN_LIST_URL)

    platform_fee = None
    if config.PLATFORM_FEE_ACCOUNT:
        fee_accounts = solana_client.get_platform_fee_accounts(
            connection, PublicKey.from_string(config.PLATFORM_FEE_ACCOUNT)
        )
        platform_fee = (config.PLATFORM_FEE_BPS, fee_accounts)
        print(f"   Platform fee: {config.PLATFORM_FEE_BPS} bps, {len(fee_accounts)} fee accounts")

    jupiter = Jupiter.load(connection, config.CLUSTER, keypair, platform_fee=platform_fee)
    print("Connected", trader.unix_timestamp())
    route_map = jupiter.get_route_map()

    input_token = token_catalog.find_token(tokens, config.INPUT_TOKEN)
    output_token = token_catalog.find_token(tokens, config.OUTPUT_TOKEN)
    if input_token is None or output_token is None:
        print(f"   Warning: unresolved token(s) input={input_token and input_token.symbol} output={output_token and output_token.symbol}; no quotes will be requested")
    possible_pairs = token_catalog.get_possible_pairs_token_info(tokens, route_map, input_token)
    print(f"   Wallet: {keypair.pubkey()}")
    print(f"   Tokens in catalog: {len(tokens)}; pairs for input token: {len(possible_pairs)}")

    return Session(
        connection=connection,
        keypair=keypair,
        jupiter=jupiter,
        tokens=tokens,
        route_map=route_map,
        input_token=input_token,
        output_token=output_token,
        possible_pairs=possible_pairs,
    )


def _pause(interval_sec: float, jitter_sec: float, sleep: Callable[[float], None]):
    delay = max(0.0, interval_sec) + (random.uniform(0, jitter_sec) if jitter_sec > 0 else 0.0)
    if delay > 0:
        sleep(delay)


def poll(
    session: Session,
    *,
    amount=None,
    slippage_bps: int | None = None,
    interval_sec: float | None = None,
    jitter_sec: float | None = None,
    idle_backoff_sec: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """Quote, decide, maybe swap; forever. Only an exception from the swap step ends it."""
    amount = config.AMOUNT_TO_SWAP if amount is None else amount
    slippage_bps = config.SLIPPAGE_BPS if slippage_bps is None else slippage_bps
    interval_sec = config.POLL_INTERVAL_SEC if interval_sec is None else interval_sec
    jitter_sec = config.POLL_JITTER_SEC if jitter_sec is None else jitter_sec
    idle_backoff_sec = config.IDLE_BACKOFF_SEC if idle_backoff_sec is None else idle_backoff_sec

    while True:
        best = trader.get_routes(session.jupiter, session.input_token, session.output_token, amount, slippage_bps)
        if trader.should_execute(best):
            trader.execute_swap(session.jupiter, best)
        elif best is None and idle_backoff_sec > 0:
            sleep(idle_backoff_sec)
        _pause(interval_sec, jitter_sec, sleep)


def run():
    print("Arbritrager Started")
    print("Config", config.summary())

    session = bootstrap()
    try:
        poll(session)
    except KeyboardInterrupt:
        print()
        print("Shutting down…")
    except Exception as e:
        print({"e": e})
