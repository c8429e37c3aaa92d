import os
from decimal import Decimal, ROUND_HALF_UP
from dotenv import load_dotenv

load_dotenv()

REQUIRED_ENV = [
    "WALLET_PRIVATE_KEY",
    "SOLANA_RPC_ENDPOINT",
]
for var in REQUIRED_ENV:
    if not os.getenv(var):
        raise ValueError(f"Required environment variable {var} is not set")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def to_bps(percent: str) -> int:
    """Percent string (e.g. "0.5") to whole basis points."""
    return int((Decimal(percent) * 100).to_integral_value(rounding=ROUND_HALF_UP))


# Solana
WALLET_PRIVATE_KEY = os.getenv("WALLET_PRIVATE_KEY")
RPC_URL = os.getenv("SOLANA_RPC_ENDPOINT")
CLUSTER = os.getenv("SOLANA_CLUSTER", "mainnet-beta")  # selects the token list; Jupiter APIs are mainnet only
SOLANA_RPC_TIMEOUT_SEC = float(os.getenv("SOLANA_RPC_TIMEOUT_SEC", "10"))

# Pair & trade size
INPUT_TOKEN = os.getenv("INPUT_TOKEN", "")
OUTPUT_TOKEN = os.getenv("OUTPUT_TOKEN", "")
AMOUNT_TO_SWAP = Decimal(os.getenv("AMOUNT_TO_SWAP", "1"))  # UI units of INPUT_TOKEN
SLIPPAGE = os.getenv("SLIPPAGE", "1")  # percent
SLIPPAGE_BPS = to_bps(SLIPPAGE)

# Jupiter
TOKEN_LIST_URLS = {
    "mainnet-beta": "https://token.jup.ag/strict",
    "devnet": "https://api.jup.ag/api/tokens/devnet",
    "testnet": "https://api.jup.ag/api/tokens/testnet",
}
TOKEN_LIST_URL = os.getenv("TOKEN_LIST_URL") or TOKEN_LIST_URLS.get(CLUSTER, TOKEN_LIST_URLS["mainnet-beta"])
JUPITER_QUOTE_API = os.getenv("JUPITER_QUOTE_API", "https://quote-api.jup.ag/v6/quote")
JUPITER_SWAP_API = os.getenv("JUPITER_SWAP_API", "https://quote-api.jup.ag/v6/swap")
JUPITER_ROUTE_MAP_API = os.getenv("JUPITER_ROUTE_MAP_API", "https://quote-api.jup.ag/v6/indexed-route-map")
HTTP_TIMEOUT_SEC = float(os.getenv("HTTP_TIMEOUT_SEC", "15"))
ONLY_DIRECT_ROUTES = _flag("ONLY_DIRECT_ROUTES", "false")
WRAP_AND_UNWRAP_SOL = _flag("WRAP_AND_UNWRAP_SOL", "true")
PRIORITIZATION_FEE_LAMPORTS = int(os.getenv("PRIORITIZATION_FEE_LAMPORTS", "0"))

# Platform fee (optional): owner of the token accounts that collect the fee
PLATFORM_FEE_ACCOUNT = os.getenv("PLATFORM_FEE_ACCOUNT", "")
PLATFORM_FEE_BPS = int(os.getenv("PLATFORM_FEE_BPS", "50"))

# Polling: zero everywhere reproduces the tight loop (no delay between quotes)
POLL_INTERVAL_SEC = float(os.getenv("POLL_INTERVAL_SEC", "0"))
POLL_JITTER_SEC = float(os.getenv("POLL_JITTER_SEC", "0"))
IDLE_BACKOFF_SEC = float(os.getenv("IDLE_BACKOFF_SEC", "0"))  # after an iteration without a quote


def summary() -> dict:
    """Effective settings for the startup banner; the wallet secret is masked."""
    return {
        "WALLET_PRIVATE_KEY": "***",
        "SOLANA_RPC_ENDPOINT": RPC_URL,
        "SOLANA_CLUSTER": CLUSTER,
        "INPUT_TOKEN": INPUT_TOKEN,
        "OUTPUT_TOKEN": OUTPUT_TOKEN,
        "AMOUNT_TO_SWAP": str(AMOUNT_TO_SWAP),
        "SLIPPAGE": SLIPPAGE,
        "TOKEN_LIST_URL": TOKEN_LIST_URL,
        "PLATFORM_FEE_ACCOUNT": PLATFORM_FEE_ACCOUNT or None,
        "POLL_INTERVAL_SEC": POLL_INTERVAL_SEC,
        "POLL_JITTER_SEC": POLL_JITTER_SEC,
        "IDLE_BACKOFF_SEC": IDLE_BACKOFF_SEC,
    }
