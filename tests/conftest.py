import os
from solders.keypair import Keypair

# Required settings must exist before arbitrager.config is imported
os.environ.setdefault("WALLET_PRIVATE_KEY", str(Keypair()))
os.environ.setdefault("SOLANA_RPC_ENDPOINT", "http://127.0.0.1:8899")

import pytest
import requests

from arbitrager.jupiter_client import RouteInfo, SwapResult
from arbitrager.tokens import Token

USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
WSOL = "So11111111111111111111111111111111111111112"


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeHttp:
    """Records requests; replies with queued FakeResponses per method."""

    def __init__(self, get=None, post=None):
        self.get_responses = list(get or [])
        self.post_responses = list(post or [])
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self.get_responses.pop(0)

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self.post_responses.pop(0)


class FakeExchange:
    def __init__(self, result):
        self.transaction = object()
        self._result = result

    def execute(self):
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


class FakeJupiter:
    """Stands in for arbitrager.jupiter_client.Jupiter; each queued item is returned or raised."""

    def __init__(self, routes=None, exchanges=None):
        self.routes = list(routes or [])
        self.exchanges = list(exchanges or [])
        self.compute_calls = []
        self.exchange_calls = []

    def compute_routes(self, **kwargs):
        self.compute_calls.append(kwargs)
        item = self.routes.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def exchange(self, route_info):
        self.exchange_calls.append(route_info)
        item = self.exchanges.pop(0)
        if isinstance(item, Exception):
            raise item
        return FakeExchange(item)


def make_route(in_amount=1000, threshold=1200, out_amount=1250, input_mint=USDC, output_mint=USDT):
    return RouteInfo.from_api({
        "inputMint": input_mint,
        "outputMint": output_mint,
        "inAmount": str(in_amount),
        "outAmount": str(out_amount),
        "otherAmountThreshold": str(threshold),
        "slippageBps": 100,
    })


@pytest.fixture
def token_x():
    return Token(chain_id=101, address=USDC, symbol="X", name="Token X", decimals=6)


@pytest.fixture
def token_y():
    return Token(chain_id=101, address=USDT, symbol="Y", name="Token Y", decimals=9)


@pytest.fixture
def ok_result():
    return SwapResult(txid="5sig", input_address="inAta", output_address="outAta", input_amount=1000, output_amount=1250)
