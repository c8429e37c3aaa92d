"""
Thin Jupiter aggregator session over the public HTTP API.

Mirrors the operations the bot needs from the aggregator:
- route map (which mints can be swapped against which)
- quote computation, optionally bypassing any cache
- swap preparation (serialized v0 transaction signed with the wallet) and execution

Route finding itself stays on Jupiter's side; nothing here ranks routes.
"""
from __future__ import annotations
import base64
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import requests
from solana.rpc.api import Client
from solana.rpc.core import RPCException, UnconfirmedTxError
from solders.keypair import Keypair
from solders.pubkey import Pubkey as PublicKey
from solders.transaction import VersionedTransaction

from . import config, solana_client


@dataclass
class RouteInfo:
    in_amount: int
    out_amount: int
    other_amount_threshold: int
    slippage_bps: int
    input_mint: str
    output_mint: str
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict) -> "RouteInfo":
        return cls(
            in_amount=int(data.get("inAmount") or 0),
            out_amount=int(data.get("outAmount") or 0),
            other_amount_threshold=int(data.get("otherAmountThreshold") or 0),
            slippage_bps=int(data.get("slippageBps") or 0),
            input_mint=data.get("inputMint", ""),
            output_mint=data.get("outputMint", ""),
            raw=data,
        )


@dataclass
class SwapResult:
    txid: Optional[str] = None
    input_address: Optional[PublicKey] = None
    output_address: Optional[PublicKey] = None
    input_amount: Optional[int] = None
    output_amount: Optional[int] = None
    error: Optional[str] = None


class Exchange:
    """A prepared swap: signed transaction ready to be sent with execute()."""

    def __init__(self, jupiter: "Jupiter", route: RouteInfo, transaction: VersionedTransaction):
        self.jupiter = jupiter
        self.route = route
        self.transaction = transaction

    def execute(self) -> SwapResult:
        j = self.jupiter
        owner = j.user.pubkey()
        result = SwapResult(
            input_address=solana_client.get_associated_token_address(owner=owner, mint=PublicKey.from_string(self.route.input_mint)),
            output_address=solana_client.get_associated_token_address(owner=owner, mint=PublicKey.from_string(self.route.output_mint)),
        )
        try:
            sig = solana_client.send_versioned_transaction(j.connection, self.transaction)
        except RPCException as e:
            result.error = f"send rejected: {e}"
            return result
        result.txid = str(sig)
        try:
            tx_err = solana_client.confirm_transaction(j.connection, sig)
        except UnconfirmedTxError as e:
            result.error = f"unconfirmed: {e}"
            return result
        if tx_err:
            result.error = tx_err
            return result

        try:
            deltas = solana_client.get_transaction_balance_deltas(j.connection, sig, str(owner))
        except Exception as e:
            print(f"[swap] realized amounts unavailable for {sig}: {e}")
            deltas = {}
        spent = -deltas.get(self.route.input_mint, 0)
        received = deltas.get(self.route.output_mint, 0)
        # Native SOL legs do not show up in token balances; fall back to the quote
        result.input_amount = spent if spent > 0 else self.route.in_amount
        result.output_amount = received if received > 0 else self.route.out_amount
        return result


class Jupiter:
    def __init__(
        self,
        connection: Client,
        cluster: str,
        user: Keypair,
        *,
        platform_fee: Optional[Tuple[int, Dict[str, PublicKey]]] = None,
        http: requests.Session | None = None,
    ):
        self.connection = connection
        self.cluster = cluster
        self.user = user
        self.platform_fee = platform_fee
        self.http = http or requests.Session()
        self._route_map: Optional[Dict[str, List[str]]] = None

    @classmethod
    def load(cls, connection: Client, cluster: str, user: Keypair, **kwargs) -> "Jupiter":
        """Create the session and fetch the route map; failures propagate."""
        jupiter = cls(connection, cluster, user, **kwargs)
        if jupiter.cluster != "mainnet-beta":
            # Quote and swap APIs only serve mainnet; the cluster picks the token list
            print(f"[jupiter] cluster={jupiter.cluster}: quotes and swaps still go to {config.JUPITER_QUOTE_API}")
        jupiter._route_map = jupiter._fetch_route_map()
        return jupiter

    def _fetch_route_map(self) -> Dict[str, List[str]]:
        resp = self.http.get(config.JUPITER_ROUTE_MAP_API, params={"onlyDirectRoutes": "true"}, timeout=config.HTTP_TIMEOUT_SEC)
        resp.raise_for_status()
        data = resp.json()
        mint_keys = data.get("mintKeys") or []
        indexed = data.get("indexedRouteMap") or {}
        route_map: Dict[str, List[str]] = {}
        for idx, targets in indexed.items():
            route_map[mint_keys[int(idx)]] = [mint_keys[int(t)] for t in targets]
        return route_map

    def get_route_map(self) -> Dict[str, List[str]]:
        if self._route_map is None:
            self._route_map = self._fetch_route_map()
        return self._route_map

    def compute_routes(
        self,
        *,
        input_mint: PublicKey,
        output_mint: PublicKey,
        amount: int,
        slippage_bps: int,
        force_fetch: bool = False,
    ) -> List[RouteInfo]:
        params = {
            "inputMint": str(input_mint),
            "outputMint": str(output_mint),
            "amount": str(int(amount)),
            "slippageBps": str(int(slippage_bps)),
            "onlyDirectRoutes": "true" if config.ONLY_DIRECT_ROUTES else "false",
        }
        if self.platform_fee:
            params["platformFeeBps"] = str(int(self.platform_fee[0]))
        headers = {"Cache-Control": "no-cache"} if force_fetch else {}
        q = self.http.get(config.JUPITER_QUOTE_API, params=params, headers=headers, timeout=config.HTTP_TIMEOUT_SEC)
        q.raise_for_status()
        qd = q.json()
        # Older API versions return ranked candidates under "data"; v6 returns the best one directly
        if isinstance(qd, dict) and isinstance(qd.get("data"), list):
            routes = qd["data"]
        elif isinstance(qd, dict) and "inAmount" in qd:
            routes = [qd]
        else:
            routes = []
        # Older route entries omit the mints at top level
        return [
            RouteInfo.from_api({"inputMint": str(input_mint), "outputMint": str(output_mint), **r})
            for r in routes
            if isinstance(r, dict)
        ]

    def exchange(self, route_info: RouteInfo) -> Exchange:
        """Ask Jupiter for the swap transaction and sign it with the wallet.
        Returns an Exchange whose execute() reports application errors in SwapResult.error.
        """
        payload = {
            "quoteResponse": route_info.raw,
            "userPublicKey": str(self.user.pubkey()),
            "wrapAndUnwrapSol": config.WRAP_AND_UNWRAP_SOL,
            "prioritizationFeeLamports": config.PRIORITIZATION_FEE_LAMPORTS,
            "dynamicComputeUnitLimit": True,
        }
        if self.platform_fee:
            fee_account = self.platform_fee[1].get(route_info.output_mint)
            if fee_account is not None:
                payload["feeAccount"] = str(fee_account)
        s = self.http.post(config.JUPITER_SWAP_API, json=payload, timeout=config.HTTP_TIMEOUT_SEC)
        s.raise_for_status()
        sd = s.json()
        if sd.get("error"):
            return _FailedExchange(self, route_info, str(sd["error"]))
        swap_tx_b64 = sd.get("swapTransaction")
        if not swap_tx_b64:
            return _FailedExchange(self, route_info, "missing swapTransaction")

        unsigned = VersionedTransaction.from_bytes(base64.b64decode(swap_tx_b64))
        signed = VersionedTransaction(unsigned.message, [self.user])
        return Exchange(self, route_info, signed)


class _FailedExchange(Exchange):
    def __init__(self, jupiter: Jupiter, route: RouteInfo, error: str):
        super().__init__(jupiter, route, None)
        self.error = error

    def execute(self) -> SwapResult:
        return SwapResult(error=self.error)
