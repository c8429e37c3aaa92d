"""Token catalog: fetch once, resolve the configured mints, list tradable pairs."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import requests

from . import config


@dataclass(frozen=True)
class Token:
    chain_id: int  # 101
    address: str  # mint, base58
    symbol: str
    name: str
    decimals: int
    logo_uri: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict) -> "Token":
        return cls(
            chain_id=int(data.get("chainId") or 0),
            address=data.get("address", ""),
            symbol=data.get("symbol", ""),
            name=data.get("name", ""),
            decimals=int(data.get("decimals", 0)),
            logo_uri=data.get("logoURI"),
            tags=list(data.get("tags") or []),
        )


def fetch_token_list(url: str | None = None, session: requests.Session | None = None) -> List[Token]:
    """Download the token catalog. HTTP or JSON errors propagate; there is no retry."""
    http = session or requests
    resp = http.get(url or config.TOKEN_LIST_URL, timeout=config.HTTP_TIMEOUT_SEC)
    resp.raise_for_status()
    data = resp.json()
    if isinstance(data, dict):
        if "tokens" in data:
            data = data["tokens"]
        elif "data" in data:
            data = data["data"]
        else:
            raise RuntimeError(f"Unexpected token list payload: keys {sorted(data)[:5]}")
    if not isinstance(data, list):
        raise RuntimeError(f"Unexpected token list payload: {type(data).__name__}")
    return [Token.from_api(item) for item in data if isinstance(item, dict)]


def find_token(tokens: List[Token], address: str) -> Optional[Token]:
    for t in tokens:
        if t.address == address:
            return t
    return None


def get_possible_pairs_token_info(
    tokens: List[Token],
    route_map: Dict[str, List[str]],
    input_token: Optional[Token],
) -> Dict[str, Optional[Token]]:
    """Map every mint reachable from input_token in one route to its catalog entry (None if unlisted)."""
    if not input_token:
        return {}
    by_address = {t.address: t for t in tokens}
    possible_pairs = route_map.get(input_token.address) or []
    return {address: by_address.get(address) for address in possible_pairs}
