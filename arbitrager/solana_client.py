import json
from typing import Dict, Optional
import base58
from solana.rpc.api import Client
from solana.rpc.types import TxOpts, TokenAccountOpts
from solders.pubkey import Pubkey as PublicKey
from solders.keypair import Keypair
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from . import config

# SPL Token and ATA Program IDs (constants)
TOKEN_PROGRAM_ID = PublicKey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = PublicKey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")


def connect(rpc_url: str | None = None) -> Client:
    return Client(rpc_url or config.RPC_URL, timeout=config.SOLANA_RPC_TIMEOUT_SEC)


def load_wallet_keypair(secret: str | None = None) -> Keypair:
    """Decode the base58 wallet secret (64 bytes: secret + public key).
    Raises ValueError when absent or malformed so startup fails fast.
    """
    secret = (secret if secret is not None else config.WALLET_PRIVATE_KEY) or ""
    if not secret.strip():
        raise ValueError("WALLET_PRIVATE_KEY is empty")
    try:
        raw = base58.b58decode(secret.strip())
        if len(raw) != 64:
            raise ValueError(f"expected 64 bytes, got {len(raw)}")
        return Keypair.from_bytes(raw)
    except Exception as e:
        raise ValueError(f"WALLET_PRIVATE_KEY is not a valid base58 keypair: {e}") from e


def _rpc_to_json(resp):
    if isinstance(resp, dict):
        return resp
    tj = getattr(resp, "to_json", None)
    if callable(tj):
        return json.loads(tj())
    return None


def _rpc_get_result(resp):
    js = _rpc_to_json(resp)
    if isinstance(js, dict):
        return js.get("result") or js.get("value") or js
    # Fallback to .value on typed responses
    val = getattr(resp, "value", None)
    return val if val is not None else resp


def _rpc_get_value(resp):
    res = _rpc_get_result(resp)
    if isinstance(res, dict):
        v = res.get("value", None)
        return v if v is not None else res
    return res


def get_associated_token_address(*, owner: PublicKey, mint: PublicKey) -> PublicKey:
    # In solders, find_program_address is on Pubkey
    seeds = [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)]
    ata, _ = PublicKey.find_program_address(seeds, ASSOCIATED_TOKEN_PROGRAM_ID)
    return ata


def get_platform_fee_accounts(client: Client, fee_account_owner: PublicKey) -> Dict[str, PublicKey]:
    """Token accounts owned by the platform fee owner, keyed by mint address."""
    resp = client.get_token_accounts_by_owner_json_parsed(
        fee_account_owner, TokenAccountOpts(program_id=TOKEN_PROGRAM_ID)
    )
    accounts: Dict[str, PublicKey] = {}
    for entry in _rpc_get_value(resp) or []:
        if not isinstance(entry, dict):
            continue
        data = (entry.get("account") or {}).get("data")
        parsed = data.get("parsed") if isinstance(data, dict) else None
        if not isinstance(parsed, dict):
            continue
        mint = (parsed.get("info") or {}).get("mint")
        pubkey = entry.get("pubkey")
        if mint and pubkey:
            accounts[mint] = PublicKey.from_string(pubkey)
    return accounts


def send_versioned_transaction(client: Client, tx: VersionedTransaction) -> Signature:
    """Submit a signed transaction with preflight. RPC rejections raise solana.rpc.core.RPCException."""
    resp = client.send_raw_transaction(bytes(tx), opts=TxOpts(skip_preflight=False, preflight_commitment="confirmed"))
    sig = getattr(resp, "value", None)
    if not isinstance(sig, Signature):
        raise RuntimeError(f"Failed to send tx, unexpected response: {resp}")
    return sig


def confirm_transaction(client: Client, sig: Signature) -> Optional[str]:
    """Wait for `confirmed`; return the on-chain error as text, or None when the tx succeeded.
    Times out with solana.rpc.core.UnconfirmedTxError.
    """
    resp = client.confirm_transaction(sig, commitment="confirmed")
    statuses = getattr(resp, "value", None) or []
    status = statuses[0] if statuses else None
    err = getattr(status, "err", None) if status is not None else None
    return str(err) if err is not None else None


def token_balance_deltas(tx_result: dict, owner: str) -> Dict[str, int]:
    """Per-mint change of owner's token balances in a jsonParsed transaction (base units)."""
    meta = (tx_result or {}).get("meta") or {}
    deltas: Dict[str, int] = {}
    for sign, key in ((-1, "preTokenBalances"), (1, "postTokenBalances")):
        for bal in meta.get(key) or []:
            if not isinstance(bal, dict) or bal.get("owner") != owner:
                continue
            mint = bal.get("mint")
            amount = int((bal.get("uiTokenAmount") or {}).get("amount") or 0)
            deltas[mint] = deltas.get(mint, 0) + sign * amount
    return deltas


def get_transaction_balance_deltas(client: Client, sig: Signature, owner: str) -> Dict[str, int]:
    resp = client.get_transaction(sig, encoding="jsonParsed", commitment="confirmed", max_supported_transaction_version=0)
    tx_data = _rpc_get_result(resp)
    if not isinstance(tx_data, dict):
        return {}
    return token_balance_deltas(tx_data, owner)
