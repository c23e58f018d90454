"""
Pure mapping from raw upstream payloads (Dexscreener pairs, Solana jsonParsed
transactions, Moralis records) to the flat context records. No I/O happens
here, so identical upstream responses always give identical contexts.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from pumpbrain.schemas.context import (
    MAX_EXAMPLE_TOKENS,
    MAX_TOKEN_TRANSFERS,
    TokenContext,
    TokenTransfer,
    TransactionContext,
    WalletContext,
)
from pumpbrain.utils.parsing import iso_from_unix, short_id, to_decimal, to_int, to_number

LAMPORTS_PER_SOL = Decimal(10) ** 9
WEI_PER_ETHER = Decimal(10) ** 18

TOKEN_PROGRAMS = {"spl-token", "spl-token-2022"}


def _sub(obj: Any, key: str) -> Dict[str, Any]:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _dedupe(values: Iterable[str], limit: int) -> List[str]:
    return list(dict.fromkeys(values))[:limit]


# =====================================
# Token
# =====================================
def _collect_urls(pair: Dict[str, Any]) -> Dict[str, Any]:
    urls: Dict[str, Any] = dict(_sub(pair, "urls"))
    if _text(pair.get("url")):
        urls["dexscreener"] = pair["url"]

    info = _sub(pair, "info")
    websites = [w["url"].strip() for w in _items(info.get("websites")) if _text(w.get("url"))]
    if websites:
        urls["websites"] = websites

    for social in _items(info.get("socials")):
        social_type = (_text(social.get("type")) or "").lower()
        social_url = (_text(social.get("url")) or "").strip()
        if social_type and social_url:
            urls[social_type] = social_url
    return urls


def build_token_context(token_address: str, pair: Dict[str, Any]) -> TokenContext:
    """Map the first Dexscreener pair onto a TokenContext. Missing sub-objects become nulls."""
    liquidity = _sub(pair, "liquidity")
    volume = _sub(pair, "volume")
    txns_24h = _sub(_sub(pair, "txns"), "h24")

    return TokenContext(
        token_address=token_address,
        chain=_text(pair.get("chainId")),
        dex=_text(pair.get("dexId")),
        pair_created_at=to_int(pair.get("pairCreatedAt")),
        price_usd=to_number(pair.get("priceUsd")),
        liquidity_usd=to_number(liquidity.get("usd")),
        volume_24h_usd=to_number(volume.get("h24")),
        buys_24h=to_int(txns_24h.get("buys")),
        sells_24h=to_int(txns_24h.get("sells")),
        fdv=to_number(pair.get("fdv")),
        urls=_collect_urls(pair),
        base_token=_sub(pair, "baseToken"),
        quote_token=_sub(pair, "quoteToken"),
    )


# =====================================
# Solana (jsonParsed RPC payloads)
# =====================================
def _pubkey(key: Any) -> Optional[str]:
    if isinstance(key, dict):
        return _text(key.get("pubkey"))
    return _text(key)


def _account_keys(tx: Dict[str, Any]) -> List[Optional[str]]:
    message = _sub(_sub(tx, "transaction"), "message")
    keys = message.get("accountKeys")
    return [_pubkey(k) for k in keys] if isinstance(keys, list) else []


def _ui_amount(balance: Optional[Dict[str, Any]]) -> Decimal:
    if not balance:
        return Decimal(0)
    ui = _sub(balance, "uiTokenAmount")
    if ui.get("uiAmountString") is not None:
        return to_decimal(ui["uiAmountString"])
    return to_decimal(ui.get("uiAmount"))


def _token_balance_deltas(meta: Dict[str, Any], owner: Optional[str] = None) -> List[tuple]:
    """(mint, delta) per post-balance account, diffed against the pre-balance at the same account index."""
    pre_by_index = {b.get("accountIndex"): b for b in _items(meta.get("preTokenBalances"))}
    deltas = []
    for post in _items(meta.get("postTokenBalances")):
        if owner is not None and post.get("owner") != owner:
            continue
        delta = _ui_amount(post) - _ui_amount(pre_by_index.get(post.get("accountIndex")))
        if delta != 0:
            deltas.append((post.get("mint"), delta))
    return deltas


def solana_token_transfers(meta: Dict[str, Any]) -> List[TokenTransfer]:
    return [
        TokenTransfer(
            token=short_id(mint),
            amount=float(abs(delta)),
            direction="in" if delta > 0 else "out",
        )
        for mint, delta in _token_balance_deltas(meta)
    ]


def _has_token_instruction(tx: Dict[str, Any]) -> bool:
    message = _sub(_sub(tx, "transaction"), "message")
    instructions = _items(message.get("instructions"))
    for inner in _items(_sub(tx, "meta").get("innerInstructions")):
        instructions.extend(_items(inner.get("instructions")))
    return any(
        _text(ix.get("program")) in TOKEN_PROGRAMS or _sub(ix, "parsed").get("type") == "transfer"
        for ix in instructions
    )


def classify_solana_transaction(tx: Dict[str, Any], transfer_count: int) -> str:
    # Heuristic only: token-program activity plus the number of balance deltas
    if not _has_token_instruction(tx):
        return "unknown"
    return "swap" if transfer_count >= 2 else "transfer"


def build_solana_transaction_context(tx_hash: str, tx: Dict[str, Any], sol_usd: float) -> TransactionContext:
    meta = _sub(tx, "meta")
    fee_sol = to_decimal(meta.get("fee")) / LAMPORTS_PER_SOL
    transfers = solana_token_transfers(meta)
    keys = _account_keys(tx)

    return TransactionContext(
        chain="solana",
        hash=tx_hash,
        sender=(keys[0] if len(keys) > 0 else None) or "unknown",
        recipient=(keys[1] if len(keys) > 1 else None) or "unknown",
        timestamp=iso_from_unix(tx.get("blockTime")),
        native_amount_usd=0.0,
        fee_usd=round(float(fee_sol) * sol_usd, 4),
        token_transfers=transfers[:MAX_TOKEN_TRANSFERS],
        decoded_type=classify_solana_transaction(tx, len(transfers)),
    )


def wallet_balance_deltas(tx: Dict[str, Any], address: str) -> List[Decimal]:
    """
    Signed balance movements of `address` inside one transaction.

    Token accounts owned by the wallet come first. If none moved, fall back to
    the wallet's lamport balance, adding the fee back when the wallet paid it
    so that paying gas alone is not counted as an outbound movement.
    Failed transactions yield nothing.
    """
    meta = _sub(tx, "meta")
    if meta.get("err") is not None:
        return []

    token_deltas = [delta for _, delta in _token_balance_deltas(meta, owner=address)]
    if token_deltas:
        return token_deltas

    keys = _account_keys(tx)
    if address not in keys:
        return []
    index = keys.index(address)
    pre = meta.get("preBalances")
    post = meta.get("postBalances")
    if not isinstance(pre, list) or not isinstance(post, list) or index >= min(len(pre), len(post)):
        return []

    delta = to_decimal(post[index]) - to_decimal(pre[index])
    if index == 0:
        delta += to_decimal(meta.get("fee"))
    return [delta] if delta != 0 else []


def build_solana_wallet_context(
    address: str,
    signatures: List[Dict[str, Any]],
    details: List[Dict[str, Any]],
) -> WalletContext:
    """
    `signatures` is the newest-first page from getSignaturesForAddress;
    `details` holds whichever sampled transactions could be fetched.
    """
    signatures = _items(signatures)
    details = _items(details)

    in_count = out_count = 0
    for tx in details:
        for delta in wallet_balance_deltas(tx, address):
            if delta > 0:
                in_count += 1
            else:
                out_count += 1

    mints = (
        short_id(balance["mint"])
        for tx in details
        for balance in _items(_sub(tx, "meta").get("postTokenBalances"))
        if _text(balance.get("mint"))
    )

    return WalletContext(
        chain="solana",
        address=address,
        total_tx_sampled=len(signatures),
        recent_in_count=in_count,
        recent_out_count=out_count,
        example_tokens=_dedupe(mints, MAX_EXAMPLE_TOKENS),
        first_seen_at=iso_from_unix(signatures[-1].get("blockTime")) if signatures else None,
        last_seen_at=iso_from_unix(signatures[0].get("blockTime")) if signatures else None,
    )


# =====================================
# EVM (Moralis payloads)
# =====================================
TRANSFER_PARAM_NAMES = {
    "from": ("from", "_from", "src"),
    "to": ("to", "_to", "dst"),
    "value": ("value", "_value", "wad"),
}


def _event_param(params: List[Dict[str, Any]], position: int, name: str) -> Any:
    names = TRANSFER_PARAM_NAMES[name]
    for param in params:
        if param.get("name") in names:
            return param.get("value")
    # Transfer(address,address,uint256) in ABI order
    if len(params) == 3:
        return params[position].get("value")
    return None


def evm_token_transfers(logs: Any, sender: Optional[str]) -> List[TokenTransfer]:
    """Decoded `Transfer` events, tagged in/out when one side is the transaction sender."""
    wallet = (sender or "").lower()
    transfers = []
    for log in _items(logs):
        event = _sub(log, "decoded_event")
        if event.get("label") != "Transfer":
            continue
        params = _items(event.get("params"))
        source = str(_event_param(params, 0, "from") or "").lower()
        destination = str(_event_param(params, 1, "to") or "").lower()

        direction = "transfer"
        if wallet and destination == wallet:
            direction = "in"
        elif wallet and source == wallet:
            direction = "out"

        transfers.append(
            TokenTransfer(
                token=short_id(log.get("address")),
                amount=to_number(_event_param(params, 2, "value")) or 0.0,
                direction=direction,
            )
        )
    return transfers


def build_evm_transaction_context(
    chain: str,
    tx_hash: str,
    tx: Dict[str, Any],
    logs: Any,
    native_usd: float,
) -> TransactionContext:
    fee_native = to_decimal(tx.get("receipt_gas_used")) * to_decimal(tx.get("gas_price")) / WEI_PER_ETHER
    value_native = to_decimal(tx.get("value")) / WEI_PER_ETHER
    sender = _text(tx.get("from_address"))
    transfers = evm_token_transfers(logs, sender)

    return TransactionContext(
        chain=chain,
        hash=tx_hash,
        sender=sender or "unknown",
        recipient=_text(tx.get("to_address")) or "unknown",
        timestamp=_text(tx.get("block_timestamp")),
        native_amount_usd=float(value_native) * native_usd,
        fee_usd=round(float(fee_native) * native_usd, 4),
        token_transfers=transfers[:MAX_TOKEN_TRANSFERS],
        decoded_type="swap" if len(transfers) > 1 else "transfer",
    )


def build_evm_wallet_context(chain: str, address: str, transfers: Any) -> WalletContext:
    """`transfers` is Moralis' newest-first ERC20 transfer page for the address."""
    transfers = _items(transfers)
    wallet = address.lower()
    in_count = sum(1 for t in transfers if str(t.get("to_address") or "").lower() == wallet)

    return WalletContext(
        chain=chain,
        address=address,
        total_tx_sampled=len(transfers),
        recent_in_count=in_count,
        recent_out_count=len(transfers) - in_count,
        example_tokens=_dedupe((t["token_symbol"] for t in transfers if _text(t.get("token_symbol"))), MAX_EXAMPLE_TOKENS),
        first_seen_at=_text(transfers[-1].get("block_timestamp")) if transfers else None,
        last_seen_at=_text(transfers[0].get("block_timestamp")) if transfers else None,
    )
