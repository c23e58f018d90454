from pumpbrain.services.normalize import (
    build_evm_wallet_context,
    build_solana_wallet_context,
    wallet_balance_deltas,
)
from tests.samples import (
    BONK,
    EVM_OTHER,
    EVM_WALLET,
    OTHER,
    USDC,
    WALLET,
    erc20_transfer,
    signature,
    solana_tx,
    token_balance,
)

SIGNATURES = [
    signature("sigA", 1700000300),
    signature("sigB", 1700000200),
    signature("sigC", 1700000100),
]


def _receive_token():
    return solana_tx(pre_tokens=[token_balance(2, BONK, "0")], post_tokens=[token_balance(2, BONK, "10")])


def _send_token():
    return solana_tx(pre_tokens=[token_balance(2, USDC, "100")], post_tokens=[token_balance(2, USDC, "40")])


def _receive_sol():
    return solana_tx(
        account_keys=[OTHER, WALLET],
        pre_balances=[5_000_000_000, 1_000_000_000],
        post_balances=[3_999_995_000, 2_000_000_000],
    )


# =========== Solana ===========
def test_token_deltas_of_the_wallet_decide_direction():
    assert wallet_balance_deltas(_receive_token(), WALLET) == [10]
    assert wallet_balance_deltas(_send_token(), WALLET) == [-60]


def test_other_owners_token_accounts_are_ignored():
    tx = solana_tx(
        pre_tokens=[token_balance(2, BONK, "0", owner=OTHER)],
        post_tokens=[token_balance(2, BONK, "10", owner=OTHER)],
    )

    # Only the wallet's fee was spent, which is not a movement
    assert wallet_balance_deltas(tx, WALLET) == []


def test_native_balance_fallback():
    assert wallet_balance_deltas(_receive_sol(), WALLET) == [1_000_000_000]
    assert wallet_balance_deltas(_receive_sol(), "NotInThisTransaction") == []


def test_failed_transactions_are_not_counted():
    assert wallet_balance_deltas(solana_tx(err={"InstructionError": [0, "Custom"]}), WALLET) == []


def test_solana_wallet_context_counts_and_tokens():
    details = [_receive_token(), _send_token(), solana_tx(), _receive_sol()]

    context = build_solana_wallet_context(WALLET, SIGNATURES, details)

    assert context.chain == "solana"
    assert context.total_tx_sampled == 3
    assert context.recent_in_count == 2
    assert context.recent_out_count == 1
    assert context.example_tokens == ["DezXAZ8z", "EPjFWdd5"]
    assert context.first_seen_at == "2023-11-14T22:15:00.000Z"
    assert context.last_seen_at == "2023-11-14T22:18:20.000Z"


def test_solana_wallet_context_is_deterministic():
    details = [_receive_token(), _send_token()]

    first = build_solana_wallet_context(WALLET, SIGNATURES, details)
    second = build_solana_wallet_context(WALLET, SIGNATURES, details)

    assert first == second


def test_solana_wallet_without_history():
    context = build_solana_wallet_context(WALLET, [], [])

    assert context.total_tx_sampled == 0
    assert context.recent_in_count == 0
    assert context.recent_out_count == 0
    assert context.example_tokens == []
    assert context.first_seen_at is None
    assert context.last_seen_at is None


def test_solana_example_tokens_are_unique_and_capped():
    mints = [f"Mint{i}xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx" for i in range(7)]
    details = [
        solana_tx(post_tokens=[token_balance(2 + i, mint, "1") for i, mint in enumerate(mints)]),
        solana_tx(post_tokens=[token_balance(2, mints[0], "1")]),
    ]

    tokens = build_solana_wallet_context(WALLET, SIGNATURES, details).example_tokens

    assert tokens == ["Mint0xxx", "Mint1xxx", "Mint2xxx", "Mint3xxx", "Mint4xxx"]


# =========== EVM ===========
def test_all_inbound_evm_wallet_has_no_outbound():
    transfers = [
        erc20_transfer(EVM_WALLET.lower(), EVM_OTHER, "USDT", "2024-03-03T00:00:00.000Z"),
        erc20_transfer(EVM_WALLET.upper().replace("0X", "0x"), EVM_OTHER, "PEPE", "2024-03-02T00:00:00.000Z"),
        erc20_transfer(EVM_WALLET, EVM_OTHER, "USDT", "2024-03-01T00:00:00.000Z"),
    ]

    context = build_evm_wallet_context("eth", EVM_WALLET, transfers)

    assert context.total_tx_sampled == 3
    assert context.recent_in_count == 3
    assert context.recent_out_count == 0
    assert context.example_tokens == ["USDT", "PEPE"]
    assert context.last_seen_at == "2024-03-03T00:00:00.000Z"
    assert context.first_seen_at == "2024-03-01T00:00:00.000Z"


def test_evm_symbols_are_unique_and_capped():
    symbols = ["A", "A", "B", None, "C", "D", "E", "F", "G"]
    transfers = [
        erc20_transfer(EVM_OTHER, EVM_WALLET, symbol, "2024-03-01T00:00:00.000Z") for symbol in symbols
    ]

    context = build_evm_wallet_context("polygon", EVM_WALLET, transfers)

    assert context.example_tokens == ["A", "B", "C", "D", "E"]
    assert context.recent_in_count == 0
    assert context.recent_out_count == len(symbols)


def test_evm_wallet_without_transfers():
    context = build_evm_wallet_context("base", EVM_WALLET, [])

    assert context.chain == "base"
    assert context.total_tx_sampled == 0
    assert context.first_seen_at is None
    assert context.last_seen_at is None
