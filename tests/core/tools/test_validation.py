import math

import pytest

from conftest import RECIPIENT, WALLET
from solmate.core.errors import (
    InvalidAddress,
    InvalidAmount,
    InvalidTokenSelection,
    MissingField,
    ValidationError,
)
from solmate.core.tools.validation import (
    coerce_amount,
    to_base_units,
    validate_check_balance,
    validate_check_crypto_price,
    validate_swap_tokens,
    validate_track_crypto_price,
    validate_transfer_sol,
)


def test_check_balance_requires_address():
    with pytest.raises(MissingField) as exc:
        validate_check_balance({})
    assert exc.value.message == "Address is required"


def test_check_balance_rejects_non_base58():
    with pytest.raises(InvalidAddress):
        validate_check_balance({"address": "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"})


def test_transfer_accepts_address_alias_and_defaults_network():
    args = validate_transfer_sol({"address": RECIPIENT, "amount": "0.5"})
    assert args.recipient == RECIPIENT
    assert args.amount == 0.5
    assert args.network == "devnet"
    assert args.lamports == 500_000_000


def test_transfer_missing_recipient_checked_before_amount_format():
    with pytest.raises(MissingField) as exc:
        validate_transfer_sol({"amount": "not a number"})
    assert exc.value.field == "recipient"


def test_transfer_rejects_unknown_network():
    with pytest.raises(ValidationError) as exc:
        validate_transfer_sol({"recipient": RECIPIENT, "amount": 1, "network": "localnet"})
    assert exc.value.field == "network"


def test_transfer_normalizes_mainnet_beta():
    args = validate_transfer_sol({"recipient": RECIPIENT, "amount": 1, "network": "mainnet-beta"})
    assert args.network == "mainnet"


def test_transfer_below_one_lamport():
    with pytest.raises(InvalidAmount):
        validate_transfer_sol({"recipient": RECIPIENT, "amount": 1e-12})


def test_transfer_above_u64_lamports():
    with pytest.raises(InvalidAmount):
        validate_transfer_sol({"recipient": RECIPIENT, "amount": 2e10})

    # 18 billion SOL still fits
    assert validate_transfer_sol({"recipient": RECIPIENT, "amount": 1.8e10}).lamports == 18_000_000_000_000_000_000


def test_swap_above_u64_base_units():
    with pytest.raises(InvalidAmount):
        validate_swap_tokens({"inputToken": "USDC", "outputToken": "SOL", "amount": 1e14})


@pytest.mark.parametrize("value", [0, -1, "abc", True, math.nan, math.inf, None, [1]])
def test_coerce_amount_rejects(value):
    with pytest.raises(InvalidAmount):
        coerce_amount(value)


def test_coerce_amount_accepts_numeric_strings():
    assert coerce_amount(" 2.5 ") == 2.5
    assert coerce_amount(3) == 3.0


def test_to_base_units_rounds_down():
    assert to_base_units(1.2345678, 6) == 1_234_567
    assert to_base_units(1, 9) == 1_000_000_000


def test_swap_same_tokens_rejected():
    with pytest.raises(InvalidTokenSelection) as exc:
        validate_swap_tokens({"inputToken": "SOL", "outputToken": "sol", "amount": 1})
    assert exc.value.message == "Cannot swap same tokens"


def test_swap_unknown_token_rejected():
    with pytest.raises(InvalidTokenSelection):
        validate_swap_tokens({"inputToken": "BONK", "outputToken": "SOL", "amount": 1})


def test_swap_case_insensitive_tokens():
    args = validate_swap_tokens({"inputToken": "usdc", "outputToken": "SOL", "amount": "25"})
    assert args.input_token.symbol == "USDC"
    assert args.output_token.symbol == "SOL"
    assert args.base_amount == 25_000_000


def test_price_symbol_normalized():
    assert validate_check_crypto_price({"symbol": "btc-usd"}).symbol == "BTC"
    assert validate_check_crypto_price({"symbol": "eth"}).symbol == "ETH"


@pytest.mark.parametrize("symbol", ["bitcoin cash", "BTC/USD", "", "ABCDEFGHIJK"])
def test_price_symbol_rejected(symbol):
    with pytest.raises(ValidationError):
        validate_check_crypto_price({"symbol": symbol})


def test_track_requires_fields_in_order():
    with pytest.raises(MissingField) as exc:
        validate_track_crypto_price({"symbol": "BTC"})
    assert exc.value.field == "targetPrice"


def test_track_condition_must_be_above_or_below():
    with pytest.raises(ValidationError):
        validate_track_crypto_price({"symbol": "BTC", "targetPrice": 1, "condition": "equals"})


def test_track_optional_volatility_threshold():
    args = validate_track_crypto_price(
        {"symbol": "btc", "targetPrice": "50000", "condition": "Above", "volatilityThreshold": 5}
    )
    assert args.condition == "above"
    assert args.volatility_threshold == 5.0
    assert args.email is None

    with pytest.raises(InvalidAmount):
        validate_track_crypto_price(
            {"symbol": "btc", "targetPrice": 1, "condition": "below", "volatilityThreshold": -2}
        )


def test_wallet_fixture_is_valid():
    assert validate_check_balance({"address": WALLET}).address == WALLET
