import json

import pytest

import order_tool
from conftest import HARDHAT_KEY, KEY_ONE, KEY_ONE_ADDRESS, SETTLEMENT, USDC, WETH
from order_struct import ORDER_TYPEHASH
from order_tool import ConfigError, load_config, main


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("ORDERBOOK_CHAIN_ID", "1")
    monkeypatch.setenv("ORDERBOOK_CONTRACT_ADDRESS", SETTLEMENT)
    monkeypatch.setenv("ORDERBOOK_PRIVATE_KEY", "0x" + KEY_ONE.hex())
    monkeypatch.setenv("ORDERBOOK_AUDIT_LOG", str(tmp_path / "audit.jsonl"))
    return tmp_path


@pytest.fixture
def order_file(env):
    path = env / "order.json"
    path.write_text(json.dumps({
        "user_address": KEY_ONE_ADDRESS,
        "trading_pair": "WETH-USDC",
        "base_token": WETH,
        "quote_token": USDC,
        "side": "buy",
        "type": "limit",
        "price": "1000000000000000000",
        "amount": "500000000000000000",
        "nonce": 1,
    }))
    return path


def test_load_config_defaults():
    config = load_config({})
    assert config.chain_id == order_tool.DEFAULT_CHAIN_ID
    assert config.contract_address is None
    assert config.private_key is None


def test_load_config_hex_chain_id():
    assert load_config({"ORDERBOOK_CHAIN_ID": "0x89"}).chain_id == 137


@pytest.mark.parametrize("value", ["mainnet", "-1"])
def test_load_config_bad_chain_id(value):
    with pytest.raises(ConfigError):
        load_config({"ORDERBOOK_CHAIN_ID": value})


def test_typehash(env, capsys):
    assert main(["typehash"]) == 0
    out = capsys.readouterr().out
    assert ORDER_TYPEHASH.hex() in out
    assert "Domain (1," in out


def test_sign_then_verify(env, order_file, capsys):
    signed = env / "signed.json"
    assert main(["sign", str(order_file), "--out", str(signed)]) == 0
    data = json.loads(signed.read_text())
    assert len(data["signature"]) == 132

    assert main(["verify", str(signed)]) == 0
    assert "[OK]" in capsys.readouterr().out

    events = [json.loads(line)["event"] for line in (env / "audit.jsonl").read_text().splitlines()]
    assert events == ["order_signed", "order_verified"]


def test_verify_tampered(env, order_file, capsys):
    signed = env / "signed.json"
    main(["sign", str(order_file), "--out", str(signed)])
    data = json.loads(signed.read_text())
    data["side"] = "sell"
    signed.write_text(json.dumps(data))

    assert main(["verify", str(signed)]) == 2
    assert "[INVALID]" in capsys.readouterr().out


def test_sign_with_wrong_key(env, order_file, monkeypatch, capsys):
    monkeypatch.setenv("ORDERBOOK_PRIVATE_KEY", HARDHAT_KEY)
    assert main(["sign", str(order_file), "--out", str(env / "signed.json")]) == 1
    assert "does not control" in capsys.readouterr().err


def test_sign_fills_missing_user_address(env, order_file):
    data = json.loads(order_file.read_text())
    data["user_address"] = ""
    order_file.write_text(json.dumps(data))
    signed = env / "signed.json"

    assert main(["sign", str(order_file), "--out", str(signed)]) == 0
    assert json.loads(signed.read_text())["user_address"] == KEY_ONE_ADDRESS


def test_hash_and_dedup(env, order_file, capsys):
    assert main(["hash", str(order_file)]) == 0
    digest = capsys.readouterr().out.strip()
    assert digest.startswith("0x") and len(digest) == 66

    assert main(["dedup", str(order_file)]) == 0
    assert len(capsys.readouterr().out.strip()) == 64


def test_missing_contract(env, order_file, monkeypatch, capsys):
    monkeypatch.delenv("ORDERBOOK_CONTRACT_ADDRESS")
    assert main(["hash", str(order_file)]) == 1
    assert "[FATAL]" in capsys.readouterr().err


def test_malformed_signature_does_not_abort_batch(env, order_file, capsys):
    signed = env / "signed.json"
    main(["sign", str(order_file), "--out", str(signed)])
    good = json.loads(signed.read_text())
    bad = dict(good, nonce=2, signature="0x1234")
    batch = env / "batch.json"
    batch.write_text(json.dumps([good, bad, dict(good)]))
    capsys.readouterr()

    assert main(["verify", str(batch)]) == 2
    out = capsys.readouterr().out
    assert out.count("[OK]") == 2
    assert "[INVALID] nonce=2: InvalidSignatureLength" in out

    events = [json.loads(line)["event"] for line in (env / "audit.jsonl").read_text().splitlines()]
    assert events == ["order_signed", "order_verified", "order_verified"]
