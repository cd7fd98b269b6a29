import json

import pytest

from clquote.common.config import Settings, load_pool_snapshot, validate_json_manifest
from clquote.common.errors import ValidationError
from clquote.entities.pool import Pool

Q96 = 2**96


def _snapshot():
    return {
        "chain_id": 1,
        "tokens": [
            {"address": "0x" + "2" * 40, "symbol": "usdc", "decimals": 6},
            {"address": "0x" + "1" * 40, "symbol": "WETH", "decimals": 18},
        ],
        "pools": [
            {
                "address": "0x" + "A" * 40,
                "token0": "USDC",
                "token1": "WETH",
                "fee": 3000,
                "sqrt_price_x96": str(Q96),
                "liquidity": hex(10**18),
                "tick": 0,
                "ticks": [
                    {"index": -887220, "liquidity_gross": "1000000000000000000", "liquidity_net": 10**18},
                    {"index": 887220, "liquidity_gross": 10**18, "liquidity_net": "-1000000000000000000"},
                ],
            }
        ],
    }


def test_load_pool_snapshot(tmp_path):
    path = tmp_path / "pools.json"
    path.write_text(json.dumps(_snapshot()))
    tokens, pools = load_pool_snapshot(path)
    assert set(tokens) == {"USDC", "WETH"}
    assert tokens["USDC"].decimals == 6
    assert tokens["WETH"].chain_id == 1
    assert len(pools) == 1
    pool = pools[0]
    assert isinstance(pool, Pool)
    # token order comes from addresses, not from the file
    assert pool.token0.symbol == "WETH"
    assert pool.liquidity == 10**18
    assert pool.address == "0x" + "a" * 40
    assert pool.tick_spacing == 60


def test_schema_rejects_missing_fields():
    payload = _snapshot()
    del payload["pools"][0]["sqrt_price_x96"]
    with pytest.raises(ValidationError) as err:
        validate_json_manifest(payload)
    assert err.value.kind == "SNAPSHOT_SCHEMA"


def test_schema_rejects_bad_address(tmp_path):
    payload = _snapshot()
    payload["tokens"][0]["address"] = "0x1234"
    path = tmp_path / "pools.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(ValidationError):
        load_pool_snapshot(path)


def test_unknown_token_reference(tmp_path):
    payload = _snapshot()
    payload["pools"][0]["token1"] = "DAI"
    path = tmp_path / "pools.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(ValidationError, match="unknown tokens"):
        load_pool_snapshot(path)


def test_inconsistent_ticks_rejected(tmp_path):
    payload = _snapshot()
    payload["pools"][0]["ticks"].pop()
    path = tmp_path / "pools.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(ValidationError) as err:
        load_pool_snapshot(path)
    assert err.value.kind == "ZERO_NET"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("CLQUOTE_MAX_HOPS", "2")
    monkeypatch.setenv("CLQUOTE_BLOCK_TAG", "0x1234")
    settings = Settings()
    assert settings.max_hops == 2
    assert settings.max_results == 3
    assert settings.block_tag == "0x1234"
    assert settings.rpc_url is None
