import json

import pytest

from clquote.main import run

Q96 = 2**96
EDGE = 887220
L = 10**18


def _write_snapshot(tmp_path):
    payload = {
        "chain_id": 1,
        "tokens": [
            {"address": "0x" + f"{1:040x}", "symbol": "AAA"},
            {"address": "0x" + f"{2:040x}", "symbol": "BBB"},
        ],
        "pools": [
            {
                "address": "0x" + "a" * 40,
                "token0": "AAA",
                "token1": "BBB",
                "fee": 3000,
                "sqrt_price_x96": str(Q96),
                "liquidity": str(L),
                "tick": 0,
                "ticks": [
                    {"index": -EDGE, "liquidity_gross": str(L), "liquidity_net": str(L)},
                    {"index": EDGE, "liquidity_gross": str(L), "liquidity_net": str(-L)},
                ],
            }
        ],
    }
    path = tmp_path / "pools.json"
    path.write_text(json.dumps(payload))
    return str(path)


@pytest.mark.asyncio
async def test_run_exact_in_prints_trades(tmp_path, capsys):
    snapshot = _write_snapshot(tmp_path)
    code = await run(["exact-in", "aaa", "BBB", "1000000", "--snapshot", snapshot])
    assert code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    trade = json.loads(lines[0])
    assert trade["type"] == "EXACT_INPUT"
    assert trade["path"] == ["AAA", "BBB"]
    assert trade["pools"] == ["0x" + "a" * 40]
    assert trade["amount_in"] == "1000000"
    assert trade["amount_out"] == "996999"


@pytest.mark.asyncio
async def test_run_exact_out(tmp_path, capsys):
    snapshot = _write_snapshot(tmp_path)
    code = await run(["exact-out", "BBB", "AAA", "996999", "--snapshot", snapshot])
    assert code == 0
    trade = json.loads(capsys.readouterr().out.strip())
    assert trade["type"] == "EXACT_OUTPUT"
    assert trade["amount_out"] == "996999"


@pytest.mark.asyncio
async def test_run_unknown_token(tmp_path, capsys):
    snapshot = _write_snapshot(tmp_path)
    assert await run(["exact-in", "AAA", "ZZZ", "1", "--snapshot", snapshot]) == 2
    assert capsys.readouterr().out == ""


@pytest.mark.asyncio
async def test_run_live_ticks_needs_rpc_url(tmp_path, monkeypatch):
    monkeypatch.delenv("CLQUOTE_RPC_URL", raising=False)
    snapshot = _write_snapshot(tmp_path)
    assert await run(["exact-in", "AAA", "BBB", "1", "--snapshot", snapshot, "--live-ticks"]) == 2


@pytest.mark.asyncio
async def test_run_reports_quote_errors(tmp_path):
    snapshot = _write_snapshot(tmp_path)
    assert await run(["exact-in", "AAA", "BBB", "1", "--snapshot", snapshot, "--max-hops", "0"]) == 1


@pytest.mark.asyncio
async def test_run_rejects_invalid_snapshot(tmp_path):
    path = tmp_path / "pools.json"
    path.write_text(json.dumps({"tokens": []}))
    assert await run(["exact-in", "AAA", "BBB", "1", "--snapshot", str(path)]) == 1
