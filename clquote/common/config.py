"""Configuration loading and pool snapshot validation utilities."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from jsonschema import Draft7Validator
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from clquote.common.errors import ValidationError
from clquote.common.models import PoolSnapshot, Token, TokenSnapshot
from clquote.entities.pool import Pool
from clquote.ticks.tick_list import Tick

log = logging.getLogger(__name__)

SNAPSHOT_SCHEMA = "pool_snapshot.schema.json"


def _load_json(path: str | Path) -> Dict[str, Any]:
    with Path(path).expanduser().open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _load_schema(name: str) -> Dict[str, Any]:
    here = Path(__file__).resolve().parent / "schemas"
    return _load_json(here / name)


def validate_json_manifest(payload: Dict[str, Any], schema_name: str = SNAPSHOT_SCHEMA) -> None:
    """Validate a snapshot dict against a bundled JSON schema."""
    schema = _load_schema(schema_name)
    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        msgs = "; ".join(f"{'/'.join(map(str, e.path))}: {e.message}" for e in errors)
        raise ValidationError("SNAPSHOT_SCHEMA", f"Snapshot validation failed: {msgs}", count=len(errors))


def pools_from_snapshot(payload: Dict[str, Any]) -> Tuple[Dict[str, Token], List[Pool]]:
    """Build tokens and pools from an already schema-validated snapshot dict."""
    default_chain_id = int(payload.get("chain_id", 1))
    try:
        token_entries = [TokenSnapshot(**entry) for entry in payload["tokens"]]
        pool_entries = [PoolSnapshot(**entry) for entry in payload.get("pools", [])]
    except PydanticValidationError as exc:
        raise ValidationError("SNAPSHOT", f"Snapshot entry invalid: {exc}") from exc

    tokens: Dict[str, Token] = {}
    for entry in token_entries:
        token = entry.to_token(default_chain_id)
        if token.symbol in tokens:
            raise ValidationError("SNAPSHOT", f"duplicate token symbol {token.symbol}", symbol=token.symbol)
        tokens[token.symbol] = token

    pools: List[Pool] = []
    for entry in pool_entries:
        missing = [sym for sym in (entry.token0, entry.token1) if sym not in tokens]
        if missing:
            raise ValidationError("SNAPSHOT", f"pool references unknown tokens {missing}", pool=entry.address)
        ticks = [Tick(t.index, t.liquidity_gross, t.liquidity_net) for t in entry.ticks]
        pools.append(
            Pool(
                tokens[entry.token0],
                tokens[entry.token1],
                entry.fee,
                entry.sqrt_price_x96,
                entry.liquidity,
                entry.tick,
                ticks,
                tick_spacing=entry.tick_spacing,
                address=entry.address,
            )
        )
    return tokens, pools


def load_pool_snapshot(path: str | Path) -> Tuple[Dict[str, Token], List[Pool]]:
    """Load a snapshot file, validate it, and return ``(tokens_by_symbol, pools)``."""
    payload = _load_json(path)
    validate_json_manifest(payload, SNAPSHOT_SCHEMA)
    tokens, pools = pools_from_snapshot(payload)
    log.info("Loaded %d tokens and %d pools from %s", len(tokens), len(pools), path)
    return tokens, pools


class Settings(BaseSettings):
    """Environment-driven configuration for the quoting CLI."""

    log_level: str = Field("INFO", alias="CLQUOTE_LOG_LEVEL")
    max_hops: int = Field(3, ge=1, alias="CLQUOTE_MAX_HOPS")
    max_results: int = Field(3, ge=1, alias="CLQUOTE_MAX_RESULTS")
    snapshot_path: str = Field("config/pools.json", alias="CLQUOTE_SNAPSHOT_PATH")

    rpc_url: str | None = Field(None, alias="CLQUOTE_RPC_URL")
    rpc_timeout_seconds: float = Field(10.0, gt=0, alias="CLQUOTE_RPC_TIMEOUT_SECONDS")
    block_tag: str = Field("latest", alias="CLQUOTE_BLOCK_TAG")

    # Load environment from a dot-env file if present; ignore unrelated keys
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


__all__ = ["Settings", "validate_json_manifest", "pools_from_snapshot", "load_pool_snapshot", "SNAPSHOT_SCHEMA"]
