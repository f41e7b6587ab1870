from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click
from loguru import logger

from uniflow.adapters.uniswap_v4_adapter.discovery import PoolDiscoveryEngine
from uniflow.adapters.uniswap_v4_adapter.positions import PositionReader
from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.clients.PrivyClient import PrivyClient
from uniflow.core.clients.SubgraphClient import SubgraphClient
from uniflow.core.config import get_privy_signer_id, load_config
from uniflow.core.errors import UniflowError
from uniflow.core.utils.token_metadata import TokenMetadataCache
from uniflow.policies.engine import PolicyEngine
from uniflow.policies.uniswap_v4 import policy_definition


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _run(coro) -> None:
    try:
        result = asyncio.run(coro)
    except UniflowError as exc:
        _echo_json({"ok": False, "error": exc.code, "details": exc.to_dict()})
        sys.exit(1)
    _echo_json({"ok": True, "result": result})


@click.group(name="uniflow", help="Policy-gated Uniswap v4 liquidity for Privy wallets.")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
def uniflow_cli(config_path: str | None, log_level: str) -> None:
    if config_path:
        load_config(config_path, require_exists=True)
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())


@uniflow_cli.command(name="chains", help="List supported chains and deployments.")
def chains_cmd() -> None:
    registry = ChainRegistry.from_config()
    _echo_json(
        {
            "ok": True,
            "result": [
                {
                    "chainId": c.chain_id,
                    "name": c.name,
                    "poolManager": c.pool_manager,
                    "positionManager": c.position_manager,
                    "stateView": c.state_view,
                    "explorer": c.explorer_url,
                }
                for c in registry.all()
            ],
        }
    )


@uniflow_cli.command(
    name="policy-definition", help="Print the policy that init-policy would create."
)
@click.option("--owner-id", default=None, help="Defaults to privy.signer_id.")
def policy_definition_cmd(owner_id: str | None) -> None:
    owner = owner_id or get_privy_signer_id()
    if not owner:
        raise click.UsageError("--owner-id or privy.signer_id is required")
    definition = policy_definition(owner, ChainRegistry.from_config())
    _echo_json({"ok": True, "result": definition.to_payload()})


@uniflow_cli.command(
    name="init-policy", help="Verify the pinned policy or create a new one."
)
def init_policy_cmd() -> None:
    async def _init() -> dict[str, Any]:
        client = PrivyClient()
        try:
            engine = PolicyEngine(client, ChainRegistry.from_config())
            policy_ids = await engine.initialize()
            return {"state": str(engine.state), "policyIds": policy_ids}
        finally:
            await client.close()

    _run(_init())


@uniflow_cli.command(name="discover-pool", help="Find the v4 pool for a token pair.")
@click.argument("token_a")
@click.argument("token_b")
@click.option("--chain-id", type=int, required=True)
@click.option("--fee", type=int, default=None)
@click.option("--tick-spacing", type=int, default=None)
def discover_pool_cmd(
    token_a: str,
    token_b: str,
    chain_id: int,
    fee: int | None,
    tick_spacing: int | None,
) -> None:
    async def _discover() -> dict[str, Any]:
        registry = ChainRegistry.from_config()
        engine = PoolDiscoveryEngine(registry, TokenMetadataCache(registry))
        result = await engine.discover_pool(
            token_a, token_b, chain_id, fee=fee, tick_spacing=tick_spacing
        )
        return result.to_dict()

    _run(_discover())


@uniflow_cli.command(name="positions", help="List v4 positions owned by a wallet.")
@click.argument("wallet_address")
@click.option("--chain-id", type=int, default=None)
def positions_cmd(wallet_address: str, chain_id: int | None) -> None:
    async def _positions() -> dict[str, Any]:
        subgraph = SubgraphClient()
        try:
            reader = PositionReader(ChainRegistry.from_config(), subgraph)
            result = await reader.get_positions(wallet_address, chain_id)
            return result.to_dict()
        finally:
            await subgraph.close()

    _run(_positions())


def main() -> None:
    uniflow_cli()


if __name__ == "__main__":
    main()
