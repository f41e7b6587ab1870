import json
import sys

import pytest
from click.testing import CliRunner
from loguru import logger

from uniflow.cli import uniflow_cli


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def _invoke(*args: str):
    return CliRunner().invoke(uniflow_cli, ["--log-level", "ERROR", *args])


def test_chains_lists_deployments():
    result = _invoke("chains")
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["ok"] is True
    assert [c["chainId"] for c in payload["result"]] == [1, 56, 8453, 42161, 130]


def test_policy_definition_with_owner():
    result = _invoke("policy-definition", "--owner-id", "signer-1")
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)["result"]
    assert payload["owner_id"] == "signer-1"
    assert len(payload["rules"]) == 1


def test_policy_definition_requires_owner():
    result = _invoke("policy-definition")
    assert result.exit_code == 2


def test_discover_pool_validation_error_is_json():
    token = "0x" + "11" * 20
    result = _invoke("discover-pool", token, token, "--chain-id", "8453")
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["ok"] is False
    assert payload["error"] == "VALIDATION_ERROR"
