import copy
import sys
from pathlib import Path

import pytest

import uniflow.core.config as uniflow_config
from uniflow.core.chain_registry import ChainRegistry

_repo_root = Path(__file__).parent.parent
_repo_root_str = str(_repo_root)


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration")
    if _repo_root_str not in sys.path:
        sys.path.insert(0, _repo_root_str)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Run every test against an empty CONFIG and no PRIVY_* environment."""
    for key in (
        "PRIVY_APP_ID",
        "PRIVY_APP_SECRET",
        "PRIVY_SIGNER_ID",
        "PRIVY_SIGNER_PRIVATE_KEY",
        "PRIVY_POLICY_ID",
        "POLICY_VALUE_CEILING_WEI",
        "THE_GRAPH_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)
    original = copy.deepcopy(uniflow_config.CONFIG)
    uniflow_config.set_config({})
    yield
    uniflow_config.set_config(original)


@pytest.fixture
def registry() -> ChainRegistry:
    return ChainRegistry.from_config()
