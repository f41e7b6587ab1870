"""Uniswap v4 deployments (https://docs.uniswap.org/contracts/v4/deployments)."""

from uniflow.core.constants.chains import (
    CHAIN_ID_ARBITRUM,
    CHAIN_ID_BASE,
    CHAIN_ID_BSC,
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_UNICHAIN,
)

UNISWAP_V4_POOL_MANAGER: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0x000000000004444c5dc75cB358380D2e3dE08A90",
    CHAIN_ID_BSC: "0x28e2ea090877bf75740558f6bfb36a5ffee9e9df",
    CHAIN_ID_BASE: "0x498581ff718922c3f8e6a244956af099b2652b2b",
    CHAIN_ID_ARBITRUM: "0x360e68faccca8ca495c1b759fd9eee466db9fb32",
    CHAIN_ID_UNICHAIN: "0x1f98400000000000000000000000000000000004",
}

UNISWAP_V4_POSITION_MANAGER: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0xbd216513d74c8cf14cf4747e6aaa6420ff64ee9e",
    CHAIN_ID_BSC: "0x7a4a5c919ae2541aed11041a1aeee68f1287f95b",
    CHAIN_ID_BASE: "0x7c5f5a4bbd8fd63184577525326123b519429bdc",
    CHAIN_ID_ARBITRUM: "0xd88f38f930b7952f2db2432cb002e7abbf3dd869",
    CHAIN_ID_UNICHAIN: "0x4529a01c7a0410167c5740c487a8de60232617bf",
}

UNISWAP_V4_STATE_VIEW: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0x7ffe42c4a5deea5b0fec41c94c136cf115597227",
    CHAIN_ID_BSC: "0xd13dd3d6e93f276fafc9db9e6bb47c1180aee0c4",
    CHAIN_ID_BASE: "0xa3c0c9b65bad0b08107aa264b0f3db444b867a71",
    CHAIN_ID_ARBITRUM: "0x76fd297e2d437cd7f76d50f01afe6160f86e9990",
    CHAIN_ID_UNICHAIN: "0x86e8631a016f9068c3f085faf484ee3f5fdee8f2",
}

# Same address on every chain.
PERMIT2 = "0x000000000022D473030F116dDEE9F6B43aC78BA3"
