CHAIN_ID_ETHEREUM = 1
CHAIN_ID_BSC = 56
CHAIN_ID_UNICHAIN = 130
CHAIN_ID_BASE = 8453
CHAIN_ID_ARBITRUM = 42161

CHAIN_CODE_TO_ID = {
    "ethereum": CHAIN_ID_ETHEREUM,
    "mainnet": CHAIN_ID_ETHEREUM,
    "bsc": CHAIN_ID_BSC,
    "base": CHAIN_ID_BASE,
    "arbitrum": CHAIN_ID_ARBITRUM,
    "arbitrum-one": CHAIN_ID_ARBITRUM,
    "unichain": CHAIN_ID_UNICHAIN,
}

CHAIN_ID_TO_CODE: dict[int, str] = {
    v: k for k, v in CHAIN_CODE_TO_ID.items() if k not in ("arbitrum-one", "mainnet")
}

SUPPORTED_CHAINS = [
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_BSC,
    CHAIN_ID_BASE,
    CHAIN_ID_ARBITRUM,
    CHAIN_ID_UNICHAIN,
]

CHAIN_NAMES: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "Ethereum",
    CHAIN_ID_BSC: "BSC",
    CHAIN_ID_BASE: "Base",
    CHAIN_ID_ARBITRUM: "Arbitrum One",
    CHAIN_ID_UNICHAIN: "Unichain",
}

NATIVE_SYMBOLS: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "ETH",
    CHAIN_ID_BSC: "BNB",
    CHAIN_ID_BASE: "ETH",
    CHAIN_ID_ARBITRUM: "ETH",
    CHAIN_ID_UNICHAIN: "ETH",
}

PUBLIC_RPC_URLS: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "https://eth.llamarpc.com",
    CHAIN_ID_BSC: "https://bsc-dataseed.binance.org",
    CHAIN_ID_BASE: "https://mainnet.base.org",
    CHAIN_ID_ARBITRUM: "https://arb1.arbitrum.io/rpc",
    CHAIN_ID_UNICHAIN: "https://rpc.unichain.org",
}

CHAIN_EXPLORER_URLS: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "https://etherscan.io",
    CHAIN_ID_BSC: "https://bscscan.com",
    CHAIN_ID_BASE: "https://basescan.org",
    CHAIN_ID_ARBITRUM: "https://arbiscan.io",
    CHAIN_ID_UNICHAIN: "https://uniscan.xyz",
}

# The Graph subgraph ids for the Uniswap v4 deployments
SUBGRAPH_IDS: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "DiYPVdygkfjDWhbxGSqAQxwBKmfKnkWQojqeM2rkLb3G",
    CHAIN_ID_BSC: "2qQpC8inZPZL4tYfRQPFGZhsE8mYzE67n5z3Yf5uuKMu",
    CHAIN_ID_BASE: "Gqm2b5J85n1bhCyDMpGbtbVn4935EvvdyHdHrx3dibyj",
    CHAIN_ID_ARBITRUM: "G5TsTKNi8yhPSV7kycaE23oWbqv9zzNqR49FoEQjzq1r",
    CHAIN_ID_UNICHAIN: "EoCvJ5tyMLMJcTnLQwWpjAtPdn74PcrZgzfcT5bYxNBH",
}

SUBGRAPH_GATEWAY_URL = "https://gateway.thegraph.com/api"

POA_MIDDLEWARE_CHAIN_IDS: set[int] = {
    CHAIN_ID_BSC,
}
