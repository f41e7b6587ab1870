DEFAULT_SLIPPAGE_PCT = 0.5
DEFAULT_DEADLINE_SECONDS = 20 * 60

# Timeout constants (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0  # HTTP client timeout

MAX_UINT256 = 2**256 - 1
MAX_UINT128 = 2**128 - 1
BPS_DENOMINATOR = 10_000

NATIVE_DECIMALS = 18

# Uniswap v4 global tick bounds (TickMath.MIN_TICK / MAX_TICK)
MIN_TICK = -887272
MAX_TICK = 887272

# LPFeeLibrary.MAX_LP_FEE and TickMath.MIN_/MAX_TICK_SPACING
MAX_LP_FEE = 1_000_000
MIN_TICK_SPACING = 1
MAX_TICK_SPACING = 32767

FEE_TO_TICK_SPACING: dict[int, int] = {100: 1, 500: 10, 3000: 60, 10000: 200}
FALLBACK_TICK_SPACING = 60

# Probe order when no fee is requested: cheapest tier first.
FEE_TIER_PROBE_ORDER: tuple[tuple[int, int], ...] = (
    (500, 10),
    (3000, 60),
    (10000, 200),
)

# Placeholder key reported when no tier resolves (UI pre-fill only).
DEFAULT_PLACEHOLDER_FEE = 3000
DEFAULT_PLACEHOLDER_TICK_SPACING = 60

# 0.1 ETH
DEFAULT_POLICY_VALUE_CEILING_WEI = 100_000_000_000_000_000

UNLIMITED_APPROVAL = "unlimited"
