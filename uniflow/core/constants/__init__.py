ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Uniswap v4 represents the native asset as address(0).
NATIVE_TOKEN_ADDRESS = ZERO_ADDRESS
