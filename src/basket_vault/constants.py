"""Fixed-point scales and policy defaults."""

# USD amounts are carried as micro-dollars (6 decimals)
USD_DECIMALS = 6
USD_SCALE = 10**USD_DECIMALS
ONE_USD = USD_SCALE

# Vault shares carry 9 decimals
SHARE_DECIMALS = 9
SHARE_PRECISION = 10**SHARE_DECIMALS
# share_price = tvl * SHARE_PRECISION / total_shares / SHARE_PRICE_DOWNSCALE
SHARE_PRICE_DOWNSCALE = 1_000
BOOTSTRAP_SHARE_PRICE = ONE_USD

# Withdrawal and unwind fractions are expressed over this scale
FRACTION_SCALE = 1_000_000

WEIGHT_TOTAL = 100
MIN_ASSETS = 1
MAX_ASSETS = 10
MAX_NAME_LENGTH = 32
MAX_TOKEN_DECIMALS = 18

BPS_DENOMINATOR = 10_000

# Rebalancing policy
DEFAULT_DRIFT_THRESHOLD_PERCENT = 5
DEFAULT_MAX_SWAPS = 6
DEFAULT_SLIPPAGE_BPS = 100  # 1%
DEFAULT_MIN_SWAP_USD_MICRO = ONE_USD

# Quote policy (seconds)
SWITCHBOARD_MAX_QUOTE_AGE = 120
PYTH_MAX_QUOTE_AGE = 60
MOCK_ORACLE_MAX_QUOTE_AGE = 300
# $10M per unit, in micro-dollars
DEFAULT_PRICE_CEILING_USD_MICRO = 10_000_000_000_000

DEFAULT_SWITCHBOARD_CROSSBAR_URL = "https://crossbar.switchboard.xyz"
DEFAULT_PYTH_HERMES_ENDPOINT = "https://hermes.pyth.network"

# Switchboard results are decimal strings; quotes are emitted at this exponent
SWITCHBOARD_QUOTE_EXPONENT = -8

# Liquid staking exchange rates carry 9 decimals
EXCHANGE_RATE_PRECISION = 10**9

# Static Pyth feed ids used when Hermes discovery finds nothing
PYTH_PRICE_FEED_IDS: dict[str, str] = {
    "BTC/USD": "0xe62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43",
    "ETH/USD": "0xff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace",
    "SOL/USD": "0xef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d",
}

# Mock oracle accepts prices strictly inside (0, MOCK_ORACLE_PRICE_BOUND)
MOCK_ORACLE_PRICE_BOUND = 10_000_000_000_000
