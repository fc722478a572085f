GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Timeout constants (seconds)
# Base occasionally takes minutes to return receipts for transactions that do land.
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_TRANSACTION_TIMEOUT = 180
DEFAULT_USER_OPERATION_TIMEOUT = 120
DEFAULT_CONFIRMATIONS = 1

MANTISSA = 10**18
MAX_UINT256 = 2**256 - 1

ADAPTER_COIN_FACTORY = "COIN_FACTORY"
ADAPTER_CREATOR_EARNINGS = "CREATOR_EARNINGS"
ADAPTER_ACTIVITY_TRACKER = "ACTIVITY_TRACKER"

EXECUTION_MODE_SPONSORED = "sponsored"
EXECUTION_MODE_DIRECT = "direct"
