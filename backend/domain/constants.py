"""
Domain constants used across services/routers.
"""

# Singleton row ids
COLLECTION_ROW_ID = 1
OWNERSHIP_ROW_ID = 1
CHAIN_HEAD_ROW_ID = 1

# Chain clock: each executed call is one block
DEFAULT_CHAIN_ID = "nft-registry-1"
BLOCK_HEIGHT_STEP = 1

# Log truncation for addresses
ADDRESS_LOG_PREFIX = 10

# Largest amount, height or timestamp a BigInteger column holds
MAX_STORED_INT = 2**63 - 1
