"""
Constants for the Binance exporter.
"""

# Published equivalent API hosts. Only one is ever used, there is no failover.
ENDPOINTS = (
    "https://api.binance.com",
    "https://api-gcp.binance.com",
    "https://api1.binance.com",
    "https://api2.binance.com",
    "https://api3.binance.com",
    "https://api4.binance.com",
)
DEFAULT_BASE_URL = ENDPOINTS[1]

# Every outbound request is bound to this deadline (seconds)
REQUEST_TIMEOUT = 3.0

# API paths (relative to the base URL)
SYSTEM_STATUS_PATH = "sapi/v1/system/status"
FUNDING_ASSET_PATH = "sapi/v1/asset/get-funding-asset"
USER_ASSET_PATH = "sapi/v3/asset/getUserAsset"

# Authentication
API_KEY_HEADER = "X-MBX-APIKEY"
PUBLIC_KEY_ENV = "B_PUBLIC_KEY"
PRIVATE_KEY_ENV = "B_PRIVATE_KEY"

# Cache partitions
FUNDING_PARTITION = "funding"
SPOT_PARTITION = "spot"

# Metrics server defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 1323
DEFAULT_REFRESH_INTERVAL = 60.0

# HTTP Status Codes
SUCCESS_STATUS_CODE = 200
ERROR_STATUS_CODE = 500
