"""Identifiers stamped into log lines and outbound payloads."""

ADAPTER_CODE = "auctionSignal"
ADAPTER_VERSION = "1.1.0"
LOG_PREFIX = f"{ADAPTER_CODE} Analytics:"
