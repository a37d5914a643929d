"""Environment-driven defaults for the switch client."""

from __future__ import annotations

import os

YES_ANSWER = ("true", "yes", "y", "t", "1", "on")

TESMART_HOST: str | None = os.environ.get("TESMART_HOST")
TESMART_PORT: int = int(os.environ.get("TESMART_PORT", "5000"))

# Seconds
TESMART_CONNECT_TIMEOUT: float = float(os.environ.get("TESMART_CONNECT_TIMEOUT", "5.0"))
TESMART_READ_DEADLINE: float = float(os.environ.get("TESMART_READ_DEADLINE", "0.2"))
TESMART_RESPONSE_TIMEOUT: float = float(os.environ.get("TESMART_RESPONSE_TIMEOUT", "2.0"))
TESMART_RECONNECT_BASE_DELAY: float = float(os.environ.get("TESMART_RECONNECT_BASE_DELAY", "0.5"))
TESMART_RECONNECT_MAX_DELAY: float = float(os.environ.get("TESMART_RECONNECT_MAX_DELAY", "30.0"))

TESMART_MAX_INPUTS: int = int(os.environ.get("TESMART_MAX_INPUTS", "16"))
TESMART_DEBUG: bool = os.environ.get("TESMART_DEBUG", "0").casefold() in YES_ANSWER
# 0 disables the Prometheus endpoint
TESMART_METRICS_PORT: int = int(os.environ.get("TESMART_METRICS_PORT", "0"))

SUPPORTED_INPUT_COUNTS = (8, 16)
LED_TIMEOUT_MAX_SECONDS = 30
