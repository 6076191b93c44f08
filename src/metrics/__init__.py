"""Metrics module for AI gateway."""

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
)

# Counter to track REST API calls
# This will be used to count how many times each API endpoint is called
# and the status code of the response
rest_api_calls_total = Counter(
    "gw_rest_api_calls_total", "REST API calls counter", ["path", "status_code"]
)

# Histogram to measure response durations
# This will be used to track how long it takes to handle requests
response_duration_seconds = Histogram(
    "gw_response_duration_seconds", "Response durations", ["path"]
)

# Number of credentials in the store by their status
credentials_total = Gauge(
    "gw_credentials_total", "Credentials known to the gateway", ["status"]
)

# Token exchanges by outcome: ok, unauthorized, network or malformed
token_exchanges_total = Counter(
    "gw_token_exchanges_total", "Upstream token exchanges", ["outcome"]
)

token_cache_hits_total = Counter(
    "gw_token_cache_hits_total", "Inference tokens served from cache"
)

# Calls that could not obtain any inference token
token_acquire_failures_total = Counter(
    "gw_token_acquire_failures_total", "Failed inference token acquisitions"
)

quota_denials_total = Counter(
    "gw_quota_denials_total", "Requests denied by daily quota", ["tier"]
)

# Usage increments that were lost because of storage failures
usage_increment_failures_total = Counter(
    "gw_usage_increment_failures_total", "Failed usage increments"
)

# Chat completions forwarded upstream
llm_calls_total = Counter("gw_llm_calls_total", "LLM calls counter", ["model"])

llm_calls_failures_total = Counter(
    "gw_llm_calls_failures_total", "LLM calls failures", ["model"]
)
