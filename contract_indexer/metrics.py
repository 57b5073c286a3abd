from __future__ import annotations

from prometheus_client import Counter, Enum


bootstrap_state = Enum(
    "indexer_bootstrap_state",
    "Current bootstrap sequence state",
    states=[
        "idle",
        "loading_config",
        "loading_abi",
        "validating",
        "constructing",
        "starting",
        "running",
        "failed",
    ],
)

bootstrap_failures_total = Counter(
    "indexer_bootstrap_failures_total",
    "Bootstrap failures by error kind",
    ["kind"],
)

shutdown_signals_total = Counter(
    "indexer_shutdown_signals_total",
    "Termination signals received",
    ["signal"],
)
