"""Replica systems and replica-exchange orchestration."""

from .remd import (
    HamiltonianREMD,
    ReplicaExchange,
    TemperatureREMD,
    exchange_pairs,
    simulate_remd,
)
from .system import ReplicaSystem

__all__ = [
    "ReplicaSystem",
    "ReplicaExchange",
    "TemperatureREMD",
    "HamiltonianREMD",
    "exchange_pairs",
    "simulate_remd",
]
