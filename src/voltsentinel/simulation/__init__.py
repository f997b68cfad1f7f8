"""Periodic simulation driver and the appliance state it maintains."""

from voltsentinel.simulation.config import SimulationConfig
from voltsentinel.simulation.driver import HealthListener, SimulationDriver, WaveformListener
from voltsentinel.simulation.registry import ApplianceRegistry, StateListener
from voltsentinel.simulation.scheduler import PeriodicTask

__all__ = [
    "ApplianceRegistry",
    "HealthListener",
    "PeriodicTask",
    "SimulationConfig",
    "SimulationDriver",
    "StateListener",
    "WaveformListener",
]
