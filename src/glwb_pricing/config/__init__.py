"""Configuration: frozen settings and tolerance constants."""

from .settings import (
    SETTINGS,
    Settings,
    SensitivitySettings,
    SimulationSettings,
    SolverSettings,
)

__all__ = [
    "SETTINGS",
    "Settings",
    "SimulationSettings",
    "SolverSettings",
    "SensitivitySettings",
]
