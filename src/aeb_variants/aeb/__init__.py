"""Closed-loop AEB test bench."""

from aeb_variants.aeb.bench import AEBTestBench
from aeb_variants.aeb.config import AEBConfig, DecisionConfig, PerceptionConfig, VehicleConfig
from aeb_variants.aeb.controller import AEBController, AEBDecisionLogic, AEBStage

__all__ = [
    "AEBConfig",
    "AEBController",
    "AEBDecisionLogic",
    "AEBStage",
    "AEBTestBench",
    "DecisionConfig",
    "PerceptionConfig",
    "VehicleConfig",
]
