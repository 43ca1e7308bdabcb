"""Scenario variant generation and closed-loop testing for AEB pedestrian scenarios."""

from aeb_variants.aeb import AEBConfig, AEBTestBench
from aeb_variants.assessment import SpeedReductionBand, SpeedReductionTable
from aeb_variants.catalog import create_seed_scenario, get_scenario
from aeb_variants.checks import ScenarioCheck, check_scenario
from aeb_variants.collision import ScenarioCollisionError, perform_scenario_collision
from aeb_variants.data import ActorSpec, ScenarioDescriptor, Trajectory
from aeb_variants.runner import IterationResult, RunSummary, VariantTestRunner
from aeb_variants.scenario import DrivingScenario, get_scenario_descriptor
from aeb_variants.variants import VariantGrid, VariantParameters, generate_scenario_variant

__all__ = [
    "AEBConfig",
    "AEBTestBench",
    "ActorSpec",
    "DrivingScenario",
    "IterationResult",
    "RunSummary",
    "ScenarioCheck",
    "ScenarioCollisionError",
    "ScenarioDescriptor",
    "SpeedReductionBand",
    "SpeedReductionTable",
    "Trajectory",
    "VariantGrid",
    "VariantParameters",
    "VariantTestRunner",
    "check_scenario",
    "create_seed_scenario",
    "generate_scenario_variant",
    "get_scenario",
    "get_scenario_descriptor",
    "perform_scenario_collision",
]
