"""Procedural terrain generation package.

This package implements noise-based terrain generation for cylindrical
worlds: base heights, erosion, slope, mountains, rivers, lakes and the
final classification into terrain categories.
"""

from .config import TerrainConfig
from .pipeline import PipelineCoordinator, build_default_steps, generate_world
from .stage import GenerationStep, stage_seed
from .validation import ValidationResult, validate_world

__all__ = [
    "GenerationStep",
    "PipelineCoordinator",
    "TerrainConfig",
    "ValidationResult",
    "build_default_steps",
    "generate_world",
    "stage_seed",
    "validate_world",
]
