"""Generation pipeline orchestration."""

import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from ..exceptions import GenerationStageError
from .classification import BorderWallPlacer, TileClassifier
from .config import TerrainConfig
from .erosion import HydraulicEroder, ThermalEroder
from .heights import HeightSynthesizer
from .hydrology import RiverNetworkSimulator
from .lakes import LakeFormer
from .mountains import MountainMassifGenerator
from .slope import SlopeAspectCalculator
from .stage import GenerationStep
from .validation import validate_world

if TYPE_CHECKING:
    from ..state import WorldData, WorldMap

logger = structlog.get_logger()


def build_default_steps(config: TerrainConfig) -> list[GenerationStep]:
    """Create the standard stage list in pipeline order."""
    workers = config.workers
    steps: list[GenerationStep] = [
        HeightSynthesizer(config.heights, workers=workers),
        ThermalEroder(config.thermal, workers=workers),
        HydraulicEroder(config.hydraulic, workers=workers),
        SlopeAspectCalculator(config.slope, workers=workers),
        MountainMassifGenerator(config.mountains, workers=workers),
        RiverNetworkSimulator(config.rivers),
        LakeFormer(config.lakes),
        TileClassifier(
            config.classification,
            config.rivers,
            config.lakes,
            slope=config.slope,
            workers=workers,
        ),
    ]
    if config.border_walls:
        steps.append(BorderWallPlacer())
    return steps


class PipelineCoordinator:
    """Run generation stages in order on a shared world.

    Every stage gets its own seed offset, starting at 0 and advancing by
    ``seed_offset_step``. After each stage the world is validated; a stage
    that raises or leaves the world invalid aborts the whole run with a
    :class:`GenerationStageError` naming it.
    """

    def __init__(self, steps: Sequence[GenerationStep], seed_offset_step: int = 1000):
        self._steps = list(steps)
        self._seed_offset_step = seed_offset_step

    @classmethod
    def from_config(cls, config: TerrainConfig) -> "PipelineCoordinator":
        """Create a coordinator with the standard stages."""
        return cls(build_default_steps(config), seed_offset_step=config.seed_offset_step)

    @property
    def steps(self) -> list[GenerationStep]:
        return list(self._steps)

    def run(self, world: "WorldData", base_seed: int) -> None:
        """Run every stage on ``world``.

        Raises:
            GenerationStageError: If a stage fails or breaks an invariant.
        """
        logger.info(
            "generation_started",
            width=world.width,
            height=world.height,
            seed=base_seed,
            stages=len(self._steps),
        )
        start = time.perf_counter()
        offset = 0

        for step in self._steps:
            stage_start = time.perf_counter()
            logger.info("stage_started", stage=step.name, seed_offset=offset)

            try:
                step.process(world, base_seed, offset)
            except GenerationStageError:
                logger.error("stage_failed", stage=step.name)
                raise
            except Exception as e:
                logger.error("stage_failed", stage=step.name, error=str(e))
                raise GenerationStageError(step.name, str(e)) from e

            result = validate_world(world)
            if not result.passed:
                logger.error("stage_invalid", stage=step.name, errors=result.errors)
                raise GenerationStageError(step.name, "; ".join(result.errors))

            logger.info(
                "stage_completed",
                stage=step.name,
                duration_ms=round((time.perf_counter() - stage_start) * 1000, 1),
            )
            offset += self._seed_offset_step

        logger.info(
            "generation_completed",
            duration_s=round(time.perf_counter() - start, 2),
        )


def generate_world(config: TerrainConfig) -> "WorldMap":
    """Generate a complete world from configuration.

    Args:
        config: Terrain generation configuration.

    Returns:
        Generated, read-only world.
    """
    # Import here to avoid a circular import with worldgen.state
    from ..state import WorldMap

    world = WorldMap.from_config(config)
    world.generate()
    return world
