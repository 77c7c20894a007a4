"""Terrain generation configuration models."""

from pydantic import BaseModel, Field


class NoiseConfig(BaseModel):
    """Fractal noise parameters for a single field."""

    frequency: float = Field(default=0.0007, description="Base frequency in cycles per tile")
    octaves: int = Field(default=6, description="Number of octaves for fBm")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    persistence: float = Field(default=0.5, description="Amplitude multiplier per octave")


class BasinCarvingConfig(BaseModel):
    """Noise-driven depressions carved into low ground."""

    frequency_multiplier: float = Field(
        default=3.5, description="Trigger noise frequency relative to base noise"
    )
    octaves: int = Field(default=3, description="Trigger noise octaves")
    strength: float = Field(default=0.06, description="Maximum depth removed")
    height_threshold_max: float = Field(
        default=0.28, description="Only normalized heights below this are carved"
    )
    trigger_min: float = Field(default=0.2, description="Lower edge of trigger band")
    trigger_max: float = Field(default=0.8, description="Upper edge of trigger band")


class HeightConfig(BaseModel):
    """Base heightmap synthesis parameters."""

    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    detail_frequency_multiplier: float = Field(
        default=5.0, description="Detail layer frequency relative to base noise"
    )
    detail_octaves: int = Field(default=3, description="Detail layer octaves")
    detail_weight: float = Field(default=0.12, description="Detail layer contribution")
    power_curve: float = Field(default=0.90, description="Exponent applied after normalization")
    min_height: float = Field(default=0.03, description="Lowest synthesized height")
    max_height: float = Field(default=0.60, description="Highest synthesized height")
    basin: BasinCarvingConfig = Field(default_factory=BasinCarvingConfig)


class ThermalConfig(BaseModel):
    """Thermal (talus) erosion parameters."""

    iterations: int = Field(default=3, description="Number of relaxation passes")
    talus_angle: float = Field(default=0.02, description="Height difference tolerated")
    strength: float = Field(default=0.015, description="Fraction of excess moved per pass")
    max_transfer_divisor: float = Field(
        default=2.1, description="Excess divided by this caps a single transfer"
    )


class HydraulicConfig(BaseModel):
    """Shallow-water hydraulic erosion parameters."""

    iterations: int = Field(default=3, description="Number of simulation steps")
    rain_amount: float = Field(default=0.01, description="Rain added per step on land")
    lake_rain_amount: float = Field(default=0.001, description="Rain added per step on lakes")
    solubility: float = Field(default=0.01, description="Erosion rate (Kr)")
    capacity: float = Field(default=0.05, description="Sediment capacity factor (Ks)")
    evaporation: float = Field(default=0.3, description="Water evaporation rate (Ke)")
    deposition: float = Field(default=0.01, description="Deposition rate (Kd)")
    max_erosion_fraction: float = Field(
        default=0.01, description="Erosion per step capped at this fraction of height"
    )


class SlopeConfig(BaseModel):
    """Slope and aspect thresholds."""

    very_steep: float = Field(default=0.08, description="Very steep slope threshold")
    mountain_mid: float = Field(
        default=0.80, description="Height above which steep cells are peaks"
    )
    flat_gradient: float = Field(default=1e-7, description="Gradient treated as flat")
    flat_slope: float = Field(default=1e-4, description="Slope treated as flat")


class MountainConfig(BaseModel):
    """Mountain massif parameters."""

    radius_factor: float = Field(
        default=0.75, description="Massif radius as a fraction of the smaller map side"
    )
    falloff_power: float = Field(default=2.5, description="Massif falloff exponent")
    range_noise: NoiseConfig = Field(
        default_factory=lambda: NoiseConfig(
            frequency=0.00196, octaves=5, lacunarity=2.1, persistence=0.45
        )
    )
    range_threshold_min: float = Field(
        default=0.45, description="Ridge noise below this raises nothing"
    )
    ridge_power: float = Field(default=1.75, description="Exponent sharpening the ridges")
    height_power: float = Field(default=0.6, description="Exponent of the target height curve")
    base_height: float = Field(default=0.45, description="Target height at ridge edges")
    peak_height: float = Field(default=0.995, description="Highest reachable height")
    detail_noise: NoiseConfig = Field(
        default_factory=lambda: NoiseConfig(frequency=0.014, octaves=4)
    )
    detail_strength: float = Field(default=0.07, description="Detail noise amplitude")
    low_target_nudge: float = Field(
        default=0.1, description="Nudge factor when the target is below the current height"
    )
    min_massif_influence: float = Field(
        default=0.01, description="Cells with less massif influence are skipped"
    )


class RiverConfig(BaseModel):
    """River network simulation parameters."""

    num_sources: int | None = Field(
        default=None, description="Number of rivers (None = width / tiles_per_source)"
    )
    tiles_per_source: int = Field(default=80, description="Map width per river source")
    max_length: int | None = Field(
        default=None, description="Maximum path length (None = width + height)"
    )
    max_stagnation: int = Field(default=10, description="Shallow steps before stopping")
    min_gradient: float = Field(default=5e-7, description="Drop required to keep flowing")
    visited_gradient_factor: float = Field(
        default=5.0, description="Extra drop required to re-enter a visited cell"
    )
    initial_volume: float = Field(default=1.0, description="Volume at the source")
    volume_increase: float = Field(default=0.05, description="Volume gained per step")
    max_volume: float = Field(default=300.0, description="Volume cap")
    carve_strength_base: float = Field(default=0.0003, description="Carve depth at zero volume")
    carve_volume_scaling: float = Field(default=0.0007, description="Carve depth per unit volume")
    max_carve_per_step: float = Field(default=0.05, description="Carve depth cap per step")
    center_carve_factor: float = Field(default=1.0, description="Carve factor on the centre line")
    edge_carve_factor: float = Field(default=0.7, description="Carve factor at the edges")
    start_min_height: float = Field(default=0.26, description="Lowest source height")
    start_max_height: float = Field(default=0.80, description="Highest source height")
    min_source_slope: float = Field(default=0.001, description="Sources need more slope")
    width_tiles: int = Field(default=3, description="River width in tiles")
    river_bed_height: float = Field(default=0.05, description="Height where rivers end")


class LakeConfig(BaseModel):
    """Lake basin filling parameters."""

    surface_max: float = Field(default=0.26, description="Highest lake surface")
    min_effective_depth: float = Field(default=0.01, description="Shallower basins stay dry")
    min_size_for_waves: int = Field(default=800, description="Lake size that gets waves")
    pond_max_surface: float = Field(default=0.08, description="Lakes below this are ponds")
    wave_max_distance_from_shore: int = Field(
        default=25, description="Cap of the distance-to-land field"
    )


class ClassificationConfig(BaseModel):
    """Terrain classification thresholds."""

    plains_low: float = Field(default=0.06, description="Lowest plains height")
    plains_high: float = Field(default=0.25, description="Highest plains height")
    rolling_hills_low: float = Field(default=0.26, description="Lowest hills height")
    steep_slopes_height: float = Field(default=0.61, description="Lowest steep slope height")
    mountain_base: float = Field(default=0.65, description="Lowest mountain height")
    mountain_mid: float = Field(default=0.80, description="Mid mountain height")
    mountain_high: float = Field(default=0.90, description="Upper mountain height")
    snowline: float = Field(default=0.855, description="Snow peak height")
    gentle_slope: float = Field(default=0.005, description="Gentle slope threshold")
    moderate_slope: float = Field(default=0.015, description="Moderate slope threshold")
    steep_slope: float = Field(default=0.04, description="Steep slope threshold")
    very_steep_slope: float = Field(default=0.08, description="Very steep slope threshold")
    marsh_max_height: float = Field(default=0.05, description="Highest marsh height")
    marsh_water_coverage: float = Field(
        default=0.3, description="Probability a marsh cell holds standing water"
    )
    plateau_min_height: float = Field(default=0.46, description="Lowest plateau height")
    plateau_max_slope: float = Field(default=0.0075, description="Steepest plateau slope")
    moor_min_height: float = Field(default=0.45, description="Lowest moor height")
    moor_max_height: float = Field(default=0.60, description="Highest moor height")
    moor_max_slope: float = Field(default=0.015, description="Steepest moor slope")
    dry_patch_frequency: float = Field(default=0.03, description="Dry plains noise frequency")
    dry_patch_threshold: float = Field(default=0.65, description="Noise above this is dry")
    shoreline_max_distance: int = Field(
        default=6, description="Distance-to-water field covers this many tiles"
    )


class TerrainConfig(BaseModel):
    """Complete terrain generation configuration."""

    seed: int = Field(default=42, description="Random seed for reproducibility")
    width: int = Field(default=5000, description="World width in tiles")
    height: int = Field(default=5000, description="World height in tiles")
    workers: int = Field(default=4, ge=1, description="Threads used by per-cell kernels")
    seed_offset_step: int = Field(default=1000, description="Seed offset added per stage")
    border_walls: bool = Field(default=True, description="Wall off the top and bottom rows")

    heights: HeightConfig = Field(default_factory=HeightConfig)
    thermal: ThermalConfig = Field(default_factory=ThermalConfig)
    hydraulic: HydraulicConfig = Field(default_factory=HydraulicConfig)
    slope: SlopeConfig = Field(default_factory=SlopeConfig)
    mountains: MountainConfig = Field(default_factory=MountainConfig)
    rivers: RiverConfig = Field(default_factory=RiverConfig)
    lakes: LakeConfig = Field(default_factory=LakeConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
