"""Command-line interface for terrain generation."""

import argparse
import logging
import time

import structlog
from pydantic import ValidationError

from .config import TerrainConfig


def apply_overrides(config: TerrainConfig, **overrides) -> TerrainConfig:
    """Return ``config`` with the non-None overrides applied and revalidated."""
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return config
    return TerrainConfig.model_validate({**config.model_dump(), **overrides})


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for terrain generation."""
    parser = argparse.ArgumentParser(
        description="Generate a cylindrical terrain world and report its statistics"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Config name in configs/ or path to a TOML file",
    )
    parser.add_argument("--width", type=int, default=None, help="World width (overrides config)")
    parser.add_argument("--height", type=int, default=None, help="World height (overrides config)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides config)")
    parser.add_argument(
        "--workers", type=int, default=None, help="Kernel worker threads (overrides config)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )

    # Import here to avoid slow startup for --help
    from ..config import find_config, load_config
    from .pipeline import generate_world

    config = load_config(find_config(args.config)) if args.config else TerrainConfig()
    try:
        config = apply_overrides(
            config, width=args.width, height=args.height, seed=args.seed, workers=args.workers
        )
    except ValidationError as e:
        parser.error(str(e))

    print(f"Generating {config.width}x{config.height} terrain with seed {config.seed}")
    print()

    start_time = time.time()
    world = generate_world(config)
    gen_time = time.time() - start_time

    data = world.data
    total = data.heightmap.size
    print()
    print(f"Generation complete in {gen_time:.1f}s")
    print(f"  Height range: {float(data.heightmap.min()):.3f} - {float(data.heightmap.max()):.3f}")
    print(f"  River cells:  {int(data.river_mask.sum())} ({100 * data.river_mask.mean():.2f}%)")
    print(f"  Lake cells:   {int(data.lake_mask.sum())} ({100 * data.lake_mask.mean():.2f}%)")
    print(f"  Wave cells:   {int(data.lake_has_waves.sum())}")
    print(f"  Passable:     {100 * int(data.passable.sum()) / total:.1f}%")


if __name__ == "__main__":
    main()
