"""Base class for generation pipeline stages."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..state import WorldData


def stage_seed(base_seed: int, stage_seed_offset: int) -> int:
    """Seed for a stage, kept in the unsigned 32-bit range."""
    return (base_seed + stage_seed_offset) & 0xFFFFFFFF


class GenerationStep:
    """A single stage of the world generation pipeline.

    Subclasses mutate the world in place. They must leave heights finite and
    inside ``[0, 1]``; the coordinator checks this after every stage.
    """

    name: str = "Generation Step"

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        """Run the stage.

        Args:
            world: Shared world grid, mutated in place.
            base_seed: Seed of the whole world.
            stage_seed_offset: Offset the coordinator assigned to this stage.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
