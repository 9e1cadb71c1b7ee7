"""Creator record model."""

from dataclasses import dataclass, field

UNKNOWN_NUMBER = -1.0


@dataclass(frozen=True)
class CreatorRecord:
    """One creator profile as listed on a category page."""

    url: str
    name: str
    image_url: str = ""
    is_recommended: bool = False
    monthly_revenue: float = UNKNOWN_NUMBER
    total_revenue: float = UNKNOWN_NUMBER
    number_of_patrons: float = UNKNOWN_NUMBER
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def tags_csv(self) -> str:
        """Tags joined the way they are stored in the sink."""
        return ",".join(self.tags)
