"""Catalog models: the movie list that scraped bonuses are merged into."""

from dataclasses import dataclass, field
from typing import Literal

DataSource = Literal["manual", "tmdb", "scraper", "user-report"]


@dataclass
class Bonus:
    """A single giveaway item for one week of a movie's run at one chain."""

    week: int
    description: str
    quantity: str


@dataclass
class TheaterBonus:
    """All bonuses a theater chain offers for one movie."""

    theater_id: str
    theater_name: str
    bonuses: list[Bonus] = field(default_factory=list)
    ticket_url: str = ""


@dataclass
class CatalogMovie:
    """
    Canonical movie record.

    Owned by the persistence layer; the pipeline only reads it and returns
    merged copies.
    """

    id: str
    title: str
    title_en: str | None = None
    title_ja: str | None = None
    release_date: str = ""
    synopsis: str = ""
    poster_url: str = ""
    theater_bonuses: list[TheaterBonus] = field(default_factory=list)
    is_verified: bool = False
    data_source: DataSource = "tmdb"
    is_rerelease: bool = False
    tmdb_id: int | None = None
    vote_average: float | None = None

    @property
    def title_variants(self) -> list[str]:
        """Primary title followed by any English/Japanese titles."""
        variants = [self.title]
        if self.title_en:
            variants.append(self.title_en)
        if self.title_ja:
            variants.append(self.title_ja)
        return variants

    def __repr__(self) -> str:
        return f"<CatalogMovie(id={self.id!r}, title={self.title!r})>"
