"""Catalog models."""

from moviebonus.models.catalog import Bonus, CatalogMovie, DataSource, TheaterBonus

__all__ = ["Bonus", "CatalogMovie", "DataSource", "TheaterBonus"]
