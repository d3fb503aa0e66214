"""Hierarchical configuration resolution from facts."""

from .resolver import HIERA_CONFIG_FILE, HIERARCHY_KEY, HoconHiera, facts_config, fold

__all__ = ["HIERARCHY_KEY", "HIERA_CONFIG_FILE", "HoconHiera", "facts_config", "fold"]
