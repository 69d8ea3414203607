"""Shared models for evecache."""

from evecache.models.base import EveBaseModel
from evecache.models.cacheable import Cacheable


__all__ = ["EveBaseModel", "Cacheable"]
