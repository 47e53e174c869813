"""Extractor implementations for oracle measurements."""

from .action_unit_extractor import ActionUnitExtractor, parse_action_unit_code

__all__ = [
    "ActionUnitExtractor",
    "parse_action_unit_code",
]
