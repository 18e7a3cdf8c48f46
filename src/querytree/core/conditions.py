"""
Catalog of condition types.

The catalog lists the leaf conditions a user can add to the tree, with the
label shown in menus and whether the condition supports an eq/ne relation.
It can be loaded from a JSON file of the form:

    {
        "conditions": {
            "gene": "Gene symbol",
            "location": {"label": "Location"}
        },
        "no_relation": ["location"]
    }
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .errors import UnknownConditionTypeError
from .nodes import RESERVED_CONDITION_TYPES
from ..infrastructure.logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_NO_RELATION = frozenset({
    'dataset',
    'genotype',
    'pathogenicity_prediction',
    'id',
    'location',
})

DEFAULT_CONDITIONS = {
    'type': 'Variant type',
    'significance': 'Clinical significance',
    'consequence': 'Consequence',
    'disease': 'Disease',
    'gene': 'Gene symbol',
    'id': 'Variant ID',
    'location': 'Location',
    'dataset': 'Dataset',
    'frequency': 'Alternative allele frequency',
    'pathogenicity_prediction': 'Pathogenicity prediction',
}


@dataclass(frozen=True)
class ConditionDefinition:
    """A condition type that can be added to the tree."""

    condition_type: str
    """Tag used as the query key (e.g., 'gene')."""

    label: str
    """Human readable name."""

    supports_relation: bool = True
    """Whether the condition can be negated (eq/ne)."""


class ConditionCatalog:
    """
    Ordered collection of condition definitions.
    """

    def __init__(self, definitions: Optional[list[ConditionDefinition]] = None):
        self._definitions: dict[str, ConditionDefinition] = {}
        for definition in definitions or []:
            if definition.condition_type in RESERVED_CONDITION_TYPES:
                raise ValueError(f"'{definition.condition_type}' is reserved for logical groups")
            self._definitions[definition.condition_type] = definition

    def __contains__(self, condition_type: str) -> bool:
        return condition_type in self._definitions

    def __iter__(self) -> Iterator[ConditionDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, condition_type: str) -> ConditionDefinition:
        """
        Look up a condition type.

        Raises:
            UnknownConditionTypeError: If the type is not in the catalog.
        """
        try:
            return self._definitions[condition_type]
        except KeyError:
            raise UnknownConditionTypeError(condition_type) from None

    def label(self, condition_type: str) -> str:
        """Label of a condition type, falling back to the type itself."""
        definition = self._definitions.get(condition_type)
        return definition.label if definition else condition_type

    def supports_relation(self, condition_type: str) -> bool:
        definition = self._definitions.get(condition_type)
        return definition.supports_relation if definition else True

    @classmethod
    def from_dict(cls, data: dict) -> 'ConditionCatalog':
        """
        Build a catalog from its JSON representation.

        Args:
            data: Dictionary with a 'conditions' mapping and an optional
                'no_relation' list.

        Returns:
            ConditionCatalog instance.
        """
        no_relation = set(data.get('no_relation', DEFAULT_NO_RELATION))
        definitions = []
        for condition_type, value in data.get('conditions', {}).items():
            if not value:
                continue
            label = value if isinstance(value, str) else value.get('label', condition_type)
            definitions.append(ConditionDefinition(
                condition_type=condition_type,
                label=label,
                supports_relation=condition_type not in no_relation
            ))
        return cls(definitions)


def default_catalog() -> ConditionCatalog:
    """The built-in variant search conditions."""
    return ConditionCatalog.from_dict({'conditions': DEFAULT_CONDITIONS})


def load_catalog(path: Path) -> ConditionCatalog:
    """
    Load a condition catalog from a JSON file.

    Args:
        path: Path to the catalog file.

    Returns:
        The loaded catalog.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    catalog = ConditionCatalog.from_dict(data)
    logger.info(f"Loaded {len(catalog)} condition type(s) from {path}")
    return catalog
