"""
Shape resolution for backup documents.

Exporter versions placed entity arrays at different locations: at the top
level, under a `data` wrapper, or under an `entities` wrapper, and with
different casings (`customers`, `Customers`, `Customer`). Each entity type
has an ordered list of dotted candidate paths; the first one that resolves
to an array wins.

Supporting a new backup layout means adding a candidate path. Existing
candidates are never edited or reordered.
"""

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

ENTITY_TYPES: tuple[str, ...] = ("customers", "documents", "orders")

_MISSING = object()


def _default_candidates(plural: str) -> list[str]:
    title = plural.capitalize()
    singular = title[:-1]
    return [
        f"entities.{plural}",
        plural,
        f"data.{plural}",
        f"entities.{title}",
        title,
        f"data.{title}",
        singular,
        f"data.{singular}",
        f"entities.{singular}",
    ]


DEFAULT_CANDIDATES: dict[str, tuple[str, ...]] = {
    entity: tuple(_default_candidates(entity)) for entity in ENTITY_TYPES
}


def resolve_path(document: Any, dotted_path: str) -> Any:
    """
    Walk a dotted path through nested mappings.

    Returns the resolved value, or the module sentinel if any segment is
    missing or an intermediate value is not a mapping. Never raises.
    """
    current = document
    for segment in dotted_path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def resolve_shape(document: Any, candidate_paths: Iterable[str]) -> tuple[str | None, list]:
    """
    Find the first candidate path that resolves to an array.

    Returns:
        Tuple of (matched path, array), or (None, []) when nothing matched
    """
    for path in candidate_paths:
        value = resolve_path(document, path)
        if isinstance(value, list):
            return path, value
    return None, []


def pick_array(document: Any, candidate_paths: Iterable[str]) -> list:
    """
    Return the array at the first candidate path that resolves to one.

    Examples:
        >>> doc = {"entities": {"customers": ["A"]}, "customers": ["B"]}
        >>> pick_array(doc, ["entities.customers", "customers"])
        ['A']
        >>> pick_array(doc, ["orders"])
        []
    """
    return resolve_shape(document, candidate_paths)[1]


class ShapeCatalog:
    """
    Ordered candidate paths per entity type.

    Expected YAML format for extra layouts:
    ```yaml
    shapes:
      customers:
        prepend:
          - export.v7.customers
        append:
          - legacy.clients
    ```
    """

    def __init__(self, candidates: Mapping[str, Iterable[str]] | None = None):
        source = DEFAULT_CANDIDATES if candidates is None else candidates
        self._candidates: dict[str, list[str]] = {
            entity: list(paths) for entity, paths in source.items()
        }

    def candidates_for(self, entity_type: str) -> list[str]:
        """
        Get candidate paths for an entity type.

        Raises:
            KeyError: If the entity type is unknown
        """
        return list(self._candidates[entity_type])

    def extend(self, entity_type: str, paths: Iterable[str], prepend: bool = False) -> None:
        """
        Register additional candidate paths.

        Paths already present keep their position.

        Args:
            entity_type: Entity type to extend
            paths: Dotted paths to add
            prepend: Give the new paths priority over existing ones
        """
        current = self._candidates.setdefault(entity_type, [])
        new_paths = []
        for path in paths:
            if not isinstance(path, str) or not path.strip():
                raise ValueError(f"Invalid candidate path for {entity_type}: {path!r}")
            path = path.strip()
            if path not in current and path not in new_paths:
                new_paths.append(path)

        if prepend:
            current[:0] = new_paths
        else:
            current.extend(new_paths)

    def resolve(self, document: Any, entity_type: str) -> tuple[str | None, list]:
        return resolve_shape(document, self._candidates[entity_type])

    def pick(self, document: Any, entity_type: str) -> list:
        return pick_array(document, self._candidates[entity_type])

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "ShapeCatalog":
        """
        Build a catalog from the defaults plus layouts listed in a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file has no `shapes` section or bad entries
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Shape configuration file not found: {config_path}")

        with open(config_path) as f:
            config = yaml.safe_load(f)

        if not config or "shapes" not in config:
            raise ValueError("Configuration file must contain 'shapes' section")

        catalog = cls()
        for entity_type, entry in (config["shapes"] or {}).items():
            if not isinstance(entry, Mapping):
                raise ValueError(f"Shapes for '{entity_type}' must be a mapping")
            unknown = set(entry) - {"prepend", "append"}
            if unknown:
                raise ValueError(
                    f"Unknown keys for '{entity_type}': {', '.join(sorted(unknown))}"
                )
            catalog.extend(entity_type, entry.get("prepend") or [], prepend=True)
            catalog.extend(entity_type, entry.get("append") or [])

        return catalog
