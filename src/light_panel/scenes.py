"""Scene catalog: read-only preset colours.

The catalog file has three lists of `{name, value, text}` entries:
`solid` (RGB scenes), `dim` (RGB scenes shown with a pulsing opacity) and
`color` (RGBW swatches used to preview a fixture colour).
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

import pydantic
import yaml

from light_panel.exceptions import CatalogError, UnknownSceneError
from light_panel.logging_abstraction import get_logger
from light_panel.structs import Scene, SceneKind

__all__ = ["SceneCatalog"]

logger = get_logger(__name__)

_BUNDLED = "colors.json"


def _read_catalog_file(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            if path.suffix.casefold() in (".yaml", ".yml"):
                return yaml.safe_load(f)
            return json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise CatalogError(str(path), str(e)) from e


class SceneCatalog:
    lp: str = "scenes:"

    def __init__(self, scenes: dict[SceneKind, tuple[Scene, ...]]) -> None:
        self._scenes: dict[SceneKind, tuple[Scene, ...]] = {kind: scenes.get(kind, ()) for kind in SceneKind}

    @classmethod
    def from_mapping(cls, data: Any, source: str = "<mapping>") -> SceneCatalog:
        if not isinstance(data, dict):
            raise CatalogError(source, "top level must be a mapping")
        scenes: dict[SceneKind, tuple[Scene, ...]] = {}
        for kind in SceneKind:
            entries = data.get(kind.value, [])
            if not isinstance(entries, list):
                raise CatalogError(source, f"'{kind.value}' must be a list")
            try:
                scenes[kind] = tuple(Scene(**entry, kind=kind) for entry in entries)
            except (TypeError, pydantic.ValidationError) as e:
                raise CatalogError(source, f"bad '{kind.value}' entry: {e}") from e
        return cls(scenes)

    @classmethod
    def load(cls, path: str | Path | None = None) -> SceneCatalog:
        """Load a catalog file, or the bundled one when no path is given."""
        if path is None:
            text = resources.files("light_panel").joinpath("data", _BUNDLED).read_text(encoding="utf-8")
            catalog = cls.from_mapping(json.loads(text), source=_BUNDLED)
        else:
            file_path = Path(path).expanduser()
            catalog = cls.from_mapping(_read_catalog_file(file_path), source=str(file_path))
        logger.debug(
            "%s loaded catalog",
            cls.lp,
            extra={kind.value: len(catalog.scenes(kind)) for kind in SceneKind},
        )
        return catalog

    def scenes(self, kind: SceneKind) -> tuple[Scene, ...]:
        return self._scenes[kind]

    @property
    def solid(self) -> tuple[Scene, ...]:
        return self._scenes[SceneKind.SOLID]

    @property
    def dim(self) -> tuple[Scene, ...]:
        return self._scenes[SceneKind.DIM]

    @property
    def swatches(self) -> tuple[Scene, ...]:
        return self._scenes[SceneKind.SWATCH]

    def names(self, kind: SceneKind) -> list[str]:
        return [scene.name for scene in self._scenes[kind]]

    def find(self, name: str, kind: SceneKind) -> Scene:
        for scene in self._scenes[kind]:
            if scene.name == name:
                return scene
        raise UnknownSceneError(name, kind.value)
