"""Unit tests for the scene catalog."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from light_panel.exceptions import CatalogError, UnknownSceneError
from light_panel.scenes import SceneCatalog
from light_panel.structs import SceneKind


class TestBundledCatalog:
    def test_loads_all_kinds(self, catalog: SceneCatalog):
        assert "Warm White" in catalog.names(SceneKind.SOLID)
        assert catalog.names(SceneKind.DIM) == ["Dim Red", "Dim Green", "Dim Blue", "Dim White"]
        assert all(len(swatch.value) == 4 for swatch in catalog.swatches)

    def test_entries_carry_their_kind(self, catalog: SceneCatalog):
        assert all(scene.kind is SceneKind.SOLID for scene in catalog.solid)
        assert all(scene.kind is SceneKind.DIM for scene in catalog.dim)
        assert all(scene.kind is SceneKind.SWATCH for scene in catalog.swatches)

    def test_find(self, catalog: SceneCatalog):
        scene = catalog.find("White", SceneKind.SWATCH)
        assert scene.value == (0, 0, 0, 255)

    def test_find_is_per_kind(self, catalog: SceneCatalog):
        """A solid scene name is not found among the dim scenes."""
        with pytest.raises(UnknownSceneError) as exc_info:
            _ = catalog.find("Warm White", SceneKind.DIM)

        assert exc_info.value.name == "Warm White"
        assert exc_info.value.kind == "dim"


class TestCatalogFiles:
    """Tests for loading catalogs from disk."""

    def test_load_json(self, tmp_path: Path):
        path = tmp_path / "scenes.json"
        path.write_text(json.dumps({"solid": [{"name": "Stage", "value": [10, 20, 30]}]}))

        catalog = SceneCatalog.load(path)

        assert catalog.names(SceneKind.SOLID) == ["Stage"]
        assert catalog.dim == ()
        assert catalog.find("Stage", SceneKind.SOLID).text == ""

    def test_load_yaml(self, tmp_path: Path):
        path = tmp_path / "scenes.yaml"
        path.write_text(
            "dim:\n"
            "  - name: Night\n"
            "    value: [20, 0, 40]\n"
            "    text: text-white\n"
            "color:\n"
            "  - name: Soft\n"
            "    value: [10, 10, 10, 90]\n"
        )

        catalog = SceneCatalog.load(str(path))

        assert catalog.find("Night", SceneKind.DIM).value == (20, 0, 40)
        assert catalog.find("Soft", SceneKind.SWATCH).as_color().white == 90

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(CatalogError):
            _ = SceneCatalog.load(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(CatalogError):
            _ = SceneCatalog.load(path)

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"solid": {"name": "x"}},
            {"solid": [{"name": "x", "value": [1]}]},
            {"dim": [{"value": [1, 2, 3]}]},
        ],
    )
    def test_bad_shapes(self, data):
        with pytest.raises(CatalogError):
            _ = SceneCatalog.from_mapping(data)
