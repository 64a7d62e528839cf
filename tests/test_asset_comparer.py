"""Tests for deciding whether target assets need updating."""

import pytest

from migration_toolkit.models.content import MigrationAsset, MigrationAssetDescription, MigrationReference
from migration_toolkit.models.environment import Asset
from migration_toolkit.services.asset_comparer import should_replace_binary_file, should_update_asset


def _source(**overrides) -> MigrationAsset:
    fields = dict(
        codename="hero_image",
        filename="hero.png",
        title="Hero image",
        collection=MigrationReference("default"),
        descriptions=[MigrationAssetDescription(MigrationReference("en-US"), "A cup of coffee")],
        binary_data=b"hero-bytes",
    )
    fields.update(overrides)
    return MigrationAsset(**fields)


def _target(**overrides) -> Asset:
    fields = dict(
        id="target-hero",
        codename="hero_image",
        file_name="hero.png",
        title="Hero image",
        size=len(b"hero-bytes"),
        collection={"reference": {"id": "col-default"}},
        descriptions=[{"language": {"id": "lang-en"}, "description": "A cup of coffee"}],
    )
    fields.update(overrides)
    return Asset.model_validate(fields)


class TestShouldUpdateAsset:
    def test_identical_asset_is_skipped(self, metadata):
        assert not should_update_asset(_source(), _target(), metadata)

    @pytest.mark.parametrize("source,target", [
        ({"title": "Another title"}, {}),
        ({"collection": MigrationReference("blog")}, {}),
        ({}, {"collection": None}),
        ({"descriptions": [MigrationAssetDescription(MigrationReference("es-ES"), "Una taza")]}, {}),
        ({"binary_data": b"other"}, {}),
        ({"filename": "hero.jpg"}, {}),
    ])
    def test_changed_property_triggers_update(self, metadata, source, target):
        assert should_update_asset(_source(**source), _target(**target), metadata)

    def test_empty_descriptions_are_ignored(self, metadata):
        source = _source(descriptions=[
            MigrationAssetDescription(MigrationReference("en-US"), "A cup of coffee"),
            MigrationAssetDescription(MigrationReference("es-ES"), ""),
        ])
        target = _target(descriptions=[
            {"language": {"id": "lang-en"}, "description": "A cup of coffee"},
            {"language": {"id": "lang-es"}, "description": None},
        ])

        assert not should_update_asset(source, target, metadata)

    def test_missing_title_equals_empty_title(self, metadata):
        assert not should_update_asset(_source(title=""), _target(title=None), metadata)

    def test_asset_without_details_leaves_target_details_alone(self, metadata):
        source = _source(collection=None, descriptions=[])
        target = _target(
            collection={"reference": {"id": "col-blog"}},
            descriptions=[{"language": {"id": "lang-es"}, "description": "Una taza"}],
        )

        assert not should_update_asset(source, target, metadata)


class TestShouldReplaceBinaryFile:
    def test_same_name_and_size(self):
        assert not should_replace_binary_file(_source(), _target())

    def test_size_differs(self):
        assert should_replace_binary_file(_source(binary_data=b"x"), _target())

    def test_name_differs(self):
        assert should_replace_binary_file(_source(filename="hero.webp"), _target())

    def test_unknown_size_never_forces_replacement(self):
        assert not should_replace_binary_file(_source(binary_data=None), _target())
