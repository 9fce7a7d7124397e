"""
Tests for profile catalog loading.
"""

import pytest

from k8s_launch_kit.exceptions import CatalogError, ConfigurationError
from k8s_launch_kit.profiles.catalog import (
    DEFAULT_CATALOG_DIR,
    ProfileCatalog,
    load_profile_definition,
    validate_profile_schema,
)


class TestValidateProfileSchema:
    """Tests for profile schema validation."""

    def test_valid_profile(self):
        """Test that a complete definition validates."""
        data = {
            "name": "p",
            "plugin": "network-operator",
            "version": "1",
            "profileRequirements": {"fabric": "ethernet", "multirail": True},
            "nodeCapabilities": {"sriov": True},
            "templates": ["a.yaml.j2"],
            "deploymentGuide": "README.md",
        }

        is_valid, errors = validate_profile_schema(data)

        assert is_valid
        assert errors == []

    def test_missing_templates(self):
        """Test that templates are required."""
        is_valid, errors = validate_profile_schema({"name": "p", "plugin": "x"})

        assert not is_valid
        assert "templates" in errors[0]

    def test_unknown_top_level_key(self):
        """Test that misspelled keys are rejected."""
        data = {"name": "p", "plugin": "x", "templates": [], "nodeCapability": {"rdma": True}}

        is_valid, _ = validate_profile_schema(data)

        assert not is_valid

    def test_non_boolean_capability(self):
        """Test that capability predicates must be booleans."""
        data = {"name": "p", "plugin": "x", "templates": [], "nodeCapabilities": {"rdma": "yes"}}

        is_valid, errors = validate_profile_schema(data)

        assert not is_valid
        assert "nodeCapabilities.rdma" in errors[0]


class TestLoadProfileDefinition:
    """Tests for reading profile.yaml files."""

    def test_load_definition(self, tmp_path, write_profile):
        """Test that YAML keys map onto the definition."""
        entry = write_profile(
            tmp_path,
            "p",
            {
                "name": "p",
                "plugin": "network-operator",
                "description": "test profile",
                "profileRequirements": {"deployment": "sriov"},
                "nodeCapabilities": {"rdma": True},
                "templates": ["a.yaml.j2"],
                "deploymentGuide": "README.md",
            },
        )

        definition = load_profile_definition(entry / "profile.yaml")

        assert definition.name == "p"
        assert definition.requirements == {"deployment": "sriov"}
        assert definition.capabilities == {"rdma": True}
        assert definition.templates == ["a.yaml.j2"]
        assert definition.deployment_guide == "README.md"
        assert definition.source_dir == entry

    def test_invalid_yaml(self, tmp_path):
        """Test that unparseable YAML raises CatalogError naming the file."""
        manifest = tmp_path / "profile.yaml"
        manifest.write_text("name: [unclosed")

        with pytest.raises(CatalogError, match="failed to parse YAML") as exc_info:
            load_profile_definition(manifest)

        assert str(manifest) in str(exc_info.value)

    def test_not_a_mapping(self, tmp_path):
        """Test that a YAML list is rejected."""
        manifest = tmp_path / "profile.yaml"
        manifest.write_text("- a\n- b\n")

        with pytest.raises(CatalogError, match="expected a mapping"):
            load_profile_definition(manifest)

    def test_catalog_error_is_configuration_error(self, tmp_path):
        """Test the error hierarchy."""
        manifest = tmp_path / "profile.yaml"
        manifest.write_text("name: p\n")

        with pytest.raises(ConfigurationError):
            load_profile_definition(manifest)


class TestProfileCatalog:
    """Tests for catalog enumeration."""

    def test_entries_sorted_by_directory_name(self, tmp_path, write_profile):
        """Test that entries come back in lexicographic order of their directory."""
        for dirname in ("c", "a", "b"):
            data = {"name": f"profile-{dirname}", "plugin": "x", "templates": []}
            write_profile(tmp_path, dirname, data)

        names = [entry.name for entry in ProfileCatalog(tmp_path).entries()]

        assert names == ["profile-a", "profile-b", "profile-c"]

    def test_files_at_catalog_root_ignored(self, tmp_path, write_profile):
        """Test that only directories are catalog entries."""
        write_profile(tmp_path, "a", {"name": "a", "plugin": "x", "templates": []})
        (tmp_path / "notes.txt").write_text("not a profile")

        assert len(ProfileCatalog(tmp_path).entries()) == 1

    def test_missing_manifest(self, tmp_path):
        """Test that an entry directory without profile.yaml is an error."""
        (tmp_path / "broken").mkdir()

        with pytest.raises(CatalogError, match="missing profile manifest"):
            ProfileCatalog(tmp_path).entries()

    def test_missing_catalog_directory(self, tmp_path):
        """Test that a nonexistent catalog root is a configuration error."""
        with pytest.raises(ConfigurationError, match="catalog directory not found"):
            ProfileCatalog(tmp_path / "nope").entries()

    def test_for_plugin_and_get(self, tmp_path, write_profile):
        """Test plugin filtering and lookup by name."""
        write_profile(tmp_path, "a", {"name": "a", "plugin": "x", "templates": []})
        write_profile(tmp_path, "b", {"name": "b", "plugin": "y", "templates": []})
        catalog = ProfileCatalog(tmp_path)

        assert [entry.name for entry in catalog.for_plugin("y")] == ["b"]
        assert catalog.get("a").plugin == "x"
        assert catalog.get("missing") is None

    def test_builtin_catalog_is_valid(self):
        """Test that every packaged profile loads and its files exist."""
        entries = ProfileCatalog().entries()

        assert [entry.name for entry in entries] == [
            "host-device-rdma",
            "rdma-shared-device",
            "sriov-ethernet-rdma",
            "sriov-ethernet-spectrum-x",
            "sriov-infiniband-rdma",
        ]
        for entry in entries:
            assert entry.source_dir.parent == DEFAULT_CATALOG_DIR
            for template in entry.templates:
                assert (entry.source_dir / template).is_file()
            assert (entry.source_dir / entry.deployment_guide).is_file()
