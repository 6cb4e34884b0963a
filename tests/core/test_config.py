"""Tests for the configuration loader and planner settings."""

from pathlib import Path

import pytest

from flightroute.core.config import ConfigError, ConfigLoader, PlannerSettings

PLANNER_YAML = """
planner:
  default_cruise_altitude_ft: 35000
  default_cruise_speed_kts: 450
  undo_depth: 20
  read_alternates: true
  profile_step_nm: 1.0
aircraft:
  climb_speed_kts: 280
"""


class TestConfigLoader:
    """Test suite for ConfigLoader."""

    def test_load_file(self, tmp_path) -> None:
        """Test loading a YAML file and dot-notation access."""
        path = tmp_path / "planner.yaml"
        path.write_text(PLANNER_YAML)

        config = ConfigLoader.load(path)

        assert config.get("planner.undo_depth") == 20
        assert config.get("aircraft.climb_speed_kts") == 280
        assert config.get("planner.missing", default="x") == "x"
        assert config.get("planner.undo_depth.deeper") is None

    def test_load_missing_file(self, tmp_path) -> None:
        """Test that a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader.load(tmp_path / "absent.yaml")

    def test_load_non_mapping_root(self, tmp_path) -> None:
        """Test that a YAML list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            ConfigLoader.load(path)

    def test_from_string_empty_document(self) -> None:
        """Test that an empty document gives an empty configuration."""
        assert ConfigLoader.from_string("").to_dict() == {}

    def test_from_string_invalid_yaml(self) -> None:
        """Test that malformed YAML raises ConfigError."""
        with pytest.raises(ConfigError, match="Failed to parse"):
            ConfigLoader.from_string("planner: [1, 2")

    def test_set_creates_nested_sections(self) -> None:
        """Test setting a value below sections that do not exist yet."""
        config = ConfigLoader()
        config.set("planner.undo_depth", 5)

        assert config.get_section("planner") == {"undo_depth": 5}

    def test_get_section_errors(self) -> None:
        """Test that missing sections and scalar keys are rejected."""
        config = ConfigLoader({"planner": {"undo_depth": 5}})

        with pytest.raises(ConfigError, match="not found"):
            config.get_section("aircraft")
        with pytest.raises(ConfigError, match="not a section"):
            config.get_section("planner.undo_depth")

    def test_merge_overrides_nested_values(self) -> None:
        """Test that merging keeps unrelated keys and overrides shared ones."""
        base = ConfigLoader({"planner": {"undo_depth": 5, "read_alternates": False}})
        base.merge(ConfigLoader({"planner": {"read_alternates": True}}))

        assert base.get("planner.undo_depth") == 5
        assert base.get("planner.read_alternates") is True

    def test_save_round_trip(self, tmp_path) -> None:
        """Test saving and reloading a configuration."""
        config = ConfigLoader.from_string(PLANNER_YAML)
        path = tmp_path / "out" / "planner.yaml"
        config.save(path)

        assert ConfigLoader.load(path).to_dict() == config.to_dict()


class TestPlannerSettings:
    """Test suite for PlannerSettings."""

    def test_defaults(self) -> None:
        """Test default planner settings."""
        settings = PlannerSettings()

        assert settings.default_cruise_altitude_ft == 10000.0
        assert settings.altitude_tolerance_ft == 10.0
        assert settings.undo_depth == 100
        assert settings.read_alternates is False

    def test_from_config(self) -> None:
        """Test that configured keys override defaults and others are kept."""
        settings = PlannerSettings.from_config(ConfigLoader.from_string(PLANNER_YAML))

        assert settings.default_cruise_altitude_ft == 35000.0
        assert settings.default_cruise_speed_kts == 450.0
        assert settings.undo_depth == 20
        assert settings.read_alternates is True
        assert settings.profile_step_nm == 1.0
        assert settings.manual_leg_length_nm == 3.0

    def test_from_config_without_section(self) -> None:
        """Test that an absent section gives default settings."""
        assert PlannerSettings.from_config(ConfigLoader()) == PlannerSettings()

    @pytest.mark.parametrize(
        "yaml_text",
        [
            "planner: {undo_depth: 0}",
            "planner: {profile_step_nm: -1}",
            "planner: {altitude_leg_gradient_ft_per_nm: 0}",
            "planner: {default_cruise_speed_kts: fast}",
            "planner: 12",
        ],
    )
    def test_invalid_values(self, yaml_text: str) -> None:
        """Test that out of range and mistyped values raise ConfigError."""
        with pytest.raises(ConfigError):
            PlannerSettings.from_config(ConfigLoader.from_string(yaml_text))

    def test_shipped_config(self) -> None:
        """Test that the bundled planner configuration loads."""
        path = Path(__file__).parents[2] / "config" / "planner.yaml"
        settings = PlannerSettings.from_config(ConfigLoader.load(path))

        assert settings.undo_depth >= 1
