"""Tests for the sensor value model."""

import pytest

from desktop_companion.sensors import catalog
from desktop_companion.sensors.types import SensorCategory, SensorDefinition, SensorType


class TestSensorValue:
    """Test SensorValue construction rules."""

    def test_sensor_accepts_numbers_and_strings(self) -> None:
        """Test plain sensors accept str, int and float states."""
        assert catalog.CPU_USAGE.value("12.5").state == "12.5"
        assert catalog.CPU_FREQUENCY.value(3800).state == 3800
        assert catalog.CPU_USAGE.value(12.5).state == 12.5

    def test_sensor_rejects_bool(self) -> None:
        """Test a plain sensor cannot hold a boolean."""
        with pytest.raises(TypeError, match="cpu_usage"):
            catalog.CPU_USAGE.value(True)

    def test_binary_sensor_requires_bool(self) -> None:
        """Test a binary sensor only takes booleans."""
        assert catalog.BATTERY_CHARGING.value(False).state is False
        with pytest.raises(TypeError, match="binary_sensor"):
            catalog.BATTERY_CHARGING.value("on")

    def test_attributes_are_read_only(self) -> None:
        """Test attributes cannot be changed after construction."""
        source = {"filesystem": "ext4"}
        value = catalog.DISK_USAGE.value("50.0", source)
        source["filesystem"] = "xfs"

        assert value.attributes["filesystem"] == "ext4"
        with pytest.raises(TypeError):
            value.attributes["filesystem"] = "btrfs"  # type: ignore[index]

    def test_exposes_definition_fields(self) -> None:
        """Test convenience properties read through to the definition."""
        value = catalog.HOSTNAME.value("workstation")

        assert value.unique_id == "hostname"
        assert value.name == "Hostname"
        assert value.updates_at_interval is False
        assert catalog.CPU_USAGE.value("1.0").updates_at_interval is True


class TestSensorDefinition:
    """Test SensorDefinition helpers."""

    def test_instance_suffixes_id_and_name(self) -> None:
        """Test per-instance definitions keep metadata and extend id and name."""
        gpu = catalog.GPU_TEMPERATURE.instance("_1", " 1")

        assert gpu.unique_id == "gpu_temperature_1"
        assert gpu.name == "GPU Temperature 1"
        assert gpu.unit_of_measurement == "°C"
        assert gpu.device_class == "temperature"

    def test_defaults(self) -> None:
        """Test a minimal definition is a plain sensor without metadata."""
        definition = SensorDefinition("custom", "Custom", SensorCategory.STATIC)

        assert definition.sensor_type is SensorType.SENSOR
        assert definition.unit_of_measurement is None
        assert definition.state_class is None
