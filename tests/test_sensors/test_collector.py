"""Tests for the sensor collector."""

import pytest
from fakes import FakeMetricSource, partition

from desktop_companion.sensors import (
    CATALOG,
    MetricSnapshot,
    SensorCollector,
    default_enabled,
    sanitize_identifier,
)
from desktop_companion.sensors.readings import (
    BatteryReading,
    CpuReading,
    GpuReading,
    NetworkReading,
)

STATIC_TOGGLES = {entry.id: True for entry in CATALOG if not entry.updates_at_interval}


def _by_id(values):
    return {value.unique_id: value for value in values}


class TestCatalog:
    """Test the fixed catalog and its defaults."""

    def test_catalog_has_eighteen_toggles(self) -> None:
        """Test the catalog size and ids are fixed."""
        ids = [entry.id for entry in CATALOG]
        assert len(ids) == 18
        assert len(set(ids)) == 18

    def test_interval_metrics_default_enabled(self) -> None:
        """Test dynamic toggles default on and identity facts default off."""
        assert default_enabled("cpu_usage") is True
        assert default_enabled("network") is True
        assert default_enabled("hostname") is False
        assert default_enabled("bios_version") is False

    def test_unknown_ids_default_enabled(self) -> None:
        """Test ids outside the catalog default to enabled."""
        assert default_enabled("something_new") is True


class TestSanitizeIdentifier:
    """Test id sanitization for mount points and interfaces."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("/", ""),
            ("/data", "data"),
            ("/mnt/My Disk", "mnt_My_Disk"),
            ("C:\\", "C"),
            ("D:\\Games\\", "D_Games"),
            ("//double//slash", "double_slash"),
            ("eth0", "eth0"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        """Test separators become single underscores with none at the ends."""
        assert sanitize_identifier(raw) == expected


class TestSensorList:
    """Test the sensor list for configuration front ends."""

    def test_lists_every_toggle_regardless_of_map(self) -> None:
        """Test the list always has every catalog entry."""
        collector = SensorCollector(FakeMetricSource(), {"cpu_usage": False, "hostname": True})

        items = {item.id: item for item in collector.get_sensor_list()}

        assert len(items) == 18
        assert items["cpu_usage"].enabled is False
        assert items["hostname"].enabled is True
        assert items["memory_usage"].enabled is True
        assert items["bios_version"].enabled is False
        assert items["gpu"].updates_at_interval is True
        assert items["motherboard"].updates_at_interval is False

    def test_enabled_map_is_copied(self) -> None:
        """Test callers cannot change the collector through the returned map."""
        collector = SensorCollector(FakeMetricSource(), {"hostname": True})
        collector.enabled_sensors["hostname"] = False

        assert collector.is_enabled("hostname") is True

        collector.set_enabled_sensors({"cpu_usage": False})
        assert collector.is_enabled("cpu_usage") is False
        assert collector.is_enabled("hostname") is False


class TestCollectDynamic:
    """Test dynamic collection with default toggles."""

    def test_default_dynamic_values(self, fake_source: FakeMetricSource) -> None:
        """Test the default dynamic set and its formatting."""
        values = _by_id(SensorCollector(fake_source).collect_dynamic())

        assert list(values) == [
            "cpu_usage",
            "cpu_frequency",
            "cpu_temperature",
            "memory_usage",
            "memory_used",
            "disk_usage_root",
            "network_rx_eth0",
            "network_tx_eth0",
            "process_count",
        ]
        assert values["cpu_usage"].state == "12.3"
        assert values["cpu_frequency"].state == 3800
        assert values["memory_usage"].state == "25.0"
        assert values["memory_used"].state == "8.00"
        assert values["process_count"].state == 321
        assert all(value.updates_at_interval for value in values.values())

    def test_disk_sensors(self) -> None:
        """Test each partition gets an id from its mount point."""
        source = FakeMetricSource(partitions=[partition("/"), partition("/data", total_gb=200, used_gb=50)])

        values = _by_id(SensorCollector(source).collect_dynamic())

        root = values["disk_usage_root"]
        assert root.name == "Disk Usage /"
        assert root.state == "25.0"
        assert dict(root.attributes) == {
            "total_gb": "100.0",
            "used_gb": "25.0",
            "filesystem": "ext4",
            "disk_type": "SSD",
        }
        assert values["disk_usage_data"].name == "Disk Usage /data"

    def test_colliding_mount_ids_are_suffixed(self) -> None:
        """Test two mounts that sanitize alike get distinct ids."""
        source = FakeMetricSource(partitions=[partition("/mnt/a b"), partition("/mnt/a_b")])

        ids = [v.unique_id for v in SensorCollector(source).collect_dynamic() if v.unique_id.startswith("disk")]

        assert ids == ["disk_usage_mnt_a_b", "disk_usage_mnt_a_b_1"]

    def test_suffix_skips_ids_already_taken(self) -> None:
        """Test a collision suffix never reuses an id another mount already has."""
        source = FakeMetricSource(
            partitions=[partition("/data"), partition("/data_2"), partition("data")]
        )

        ids = [v.unique_id for v in SensorCollector(source).collect_dynamic() if v.unique_id.startswith("disk")]

        assert ids == ["disk_usage_data", "disk_usage_data_2", "disk_usage_data_3"]
        assert len(set(ids)) == len(ids)

    def test_network_sensors(self) -> None:
        """Test rx and tx counters are raw bytes, with addresses on rx."""
        source = FakeMetricSource(
            networks=[NetworkReading("Wi-Fi 2", 10, 20, "11:22:33:44:55:66", ("10.0.0.5", "fe80::1"))]
        )

        values = _by_id(SensorCollector(source).collect_dynamic())

        rx = values["network_rx_Wi-Fi_2"]
        assert rx.name == "Network RX Wi-Fi 2"
        assert rx.state == 10
        assert rx.attributes["mac_address"] == "11:22:33:44:55:66"
        assert rx.attributes["ip_addresses"] == ["10.0.0.5", "fe80::1"]
        assert values["network_tx_Wi-Fi_2"].state == 20

    def test_single_gpu_has_no_suffix(self) -> None:
        """Test one GPU yields unsuffixed ids."""
        source = FakeMetricSource(gpus=[GpuReading("RTX 4070", "NVIDIA", 40.0, 61.0, 12282, 2048, "550.54")])

        values = _by_id(SensorCollector(source).collect_dynamic())

        assert values["gpu_usage"].state == "40.0"
        assert values["gpu_temperature"].state == "61.0"
        assert values["gpu_vram_used"].state == "2048"

    def test_multiple_gpus_are_numbered(self) -> None:
        """Test several GPUs get positional suffixes; missing metrics are skipped."""
        source = FakeMetricSource(
            gpus=[
                GpuReading("RTX 4070", "NVIDIA", 40.0, 61.0, 12282, 2048),
                GpuReading("Intel UHD 770", "Intel"),
            ]
        )

        ids = [v.unique_id for v in SensorCollector(source).collect_dynamic() if v.unique_id.startswith("gpu")]

        assert ids == ["gpu_usage_0", "gpu_temperature_0", "gpu_vram_used_0"]

    def test_battery_sensors(self) -> None:
        """Test battery level carries state attributes and charging is binary."""
        source = FakeMetricSource(
            batteries=[BatteryReading(87.6, "Charging", True, state_of_health=91.2, cycle_count=143)]
        )

        values = _by_id(SensorCollector(source).collect_dynamic())

        level = values["battery_level"]
        assert level.state == "88"
        assert dict(level.attributes) == {"state": "Charging", "state_of_health": "91%", "cycle_count": 143}
        assert values["battery_charging"].state is True

    def test_two_batteries_are_numbered(self) -> None:
        """Test a second battery gets positional ids and names."""
        source = FakeMetricSource(
            batteries=[BatteryReading(50, "Discharging", False), BatteryReading(60, "Full", False)]
        )

        values = _by_id(SensorCollector(source).collect_dynamic())

        assert values["battery_level_1"].name == "Battery Level 1"
        assert values["battery_charging_0"].state is False

    def test_unavailable_temperature_is_omitted(self) -> None:
        """Test a reading the platform cannot provide produces no sensor."""
        cpu = CpuReading("Generic CPU", 5.0, 2000, 4, 4, temperature_c=None)

        ids = [v.unique_id for v in SensorCollector(FakeMetricSource(cpu=cpu)).collect_dynamic()]

        assert "cpu_temperature" not in ids
        assert "cpu_usage" in ids

    def test_source_failure_omits_dependent_sensors(self) -> None:
        """Test an unavailable reading only drops the sensors it feeds."""
        source = FakeMetricSource(memory=None)

        ids = [v.unique_id for v in SensorCollector(source).collect_dynamic()]

        assert "memory_usage" not in ids
        assert "memory_used" not in ids
        assert "cpu_usage" in ids

    def test_disabled_toggle_is_skipped(self, fake_source: FakeMetricSource) -> None:
        """Test a disabled toggle emits nothing and is not sampled."""
        collector = SensorCollector(fake_source, {"network": False, "process_count": False})

        ids = [v.unique_id for v in collector.collect_dynamic()]

        assert not any(i.startswith("network") for i in ids)
        assert "process_count" not in ids
        assert fake_source.calls["networks"] == 0

    def test_each_source_sampled_once_per_call(self, fake_source: FakeMetricSource) -> None:
        """Test three CPU sensors share one CPU sample."""
        collector = SensorCollector(fake_source)

        collector.collect_dynamic()
        assert fake_source.calls["cpu"] == 1
        assert fake_source.calls["memory"] == 1

        collector.collect_dynamic()
        assert fake_source.calls["cpu"] == 2


class TestCollectStatic:
    """Test static collection."""

    def test_static_sensors_default_disabled(self, fake_source: FakeMetricSource) -> None:
        """Test no static sensor is emitted with default toggles."""
        assert SensorCollector(fake_source).collect_static() == []

    def test_enabled_static_values(self, fake_source: FakeMetricSource) -> None:
        """Test identity facts and their formatting."""
        values = _by_id(SensorCollector(fake_source, STATIC_TOGGLES).collect_static())

        assert list(values) == [
            "cpu_model",
            "os_version",
            "hostname",
            "logged_in_user",
            "last_boot",
            "motherboard",
            "bios_version",
            "memory_total",
        ]
        assert values["cpu_model"].attributes["logical_core_count"] == 16
        assert values["os_version"].state == "Ubuntu 24.04"
        assert values["hostname"].state == "workstation"
        assert values["last_boot"].state == "2023-11-14T22:13:20+00:00"
        assert values["motherboard"].state == "ASUSTeK ROG STRIX B550-F"
        assert dict(values["bios_version"].attributes) == {
            "bios_vendor": "American Megatrends",
            "bios_release_date": "04/27/2022",
        }
        assert values["memory_total"].state == "32.0"
        assert not any(value.updates_at_interval for value in values.values())

    def test_gpu_model_is_static(self) -> None:
        """Test GPU model is emitted by static collection under the gpu toggle."""
        source = FakeMetricSource(gpus=[GpuReading("RTX 4070", "NVIDIA", vram_total_mb=12282, driver_version="550.54")])

        values = _by_id(SensorCollector(source).collect_static())

        assert dict(values["gpu_model"].attributes) == {
            "vendor": "NVIDIA",
            "driver_version": "550.54",
            "vram_total_mb": 12282,
        }

    def test_system_info_failure(self) -> None:
        """Test static collection survives missing system info."""
        source = FakeMetricSource(system_info=None)

        ids = [v.unique_id for v in SensorCollector(source, STATIC_TOGGLES).collect_static()]

        assert ids == ["cpu_model", "memory_total"]


class TestCollectAll:
    """Test combined collection."""

    def test_static_first_from_one_snapshot(self, fake_source: FakeMetricSource) -> None:
        """Test static values precede dynamic ones and sources are sampled once."""
        values = SensorCollector(fake_source, STATIC_TOGGLES).collect_all()

        categories = [value.updates_at_interval for value in values]
        assert categories == sorted(categories)
        assert categories[0] is False
        assert categories[-1] is True
        assert fake_source.calls["cpu"] == 1
        assert fake_source.calls["system_info"] == 1


class TestMetricSnapshot:
    """Test the per-call memo."""

    def test_failing_list_reading_is_empty(self) -> None:
        """Test a list reading that raises is treated as no instances."""

        class Broken(FakeMetricSource):
            def partitions(self):
                raise OSError("mount table unreadable")

        snapshot = MetricSnapshot(Broken())

        assert snapshot.partitions == []
        assert snapshot.cpu is not None

    def test_raising_reading_is_unavailable(self) -> None:
        """Test a reading that raises is memoized as None and sampled once."""

        class Broken(FakeMetricSource):
            def memory(self):
                self.calls["memory"] += 1
                raise OSError("meminfo unreadable")

        source = Broken()
        snapshot = MetricSnapshot(source)

        assert snapshot.memory is None
        assert snapshot.memory is None
        assert source.calls["memory"] == 1
