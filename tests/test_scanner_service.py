"""Tests for the scanner service."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from aiohttp import test_utils

from lan_sentry._types import (
    DiscoveredDevice,
    ScanStatus,
    SecurityScanResult,
    Vulnerability,
)
from lan_sentry.catalog import VULNERABILITY_CATALOG
from lan_sentry.config import ScannerConfig
from lan_sentry.exceptions import NotConnectedError
from lan_sentry.scanner_service import (
    DISCOVERING,
    READY,
    SCAN_COMPLETE,
    DeviceScanTracker,
    NetworkScannerService,
    SecurityScanTracker,
    run_once,
)


ROUTER = DiscoveredDevice(ip="192.168.1.1", mac="00:1A:2B:00:00:01", name="Cisco Router")
PHONE = DiscoveredDevice(ip="192.168.1.20", name="Android-Pixel")


def _finding(ip, port):
    return Vulnerability.from_catalog(ip, port, VULNERABILITY_CATALOG[port])


@pytest.fixture
def mock_engine():
    """Engine whose flows return canned results."""
    engine = MagicMock()
    engine.discover_devices = AsyncMock(return_value=(ROUTER, PHONE))

    async def discover_vulnerabilities(on_hosts_found=None):
        if on_hosts_found:
            on_hosts_found(1)
        return SecurityScanResult(
            vulnerabilities=(_finding("192.168.1.1", 80),),
            hosts_scanned=1,
        )

    engine.discover_vulnerabilities = AsyncMock(side_effect=discover_vulnerabilities)
    return engine


@pytest.fixture
def scanner_service(mock_engine):
    """Create scanner service around the mock engine."""
    return NetworkScannerService(ScannerConfig(), engine=mock_engine)


@pytest_asyncio.fixture
async def api_client(scanner_service):
    """HTTP client bound to the service's aiohttp app."""
    async with test_utils.TestClient(test_utils.TestServer(scanner_service.build_app())) as client:
        yield client


class TestDeviceScanTracker:
    """Tests for the dashboard scan state holder."""

    def test_initial_state(self, mock_engine):
        tracker = DeviceScanTracker(mock_engine)

        assert tracker.state.status == ScanStatus.IDLE
        assert tracker.state.devices == ()
        assert not tracker.state.is_scanning

    @pytest.mark.asyncio
    async def test_running_then_complete(self, mock_engine):
        """Observers see RUNNING with no devices, then the result."""
        tracker = DeviceScanTracker(mock_engine)
        states = []
        tracker.subscribe(states.append)

        final = await tracker.run()

        assert [s.status for s in states] == [ScanStatus.RUNNING, ScanStatus.COMPLETE]
        assert states[0].devices == ()
        assert states[0].is_scanning
        assert final.devices == (ROUTER, PHONE)
        assert tracker.state == final

    @pytest.mark.asyncio
    async def test_restart_clears_previous_results(self, mock_engine):
        """A second scan starts from an empty list, never a mix."""
        tracker = DeviceScanTracker(mock_engine)
        await tracker.run()
        mock_engine.discover_devices = AsyncMock(return_value=(PHONE,))
        states = []
        tracker.subscribe(states.append)

        await tracker.run()

        assert states[0].status == ScanStatus.RUNNING
        assert states[0].devices == ()
        assert states[-1].devices == (PHONE,)

    @pytest.mark.asyncio
    async def test_superseded_result_discarded(self, mock_engine):
        """A slow older scan must not overwrite a newer scan's result."""
        gate = asyncio.Event()
        calls = 0

        async def discover_devices():
            nonlocal calls
            calls += 1
            if calls == 1:
                await gate.wait()
                return (ROUTER,)
            return (PHONE,)

        mock_engine.discover_devices = AsyncMock(side_effect=discover_devices)
        tracker = DeviceScanTracker(mock_engine)

        first = asyncio.create_task(tracker.run())
        await asyncio.sleep(0)
        await tracker.run()
        gate.set()
        await first

        assert tracker.state.status == ScanStatus.COMPLETE
        assert tracker.state.devices == (PHONE,)

    @pytest.mark.asyncio
    async def test_not_connected(self, mock_engine):
        """No local address is reported as NOT_CONNECTED."""
        mock_engine.discover_devices = AsyncMock(side_effect=NotConnectedError())
        tracker = DeviceScanTracker(mock_engine)

        final = await tracker.run()

        assert final.status == ScanStatus.NOT_CONNECTED
        assert final.devices == ()
        assert final.message == "Not connected to a network"
        assert not final.is_scanning


class TestSecurityScanTracker:
    """Tests for the security scan state holder."""

    def test_initial_state(self, mock_engine):
        tracker = SecurityScanTracker(mock_engine)

        assert tracker.state.status == ScanStatus.IDLE
        assert tracker.state.message == READY

    @pytest.mark.asyncio
    async def test_status_messages(self, mock_engine):
        """Messages track discovering, scanning and completion."""
        tracker = SecurityScanTracker(mock_engine)
        states = []
        tracker.subscribe(states.append)

        final = await tracker.run()

        assert [s.message for s in states] == [
            DISCOVERING,
            "Scanning 1 devices for vulnerabilities...",
            SCAN_COMPLETE,
        ]
        assert states[0].vulnerabilities == ()
        assert final.status == ScanStatus.COMPLETE
        assert final.devices_scanned == 1
        assert final.vulnerabilities[0].port == 80

    @pytest.mark.asyncio
    async def test_not_connected(self, mock_engine):
        mock_engine.discover_vulnerabilities = AsyncMock(side_effect=NotConnectedError())
        tracker = SecurityScanTracker(mock_engine)

        final = await tracker.run()

        assert final.status == ScanStatus.NOT_CONNECTED
        assert final.vulnerabilities == ()
        assert final.devices_scanned == 0


class TestPayloads:
    """Tests for JSON rendering of scan state."""

    @pytest.mark.asyncio
    async def test_device_payload_classifies(self, scanner_service):
        state = await scanner_service.device_scans.run()

        payload = scanner_service.device_scan_payload(state)

        assert payload["status"] == "complete"
        assert payload["is_scanning"] is False
        router, phone = payload["devices"]
        assert router["ip"] == "192.168.1.1"
        assert router["device_type"] == "router"
        assert router["label"] == "Gateway Router"
        assert phone["device_type"] == "phone"
        assert phone["mac"] == "N/A"

    @pytest.mark.asyncio
    async def test_security_payload(self, scanner_service):
        state = await scanner_service.security_scans.run()

        payload = scanner_service.security_scan_payload(state)

        assert payload["message"] == SCAN_COMPLETE
        assert payload["devices_scanned"] == 1
        assert payload["vulnerabilities"][0]["severity"] == "Low"
        assert state.completed_at is not None
        assert payload["completed_at"] == state.completed_at.isoformat()


class TestAPI:
    """Tests for the HTTP API."""

    @pytest.mark.asyncio
    async def test_health(self, api_client):
        resp = await api_client.get("/api/health")

        assert resp.status == 200
        data = await resp.json()
        assert data["status"] == "ok"
        assert data["device_scan"] == "idle"
        assert data["security_scan"] == "idle"

    @pytest.mark.asyncio
    async def test_device_scan_round_trip(self, api_client, scanner_service):
        """POST starts a scan; GET returns its result once done."""
        resp = await api_client.post("/api/scans/devices")
        assert resp.status == 202

        await asyncio.gather(*list(scanner_service._tasks))

        resp = await api_client.get("/api/scans/devices")
        assert resp.status == 200
        data = await resp.json()
        assert data["status"] == "complete"
        assert [d["ip"] for d in data["devices"]] == ["192.168.1.1", "192.168.1.20"]

    @pytest.mark.asyncio
    async def test_security_scan_round_trip(self, api_client, scanner_service):
        resp = await api_client.post("/api/scans/security")
        assert resp.status == 202

        await asyncio.gather(*list(scanner_service._tasks))

        resp = await api_client.get("/api/scans/security")
        data = await resp.json()
        assert data["status"] == "complete"
        assert data["vulnerabilities"][0]["device_ip"] == "192.168.1.1"

    @pytest.mark.asyncio
    async def test_status_before_any_scan(self, api_client):
        resp = await api_client.get("/api/scans/security")

        data = await resp.json()
        assert data["status"] == "idle"
        assert data["message"] == READY
        assert data["vulnerabilities"] == []
        assert data["completed_at"] is None


class TestRunOnce:
    """Tests for single-shot CLI scans."""

    @pytest.mark.asyncio
    async def test_devices(self, scanner_service):
        payload, connected = await run_once(scanner_service, "devices")

        assert connected
        assert len(payload["devices"]) == 2

    @pytest.mark.asyncio
    async def test_not_connected(self, scanner_service, mock_engine):
        mock_engine.discover_vulnerabilities = AsyncMock(side_effect=NotConnectedError())

        payload, connected = await run_once(scanner_service, "security")

        assert not connected
        assert payload["status"] == "not_connected"


class TestScannerConfig:
    """Tests for scanner configuration."""

    def test_defaults(self):
        config = ScannerConfig()

        assert config.discovery_ping_timeout_ms == 500
        assert config.security_ping_timeout_ms == 1000
        assert config.port_timeout_ms == 200
        assert config.neighbor_table_path == Path("/proc/net/arp")
        assert config.validate() == []

    def test_validate_errors(self):
        config = ScannerConfig(port_timeout_ms=0, local_ip="fe80::1", api_port=70000)

        errors = config.validate()

        assert "Invalid port timeout: 0 ms" in errors
        assert any("IPv4" in e for e in errors)
        assert "Invalid API port: 70000" in errors

    def test_validate_bad_ip(self):
        errors = ScannerConfig(local_ip="192.168.1").validate()

        assert errors == ["Invalid local IP: 192.168.1"]

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LAN_INTERFACE", "wlan0")
        monkeypatch.setenv("DISCOVERY_PING_TIMEOUT_MS", "750")
        monkeypatch.setenv("API_PORT", "9090")
        monkeypatch.delenv("LOCAL_IP", raising=False)

        config = ScannerConfig.from_env()

        assert config.interface == "wlan0"
        assert config.local_ip is None
        assert config.discovery_ping_timeout_ms == 750
        assert config.api_port == 9090

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "scanner.yaml"
        path.write_text(
            "network:\n"
            "  local_ip: 192.168.1.42\n"
            "timeouts:\n"
            "  port_ms: 300\n"
            "paths:\n"
            "  neighbor_table: /tmp/arp\n"
            "log_level: DEBUG\n"
        )

        config = ScannerConfig.from_yaml(path)

        assert config.local_ip == "192.168.1.42"
        assert config.port_timeout_ms == 300
        assert config.discovery_ping_timeout_ms == 500
        assert config.neighbor_table_path == Path("/tmp/arp")
        assert config.log_level == "DEBUG"

    def test_from_yaml_missing_file(self, tmp_path):
        config = ScannerConfig.from_yaml(tmp_path / "missing.yaml")

        assert config == ScannerConfig()
