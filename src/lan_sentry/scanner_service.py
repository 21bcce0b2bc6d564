"""
LAN Scanner Service - scan state holders, HTTP API and CLI.

Each scan flow has a state holder that moves IDLE -> RUNNING -> COMPLETE
(or NOT_CONNECTED). Starting a scan clears the previous results at once,
so observers never see old and new results mixed.

A new scan does not cancel one already in flight: the old scan's probes
run to completion, and its result is dropped when it lands because a
newer scan has started since.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import socket
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from aiohttp import web

from ._types import DiscoveredDevice, ScanStatus, Vulnerability
from .classifier import classify_device
from .config import ScannerConfig
from .engine import ScanEngine
from .exceptions import NotConnectedError

logger = logging.getLogger(__name__)

READY = "Ready to scan"
DISCOVERING = "Discovering devices on network..."
SCAN_COMPLETE = "Scan Complete"


@dataclass(frozen=True)
class DeviceScanState:
    """Snapshot of the dashboard scan."""
    status: ScanStatus = ScanStatus.IDLE
    devices: tuple[DiscoveredDevice, ...] = ()
    message: str = ""

    @property
    def is_scanning(self) -> bool:
        return self.status == ScanStatus.RUNNING


@dataclass(frozen=True)
class SecurityScanState:
    """Snapshot of the security scan."""
    status: ScanStatus = ScanStatus.IDLE
    message: str = READY
    vulnerabilities: tuple[Vulnerability, ...] = ()
    devices_scanned: int = 0
    completed_at: Optional[datetime] = None


S = TypeVar("S")


class _ScanTracker(Generic[S]):
    """Holds the latest state of one scan flow and notifies subscribers."""

    def __init__(self, engine: ScanEngine, initial: S):
        self.engine = engine
        self._state = initial
        self._generation = 0
        self._listeners: list[Callable[[S], None]] = []

    @property
    def state(self) -> S:
        return self._state

    def subscribe(self, listener: Callable[[S], None]) -> None:
        """Call listener with every new state."""
        self._listeners.append(listener)

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _publish(self, state: S) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state)


class DeviceScanTracker(_ScanTracker[DeviceScanState]):
    """State holder for the dashboard (device discovery) flow."""

    def __init__(self, engine: ScanEngine):
        super().__init__(engine, DeviceScanState())

    async def run(self) -> DeviceScanState:
        """Run one discovery scan; returns its final state."""
        generation = self._begin()
        self._publish(DeviceScanState(status=ScanStatus.RUNNING))

        try:
            devices = await self.engine.discover_devices()
            final = DeviceScanState(status=ScanStatus.COMPLETE, devices=devices)
        except NotConnectedError as e:
            logger.warning(f"Device scan skipped: {e}")
            final = DeviceScanState(status=ScanStatus.NOT_CONNECTED, message=str(e))

        if self._is_current(generation):
            self._publish(final)
        else:
            logger.info("Discarding result of superseded device scan")
        return final


class SecurityScanTracker(_ScanTracker[SecurityScanState]):
    """State holder for the security (risk port) flow."""

    def __init__(self, engine: ScanEngine):
        super().__init__(engine, SecurityScanState())

    async def run(self) -> SecurityScanState:
        """Run one security scan; returns its final state."""
        generation = self._begin()
        self._publish(SecurityScanState(status=ScanStatus.RUNNING, message=DISCOVERING))

        def hosts_found(count: int) -> None:
            if self._is_current(generation):
                self._publish(SecurityScanState(
                    status=ScanStatus.RUNNING,
                    message=f"Scanning {count} devices for vulnerabilities...",
                    devices_scanned=count,
                ))

        try:
            result = await self.engine.discover_vulnerabilities(on_hosts_found=hosts_found)
            final = SecurityScanState(
                status=ScanStatus.COMPLETE,
                message=SCAN_COMPLETE,
                vulnerabilities=result.vulnerabilities,
                devices_scanned=result.hosts_scanned,
                completed_at=result.completed_at,
            )
        except NotConnectedError as e:
            logger.warning(f"Security scan skipped: {e}")
            final = SecurityScanState(status=ScanStatus.NOT_CONNECTED, message=str(e))

        if self._is_current(generation):
            self._publish(final)
        else:
            logger.info("Discarding result of superseded security scan")
        return final


class NetworkScannerService:
    """
    LAN scanner service.

    Serves on-demand scans over a small JSON API and keeps the latest
    result of each flow in memory. Nothing is persisted between runs.
    """

    def __init__(self, config: ScannerConfig, engine: Optional[ScanEngine] = None):
        """
        Initialize scanner service.

        Args:
            config: Scanner configuration
            engine: Scan engine (built from config if None)
        """
        self.config = config
        self.engine = engine or ScanEngine(config)
        self.device_scans = DeviceScanTracker(self.engine)
        self.security_scans = SecurityScanTracker(self.engine)
        self._shutdown_event = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()
        self._local_hostname = socket.gethostname()

        self._api_runner: Optional[web.AppRunner] = None

    async def start(self) -> None:
        """Start the API server and wait until stopped."""
        logger.info("Starting LAN Scanner Service")
        await self._start_api_server()
        await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the scanner service."""
        logger.info("Stopping LAN Scanner Service")
        self._shutdown_event.set()

        if self._api_runner:
            await self._api_runner.cleanup()
            self._api_runner = None

    def build_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application()
        app.router.add_post("/api/scans/devices", self._handle_trigger_device_scan)
        app.router.add_get("/api/scans/devices", self._handle_device_scan_status)
        app.router.add_post("/api/scans/security", self._handle_trigger_security_scan)
        app.router.add_get("/api/scans/security", self._handle_security_scan_status)
        app.router.add_get("/api/health", self._handle_health)
        return app

    async def _start_api_server(self) -> None:
        self._api_runner = web.AppRunner(self.build_app())
        await self._api_runner.setup()
        site = web.TCPSite(self._api_runner, self.config.api_host, self.config.api_port)
        await site.start()
        logger.info(f"API server started on {self.config.api_host}:{self.config.api_port}")

    def _spawn(self, coro) -> asyncio.Task:
        """Run coro in the background, keeping a reference until it finishes."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def trigger_device_scan(self) -> asyncio.Task:
        return self._spawn(self.device_scans.run())

    def trigger_security_scan(self) -> asyncio.Task:
        return self._spawn(self.security_scans.run())

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def device_scan_payload(self, state: DeviceScanState) -> dict:
        devices = []
        for device in state.devices:
            classification = classify_device(device, self._local_hostname)
            devices.append({
                **device.to_dict(),
                "device_type": classification.device_type.value,
                "label": classification.label,
            })
        return {
            "status": state.status.value,
            "is_scanning": state.is_scanning,
            "message": state.message,
            "devices": devices,
        }

    @staticmethod
    def security_scan_payload(state: SecurityScanState) -> dict:
        return {
            "status": state.status.value,
            "message": state.message,
            "devices_scanned": state.devices_scanned,
            "vulnerabilities": [v.to_dict() for v in state.vulnerabilities],
            "completed_at": state.completed_at.isoformat() if state.completed_at else None,
        }

    # -------------------------------------------------------------------------
    # API Handlers
    # -------------------------------------------------------------------------

    async def _handle_trigger_device_scan(self, request: web.Request) -> web.Response:
        """Handle POST /api/scans/devices."""
        self.trigger_device_scan()
        return web.json_response(
            {"status": "started", "message": "Device scan triggered"},
            status=202,
        )

    async def _handle_device_scan_status(self, request: web.Request) -> web.Response:
        """Handle GET /api/scans/devices."""
        try:
            return web.json_response(self.device_scan_payload(self.device_scans.state))
        except Exception as e:
            logger.error(f"Failed to render device scan state: {e}")
            return web.json_response(
                {"status": "error", "message": str(e)},
                status=500,
            )

    async def _handle_trigger_security_scan(self, request: web.Request) -> web.Response:
        """Handle POST /api/scans/security."""
        self.trigger_security_scan()
        return web.json_response(
            {"status": "started", "message": "Security scan triggered"},
            status=202,
        )

    async def _handle_security_scan_status(self, request: web.Request) -> web.Response:
        """Handle GET /api/scans/security."""
        try:
            return web.json_response(self.security_scan_payload(self.security_scans.state))
        except Exception as e:
            logger.error(f"Failed to render security scan state: {e}")
            return web.json_response(
                {"status": "error", "message": str(e)},
                status=500,
            )

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Handle GET /api/health."""
        return web.json_response({
            "status": "ok",
            "service": "lan-sentry",
            "device_scan": self.device_scans.state.status.value,
            "security_scan": self.security_scans.state.status.value,
        })


async def run_once(service: NetworkScannerService, flow: str) -> tuple[dict, bool]:
    """Run a single scan of the given flow; returns (payload, connected)."""
    if flow == "security":
        state = await service.security_scans.run()
        payload = service.security_scan_payload(state)
    else:
        state = await service.device_scans.run()
        payload = service.device_scan_payload(state)
    return payload, state.status != ScanStatus.NOT_CONNECTED


def main():
    """Entry point for the lan-sentry command."""
    import argparse

    parser = argparse.ArgumentParser(description="LAN device discovery and risk-port scanner")
    parser.add_argument("--config", type=str, help="Path to config file")
    parser.add_argument("--host", type=str, default=None, help="API host")
    parser.add_argument("--port", type=int, default=None, help="API port")
    parser.add_argument("--log-level", type=str, default="INFO", help="Log level")
    parser.add_argument(
        "--once",
        choices=["devices", "security"],
        help="Run a single scan, print JSON and exit",
    )
    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Load configuration
    if args.config:
        config = ScannerConfig.from_yaml(Path(args.config))
    else:
        config = ScannerConfig.from_env()

    # Override with CLI args
    if args.host:
        config.api_host = args.host
    if args.port:
        config.api_port = args.port
    config.log_level = args.log_level

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        sys.exit(1)

    service = NetworkScannerService(config)

    if args.once:
        payload, connected = asyncio.run(run_once(service, args.once))
        print(json.dumps(payload, indent=2))
        sys.exit(0 if connected else 2)

    # Handle signals
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        loop.create_task(service.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(service.start())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        loop.run_until_complete(service.stop())
        loop.close()


if __name__ == "__main__":
    main()
