"""
LAN scanner configuration.

All probe budgets are in milliseconds. A sweep takes roughly one ping
budget, plus one port budget in the security flow.
"""

from __future__ import annotations

import ipaddress
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ScannerConfig:
    """
    Scanner configuration.

    The dashboard and security flows ping with separate budgets.
    """

    # Local network identity
    interface: Optional[str] = None  # None = interface of the default route
    local_ip: Optional[str] = None   # Override auto-detection

    # Per-probe budgets (milliseconds)
    discovery_ping_timeout_ms: int = 500
    security_ping_timeout_ms: int = 1000
    port_timeout_ms: int = 200
    mdns_timeout_ms: int = 1000

    # Link-layer neighbor table (Linux)
    neighbor_table_path: Path = field(default_factory=lambda: Path("/proc/net/arp"))

    # API server (for on-demand scans)
    api_host: str = "127.0.0.1"
    api_port: int = 8082

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        """Load configuration from environment variables."""
        config = cls()

        config.interface = os.getenv("LAN_INTERFACE") or None
        config.local_ip = os.getenv("LOCAL_IP") or None

        # Timeouts
        config.discovery_ping_timeout_ms = int(os.getenv("DISCOVERY_PING_TIMEOUT_MS", "500"))
        config.security_ping_timeout_ms = int(os.getenv("SECURITY_PING_TIMEOUT_MS", "1000"))
        config.port_timeout_ms = int(os.getenv("PORT_TIMEOUT_MS", "200"))
        config.mdns_timeout_ms = int(os.getenv("MDNS_TIMEOUT_MS", "1000"))

        # Paths
        if table_path := os.getenv("NEIGHBOR_TABLE_PATH"):
            config.neighbor_table_path = Path(table_path)

        # API server
        config.api_host = os.getenv("API_HOST", "127.0.0.1")
        config.api_port = int(os.getenv("API_PORT", "8082"))

        # Logging
        config.log_level = os.getenv("LOG_LEVEL", "INFO")

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "ScannerConfig":
        """Load configuration from YAML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}, using defaults")
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "network" in data:
            n = data["network"]
            config.interface = n.get("interface")
            config.local_ip = n.get("local_ip")

        if "timeouts" in data:
            t = data["timeouts"]
            config.discovery_ping_timeout_ms = t.get("discovery_ping_ms", 500)
            config.security_ping_timeout_ms = t.get("security_ping_ms", 1000)
            config.port_timeout_ms = t.get("port_ms", 200)
            config.mdns_timeout_ms = t.get("mdns_ms", 1000)

        if "api" in data:
            a = data["api"]
            config.api_host = a.get("host", "127.0.0.1")
            config.api_port = a.get("port", 8082)

        if "paths" in data:
            p = data["paths"]
            if "neighbor_table" in p:
                config.neighbor_table_path = Path(p["neighbor_table"])

        config.log_level = data.get("log_level", "INFO")

        return config

    def validate(self) -> list[str]:
        """Validate configuration, returning list of errors."""
        errors = []

        timeouts = {
            "discovery ping": self.discovery_ping_timeout_ms,
            "security ping": self.security_ping_timeout_ms,
            "port": self.port_timeout_ms,
            "mDNS": self.mdns_timeout_ms,
        }
        for label, value in timeouts.items():
            if value <= 0:
                errors.append(f"Invalid {label} timeout: {value} ms")

        if self.local_ip:
            try:
                if ipaddress.ip_address(self.local_ip).version != 4:
                    errors.append(f"Local IP must be IPv4: {self.local_ip}")
            except ValueError:
                errors.append(f"Invalid local IP: {self.local_ip}")

        if not 0 < self.api_port < 65536:
            errors.append(f"Invalid API port: {self.api_port}")

        return errors


# Example scanner_config.yaml:
"""
network:
  interface: "wlan0"
  # local_ip: "192.168.1.42"

timeouts:
  discovery_ping_ms: 500
  security_ping_ms: 1000
  port_ms: 200
  mdns_ms: 1000

paths:
  neighbor_table: "/proc/net/arp"

api:
  host: "127.0.0.1"
  port: 8082

log_level: "INFO"
"""
