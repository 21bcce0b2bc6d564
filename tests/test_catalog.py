"""Tests for the risk-port catalog and vendor prefix table."""

import pytest

from lan_sentry._types import Severity
from lan_sentry.catalog import (
    VENDOR_PREFIXES,
    VULNERABILITY_CATALOG,
    guess_vendor,
    mac_prefix,
)


class TestVulnerabilityCatalog:
    """Tests for the fixed risk-port catalog."""

    def test_catalog_ports(self):
        """Catalog should hold exactly the seven risk ports."""
        assert set(VULNERABILITY_CATALOG) == {21, 22, 23, 80, 445, 3389, 5900}

    @pytest.mark.parametrize("port,description,severity", [
        (21, "FTP", Severity.MEDIUM),
        (22, "SSH", Severity.LOW),
        (23, "Telnet", Severity.HIGH),
        (80, "HTTP", Severity.LOW),
        (445, "SMB", Severity.MEDIUM),
        (3389, "RDP", Severity.HIGH),
        (5900, "VNC", Severity.HIGH),
    ])
    def test_catalog_entries(self, port, description, severity):
        """Each port should carry its description, severity and risk text."""
        info = VULNERABILITY_CATALOG[port]

        assert info.description == description
        assert info.severity == severity
        assert info.risk_info

    def test_catalog_is_read_only(self):
        """Catalog must not be mutable at runtime."""
        with pytest.raises(TypeError):
            VULNERABILITY_CATALOG[8080] = VULNERABILITY_CATALOG[80]


class TestVendorGuess:
    """Tests for MAC vendor guessing."""

    def test_samsung(self):
        """Known prefix should map deterministically."""
        assert guess_vendor("FC:DB:B3:11:22:33") == "Samsung Device"

    def test_unknown_prefix(self):
        """Unmatched prefix should fall back to Unknown Device."""
        assert guess_vendor("00:00:00:11:22:33") == "Unknown Device"

    def test_lower_case_mac(self):
        """Lookup should be case-insensitive."""
        assert guess_vendor("f4:0f:24:aa:bb:cc") == "Apple Device"

    def test_dash_separated_mac(self):
        """Dash separators should be accepted."""
        assert guess_vendor("40-9C-28-01-02-03") == "Dell Laptop"

    def test_missing_mac(self):
        """No MAC should yield Unknown Device."""
        assert guess_vendor(None) == "Unknown Device"
        assert guess_vendor("") == "Unknown Device"

    def test_custom_table(self):
        """A substitute table should be honoured."""
        table = {"AA:BB:CC": "Lab Switch"}
        assert guess_vendor("aa:bb:cc:00:00:01", table) == "Lab Switch"
        assert guess_vendor("FC:DB:B3:11:22:33", table) == "Unknown Device"

    def test_prefix_normalization(self):
        assert mac_prefix(" ac:37:43:de:ad:00 ") == "AC:37:43"

    def test_unpadded_octets(self):
        """BSD arp prints octets without leading zeros."""
        assert mac_prefix("0:1a:2b:11:22:33") == "00:1A:2B"
        assert guess_vendor("0:1a:2b:11:22:33") == "Cisco Router"

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            VENDOR_PREFIXES["11:22:33"] = "Other"
