"""Tests for decoding of status, position and connectivity payloads."""

import ipaddress
import unittest
from datetime import datetime, timezone
import sys
from pathlib import Path

# Add src to path so we can import icestat
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from icestat.exceptions import DecodeError
from icestat.models import EPOCH, AccessPointName, DeviceState, LinkState, UMTSInfo
from icestat.wire import (
    decode_connectivity,
    decode_position,
    decode_status,
    operator_name,
    parse_apn,
    unwrap_jsonp,
)

FIXTURES = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    with open(FIXTURES / name, "r", encoding="utf-8") as f:
        return f.read()


class TestJSONP(unittest.TestCase):
    """Test stripping of JSONP padding."""

    def test_unwrap(self):
        """Test that parentheses and trailing semicolon are removed."""
        self.assertEqual(unwrap_jsonp('({"online":"1"});\r\n'), {"online": "1"})

    def test_plain_json_passes_through(self):
        """Test that unpadded JSON is decoded as well."""
        self.assertEqual(unwrap_jsonp('{"a": [1, 2]}'), {"a": [1, 2]})

    def test_invalid_payload(self):
        """Test that garbage raises DecodeError."""
        with self.assertRaises(DecodeError):
            unwrap_jsonp("<html>captive portal</html>")


class TestStatus(unittest.TestCase):
    """Test decoding of the status endpoint."""

    def test_decode(self):
        """Test a typical status payload."""
        status = decode_status({
            "connection": True,
            "serviceLevel": "AVAILABLE_SERVICE",
            "speed": 187.0,
            "latitude": 49.445616,
            "longitude": 11.082989,
            "serverTime": 1533191000000,
        })
        self.assertTrue(status.connection)
        self.assertEqual(status.service_level, "AVAILABLE_SERVICE")
        self.assertEqual(status.speed, 187.0)
        self.assertEqual(status.server_time, datetime.fromtimestamp(1533191000, tz=timezone.utc))

    def test_missing_server_time(self):
        """Test that a missing server time decodes to the zero timestamp."""
        status = decode_status({"speed": 0})
        self.assertEqual(status.server_time, EPOCH)
        self.assertFalse(status.connection)

    def test_missing_speed_is_decode_error(self):
        """Test that a status without speed cannot be used."""
        with self.assertRaises(DecodeError):
            decode_status({"connection": True})

    def test_connection_must_be_boolean(self):
        """Test that a quoted connection flag is rejected instead of read as true."""
        with self.assertRaises(DecodeError):
            decode_status({"speed": 1, "connection": "false"})

    def test_out_of_range_server_time_is_decode_error(self):
        with self.assertRaises(DecodeError):
            decode_status({"speed": 1, "serverTime": 10 ** 20})


class TestPosition(unittest.TestCase):
    """Test decoding of the JSONP position feed."""

    def test_decode(self):
        """Test quoted numbers and the m/s to km/h conversion."""
        position = decode_position(unwrap_jsonp(read_fixture("position.jsonp")))

        self.assertEqual(position.version, "1.9")
        self.assertEqual(position.time, datetime.fromtimestamp(1488959212, tz=timezone.utc))
        self.assertAlmostEqual(position.latitude, 48.694882)
        self.assertAlmostEqual(position.longitude, 11.45607)
        self.assertAlmostEqual(position.altitude, 371.4)
        self.assertAlmostEqual(position.speed, 44.206 * 3.6)
        self.assertEqual(position.satellites, 10)

    def test_invalid_number(self):
        """Test that unparsable quoted numbers raise DecodeError."""
        with self.assertRaises(DecodeError):
            decode_position({"speed": "fast"})

    def test_out_of_range_time_is_decode_error(self):
        """Test that a timestamp beyond the calendar raises DecodeError."""
        with self.assertRaises(DecodeError):
            decode_position({"time": str(10 ** 17)})


class TestConnectivity(unittest.TestCase):
    """Test decoding of the JSONP connectivity feed."""

    def setUp(self):
        self.connectivity = decode_connectivity(unwrap_jsonp(read_fixture("connectivity.jsonp")))

    def test_bundle(self):
        """Test top level fields."""
        self.assertEqual(self.connectivity.version, "1.9")
        self.assertTrue(self.connectivity.online)
        self.assertEqual(self.connectivity.bundle_id, "84106380353")
        self.assertEqual(self.connectivity.bundle_ip, ipaddress.ip_address("10.7.19.1"))
        self.assertEqual(len(self.connectivity.links), 6)
        self.assertEqual(self.connectivity.links_up, 5)

    def test_first_link(self):
        """Test all fields of a single link."""
        link = self.connectivity.links[0]
        self.assertEqual(link.index, 101)
        self.assertEqual(link.device_type, "modem")
        self.assertEqual(link.device_subtype, "mc7304")
        self.assertIs(link.device_state, DeviceState.UP)
        self.assertIs(link.link_state, LinkState.AVAILABLE)
        self.assertEqual(link.rssi, -32.0)
        self.assertEqual(link.technology, "lte")
        self.assertEqual(link.operator, "T-Mobile")
        self.assertEqual(link.apn, AccessPointName(name="railnet.telekom", user="t-mobile", password="tm"))
        self.assertEqual(link.umts, UMTSInfo(cell_id="01B59302"))
        self.assertTrue(link.is_up)

    def test_unset_values(self):
        """Test that "-1" placeholders decode to None."""
        link = self.connectivity.links[1]
        self.assertEqual(link.operator, "Vodafone")
        self.assertEqual(link.apn, AccessPointName(name="fv1.deutschebahn.com"))
        self.assertEqual(link.umts, UMTSInfo(cell_id="0149C001"))

        link = self.connectivity.links[2]
        self.assertEqual(link.umts, UMTSInfo(lac="44BC", cell_id="0000D74D"))

    def test_down_link(self):
        """Test a disconnected link."""
        link = self.connectivity.links[5]
        self.assertIs(link.device_state, DeviceState.DOWN)
        self.assertIs(link.link_state, LinkState.DISCONNECTED)
        self.assertEqual(link.rssi, -69.0)
        self.assertFalse(link.is_up)

    def test_offline_without_links(self):
        """Test an empty, offline bundle."""
        connectivity = decode_connectivity({"online": "0", "bundleip": "not-an-ip"})
        self.assertFalse(connectivity.online)
        self.assertIsNone(connectivity.bundle_ip)
        self.assertEqual(connectivity.links, ())


class TestHelpers(unittest.TestCase):
    """Test APN and operator parsing."""

    def test_parse_apn(self):
        self.assertEqual(parse_apn("internet"), AccessPointName(name="internet"))
        self.assertEqual(parse_apn("apn,user"), AccessPointName(name="apn", user="user"))
        self.assertIsNone(parse_apn(""))
        self.assertIsNone(parse_apn(None))

    def test_operator_name(self):
        self.assertEqual(operator_name(26207), "O2")
        self.assertEqual(operator_name(23415), "23415")
        self.assertIsNone(operator_name(0))
        self.assertIsNone(operator_name(None))


if __name__ == "__main__":
    unittest.main()
