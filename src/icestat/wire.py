"""
Decoding of the portal's JSON and JSONP payloads.

Decoding happens in two steps: the Raw* records mirror the wire format
field by field and keep everything optional, the decode_* functions then
build the strict models, converting units and substituting defaults.
"""

import ipaddress
import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .exceptions import DecodeError
from .models import (
    EPOCH,
    AccessPointName,
    Connectivity,
    DeviceState,
    Link,
    LinkState,
    Position,
    Station,
    Status,
    Stop,
    Trip,
    UMTSInfo,
)

# Mobile Network Codes of the Public Land Mobile Networks along the route.
PLMN_CODES = {
    26201: "T-Mobile",
    26202: "Vodafone",
    26204: "Vodafone",
    26209: "Vodafone",
    26203: "E-plus",
    26205: "E-plus",
    26277: "E-plus",
    26207: "O2",
    26208: "O2",
    26211: "O2",
}

# Placeholder the connectivity feed uses for unset values.
UNSET = "-1"


def unwrap_jsonp(text: str) -> Any:
    """Strip the JSONP padding from text and decode the JSON inside."""
    body = text.strip().lstrip("(").rstrip(");\r\n")
    try:
        return json.loads(body)
    except ValueError as e:
        raise DecodeError(f"invalid JSONP payload: {e}") from e


def _mapping(value: Any, what: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _int(value: Any, what: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise DecodeError(f"{what} must be a number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"{what} must be an integer, got {value!r}") from e


def _float(value: Any, what: str) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise DecodeError(f"{what} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"{what} must be a number, got {value!r}") from e


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _bool(value: Any, what: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"{what} must be a boolean, got {value!r}")
    return value


def _from_seconds(value: Optional[float], what: str, scale: float = 1.0) -> datetime:
    if not value:
        return EPOCH
    try:
        return datetime.fromtimestamp(value / scale, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise DecodeError(f"{what} is out of range: {value!r}") from e


def _from_millis(value: Optional[int], what: str) -> datetime:
    if not value:
        return EPOCH
    return _from_seconds(value, what, scale=1000.0)


def _km(meters: Optional[int]) -> float:
    return (meters or 0) / 1000.0


@dataclass
class RawStation:
    eva_nr: Optional[str] = None
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawStation":
        data = _mapping(data, "station")
        geo = _mapping(data.get("geocoordinates"), "station.geocoordinates")
        return cls(
            eva_nr=_str(data.get("evaNr")),
            name=_str(data.get("name")),
            latitude=_float(geo.get("latitude"), "latitude"),
            longitude=_float(geo.get("longitude"), "longitude"),
        )


@dataclass
class RawStop:
    station: Optional[RawStation] = None
    track_actual: Optional[str] = None
    track_scheduled: Optional[str] = None
    distance_from_start: Optional[int] = None  # meters
    distance: Optional[int] = None  # meters from the previous stop
    passed: Optional[bool] = None
    status: Optional[int] = None
    scheduled_arrival_time: Optional[int] = None  # ms since epoch
    actual_arrival_time: Optional[int] = None
    scheduled_departure_time: Optional[int] = None
    actual_departure_time: Optional[int] = None
    arrival_delay: Optional[str] = None  # e.g. "+2"
    departure_delay: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawStop":
        data = _mapping(data, "stop")
        station = data.get("station")
        track = _mapping(data.get("track"), "stop.track")
        info = _mapping(data.get("info"), "stop.info")
        timetable = _mapping(data.get("timetable"), "stop.timetable")
        return cls(
            station=RawStation.from_dict(station) if station is not None else None,
            track_actual=_str(track.get("actual")),
            track_scheduled=_str(track.get("scheduled")),
            distance_from_start=_int(info.get("distanceFromStart"), "info.distanceFromStart"),
            distance=_int(info.get("distance"), "info.distance"),
            passed=_bool(info.get("passed"), "info.passed"),
            status=_int(info.get("status"), "info.status"),
            scheduled_arrival_time=_int(timetable.get("scheduledArrivalTime"), "scheduledArrivalTime"),
            actual_arrival_time=_int(timetable.get("actualArrivalTime"), "actualArrivalTime"),
            scheduled_departure_time=_int(timetable.get("scheduledDepartureTime"), "scheduledDepartureTime"),
            actual_departure_time=_int(timetable.get("actualDepartureTime"), "actualDepartureTime"),
            arrival_delay=_str(timetable.get("arrivalDelay")),
            departure_delay=_str(timetable.get("departureDelay")),
        )


@dataclass
class RawTrip:
    vzn: Optional[str] = None
    train_type: Optional[str] = None
    trip_date: Optional[str] = None
    actual_position: Optional[int] = None
    distance_from_last_stop: Optional[int] = None
    total_distance: Optional[int] = None
    actual_next: Optional[str] = None
    actual_last: Optional[str] = None
    scheduled_next: Optional[str] = None
    final_station_name: Optional[str] = None
    final_station_eva_nr: Optional[str] = None
    stops: List[RawStop] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "RawTrip":
        data = _mapping(data, "trip")
        # The tripInfo endpoint wraps the trip in an envelope.
        if isinstance(data.get("trip"), dict):
            data = data["trip"]

        stop_info = _mapping(data.get("stopInfo"), "trip.stopInfo")
        stops = data.get("stops") or []
        if not isinstance(stops, list):
            raise DecodeError(f"trip.stops must be a list, got {type(stops).__name__}")

        return cls(
            vzn=_str(data.get("vzn")),
            train_type=_str(data.get("trainType")),
            trip_date=_str(data.get("tripDate")),
            actual_position=_int(data.get("actualPosition"), "actualPosition"),
            distance_from_last_stop=_int(data.get("distanceFromLastStop"), "distanceFromLastStop"),
            total_distance=_int(data.get("totalDistance"), "totalDistance"),
            actual_next=_str(stop_info.get("actualNext")),
            actual_last=_str(stop_info.get("actualLast")),
            scheduled_next=_str(stop_info.get("scheduledNext")),
            final_station_name=_str(stop_info.get("finalStationName")),
            final_station_eva_nr=_str(stop_info.get("finalStationEvaNr")),
            stops=[RawStop.from_dict(stop) for stop in stops],
        )


def decode_station(raw: RawStation) -> Station:
    return Station(
        eva_nr=raw.eva_nr or "",
        name=raw.name or "",
        latitude=raw.latitude or 0.0,
        longitude=raw.longitude or 0.0,
    )


def decode_stop(raw: RawStop) -> Stop:
    """Build a Stop from its wire representation."""
    if raw.station is None:
        raise DecodeError("stop has no station")

    # The actual platform wins over the scheduled one.
    platform = raw.track_actual or raw.track_scheduled or ""

    return Stop(
        station=decode_station(raw.station),
        platform=platform,
        distance_from_start=_km(raw.distance_from_start),
        distance_from_last_stop=_km(raw.distance),
        passed=bool(raw.passed),
        scheduled_arrival=_from_millis(raw.scheduled_arrival_time, "scheduledArrivalTime"),
        actual_arrival=_from_millis(raw.actual_arrival_time, "actualArrivalTime"),
        scheduled_departure=_from_millis(raw.scheduled_departure_time, "scheduledDepartureTime"),
        actual_departure=_from_millis(raw.actual_departure_time, "actualDepartureTime"),
    )


def _parse_date(value: Optional[str]) -> date:
    if not value:
        return date.min
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return date.min


def _index_of(stops: List[Stop], eva_nr: Optional[str]) -> Optional[int]:
    if not eva_nr:
        return None
    for i, stop in enumerate(stops):
        if stop.station.eva_nr == eva_nr:
            return i
    return None


def decode_trip(data: Any) -> Trip:
    """
    Decode a tripInfo payload into a Trip.

    Args:
        data: Decoded JSON, either the trip object itself or the envelope
              returned by the tripInfo endpoint.

    Returns:
        Trip with stops in payload order and next/previous stop resolved.

    Raises:
        DecodeError: If the payload is malformed or has no stops.
    """
    raw = RawTrip.from_dict(data)
    if not raw.stops:
        raise DecodeError("trip has no stops")

    stops = [decode_stop(stop) for stop in raw.stops]

    return Trip(
        train_id=raw.vzn or "",
        train_type=raw.train_type or "",
        date=_parse_date(raw.trip_date),
        actual_position=raw.actual_position or 0,
        distance_from_last_stop=_km(raw.distance_from_last_stop),
        total_distance=_km(raw.total_distance),
        stops=tuple(stops),
        next_stop_index=_index_of(stops, raw.actual_next),
        previous_stop_index=_index_of(stops, raw.actual_last),
        final_station_name=raw.final_station_name or "",
        final_station_eva_nr=raw.final_station_eva_nr or "",
    )


@dataclass
class RawStatus:
    connection: Optional[bool] = None
    service_level: Optional[str] = None
    speed: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    server_time: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawStatus":
        data = _mapping(data, "status")
        return cls(
            connection=_bool(data.get("connection"), "connection"),
            service_level=_str(data.get("serviceLevel")),
            speed=_float(data.get("speed"), "speed"),
            latitude=_float(data.get("latitude"), "latitude"),
            longitude=_float(data.get("longitude"), "longitude"),
            server_time=_int(data.get("serverTime"), "serverTime"),
        )


def decode_status(data: Any) -> Status:
    """Decode a status payload. Speed is already reported in km/h."""
    raw = RawStatus.from_dict(data)
    if raw.speed is None:
        raise DecodeError("status has no speed")
    return Status(
        connection=bool(raw.connection),
        service_level=raw.service_level or "",
        speed=raw.speed,
        latitude=raw.latitude or 0.0,
        longitude=raw.longitude or 0.0,
        server_time=_from_millis(raw.server_time, "serverTime"),
    )


@dataclass
class RawPosition:
    # The position feed quotes all of its numbers.
    version: Optional[str] = None
    time: Optional[int] = None  # seconds since epoch
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None  # m/s
    satellites: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawPosition":
        data = _mapping(data, "position")
        return cls(
            version=_str(data.get("version")),
            time=_int(data.get("time"), "time"),
            latitude=_float(data.get("latitude"), "latitude"),
            longitude=_float(data.get("longitude"), "longitude"),
            altitude=_float(data.get("altitude"), "altitude"),
            speed=_float(data.get("speed"), "speed"),
            satellites=_int(data.get("satellites"), "satellites"),
        )


def decode_position(data: Any) -> Position:
    """Decode a position payload, converting speed from m/s to km/h."""
    raw = RawPosition.from_dict(data)
    return Position(
        version=raw.version or "",
        time=_from_seconds(raw.time, "time"),
        latitude=raw.latitude or 0.0,
        longitude=raw.longitude or 0.0,
        altitude=raw.altitude or 0.0,
        speed=(raw.speed or 0.0) * 3600.0 / 1000.0,
        satellites=raw.satellites or 0,
    )


@dataclass
class RawLink:
    index: Optional[int] = None
    device_type: Optional[str] = None
    device_subtype: Optional[str] = None
    device_state: Optional[str] = None
    link_state: Optional[str] = None
    rssi: Optional[float] = None
    technology: Optional[str] = None
    operator_id: Optional[int] = None
    apninfo: Optional[str] = None
    net_status: Optional[str] = None
    lac: Optional[str] = None
    cellid: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawLink":
        data = _mapping(data, "link")
        umts = _mapping(data.get("umts_info"), "link.umts_info")
        return cls(
            index=_int(data.get("index"), "index"),
            device_type=_str(data.get("device_type")),
            device_subtype=_str(data.get("device_subtype")),
            device_state=_str(data.get("device_state")),
            link_state=_str(data.get("link_state")),
            rssi=_float(data.get("rssi"), "rssi"),
            technology=_str(data.get("technology")),
            operator_id=_int(data.get("operator_id"), "operator_id"),
            apninfo=_str(data.get("apninfo")),
            net_status=_str(umts.get("net_status")),
            lac=_str(umts.get("lac")),
            cellid=_str(umts.get("cellid")),
        )


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None or value == UNSET:
        return None
    return value


def parse_apn(value: Optional[str]) -> Optional[AccessPointName]:
    """Parse an APN of the form "name,user,password"."""
    if not value:
        return None
    fields = value.split(",")
    return AccessPointName(
        name=fields[0],
        user=_optional(fields[1]) if len(fields) > 1 else None,
        password=_optional(fields[2]) if len(fields) > 2 else None,
    )


def operator_name(operator_id: Optional[int]) -> Optional[str]:
    if not operator_id or operator_id <= 0:
        return None
    return PLMN_CODES.get(operator_id, str(operator_id))


def decode_link(raw: RawLink) -> Link:
    return Link(
        index=raw.index or 0,
        device_type=raw.device_type or "",
        device_subtype=raw.device_subtype or "",
        device_state=DeviceState.UP if raw.device_state == "up" else DeviceState.DOWN,
        link_state=LinkState.AVAILABLE if raw.link_state == "available" else LinkState.DISCONNECTED,
        rssi=raw.rssi if raw.rssi is not None else 0.0,
        technology=raw.technology or "",
        operator=operator_name(raw.operator_id),
        apn=parse_apn(raw.apninfo),
        umts=UMTSInfo(
            net_status=_optional(raw.net_status),
            lac=_optional(raw.lac),
            cell_id=_optional(raw.cellid),
        ),
    )


@dataclass
class RawConnectivity:
    version: Optional[str] = None
    online: Optional[int] = None
    bundle_id: Optional[str] = None
    bundle_ip: Optional[str] = None
    links: List[RawLink] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "RawConnectivity":
        data = _mapping(data, "connectivity")
        links = data.get("links") or []
        if not isinstance(links, list):
            raise DecodeError(f"connectivity.links must be a list, got {type(links).__name__}")
        return cls(
            version=_str(data.get("version")),
            online=_int(data.get("online"), "online"),
            bundle_id=_str(data.get("bundleid")),
            bundle_ip=_str(data.get("bundleip")),
            links=[RawLink.from_dict(link) for link in links],
        )


def decode_connectivity(data: Any) -> Connectivity:
    """Decode a connectivity payload."""
    raw = RawConnectivity.from_dict(data)

    bundle_ip = None
    if raw.bundle_ip:
        try:
            bundle_ip = ipaddress.ip_address(raw.bundle_ip)
        except ValueError:
            bundle_ip = None

    return Connectivity(
        version=raw.version or "",
        online=raw.online == 1,
        bundle_id=raw.bundle_id or "",
        bundle_ip=bundle_ip,
        links=tuple(decode_link(link) for link in raw.links),
    )
