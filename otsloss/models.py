"""Data models for OTS connections, fiber cores and PM telemetry."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from otsloss.errors import PowerParseError, TelemetryFormatError

OTS_CONNECTION_TYPE = "WdmPortType_ots"
RAMAN_GAIN_NOT_APPLICABLE = "N.A."


@dataclass(frozen=True)
class Connection:
    """A physical OTS connection from the platform inventory."""

    id: str
    label: str
    a_port: str = ""
    z_port: str = ""
    a2_port: str = ""
    z2_port: str = ""
    connection_type: str = ""

    @property
    def port_labels(self) -> tuple[str, str, str, str]:
        return (self.a_port, self.z_port, self.a2_port, self.z2_port)

    @property
    def is_ots(self) -> bool:
        return self.connection_type == OTS_CONNECTION_TYPE

    @classmethod
    def from_json(cls, record: dict) -> "Connection":
        """Decode one physicalConns record.

        The id is required since every later call is keyed on it. Port labels
        and the type tag default to empty strings, which simply never match.
        """
        if not isinstance(record, dict):
            raise TelemetryFormatError(f"Inventory record is not an object: {record!r}")
        if record.get("id") is None:
            raise TelemetryFormatError(f"Inventory record without id: {record!r}")

        return cls(
            id=str(record["id"]),
            label=_text(record.get("guiLabel")),
            a_port=_text(record.get("aPortLabel")),
            z_port=_text(record.get("zPortLabel")),
            a2_port=_text(record.get("a2PortLabel")),
            z2_port=_text(record.get("z2PortLabel")),
            connection_type=_text(record.get("wdmConnectionType")),
        )


@dataclass(frozen=True)
class FiberCore:
    """One core of an OTS as reported by the Fiber Characteristics view.

    Numeric fields keep the raw reported value (usually a string). A missing
    field is None; it is rejected when the loss calculator parses it.
    """

    from_label: str
    to_label: str
    egress_power: str | None
    ingress_power: str | None
    raman_gain: str | None

    @property
    def has_raman_gain(self) -> bool:
        return self.raman_gain != RAMAN_GAIN_NOT_APPLICABLE

    @classmethod
    def from_json(cls, record: dict) -> "FiberCore":
        if not isinstance(record, dict):
            raise TelemetryFormatError(f"Fiber characteristic is not an object: {record!r}")

        return cls(
            from_label=_text(record.get("fromLabel")),
            to_label=_text(record.get("toLabel")),
            egress_power=record.get("egressPowerOut"),
            ingress_power=record.get("ingressPowerIn"),
            raman_gain=record.get("targetGainStr"),
        )


@dataclass(frozen=True)
class PmSample:
    """A single PM observation for one port."""

    port: str
    value: str
    ts: datetime


@dataclass(frozen=True)
class PortPower:
    """The power chosen for one port and the time it was sampled."""

    value: float
    ts: datetime


@dataclass
class ReconciledPower:
    """Latest received power per port for one connection."""

    ports: dict[str, PortPower] = field(default_factory=dict)

    def get(self, port: str) -> PortPower | None:
        return self.ports.get(port)

    @property
    def sampled_at(self) -> datetime | None:
        """Timestamp of the first resolved port, used as a freshness hint."""
        for power in self.ports.values():
            return power.ts
        return None


@dataclass(frozen=True)
class LossRecord:
    """One row of the loss report."""

    connection_label: str
    egress_port: str
    egress_power: float
    ingress_port: str
    ingress_power: float
    raman_gain: float | None  # None when the core has no Raman amplifier
    total_loss: float

    def as_row(self) -> list[str]:
        gain = RAMAN_GAIN_NOT_APPLICABLE if self.raman_gain is None else repr(self.raman_gain)
        return [
            self.connection_label,
            self.egress_port,
            repr(self.egress_power),
            self.ingress_port,
            repr(self.ingress_power),
            gain,
            repr(self.total_loss),
        ]


@dataclass(frozen=True)
class LookbackWindow:
    """Time range used for PM queries."""

    start: datetime
    end: datetime

    @classmethod
    def ending_at(cls, end: datetime, minutes: int = 60) -> "LookbackWindow":
        if minutes <= 0:
            raise ValueError("Lookback must be positive")
        end = end.replace(second=0, microsecond=0)
        return cls(start=end - timedelta(minutes=minutes), end=end)

    @property
    def start_epoch(self) -> int:
        return int(self.start.timestamp())

    @property
    def end_epoch(self) -> int:
        return int(self.end.timestamp())


def parse_decimal(value, field_name: str, context: str = "") -> float:
    """Parse a reported power or gain value.

    Accepts numbers and numeric strings. Missing (None), empty and
    non-numeric values raise PowerParseError.
    """
    if value is None or isinstance(value, bool):
        raise PowerParseError(field_name, value, context)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError as e:
        raise PowerParseError(field_name, value, context) from e


def _text(value) -> str:
    return "" if value is None else str(value)
