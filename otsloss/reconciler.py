"""PM sample reconciliation: pick the latest received power per port."""

import logging
from datetime import datetime

from otsloss.client import PM_METRIC_KEY, TelemetryClient
from otsloss.errors import TelemetryFormatError
from otsloss.models import LookbackWindow, PmSample, PortPower, ReconciledPower, parse_decimal

logger = logging.getLogger(__name__)

PM_TIME_FORMAT = "%m/%d/%Y %H:%M"

# The platform reports the same physical port under either its bare label or
# the label with this suffix, depending on which network element answered.
FAR_END_SUFFIX = "(Z End)"


def port_aliases(port: str) -> tuple[str, str]:
    """Keys under which a port may appear in a PM row, bare label first."""
    return (port, port + FAR_END_SUFFIX)


def parse_pm_time(value) -> datetime:
    """Parse a PM row timestamp (minute precision, UTC)."""
    try:
        return datetime.strptime(str(value).strip(), PM_TIME_FORMAT)
    except ValueError as e:
        raise TelemetryFormatError(f"Unparseable PM timestamp: {value!r}") from e


def extract_pm_rows(document: dict) -> list[dict]:
    """Return the receive-power rows of a PM query document.

    A missing object list or metric means nothing was collected and yields an
    empty list. Anything present but of the wrong type is a format error.
    """
    graphs = document.get("objGraphDataMap")
    if not graphs:
        return []
    if not isinstance(graphs, list) or not isinstance(graphs[0], dict):
        raise TelemetryFormatError("objGraphDataMap is not a list of objects")

    graph_data = graphs[0].get("graphDataMap") or {}
    if not isinstance(graph_data, dict):
        raise TelemetryFormatError("graphDataMap is not an object")

    metric = graph_data.get(PM_METRIC_KEY) or {}
    if not isinstance(metric, dict):
        raise TelemetryFormatError(f"{PM_METRIC_KEY} is not an object")

    rows = metric.get("pmdata") or []
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise TelemetryFormatError("pmdata is not a list of objects")
    return rows


def collect_port_samples(rows: list[dict], port: str) -> list[PmSample]:
    """Collect every sample reported for a port, empty values included.

    Rows that carry neither alias of the port are not samples for it. A null
    value is kept as the empty string (no measurement that interval).
    """
    samples = []
    for row in rows:
        for key in port_aliases(port):
            if key in row:
                value = row[key]
                break
        else:
            continue

        value = "" if value is None else str(value)
        samples.append(PmSample(port=port, value=value, ts=parse_pm_time(row.get("Time"))))
    return samples


def select_latest_sample(samples: list[PmSample]) -> PmSample | None:
    """Return the non-empty sample with the latest timestamp.

    Equal timestamps fall back to the raw value so the choice does not depend
    on the order the platform listed the rows in.

    Returns:
        The chosen sample, or None when every sample is empty
    """
    candidates = [sample for sample in samples if sample.value != ""]
    if not candidates:
        return None
    return max(candidates, key=lambda sample: (sample.ts, sample.value))


def reconcile_rows(rows: list[dict], ports: list[str]) -> ReconciledPower | None:
    """Reconcile already-extracted PM rows for the requested ports (pure function).

    A port with only empty samples is left out of the result. Returns None
    when there are no rows or when none of the requested ports resolves.

    Raises:
        PowerParseError: The selected value is not a number
    """
    if not rows:
        return None

    reconciled = ReconciledPower()
    for port in ports:
        sample = select_latest_sample(collect_port_samples(rows, port))
        if sample is None:
            logger.info("No non-empty PM sample for port %s", port)
            continue
        reconciled.ports[port] = PortPower(
            value=parse_decimal(sample.value, "PM received power", port),
            ts=sample.ts,
        )

    if not reconciled.ports:
        return None
    return reconciled


def reconcile_port_power(
    client: TelemetryClient,
    ports: list[str],
    object_id: str,
    window: LookbackWindow,
) -> ReconciledPower | None:
    """Query PM data for one connection and pick the latest power per port.

    Args:
        client: Telemetry client used for the PM query
        ports: Port labels to resolve (far-side secondary then primary)
        object_id: PM object id of the connection
        window: Lookback window for the query

    Returns:
        ReconciledPower, or None when telemetry is unavailable
    """
    for port in ports:
        logger.info("Retrieving the RX power on %s", port)

    rows = extract_pm_rows(client.fetch_pm_series(object_id, window))
    reconciled = reconcile_rows(rows, ports)
    if reconciled is None:
        logger.warning("PM data not found for %s", " - ".join(ports))
        return None

    logger.info("Using PM data sampled at %s UTC", reconciled.sampled_at)
    return reconciled
