"""Connection selection and fiber characteristics resolution."""

import logging

from otsloss.client import TelemetryClient
from otsloss.models import Connection, FiberCore

logger = logging.getLogger(__name__)


def matches_ld_type(connection: Connection, ld_type: str) -> bool:
    """Check whether a connection is an OTS carrying the given LD type.

    Port labels embed the card type (e.g. "1/3/RA2P-LINE"), so the token is
    matched as a case-sensitive substring of any of the four labels.
    """
    if not connection.is_ots:
        return False
    return any(ld_type in label for label in connection.port_labels)


def select_connections(inventory: list[Connection], ld_type: str) -> list[Connection]:
    """Filter the inventory down to OTS connections with the given LD type.

    An empty result is not an error.
    """
    selected = [connection for connection in inventory if matches_ld_type(connection, ld_type)]
    logger.info(
        "Selected %d of %d connections for LD type %s", len(selected), len(inventory), ld_type
    )
    return selected


def resolve_fiber_characteristics(client: TelemetryClient, connection: Connection) -> list[FiberCore]:
    """Fetch the fiber cores of a connection, keeping the platform's order."""
    logger.info("Retrieving the fiber characteristics for OTS %s", connection.label)
    cores = client.fetch_characteristics(connection.id)
    logger.debug("OTS %s has %d cores", connection.label, len(cores))
    return cores


def index_pm_object_ids(pairs: list[tuple[str, str]]) -> dict[str, str]:
    """Map connection display labels to PM object ids (later entries win)."""
    index = {}
    for label, object_id in pairs:
        index[label] = object_id
    return index


def far_side_ports(connection: Connection) -> list[str]:
    """Ports whose received power is reconciled: secondary then primary Z end."""
    return [connection.z2_port, connection.z_port]
