"""In-memory management platform for tests and dry runs."""

import random
from datetime import datetime, timedelta, timezone

from otsloss.client import PM_METRIC_KEY
from otsloss.errors import TransportError
from otsloss.models import OTS_CONNECTION_TYPE, Connection, FiberCore, LookbackWindow
from otsloss.reconciler import FAR_END_SUFFIX, PM_TIME_FORMAT


def pm_document(rows: list[dict]) -> dict:
    """Wrap PM rows in the document shape returned by the PM query."""
    return {"objGraphDataMap": [{"graphDataMap": {PM_METRIC_KEY: {"pmdata": rows}}}]}


class FakeTelemetryClient:
    """Serves a fixed platform snapshot through the TelemetryClient protocol."""

    def __init__(
        self,
        inventory: list[Connection] | None = None,
        characteristics: dict[str, list[FiberCore]] | None = None,
        managed_ids: list[tuple[str, str]] | None = None,
        pm_series: dict[str, dict] | None = None,
        host: str = "fake",
    ):
        self.inventory = list(inventory or [])
        self.characteristics = dict(characteristics or {})
        self.managed_ids = list(managed_ids or [])
        self.pm_series = dict(pm_series or {})
        self.host = host

    def __enter__(self) -> "FakeTelemetryClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def fetch_inventory(self) -> list[Connection]:
        return list(self.inventory)

    def fetch_characteristics(self, connection_id: str) -> list[FiberCore]:
        if connection_id not in self.characteristics:
            raise TransportError(self.host, f"GET fiberCharacteristic {connection_id}", "Not Found", 404)
        return list(self.characteristics[connection_id])

    def fetch_managed_connection_ids(self) -> list[tuple[str, str]]:
        return list(self.managed_ids)

    def fetch_pm_series(self, object_id: str, window: LookbackWindow) -> dict:
        return self.pm_series.get(object_id, {"objGraphDataMap": []})

    @classmethod
    def simulated(cls, seed: int | None = None, connections: int = 4, now: datetime | None = None):
        """Generate a plausible RA2P network.

        Every other connection is a non-Raman OTS, and the last RA2P
        connection has no PM data so dry runs show the skip path.
        """
        rng = random.Random(seed)
        if now is None:
            now = datetime.now(timezone.utc).replace(tzinfo=None)
        now = now.replace(second=0, microsecond=0)

        client = cls()
        ra2p_ids = []
        for index in range(connections):
            connection_id = str(1000 + index)
            label = f"OTS-{index + 1:02d}"
            card = "RA2P" if index % 2 == 0 else "LD4P"
            connection = Connection(
                id=connection_id,
                label=label,
                a_port=f"1/{index + 2}/{card}-LINE",
                z_port=f"2/{index + 2}/{card}-LINE",
                a2_port=f"1/{index + 2}/{card}-OSC",
                z2_port=f"2/{index + 2}/{card}-OSC",
                connection_type=OTS_CONNECTION_TYPE,
            )
            client.inventory.append(connection)
            client.managed_ids.append((label, f"pm-{connection_id}"))
            if card == "RA2P":
                ra2p_ids.append(connection_id)

            cores = []
            for far_port, near_port in ((connection.z2_port, connection.a2_port), (connection.z_port, connection.a_port)):
                egress = round(rng.uniform(-2.0, 4.0), 2)
                ingress = round(egress - rng.uniform(15.0, 25.0), 2)
                gain = f"{rng.uniform(8.0, 14.0):.1f}" if card == "RA2P" else "N.A."
                cores.append(
                    FiberCore(
                        from_label=near_port,
                        to_label=far_port,
                        egress_power=f"{egress}",
                        ingress_power=f"{ingress}",
                        raman_gain=gain,
                    )
                )
            client.characteristics[connection_id] = cores

            rows = []
            for step in range(4):
                ts = now - timedelta(minutes=15 * step)
                rows.append(
                    {
                        "Time": ts.strftime(PM_TIME_FORMAT),
                        connection.z_port: f"{rng.uniform(-22.0, -12.0):.2f}",
                        connection.z2_port + FAR_END_SUFFIX: f"{rng.uniform(-22.0, -12.0):.2f}",
                    }
                )
            client.pm_series[f"pm-{connection_id}"] = pm_document(rows)

        if len(ra2p_ids) > 1:
            client.pm_series[f"pm-{ra2p_ids[-1]}"] = pm_document([])

        return client
