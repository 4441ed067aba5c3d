"""Aggregation scheduler: fans loss computation out across connections and cores."""

import logging

from PySide6.QtCore import QThreadPool

from otsloss.calculator import calculate_core_loss
from otsloss.client import TelemetryClient
from otsloss.errors import EmptyReportError
from otsloss.models import Connection, LookbackWindow, LossRecord
from otsloss.reconciler import reconcile_port_power
from otsloss.selector import (
    far_side_ports,
    index_pm_object_ids,
    resolve_fiber_characteristics,
    select_connections,
)
from otsloss.workers import ConnectionWorker, ReportCollector, TaskWorker

logger = logging.getLogger(__name__)


class LossReportScheduler:
    """Computes the loss report for every OTS of one LD type.

    Key features:
    - One worker per selected connection, all running at once
    - Per connection, characteristics and PM power are fetched in parallel
    - One worker per fiber core for the loss calculation
    - Connections without telemetry are skipped; any other error aborts

    Thread-safe: connection fragments go through a mutex-guarded collector,
    core results are read from their workers after the pool drains.
    """

    def __init__(self, client: TelemetryClient, ld_type: str, window: LookbackWindow):
        """Initialize the scheduler.

        Args:
            client: Telemetry client shared by all workers
            ld_type: LD type token used for selection and ingress policy
            window: Lookback window for PM queries
        """
        if not ld_type:
            raise ValueError("LD type cannot be empty")

        self.client = client
        self.ld_type = ld_type
        self.window = window
        self.skipped: list[str] = []

    def run(self) -> list[LossRecord]:
        """Build the report.

        Returns:
            Loss records sorted by connection label and egress port

        Raises:
            EmptyReportError: No connection produced a record
            OtsLossError: Any fatal transport, format or parse error
        """
        connections = select_connections(self.client.fetch_inventory(), self.ld_type)
        if not connections:
            raise EmptyReportError(f"No OTS connection matches LD type {self.ld_type}")

        pm_object_ids = index_pm_object_ids(self.client.fetch_managed_connection_ids())

        collector = ReportCollector()
        pool = QThreadPool()
        pool.setMaxThreadCount(len(connections))

        workers = [
            ConnectionWorker(self.process_connection, connection, pm_object_ids.get(connection.label), collector)
            for connection in connections
        ]
        for worker in workers:
            pool.start(worker)
        pool.waitForDone()

        if collector.error is not None:
            raise collector.error

        self.skipped = collector.skipped
        records = collector.records
        logger.info(
            "Report built: %d records, %d connections skipped", len(records), len(self.skipped)
        )
        if not records:
            raise EmptyReportError("No PM data has been collected for any connection")

        return sorted(records, key=lambda record: (record.connection_label, record.egress_port))

    def process_connection(self, connection: Connection, object_id: str | None) -> list[LossRecord] | None:
        """Compute the records of one connection.

        Returns:
            Records for every core, or None when telemetry is unavailable
        """
        if not object_id:
            logger.warning("OTS %s is not managed by the PM application, skipping", connection.label)
            return None

        fetch_pool = QThreadPool()
        fetch_pool.setMaxThreadCount(2)
        characteristics = TaskWorker(
            f"characteristics {connection.label}",
            resolve_fiber_characteristics,
            self.client,
            connection,
        )
        power = TaskWorker(
            f"pm {connection.label}",
            reconcile_port_power,
            self.client,
            far_side_ports(connection),
            object_id,
            self.window,
        )
        fetch_pool.start(characteristics)
        fetch_pool.start(power)
        fetch_pool.waitForDone()

        for worker in (characteristics, power):
            if worker.error is not None:
                raise worker.error

        reconciled = power.result
        if reconciled is None:
            logger.warning("OTS %s has no PM data in the lookback window, skipping", connection.label)
            return None

        cores = characteristics.result
        if not cores:
            return []

        core_pool = QThreadPool()
        core_pool.setMaxThreadCount(len(cores))
        core_workers = [
            TaskWorker(
                f"core {connection.label} {core.from_label}",
                calculate_core_loss,
                connection,
                self.ld_type,
                core,
                reconciled,
            )
            for core in cores
        ]
        for worker in core_workers:
            core_pool.start(worker)
        core_pool.waitForDone()

        records = []
        for worker in core_workers:
            if worker.error is not None:
                raise worker.error
            if worker.result is not None:
                records.append(worker.result)
        return records
