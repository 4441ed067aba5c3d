"""CSV export of the loss report."""

import csv
import logging
import time
from pathlib import Path

from otsloss.models import LossRecord

logger = logging.getLogger(__name__)

REPORT_HEADER = [
    "OTS Name",
    "Egress Port",
    "Egress Power",
    "Ingress Port",
    "Ingress Power",
    "Raman Gain",
    "Total Loss",
]


def report_filename(timestamp: int | None = None) -> str:
    """Name of the report file, suffixed with the run's Unix timestamp."""
    if timestamp is None:
        timestamp = int(time.time())
    return f"output_{timestamp}.csv"


def export_report(records: list[LossRecord], output_dir: str | Path = ".", timestamp: int | None = None) -> Path:
    """Write the loss records to a CSV file.

    Args:
        records: Loss records, one row each
        output_dir: Directory the file is created in
        timestamp: Unix timestamp for the file name (default: now)

    Returns:
        Path of the written file
    """
    path = Path(output_dir) / report_filename(timestamp)

    with open(path, "w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(REPORT_HEADER)
        for record in records:
            writer.writerow(record.as_row())

    logger.info("Loss report exported: %s (%d rows)", path, len(records))
    return path
