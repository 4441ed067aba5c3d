"""Entry point for the OTS loss tool."""

import logging
import sys
import time
from datetime import datetime, timezone

from otsloss.client import NfmtClient
from otsloss.config import RunConfig, load_config
from otsloss.errors import (
    EmptyReportError,
    OtsLossError,
    PowerParseError,
    TelemetryFormatError,
    TransportError,
)
from otsloss.fake_client import FakeTelemetryClient
from otsloss.logging_config import configure_logging
from otsloss.models import LookbackWindow
from otsloss.report import export_report
from otsloss.scheduler import LossReportScheduler

# Configure logging early
configure_logging()
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TRANSPORT = 1
EXIT_USAGE = 2
EXIT_CORRUPT_DATA = 3
EXIT_EMPTY_REPORT = 4


def create_client(config: RunConfig):
    """Pick the platform client for this run."""
    if config.use_fake_client:
        logger.info("Using FakeTelemetryClient (OTSLOSS_CLIENT=fake)")
        return FakeTelemetryClient.simulated()

    return NfmtClient(
        config.host,
        config.username,
        config.password,
        granularity=config.granularity,
        verify_tls=config.verify_tls,
        timeout_seconds=config.timeout_seconds,
    )


def run(config: RunConfig, client=None) -> int:
    """Compute and export the loss report, returning the process exit code."""
    run_timestamp = int(time.time())
    window = LookbackWindow.ending_at(datetime.now(timezone.utc), config.lookback_minutes)

    if client is None:
        client = create_client(config)

    try:
        with client:
            scheduler = LossReportScheduler(client, config.ld_type, window)
            records = scheduler.run()
    except TransportError as e:
        logger.error("Cannot reach NFM-T at %s: %s", config.host, e)
        return EXIT_TRANSPORT
    except (TelemetryFormatError, PowerParseError) as e:
        logger.error("Corrupt data from NFM-T at %s: %s", config.host, e)
        return EXIT_CORRUPT_DATA
    except EmptyReportError as e:
        logger.error("No loss report for LD type %s on %s: %s", config.ld_type, config.host, e)
        return EXIT_EMPTY_REPORT
    except OtsLossError as e:
        logger.error("Run failed on %s: %s", config.host, e)
        return EXIT_CORRUPT_DATA

    if scheduler.skipped:
        logger.warning("Connections without PM data: %s", ", ".join(scheduler.skipped))

    path = export_report(records, config.output_dir, run_timestamp)
    logger.info("SUCCESS: loss report file has been exported to %s", path)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the OTS loss tool."""
    try:
        config = load_config(argv)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_USAGE

    return run(config)


if __name__ == "__main__":
    sys.exit(main())
