"""Run configuration from command-line flags and environment variables."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RunConfig:
    """Settings for one loss report run."""

    host: str = "127.0.0.1"
    username: str = "admin"
    password: str = ""
    ld_type: str = "RA2P"
    output_dir: Path = Path(".")
    lookback_minutes: int = 60
    granularity: str = "15mins"
    verify_tls: bool = False
    timeout_seconds: float = 30.0
    use_fake_client: bool = False

    def __post_init__(self):
        """Reject settings that would make every query meaningless."""
        if not self.host or not self.host.strip():
            raise ValueError("host cannot be empty")
        if not self.ld_type:
            raise ValueError("LD type cannot be empty")
        if self.lookback_minutes <= 0:
            raise ValueError("lookback_minutes must be positive")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="otsloss",
        description="Calculate per-core OTS fiber loss from NFM-T fiber characteristics and PM data.",
        epilog="Example: otsloss -u admin -p password -i 192.168.0.1 -l RA2P",
    )
    parser.add_argument("-u", "--username", default="admin", help="NFM-T username (default: admin)")
    parser.add_argument("-p", "--password", default=None, help="NFM-T password (or OTSLOSS_PASSWORD)")
    parser.add_argument("-i", "--host", default="127.0.0.1", help="NFM-T IP address (default: 127.0.0.1)")
    parser.add_argument("-l", "--ld-type", default="RA2P", help="LD type token (default: RA2P)")
    parser.add_argument("-o", "--output-dir", default=".", type=Path, help="Directory for the CSV report")
    parser.add_argument(
        "--lookback-minutes", default=60, type=int, help="PM lookback window in minutes (default: 60)"
    )
    parser.add_argument("--verify-tls", action="store_true", help="Verify the platform's TLS certificate")
    return parser


def load_config(argv: list[str] | None = None, environ: dict | None = None) -> RunConfig:
    """Build the run configuration.

    Environment Variables:
        OTSLOSS_PASSWORD: Password used when -p is not given
        OTSLOSS_CLIENT: "fake" runs against the simulated platform
    """
    if environ is None:
        environ = os.environ

    args = build_parser().parse_args(argv)
    password = args.password
    if password is None:
        password = environ.get("OTSLOSS_PASSWORD", "")

    return RunConfig(
        host=args.host,
        username=args.username,
        password=password,
        ld_type=args.ld_type,
        output_dir=args.output_dir,
        lookback_minutes=args.lookback_minutes,
        verify_tls=args.verify_tls,
        use_fake_client=environ.get("OTSLOSS_CLIENT", "").lower() == "fake",
    )
