# main.py

"""Entry point for the EC2 pricing tool (dashboard, API or CLI)."""

import argparse
import logging
import sys

from ec2_pricing.config.logging_config import (
    log_environment_summary,
    setup_logging,
)
from ec2_pricing.config.reference_data import RI_TERMS
from ec2_pricing.config.settings import Settings

logger = logging.getLogger("ec2_pricing.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ec2_pricing",
        description="AWS EC2 On-Demand, Reserved and Spot price tracker.",
        epilog="Run without arguments to launch the terminal dashboard.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Serve the REST API with the background price poller.",
    )
    mode.add_argument(
        "--poll-once",
        action="store_true",
        default=False,
        dest="poll_once",
        help="Record current Spot prices once, check alerts and exit.",
    )
    mode.add_argument(
        "--regions",
        action="store_true",
        default=False,
        help="List the supported AWS regions.",
    )
    mode.add_argument(
        "--savings",
        metavar="INSTANCE_TYPE",
        default=None,
        help="Print reserved and spot savings for an instance type.",
    )
    mode.add_argument(
        "--trend",
        metavar="INSTANCE_TYPE",
        default=None,
        help="Print stored min/max/avg/latest prices for an instance type.",
    )
    mode.add_argument(
        "--chart",
        metavar="INSTANCE_TYPE",
        default=None,
        help="Export a price history HTML chart for an instance type.",
    )
    parser.add_argument(
        "--region",
        default=Settings.AWS_REGION,
        help=f"Region id (default: {Settings.AWS_REGION}).",
    )
    parser.add_argument(
        "--os",
        choices=Settings.SUPPORTED_OS,
        default="Linux",
        dest="os_name",
        help="Operating system (default: Linux).",
    )
    parser.add_argument(
        "--hours",
        type=float,
        default=float(Settings.HOURS_PER_MONTH),
        help="Usage hours per month for --savings (default: 730).",
    )
    parser.add_argument(
        "--ri-term",
        choices=sorted(RI_TERMS),
        default="1yr",
        dest="ri_term",
        help="Reserved term for --savings (default: 1yr).",
    )
    parser.add_argument(
        "--ri-payment",
        choices=["no_upfront", "partial_upfront", "all_upfront"],
        default="no_upfront",
        dest="ri_payment",
        help="Reserved payment option for --savings.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=Settings.HISTORY_DEFAULT_DAYS,
        help="History window for --chart, in days.",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual dashboard."""
    from ec2_pricing.ui.app import EC2PricingApp

    try:
        app = EC2PricingApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during dashboard run", exc_info=True)
        raise
    finally:
        logger.info("ec2_pricing dashboard shutting down")


def main() -> None:
    """Route to the dashboard (no args), the API or a CLI report."""
    args = _build_parser().parse_args()

    log_file = setup_logging(prefix="serve" if args.serve else "run")
    logger.info("ec2_pricing starting, log file: %s", log_file)
    log_environment_summary()

    from ec2_pricing.cli import runner

    if args.serve:
        sys.exit(runner.run_server())
    elif args.poll_once:
        sys.exit(runner.run_poll_once())
    elif args.regions:
        sys.exit(runner.print_regions())
    elif args.savings:
        sys.exit(runner.run_savings(
            args.savings,
            args.region,
            args.os_name,
            args.hours,
            args.ri_term,
            args.ri_payment,
        ))
    elif args.trend:
        sys.exit(runner.print_trend(args.trend, args.region, args.os_name))
    elif args.chart:
        sys.exit(runner.run_export_chart(
            args.chart, args.region, args.os_name, args.days,
        ))
    else:
        _run_tui()


if __name__ == "__main__":
    main()
