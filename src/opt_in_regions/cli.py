"""Opt-in Regions Automation - operator entry point.

Runs a single poll cycle from an operator workstation with the same logic
the is-complete handler uses, and prints the status of every account and
region pair.
"""

import sys
import argparse
import logging
from typing import List, Optional

from .core.aws_client import AWSClientManager
from .core.config import Configuration, ConfigurationError
from .core.errors import OptInRegionsError, PropsValidationError
from .core.props import OptInRegionsProps
from .regions.poller import OptInRegionsPoller, PollResult


EXIT_COMPLETE = 0
EXIT_ERROR = 1
EXIT_PENDING = 2
EXIT_INTERRUPTED = 130


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Enable opt-in AWS regions across member accounts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Auto-detect config.yaml, run one poll cycle
  %(prog)s config.yaml              # Use specific configuration file
  %(prog)s --validate-only          # Only validate the configuration
        """,
    )

    parser.add_argument(
        "config_file",
        nargs="?",
        help="Path to configuration file (default: auto-detect config.yaml)",
    )

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Only validate the configuration, do not call AWS",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="AWS Opt-in Regions Automation v1.0.0",
    )

    parser.add_argument(
        "--profile", help="AWS profile name to use for credentials"
    )

    parser.add_argument(
        "--region", help="Home region (overrides configuration file)"
    )

    parser.add_argument(
        "--log-level", help="Log level (overrides configuration file)"
    )

    return parser.parse_args(argv)


def print_report(result: PollResult) -> None:
    """Print the outcome of every pair."""
    print("-" * 50)
    if result.error:
        print(f"❌ Poll cycle failed: {result.error}")
    for outcome in result.outcomes:
        if outcome.is_complete:
            symbol = "✅"
        elif outcome.error:
            symbol = "❌"
        else:
            symbol = "⏳"
        detail = outcome.error or outcome.status or "UNKNOWN"
        print(f"{symbol} {outcome.account_id} {outcome.region}: {detail}")
    if not result.outcomes and not result.error:
        print("No member account requires an opt-in region.")
    print("-" * 50)

    if result.is_complete:
        print("✅ All requested opt-in regions are enabled.")
    else:
        print(f"⏳ {len(result.pending)} pair(s) still pending, run again later.")


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point.

    Returns:
        Exit code (0 complete, 2 pending, 1 error)
    """
    try:
        args = parse_arguments(argv)

        try:
            config = Configuration(args.config_file)
            props_dict = config.get_props_dict()
            if args.region:
                props_dict["homeRegion"] = args.region
            props = OptInRegionsProps.from_dict(props_dict)
            settings = config.get_poller_settings()
        except (ConfigurationError, PropsValidationError) as e:
            print(f"❌ Configuration error: {e}")
            return EXIT_ERROR

        logging.basicConfig(
            level=(args.log_level or config.get_log_level()).upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        print(
            f"📄 {len(props.account_ids)} account(s), "
            f"{len(props.enabled_regions)} region(s), home region {props.home_region}"
        )

        if args.validate_only:
            print("✅ Configuration is valid.")
            return EXIT_COMPLETE

        try:
            aws_client = AWSClientManager(
                profile_name=args.profile or config.get_profile_name(),
                region_name=props.home_region,
            )
        except Exception as e:
            print(f"❌ AWS client initialization failed: {e}")
            return EXIT_ERROR

        poller = OptInRegionsPoller(aws_client, settings)
        result = poller.process_all_accounts_regions(props)
        print_report(result)

        return EXIT_COMPLETE if result.is_complete else EXIT_PENDING

    except KeyboardInterrupt:
        print("\n\n👋 Operation cancelled by user.")
        return EXIT_INTERRUPTED

    except OptInRegionsError as e:
        print(f"\n❌ Poll cycle aborted: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
