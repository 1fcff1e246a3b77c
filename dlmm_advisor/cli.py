"""Command-line interface for the DLMM position advisor."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .errors import AdvisorError
from .logging_setup import configure_logging
from .models import StrategySimulationResult
from .services import Advisor


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="dlmm-advisor",
        description="Health grades and rebalancing advice for DLMM positions",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("check", help="Analyze positions and alert on urgent actions")
    sub.add_parser("report", help="Send the daily portfolio report")

    monitor_parser = sub.add_parser("monitor", help="Continuous monitoring loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    sim_parser = sub.add_parser("simulate", help="Project a strategy for one position")
    sim_parser.add_argument("wallet", help="Wallet label from config")
    sim_parser.add_argument("position_id", help="Position (pair) id")
    sim_parser.add_argument("strategy", help="Strategy profile name, e.g. narrow")
    sim_parser.add_argument(
        "--horizon",
        default=None,
        help="Time horizon such as 30d, 2w, 3m (default from config)",
    )

    return parser


def format_simulation(result: StrategySimulationResult) -> str:
    d = result.details
    return (
        f"Strategy:           {result.strategy}\n"
        f"Time horizon:       {result.time_horizon}\n"
        f"Expected return:    {result.expected_return:.2%}\n"
        f"Risk score:         {result.risk_score:.2f}\n"
        f"Confidence:         {result.confidence:.0%}\n"
        f"Volatility est.:    {result.volatility:.3f}\n"
        f"Fees projected:     ${d.fees_projected:,.2f}\n"
        f"IL projected:       ${d.il_projected:,.2f}\n"
        f"Capital efficiency: {d.capital_efficiency:.3f}"
    )


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    advisor = Advisor(config)

    if args.command == "check":
        await advisor.check_and_alert()
    elif args.command == "report":
        await advisor.generate_daily_report()
    elif args.command == "monitor":
        await advisor.run_continuous(args.interval)
    elif args.command == "simulate":
        result = await advisor.simulate_position(
            args.wallet, args.position_id, args.strategy, args.horizon
        )
        print(format_simulation(result))
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (AdvisorError, KeyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
