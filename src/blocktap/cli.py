"""Command line entry points.

Each capability is its own console script (blocktap-balances,
blocktap-transfers, blocktap-relay); ``python -m blocktap <command>`` runs the
same functions.
"""
import argparse
import asyncio
import logging
import sys

from blocktap.balances import run_balances
from blocktap.config import BalanceConfig, RelayConfig, TransferConfig, load_config
from blocktap.errors import BlocktapError
from blocktap.logging_config import setup_logging
from blocktap.relay import run_relay
from blocktap.transfers import run_transfers

log = logging.getLogger("blocktap.cli")

COMMANDS = {
    "balances": (BalanceConfig, run_balances, "Print the SOL balance of every configured wallet"),
    "transfers": (TransferConfig, run_transfers, "Execute every configured transfer concurrently"),
    "relay": (RelayConfig, run_relay, "Submit the configured transfer on every new finalized block"),
}


def _add_config_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument("-c", "--config", default=None,
                   help="Path to the TOML config (default: $BLOCKTAP_CONFIG or ./config.toml)")


def run_command(command: str, config: str | None = None) -> int:
    model, runner, _ = COMMANDS[command]
    setup_logging()
    try:
        cfg = load_config(model, config)
        asyncio.run(runner(cfg))
    except BlocktapError as e:
        log.error("%s failed: %s", command, e)
        return 1
    except KeyboardInterrupt:
        log.info("%s interrupted", command)
        return 130
    return 0


def _single(command: str, argv: list[str] | None) -> int:
    p = argparse.ArgumentParser(prog=f"blocktap-{command}", description=COMMANDS[command][2])
    _add_config_arg(p)
    args = p.parse_args(argv)
    return run_command(command, args.config)


def balances_main(argv: list[str] | None = None) -> int:
    return _single("balances", argv)


def transfers_main(argv: list[str] | None = None) -> int:
    return _single("transfers", argv)


def relay_main(argv: list[str] | None = None) -> int:
    return _single("relay", argv)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="blocktap")
    sub = p.add_subparsers(dest="command", required=True)
    for name, (_, _, help_text) in COMMANDS.items():
        _add_config_arg(sub.add_parser(name, help=help_text))
    args = p.parse_args(argv)
    return run_command(args.command, args.config)


if __name__ == "__main__":
    sys.exit(main())
