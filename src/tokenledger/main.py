"""Command-line host for a journaled token ledger."""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation, localcontext
from typing import Sequence

import orjson
import structlog
from prometheus_client import generate_latest

from tokenledger.config.settings import Settings, load_settings
from tokenledger.ledger import EventJournal, HostError, LedgerError, LedgerHost
from tokenledger.monitoring import LedgerMetrics, configure_logging
from tokenledger.utils import JournalLock, JournalLocked

log = structlog.get_logger(__name__)


def parse_cli_amount(text: str, decimals: int, human: bool) -> int:
    """Parse a CLI amount; with `human` the value is scaled by 10**decimals."""
    with localcontext() as ctx:
        ctx.prec = 100
        try:
            value = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"not a number: {text!r}") from exc
        if not value.is_finite():
            raise ValueError(f"not a number: {text!r}")
        if human:
            value = value.scaleb(decimals)
        if value != value.to_integral_value():
            raise ValueError(f"{text!r} has more precision than {decimals} decimals")
        return int(value)


def format_units(amount: int, decimals: int) -> str:
    """Render base units as a human-scale decimal string."""
    if decimals == 0:
        return str(amount)
    whole, frac = divmod(amount, 10**decimals)
    frac_text = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_text}" if frac_text else str(whole)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokenledger",
        description="Run transfers and approvals against a journaled token ledger.",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument(
        "--human",
        action="store_true",
        help="Read and print amounts in whole tokens instead of base units",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the ledger from the token config")
    sub.add_parser("info", help="Show token metadata and supply")
    sub.add_parser(
        "metrics", help="Print metrics for the whole journal in Prometheus text format"
    )

    balance = sub.add_parser("balance", help="Show an account balance")
    balance.add_argument("account")

    allowance = sub.add_parser("allowance", help="Show a spender allowance")
    allowance.add_argument("owner")
    allowance.add_argument("spender")

    transfer = sub.add_parser("transfer", help="Transfer tokens")
    transfer.add_argument("sender")
    transfer.add_argument("to")
    transfer.add_argument("amount")

    approve = sub.add_parser("approve", help="Set a spender allowance")
    approve.add_argument("owner")
    approve.add_argument("spender")
    approve.add_argument("amount")

    transfer_from = sub.add_parser("transfer-from", help="Transfer tokens using an allowance")
    transfer_from.add_argument("spender")
    transfer_from.add_argument("owner")
    transfer_from.add_argument("to")
    transfer_from.add_argument("amount")

    events = sub.add_parser("events", help="Show recent journal events")
    events.add_argument("--tail", type=int, default=20, help="Number of recent events")
    return parser


def _run(args: argparse.Namespace, settings: Settings) -> int:
    journal = EventJournal(settings.storage.journal_path)
    metrics = LedgerMetrics()

    if args.command == "init":
        existed = not journal.is_empty()
        host = LedgerHost.open(journal, settings.token, metrics)
        ledger = host.ledger
        if existed:
            print(f"Ledger already initialized: {ledger.name} ({ledger.symbol})")
        else:
            print(
                f"Created {ledger.name} ({ledger.symbol}): "
                f"{_amount(ledger.total_supply, ledger.decimals, args.human)} "
                f"credited to {ledger.creator}"
            )
        return 0

    host = LedgerHost.open(journal, metrics=metrics)
    ledger = host.ledger
    decimals = ledger.decimals

    if args.command == "info":
        print(f"name: {ledger.name}")
        print(f"symbol: {ledger.symbol}")
        print(f"decimals: {decimals}")
        print(f"total_supply: {_amount(ledger.total_supply, decimals, args.human)}")
        print(f"last_sequence: {journal.last_sequence()}")
    elif args.command == "metrics":
        sys.stdout.write(generate_latest(metrics.registry).decode("utf-8"))
    elif args.command == "balance":
        print(_amount(ledger.balance_of(args.account), decimals, args.human))
    elif args.command == "allowance":
        print(_amount(ledger.allowance(args.owner, args.spender), decimals, args.human))
    elif args.command == "transfer":
        amount = parse_cli_amount(args.amount, decimals, args.human)
        event = host.transfer(args.sender, args.to, amount)
        _print_event(event.name, event.args(), decimals, args.human)
    elif args.command == "approve":
        amount = parse_cli_amount(args.amount, decimals, args.human)
        event = host.approve(args.owner, args.spender, amount)
        _print_event(event.name, event.args(), decimals, args.human)
    elif args.command == "transfer-from":
        amount = parse_cli_amount(args.amount, decimals, args.human)
        event = host.transfer_from(args.spender, args.owner, args.to, amount)
        _print_event(event.name, event.args(), decimals, args.human)
    elif args.command == "events":
        for record in host.recent_events(args.tail):
            print(orjson.dumps(record.to_dict()).decode("utf-8"))
    return 0


def _amount(value: int, decimals: int, human: bool) -> str:
    return format_units(value, decimals) if human else str(value)


def _print_event(name: str, event_args: dict, decimals: int, human: bool) -> None:
    fields = dict(event_args)
    fields["value"] = _amount(fields["value"], decimals, human)
    rendered = " ".join(f"{key}={value}" for key, value in fields.items())
    print(f"{name} {rendered}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    configure_logging(
        settings.monitoring.log_level,
        settings.storage.logs_path,
        settings.monitoring,
    )

    try:
        with JournalLock(settings.lock_path):
            return _run(args, settings)
    except JournalLocked as exc:
        log.error("journal_locked", lock_path=exc.lock_path, pid=exc.pid)
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except LedgerError as exc:
        print(f"error: {exc.code}: {exc}", file=sys.stderr)
        return 1
    except HostError as exc:
        log.error("host_error", error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
