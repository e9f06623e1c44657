"""
Operator CLI for class treasuries.

Usage:
    python -m treasury_kernel.cli [--config FILE] [--db-url URL] COMMAND ...

Commands:
    init-db                         create tables
    open-treasury CLASS             create a zeroed treasury (idempotent)
    set-rates CLASS NAME=RATE ...   store rate overrides (wire names)
    reset-rates CLASS               drop overrides, fall back to defaults
    show CLASS [--records N]        balance, effective rates, recent records
"""

import argparse
import logging
import sys
from dataclasses import replace
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError

from treasury_kernel.config import load_config
from treasury_kernel.db.engine import create_tables, reset_engine, session_scope
from treasury_kernel.exceptions import TreasuryKernelError
from treasury_kernel.ledger import Ledger, bootstrap
from treasury_kernel.selectors.treasury_selector import TreasurySelector
from treasury_kernel.services.treasury_service import TreasuryService

W = 60


def _parse_assignments(pairs: list[str]) -> dict[str, Decimal]:
    rates: dict[str, Decimal] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"expected NAME=RATE, got {pair!r}")
        try:
            rates[name] = Decimal(value)
        except InvalidOperation:
            raise ValueError(f"rate for {name} is not a number: {value!r}") from None
    return rates


def _cmd_init_db(ledger: Ledger, args: argparse.Namespace) -> int:
    create_tables()
    print("  Tables created.")
    return 0


def _cmd_open_treasury(ledger: Ledger, args: argparse.Namespace) -> int:
    with session_scope() as session:
        treasury = TreasuryService(session, ledger.defaults).open_treasury(args.class_code)
        print(f"  Treasury {treasury.class_code}: total {treasury.total_amount:,}")
    return 0


def _cmd_set_rates(ledger: Ledger, args: argparse.Namespace) -> int:
    rates = _parse_assignments(args.assignments)
    with session_scope() as session:
        effective = TreasuryService(session, ledger.defaults).update_tax_settings(
            args.class_code, rates
        )
    _print_rates(effective.to_dict())
    return 0


def _cmd_reset_rates(ledger: Ledger, args: argparse.Namespace) -> int:
    with session_scope() as session:
        removed = TreasuryService(session, ledger.defaults).reset_tax_settings(
            args.class_code
        )
    print("  Overrides removed." if removed else "  No overrides stored.")
    return 0


def _cmd_show(ledger: Ledger, args: argparse.Namespace) -> int:
    with session_scope() as session:
        selector = TreasurySelector(session)
        summary = selector.get_summary(args.class_code)
        if summary is None:
            print(f"  No treasury for class {args.class_code}.")
            return 1

        print()
        print("=" * W)
        print(f"TREASURY {summary.class_code}".center(W))
        print("=" * W)
        print(f"  {'Total':<30} {summary.total_amount:>20,}")
        for category, amount in summary.revenue.items():
            print(f"    {category.value:<28} {amount:>20,}")
        print(f"  Last updated: {summary.last_updated or '-'}")

        check = selector.verify_ledger(args.class_code)
        status = "balanced" if check.is_balanced else f"OFF BY {check.difference:,}"
        print(f"  Ledger check: {status}")

        print()
        _print_rates(ledger.resolver.get_rates(args.class_code).to_dict())

        records = selector.list_tax_records(args.class_code, limit=args.records)
        print()
        print(f"  Recent tax records ({len(records)}):")
        for record in records:
            print(
                f"    {record.timestamp}  {record.category.value:<12} "
                f"{record.amount:>10,}  {record.description}"
            )
    return 0


def _print_rates(rates: dict[str, Decimal]) -> None:
    print("  Effective rates:")
    for name, rate in rates.items():
        print(f"    {name:<30} {rate}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treasury-ledger",
        description="Manage classroom treasuries and tax settings.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  treasury-ledger --db-url sqlite:///treasury.db init-db\n"
            "  treasury-ledger open-treasury 3-2\n"
            "  treasury-ledger set-rates 3-2 incomeTaxRate=0.12 salaryTaxRate=0.08\n"
            "  treasury-ledger show 3-2 --records 20\n"
        ),
    )
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--db-url", type=str, default=None, help="Database URL")
    parser.add_argument(
        "--verbose", action="store_true", help="Emit structured logs to stderr"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create tables")
    p.set_defaults(handler=_cmd_init_db)

    p = sub.add_parser("open-treasury", help="Create a class treasury")
    p.add_argument("class_code")
    p.set_defaults(handler=_cmd_open_treasury)

    p = sub.add_parser("set-rates", help="Store tax rate overrides")
    p.add_argument("class_code")
    p.add_argument("assignments", nargs="+", metavar="NAME=RATE")
    p.set_defaults(handler=_cmd_set_rates)

    p = sub.add_parser("reset-rates", help="Remove tax rate overrides")
    p.add_argument("class_code")
    p.set_defaults(handler=_cmd_reset_rates)

    p = sub.add_parser("show", help="Show a class treasury")
    p.add_argument("class_code")
    p.add_argument("--records", type=int, default=10)
    p.set_defaults(handler=_cmd_show)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.verbose:
        logging.disable(logging.CRITICAL)

    try:
        config = load_config(args.config)
        if args.db_url:
            config = replace(config, database=replace(config.database, url=args.db_url))
        ledger = bootstrap(config)
        return args.handler(ledger, args)
    except (TreasuryKernelError, SQLAlchemyError, ValueError, OSError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        reset_engine()
        if not args.verbose:
            logging.disable(logging.NOTSET)


if __name__ == "__main__":
    sys.exit(main())
