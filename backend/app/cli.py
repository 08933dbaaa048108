"""Management CLI for the ledger.

Usage:
    python -m app.cli init-ledger --admin SP... [--oracle SP...]
    python -m app.cli show-ledger          # counter, admin, oracle, pause flag
    python -m app.cli verify-ledger        # integrity audit; exit 1 on issues
"""

import argparse
import asyncio
import sys

from app.database import async_session
from app.ledger.principal import parse_principal
from app.ledger.service import load_ledger_state
from app.services.audit import verify_ledger
from app.services.bootstrap import initialise_ledger


async def init_ledger(admin_raw: str, oracle_raw: str | None) -> int:
    try:
        admin = parse_principal(admin_raw)
        oracle = parse_principal(oracle_raw)
    except ValueError as e:
        print(f"Invalid principal: {e}")
        return 2
    if admin is None:
        print("--admin must be a real principal (not empty or the burn address).")
        return 2

    async with async_session() as db:
        state, created = await initialise_ledger(db, admin, oracle)
        await db.commit()

    if created:
        print(f"  Ledger initialised. admin={state.admin} oracle={state.oracle or '-'}")
    else:
        print(f"  Ledger already initialised (admin={state.admin}); left unchanged.")
    return 0


async def show_ledger() -> int:
    async with async_session() as db:
        state = await load_ledger_state(db)

    if state is None:
        print("Ledger has not been initialised. Run `python -m app.cli init-ledger`.")
        return 1
    print(f"  admin:         {state.admin}")
    print(f"  oracle:        {state.oracle or '-'}")
    print(f"  paused:        {state.paused}")
    print(f"  batch_counter: {state.batch_counter}")
    return 0


async def verify() -> int:
    async with async_session() as db:
        issues = await verify_ledger(db)

    for issue in issues:
        where = f"batch {issue.batch_id}" if issue.batch_id is not None else "ledger"
        print(f"  [{issue.check}] {where}: {issue.message}")
    print(f"\n{len(issues)} issue(s)")
    return 1 if issues else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m app.cli")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-ledger", help="Create the ledger_state row (once)")
    init.add_argument("--admin", required=True)
    init.add_argument("--oracle", default=None)

    sub.add_parser("show-ledger", help="Print the ledger configuration state")
    sub.add_parser("verify-ledger", help="Audit stored batches and history")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "init-ledger":
        return asyncio.run(init_ledger(args.admin, args.oracle))
    if args.command == "show-ledger":
        return asyncio.run(show_ledger())
    return asyncio.run(verify())


if __name__ == "__main__":
    sys.exit(main())
