"""Workforce engine command line interface.

Provides operational tools for:
- Running the API server
- Creating the database schema
- Generating and finalizing payroll periods

Usage:
    python -m workforce_engine serve
    python -m workforce_engine init-db
    python -m workforce_engine generate --org-id X --period-id Y
    python -m workforce_engine finalize --org-id X --period-id Y
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Callable
from uuid import UUID

import uvicorn

from workforce_engine.api.app import configure_logging
from workforce_engine.config import get_settings
from workforce_engine.database import create_schema, dispose_db, get_session
from workforce_engine.errors import WorkforceEngineError
from workforce_engine.services.generation_service import GenerationSummary
from workforce_engine.services.period_service import PeriodService


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


def summary_to_dict(summary: GenerationSummary) -> dict[str, Any]:
    """JSON-friendly view of a generation summary."""
    return {
        "period_id": str(summary.period_id),
        "payslips_written": summary.payslips_written,
        "skipped_employee_ids": [str(e) for e in summary.skipped_employee_ids],
        "totals": {
            currency: {
                "payslips": totals.payslips,
                "gross_pay": str(totals.gross_pay),
                "net_pay": str(totals.net_pay),
            }
            for currency, totals in summary.totals.items()
        },
    }


class WorkforceCli:
    """Workforce engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m workforce_engine",
            description="Attendance, leave and payroll engine",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        serve = subparsers.add_parser("serve", help="Run the HTTP API")
        serve.add_argument("--host", help="Bind address (default from HOST)")
        serve.add_argument("--port", type=int, help="Port (default from PORT)")
        serve.add_argument("--reload", action="store_true", help="Reload on code changes")

        subparsers.add_parser("init-db", help="Create tables and indexes")

        for name, help_text in (
            ("generate", "Generate payslips for a payroll period"),
            ("finalize", "Finalize a generated payroll period"),
        ):
            command = subparsers.add_parser(name, help=help_text)
            command.add_argument(
                "--org-id",
                type=parse_uuid,
                required=True,
                help="Organization owning the period",
            )
            command.add_argument(
                "--period-id",
                type=parse_uuid,
                required=True,
                help="Payroll period to act on",
            )
            command.add_argument(
                "--json",
                action="store_true",
                help="Print the result as JSON",
            )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(get_settings().log_level)

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "serve": self._cmd_serve,
            "init-db": self._cmd_init_db,
            "generate": self._cmd_generate,
            "finalize": self._cmd_finalize,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_serve(self, args: argparse.Namespace) -> int:
        """Run the application with uvicorn."""
        settings = get_settings()
        uvicorn.run(
            "workforce_engine.api.app:app",
            host=args.host or settings.HOST,
            port=args.port or settings.PORT,
            reload=args.reload or settings.DEBUG,
        )
        return 0

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create the schema."""
        asyncio.run(self._with_db(create_schema()))
        print("Schema created")
        return 0

    def _cmd_generate(self, args: argparse.Namespace) -> int:
        """Generate payslips for a period."""

        async def generate() -> GenerationSummary:
            async with get_session() as session:
                return await PeriodService(session).generate(args.org_id, args.period_id)

        try:
            summary = asyncio.run(self._with_db(generate()))
        except WorkforceEngineError as e:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
            return 1

        if args.json:
            print(json.dumps(summary_to_dict(summary), indent=2))
            return 0

        print(f"Period {summary.period_id}: {summary.payslips_written} payslips written")
        for currency, totals in sorted(summary.totals.items()):
            print(f"  {currency}: gross {totals.gross_pay}, net {totals.net_pay}")
        if summary.skipped_employee_ids:
            print(f"  Skipped (no salary): {len(summary.skipped_employee_ids)}")
            for employee_id in summary.skipped_employee_ids:
                print(f"    - {employee_id}")
        return 0

    def _cmd_finalize(self, args: argparse.Namespace) -> int:
        """Finalize a period."""

        async def finalize() -> dict[str, Any]:
            async with get_session() as session:
                period = await PeriodService(session).finalize(args.org_id, args.period_id)
                return {
                    "period_id": str(period.period_id),
                    "status": period.status,
                    "finalized_at": period.finalized_at.isoformat() if period.finalized_at else None,
                }

        try:
            result = asyncio.run(self._with_db(finalize()))
        except WorkforceEngineError as e:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
            return 1

        if args.json:
            print(json.dumps(result, indent=2))
        else:
            print(f"Period {result['period_id']} finalized at {result['finalized_at']}")
        return 0

    @staticmethod
    async def _with_db(coro: Any) -> Any:
        try:
            return await coro
        finally:
            await dispose_db()


def main() -> int:
    """CLI entry point."""
    cli = WorkforceCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
