"""CLI entry point for Neriah.

Usage:
    neriah serve                         # Run the API server
    neriah sync --user UUID              # Manual sync for one user
    neriah sync --user UUID --initial    # Initial extraction for one user
    neriah sweep                         # Scheduled sync for all eligible users
    neriah status --user UUID            # Show a user's sync state
    neriah --help                        # Show all options
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from neriah.core.config import Config

T = TypeVar("T")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Extract tasks, receipts and meetings from Gmail",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in project root)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Run the API server")

    sync_parser = subparsers.add_parser("sync", help="Run a sync for one user")
    sync_parser.add_argument(
        "--user",
        type=str,
        required=True,
        metavar="UUID",
        help="User ID to sync",
    )
    sync_parser.add_argument(
        "--initial",
        action="store_true",
        help="Run the initial extraction instead of a manual sync",
    )

    subparsers.add_parser("sweep", help="Run the scheduled sync for all eligible users")

    status_parser = subparsers.add_parser("status", help="Show a user's sync state")
    status_parser.add_argument(
        "--user",
        type=str,
        required=True,
        metavar="UUID",
        help="User ID to check",
    )
    return parser.parse_args(argv)


def get_env_file(args: argparse.Namespace) -> Path | None:
    """Get the .env file path from args or default location."""
    env_file = args.env_file
    if env_file is None:
        # Try project root
        cli_module = Path(__file__).resolve()
        project_root = cli_module.parent.parent.parent
        env_file = project_root / ".env"
    return env_file if env_file.exists() else None


def parse_user_id(value: str) -> UUID:
    """Parse a UUID argument, exiting with an error message if invalid."""
    try:
        return UUID(value)
    except ValueError:
        print(f"Invalid UUID format: {value}", file=sys.stderr)
        sys.exit(1)


def _with_sessions(
    config: Config,
    work: Callable[[Callable[[], AsyncSession]], Awaitable[T]],
) -> T:  # pragma: no cover
    from neriah.api.database import to_async_url

    async def _run() -> T:
        engine = create_async_engine(to_async_url(config.database_url))
        maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            return await work(maker)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


def run_sync(args: argparse.Namespace, config: Config) -> None:
    """Handle the sync command."""
    from neriah.api.dependencies import build_sync_service
    from neriah.services.sync_service import SyncError, SyncResult

    user_id = parse_user_id(args.user)

    async def _sync(maker: Callable[[], AsyncSession]) -> SyncResult:  # pragma: no cover
        async with maker() as session:
            service = build_sync_service(session, config)
            if args.initial:
                return await service.run_initial(user_id)
            return await service.run_manual(user_id)

    mode = "initial" if args.initial else "manual"
    print(f"Running {mode} sync for {user_id}")
    try:
        result = _with_sessions(config, _sync)
    except SyncError as e:
        print(f"Sync rejected: {e}", file=sys.stderr)
        sys.exit(1)

    print("=" * 60)
    print(result.message)
    print(f"Emails fetched:    {result.emails_fetched}")
    print(f"Emails processed:  {result.emails_processed}")
    print(f"Items created:     {result.items_created}")
    if result.failed_extractions:
        print(f"Failed extractions: {result.failed_extractions}")
    print("=" * 60)


def run_sweep(config: Config) -> None:
    """Handle the sweep command."""
    from neriah.api.dependencies import build_scheduled_sync
    from neriah.services.scheduled_sync import SweepReport

    async def _sweep(maker: Callable[[], AsyncSession]) -> SweepReport:  # pragma: no cover
        @asynccontextmanager
        async def session_factory() -> AsyncIterator[AsyncSession]:
            async with maker() as session:
                yield session

        return await build_scheduled_sync(session_factory, config).run_sweep()

    report = _with_sessions(config, _sweep)

    print("Scheduled Sync")
    print("=" * 60)
    print(f"Users processed:   {report.users_processed}")
    print(f"Successful:        {report.successful}")
    print(f"Failed:            {report.failed}")
    print(f"Skipped:           {report.skipped}")
    print(f"Items extracted:   {report.total_items_extracted}")
    for user, error in report.errors.items():
        print(f"  - {user}: {error}")
    print("=" * 60)


def show_status(args: argparse.Namespace, config: Config) -> None:
    """Handle the status command."""
    from neriah.schemas.sync import SyncRunResponse, SyncStatusResponse
    from neriah.services.account_service import AccountService
    from neriah.services.sync_service import ProfileNotFoundError

    user_id = parse_user_id(args.user)

    async def _status(
        maker: Callable[[], AsyncSession],
    ) -> tuple[SyncStatusResponse, list[SyncRunResponse]]:  # pragma: no cover
        async with maker() as session:
            service = AccountService(session)
            return await service.get_status(user_id), await service.list_runs(user_id, limit=5)

    try:
        status, runs = _with_sessions(config, _status)
    except ProfileNotFoundError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    print("Sync Status")
    print("=" * 60)
    print(f"\nUser ID: {user_id}")
    print(f"Initial extraction: {'done' if status.initial_extraction_completed else 'pending'}")
    print(f"Scheduled sync:     {'enabled' if status.sync_enabled else 'disabled'}")
    print(f"Last sync:          {status.last_sync_at or 'never'}")
    if status.sync_in_progress:
        print("A sync is currently running.")
    if runs:
        print("\nRecent runs:")
        for run in runs:
            print(
                f"  {run.started_at:%Y-%m-%d %H:%M} {run.sync_type:<9} {run.status:<8} "
                f"items={run.items_created}"
            )
    print("=" * 60)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)

    if args.command == "serve":
        from neriah.api.main import run_server

        run_server()
        return

    env_file = get_env_file(args)
    try:
        config = Config.from_env(env_file)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "sync":
        run_sync(args, config)
    elif args.command == "sweep":
        run_sweep(config)
    elif args.command == "status":
        show_status(args, config)
    else:
        print("Usage: neriah {serve|sync|sweep|status}")
        sys.exit(1)


if __name__ == "__main__":
    main()
