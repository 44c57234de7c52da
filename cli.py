"""
Command Line Interface for TodoBook API
======================================

Usage:
------
    # Run the API server
    todobook serve --host 0.0.0.0 --port 3090

    # Create a user and print its token
    todobook create-user a@x.com secret1

Exit codes: 0 on success, 1 on TodoBook errors, 130 on interrupt.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from api.services.user_service import UserService
from api.utils.security import PasswordHasher, TokenService
from config import get_settings
from core.document_store import create_document_store
from exceptions import TodoBookError


logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    This defines all CLI commands and their help text.
    """
    parser = argparse.ArgumentParser(
        prog="todobook",
        description="TodoBook API server and administration commands",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", type=str, default=None, help="Bind host (default: from settings)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: from settings)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    create_user = subparsers.add_parser("create-user", help="Create a user and print its token")
    create_user.add_argument("email", help="Email address of the new user")
    create_user.add_argument("password", help="Password of the new user")

    return parser


def setup_logging_for_cli(verbose: bool) -> None:
    """Configure logging based on CLI flags."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format=settings.log_format
    )


def run_server(host: Optional[str], port: Optional[int], reload: bool) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload
    )
    return 0


async def create_user(email: str, password: str) -> str:
    """Create a user against the configured store and return its token."""
    settings = get_settings()
    store = create_document_store(settings)
    await store.connect()
    try:
        users = UserService(
            store,
            TokenService.from_settings(settings),
            PasswordHasher(rounds=settings.bcrypt_rounds)
        )
        await users.ensure_indexes()
        return await users.signup(email, password)
    finally:
        await store.close()


def main(args: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)
    setup_logging_for_cli(parsed_args.verbose)

    try:
        if parsed_args.command == "serve":
            return run_server(parsed_args.host, parsed_args.port, parsed_args.reload)

        token = asyncio.run(create_user(parsed_args.email, parsed_args.password))
        print(token)
        return 0

    except TodoBookError as e:
        logger.error(e.message)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
