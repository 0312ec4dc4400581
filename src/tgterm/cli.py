"""Command-line interface for the tgterm bot.

Provides the main entry point for running the bot and a diagnostic
command that lists the windows the bot would offer.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="tgterm",
        description="Control local terminal windows from a Telegram chat",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/tgterm.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the bot")
    run_parser.add_argument(
        "--dangerously-attach-to-any-window",
        action="store_true",
        help="Offer every window, not just terminals",
    )
    run_parser.add_argument(
        "--use-weak-security",
        action="store_true",
        help="Disable OTP authentication (local testing only)",
    )
    run_parser.add_argument(
        "--dbfile", type=str, default=None,
        help="Path to the SQLite database (default: ./mybot.sqlite)",
    )

    windows_parser = subparsers.add_parser("windows", help="List the windows the bot would offer")
    windows_parser.add_argument(
        "--dangerously-attach-to-any-window",
        action="store_true",
        help="List every window, not just terminals",
    )

    return parser.parse_args(argv)


def _apply_args(settings, args: argparse.Namespace) -> None:
    """Fold command-line flags into the loaded settings."""
    if args.verbose:
        settings.logging.level = "DEBUG"
    if getattr(args, "dangerously_attach_to_any_window", False):
        settings.windows.show_all_windows = True
    if getattr(args, "use_weak_security", False):
        settings.security.weak_security = True
    if getattr(args, "dbfile", None):
        settings.storage.db_path = args.dbfile


def _print_warnings(settings) -> None:
    if settings.windows.show_all_windows:
        print("DANGER MODE: Attaching to any window, not just terminals.", file=sys.stderr)
    if settings.security.weak_security:
        print("WARNING: OTP authentication disabled.", file=sys.stderr)


def _build_backend(settings):
    from tgterm.windows import create_backend

    w = settings.windows
    return create_backend(
        w.backend,
        raise_delay=w.raise_delay,
        key_delay=w.key_delay,
        max_dimension=w.screenshot_max_dimension,
    )


def _setup_secret(store, totp) -> None:
    """Create or load the TOTP secret, showing the QR code for a new one."""
    from tgterm.auth.totp import to_base32
    from tgterm.utils.qr import format_provisioning

    secret, created = totp.ensure_secret()
    if created:
        print(format_provisioning(totp.provisioning_uri(secret), to_base32(secret)))
    else:
        logger.info("Using TOTP secret from %s", store.path)


async def _run_bot(settings, store) -> None:
    """Initialize all components and run the bot until interrupted."""
    from tgterm.auth.gate import AccessGate
    from tgterm.auth.totp import TotpEngine
    from tgterm.bot.app import BotApp
    from tgterm.bot.router import CommandRouter, RouterTiming
    from tgterm.bot.session import Session
    from tgterm.domain.models import AccessState
    from tgterm.messaging.telegram import TelegramGateway

    totp = TotpEngine(store)
    gate = AccessGate(store, totp, weak_security=settings.security.weak_security)

    session = Session(access=AccessState(timeout_seconds=settings.security.default_otp_timeout))
    gate.restore(session)

    backend = _build_backend(settings)

    tg = settings.telegram
    gateway = TelegramGateway(
        token=tg.bot_token.get_secret_value(),
        base_url=tg.api_base_url,
        poll_timeout=tg.poll_timeout,
        timeout=tg.http_timeout,
    )

    router = CommandRouter(
        gate=gate,
        backend=backend,
        gateway=gateway,
        session=session,
        show_all_windows=settings.windows.show_all_windows,
        timing=RouterTiming(
            newline_delay=settings.windows.newline_delay,
            repaint_delay=settings.windows.repaint_delay,
        ),
    )

    app = BotApp(router=router, backend=backend, gateway=gateway)
    await app.run()


async def _list_windows(settings) -> None:
    """Print the windows the bot would offer with ``.list``."""
    from tgterm.bot.messages import format_window_list

    backend = _build_backend(settings)
    async with backend:
        windows = await backend.list_windows(include_all=settings.windows.show_all_windows)
    print(format_window_list(windows))


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tgterm CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from tgterm.config.settings import load_settings
    from tgterm.utils.logging import setup_logging

    settings = load_settings(args.config)
    _apply_args(settings, args)
    setup_logging(settings.logging)
    _print_warnings(settings)

    if args.command == "run":
        from tgterm.auth.totp import SecretUnavailableError, TotpEngine
        from tgterm.messaging.base import MessagingError
        from tgterm.storage import SqliteKeyValueStore, StorageError
        from tgterm.windows.base import WindowBackendError

        try:
            store = SqliteKeyValueStore(settings.storage.db_path)
        except StorageError as e:
            logger.critical("Cannot open database: %s", e)
            sys.exit(1)

        with store:
            if not settings.security.weak_security:
                try:
                    _setup_secret(store, TotpEngine(store))
                except SecretUnavailableError as e:
                    logger.critical("Cannot set up TOTP: %s", e)
                    sys.exit(1)

            logger.info("Starting bot")
            try:
                asyncio.run(_run_bot(settings, store))
            except KeyboardInterrupt:
                logger.info("Interrupted")
            except (MessagingError, WindowBackendError) as e:
                logger.critical("Bot failed to start: %s", e)
                sys.exit(1)

    elif args.command == "windows":
        from tgterm.windows.base import WindowBackendError

        try:
            asyncio.run(_list_windows(settings))
        except WindowBackendError as e:
            logger.critical("%s", e)
            sys.exit(1)


if __name__ == "__main__":
    main()
