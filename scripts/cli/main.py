"""CLI entry point: argument parsing and sub-command dispatch."""

import argparse
import sys
from uuid import uuid4

from invoicing_config import get_active_config
from invoicing_config.bridges import build_default_settings, build_document_templates
from invoicing_kernel.db.engine import create_tables, drop_tables, init_engine_from_url
from invoicing_kernel.domain.access_policy import Action, is_permitted
from invoicing_kernel.domain.accounts import Role, User
from invoicing_kernel.domain.clock import SystemClock
from invoicing_kernel.domain.documents import DocumentKind
from invoicing_kernel.exceptions import ConfigError, PermissionDeniedError, RemoteCallError
from invoicing_kernel.logging_config import LogContext, configure_logging, get_logger
from invoicing_services.app_state import AppState
from invoicing_services.auth_service import AuthFailure, AuthService
from invoicing_services.persistence import PersistenceAdapter
from invoicing_services.session_store import SessionStore
from scripts.cli.util import enable_quiet_logging, parse_iso_date, restore_logging
from scripts.cli.views import show_dashboard, show_documents, show_report

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="invoicing",
        description="Invoicing console: sign in, list documents, view reports.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python -m scripts.cli init-db --admin-password secret\n"
            "  python -m scripts.cli login admin@example.com secret\n"
            "  python -m scripts.cli report --start 2024-01-01 --end 2024-01-31\n"
        ),
    )
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    parser.add_argument("--db-url", type=str, default=None, help="Database URL (overrides config)")
    parser.add_argument("--session-file", type=str, default=None, help="Where the signed-in user is cached")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show structured log lines on stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="Create tables and seed settings and an admin user")
    init_db.add_argument("--admin-name", default="Admin")
    init_db.add_argument("--admin-email", default="admin@example.com")
    init_db.add_argument("--admin-password", required=True)
    init_db.add_argument("--reset", action="store_true", help="Drop every table first (destroys all data)")

    login = sub.add_parser("login", help="Sign in with a name or email and a password")
    login.add_argument("identifier")
    login.add_argument("password")

    sub.add_parser("logout", help="Forget the signed-in user")
    sub.add_parser("whoami", help="Show the signed-in user")

    listing = sub.add_parser("list", help="List invoices or quotations")
    listing.add_argument("--kind", choices=[k.value for k in DocumentKind], default="invoice")

    report = sub.add_parser("report", help="Invoice report over a date range (default: this month)")
    report.add_argument("--start", type=parse_iso_date, default=None)
    report.add_argument("--end", type=parse_iso_date, default=None)

    sub.add_parser("dashboard", help="Revenue, pending amount and recent invoices")
    return parser


def _open_state(config, adapter) -> AppState:
    state = AppState(
        adapter,
        SystemClock(),
        default_settings=build_default_settings(config),
        templates=build_document_templates(config),
    )
    state.refresh()
    return state


def _require_user(store: SessionStore) -> User | None:
    user = store.load()
    if user is None:
        print("  Not signed in. Run 'login' first.", file=sys.stderr)
    return user


def cmd_init_db(args, config, adapter, store) -> int:
    if args.reset:
        drop_tables()
        store.logout()
        print("  All tables dropped.")
    create_tables()
    snapshot = adapter.fetch_all()
    if snapshot.settings is None:
        adapter.upsert_settings(build_default_settings(config))
        print("  Settings seeded.")
    if not snapshot.users:
        adapter.upsert_users([
            User(
                name=args.admin_name,
                email=args.admin_email,
                role=Role.ADMIN,
                password=args.admin_password,
                active=True,
            )
        ])
        print(f"  Admin user '{args.admin_name}' created.")
    print("  Database ready.")
    return 0


def cmd_login(args, config, adapter, store) -> int:
    result = AuthService(adapter).authenticate(args.identifier, args.password)
    if isinstance(result, AuthFailure):
        print(f"  {result.message}", file=sys.stderr)
        return 1
    store.save(result)
    print(f"  Signed in as {result.name} ({result.role.value}).")
    return 0


def cmd_logout(args, config, adapter, store) -> int:
    if store.logout():
        print("  Signed out.")
    else:
        print("  Nobody was signed in.")
    return 0


def cmd_whoami(args, config, adapter, store) -> int:
    user = _require_user(store)
    if user is None:
        return 1
    print(f"  {user.name} <{user.email}> ({user.role.value})")
    return 0


def cmd_list(args, config, adapter, store) -> int:
    user = _require_user(store)
    if user is None:
        return 1
    state = _open_state(config, adapter)
    documents = state.documents(DocumentKind(args.kind))
    if not documents:
        print(f"\n  No {args.kind}s.\n")
        return 0
    print()
    show_documents(documents)
    print()
    return 0


def cmd_report(args, config, adapter, store) -> int:
    user = _require_user(store)
    if user is None:
        return 1
    state = _open_state(config, adapter)
    show_report(state.report(user, args.start, args.end), state.settings.currency_symbol)
    return 0


def cmd_dashboard(args, config, adapter, store) -> int:
    user = _require_user(store)
    if user is None:
        return 1
    if not is_permitted(user.role, Action.VIEW_DASHBOARD):
        print("  The dashboard is not available to viewers.", file=sys.stderr)
        return 1
    state = _open_state(config, adapter)
    show_dashboard(state.dashboard(user), state.settings.currency_symbol)
    return 0


COMMANDS = {
    "init-db": cmd_init_db,
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "list": cmd_list,
    "report": cmd_report,
    "dashboard": cmd_dashboard,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_active_config(args.config)
    except ConfigError as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=config.logging.level)

    try:
        init_engine_from_url(args.db_url or config.database.url, echo=config.database.echo)
    except Exception as exc:
        print(f"  ERROR: Cannot connect to database: {exc}", file=sys.stderr)
        return 1

    adapter = PersistenceAdapter()
    store = SessionStore(args.session_file or config.session.session_file)

    muted = [] if args.verbose else enable_quiet_logging()
    with LogContext.bind(correlation_id=uuid4().hex, command=args.command):
        logger.info("cli_command_started")
        try:
            return COMMANDS[args.command](args, config, adapter, store)
        except (PermissionDeniedError, RemoteCallError) as exc:
            logger.warning("cli_command_failed", exc_info=True)
            print(f"  ERROR: {exc}", file=sys.stderr)
            return 1
        finally:
            restore_logging(muted)


if __name__ == "__main__":
    sys.exit(main())
