import argparse
import json
import os
import sys
from typing import Any, Dict

from .logging_config import setup_logging
from .sms_api_caller import SemaphoreConfig, create_client


def write_file(path: str, data: bytes, mode: int = 0o600) -> None:
    with open(path, 'wb') as f:
        f.write(data)
    try:
        os.chmod(path, mode)
    except OSError:
        # chmod is a no-op on non-POSIX
        pass


def get_default_config_dir() -> str:
    """Get the default configuration directory following XDG standards"""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "semaphore_sms")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "semaphore_sms")

    return os.path.join(os.getcwd(), ".config", "semaphore_sms")


def load_config(args: argparse.Namespace) -> SemaphoreConfig:
    config = SemaphoreConfig(args.config, api_key=args.api_key)
    if args.no_cache:
        config.cache_enabled = False
    return config


def print_result(result: Any, verbose: bool) -> int:
    """Print an API result as JSON; exit status 1 for error results"""
    if verbose:
        print(json.dumps(result, indent=2))
    else:
        print(json.dumps(result))
    if isinstance(result, dict) and "error" in result:
        return 1
    return 0


def collect_filters(args: argparse.Namespace, names) -> Dict[str, Any]:
    """Map set CLI options to API filter names, dropping unset ones"""
    filters = {}
    for attr, param in names:
        value = getattr(args, attr, None)
        if value is not None:
            filters[param] = value
    return filters


PAGING = [("limit", "limit"), ("page", "page")]
MESSAGE_FILTERS = PAGING + [
    ("start_date", "startDate"),
    ("end_date", "endDate"),
    ("status", "status"),
    ("network", "network"),
]


def cmd_init(args: argparse.Namespace) -> int:
    """Create the config directory and write config.json"""
    config_dir = args.config_dir or get_default_config_dir()
    config_path = os.path.join(config_dir, "config.json")

    if os.path.exists(config_path) and not args.force:
        print(f"Config already exists: {config_path}")
        print("Use --force to overwrite existing files")
        return 1

    api_key = args.api_key or os.environ.get("SEMAPHORE_API_KEY")
    if not api_key:
        print("Error: an API key is required (--api-key or SEMAPHORE_API_KEY)", file=sys.stderr)
        return 1

    try:
        os.makedirs(config_dir, exist_ok=True)
        config_data = {
            "api_key": api_key,
            "cache_enabled": not args.no_cache,
            "sender_name": args.sender_name,
        }
        config_data = {k: v for k, v in config_data.items() if v is not None}
        write_file(config_path, json.dumps(config_data, indent=2).encode("utf-8"), 0o600)
    except OSError as e:
        print(f"Failed to create config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config file: {config_path}")
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    """Send a regular or priority SMS message"""
    try:
        config = load_config(args)
        data = {"number": args.number, "message": args.message}
        sender_name = args.sender_name or config.sender_name
        if sender_name:
            data["sendername"] = sender_name

        with create_client(config) as client:
            if args.priority:
                result = client.send_priority(data)
            else:
                result = client.send_message(data)
        return print_result(result, args.verbose)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_otp(args: argparse.Namespace) -> int:
    """Send a one-time password message"""
    try:
        config = load_config(args)
        data = {"number": args.number, "message": args.message}
        sender_name = args.sender_name or config.sender_name
        if sender_name:
            data["sendername"] = sender_name
        if args.code:
            data["code"] = args.code

        with create_client(config) as client:
            result = client.send_otp(data)
        return print_result(result, args.verbose)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_query(args: argparse.Namespace) -> int:
    """Run one of the read-only lookups"""
    try:
        config = load_config(args)
        with create_client(config) as client:
            if args.cmd == "messages":
                result = client.get_messages(collect_filters(args, MESSAGE_FILTERS))
            elif args.cmd == "message":
                result = client.get_message_by_id(args.message_id)
            elif args.cmd == "account":
                result = client.get_account()
            elif args.cmd == "transactions":
                result = client.get_transactions(collect_filters(args, PAGING))
            elif args.cmd == "sendernames":
                result = client.get_sender_names(collect_filters(args, PAGING))
            else:
                result = client.get_users(collect_filters(args, PAGING))
        return print_result(result, args.verbose)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def add_common_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p.add_argument("--api-key", default=None, help="API key (overrides config and SEMAPHORE_API_KEY)")
    p.add_argument("--no-cache", action="store_true", help="Bypass the response cache for lookups")
    p.add_argument("--verbose", "-v", action="store_true", help="Pretty-print responses and log debug output")


def add_paging_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--limit", type=int, help="Maximum number of records to return")
    p.add_argument("--page", type=int, help="Page number to return")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="semaphore-sms", description="Semaphore SMS API client utilities")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a config file", description="Write config.json with the API key and defaults.")
    p_init.add_argument("--config-dir", help="Config directory (default: XDG_CONFIG_HOME/semaphore_sms or ~/.config/semaphore_sms)")
    p_init.add_argument("--api-key", help="Semaphore API key (default: SEMAPHORE_API_KEY)")
    p_init.add_argument("--sender-name", help="Default sender name for outgoing messages")
    p_init.add_argument("--no-cache", action="store_true", help="Disable response caching in the written config")
    p_init.add_argument("--force", action="store_true", help="Overwrite existing files")
    p_init.set_defaults(func=cmd_init)

    p_send = sub.add_parser("send", help="Send an SMS message")
    p_send.add_argument("number", help="Recipient number(s), comma separated")
    p_send.add_argument("message", help="Message to send")
    p_send.add_argument("--sender-name", help="Sender name (overrides config)")
    p_send.add_argument("--priority", action="store_true", help="Use the priority queue")
    add_common_options(p_send)
    p_send.set_defaults(func=cmd_send)

    p_otp = sub.add_parser("otp", help="Send a one-time password message")
    p_otp.add_argument("number", help="Recipient number")
    p_otp.add_argument("message", help="Message text; {otp} is replaced with the code")
    p_otp.add_argument("--sender-name", help="Sender name (overrides config)")
    p_otp.add_argument("--code", help="Use this code instead of a generated one")
    add_common_options(p_otp)
    p_otp.set_defaults(func=cmd_otp)

    p_messages = sub.add_parser("messages", help="List sent messages")
    add_paging_options(p_messages)
    p_messages.add_argument("--start-date", help="Start of the date range (YYYY-MM-DD)")
    p_messages.add_argument("--end-date", help="End of the date range (YYYY-MM-DD)")
    p_messages.add_argument("--status", help="Only messages with this status")
    p_messages.add_argument("--network", help="Only messages sent over this network")
    add_common_options(p_messages)
    p_messages.set_defaults(func=cmd_query)

    p_message = sub.add_parser("message", help="Show one message")
    p_message.add_argument("message_id", help="Message ID")
    add_common_options(p_message)
    p_message.set_defaults(func=cmd_query)

    p_account = sub.add_parser("account", help="Show account balance and status")
    add_common_options(p_account)
    p_account.set_defaults(func=cmd_query)

    for name, help_text in [
        ("transactions", "List account transactions"),
        ("sendernames", "List registered sender names"),
        ("users", "List account users"),
    ]:
        p_list = sub.add_parser(name, help=help_text)
        add_paging_options(p_list)
        add_common_options(p_list)
        p_list.set_defaults(func=cmd_query)

    return p


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=getattr(args, "verbose", False))
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
