import argparse
import sys
from pathlib import Path

from ws_printer_server.config.manager import ConfigManager, default_config_path, parse_port
from ws_printer_server.config.state import PrinterState, parse_page_width
from ws_printer_server.errors import ConfigError
from ws_printer_server.printers.drivers import list_printers


def _port(value: str) -> int:
    try:
        return parse_port(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ws-printer-server',
        description='WebSocket Printer Server CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--config', type=str, help='Path to config file (default: ~/.ws_printer_server/config.toml)')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    start_parser = subparsers.add_parser('start', help='Start the printer server')
    start_parser.add_argument('--port', type=_port, help='Listen on this port instead of the configured one')

    config_parser = subparsers.add_parser('config', help='Manage configuration settings')
    config_parser.add_argument('--port', type=_port, help='WebSocket port')
    config_parser.add_argument('--host', type=str, help='Interface to bind (default: localhost)')
    config_parser.add_argument('--page-width', type=float, help='Page width in inches (1-100)')
    config_parser.add_argument('--pdf-tool', type=str, help='PDF print tool executable (SumatraPDF compatible)')
    config_parser.add_argument('--show', action='store_true', help='Show current configuration')

    subparsers.add_parser('printers', help='List installed printers')

    select_parser = subparsers.add_parser('select', help='Select the target printer')
    select_parser.add_argument('printer', type=str, help='Printer name as shown by "printers"')

    init_parser = subparsers.add_parser('init-config', help='Write a config file with default settings')
    init_parser.add_argument('path', nargs='?', type=str, help='Where to write it')
    init_parser.add_argument('--force', action='store_true', help='Overwrite an existing file')

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'start':
            start_server(args)
        elif args.command == 'config':
            manage_config(args)
        elif args.command == 'printers':
            show_printers(args)
        elif args.command == 'select':
            select_printer(args)
        elif args.command == 'init-config':
            return init_config(args)
        else:
            parser.print_help()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def _load_config(args) -> ConfigManager:
    path = args.config or str(default_config_path())
    return ConfigManager(path)


def _page_width_text(value) -> str:
    try:
        return f"{parse_page_width(value):.2f} in"
    except ConfigError as e:
        return f"{value!r} (invalid: {e})"


def manage_config(args):
    """Manage configuration settings"""
    config = _load_config(args)

    if args.show:
        print("\n=== Current Configuration ===")
        print(f"Configuration file: {config.config_file}{'' if config.exists() else ' (not created yet)'}")
        print("\n[Server]")
        print(f"  Listen: ws://{config.get('server.host')}:{config.get('server.port')}/")
        print(f"  Max message size: {config.get('server.max_message_size')} bytes")
        print("\n[Printer]")
        print(f"  Selected printer: {config.get('printer.selected') or 'Not set'}")
        print(f"  Page width: {_page_width_text(config.get('printer.page_width_inches'))}")
        print(f"  Resolution: {config.get('printer.dpi')} dpi")
        print("\n[PDF]")
        print(f"  Tool: {config.get('pdf.tool')}")
        print(f"  Download timeout: {config.get('pdf.download_timeout')} s")
        print(f"  Tool timeout: {config.get('pdf.tool_timeout')} s")
        return

    updates = {}
    if args.port is not None:
        updates['server.port'] = args.port
    if args.host:
        updates['server.host'] = args.host
    if args.pdf_tool:
        updates['pdf.tool'] = args.pdf_tool

    if args.page_width is not None:
        # Validates the range and persists
        PrinterState(config).set_page_width(args.page_width)
        updates['printer.page_width_inches'] = config.get('printer.page_width_inches')

    if updates:
        config.update(updates)
        print("\n✓ Configuration updated successfully!")
        for key, value in updates.items():
            print(f"  {key}: {value}")
        print("\nSend SIGHUP to a running server to apply the changes.")
    else:
        print("No configuration changes specified. Use --help to see available options.")


def show_printers(args):
    config = _load_config(args)
    selected = config.get('printer.selected')
    printers = list_printers()
    if not printers:
        print("No printers found.")
        return
    for name in printers:
        marker = '*' if name == selected else ' '
        print(f" {marker} {name}")


def select_printer(args):
    config = _load_config(args)
    installed = list_printers()
    if installed and args.printer not in installed:
        print(f"Warning: {args.printer!r} is not an installed printer.", file=sys.stderr)
    PrinterState(config).select_printer(args.printer)
    print(f"✓ Selected printer: {args.printer}")


def init_config(args) -> int:
    path = Path(args.path) if args.path else Path(args.config or default_config_path())
    if path.exists() and not args.force:
        print(f"Config already exists: {path} (use --force to overwrite)", file=sys.stderr)
        return 1
    ConfigManager(str(path)).write_defaults()
    print(f"Created config: {path}")
    return 0


def start_server(args):
    """Start the printer server"""
    from ws_printer_server.main import run_server
    print("Starting WebSocket Printer Server...")
    run_server(config_file=args.config, port=args.port)


if __name__ == '__main__':
    sys.exit(main())
