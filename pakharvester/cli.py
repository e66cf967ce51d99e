# ==============================================================================
# PAK HARVESTER - COMMAND LINE INTERFACE
# ==============================================================================
# Command-line interface for inspecting and extracting PAK containers.
#
# Commands:
#   - list:    Show the entries recovered from one file
#   - extract: Export every entry of one file to a folder
#   - probe:   Show what every parser strategy makes of one file
#   - scan:    Catalog a folder of container files
#   - config:  Show, change or reset settings
#
# Usage:
#   python main.py list --archive sprites.pak
#   python main.py extract --archive sprites.pak --output out/ --format BMP
#   python main.py probe --archive unknown.bin
#   python main.py scan --path data/ --category Characters
#   python main.py config set debug_mode true
# ==============================================================================

import os
import sys
import argparse
from typing import List, Optional

from .core.config import get_config, DEFAULT_CONFIG
from .core.cataloger import SpriteCatalog
from .extractors import (
    ContainerResolver, PakReader, ParserSettings, PakIOError, UnrecognizedFormatError,
)
from .extractors.pak_reader import read_file_bytes


# ==============================================================================
# COLOR HELPERS FOR TERMINAL OUTPUT
# ==============================================================================
class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-supporting terminals)."""
        cls.HEADER = ''
        cls.BLUE = ''
        cls.CYAN = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.RED = ''
        cls.BOLD = ''
        cls.END = ''


def print_header(text: str):
    """Print a header."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}  {text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}\n")


def print_success(text: str):
    """Print a success message."""
    print(f"{Colors.GREEN}✓ {text}{Colors.END}")


def print_error(text: str):
    """Print an error message."""
    print(f"{Colors.RED}✗ {text}{Colors.END}")


def print_info(text: str):
    """Print an info message."""
    print(f"{Colors.BLUE}ℹ {text}{Colors.END}")


def print_warning(text: str):
    """Print a warning message."""
    print(f"{Colors.YELLOW}⚠ {text}{Colors.END}")


def progress_callback(current: int, total: int, filename: str):
    """Progress callback for long operations."""
    percent = (current / total) * 100 if total > 0 else 0
    bar_length = 30
    filled = int(bar_length * current / total) if total > 0 else 0
    bar = '█' * filled + '░' * (bar_length - filled)

    # Truncate filename if too long
    max_name_len = 40
    if len(filename) > max_name_len:
        filename = '...' + filename[-(max_name_len-3):]

    print(f"\r[{bar}] {percent:5.1f}% | {current}/{total} | {filename}", end='', flush=True)

    if current >= total:
        print()  # New line when complete


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def get_settings() -> ParserSettings:
    return ParserSettings.from_config(get_config())


# ==============================================================================
# ARCHIVE COMMANDS
# ==============================================================================
def cmd_list(args) -> int:
    """List the entries recovered from a file."""
    print_header("Container Contents")

    reader = PakReader(settings=get_settings())
    try:
        container = reader.load(args.archive)
    except PakIOError as e:
        print_error(f"Could not open file: {e}")
        return 1
    except UnrecognizedFormatError:
        print_error("Unrecognized container format")
        return 1

    print(f"File:     {args.archive}")
    print(f"Format:   {container.format_name} ({container.parser_id})")
    print(f"Entries:  {len(container)} ({container.preview_count()} with preview)")
    print()

    if args.verbose:
        print(f"{'#':<6} {'Name':<40} {'Size':<12} {'Preview':<20}")
        print("-" * 80)

        for idx, entry in enumerate(container.entries[:args.limit]):
            name = entry.name or '(unnamed)'
            if len(name) > 37:
                name = '...' + name[-37:]
            if entry.has_preview:
                preview = f"{entry.image_format} {entry.image.width}x{entry.image.height}"
            else:
                preview = "-"
            print(f"{idx:<6} {name:<40} {format_size(entry.size):<12} {preview:<20}")

        if len(container) > args.limit:
            print(f"\n... and {len(container) - args.limit} more entries")

    print(f"\nTotal size: {format_size(container.get_total_size())}")
    return 0


def cmd_extract(args) -> int:
    """Export every entry of a file."""
    print_header("Extracting Container")

    config = get_config()
    output_path = args.output or config.get('default_output_path')
    if not output_path:
        print_error("No output directory given (use --output or set default_output_path)")
        return 1

    fmt = args.format or config.default_export_format

    print_info(f"File:   {args.archive}")
    print_info(f"Output: {output_path}")
    print_info(f"Format: {fmt}")
    print()

    reader = PakReader(settings=get_settings())
    try:
        container = reader.load(args.archive)
    except PakIOError as e:
        print_error(f"Could not open file: {e}")
        return 1
    except UnrecognizedFormatError:
        print_error("Unrecognized container format")
        return 1

    print_info(f"Detected: {container.format_name}")

    count = container.export_all(output_path, fmt, progress_callback=progress_callback)
    print()
    if count == len(container):
        print_success(f"Exported {count} entries")
        return 0

    print_warning(f"Exported {count} of {len(container)} entries")
    return 1


def cmd_probe(args) -> int:
    """Show every strategy's verdict for a file."""
    print_header("Format Probe")

    try:
        data = read_file_bytes(args.archive)
    except PakIOError as e:
        print_error(str(e))
        return 1

    print(f"File: {args.archive} ({format_size(len(data))})\n")

    resolver = ContainerResolver(settings=get_settings())
    kinds = {parser.parser_id: ('strict' if parser.is_strict else 'heuristic')
             for parser in resolver.parsers}

    winner = None
    for outcome in resolver.attempts(data):
        label = f"{outcome.parser_id} [{kinds[outcome.parser_id]}]"
        if outcome.ok:
            print_success(f"{label:<32} {len(outcome.entries)} entries")
            winner = winner or outcome.parser_id
        else:
            print(f"  {label:<32} {outcome.status.value}: {outcome.reason}")

    print()
    if winner:
        print_info(f"Resolver would use: {winner}")
        return 0

    print_error("Unrecognized container format")
    return 1


# ==============================================================================
# CATALOG COMMAND
# ==============================================================================
def cmd_scan(args) -> int:
    """Catalog a folder of containers."""
    print_header("Scanning Folder")

    if not os.path.isdir(args.path):
        print_error(f"Folder not found: {args.path}")
        return 1

    config = get_config()
    patterns = args.pattern or config.pak_patterns

    catalog = SpriteCatalog(settings=get_settings())
    loaded = catalog.load_folder(args.path, patterns)

    print()
    print_info(f"Loaded {loaded} files, {len(catalog.failures)} failed")

    for failure in catalog.failures:
        print_warning(f"{os.path.basename(failure.path)}: {failure.reason}")

    if args.category:
        try:
            catalog.set_filter(args.category)
        except ValueError as e:
            print_error(str(e))
            print_info("Categories: " + ", ".join(catalog.list_categories()))
            return 1

    print(f"\n{'Category':<15} {'Files':<8}")
    print("-" * 25)
    for category, count in sorted(catalog.category_counts().items()):
        print(f"{category:<15} {count:<8}")

    print(f"\nSprites ({catalog.current_filter}): {catalog.sprite_count()}")

    if args.verbose:
        print()
        for file_index, entry in catalog.sprites()[:args.limit]:
            source = catalog.files[file_index].filename
            print(f"  {source:<30} {entry.name:<30} {format_size(entry.size)}")

    return 0


# ==============================================================================
# CONFIG COMMANDS
# ==============================================================================
def cmd_config_show(args) -> int:
    config = get_config()
    print_header("Configuration")
    print(f"File: {config.config_path}\n")
    for key in sorted(config.data):
        print(f"  {key:<28} {config.data[key]!r}")
    return 0


def cmd_config_set(args) -> int:
    config = get_config()
    try:
        config.set_from_string(args.key, args.value)
    except KeyError:
        print_error(f"Unknown setting: {args.key}")
        print_info("Settings: " + ", ".join(sorted(DEFAULT_CONFIG)))
        return 1
    except (TypeError, ValueError) as e:
        print_error(f"Invalid value for {args.key}: {e}")
        return 1

    if not config.save():
        return 1
    print_success(f"{args.key} = {config.get(args.key)!r}")
    return 0


def cmd_config_reset(args) -> int:
    config = get_config()
    config.reset_to_defaults()
    if not config.save():
        return 1
    print_success("Configuration reset to defaults")
    return 0


# ==============================================================================
# MAIN ARGUMENT PARSER
# ==============================================================================
def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pakharvester",
        description="PakHarvester - Sprite extraction for game PAK containers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list --archive sprites.pak -v          List recovered entries
  %(prog)s extract --archive sprites.pak -o out   Export all entries
  %(prog)s probe --archive unknown.bin            Show strategy verdicts
  %(prog)s scan --path data/ --category Items     Catalog a folder
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # -------------------------------------------------------------------------
    # LIST command
    # -------------------------------------------------------------------------
    list_parser = subparsers.add_parser('list', help='List container contents')
    list_parser.add_argument('--archive', required=True, help='Container file to read')
    list_parser.add_argument('--verbose', '-v', action='store_true', help='Show every entry')
    list_parser.add_argument('--limit', type=int, default=100, help='Max entries to show')
    list_parser.set_defaults(func=cmd_list)

    # -------------------------------------------------------------------------
    # EXTRACT command
    # -------------------------------------------------------------------------
    extract_parser = subparsers.add_parser('extract', help='Export container entries')
    extract_parser.add_argument('--archive', required=True, help='Container file to read')
    extract_parser.add_argument('--output', '-o', help='Output directory')
    extract_parser.add_argument('--format', '-f', type=str.upper,
                                choices=['PNG', 'BMP', 'JPG', 'JPEG', 'GIF'],
                                help='Image format for entries with a preview')
    extract_parser.set_defaults(func=cmd_extract)

    # -------------------------------------------------------------------------
    # PROBE command
    # -------------------------------------------------------------------------
    probe_parser = subparsers.add_parser('probe', help='Show every parser verdict')
    probe_parser.add_argument('--archive', required=True, help='File to probe')
    probe_parser.set_defaults(func=cmd_probe)

    # -------------------------------------------------------------------------
    # SCAN command
    # -------------------------------------------------------------------------
    scan_parser = subparsers.add_parser('scan', help='Catalog a folder of containers')
    scan_parser.add_argument('--path', required=True, help='Folder to scan')
    scan_parser.add_argument('--category', help='Only list sprites in this category')
    scan_parser.add_argument('--pattern', action='append',
                             help='File pattern (repeatable, default from config)')
    scan_parser.add_argument('--verbose', '-v', action='store_true', help='List sprites')
    scan_parser.add_argument('--limit', type=int, default=200, help='Max sprites to show')
    scan_parser.set_defaults(func=cmd_scan)

    # -------------------------------------------------------------------------
    # CONFIG commands
    # -------------------------------------------------------------------------
    config_parser = subparsers.add_parser('config', help='Show or change settings')
    config_sub = config_parser.add_subparsers(dest='subcommand')

    config_show = config_sub.add_parser('show', help='Show current settings')
    config_show.set_defaults(func=cmd_config_show)

    config_set = config_sub.add_parser('set', help='Change a setting')
    config_set.add_argument('key', help='Setting name')
    config_set.add_argument('value', help='New value (JSON or plain text)')
    config_set.set_defaults(func=cmd_config_set)

    config_reset = config_sub.add_parser('reset', help='Restore default settings')
    config_reset.set_defaults(func=cmd_config_reset)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    # Check if colors are supported
    if sys.platform == 'win32':
        # Enable ANSI colors on Windows
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
        except (AttributeError, OSError):
            Colors.disable()
    elif not sys.stdout.isatty():
        Colors.disable()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if not hasattr(args, 'func'):
        # Subcommand group without a subcommand
        if args.command == 'config':
            return cmd_config_show(args)
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
