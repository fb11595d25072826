#!/usr/bin/env python3
"""
todo-sync - Bidirectional task sync between Microsoft To Do and an Obsidian daily note.
"""

import argparse
import logging
import sys

from todo_sync.core.config import get_default_config_path, get_log_dir, load_config
from todo_sync.core.exceptions import ConfigurationError
from todo_sync.commands import ConfigCommand, StatusCommand, SyncCommand
from todo_sync.commands.sync import PHASES
from todo_sync.utils.logging_setup import resolve_level, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todo-sync",
        description="Bidirectional task sync between Microsoft To Do and an Obsidian daily note",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  todo-sync config --set vault_path=~/Vault   # Point at your vault
  todo-sync status                            # Check configuration and sign-in
  todo-sync sync --dry-run                    # Preview changes
  todo-sync sync                              # Run a full sync
  todo-sync sync --phase completions          # Only propagate completions
        """
    )

    default_config = get_default_config_path()

    parser.add_argument(
        '--config',
        help=f'Path to configuration file (default: {default_config})',
        default=None
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Sync command
    sync_parser = subparsers.add_parser('sync', help='Sync tasks')
    sync_parser.add_argument(
        '--phase',
        choices=PHASES,
        help='Run a single phase instead of the full sync'
    )
    sync_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would change without making changes'
    )
    sync_parser.add_argument(
        '--no-wait',
        action='store_true',
        help='Fail instead of waiting when another sync holds the note'
    )
    sync_parser.add_argument(
        '--json',
        action='store_true',
        help='Print the result as JSON'
    )

    # Status command
    subparsers.add_parser('status', help='Show configuration, today\'s note and sign-in state')

    # Config command
    config_parser = subparsers.add_parser('config', help='Show or edit configuration')
    config_parser.add_argument(
        '--set',
        dest='assignments',
        metavar='KEY=VALUE',
        action='append',
        help='Set a configuration value (repeatable)'
    )
    config_parser.add_argument(
        '--show',
        action='store_true',
        help='Print the configuration (token redacted)'
    )

    return parser


def main(argv=None):
    """Main entry point for todo-sync."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        return 1

    # The config command must not persist environment overrides
    try:
        config = load_config(args.config, apply_env=args.command != 'config')
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    level = logging.DEBUG if args.verbose else resolve_level(config.log_level)
    try:
        setup_logging(level=level, log_dir=get_log_dir())
    except OSError:
        setup_logging(level=level)
        logging.getLogger(__name__).warning("Log directory unavailable, logging to console only")

    if args.verbose:
        actual_config_path = args.config if args.config else get_default_config_path()
        print(f"Using config: {actual_config_path}")

    # Execute command
    try:
        if args.command == 'sync':
            cmd = SyncCommand(config, verbose=args.verbose)
            success = cmd.run(
                phase=args.phase,
                dry_run=args.dry_run,
                wait=not args.no_wait,
                as_json=args.json,
            )

        elif args.command == 'status':
            cmd = StatusCommand(config, verbose=args.verbose)
            success = cmd.run()

        elif args.command == 'config':
            cmd = ConfigCommand(config, config_path=args.config, verbose=args.verbose)
            success = cmd.run(assignments=args.assignments, show=args.show)

        else:
            print(f"Unknown command '{args.command}'.")
            return 1

        return 0 if success else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130
    except Exception as e:
        logging.getLogger(__name__).debug("Unhandled error", exc_info=True)
        print(f"Error: {e}")
        if not args.verbose:
            print("Re-run with --verbose for more detail.")
        return 1


if __name__ == '__main__':
    sys.exit(main())
