"""
spacekit CLI argument parser.

This module implements the command-line interface for spacekit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from spacekit import __version__
from spacekit.config.settings import SystemBinaryPolicy
from spacekit.core.exceptions import SpacekitError

logger = logging.getLogger(__name__)


class CLI:
    """spacekit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="spacekit",
            description="spacekit - install and run spacectl in CI jobs",
            epilog='Use "spacekit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"spacekit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_exec_command(subparsers)
        self._add_resolve_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install spacectl",
            description=(
                "Use an installed spacectl, a cached release or download one, "
                "and add it to PATH"
            ),
        )
        parser.add_argument(
            "--tool-version",
            dest="tool_version",
            metavar="VERSION",
            help='Version to install: "latest", "dev" or a tag (default: installed or latest)',
        )
        parser.add_argument(
            "--token",
            metavar="TOKEN",
            help="GitHub token for release lookups (default: $GITHUB_TOKEN)",
        )
        parser.add_argument(
            "--system-binary",
            choices=[p.value for p in SystemBinaryPolicy],
            help="Whether to use a binary already on the machine (default: prefer)",
        )
        parser.add_argument(
            "--no-add-to-path",
            dest="add_to_path",
            action="store_false",
            default=None,
            help="Do not add the binary's directory to PATH",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="DIR",
            help="Tool cache directory (default: ~/.spacekit/tools)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./spacekit.yaml if present)",
        )

    def _add_exec_command(self, subparsers):
        """Add 'exec' subcommand."""
        parser = subparsers.add_parser(
            "exec",
            help="Run spacectl with JSON output",
            description=(
                "Run spacectl with --output=json, print its JSON output and "
                "exit with its exit code"
            ),
        )
        parser.add_argument(
            "--bin",
            dest="bin_path",
            type=Path,
            metavar="PATH",
            help="Binary to run (default: spacectl on PATH)",
        )
        parser.add_argument(
            "--cwd",
            type=Path,
            metavar="DIR",
            help="Working directory for the binary",
        )
        parser.add_argument(
            "tool_args",
            nargs=argparse.REMAINDER,
            metavar="ARGS",
            help="Arguments passed to spacectl (prefix with --)",
        )

    def _add_resolve_command(self, subparsers):
        """Add 'resolve' subcommand."""
        parser = subparsers.add_parser(
            "resolve",
            help="Resolve a version spec",
            description="Print the concrete version a version spec resolves to",
        )
        parser.add_argument(
            "spec",
            nargs="?",
            default="latest",
            help='Version spec: "latest", "dev" or a tag (default: latest)',
        )
        parser.add_argument(
            "--token",
            metavar="TOKEN",
            help="GitHub token for release lookups (default: $GITHUB_TOKEN)",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except SpacekitError as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose and e.__cause__ is not None:
                logger.error(f"Caused by: {e.__cause__}")
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            stream=sys.stderr,
            force=True,
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "spacekit.cli.commands.install",
            "exec": "spacekit.cli.commands.exec",
            "resolve": "spacekit.cli.commands.resolve",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
