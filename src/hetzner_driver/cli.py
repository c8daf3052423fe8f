#!/usr/bin/env python3
"""
Hetzner Driver CLI Tool
Validate create flags and prepare cloud-init user data without creating a server.
"""

import argparse
import json
import sys
import logging
from typing import Optional

import yaml

from .driver import Driver
from .flags import CREATE_FLAGS, DriverOptions, add_create_flags, apply_slice_defaults
from .settings import SettingsLoader, load_flag_defaults
from .userdata import YAMLMergeError, merge_yaml_docs
from .validation import FlagError


# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class HetznerDriverCLI:
    """CLI front end for the driver's flag processing."""

    def __init__(self):
        self.args = None

    def _emit(self, output_data: str, output_file: Optional[str] = None):
        if output_file:
            with open(output_file, 'w') as f:
                f.write(output_data)
            if not self.args.quiet:
                print(f"Output saved to: {output_file}")
        else:
            print(output_data)

    def validate(self, output_format: str = 'json', output_file: Optional[str] = None) -> int:
        """Run flag processing and print the resulting configuration."""
        if self.args.verbose:
            for source in SettingsLoader().get_sources():
                logger.info(f"Settings source {source['source']}: {source['path']} "
                            f"(exists: {source['exists']})")

        opts = DriverOptions.from_namespace(self.args)
        driver = Driver(machine_name=self.args.machine_name)

        try:
            config = driver.set_config_from_flags(opts)
        except (FlagError, YAMLMergeError) as e:
            logger.error(f"Flag validation failed: {e}")
            print(f"Error: {e}")
            return 1

        result = config.to_dict()
        if output_format == 'yaml':
            output_data = yaml.dump(result, default_flow_style=False)
        else:
            output_data = json.dumps(result, indent=2)

        self._emit(output_data, output_file)
        return 0

    def merge_user_data(self, base: str, override: str, output_file: Optional[str] = None) -> int:
        """Merge two cloud-init files, override taking precedence."""
        try:
            with open(base, 'r') as f:
                base_doc = f.read()
            with open(override, 'r') as f:
                override_doc = f.read()
        except OSError as e:
            print(f"Error: {e}")
            return 1

        try:
            merged = merge_yaml_docs(base_doc, override_doc)
        except YAMLMergeError as e:
            logger.error(f"Merge failed: {e}")
            print(f"Error: {e}")
            return 1

        self._emit(merged.rstrip('\n'), output_file)
        return 0

    def list_flags(self) -> int:
        """Print the create flag catalogue."""
        lines = [f"{'Flag':<34} {'Type':<13} {'Env':<34} {'Default'}", "-" * 100]
        for flag in CREATE_FLAGS:
            name = f"--{flag.name}"
            if flag.deprecated:
                name += " (deprecated)"
            default = flag.default_value()
            lines.append(f"{name:<34} {flag.kind:<13} {flag.env_var:<34} {default!r}")
        print("\n".join(lines))
        return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='hetzner-driver',
        description="Hetzner Cloud machine driver flag processing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s validate --hetzner-api-token T                          # Validate flags
  %(prog)s validate --hetzner-api-token T --hetzner-image-id 42    # Select image by ID
  %(prog)s validate --hetzner-api-token T --hetzner-disable-public # Private network only
  %(prog)s merge-user-data base.yaml extra.yaml                    # Merge cloud-init files
  %(prog)s list-flags                                              # Show all create flags
        """
    )

    # Global options
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('-q', '--quiet', action='store_true', help='Quiet mode')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Validate create flags')
    validate_parser.add_argument('--machine-name', default='', help='Machine name used in log output')
    validate_parser.add_argument('--output', choices=['json', 'yaml'], default='json',
                                 help='Output format (default: json)')
    validate_parser.add_argument('--output-file', help='Save output to file')
    add_create_flags(validate_parser, load_flag_defaults())

    # Merge command
    merge_parser = subparsers.add_parser('merge-user-data', help='Merge two cloud-init YAML files')
    merge_parser.add_argument('base', help='Base cloud-init file')
    merge_parser.add_argument('override', help='File merged over the base')
    merge_parser.add_argument('--output-file', help='Save output to file')

    # List flags command
    subparsers.add_parser('list-flags', help='List create flags')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set logging level based on verbosity
    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger('hetzner_driver').setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    # Validate arguments
    if not args.command:
        parser.print_help()
        return 1

    if args.verbose and args.quiet:
        print("Error: Cannot use both --verbose and --quiet")
        return 1

    cli = HetznerDriverCLI()
    cli.args = args

    try:
        if args.command == 'validate':
            apply_slice_defaults(args)
            return cli.validate(output_format=args.output, output_file=args.output_file)

        elif args.command == 'merge-user-data':
            return cli.merge_user_data(args.base, args.override, output_file=args.output_file)

        elif args.command == 'list-flags':
            return cli.list_flags()

        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
