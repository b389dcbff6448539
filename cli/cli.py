# cli/cli.py
"""
CLI registry and dispatcher for lead form commands.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from leadform.core.config import settings
from leadform.core.exceptions import BaseLeadFormException
from leadform.core.logging import configure_structlog
from leadform.schemas.choices import catalog
from leadform.schemas.lead import FIELD_ORDER, FormSnapshot
from leadform.services.attribution import AttributionCapture
from leadform.services.delivery import WebhookLeadSink
from leadform.services.form_controller import SubmissionStatus, mount_form
from leadform.services.validation import validate_form


# Output formatting utilities
def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

# ANSI color codes
GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
YELLOW = '\033[93m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    """Print success message with [✓] symbol."""
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    """Print error message with [✗] symbol."""
    print(f"{RED}[✗]{RESET} {message}")


def print_warning(message: str):
    """Print warning message with [!] symbol."""
    print(f"{YELLOW}[!]{RESET} {message}")


def print_info(message: str):
    """Print info message with [i] symbol."""
    print(f"{BLUE}[i]{RESET} {message}")


def _load_form_data(source: str) -> Dict[str, Any]:
    if source == "-":
        data = json.load(sys.stdin)
    else:
        with open(source, encoding="utf-8") as fh:
            data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError("form data must be a JSON object")
    return data


# Command functions
async def cmd_attribution(args: argparse.Namespace) -> int:
    """Command: Show UTM parameters captured from a landing URL."""
    params = AttributionCapture(args.url).capture()
    print(json.dumps(params.model_dump(), indent=2))
    return 0


async def cmd_validate(args: argparse.Namespace) -> int:
    """Command: Validate a form snapshot."""
    try:
        snapshot = FormSnapshot.model_validate(_load_form_data(args.file))
    except ValidationError as e:
        print_error(f"Malformed form data: {e.error_count()} problem(s)")
        for error in e.errors():
            print_error(f"  {'.'.join(str(p) for p in error['loc'])}: {error['msg']}")
        return 2

    errors = validate_form(snapshot, strict_choices=args.strict)
    if not errors:
        print_success("Form is valid")
        return 0

    print_error(f"{len(errors)} field(s) failed validation")
    for field_name in FIELD_ORDER:
        if field_name in errors:
            print_error(f"  {field_name}: {errors[field_name]}")
    return 1


async def cmd_submit(args: argparse.Namespace) -> int:
    """Command: Fill the form from JSON and submit it to the intake webhook."""
    data = _load_form_data(args.file)
    controller = mount_form(
        args.url,
        sink=WebhookLeadSink(args.webhook_url),
        strict_choices=args.strict or None,
        on_focus=lambda field_name: print_warning(f"First invalid field: {field_name}"),
    )

    # Canonical order keeps serviceType ahead of subService.
    for field_name in FIELD_ORDER:
        if field_name in data:
            try:
                controller.update_field(field_name, data[field_name])
            except ValidationError as e:
                print_error(f"Malformed form data: {field_name}: {e.errors()[0]['msg']}")
                return 2
    unknown = sorted(set(data) - set(FIELD_ORDER))
    if unknown:
        print_warning(f"Ignoring unknown fields: {', '.join(unknown)}")

    print_info(f"Submitting lead to {controller.sink.url}...")
    status = await controller.submit()

    if status is SubmissionStatus.SUCCEEDED:
        print_success("Lead accepted by intake endpoint")
        return 0
    if status is SubmissionStatus.FAILED:
        print_error(controller.submit_error)
        return 1

    print_error(f"{len(controller.errors)} field(s) failed validation")
    for field_name in FIELD_ORDER:
        if field_name in controller.errors:
            print_error(f"  {field_name}: {controller.errors[field_name]}")
    return 1


async def cmd_options(args: argparse.Namespace) -> int:
    """Command: Print the form's choice catalog."""
    print(json.dumps(catalog(), indent=2))
    return 0


# Command registry
COMMANDS: Dict[str, Callable] = {
    'attribution': cmd_attribution,
    'validate': cmd_validate,
    'submit': cmd_submit,
    'options': cmd_options,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        prog='lead-capture',
        description='Lead capture form CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--log-format', choices=['json', 'console', 'plain'], default=None, help='Log output format')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # attribution
    attr_parser = subparsers.add_parser('attribution', help='Capture UTM parameters from a URL')
    attr_parser.add_argument('url', help='Landing page URL or query string')

    # validate
    validate_parser = subparsers.add_parser('validate', help='Validate form data')
    validate_parser.add_argument('file', help="JSON file with form fields, or '-' for stdin")
    validate_parser.add_argument('--strict', action='store_true', help='Reject values outside the offered choices')

    # submit
    submit_parser = subparsers.add_parser('submit', help='Submit form data to the intake webhook')
    submit_parser.add_argument('file', help="JSON file with form fields, or '-' for stdin")
    submit_parser.add_argument('--url', default='', help='Landing page URL carrying UTM parameters')
    submit_parser.add_argument('--webhook-url', default=None, help='Override LEAD_WEBHOOK_URL')
    submit_parser.add_argument('--strict', action='store_true', help='Reject values outside the offered choices')

    # options
    subparsers.add_parser('options', help='Print cities, services and time slots')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()

    if args is None:
        parsed_args = parser.parse_args()
    else:
        parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS.get(parsed_args.command)
    if not command_func:
        print_error(f"Unknown command: {parsed_args.command}")
        parser.print_help()
        return 1

    configure_structlog(log_format=parsed_args.log_format)

    try:
        exit_code = asyncio.run(command_func(parsed_args))
        return exit_code
    except KeyboardInterrupt:
        print_error("\nInterrupted by user")
        return 130
    except (BaseLeadFormException, OSError, ValueError) as e:
        print_error(f"Error executing command: {str(e)}")
        if settings.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
