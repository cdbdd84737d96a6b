"""
risr - zero downtime deploys of Amazon Machine Images (AMI).

Rolls an AMI out to a fleet of EC2 servers with a blue/green strategy:
a new AutoScaling group is brought up and checked before the old groups
of the same Stack are dropped. AWS credentials and region are taken from
the standard AWS environment variables and config files.

Usage:
    risr deploy stack.yaml
"""

import argparse
import logging
import signal
import sys
import threading

from risr import metrics
from risr.config import Settings, settings as default_settings
from risr.errors import DeploymentCancelled, PollTimeoutError, RisrError, StackFileError, StackValidationError
from risr.logging_config import setup_logging
from risr.manager import DeploymentManager
from risr.stacks import parse_stack, read_stack_file

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="risr",
        description="Zero downtime deploy script for Amazon Machine Images (AMI)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="<command>")

    deploy = subparsers.add_parser(
        "deploy",
        help="Deploys a Stack",
        description="Takes a Stack definition (a .yaml or .json file) and deploys it to AWS.",
    )
    deploy.add_argument("filename", help="Path to the Stack definition")
    return parser


def _install_signal_handlers(cancel: threading.Event) -> None:
    def handler(signum, frame):
        print(f"\nReceived signal {signum}, stopping after the current check...", file=sys.stderr)
        cancel.set()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def _export_metrics(path: str) -> None:
    try:
        metrics.export_textfile(path)
    except OSError as e:
        logger.warning(f"Could not write metrics to {path}: {e}")


def deploy(filename: str, settings: Settings, cancel: threading.Event) -> int:
    try:
        text = read_stack_file(filename)
    except StackFileError as e:
        print(f"error reading Stack file: {e}", file=sys.stderr)
        return 1

    try:
        stack = parse_stack(text)
    except StackValidationError as e:
        print(f"error decoding Stack definition: {e}", file=sys.stderr)
        return 1

    try:
        manager = DeploymentManager.from_environment(settings)
    except RisrError as e:
        print(f"error instantiating deployment manager: {e}", file=sys.stderr)
        return 1

    try:
        manager.deploy_stack(stack, cancel=cancel, timeout=settings.POLL_TIMEOUT_SECONDS)
    except PollTimeoutError as e:
        print(f"error deploying Stack: {e}", file=sys.stderr)
        return 1
    except DeploymentCancelled as e:
        print(f"error deploying Stack: {e}", file=sys.stderr)
        return 130
    except RisrError as e:
        print(f"error deploying Stack: {e}", file=sys.stderr)
        return 1
    finally:
        if settings.METRICS_TEXTFILE:
            _export_metrics(settings.METRICS_TEXTFILE)

    print(f"Stack {stack.name} was deployed successfully")
    return 0


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    cancel = threading.Event()
    _install_signal_handlers(cancel)

    if args.command == "deploy":
        return deploy(args.filename, settings, cancel)
    return 2


if __name__ == "__main__":
    sys.exit(main())
