"""Cloud Allocator - Command Line Entry Point.

Allocates, finds, inspects and deletes provider resources identified by
caller-assigned virtual instance IDs. Results are printed as JSON on stdout.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from neuroglia.core import OperationResult

from application.commands import (
    AllocateInstancesCommand,
    AllocateInstancesCommandHandler,
    DeleteInstancesCommand,
    DeleteInstancesCommandHandler,
)
from application.queries import (
    FindInstancesQuery,
    FindInstancesQueryHandler,
    GetInstanceStateQuery,
    GetInstanceStateQueryHandler,
)
from application.services import AllocationReconciler
from application.settings import Settings, app_settings, configure_logging
from integration.models import Ec2InstanceTemplate, RdsInstanceTemplate, ResourceTemplate
from integration.services.aws_ec2_api_client import AwsAccountCredentials, AwsEc2Client
from integration.services.aws_rds_api_client import AwsRdsClient
from integration.services.resource_client import ResourceClient

logger = logging.getLogger(__name__)

RESOURCE_KINDS = ("ec2", "rds")


def load_template(path: str) -> tuple[str, ResourceTemplate]:
    """Load a resource template from a JSON file.

    The file holds the template fields plus a ``kind`` key, ``ec2`` (default) or ``rds``.
    """
    document: dict[str, Any] = json.loads(Path(path).read_text())
    kind = document.pop("kind", "ec2")
    if kind == "ec2":
        return kind, Ec2InstanceTemplate(**document)
    if kind == "rds":
        return kind, RdsInstanceTemplate(**document)
    raise ValueError(f"Unknown template kind '{kind}', expected one of {RESOURCE_KINDS}")


def create_resource_client(kind: str, settings: Settings) -> ResourceClient:
    credentials = AwsAccountCredentials(
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )
    if kind == "rds":
        return AwsRdsClient(
            credentials,
            aws_region=settings.aws_region,
            max_attempts=settings.aws_max_attempts,
            skip_final_snapshot=settings.rds_skip_final_snapshot,
        )
    return AwsEc2Client(credentials, aws_region=settings.aws_region, max_attempts=settings.aws_max_attempts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cloud-allocator", description=__doc__.splitlines()[0])
    subparsers = parser.add_subparsers(dest="command", required=True)

    allocate = subparsers.add_parser("allocate", help="Allocate one resource per virtual instance ID")
    allocate.add_argument("--template", required=True, help="Path to a JSON resource template")
    allocate.add_argument("--min-count", type=int, default=None, help="Minimum ready resources (default: all)")
    allocate.add_argument("virtual_instance_ids", nargs="+")

    for name, help_text in (
        ("find", "Show the live resources of virtual instance IDs"),
        ("state", "Show the status of virtual instance IDs"),
        ("delete", "Terminate the resources of virtual instance IDs"),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument("--kind", choices=RESOURCE_KINDS, default="ec2", help="Resource kind")
        subparser.add_argument("virtual_instance_ids", nargs="+")

    return parser


async def run_command(
    args: argparse.Namespace,
    settings: Settings,
    kind: str,
    template: ResourceTemplate | None = None,
) -> OperationResult:
    """Dispatch the parsed command to its handler."""
    reconciler = AllocationReconciler.create(create_resource_client(kind, settings), settings)

    if args.command == "allocate":
        return await AllocateInstancesCommandHandler(reconciler).handle_async(
            AllocateInstancesCommand(
                template=template,
                virtual_instance_ids=args.virtual_instance_ids,
                min_count=args.min_count,
            )
        )
    if args.command == "find":
        return await FindInstancesQueryHandler(reconciler).handle_async(FindInstancesQuery(args.virtual_instance_ids))
    if args.command == "state":
        return await GetInstanceStateQueryHandler(reconciler).handle_async(
            GetInstanceStateQuery(args.virtual_instance_ids)
        )
    return await DeleteInstancesCommandHandler(reconciler).handle_async(DeleteInstancesCommand(args.virtual_instance_ids))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(log_level=app_settings.log_level)

    kind, template = getattr(args, "kind", "ec2"), None
    if args.command == "allocate":
        try:
            kind, template = load_template(args.template)
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Cannot load template {args.template}: {e}")
            return 2

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    task = loop.create_task(run_command(args, app_settings, kind, template))

    def signal_handler():
        logger.info("Received shutdown signal, cancelling")
        task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        result = loop.run_until_complete(task)
    except asyncio.CancelledError:
        logger.warning("Interrupted, resources launched so far can be found again by virtual instance ID")
        return 130
    finally:
        loop.close()

    if not result.is_success:
        print(json.dumps({"status": result.status, "detail": result.detail}, indent=2))
        return 1

    print(json.dumps(result.data, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
