from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from handlesync.adapters.sqlalchemy import DuplicateAssociationError
from handlesync.app import (
    add_association,
    ensure_handle,
    list_associations,
    process_derivative,
    retract_handle,
    sync_dublin_core,
)
from handlesync.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from handlesync.domain.model import OperationResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain Handles for Fedora objects")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ensure = subparsers.add_parser(
        "ensure", help="Create the object's Handle if missing and embed it in a datastream"
    )
    ensure.add_argument("--pid", type=str, required=True, help="Object pid")
    ensure.add_argument(
        "--dsid",
        type=str,
        required=True,
        help="Datastream that changed; only an associated datastream receives the Handle",
    )

    sync_dc = subparsers.add_parser(
        "sync-dc", help="Write the canonical Handle URL into the object's DC datastream"
    )
    sync_dc.add_argument("--pid", type=str, required=True, help="Object pid")

    retract = subparsers.add_parser(
        "retract", help="Delete the Handle once no associated datastream remains"
    )
    retract.add_argument("--pid", type=str, required=True, help="Object pid")

    process = subparsers.add_parser(
        "process", help="Run the full reconciliation for a derivative event"
    )
    process.add_argument("--pid", type=str, required=True, help="Object pid")
    process.add_argument("--dsid", type=str, required=True, help="Destination datastream id")
    process.add_argument("--source-dsid", type=str, help="Source datastream id of the event")

    associations = subparsers.add_parser(
        "associations", help="Content model to datastream associations"
    )
    association_sub = associations.add_subparsers(dest="association_command", required=True)
    association_add = association_sub.add_parser("add", help="Associate a datastream")
    association_add.add_argument("--model", type=str, required=True, help="Content model pid")
    association_add.add_argument("--dsid", type=str, required=True, help="Datastream id")
    association_add.add_argument(
        "--transform",
        type=str,
        default="add_handle_to_mods.xsl",
        help="XSL file or bundled stylesheet name (default: %(default)s)",
    )
    association_sub.add_parser("list", help="List configured associations")

    return parser.parse_args(list(argv))


def _exit_for(result: OperationResult) -> None:
    if not result.success:
        sys.exit(1)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        if parsed_args.command == "ensure":
            _exit_for(ensure_handle(parsed_args.pid, parsed_args.dsid))
        elif parsed_args.command == "sync-dc":
            _exit_for(sync_dublin_core(parsed_args.pid))
        elif parsed_args.command == "retract":
            _exit_for(retract_handle(parsed_args.pid))
        elif parsed_args.command == "process":
            _exit_for(
                process_derivative(
                    parsed_args.pid,
                    parsed_args.dsid,
                    source_dsid=parsed_args.source_dsid,
                )
            )
        elif parsed_args.command == "associations" and parsed_args.association_command == "add":
            association = add_association(
                parsed_args.model, parsed_args.dsid, parsed_args.transform
            )
            log.info(
                "Added association %s/%s", association.content_model, association.datastream_id
            )
        elif parsed_args.command == "associations" and parsed_args.association_command == "list":
            for association in list_associations():
                log.info(
                    "%s %s %s",
                    association.content_model,
                    association.datastream_id,
                    association.transform,
                )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except (ConfigurationError, DuplicateAssociationError):
        log.exception("Invalid configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during Handle processing")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
