"""CLI entrypoint for performance-track.

Operator commands: run the HTTP server, run one reminder sweep, inspect goals
and adjust a review cycle's evidence policy. The CLI reads state directly and
does not go through per-user authorization.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from performance_track import __version__
from performance_track.config import WorkflowSettings
from performance_track.logging import configure_logging
from performance_track.services import build_services
from performance_track.workflow.errors import GoalNotFound
from performance_track.workflow.models import Goal

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="performance-track",
        description="Goal lifecycle workflow backend",
    )
    parser.add_argument("--version", action="version", version=f"performance-track {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the REST API server")
    serve.add_argument("--host", default=None, help="Bind address (defaults to PT_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (defaults to PT_PORT)")

    sweep = subparsers.add_parser(
        "sweep-reminders",
        help="Send reminders for goals that have been waiting on someone too long",
    )
    sweep.add_argument(
        "--dry-run",
        action="store_true",
        help="List due reminders without sending them",
    )

    show_goal = subparsers.add_parser("show-goal", help="Print one goal as JSON")
    show_goal.add_argument("--goal-id", type=int, required=True, help="Goal id")

    list_goals = subparsers.add_parser("list-goals", help="List goals, one per line")
    who = list_goals.add_mutually_exclusive_group()
    who.add_argument("--owner-id", type=int, default=None, help="Only goals owned by this user")
    who.add_argument(
        "--manager-id", type=int, default=None, help="Only goals assigned to this manager"
    )

    cycle = subparsers.add_parser(
        "set-cycle-evidence",
        help="Set whether a review cycle requires verified evidence before completion approval",
    )
    cycle.add_argument("--cycle-id", type=int, required=True, help="Review cycle id")
    required = cycle.add_mutually_exclusive_group(required=True)
    required.add_argument("--required", dest="required", action="store_true")
    required.add_argument("--not-required", dest="required", action="store_false")

    return parser


def _goal_line(goal: Goal) -> str:
    flags = " (deleted)" if goal.deleted else ""
    return (
        f"#{goal.goal_id} [{goal.status.value}] {goal.title} "
        f"owner={goal.owner_id} manager={goal.manager_id}{flags}"
    )


def _serve(args: argparse.Namespace) -> int:
    # Imported lazily so the one-shot commands don't pull in the web stack.
    import uvicorn

    from performance_track.server.app import create_app
    from performance_track.server.config import ServerSettings

    settings = ServerSettings()
    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("Starting server", extra={"host": host, "port": port})
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        if args.command == "serve":
            return _serve(args)

        services = build_services(settings, inline_dispatch=True)
        try:
            if args.command == "sweep-reminders":
                due = services.sweeper.sweep(dry_run=args.dry_run)
                verb = "Due" if args.dry_run else "Sent"
                for reminder in due:
                    print(
                        f"{verb}: goal #{reminder.goal_id} -> user {reminder.user_id} "
                        f"({reminder.reason})"
                    )
                print(f"{len(due)} reminder(s) {'due' if args.dry_run else 'sent'}")
                return 0

            if args.command == "show-goal":
                goal = services.goals.load_for_update(args.goal_id)
                print(json.dumps(goal.model_dump(mode="json"), indent=2))
                return 0

            if args.command == "list-goals":
                if args.owner_id is not None:
                    goals = services.goals.find_by_owner(args.owner_id)
                elif args.manager_id is not None:
                    goals = services.goals.find_by_manager(args.manager_id)
                else:
                    goals = services.goals.list()
                for goal in goals:
                    print(_goal_line(goal))
                return 0

            if args.command == "set-cycle-evidence":
                record = services.cycles.set_evidence_required(args.cycle_id, args.required)
                logger.info(
                    "Review cycle evidence policy updated",
                    extra={
                        "cycle_id": record.cycle_id,
                        "evidence_required": record.evidence_required,
                    },
                )
                state = "required" if record.evidence_required else "not required"
                print(f"Cycle {record.cycle_id}: evidence {state}")
                return 0
        finally:
            services.close()

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except GoalNotFound as e:
        logger.warning(str(e), extra={"goal_id": e.goal_id})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
