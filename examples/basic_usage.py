#!/usr/bin/env python3
"""Programmatic goal lifecycle example.

This drives the workflow engine directly, without the HTTP server:

* load settings from `.env`
* create a goal as an employee and approve it as their manager
* submit completion evidence, verify it and approve completion

Everything is persisted under `PT_STATE_PATH` (default `pt_state/`).
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from datetime import date, timedelta

from performance_track.config import WorkflowSettings
from performance_track.logging import configure_logging
from performance_track.services import build_services
from performance_track.workflow.actions import CreateGoal
from performance_track.workflow.errors import WorkflowError
from performance_track.workflow.models import Actor, GoalContent, UserRole


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Walk one goal through its lifecycle.")
    parser.add_argument("--employee-id", type=int, default=10, help="Goal owner")
    parser.add_argument("--manager-id", type=int, default=20, help="Assigned manager")
    parser.add_argument("--title", default="Improve on-call runbooks", help="Goal title")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = WorkflowSettings()
    configure_logging(settings.log_level)

    services = build_services(settings, inline_dispatch=True)
    engine = services.engine
    employee = Actor(user_id=args.employee_id, role=UserRole.EMPLOYEE)
    manager = Actor(user_id=args.manager_id, role=UserRole.MANAGER)

    today = date.today()
    content = GoalContent(
        title=args.title,
        description="Every alert links to a runbook with a tested fix",
        start_date=today,
        end_date=today + timedelta(days=90),
    )

    try:
        goal = engine.create_goal(employee, CreateGoal(content=content, manager_id=manager.user_id))
        engine.approve(manager, goal.goal_id)
        engine.add_progress(employee, goal.goal_id, "Audited the existing runbooks")
        engine.submit_completion(
            employee,
            goal.goal_id,
            evidence_link="https://wiki.example.com/runbooks",
            link_description="Runbook index",
        )
        engine.verify_evidence(manager, goal.goal_id, "VERIFIED")
        goal = engine.approve_completion(manager, goal.goal_id, "Solid improvement")
    except WorkflowError as exc:
        print(f"{exc.code}: {exc}")
        return 1
    finally:
        services.close()

    print(f"Goal #{goal.goal_id} '{goal.title}' is {goal.status.value}")
    print(f"Persisted to: {settings.goals_state_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
