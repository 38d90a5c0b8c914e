from __future__ import annotations

import os
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional, Tuple

from flask import Flask, jsonify, request

from bandwidth_scheduler.io_utils import (
    load_config,
    parse_reference_date,
    parse_resources,
    parse_tasks,
)
from bandwidth_scheduler.models import SchedulerConfig
from bandwidth_scheduler.planner import (
    AssignmentPlanner,
    current_workload,
    unassigned_tasks,
    with_committed_hours,
)
from bandwidth_scheduler.projector import TimelineProjector
from bandwidth_scheduler.reporting import plan_to_dict, projection_to_dict, summarize_plan
from bandwidth_scheduler.roles import with_inferred_roles


def _resolve_config() -> SchedulerConfig:
    env_value = os.getenv("SCHEDULER_CONFIG")
    if env_value:
        return load_config(Path(env_value).expanduser().resolve())
    return SchedulerConfig()


def _json_body() -> Dict[str, object]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def _error(message: str, status: int = 400) -> Tuple[object, int]:
    return jsonify({"error": message}), status


def create_app(config: Optional[SchedulerConfig] = None) -> Flask:
    app = Flask(__name__)
    cfg = config or _resolve_config()
    app.config["SCHEDULER_CONFIG"] = cfg

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.get("/api/config")
    def get_config():
        return jsonify(asdict(cfg))

    @app.post("/api/timelines")
    def timelines():
        try:
            data = _json_body()
            tasks = parse_tasks(data.get("tasks"), cfg)
            resources = (
                parse_resources(data["resources"], cfg) if data.get("resources") is not None else None
            )
            reference_date = parse_reference_date(data.get("reference_date"))
        except ValueError as exc:
            return _error(str(exc))
        result = TimelineProjector(cfg).project(tasks, reference_date, resources)
        return jsonify(projection_to_dict(result))

    @app.post("/api/assignments/preview")
    def preview_assignments():
        """Plan unassigned tasks without persisting anything."""
        try:
            data = _json_body()
            tasks = unassigned_tasks(parse_tasks(data.get("tasks"), cfg))
            resources = parse_resources(data.get("resources"), cfg)
            existing = parse_tasks(data.get("existing_tasks") or [], cfg)
            reference_date = parse_reference_date(data.get("reference_date"))
        except ValueError as exc:
            return _error(str(exc))
        if not tasks:
            return _error("No unassigned tasks to preview")
        if not resources:
            return _error("No resources available for assignment preview")

        if cfg.infer_roles:
            tasks = with_inferred_roles(tasks)
        resources = with_committed_hours(resources, current_workload(existing))
        plan = AssignmentPlanner(cfg).plan(tasks, resources, reference_date)
        payload = plan_to_dict(plan)
        payload["report"] = summarize_plan(plan, cfg).to_dict()
        return jsonify(payload)

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
