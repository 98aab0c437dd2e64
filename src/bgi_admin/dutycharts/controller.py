from __future__ import annotations

from flask import Flask, request

from ..auth.gate import current_identity
from ..common.refs import require_id
from ..common.responses import json_body, ok
from ..container import Container
from ..core.enums import ADMIN_ROLES


def register(app: Flask, container: Container) -> None:
    gate = container.gate
    charts = container.dutychart_service

    @app.post("/dutychart", endpoint="create_dutychart")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def create_dutychart():
        chart = charts.create(json_body(), current_identity().user_id)
        return ok("Duty chart created successfully", 201, dutyChart=chart)

    @app.get("/dutychart", endpoint="list_dutycharts")
    @gate.required
    def list_dutycharts():
        found = charts.list_charts(
            current_identity(),
            search=request.args.get("search"),
            date_from=request.args.get("from"),
            date_to=request.args.get("to"),
            incharge=request.args.get("incharge"),
        )
        return ok(charts=found)

    @app.get("/dutychart/<chart_id>", endpoint="get_dutychart")
    @gate.required
    def get_dutychart(chart_id: str):
        return ok(dutyChart=charts.get(require_id(chart_id, "Duty chart"), current_identity()))

    @app.put("/dutychart/<chart_id>", endpoint="update_dutychart")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def update_dutychart(chart_id: str):
        chart = charts.update(require_id(chart_id, "Duty chart"), json_body())
        return ok("Duty chart updated successfully", dutyChart=chart)

    @app.delete("/dutychart/<chart_id>", endpoint="delete_dutychart")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def delete_dutychart(chart_id: str):
        charts.delete(require_id(chart_id, "Duty chart"))
        return ok("Duty chart deleted successfully")
