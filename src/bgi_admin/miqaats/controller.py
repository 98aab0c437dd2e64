from __future__ import annotations

from flask import Flask, request

from ..auth.gate import current_identity
from ..common.refs import require_id
from ..common.responses import json_body, ok
from ..container import Container
from ..core.enums import ADMIN_ROLES


def register(app: Flask, container: Container) -> None:
    gate = container.gate
    miqaats = container.miqaat_service

    @app.post("/miqaat", endpoint="create_miqaat")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def create_miqaat():
        miqaat = miqaats.create(json_body(), current_identity().user_id)
        return ok("Miqaat created successfully", 201, miqaat=miqaat)

    @app.get("/miqaat", endpoint="list_miqaats")
    @gate.required
    def list_miqaats():
        found = miqaats.list_miqaats(
            search=request.args.get("search"),
            location=request.args.get("location"),
            date_from=request.args.get("from"),
            date_to=request.args.get("to"),
        )
        return ok(miqaats=found)

    @app.get("/miqaat/<miqaat_id>", endpoint="get_miqaat")
    @gate.required
    def get_miqaat(miqaat_id: str):
        return ok(miqaat=miqaats.get(require_id(miqaat_id, "Miqaat")))

    @app.put("/miqaat/<miqaat_id>", endpoint="update_miqaat")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def update_miqaat(miqaat_id: str):
        miqaat = miqaats.update(require_id(miqaat_id, "Miqaat"), json_body())
        return ok("Miqaat updated successfully", miqaat=miqaat)

    @app.delete("/miqaat/<miqaat_id>", endpoint="delete_miqaat")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def delete_miqaat(miqaat_id: str):
        miqaats.delete(require_id(miqaat_id, "Miqaat"))
        return ok("Miqaat deleted successfully")

    @app.post("/miqaat/<miqaat_id>/attendance", endpoint="register_miqaat_attendance")
    @gate.required
    def register_miqaat_attendance(miqaat_id: str):
        result = miqaats.register_attendance(
            require_id(miqaat_id, "Miqaat"),
            current_identity(),
            json_body().get("memberId"),
        )
        return ok(result.message, created=result.created)
