from __future__ import annotations

from flask import Flask, request

from ..auth.gate import current_identity
from ..common.refs import require_id
from ..common.responses import json_body, ok
from ..container import Container
from ..core.enums import ADMIN_ROLES
from .service import dashboards_for


def register(app: Flask, container: Container) -> None:
    gate = container.gate
    users = container.user_service

    @app.post("/login", endpoint="login")
    def login():
        body = json_body()
        result = container.auth_service.login(body.get("itsNumber"), body.get("password"))
        return ok(
            "Login successful",
            token=result.token,
            user=result.user.to_public(),
            redirectTo=result.redirect_to,
        )

    @app.post("/register", endpoint="register")
    def register_member():
        member = users.register(json_body())
        return ok(f"{member.role.value} registered successfully", 201, member=member.to_public())

    @app.get("/profile", endpoint="profile")
    @gate.required
    def profile():
        return ok(user=users.profile(current_identity().user_id).to_public())

    @app.put("/profile/password", endpoint="change_password")
    @gate.required
    def change_password():
        body = json_body()
        users.change_own_password(
            current_identity().user_id,
            current_password=body.get("currentPassword"),
            new_password=body.get("newPassword"),
        )
        return ok("Password changed successfully")

    @app.get("/accessible-dashboards", endpoint="accessible_dashboards")
    @gate.required
    def accessible_dashboards():
        role = current_identity().role
        return ok(role=role.value, dashboards=dashboards_for(role))

    @app.get("/members", endpoint="list_members")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def list_members():
        members = users.list_members(
            search=request.args.get("search"),
            role=request.args.get("role"),
            zone=request.args.get("zone"),
            status=request.args.get("status"),
        )
        return ok(members=[m.to_public() for m in members])

    @app.post("/members", endpoint="create_member")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def create_member():
        created = users.admin_create(json_body())
        if created.email_error:
            return ok(
                "Member created but email send failed",
                201,
                member=created.user.to_public(),
                emailError=created.email_error,
            )
        return ok("Member created successfully", 201, member=created.user.to_public())

    @app.put("/members/<member_id>", endpoint="update_member")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def update_member(member_id: str):
        member = users.update(require_id(member_id, "Member"), json_body())
        return ok("Member updated successfully", member=member.to_public())

    @app.put("/members/<member_id>/password", endpoint="reset_member_password")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def reset_member_password(member_id: str):
        users.reset_password(require_id(member_id, "Member"), json_body().get("password"))
        return ok("Password updated")

    @app.delete("/members/<member_id>", endpoint="delete_member")
    @gate.required
    @gate.allow(*ADMIN_ROLES)
    def delete_member(member_id: str):
        users.delete(require_id(member_id, "Member"))
        return ok("Member deleted successfully")
