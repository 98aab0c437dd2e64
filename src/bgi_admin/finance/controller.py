from __future__ import annotations

from flask import Flask, request

from ..auth.gate import current_identity
from ..common.refs import require_id
from ..common.responses import json_body, ok
from ..container import Container
from ..core.enums import FINANCE_ROLES


def register(app: Flask, container: Container) -> None:
    gate = container.gate
    finance = container.finance_service

    @app.get("/finance/overview", endpoint="finance_overview")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def finance_overview():
        return ok(**finance.overview())

    @app.get("/finance/members-with-dues", endpoint="members_with_dues")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def members_with_dues():
        members = finance.members_with_dues(
            zone=request.args.get("zone"),
            role=request.args.get("role"),
            search=request.args.get("search"),
        )
        return ok(members=members)

    @app.get("/finance/member-payments/<member_id>", endpoint="member_payments")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def member_payments(member_id: str):
        return ok(**finance.member_payments(require_id(member_id, "Member")))

    @app.get("/finance/my-payments", endpoint="my_payments")
    @gate.required
    def my_payments():
        return ok(**finance.member_payments(current_identity().user_id))

    @app.get("/finance/pending-dues", endpoint="pending_dues")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def pending_dues():
        dues = finance.pending_dues(zone=request.args.get("zone"), search=request.args.get("search"))
        return ok(payments=dues)

    @app.get("/finance/payments", endpoint="list_payments")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def list_payments():
        payments = finance.list_payments(
            status=request.args.get("status"),
            zone=request.args.get("zone"),
            subscription_year=request.args.get("subscriptionYear"),
            payment_type=request.args.get("paymentType"),
            search=request.args.get("search"),
        )
        return ok(payments=payments)

    @app.post("/finance/payments", endpoint="create_payment")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def create_payment():
        payment = finance.create_payment(json_body(), current_identity().user_id)
        return ok("Payment recorded successfully", 201, payment=payment)

    @app.put("/finance/payments/<payment_id>", endpoint="update_payment")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def update_payment(payment_id: str):
        payment = finance.update_payment(require_id(payment_id, "Payment"), json_body())
        return ok("Payment updated successfully", payment=payment)

    @app.post("/finance/bulk-dues", endpoint="bulk_dues")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def bulk_dues():
        body = json_body()
        result = finance.bulk_assign_dues(
            body.get("memberIds"),
            body.get("amount"),
            recorded_by=current_identity().user_id,
            remarks=body.get("remarks"),
        )
        return ok(f"Successfully assigned {len(result.success)} dues", results=result.to_dict())

    @app.post("/finance/bulk-mark-paid", endpoint="bulk_mark_paid")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def bulk_mark_paid():
        body = json_body()
        result = finance.bulk_mark_paid(
            body.get("paymentIds"),
            payment_method=body.get("paymentMethod"),
            transaction_id=body.get("transactionId"),
            remarks=body.get("remarks"),
        )
        return ok(f"Successfully marked {len(result.success)} payments as paid", results=result.to_dict())

    @app.post("/finance/generate-annual-dues", endpoint="generate_annual_dues")
    @gate.required
    @gate.allow(*FINANCE_ROLES)
    def generate_annual_dues():
        result = finance.generate_annual_dues(
            recorded_by=current_identity().user_id,
            amount=json_body().get("amount"),
        )
        return ok("Annual dues generation completed", results=result.to_dict())
