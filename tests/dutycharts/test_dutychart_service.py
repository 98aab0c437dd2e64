from __future__ import annotations

import uuid

import pytest

from conftest import BrokenNotifications, InMemoryDutyCharts
from bgi_admin.auth.tokens import Identity
from bgi_admin.common.refs import new_id
from bgi_admin.core.enums import NotificationType, Role
from bgi_admin.core.exceptions import ValidationError
from bgi_admin.dutycharts.service import DutyChartService, parse_assignments
from bgi_admin.notifications.service import NotificationService


def _chart_payload(*, members=(), officer="Shk. Taher", **overrides):
    payload = {
        "eventName": "Ashara Mubaraka",
        "dutyDate": "2026-07-01",
        "reportingTime": "07:30",
        "dressCode": "Safari",
        "jamiatIncharge": "Amil Saheb",
        "assignments": [
            {
                "location": "Main Gate",
                "area": "North",
                "task": "Crowd control",
                "inchargeOfficer": officer,
                "members": list(members),
            }
        ],
    }
    payload.update(overrides)
    return payload


def test_unknown_officer_id_is_rejected_and_nothing_is_stored(client, container, admin, auth_headers):
    ghost = new_id()

    resp = client.post("/dutychart", json=_chart_payload(officer=ghost), headers=auth_headers(admin))
    body = resp.get_json()

    assert resp.status_code == 400
    assert body["missing"] == [ghost]
    assert container.dutycharts_repo.by_id == {}
    assert container.notifications_repo.by_id == {}


def test_create_renders_resolved_refs_and_keeps_free_text(client, container, admin, member, auth_headers):
    resp = client.post(
        "/dutychart",
        json=_chart_payload(members=[member.user_id, "Guest Volunteer"]),
        headers=auth_headers(admin),
    )
    body = resp.get_json()

    assert resp.status_code == 201
    chart = body["dutyChart"]
    assert chart["title"] == "Burhani Guards Ujjain Duty Chart"
    assert chart["jamiatIncharge"] == "Amil Saheb"
    assignment = chart["assignments"][0]
    assert assignment["inchargeOfficer"] == "Shk. Taher"
    assert assignment["members"][0]["itsNumber"] == member.its_number
    assert assignment["members"][1] == "Guest Volunteer"

    notifications = list(container.notifications_repo.by_id.values())
    assert len(notifications) == 1
    assert notifications[0].type == NotificationType.DUTY


def test_create_requires_jamiat_incharge(client, admin, auth_headers):
    resp = client.post("/dutychart", json=_chart_payload(jamiatIncharge="   "), headers=auth_headers(admin))

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Please provide a valid Jamiat Incharge (select or type a name)."


def test_create_lists_missing_fields(client, admin, auth_headers):
    resp = client.post("/dutychart", json={"eventName": "X"}, headers=auth_headers(admin))

    assert resp.status_code == 400
    assert "dutyDate, reportingTime, dressCode" in resp.get_json()["message"]


def test_member_sees_only_assigned_charts(client, container, admin, member, other_member, auth_headers):
    service = container.dutychart_service
    mine = service.create(_chart_payload(members=[member.user_id]), admin.user_id)
    theirs = service.create(_chart_payload(members=[other_member.user_id], eventName="Urs"), admin.user_id)

    listed = client.get("/dutychart", headers=auth_headers(member)).get_json()["charts"]
    assert [c["_id"] for c in listed] == [mine["_id"]]

    forbidden = client.get(f"/dutychart/{theirs['_id']}", headers=auth_headers(member))
    assert forbidden.status_code == 403
    assert forbidden.get_json()["message"] == "Forbidden. Not assigned to this chart."

    own = client.get(f"/dutychart/{mine['_id']}", headers=auth_headers(member))
    assert own.status_code == 200
    listed_members = [m["_id"] for a in own.get_json()["dutyChart"]["assignments"] for m in a["members"]]
    assert member.user_id in listed_members
    assert len(client.get("/dutychart", headers=auth_headers(admin)).get_json()["charts"]) == 2


def test_update_with_empty_assignments_clears_them(container, admin, member):
    service = container.dutychart_service
    chart = service.create(_chart_payload(members=[member.user_id]), admin.user_id)

    updated = service.update(chart["_id"], {"assignments": [], "dressCode": ""})

    assert updated["assignments"] == []
    assert updated["dressCode"] == "Safari"
    assert service.list_charts(Identity(member.user_id, Role.MEMBER)) == []


def test_update_keeps_assignments_when_not_supplied(container, admin, member):
    service = container.dutychart_service
    chart = service.create(_chart_payload(members=[member.user_id]), admin.user_id)

    updated = service.update(chart["_id"], {"eventName": "Renamed"})

    assert updated["eventName"] == "Renamed"
    assert len(updated["assignments"]) == 1


def test_delete_and_missing_chart(client, container, admin, auth_headers):
    chart = container.dutychart_service.create(_chart_payload(), admin.user_id)

    assert client.delete(f"/dutychart/{chart['_id']}", headers=auth_headers(admin)).status_code == 200

    resp = client.delete(f"/dutychart/{chart['_id']}", headers=auth_headers(admin))
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Duty chart not found"


def test_failed_fan_out_does_not_undo_chart(users, admin):
    charts = InMemoryDutyCharts(users)
    service = DutyChartService(charts, users, NotificationService(BrokenNotifications(), users))

    chart = service.create(_chart_payload(), admin.user_id)

    assert chart["_id"] in charts.by_id


def test_assignment_rows_need_location_area_task():
    with pytest.raises(ValidationError, match="Assignment 2: area, task required"):
        parse_assignments(
            [
                {"location": "A", "area": "B", "task": "C"},
                {"location": "D"},
            ]
        )


def test_any_uuid_spelling_of_an_existing_user_resolves(client, admin, member, auth_headers):
    resp = client.post(
        "/dutychart",
        json=_chart_payload(officer=uuid.UUID(member.user_id).hex, members=["{" + member.user_id.upper() + "}"]),
        headers=auth_headers(admin),
    )

    assert resp.status_code == 201
    assignment = resp.get_json()["dutyChart"]["assignments"][0]
    assert assignment["inchargeOfficer"]["_id"] == member.user_id
    assert assignment["members"][0]["_id"] == member.user_id


def test_update_with_unknown_officer_keeps_stored_chart(client, container, admin, member, auth_headers):
    chart = container.dutychart_service.create(_chart_payload(members=[member.user_id]), admin.user_id)
    before = container.dutycharts_repo.get_by_id(chart["_id"]).assignments
    ghost = new_id()

    resp = client.put(
        f"/dutychart/{chart['_id']}",
        json={"assignments": [{"location": "Hall", "area": "East", "task": "Queue", "inchargeOfficer": ghost}]},
        headers=auth_headers(admin),
    )

    assert resp.status_code == 400
    assert resp.get_json()["missing"] == [ghost]
    assert container.dutycharts_repo.get_by_id(chart["_id"]).assignments == before


def test_update_clears_captain_only_on_explicit_null(container, admin, member, other_member):
    service = container.dutychart_service
    chart = service.create(
        _chart_payload(eventIncharge={"captain": member.user_id, "viceCaptain": other_member.user_id}),
        admin.user_id,
    )

    kept = service.update(chart["_id"], {"eventIncharge": {"captain": ""}})
    assert kept["eventIncharge"]["captain"]["_id"] == member.user_id

    cleared = service.update(chart["_id"], {"eventIncharge": {"captain": None}})
    assert cleared["eventIncharge"]["captain"] is None
    assert cleared["eventIncharge"]["viceCaptain"]["_id"] == other_member.user_id
