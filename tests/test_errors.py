"""
test_errors.py - Error Response Mapping Tests

Covers: IntegrityError mapping. UNIQUE violations name the duplicated
field and other constraint failures get a generic 400.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from jobevent.main import duplicate_field, integrity_exception_handler


def _integrity_error(message):
    return IntegrityError("INSERT INTO users ...", {}, Exception(message))


@pytest.mark.parametrize(
    "message, expected",
    [
        ("UNIQUE constraint failed: users.email", "email"),
        (
            'duplicate key value violates unique constraint "users_email_key"\n'
            "DETAIL:  Key (email)=(a@b.com) already exists.",
            "email",
        ),
        ("UNIQUE constraint failed: applications.event_id, applications.ctv_id", "event_id"),
        ("NOT NULL constraint failed: events.event_type", None),
        ('insert or update on table "events" violates foreign key constraint', None),
    ],
)
def test_duplicate_field(message, expected):
    assert duplicate_field(_integrity_error(message)) == expected


def _handle(message):
    request = MagicMock()
    request.url.path = "/api/test"
    response = asyncio.run(integrity_exception_handler(request, _integrity_error(message)))
    return response.status_code, json.loads(response.body)


def test_not_null_violation_is_not_reported_as_duplicate():
    status, body = _handle("NOT NULL constraint failed: ctv_profiles.gender")

    assert status == 400
    assert body["success"] is False
    assert "already exists" not in body["message"]


def test_unique_violation_names_field():
    status, body = _handle("UNIQUE constraint failed: users.email")
    assert status == 400
    assert body == {"success": False, "message": "email already exists"}
