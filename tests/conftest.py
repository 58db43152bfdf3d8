"""Shared fixtures: a small organization stored as a JSON document."""

import json
from datetime import date

import pytest

from cadence.adapters.json_store import JsonFileStore
from cadence.config import Config


@pytest.fixture
def today():
    # A Wednesday
    return date(2025, 1, 15)


@pytest.fixture
def document():
    return {
        "organizations": [{"id": "org1", "name": "Acme"}, {"id": "org2", "name": "Globex"}],
        "organization_settings": [
            {"organization_id": "org1", "setting_key": "timezone", "setting_value": "Asia/Kolkata"},
            {"organization_id": "org1", "setting_key": "auto_approve_tasks", "setting_value": "true"},
            {"organization_id": "org2", "setting_key": "auto_approve_tasks", "setting_value": "false"},
        ],
        "users": [
            {"id": "m1", "organization_id": "org1", "full_name": "Maya Manager", "email": "maya@acme.test"},
            {
                "id": "u1",
                "organization_id": "org1",
                "full_name": "Arjun Rao",
                "email": "arjun@acme.test",
                "manager_id": "m1",
            },
            {
                "id": "u2",
                "organization_id": "org1",
                "full_name": "Bea Sen",
                "email": "bea@acme.test",
                "manager_id": "m1",
            },
            {
                "id": "u3",
                "organization_id": "org1",
                "full_name": "Former Hire",
                "manager_id": "m1",
                "is_active": False,
            },
            {"id": "x1", "organization_id": "org2", "full_name": "Xavier", "manager_id": "m2"},
        ],
        "tasks": [
            {
                "id": "t1",
                "name": "Daily report",
                "recurrence_type": "daily",
                "created_at": "2025-01-01T00:00:00+05:30",
            },
            {
                "id": "t2",
                "name": "Inventory count",
                "recurrence_type": "weekly",
                "recurrence_config": {"days": [1, 3]},
                "benchmark": 10,
                "created_at": "2025-01-01T00:00:00+05:30",
            },
            {
                "id": "t3",
                "name": "One-off audit",
                "recurrence_type": "none",
                "created_at": "2025-01-15T10:00:00+05:30",
            },
        ],
        "task_assignments": [
            {"id": "a1", "task_id": "t1", "assigned_to": "u1", "assigned_by": "m1"},
            {"id": "a2", "task_id": "t2", "assigned_to": "u1", "assigned_by": "m1"},
            {"id": "a3", "task_id": "t3", "assigned_to": "u1", "assigned_by": "m1"},
            {"id": "a4", "task_id": "t1", "assigned_to": "u2", "assigned_by": "m1"},
            {"id": "a5", "task_id": "t1", "assigned_to": "x1"},
        ],
        "task_completions": [],
        "weekly_offs": [
            {"organization_id": "org1", "day_of_week": "sunday"},
            {"organization_id": "org2", "day_of_week": "saturday"},
        ],
        "public_holidays": [
            {"organization_id": "org1", "holiday_name": "Republic Day", "holiday_date": "2025-01-26"},
        ],
        "user_weekly_offs": [],
        "personal_holidays": [
            {
                "user_id": "u2",
                "start_date": "2025-01-20",
                "end_date": "2025-01-22",
                "approval_status": "approved",
            },
        ],
    }


@pytest.fixture
def store_path(tmp_path, document):
    path = tmp_path / "cadence.json"
    path.write_text(json.dumps(document))
    return path


@pytest.fixture
def store(store_path):
    return JsonFileStore(store_path)


@pytest.fixture
def config(store_path, tmp_path):
    return Config(data_file=str(store_path), summary_dir=str(tmp_path / "summaries"))
