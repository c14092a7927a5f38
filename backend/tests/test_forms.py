"""Tests for the owner form API: CRUD, saving, status, responses, CSV export, co-editors."""

import csv
import io
import re
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from detaforms.models.form import Form
from detaforms.models.form_editor import FormEditor
from detaforms.models.form_response import FormResponse
from detaforms.models.question import Question
from detaforms.services.invitations import InvitationError
from detaforms.services.slugs import generate_unique_slug, slugify

NONEXISTENT_UUID = str(uuid.uuid4())

CHOICE_QUESTIONS = [
    {"id": "tmp-name", "type": "text", "title": "Name", "required": True},
    {
        "id": "tmp-colors",
        "type": "checkbox",
        "title": "Colors",
        "required": True,
        "options": [{"id": "tmp-red", "label": "Red"}, {"id": "tmp-blue", "label": "Blue"}],
    },
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_form(client, headers, title="Customer Survey", description="Tell us about you"):
    resp = client.post("/api/v1/forms/", json={"title": title, "description": description}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


def _save_questions(client, headers, form_id, questions=None):
    resp = client.put(
        f"/api/v1/forms/{form_id}",
        json={"questions": questions if questions is not None else CHOICE_QUESTIONS},
        headers=headers,
    )
    assert resp.status_code == 200
    return resp.json()


def _submit(client, slug, answers):
    return client.post(f"/api/v1/f/{slug}/responses", json={"answers": answers})


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------


class TestSlugs:
    def test_slugify_latin(self):
        assert slugify("Hello, World!") == "hello-world"

    def test_slugify_non_latin_is_empty(self):
        assert slugify("שלום עולם") == ""

    def test_generate_unique_slug_shape(self, db):
        assert re.fullmatch(r"new-form-[0-9a-f]{8}", generate_unique_slug(db))

    def test_generate_unique_slug_fallback_base(self, db):
        assert re.fullmatch(r"form-[0-9a-f]{8}", generate_unique_slug(db, "טופס"))


# ---------------------------------------------------------------------------
# POST /forms: Create Form
# ---------------------------------------------------------------------------


class TestCreateForm:
    def test_create_form_success(self, client, db, owner_id, owner_headers):
        data = _create_form(client, owner_headers, title="Delivery Feedback")
        assert data["title"] == "Delivery Feedback"
        assert data["status"] == "open"
        assert data["created_by"] == str(owner_id)
        assert data["questions"] == []
        assert data["response_count"] == 0
        assert re.fullmatch(r"new-form-[0-9a-f]{8}", data["slug"])

    def test_create_form_defaults(self, client, owner_headers):
        resp = client.post("/api/v1/forms/", json={}, headers=owner_headers)
        assert resp.status_code == 201
        assert resp.json()["title"] == "טופס חדש"
        assert resp.json()["description"] == "תיאור הטופס"

    def test_create_form_has_default_style(self, client, owner_headers):
        style = _create_form(client, owner_headers)["style"]
        assert style["backgroundType"] == "solid"
        assert style["backgroundColor"] == "#ffffff"
        assert style["borderRadius"] == "8px"
        assert style["spacing"] == "1.5rem"

    def test_create_form_empty_title_rejected(self, client, owner_headers):
        resp = client.post("/api/v1/forms/", json={"title": ""}, headers=owner_headers)
        assert resp.status_code == 422

    def test_slugs_are_unique(self, client, owner_headers):
        first = _create_form(client, owner_headers)
        second = _create_form(client, owner_headers)
        assert first["slug"] != second["slug"]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TestAuth:
    def test_missing_token(self, client):
        resp = client.get("/api/v1/forms/")
        assert resp.status_code in (401, 403)

    def test_invalid_token(self, client):
        resp = client.get("/api/v1/forms/", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid token"

    def test_other_user_gets_403(self, client, owner_headers, make_headers):
        form = _create_form(client, owner_headers)
        resp = client.get(f"/api/v1/forms/{form['id']}", headers=make_headers(uuid.uuid4()))
        assert resp.status_code == 403


# ---------------------------------------------------------------------------
# GET /forms: List Forms
# ---------------------------------------------------------------------------


class TestListForms:
    def test_list_empty(self, client, owner_headers):
        resp = client.get("/api/v1/forms/", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json() == {"items": [], "total": 0}

    def test_list_only_own_forms(self, client, owner_headers, make_headers):
        _create_form(client, owner_headers, title="Mine")
        _create_form(client, make_headers(uuid.uuid4()), title="Theirs")

        resp = client.get("/api/v1/forms/", headers=owner_headers)
        data = resp.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Mine"


# ---------------------------------------------------------------------------
# GET /forms/{id}
# ---------------------------------------------------------------------------


class TestGetForm:
    def test_get_form(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.get(f"/api/v1/forms/{form['id']}", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json()["slug"] == form["slug"]

    def test_get_nonexistent(self, client, owner_headers):
        resp = client.get(f"/api/v1/forms/{NONEXISTENT_UUID}", headers=owner_headers)
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# PUT /forms/{id}: Save Form
# ---------------------------------------------------------------------------


class TestSaveForm:
    def test_save_title_and_description(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(
            f"/api/v1/forms/{form['id']}",
            json={"title": "Renamed", "description": None},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed"
        assert resp.json()["description"] is None

    def test_save_questions_assigns_ids(self, client, db, owner_headers):
        form = _create_form(client, owner_headers)
        data = _save_questions(client, owner_headers, form["id"])

        questions = data["questions"]
        assert [q["title"] for q in questions] == ["Name", "Colors"]
        assert questions[0]["type"] == "text"
        assert questions[0]["required"] is True
        assert [o["label"] for o in questions[1]["options"]] == ["Red", "Blue"]
        uuid.UUID(questions[0]["id"])
        uuid.UUID(questions[1]["options"][0]["id"])
        assert db.query(Question).count() == 2

    def test_save_preserves_known_ids(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        saved = _save_questions(client, owner_headers, form["id"])["questions"]

        colors = dict(saved[1])
        colors["title"] = "Favourite colors"
        colors["options"] = [
            saved[1]["options"][1],
            {"id": "tmp-green", "label": "Green"},
        ]
        resaved = _save_questions(client, owner_headers, form["id"], [colors])["questions"]

        assert len(resaved) == 1
        assert resaved[0]["id"] == saved[1]["id"]
        assert resaved[0]["title"] == "Favourite colors"
        assert resaved[0]["options"][0] == saved[1]["options"][1]
        assert resaved[0]["options"][1]["label"] == "Green"
        assert resaved[0]["options"][1]["id"] != "tmp-green"

    def test_save_reorders_questions(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        saved = _save_questions(client, owner_headers, form["id"])["questions"]
        resaved = _save_questions(client, owner_headers, form["id"], list(reversed(saved)))["questions"]
        assert [q["id"] for q in resaved] == [saved[1]["id"], saved[0]["id"]]

    def test_save_style_mixed_conventions(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(
            f"/api/v1/forms/{form['id']}",
            json={
                "style": {
                    "backgroundType": "gradient",
                    "gradient_start": "#111111",
                    "gradientEnd": "#222222",
                    "borderRadius": "large",
                    "successMessage": "תודה רבה!",
                }
            },
            headers=owner_headers,
        )
        assert resp.status_code == 200
        style = resp.json()["style"]
        assert style["backgroundType"] == "gradient"
        assert style["gradientStart"] == "#111111"
        assert style["gradientEnd"] == "#222222"
        assert style["borderRadius"] == "12px"
        assert style["successMessage"] == "תודה רבה!"
        assert style["textColor"] == "#000000"

    def test_save_empty_payload_rejected(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(f"/api/v1/forms/{form['id']}", json={}, headers=owner_headers)
        assert resp.status_code == 422
        assert resp.json()["detail"] == "No fields to update"

    def test_save_choice_without_options_rejected(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(
            f"/api/v1/forms/{form['id']}",
            json={"questions": [{"id": "q1", "type": "multiple-choice", "title": "Pick", "options": []}]},
            headers=owner_headers,
        )
        assert resp.status_code == 422
        assert "requires at least 1 option" in resp.json()["detail"]

    def test_save_duplicate_question_ids_rejected(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(
            f"/api/v1/forms/{form['id']}",
            json={
                "questions": [
                    {"id": "q1", "type": "text", "title": "A"},
                    {"id": "q1", "type": "number", "title": "B"},
                ]
            },
            headers=owner_headers,
        )
        assert resp.status_code == 422
        assert "duplicate question id" in resp.json()["detail"]

    def test_save_unknown_question_type_rejected(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(
            f"/api/v1/forms/{form['id']}",
            json={"questions": [{"id": "q1", "type": "rating", "title": "Rate"}]},
            headers=owner_headers,
        )
        assert resp.status_code == 422

    def test_save_invalid_status_rejected(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(f"/api/v1/forms/{form['id']}", json={"status": "draft"}, headers=owner_headers)
        assert resp.status_code == 422

    @pytest.mark.parametrize("field", ["title", "status"])
    def test_save_null_title_or_status_rejected(self, client, owner_headers, field):
        form = _create_form(client, owner_headers)
        resp = client.put(f"/api/v1/forms/{form['id']}", json={field: None}, headers=owner_headers)
        assert resp.status_code == 422

        unchanged = client.get(f"/api/v1/forms/{form['id']}", headers=owner_headers).json()
        assert unchanged["title"] == form["title"]
        assert unchanged["status"] == form["status"]

    def test_save_non_string_style_values(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.put(
            f"/api/v1/forms/{form['id']}",
            json={"style": {"spacing": ["1rem"], "borderRadius": 12}},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        style = resp.json()["style"]
        assert style["spacing"] == "['1rem']"
        assert style["borderRadius"] == "12"


# ---------------------------------------------------------------------------
# POST /forms/{id}/toggle-status
# ---------------------------------------------------------------------------


class TestToggleStatus:
    def test_toggle_twice(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.post(f"/api/v1/forms/{form['id']}/toggle-status", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "closed"

        resp = client.post(f"/api/v1/forms/{form['id']}/toggle-status", headers=owner_headers)
        assert resp.json()["status"] == "open"

    def test_closing_keeps_responses(self, client, db, owner_headers):
        form = _create_form(client, owner_headers)
        _submit(client, form["slug"], {})
        client.post(f"/api/v1/forms/{form['id']}/toggle-status", headers=owner_headers)
        assert db.query(FormResponse).count() == 1


# ---------------------------------------------------------------------------
# DELETE /forms/{id}
# ---------------------------------------------------------------------------


class TestDeleteForm:
    def test_delete_form_cascades(self, client, db, owner_headers):
        form = _create_form(client, owner_headers)
        _save_questions(client, owner_headers, form["id"])
        _submit(client, form["slug"], {"tmp-name": "Dana"})

        resp = client.delete(f"/api/v1/forms/{form['id']}", headers=owner_headers)
        assert resp.status_code == 204

        db.expire_all()
        assert db.query(Form).count() == 0
        assert db.query(Question).count() == 0
        assert db.query(FormResponse).count() == 0
        assert client.get(f"/api/v1/f/{form['slug']}").status_code == 404

    def test_delete_nonexistent(self, client, owner_headers):
        resp = client.delete(f"/api/v1/forms/{NONEXISTENT_UUID}", headers=owner_headers)
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class TestResponses:
    def test_list_responses_with_labels(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        questions = _save_questions(client, owner_headers, form["id"])["questions"]
        name_id = questions[0]["id"]
        colors_id = questions[1]["id"]
        red_id = questions[1]["options"][0]["id"]
        blue_id = questions[1]["options"][1]["id"]

        assert _submit(client, form["slug"], {name_id: "Dana", colors_id: {red_id: True, blue_id: False}}).status_code == 201

        resp = client.get(f"/api/v1/forms/{form['id']}/responses", headers=owner_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        answers = data["items"][0]["answers"]
        assert answers == [
            {"question_id": name_id, "title": "Name", "value": "Dana"},
            {"question_id": colors_id, "title": "Colors", "value": "Red"},
        ]

    def test_answers_to_deleted_question_are_hidden(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        questions = _save_questions(client, owner_headers, form["id"])["questions"]
        name_id = questions[0]["id"]
        colors_id = questions[1]["id"]
        _submit(client, form["slug"], {name_id: "Dana", colors_id: [questions[1]["options"][0]["id"]]})

        _save_questions(client, owner_headers, form["id"], [questions[0]])

        resp = client.get(f"/api/v1/forms/{form['id']}/responses", headers=owner_headers)
        answers = resp.json()["items"][0]["answers"]
        assert [a["question_id"] for a in answers] == [name_id]

    def test_response_count(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        _submit(client, form["slug"], {})
        _submit(client, form["slug"], {})
        resp = client.get(f"/api/v1/forms/{form['id']}", headers=owner_headers)
        assert resp.json()["response_count"] == 2

    def test_delete_response(self, client, db, owner_headers):
        form = _create_form(client, owner_headers)
        response_id = _submit(client, form["slug"], {}).json()["id"]

        resp = client.delete(f"/api/v1/forms/{form['id']}/responses/{response_id}", headers=owner_headers)
        assert resp.status_code == 204
        assert db.query(FormResponse).count() == 0

    def test_delete_response_of_other_form(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        other = _create_form(client, owner_headers)
        response_id = _submit(client, other["slug"], {}).json()["id"]

        resp = client.delete(f"/api/v1/forms/{form['id']}/responses/{response_id}", headers=owner_headers)
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# GET /forms/{id}/responses/download: CSV export
# ---------------------------------------------------------------------------


class TestDownloadResponses:
    def test_csv_export(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        questions = _save_questions(client, owner_headers, form["id"])["questions"]
        options = questions[1]["options"]
        _submit(
            client,
            form["slug"],
            {questions[0]["id"]: "Dana", questions[1]["id"]: {options[0]["id"]: True, options[1]["id"]: True}},
        )

        resp = client.get(f"/api/v1/forms/{form['id']}/responses/download", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert f'filename="form_{form["slug"]}.csv"' in resp.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0] == ["response_id", "submitted_at", "Q1: Name", "Q2: Colors"]
        assert rows[1][2:] == ["Dana", "Red, Blue"]

    def test_csv_export_empty(self, client, owner_headers):
        form = _create_form(client, owner_headers)
        resp = client.get(f"/api/v1/forms/{form['id']}/responses/download", headers=owner_headers)
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows == [["response_id", "submitted_at"]]


# ---------------------------------------------------------------------------
# Co-editors
# ---------------------------------------------------------------------------


class TestEditors:
    def _invite(self, client, headers, form_id, email="Editor@Example.com"):
        with patch(
            "detaforms.api.v1.endpoints.forms.send_invitation",
            new_callable=AsyncMock,
            return_value={"id": "email-1"},
        ) as mock_send:
            resp = client.post(f"/api/v1/forms/{form_id}/editors", json={"email": email}, headers=headers)
        return resp, mock_send

    def test_invite_editor(self, client, db, owner_id, owner_headers):
        form = _create_form(client, owner_headers, title="Team Survey")
        resp, mock_send = self._invite(client, owner_headers, form["id"])

        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "editor@example.com"
        assert data["user_id"] is None

        kwargs = mock_send.call_args.kwargs
        assert kwargs["to_email"] == "Editor@Example.com"
        assert kwargs["form_title"] == "Team Survey"
        assert kwargs["form_slug"] == form["slug"]
        assert kwargs["inviter_name"] == "owner@example.com"

        editor = db.query(FormEditor).one()
        assert editor.invited_by == owner_id

    def test_invite_is_idempotent(self, client, db, owner_headers):
        form = _create_form(client, owner_headers)
        self._invite(client, owner_headers, form["id"])
        self._invite(client, owner_headers, form["id"], email="editor@example.com")
        assert db.query(FormEditor).count() == 1

        resp = client.get(f"/api/v1/forms/{form['id']}/editors", headers=owner_headers)
        assert len(resp.json()) == 1

    def test_invite_email_failure_records_nothing(self, client, db, owner_headers):
        form = _create_form(client, owner_headers)
        with patch(
            "detaforms.api.v1.endpoints.forms.send_invitation",
            new_callable=AsyncMock,
            side_effect=InvitationError("RESEND_API_KEY is not configured"),
        ):
            resp = client.post(
                f"/api/v1/forms/{form['id']}/editors",
                json={"email": "editor@example.com"},
                headers=owner_headers,
            )
        assert resp.status_code == 502
        assert db.query(FormEditor).count() == 0

    def test_invited_editor_sees_and_edits_form(self, client, owner_headers, make_headers):
        form = _create_form(client, owner_headers, title="Shared")
        self._invite(client, owner_headers, form["id"])
        editor_headers = make_headers(uuid.uuid4(), "editor@example.com")

        listing = client.get("/api/v1/forms/", headers=editor_headers).json()
        assert [item["title"] for item in listing["items"]] == ["Shared"]

        resp = client.put(f"/api/v1/forms/{form['id']}", json={"title": "Edited"}, headers=editor_headers)
        assert resp.status_code == 200
        assert resp.json()["title"] == "Edited"

    def test_listing_claims_invitation(self, client, db, owner_headers, make_headers):
        form = _create_form(client, owner_headers)
        self._invite(client, owner_headers, form["id"])
        editor_id = uuid.uuid4()

        client.get("/api/v1/forms/", headers=make_headers(editor_id, "editor@example.com"))

        db.expire_all()
        assert db.query(FormEditor).one().user_id == editor_id
        # once claimed, access no longer depends on the email claim
        resp = client.get(f"/api/v1/forms/{form['id']}", headers=make_headers(editor_id))
        assert resp.status_code == 200

    def test_editor_cannot_delete_form(self, client, owner_headers, make_headers):
        form = _create_form(client, owner_headers)
        self._invite(client, owner_headers, form["id"])
        editor_headers = make_headers(uuid.uuid4(), "editor@example.com")

        resp = client.delete(f"/api/v1/forms/{form['id']}", headers=editor_headers)
        assert resp.status_code == 403
