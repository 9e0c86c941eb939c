"""TemplateAuthoring tests — create, edit/demote, publish, delete.

Test scenarios:
  - Plain forms: published by default, single "Questions" section, checks
  - Tests: draft on creation, radio-only, option/result rules, warnings
  - Slug conflicts: pre-check and concurrent-insert paths
  - Edit: always demotes to draft, responses untouched, slug kept
  - Publish / delete (cascade) / listing
  - Role gate on every mutating call
"""

import copy
import uuid
from unittest.mock import AsyncMock

import pytest

from helpers.schemas import BASELINE_TEST, PROFILE_FORM, VALID_PROFILE_ANSWERS
from nutriforms.authoring import ScoredOption, ScoredQuestion
from nutriforms.constants import DEFAULT_SECTION_TITLE
from nutriforms.errors import (
    AuthoringError,
    PermissionDeniedError,
    SlugConflictError,
    TemplateNotFoundError,
)
from nutriforms.models.schema import FormField, FormSchema, ScoreResult


def _fields():
    return [
        FormField(key="name", label="Name", type="text", required=True),
        FormField(
            key="meal", label="Favourite meal", type="radio",
            options=[{"value": "b", "label": "Breakfast"}, {"value": "d", "label": "Dinner"}],
        ),
    ]


def _questions():
    return [
        ScoredQuestion(
            key="q1",
            label="Vegetables per day",
            options=[
                ScoredOption(value="0", label="None", score=0),
                ScoredOption(value="3", label="Three", score=3),
            ],
        ),
        ScoredQuestion(
            key="q2",
            label="Water per day",
            options=[
                ScoredOption(value="low", label="Under 1L", score=0),
                ScoredOption(value="high", label="Over 2L", score=2),
            ],
        ),
    ]


def _results():
    return [
        ScoreResult(min_score=0, max_score=2, result_title="Low", result_text="Improve"),
        ScoreResult(min_score=3, max_score=5, result_title="Good", result_text="Keep going"),
    ]


# =====================================================================
# Plain forms
# =====================================================================


class TestCreateForm:

    @pytest.mark.asyncio
    async def test_published_by_default(self, authoring, templates, mock_db, admin):
        result = await authoring.create_form(
            mock_db, admin, slug="intake", title="Intake", fields=_fields(),
        )
        tpl = result.template
        assert tpl.is_active is True
        assert tpl.state == "published"
        assert tpl.is_test is False
        assert result.warnings == []
        assert [s.title for s in tpl.form_schema.sections] == [DEFAULT_SECTION_TITLE]
        assert templates.all()[0].schema_json["sections"][0]["fields"][0]["key"] == "name"

    @pytest.mark.asyncio
    async def test_draft_when_requested(self, authoring, mock_db, admin):
        result = await authoring.create_form(
            mock_db, admin, slug="intake", title="Intake", fields=_fields(), publish=False,
        )
        assert result.template.state == "draft"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("slug", ["Intake", "in-take", "in take", ""])
    async def test_invalid_slug(self, authoring, mock_db, admin, slug):
        with pytest.raises(AuthoringError, match="Invalid slug"):
            await authoring.create_form(mock_db, admin, slug=slug, title="T", fields=_fields())

    @pytest.mark.asyncio
    async def test_blank_title(self, authoring, mock_db, admin):
        with pytest.raises(AuthoringError, match="Title"):
            await authoring.create_form(mock_db, admin, slug="x", title="  ", fields=_fields())

    @pytest.mark.asyncio
    async def test_needs_a_field(self, authoring, mock_db, admin):
        with pytest.raises(AuthoringError, match="at least one field"):
            await authoring.create_form(mock_db, admin, slug="x", title="T", fields=[])

    @pytest.mark.asyncio
    async def test_blank_labels(self, authoring, mock_db, admin):
        with pytest.raises(AuthoringError, match="needs a label"):
            await authoring.create_form(
                mock_db, admin, slug="x", title="T",
                fields=[FormField(key="a", label=" ", type="text")],
            )
        with pytest.raises(AuthoringError, match="needs a label"):
            await authoring.create_form(
                mock_db, admin, slug="x", title="T",
                fields=[FormField(key="a", label="A", type="radio",
                                  options=[{"value": "v", "label": ""}])],
            )

    @pytest.mark.asyncio
    async def test_duplicate_keys(self, authoring, templates, mock_db, admin):
        fields = [
            FormField(key="a", label="A", type="text"),
            FormField(key="a", label="A again", type="text"),
        ]
        with pytest.raises(AuthoringError, match="Duplicate field key"):
            await authoring.create_form(mock_db, admin, slug="x", title="T", fields=fields)
        assert templates.all() == []

    @pytest.mark.asyncio
    async def test_patient_cannot_create(self, authoring, templates, mock_db, patient):
        with pytest.raises(PermissionDeniedError):
            await authoring.create_form(mock_db, patient, slug="x", title="T", fields=_fields())
        assert templates.all() == []


class TestSlugConflict:

    @pytest.mark.asyncio
    async def test_existing_slug(self, authoring, mock_db, admin, profile_form):
        with pytest.raises(SlugConflictError, match="'profile' already exists"):
            await authoring.create_form(
                mock_db, admin, slug="profile", title="Again", fields=_fields(),
            )

    @pytest.mark.asyncio
    async def test_slug_taken_by_draft(self, authoring, mock_db, admin):
        await authoring.create_test(
            mock_db, admin, slug="habits", title="Habits",
            questions=_questions(), results=_results(),
        )
        with pytest.raises(SlugConflictError):
            await authoring.create_form(mock_db, admin, slug="habits", title="T", fields=_fields())

    @pytest.mark.asyncio
    async def test_concurrent_insert(self, authoring, templates, mock_db, admin, profile_form):
        """The unique constraint still maps to a conflict if the pre-check missed it."""
        templates.get_by_slug = AsyncMock(return_value=None)
        with pytest.raises(SlugConflictError):
            await authoring.create_form(
                mock_db, admin, slug="profile", title="Again", fields=_fields(),
            )


# =====================================================================
# Tests
# =====================================================================


class TestCreateTest:

    @pytest.mark.asyncio
    async def test_created_as_draft_with_scores(self, authoring, mock_db, admin):
        result = await authoring.create_test(
            mock_db, admin, slug="habits", title="Habits",
            questions=_questions(), results=_results(),
        )
        tpl = result.template
        assert tpl.state == "draft"
        assert tpl.is_test is True
        fields = tpl.form_schema.all_fields()
        assert {f.type for f in fields} == {"radio"}
        assert all(f.required for f in fields)
        assert fields[0].option_for("3").score == 3
        assert result.warnings == []

    @pytest.mark.asyncio
    async def test_needs_two_options(self, authoring, mock_db, admin):
        q = ScoredQuestion(key="q", label="Only one", options=[ScoredOption(value="a", label="A", score=1)])
        with pytest.raises(AuthoringError, match="at least 2 options"):
            await authoring.create_test(
                mock_db, admin, slug="t", title="T", questions=[q], results=_results(),
            )

    @pytest.mark.asyncio
    async def test_needs_questions(self, authoring, mock_db, admin):
        with pytest.raises(AuthoringError, match="at least one question"):
            await authoring.create_test(
                mock_db, admin, slug="t", title="T", questions=[], results=_results(),
            )

    @pytest.mark.asyncio
    async def test_needs_results(self, authoring, mock_db, admin):
        with pytest.raises(AuthoringError, match="at least one result"):
            await authoring.create_test(
                mock_db, admin, slug="t", title="T", questions=_questions(), results=[],
            )

    @pytest.mark.asyncio
    async def test_inverted_range(self, authoring, mock_db, admin):
        bad = [ScoreResult(min_score=5, max_score=1, result_title="Odd", result_text="x")]
        with pytest.raises(AuthoringError, match="min_score cannot exceed max_score"):
            await authoring.create_test(
                mock_db, admin, slug="t", title="T", questions=_questions(), results=bad,
            )

    @pytest.mark.asyncio
    async def test_blank_result_text(self, authoring, mock_db, admin):
        bad = [ScoreResult(min_score=0, max_score=5, result_title="Ok", result_text=" ")]
        with pytest.raises(AuthoringError, match="title and a text"):
            await authoring.create_test(
                mock_db, admin, slug="t", title="T", questions=_questions(), results=bad,
            )

    @pytest.mark.asyncio
    async def test_overlap_is_a_warning(self, authoring, templates, mock_db, admin):
        results = [
            ScoreResult(min_score=0, max_score=3, result_title="Low", result_text="a"),
            ScoreResult(min_score=2, max_score=5, result_title="High", result_text="b"),
        ]
        result = await authoring.create_test(
            mock_db, admin, slug="t", title="T", questions=_questions(), results=results,
        )
        assert len(result.warnings) == 1
        assert "overlap" in result.warnings[0]
        assert len(templates.all()) == 1

    @pytest.mark.asyncio
    async def test_duplicate_option_values(self, authoring, mock_db, admin):
        q = ScoredQuestion(key="q", label="Q", options=[
            ScoredOption(value="a", label="A", score=1),
            ScoredOption(value="a", label="B", score=2),
        ])
        with pytest.raises(AuthoringError, match="duplicate option values"):
            await authoring.create_test(
                mock_db, admin, slug="t", title="T", questions=[q], results=_results(),
            )


# =====================================================================
# Edit / publish
# =====================================================================


class TestUpdateTemplate:

    @pytest.mark.asyncio
    async def test_edit_demotes_published(self, authoring, templates, mock_db, admin, profile_form):
        new_schema = FormSchema.model_validate(PROFILE_FORM)
        new_schema.sections[0].title = "Basics"
        result = await authoring.update_template(
            mock_db, admin, profile_form.id, title="Profile v2", schema=new_schema,
        )
        assert result.template.state == "draft"
        assert result.template.slug == "profile"
        assert result.template.title == "Profile v2"
        assert profile_form.schema_json["sections"][0]["title"] == "Basics"

    @pytest.mark.asyncio
    async def test_edit_keeps_responses(
        self, authoring, controller, responses, mock_db, admin, patient, profile_form,
    ):
        await controller.submit(mock_db, patient, "profile", VALID_PROFILE_ANSWERS)
        await authoring.update_template(
            mock_db, admin, profile_form.id, title="Profile",
            schema=FormSchema.model_validate(PROFILE_FORM),
        )
        assert len(responses.all()) == 1
        assert responses.all()[0].answers["name"] == "Ana"

    @pytest.mark.asyncio
    async def test_demoted_form_hidden_from_patients(
        self, authoring, controller, mock_db, admin, patient, profile_form,
    ):
        await authoring.update_template(
            mock_db, admin, profile_form.id, title="Profile",
            schema=FormSchema.model_validate(PROFILE_FORM),
        )
        assert await controller.list_my_forms(mock_db, patient) == []

    @pytest.mark.asyncio
    async def test_test_edit_needs_results(self, authoring, mock_db, admin, scored_test):
        doc = copy.deepcopy(BASELINE_TEST)
        doc["scoring"]["results"] = []
        with pytest.raises(AuthoringError, match="at least one result"):
            await authoring.update_template(
                mock_db, admin, scored_test.id, title="T",
                schema=FormSchema.model_validate(doc),
            )

    @pytest.mark.asyncio
    async def test_order_index_optional(self, authoring, mock_db, admin, profile_form):
        result = await authoring.update_template(
            mock_db, admin, profile_form.id, title="Profile",
            schema=FormSchema.model_validate(PROFILE_FORM),
        )
        assert result.template.order_index == 1
        result = await authoring.update_template(
            mock_db, admin, profile_form.id, title="Profile",
            schema=FormSchema.model_validate(PROFILE_FORM), order_index=7,
        )
        assert result.template.order_index == 7

    @pytest.mark.asyncio
    async def test_unknown_template(self, authoring, mock_db, admin):
        with pytest.raises(TemplateNotFoundError):
            await authoring.update_template(
                mock_db, admin, uuid.uuid4(), title="T",
                schema=FormSchema.model_validate(PROFILE_FORM),
            )

    @pytest.mark.asyncio
    async def test_patient_cannot_edit(self, authoring, mock_db, patient, profile_form):
        with pytest.raises(PermissionDeniedError):
            await authoring.update_template(
                mock_db, patient, profile_form.id, title="T",
                schema=FormSchema.model_validate(PROFILE_FORM),
            )
        assert profile_form.is_active is True


class TestPublish:

    @pytest.mark.asyncio
    async def test_publish_draft(self, authoring, controller, mock_db, admin, patient):
        created = await authoring.create_test(
            mock_db, admin, slug="habits", title="Habits",
            questions=_questions(), results=_results(),
        )
        before = created.template.form_schema
        info = await authoring.publish_template(mock_db, admin, created.template.id)
        assert info.state == "published"
        assert info.form_schema == before

        view = await controller.load_form(mock_db, patient, "habits")
        assert view.template.slug == "habits"

    @pytest.mark.asyncio
    async def test_publish_is_idempotent(self, authoring, mock_db, admin, profile_form):
        info = await authoring.publish_template(mock_db, admin, profile_form.id)
        assert info.is_active is True

    @pytest.mark.asyncio
    async def test_patient_cannot_publish(self, authoring, mock_db, patient, templates):
        row = templates.add(slug="d", title="D", schema_json=PROFILE_FORM, is_active=False)
        with pytest.raises(PermissionDeniedError):
            await authoring.publish_template(mock_db, patient, row.id)
        assert row.is_active is False


# =====================================================================
# Delete / list
# =====================================================================


class TestDelete:

    @pytest.mark.asyncio
    async def test_cascade(
        self, authoring, controller, templates, responses, mock_db, admin, patient,
        profile_form, scored_test,
    ):
        await controller.submit(mock_db, patient, "profile", VALID_PROFILE_ANSWERS)
        other = patient.model_copy(update={"user_id": "patient-2"})
        await controller.submit(mock_db, other, "profile", VALID_PROFILE_ANSWERS)
        await controller.submit(mock_db, patient, "habits_check", {"q1": "some", "q2": "daily"})

        removed = await authoring.delete_template(mock_db, admin, profile_form.id)
        assert removed == 2
        assert [t.slug for t in templates.all()] == ["habits_check"]
        assert [r.template_id for r in responses.all()] == [scored_test.id]

    @pytest.mark.asyncio
    async def test_unknown(self, authoring, mock_db, admin):
        with pytest.raises(TemplateNotFoundError):
            await authoring.delete_template(mock_db, admin, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_patient_cannot_delete(self, authoring, templates, mock_db, patient, profile_form):
        with pytest.raises(PermissionDeniedError):
            await authoring.delete_template(mock_db, patient, profile_form.id)
        assert len(templates.all()) == 1


class TestList:

    @pytest.mark.asyncio
    async def test_admin_sees_drafts(self, authoring, templates, mock_db, admin, profile_form):
        templates.add(slug="draft_form", title="Draft", schema_json=PROFILE_FORM, order_index=5)
        listed = await authoring.list_templates(mock_db, admin)
        assert [t.slug for t in listed] == ["profile", "draft_form"]
        active = await authoring.list_templates(mock_db, admin, active_only=True)
        assert [t.slug for t in active] == ["profile"]

    @pytest.mark.asyncio
    async def test_patient_sees_published_only(
        self, authoring, templates, mock_db, patient, profile_form,
    ):
        templates.add(slug="draft_form", title="Draft", schema_json=PROFILE_FORM)
        listed = await authoring.list_templates(mock_db, patient, active_only=False)
        assert [t.slug for t in listed] == ["profile"]

    @pytest.mark.asyncio
    async def test_get_template(self, authoring, mock_db, admin, patient, profile_form):
        info = await authoring.get_template(mock_db, admin, profile_form.id)
        assert info.slug == "profile"
        with pytest.raises(PermissionDeniedError):
            await authoring.get_template(mock_db, patient, profile_form.id)
