"""End-to-end scenarios through authoring and the patient controller."""

import pytest

from nutriforms.authoring import ScoredOption, ScoredQuestion
from nutriforms.constants import MSG_REQUIRED
from nutriforms.errors import FormValidationError
from nutriforms.models.schema import FormField, ScoreResult


async def _publish_two_question_test(authoring, mock_db, admin):
    created = await authoring.create_test(
        mock_db, admin,
        slug="two_questions",
        title="Two questions",
        questions=[
            ScoredQuestion(key="f1", label="First", options=[
                ScoredOption(value="a", label="A", score=0),
                ScoredOption(value="b", label="B", score=1),
            ]),
            ScoredQuestion(key="f2", label="Second", options=[
                ScoredOption(value="c", label="C", score=0),
                ScoredOption(value="d", label="D", score=2),
            ]),
        ],
        results=[
            ScoreResult(min_score=0, max_score=1, result_title="low", result_text="Low score"),
            ScoreResult(min_score=2, max_score=3, result_title="high", result_text="High score"),
        ],
    )
    await authoring.publish_template(mock_db, admin, created.template.id)
    return created.template


@pytest.mark.asyncio
@pytest.mark.parametrize("answers,score,title", [
    ({"f1": "b", "f2": "d"}, 3, "high"),
    ({"f1": "a", "f2": "c"}, 0, "low"),
])
async def test_scored_test_maps_total_to_result(
    authoring, controller, mock_db, admin, patient, answers, score, title,
):
    await _publish_two_question_test(authoring, mock_db, admin)
    result = await controller.submit(mock_db, patient, "two_questions", answers)
    assert result.total_score == score
    assert result.score_result.result_title == title


@pytest.mark.asyncio
async def test_required_textarea_whitespace_passes(authoring, controller, mock_db, admin, patient):
    await authoring.create_form(
        mock_db, admin,
        slug="feedback",
        title="Feedback",
        fields=[FormField(key="comment", label="Comment", type="textarea", required=True)],
    )
    with pytest.raises(FormValidationError) as excinfo:
        await controller.submit(mock_db, patient, "feedback", {"comment": ""})
    assert excinfo.value.errors == {"comment": MSG_REQUIRED}

    result = await controller.submit(mock_db, patient, "feedback", {"comment": "   "})
    assert result.response.answers == {"comment": "   "}


@pytest.mark.asyncio
async def test_editing_published_template_demotes_and_keeps_responses(
    authoring, controller, responses, mock_db, admin, patient,
):
    template = await _publish_two_question_test(authoring, mock_db, admin)
    await controller.submit(mock_db, patient, "two_questions", {"f1": "b", "f2": "c"})

    current = await authoring.get_template(mock_db, admin, template.id)
    assert current.is_active is True
    edited = await authoring.update_template(
        mock_db, admin, template.id, title="Two questions (v2)", schema=current.form_schema,
    )
    assert edited.template.is_active is False

    stored = responses.all()
    assert len(stored) == 1
    assert stored[0].answers == {"f1": "b", "f2": "c"}
    assert stored[0].total_score == 1
