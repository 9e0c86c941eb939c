import copy
from unittest.mock import AsyncMock

import pytest

from helpers.mocks import MockResponseRepository, MockTemplateRepository
from helpers.schemas import BASELINE_TEST, PROFILE_FORM
from nutriforms.authoring import TemplateAuthoring
from nutriforms.controller import FormController
from nutriforms.models.identity import Caller, Role
from nutriforms.policy import FormPolicy


@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession — flush/commit are no-ops."""
    return AsyncMock()


@pytest.fixture
def responses():
    return MockResponseRepository()


@pytest.fixture
def templates(responses):
    return MockTemplateRepository(responses)


@pytest.fixture
def controller(templates, responses):
    """FormController with mocked repositories; only baseline_0_2 is locked."""
    c = FormController(FormPolicy(locked_slugs=frozenset({"baseline_0_2"})))
    c._templates = templates
    c._responses = responses
    return c


@pytest.fixture
def authoring(templates):
    a = TemplateAuthoring()
    a._repo = templates
    return a


@pytest.fixture
def patient():
    return Caller(user_id="patient-1", role=Role.PATIENT)


@pytest.fixture
def admin():
    return Caller(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def profile_form(templates):
    """Published plain form using every field type."""
    return templates.add(
        slug="profile",
        title="Profile",
        schema_json=copy.deepcopy(PROFILE_FORM),
        is_active=True,
        order_index=1,
    )


@pytest.fixture
def baseline_test(templates):
    """Published, locked scored test."""
    return templates.add(
        slug="baseline_0_2",
        title="Baseline",
        schema_json=copy.deepcopy(BASELINE_TEST),
        is_active=True,
        order_index=0,
    )


@pytest.fixture
def scored_test(templates):
    """Published scored test that is NOT locked (may be re-submitted)."""
    return templates.add(
        slug="habits_check",
        title="Habits check",
        schema_json=copy.deepcopy(BASELINE_TEST),
        is_active=True,
        order_index=2,
    )
