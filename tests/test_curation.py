from unittest.mock import MagicMock

import pytest

from portfolio_admin.api_client import ApiError
from portfolio_admin.curation import (
    FEATURED,
    PINNED,
    CurationPolicy,
    CurationReason,
    CurationRejected,
    count_flagged,
    with_flag,
)


def _flags(entities, flag):
    return {entity["_id"]: entity.get(flag) for entity in entities}


@pytest.fixture
def policy():
    return CurationPolicy()


@pytest.fixture
def three_featured():
    return [{"_id": str(i), "featured": True, "pinned": False} for i in (1, 2, 3)] + [
        {"_id": "4", "featured": False, "pinned": False}
    ]


def test_featuring_a_fourth_is_rejected_without_side_effects(policy, three_featured):
    confirm = MagicMock()
    before = [dict(entity) for entity in three_featured]

    result = policy.toggle_flag("4", FEATURED, three_featured, confirm)

    assert not result.accepted
    assert result.reason is CurationReason.CEILING_EXCEEDED
    assert "only have 3 featured" in result.message
    assert result.updated_list == before
    assert three_featured == before
    confirm.assert_not_called()
    assert not policy.is_toggling("4", FEATURED)


def test_unknown_entity_against_full_ceiling_is_ceiling_exceeded(policy):
    entities = [{"_id": str(i), "featured": True} for i in (1, 2, 3)]
    result = policy.toggle_flag("4", FEATURED, entities, MagicMock())
    assert result.reason is CurationReason.CEILING_EXCEEDED
    assert result.updated_list == entities


def test_unfeaturing_is_allowed_at_the_ceiling(policy, three_featured):
    confirm = MagicMock()
    result = policy.toggle_flag("2", FEATURED, three_featured, confirm)
    assert result.accepted
    assert _flags(result.updated_list, FEATURED) == {"1": True, "2": False, "3": True, "4": False}
    confirm.assert_called_once_with("2", {FEATURED: False})


def test_pinned_has_no_ceiling(policy):
    entities = [{"_id": str(i), "pinned": True} for i in range(10)] + [{"_id": "x", "pinned": False}]
    result = policy.toggle_flag("x", PINNED, entities, MagicMock())
    assert result.accepted
    assert count_flagged(result.updated_list, PINNED) == 11


def test_only_the_changed_flag_is_sent(policy, projects):
    confirm = MagicMock()
    policy.toggle_flag("3", FEATURED, projects, confirm)
    confirm.assert_called_once_with("3", {FEATURED: True})


def test_optimistic_list_is_visible_before_confirmation(policy, projects):
    seen = {}

    def _on_optimistic(updated):
        seen["optimistic"] = _flags(updated, FEATURED)

    def _confirm(entity_id, changes):
        seen["in_flight"] = policy.is_toggling(entity_id, FEATURED)

    result = policy.toggle_flag("3", FEATURED, projects, _confirm, on_optimistic=_on_optimistic)

    assert seen["optimistic"]["3"] is True
    assert seen["in_flight"] is True
    assert result.accepted
    assert not policy.is_toggling("3", FEATURED)


def test_failed_confirmation_rolls_back(policy, projects):
    confirm = MagicMock(side_effect=RuntimeError("boom"))

    result = policy.toggle_flag("3", FEATURED, projects, confirm)

    assert not result.accepted
    assert result.reason is CurationReason.CONFIRMATION_FAILED
    assert result.message == "Error updating project: boom"
    assert _flags(result.updated_list, FEATURED) == _flags(projects, FEATURED)
    assert not policy.is_toggling("3", FEATURED)


def test_input_list_is_never_mutated(policy, projects):
    snapshot = [dict(entity) for entity in projects]
    policy.toggle_flag("3", FEATURED, projects, MagicMock())
    policy.toggle_flag("1", PINNED, projects, MagicMock(side_effect=RuntimeError("no")))
    assert projects == snapshot


def test_second_toggle_while_in_flight_is_rejected(policy, projects):
    pending = policy.begin_toggle("3", FEATURED, projects)

    with pytest.raises(CurationRejected) as excinfo:
        policy.begin_toggle("3", FEATURED, pending.optimistic_list)
    assert excinfo.value.reason is CurationReason.TOGGLE_IN_PROGRESS

    result = policy.toggle_flag("3", FEATURED, projects, MagicMock())
    assert result.reason is CurationReason.TOGGLE_IN_PROGRESS

    policy.complete_toggle(pending, MagicMock())
    assert policy.begin_toggle("3", FEATURED, pending.optimistic_list).value is False


def test_in_flight_guard_is_per_flag(policy, projects):
    policy.begin_toggle("3", FEATURED, projects)
    pinned = policy.begin_toggle("3", PINNED, projects)
    assert pinned.value is True
    assert policy.is_toggling("3", FEATURED)
    assert policy.is_toggling("3", PINNED)


def test_in_flight_guard_is_per_entity(policy, projects):
    policy.begin_toggle("3", PINNED, projects)
    assert policy.begin_toggle("1", PINNED, projects).entity_id == "1"


def test_rollback_preserves_changes_made_while_in_flight(policy, projects):
    featured = policy.begin_toggle("3", FEATURED, projects)
    pinned = policy.begin_toggle("1", PINNED, featured.optimistic_list)
    current = policy.complete_toggle(pinned, MagicMock()).updated_list

    result = policy.complete_toggle(featured, MagicMock(side_effect=RuntimeError("down")), current)

    by_id = {entity["_id"]: entity for entity in result.updated_list}
    assert by_id["3"]["featured"] is False
    assert by_id["1"]["pinned"] is True


def test_cancel_releases_the_guard(policy, projects):
    pending = policy.begin_toggle("3", FEATURED, projects)
    policy.cancel_toggle(pending)
    assert not policy.is_toggling("3", FEATURED)


def test_failing_optimistic_callback_releases_the_guard(policy, projects):
    def _explode(_):
        raise RuntimeError("render failed")

    with pytest.raises(RuntimeError):
        policy.toggle_flag("3", FEATURED, projects, MagicMock(), on_optimistic=_explode)
    assert not policy.is_toggling("3", FEATURED)


def test_unknown_flag_is_a_value_error(policy, projects):
    with pytest.raises(ValueError):
        policy.toggle_flag("1", "archived", projects, MagicMock())


def test_unknown_entity_below_ceiling_is_a_value_error(policy, projects):
    with pytest.raises(ValueError):
        policy.begin_toggle("missing", PINNED, projects)
    assert not policy.is_toggling("missing", PINNED)


def test_check_ceiling_ignores_the_entity_itself(policy, three_featured):
    policy.check_ceiling(FEATURED, "1", three_featured)
    with pytest.raises(CurationRejected):
        policy.check_ceiling(FEATURED, "4", three_featured)
    with pytest.raises(CurationRejected):
        policy.check_ceiling(FEATURED, "", three_featured)


def test_custom_ceilings(projects):
    policy = CurationPolicy(ceilings={PINNED: 1})
    result = policy.toggle_flag("3", PINNED, projects, MagicMock())
    assert result.reason is CurationReason.CEILING_EXCEEDED
    assert policy.toggle_flag("3", FEATURED, projects, MagicMock()).accepted


def test_with_flag_copies_only_the_target(projects):
    updated = with_flag(projects, "3", PINNED, True)
    assert updated[2] is not projects[2]
    assert updated[0] is projects[0]
    assert updated[2]["pinned"] is True


def test_entities_keyed_by_plain_id(policy):
    entities = [{"id": 7, "featured": False}]
    result = policy.toggle_flag("7", FEATURED, entities, MagicMock())
    assert result.accepted
    assert result.updated_list[0]["featured"] is True


def test_in_flight_featuring_counts_toward_the_ceiling(policy):
    entities = [
        {"_id": "1", "featured": True},
        {"_id": "3", "featured": True},
        {"_id": "2", "featured": False},
    ]
    policy.begin_toggle("2", FEATURED, entities)

    fetched = entities + [{"_id": "4", "featured": False}]
    with pytest.raises(CurationRejected) as excinfo:
        policy.check_ceiling(FEATURED, "4", fetched)
    assert excinfo.value.reason is CurationReason.CEILING_EXCEEDED

    # a list that already shows the pending change does not count it twice
    fewer = [{"_id": "1", "featured": True}, {"_id": "2", "featured": True}, {"_id": "4", "featured": False}]
    policy.check_ceiling(FEATURED, "4", fewer)


def test_in_flight_unfeaturing_does_not_free_a_slot_early(policy, three_featured):
    policy.begin_toggle("1", FEATURED, three_featured)
    with pytest.raises(CurationRejected):
        policy.check_ceiling(FEATURED, "4", three_featured)


def test_released_toggle_no_longer_counts(policy, projects):
    pending = policy.begin_toggle("3", FEATURED, projects)
    policy.cancel_toggle(pending)
    policy.check_ceiling(FEATURED, "4", projects + [{"_id": "4", "featured": False}])


def test_settles_on_the_reloaded_list(policy, projects):
    pending = policy.begin_toggle("3", FEATURED, projects)
    confirmed_elsewhere = with_flag(projects, "3", PINNED, True)

    result = policy.complete_toggle(pending, MagicMock(), reload=lambda: confirmed_elsewhere)

    assert result.accepted
    assert result.updated_list[2] == {**projects[2], "featured": True, "pinned": True}


def test_reload_runs_after_the_confirmation(policy, projects):
    order = []
    pending = policy.begin_toggle("3", PINNED, projects)

    def _confirm(entity_id, changes):
        order.append("confirm")

    def _reload():
        order.append("reload")
        return projects

    policy.complete_toggle(pending, _confirm, reload=_reload)
    assert order == ["confirm", "reload"]


def test_failed_reload_falls_back_to_the_optimistic_list(policy, projects):
    pending = policy.begin_toggle("3", PINNED, projects)

    def _reload():
        raise ApiError("API error 503", status=503)

    result = policy.complete_toggle(pending, MagicMock(), reload=_reload)
    assert result.accepted
    assert result.updated_list[2]["pinned"] is True
