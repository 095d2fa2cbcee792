import pytest

from clearsend.pipeline.steps import (
    dedupe_step,
    flag_external_step,
    prioritize_internal,
    prioritize_internal_step,
    remove_external_step,
    sort_step,
    validate_step,
)


# ============================================================================
# Sort
# ============================================================================

def test_sort_orders_each_field_by_name_or_email(make_state):
    state = make_state(
        to=["zed@x.com", "Alice <z@x.com>", "bob@x.com"],
        cc=["b@x.com", "A@x.com"],
    )
    out = sort_step(state)

    assert out.lists.to == ("Alice <z@x.com>", "bob@x.com", "zed@x.com")
    assert out.lists.cc == ("A@x.com", "b@x.com")
    action = out.actions[-1]
    assert action.type == "sort"
    assert action.processed == 5
    assert action.removed == 0


def test_sort_is_idempotent_and_preserves_membership(make_state):
    state = make_state(to=["c@x.com", "B <b@x.com>", "a@x.com", "a@x.com"])
    once = sort_step(state)
    twice = sort_step(once)

    assert twice.lists == once.lists
    assert sorted(once.lists.to) == sorted(state.lists.to)


# ============================================================================
# Dedupe
# ============================================================================

def test_dedupe_cross_field_priority(make_state):
    state = make_state(to=["a@x.com"], cc=["a@x.com"], bcc=["a@x.com"])
    out = dedupe_step(state)

    assert out.lists.to == ("a@x.com",)
    assert out.lists.cc == ()
    assert out.lists.bcc == ()
    assert out.actions[-1].details["duplicates_found"] == 2


def test_dedupe_within_then_across(make_state):
    state = make_state(
        to=["a@x.com", "A <A@X.com>"],
        cc=["b@x.com", "a@x.com", "b@x.com"],
        bcc=["B@x.com", "c@x.com"],
    )
    out = dedupe_step(state)
    details = out.actions[-1].details

    assert out.lists.to == ("a@x.com",)
    assert out.lists.cc == ("b@x.com",)
    assert out.lists.bcc == ("c@x.com",)
    assert details["removed_within_field"] == ("A <A@X.com>", "b@x.com")
    assert details["removed_across_fields"] == ("a@x.com", "B@x.com")
    assert details["removed_entries"] == details["removed_within_field"] + details["removed_across_fields"]
    assert out.actions[-1].removed == 4


def test_dedupe_is_idempotent(make_state):
    state = make_state(to=["a@x.com", "b@x.com", "a@x.com"], cc=["b@x.com"], bcc=["c@x.com", "C@x.com"])
    once = dedupe_step(state)
    twice = dedupe_step(once)

    assert twice.lists == once.lists
    assert twice.actions[-1].removed == 0


# ============================================================================
# Validate
# ============================================================================

def test_validate_drops_errors_and_keeps_warnings(make_state):
    state = make_state(
        to=["a@example.com", "a..b@example.com", "Jane <jane@gmial.com>"],
        cc=["@example.com"],
    )
    out = validate_step(state)
    action = out.actions[-1]

    assert out.lists.to == ("a@example.com", "Jane <jane@gmial.com>")
    assert out.lists.cc == ()
    assert action.details["valid_count"] == 1
    assert action.details["warning_count"] == 1
    assert action.details["error_count"] == 2
    assert action.removed == 2
    assert [e["address"] for e in action.details["errors"]] == ["a..b@example.com", "@example.com"]
    assert [e["field"] for e in action.details["errors"]] == ["to", "cc"]
    assert action.details["warnings"][0]["suggestions"] == ("jane@gmail.com",)


def test_validate_is_idempotent(make_state):
    state = make_state(to=["a@example.com", "bad", "x@gmial.com"])
    once = validate_step(state)
    twice = validate_step(once)

    assert twice.lists == once.lists
    assert twice.actions[-1].removed == 0


# ============================================================================
# Prioritize Internal
# ============================================================================

def test_prioritize_by_domain_order(make_state):
    state = make_state(
        to=["b@partner.com", "a@corp.com", "c@external.com"],
        enabled_steps=["prioritizeInternal"],
        internal_domains=["corp.com", "partner.com"],
    )
    out = prioritize_internal_step(state)

    assert out.lists.to == ("a@corp.com", "b@partner.com", "c@external.com")
    assert out.actions[-1].removed == 0


def test_prioritize_keeps_input_order_within_priority():
    entries = ["zed@corp.com", "c@ext.com", "amy@corp.com", "b@ext.com"]
    assert prioritize_internal(entries, ["corp.com"]) == [
        "zed@corp.com", "amy@corp.com", "c@ext.com", "b@ext.com",
    ]


def test_prioritize_alphabetical_when_sort_enabled(make_state):
    state = make_state(
        to=["zed@corp.com", "c@ext.com", "amy@corp.com", "b@ext.com"],
        enabled_steps=["sort", "prioritizeInternal"],
        internal_domains=["corp.com"],
    )
    out = prioritize_internal_step(state)

    assert out.lists.to == ("amy@corp.com", "zed@corp.com", "b@ext.com", "c@ext.com")
    assert out.actions[-1].details["sort_alphabetically"] is True


def test_prioritize_without_domains_is_noop(make_state):
    state = make_state(to=["b@x.com", "a@x.com"], enabled_steps=["sort", "prioritizeInternal"])
    out = prioritize_internal_step(state)
    assert out.lists == state.lists


# ============================================================================
# Remove External
# ============================================================================

def test_remove_external(make_state):
    state = make_state(
        to=["a@corp.com", "b@ext.com"],
        cc=["c@mail.corp.com"],
        bcc=["d@ext.com"],
        internal_domains=["corp.com"],
    )
    out = remove_external_step(state)
    action = out.actions[-1]

    assert out.lists.to == ("a@corp.com",)
    assert out.lists.cc == ("c@mail.corp.com",)
    assert out.lists.bcc == ()
    assert action.removed == 2
    assert action.details["removed_by_field"] == {"to": ("b@ext.com",), "cc": (), "bcc": ("d@ext.com",)}


def test_remove_external_without_domains_removes_nothing(make_state):
    state = make_state(to=["a@corp.com", "b@ext.com"], internal_domains=["mydomain.com", " "])
    out = remove_external_step(state)

    assert out.lists == state.lists
    assert out.actions[-1].removed == 0
    assert out.actions[-1].skipped is True


# ============================================================================
# Flag External
# ============================================================================

def test_flag_external_reports_without_changing_lists(make_state):
    state = make_state(
        to=["a@corp.com", "b@ext.com"],
        cc=["c@ext.com", "d@other.org"],
        org_domain="corp.com",
    )
    out = flag_external_step(state)
    details = out.actions[-1].details

    assert out.lists == state.lists
    assert details["flagged"] == ("b@ext.com", "c@ext.com", "d@other.org")
    assert sorted(details["external_by_domain"]) == ["ext.com", "other.org"]
    assert [i["field"] for i in details["external_by_domain"]["ext.com"]] == ["to", "cc"]
    assert details["summary"] == {
        "total_recipients": 4,
        "external_count": 3,
        "internal_count": 1,
        "unique_external_domains": 2,
    }


def test_flag_external_skipped_without_org_domain(make_state):
    state = make_state(to=["a@corp.com"])
    out = flag_external_step(state)
    action = out.actions[-1]

    assert out.lists == state.lists
    assert action.skipped is True
    assert action.processed == 0
    assert action.details["message"] == "No organization domain provided"


# ============================================================================
# Action Records
# ============================================================================

def test_action_details_are_frozen(make_state):
    out = dedupe_step(make_state(to=["a@x.com", "a@x.com"]))
    action = out.actions[-1]

    with pytest.raises(TypeError):
        action.details["duplicates_found"] = 0
    assert action.details["removed_entries"] == ("a@x.com",)


def test_action_to_dict_returns_fresh_copies(make_state):
    out = dedupe_step(make_state(to=["a@x.com", "a@x.com"]))
    action = out.actions[-1]

    first = action.to_dict()
    first["removedEntries"].append("b@x.com")

    assert action.to_dict()["removedEntries"] == ["a@x.com"]
