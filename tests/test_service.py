import pytest
from pydantic import ValidationError

from clearsend.service import ABORT_MESSAGE, NO_CHANGES_MESSAGE, process_recipients


def test_process_recipients_wire_shape():
    payload = {
        "to": ["Bob <bob@CORP.com>", "bob@corp.com", "zed@external.com"],
        "cc": ["a..b@example.com"],
        "bcc": [],
        "enabledSteps": ["validate", "dedupe", "sort", "prioritizeInternal"],
        "internalDomains": ["corp.com"],
    }
    out = process_recipients(payload)

    assert out.to == ["Bob <bob@CORP.com>", "zed@external.com"]
    assert out.cc == []
    assert out.invalid == ["a..b@example.com"]
    assert out.message == "1 invalid removed, 1 duplicates removed"

    wire = out.to_wire()
    assert wire["summary"] == {"totalProcessed": 4, "totalRemaining": 2, "stepsExecuted": 4}
    assert [a["type"] for a in wire["actions"]] == ["validate", "dedupe", "sort", "prioritizeInternal"]
    assert wire["aborted"] is False


def test_input_payload_is_not_mutated():
    to = ["b@x.com", "a@x.com", "a@x.com"]
    payload = {"to": to, "enabledSteps": ["dedupe", "sort"]}
    out = process_recipients(payload)

    assert to == ["b@x.com", "a@x.com", "a@x.com"]
    assert out.to == ["a@x.com", "b@x.com"]


def test_abort_policy_changes_nothing_when_invalid_present():
    payload = {
        "to": ["b@x.com", "b@x.com", "broken"],
        "cc": ["c@x.com"],
        "enabledSteps": ["dedupe", "validate", "sort"],
        "invalidPolicy": "abort",
    }
    out = process_recipients(payload)

    assert out.aborted is True
    assert out.to == ["b@x.com", "b@x.com", "broken"]
    assert out.cc == ["c@x.com"]
    assert out.actions == []
    assert out.invalid == ["broken"]
    assert out.message == ABORT_MESSAGE
    assert out.summary.steps_executed == 0
    assert out.summary.total_remaining == 4


def test_abort_policy_argument_overrides_payload():
    payload = {"to": ["broken", "a@x.com"], "enabledSteps": ["validate"], "invalidPolicy": "remove"}
    assert process_recipients(payload, policy="abort").aborted is True
    assert process_recipients(payload).to == ["a@x.com"]


def test_abort_policy_runs_normally_when_all_valid_or_validate_disabled():
    valid = process_recipients({"to": ["b@x.com", "a@x.com"], "enabledSteps": ["validate", "sort"]}, policy="abort")
    assert valid.aborted is False
    assert valid.to == ["a@x.com", "b@x.com"]

    no_validate = process_recipients({"to": ["broken", "a@x.com"], "enabledSteps": ["sort"]}, policy="abort")
    assert no_validate.aborted is False
    assert no_validate.to == ["a@x.com", "broken"]


def test_placeholder_and_duplicate_domains_are_filtered():
    payload = {
        "to": ["x@ext.com", "b@partner.com", "a@corp.com"],
        "enabledSteps": ["prioritizeInternal"],
        "internalDomains": ["mydomain.com", "corp.com", "CORP.com", "", "partner.com"],
    }
    out = process_recipients(payload)
    assert out.to == ["a@corp.com", "b@partner.com", "x@ext.com"]


def test_no_changes_message():
    out = process_recipients({"to": ["a@x.com"], "enabledSteps": ["sort", "dedupe"]})
    assert out.message == NO_CHANGES_MESSAGE


def test_remove_external_counts_in_message():
    out = process_recipients({
        "to": ["a@corp.com", "b@ext.com"],
        "bcc": ["c@ext.com"],
        "enabledSteps": ["removeExternal"],
        "internalDomains": ["corp.com"],
    })
    assert out.to == ["a@corp.com"]
    assert out.bcc == []
    assert out.message == "2 external removed"


def test_snake_case_names_accepted():
    out = process_recipients({"to": ["a@corp.com"], "enabled_steps": ["flagExt"], "org_domain": "corp.com"})
    assert out.actions[0]["summary"]["internalCount"] == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"to": 5},
        {"to": [None]},
        {"invalidPolicy": "explode"},
    ],
)
def test_malformed_payload_raises_validation_error(payload):
    with pytest.raises(ValidationError):
        process_recipients(payload)


def test_action_keys_are_camel_case_on_the_wire():
    payload = {
        "to": ["a@x.com", "a@x.com", "jane@gmial.com", "broken"],
        "enabledSteps": ["dedupe", "validate", "flagExt"],
        "orgDomain": "corp.com",
    }
    dedupe, validate, flag = process_recipients(payload).to_wire()["actions"]

    assert dedupe["duplicatesFound"] == 1
    assert dedupe["removedWithinField"] == ["a@x.com"]
    assert {"validCount", "warningCount", "errorCount", "validationResults"} <= set(validate)
    assert (validate["validCount"], validate["warningCount"], validate["errorCount"]) == (1, 1, 1)
    assert validate["errors"][0]["isValid"] is False
    assert flag["orgDomain"] == "corp.com"
    assert flag["summary"]["uniqueExternalDomains"] == 2
    # Domain keys are data and stay as they are.
    assert sorted(flag["externalByDomain"]) == ["gmial.com", "x.com"]
    assert "duplicates_found" not in dedupe


def test_null_fields_count_as_empty():
    out = process_recipients({
        "to": ["b@x.com", "a@x.com"],
        "cc": None,
        "bcc": None,
        "enabledSteps": ["sort", "flagExt", "removeExternal"],
        "internalDomains": None,
        "orgDomain": None,
    })

    assert out.to == ["a@x.com", "b@x.com"]
    assert out.cc == [] and out.bcc == []
    flag, remove = out.actions[1:]
    assert flag["skipped"] is True
    assert remove["skipped"] is True


def test_null_enabled_steps_means_defaults():
    out = process_recipients({"to": ["a@x.com"], "enabledSteps": None})
    assert [a["type"] for a in out.actions] == ["sort", "dedupe", "validate", "prioritizeInternal"]
