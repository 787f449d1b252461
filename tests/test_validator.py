import copy
import json

import pytest

from portfolio_audit.audit.validator import validate_audit_response
from portfolio_audit.errors import MalformedResponseError
from portfolio_audit.models.enums import AuditStatus, OptimizationType, RiskLevel

VALID = {
    "summary": {"status": "WARNING", "risk_score": 64, "text": "Correct score leg is fragile."},
    "details": [
        {
            "selection_ref": "f_1001",
            "risk_level": "HIGH",
            "tag": "Score trap",
            "analysis_text": "Chelsea score freely; 1:0 is optimistic.",
            "optimization": {
                "available": True,
                "type": "SAFETY_NET",
                "suggested_pick": "Home win",
                "suggested_reason": "Covers every home win scoreline.",
            },
        },
        {"selection_ref": "b_2001", "risk_level": "LOW", "analysis_text": "Fair line."},
    ],
}


def _payload(**changes):
    data = copy.deepcopy(VALID)
    for path, value in changes.items():
        target = data
        *parents, leaf = path.split("__")
        for key in parents:
            target = target[int(key)] if isinstance(target, list) else target[key]
        target[leaf] = value
    return data


def test_valid_response():
    result = validate_audit_response(json.dumps(VALID))
    assert result.summary.status == AuditStatus.WARNING
    assert result.summary.risk_score == 64
    assert [d.risk_level for d in result.details] == [RiskLevel.HIGH, RiskLevel.LOW]
    assert result.details[0].optimization.type == OptimizationType.SAFETY_NET
    assert result.details[1].optimization is None


def test_fenced_response_is_accepted():
    result = validate_audit_response("```json\n" + json.dumps(VALID) + "\n```")
    assert result.summary.status == AuditStatus.WARNING


def test_legacy_key_names_are_accepted():
    legacy = {
        "portfolio_summary": {"status": "PASS", "total_risk_score": 12, "summary_text": "Fine."},
        "audit_details": [
            {
                "selection_id": "f_1001",
                "risk_level": "MEDIUM",
                "ui_color": "#f59e0b",
                "risk_tag": "Form",
                "analysis": "Home side inconsistent.",
                "optimization": {
                    "available": False,
                    "type": "PIVOT",
                    "suggested_pick_name": "Draw",
                    "suggested_reason": "",
                },
            }
        ],
    }
    result = validate_audit_response(legacy)
    assert result.summary.risk_score == 12
    assert result.details[0].selection_ref == "f_1001"
    assert result.details[0].tag == "Form"
    assert result.details[0].analysis_text == "Home side inconsistent."
    assert result.details[0].optimization.suggested_pick == "Draw"


def test_missing_risk_level_rejects_the_whole_response():
    data = copy.deepcopy(VALID)
    del data["details"][1]["risk_level"]
    with pytest.raises(MalformedResponseError):
        validate_audit_response(data)


def test_missing_analysis_text_is_rejected():
    data = copy.deepcopy(VALID)
    del data["details"][0]["analysis_text"]
    with pytest.raises(MalformedResponseError):
        validate_audit_response(data)


@pytest.mark.parametrize(
    "changes",
    [
        {"summary__status": "OK"},
        {"summary__status": "pass"},
        {"summary__risk_score": 101},
        {"summary__risk_score": -1},
        {"summary__risk_score": "very risky"},
        {"summary__risk_score": "64"},
        {"summary__risk_score": True},
        {"details__0__risk_level": "EXTREME"},
    ],
)
def test_out_of_contract_values_are_rejected(changes):
    with pytest.raises(MalformedResponseError):
        validate_audit_response(_payload(**changes))


@pytest.mark.parametrize("raw", ["", "the engine is busy", "[]", b"{not json"])
def test_non_object_payloads_are_rejected(raw):
    with pytest.raises(MalformedResponseError):
        validate_audit_response(raw)


def test_missing_summary_is_rejected():
    with pytest.raises(MalformedResponseError):
        validate_audit_response({"details": []})


@pytest.mark.parametrize(("section", "key"), [("summary", "text"), (None, "details")])
def test_missing_required_sections_are_rejected(section, key):
    data = copy.deepcopy(VALID)
    del (data[section] if section else data)[key]
    with pytest.raises(MalformedResponseError):
        validate_audit_response(data)


def test_integer_risk_score_is_accepted():
    result = validate_audit_response(_payload(summary__risk_score=0))
    assert result.summary.risk_score == 0.0
