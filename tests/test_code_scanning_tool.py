"""Tests for alerts_report.tools.code_scanning_tool."""

import pytest
from github import GithubException

from alerts_report.tools.code_scanning_tool import (
    ALERT_HEADER,
    CodeScanningTool,
    alert_severity,
)
from conftest import FakeGithub, make_alert


def _row(table, index=1):
    return dict(zip(table[0], table[index]))


def test_security_severity_level_wins_over_generic_severity():
    assert alert_severity({"security_severity_level": "high", "severity": "warning"}) == "high"


def test_generic_severity_is_used_without_security_severity_level():
    assert alert_severity({"severity": "warning"}) == "warning"
    assert alert_severity({"security_severity_level": None, "severity": "note"}) == "note"


def test_report_has_header_and_one_row_per_alert():
    github = FakeGithub([make_alert(1, "A", "error"), make_alert(2, "B", "warning")])

    table = CodeScanningTool(github).execute(owner="acme", repo="widgets")

    assert github.requested == ["acme/widgets"]
    assert table[0] == ALERT_HEADER
    assert len(table) == 3
    assert all(len(row) == len(ALERT_HEADER) for row in table)


def test_alert_fields_are_flattened_to_strings():
    alert = make_alert(
        7,
        "js/sql-injection",
        "error",
        security_severity="high",
        state="dismissed",
        dismissed_at="2024-03-05T09:00:00Z",
        dismissed_by={"login": "octocat"},
    )

    row = _row(CodeScanningTool(FakeGithub([alert])).get_code_scanning_report("acme", "widgets"))

    assert row["toolName"] == "CodeQL"
    assert row["toolVersion"] == "2.16.0"
    assert row["alertNumber"] == "7"
    assert row["state"] == "dismissed"
    assert row["rule"] == "js/sql-injection"
    assert row["severity"] == "high"
    assert row["location"] == "src/app.js"
    assert row["start-line"] == "10"
    assert row["end-line"] == "12"
    assert row["createdAt"] == "2024-03-01T10:00:00Z"
    assert row["dismissedAt"] == "2024-03-05T09:00:00Z"
    assert row["dismissedBy"] == "octocat"


def test_absent_lifecycle_fields_become_empty_strings():
    alert = make_alert(3, "A", "error")
    del alert["updated_at"]

    row = _row(CodeScanningTool(FakeGithub([alert])).get_code_scanning_report("acme", "widgets"))

    assert row["updatedAt"] == ""
    assert row["fixedAt"] == ""
    assert row["dismissedAt"] == ""
    assert row["dismissedBy"] == ""


def test_no_alerts_yields_header_only():
    table = CodeScanningTool(FakeGithub([])).get_code_scanning_report("acme", "widgets")

    assert table == [ALERT_HEADER]


def test_api_errors_propagate():
    error = GithubException(403, {"message": "Resource not accessible by integration"}, None)
    tool = CodeScanningTool(FakeGithub(error=error))

    with pytest.raises(GithubException):
        tool.get_code_scanning_report("acme", "widgets")
