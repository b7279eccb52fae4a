"""Shared fakes for the GitHub REST and GraphQL clients."""

import pytest
import requests


class FakeAlert:
    """Stands in for github.CodeScanAlert.CodeScanAlert."""

    def __init__(self, raw_data):
        self.raw_data = raw_data


class FakeRepository:
    def __init__(self, alerts, error=None):
        self._alerts = alerts
        self._error = error

    def get_codescan_alerts(self):
        if self._error is not None:
            raise self._error
        # a generator, like PaginatedList, is only consumed on iteration
        return (FakeAlert(alert) for alert in self._alerts)


class FakeGithub:
    def __init__(self, alerts=(), error=None):
        self.repository = FakeRepository(list(alerts), error)
        self.requested = []

    def get_repo(self, full_name):
        self.requested.append(full_name)
        return self.repository


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, payload, status_code=200):
        self.response = FakeResponse(payload, status_code)
        self.calls = []
        self.closed = False

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response

    def close(self):
        self.closed = True


def make_alert(number, rule_id, severity, security_severity=None, **overrides):
    rule = {"id": rule_id, "severity": severity}
    if security_severity is not None:
        rule["security_severity_level"] = security_severity
    alert = {
        "number": number,
        "html_url": f"https://github.com/acme/widgets/security/code-scanning/{number}",
        "state": "open",
        "created_at": "2024-03-01T10:00:00Z",
        "updated_at": "2024-03-02T10:00:00Z",
        "fixed_at": None,
        "dismissed_at": None,
        "dismissed_by": None,
        "rule": rule,
        "tool": {"name": "CodeQL", "version": "2.16.0"},
        "most_recent_instance": {
            "location": {"path": "src/app.js", "start_line": 10, "end_line": 12}
        },
    }
    alert.update(overrides)
    return alert


def make_dependency(name, license_name=None, manager="NPM", requirements="= 1.0.0"):
    repository = None
    if license_name is not None:
        repository = {"licenseInfo": {"name": license_name}}
    return {
        "node": {
            "packageName": name,
            "packageManager": manager,
            "requirements": requirements,
            "repository": repository,
        }
    }


def make_graph_payload(manifests, license_name="MIT"):
    """manifests: list of (filename, [dependency edges])"""
    return {
        "data": {
            "repository": {
                "name": "widgets",
                "licenseInfo": {"name": license_name} if license_name else None,
                "dependencyGraphManifests": {
                    "totalCount": len(manifests),
                    "edges": [
                        {
                            "node": {
                                "filename": filename,
                                "dependencies": {"edges": dependencies},
                            }
                        }
                        for filename, dependencies in manifests
                    ],
                },
            }
        }
    }


@pytest.fixture(autouse=True)
def clean_github_env(monkeypatch):
    """Keep the runner's own Actions environment out of the tests."""
    for name in ("GITHUB_EVENT_PATH", "GITHUB_REPOSITORY", "GITHUB_TOKEN", "INPUT_TOKEN"):
        monkeypatch.delenv(name, raising=False)
