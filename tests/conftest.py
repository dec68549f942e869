"""Shared fixtures: a scripted transport and a realistic profile document."""
from __future__ import annotations

import copy
import json
import os
from typing import Any, Iterable, List, Union

import pytest

from core.domain.models import HttpResponse, ProfileRequest
from core.errors import TransportFailure

Scripted = Union[HttpResponse, TransportFailure]

PROFILE_DOCUMENT: dict[str, Any] = {
    "hash": "1e5b5f6b3a5cbdfb7c4f0d3b2f0c6a4f8e2b1a0d9c8b7a6f5e4d3c2b1a0f9e8d",
    "display_name": "Alex Example",
    "profile_url": "https://gravatar.com/alexexample",
    "avatar_url": "https://0.gravatar.com/avatar/1e5b5f6b",
    "avatar_alt_text": "Alex smiling",
    "location": "Lisbon, Portugal",
    "description": "Builds things.",
    "job_title": "Engineer",
    "company": "Example Co",
    "verified_accounts": [
        {
            "service_type": "github",
            "service_label": "GitHub",
            "url": "https://github.com/alexexample",
            "is_hidden": False,
        }
    ],
    "pronunciation": "AL-ex",
    "pronouns": "they/them",
    "timezone": "Europe/Lisbon",
    "languages": [{"code": "en", "name": "English", "is_primary": True, "order": 1}],
    "first_name": "Alex",
    "last_name": "Example",
    "is_organization": False,
    "links": [{"label": "Blog", "url": "https://alex.example.com"}],
    "interests": [{"id": 1, "name": "photography"}],
    "payments": {"links": [], "crypto_wallets": []},
    "contact_info": {"home_phone": "", "contact_form": "https://alex.example.com/contact"},
    "number_verified_accounts": 1,
    "last_profile_edit": "2024-10-14T19:31:49Z",
    "registration_date": "2010-03-02T08:15:00Z",
    "section_visibility": {"hidden_contact_info": False},
}


class FakeTransport:
    """Transport returning scripted responses and recording requests."""

    def __init__(self, script: Iterable[Scripted] = ()) -> None:
        self.script: List[Scripted] = list(script)
        self.requests: List[ProfileRequest] = []

    def push(self, *items: Scripted) -> None:
        self.script.extend(items)

    def send(self, request: ProfileRequest) -> HttpResponse:
        self.requests.append(request)
        if not self.script:
            raise AssertionError("FakeTransport ran out of scripted responses")
        item = self.script.pop(0)
        if isinstance(item, TransportFailure):
            raise item
        return item


def json_response(document: Any, status_code: int = 200, **headers: str) -> HttpResponse:
    return HttpResponse(status_code=status_code, headers=dict(headers), body=json.dumps(document))


def status_response(status_code: int, body: str = "", **headers: str) -> HttpResponse:
    return HttpResponse(status_code=status_code, headers=dict(headers), body=body)


def timeout() -> TransportFailure:
    return TransportFailure("Request timed out", timeout=True)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep the developer's GRAVATAR_FDW_* environment and .env out of tests."""

    for key in list(os.environ):
        if key.startswith("GRAVATAR_FDW_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def profile_document() -> dict[str, Any]:
    return copy.deepcopy(PROFILE_DOCUMENT)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
