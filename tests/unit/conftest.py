"""Shared fixtures for unit tests.

Provides a sample recipe-set document as the model would emit it, and a stub
aiohttp session so gateway tests never touch the network.
"""

import asyncio
import copy
import json

import pytest


SAMPLE_RECIPE_SET = {
    "analysis": {
        "categorization": {
            "edible": ["egg", "spinach"],
            "nonFood": ["plastic spoon"],
            "toxic": ["foxglove"],
        },
        "safetyAlerts": ["Foxglove is poisonous and was excluded."],
    },
    "recipes": [
        {
            "dishName": "Spinach Omelette",
            "cookingTime": "15 mins",
            "dishType": "Non-Vegetarian",
            "ingredients": [
                {"item": "egg", "amount": "2"},
                {"item": "spinach", "amount": "1 cup"},
                {"item": "salt", "amount": "a pinch"},
            ],
            "steps": ["Whisk the eggs with salt.", "Wilt the spinach in a pan.", "Pour in the eggs and fold."],
            "nutrition": {"calories": "220 kcal", "protein": "14g", "carbs": "3g", "fats": "16g"},
        },
        {
            "dishName": "Garlic Spinach Stir-fry",
            "cookingTime": "10 mins",
            "dishType": "Vegetarian",
            "ingredients": [{"item": "spinach", "amount": "2 cups"}, {"item": "oil", "amount": "1 tbsp"}],
            "steps": ["Heat the oil.", "Toss the spinach until wilted."],
            "nutrition": {"calories": "90 kcal", "protein": "3g", "carbs": "4g", "fats": "7g"},
        },
    ],
}


@pytest.fixture
def recipe_set_data():
    """Fresh deep copy of a valid recipe-set document."""
    return copy.deepcopy(SAMPLE_RECIPE_SET)


@pytest.fixture
def recipe_set_json(recipe_set_data):
    return json.dumps(recipe_set_data)


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(self, status=200, body=None, text=None, raise_on_enter=None):
        self.status = status
        self._body = body
        self._text = text if text is not None else (json.dumps(body) if body is not None else "")
        self._raise_on_enter = raise_on_enter

    async def __aenter__(self):
        if self._raise_on_enter is not None:
            raise self._raise_on_enter
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type="application/json"):
        return json.loads(self._text)

    async def text(self):
        return self._text


class FakeSession:
    """Records post() calls and replays queued responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


def chat_body(content):
    """Chat-completion success body carrying content."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def fake_session():
    """Factory: fake_session(FakeResponse(...), ...) -> FakeSession."""
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def chat_response():
    """Factory: chat_response(content) -> FakeResponse with a 200 chat-completion body."""

    def _make(content):
        return FakeResponse(status=200, body=chat_body(content))

    return _make


@pytest.fixture
def timeout_response():
    return FakeResponse(raise_on_enter=asyncio.TimeoutError())
