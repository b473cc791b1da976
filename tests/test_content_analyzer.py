from datetime import datetime, timedelta, timezone

from foodshare.errors import InferenceUnavailable
from foodshare.services.ai import content

NOW = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)


class DummyInference:
    def __init__(self, reply: str):
        self.reply = reply
        self.calls = []

    def generate(self, prompt, *, image=None, mime_type="image/jpeg", json_response=False):
        self.calls.append({"prompt": prompt, "image": image, "mime_type": mime_type, "json": json_response})
        return self.reply


def test_non_json_reply_returns_default_analysis():
    analysis = content.analyze_food_image(b"jpeg", client=DummyInference("not json"), now=NOW)

    assert analysis.fallback
    assert analysis.quality_score == 0.7
    assert analysis.category == "Food"
    assert analysis.description == "Unable to analyze image"
    assert analysis.suggestions == ["Store properly", "Check expiry date"]
    assert analysis.expiry_prediction is None


def test_fenced_reply_is_parsed_and_expiry_converted():
    reply = (
        "Here you go:\n```json\n"
        '{"quality_score": 0.85, "category": "Rice Dish", "expiry_hours": 24, '
        '"description": "Fresh biryani {with rice}", "suggestions": ["Refrigerate", 3]}\n```'
    )
    dummy = DummyInference(reply)

    analysis = content.analyze_food_image(b"jpeg", mime_type="image/png", client=dummy, now=NOW)

    assert not analysis.fallback
    assert analysis.quality_score == 0.85
    assert analysis.category == "Rice Dish"
    assert analysis.description == "Fresh biryani {with rice}"
    assert analysis.suggestions == ["Refrigerate"]
    assert analysis.expiry_prediction == NOW + timedelta(hours=24)
    assert dummy.calls[0]["image"] == b"jpeg"
    assert dummy.calls[0]["mime_type"] == "image/png"
    assert dummy.calls[0]["json"] is True


def test_missing_optional_fields_get_defaults():
    analysis = content.analyze_food_image(b"x", client=DummyInference('{"quality_score": 1}'), now=NOW)

    assert analysis.quality_score == 1.0
    assert analysis.category == "Food"
    assert analysis.description == "Food item"
    assert analysis.expiry_prediction is None


def test_non_positive_or_invalid_expiry_is_ignored():
    zero = content.analyze_food_image(
        b"x", client=DummyInference('{"quality_score": 0.5, "expiry_hours": 0}'), now=NOW
    )
    text = content.analyze_food_image(
        b"x", client=DummyInference('{"quality_score": 0.5, "expiry_hours": "soon"}'), now=NOW
    )

    assert zero.expiry_prediction is None
    assert text.expiry_prediction is None
    assert not text.fallback


def test_out_of_range_quality_score_falls_back():
    for reply in ('{"quality_score": 1.5}', '{"quality_score": -0.1}', '{"quality_score": "high"}', '{"category": "Bread"}'):
        analysis = content.analyze_food_image(b"x", client=DummyInference(reply), now=NOW)
        assert analysis.fallback, reply
        assert analysis.quality_score == 0.7


def test_unavailable_inference_returns_default(monkeypatch):
    def unavailable():
        raise InferenceUnavailable("Gemini API key is not configured.")

    monkeypatch.setattr(content, "InferenceClient", unavailable)

    analysis = content.analyze_food_image(b"x", now=NOW)

    assert analysis.fallback
    assert analysis.description == "Unable to analyze image"


def test_default_client_is_used_when_none_given(monkeypatch):
    dummy = DummyInference('{"quality_score": 0.9, "category": "Bread"}')
    monkeypatch.setattr(content, "InferenceClient", lambda: dummy)

    analysis = content.analyze_food_image(b"x", now=NOW)

    assert analysis.category == "Bread"
    assert len(dummy.calls) == 1
