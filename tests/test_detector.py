import json

import pytest

from voicemail_pipeline import detector


def test_bundled_keywords_cover_both_languages():
    keywords = detector.load_keywords()
    assert len(keywords) == 25
    assert "voicemail" in keywords
    assert "留守番電話" in keywords


@pytest.mark.parametrize(
    "transcript",
    [
        "VOICEMAIL",
        "voicemail",
        "Please Leave A Message after the tone",
        "ただいま電話に出ることができません",
        "The person you are calling is Not Available",
    ],
)
def test_detects_greetings(transcript):
    assert detector.classify(transcript) is True


@pytest.mark.parametrize("transcript", ["", None, 42, ["voicemail"], "もしもし、田中です", "hello, yes speaking"])
def test_live_or_invalid_input(transcript):
    assert detector.classify(transcript) is False


def test_matched_keyword_returns_first_match():
    assert detector.matched_keyword("please leave a message", ["leave a message", "please leave"]) == "leave a message"
    assert detector.matched_keyword("hello") is None


def test_custom_keyword_file(tmp_path):
    path = tmp_path / "keywords.json"
    path.write_text(json.dumps({"version": 9, "keywords": {"de": ["Anrufbeantworter", "anrufbeantworter"]}}))
    keywords = detector.load_keywords(str(path))
    assert keywords == ("anrufbeantworter",)
    assert detector.classify("Hier ist der ANRUFBEANTWORTER", keywords) is True
    assert detector.classify("voicemail", keywords) is False


def test_keywords_path_environment_override(monkeypatch, tmp_path):
    path = tmp_path / "de.json"
    path.write_text(json.dumps({"version": 1, "keywords": {"de": ["Anrufbeantworter"]}}))
    monkeypatch.setenv("KEYWORDS_PATH", str(path))
    assert detector.load_keywords() == ("anrufbeantworter",)
    assert detector.classify("anrufbeantworter") is True
    assert detector.classify("voicemail") is False
    monkeypatch.delenv("KEYWORDS_PATH")
    assert detector.classify("voicemail") is True
