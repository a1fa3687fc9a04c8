# tests/test_config.py
from aptis_practice.core.config import Config, config


def test_module_config_is_a_config():
    assert isinstance(config, Config)


def test_missing_key_is_reported(monkeypatch):
    monkeypatch.setattr(config, "GROQ_API_KEY", "")

    result = config.validate()

    assert result["valid"] is False
    assert "GROQ_API_KEY is required" in result["issues"]


def test_valid_with_key():
    assert config.validate()["valid"] is True


def test_section_durations_skip_speaking():
    durations = config.section_durations()

    assert durations == {
        "GrammarVocabulary": 12 * 60,
        "Reading": 35 * 60,
        "Writing": 50 * 60,
        "Listening": 40 * 60,
    }
    assert "Speaking" not in durations
