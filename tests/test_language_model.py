from types import SimpleNamespace

import pytest
from sales_intel.config import LLMSettings
from sales_intel.language_model import OpenAILanguageModel, SYSTEM_INSTRUCTION, build_language_model


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeResponses:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(output_text=self.content)


class FakeClient:
    def __init__(self, content='{"category": "closing"}'):
        self.chat = SimpleNamespace(completions=FakeCompletions(content))
        self.responses = FakeResponses(content)


class TestLLMSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("DEFAULT_LLM_MODEL", "gpt-4o")
        monkeypatch.setenv("LLM_TEMPERATURE", "0.3")
        monkeypatch.setenv("LLM_MAX_TOKENS", "2000")

        settings = LLMSettings.from_env()

        assert settings.configured
        assert settings.model == "gpt-4o"
        assert settings.temperature == 0.3
        assert settings.max_tokens == 2000

    def test_missing_key_is_unconfigured(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "")

        settings = LLMSettings.from_env()

        assert settings.api_key is None
        assert not settings.configured
        assert build_language_model(settings) is None


class TestOpenAILanguageModel:
    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            OpenAILanguageModel(LLMSettings())

    def test_chat_request(self):
        client = FakeClient()
        model = OpenAILanguageModel(LLMSettings(api_key="sk-test", model="gpt-4o-mini"), client=client)

        content = model.generate("classify this")

        call = client.chat.completions.calls[0]
        assert content == '{"category": "closing"}'
        assert call["model"] == "gpt-4o-mini"
        assert call["messages"][0] == {"role": "system", "content": SYSTEM_INSTRUCTION}
        assert call["messages"][1] == {"role": "user", "content": "classify this"}
        assert call["max_tokens"] == 1000
        assert call["temperature"] == 0.1

    def test_o1_request_has_no_system_message(self):
        client = FakeClient()
        model = OpenAILanguageModel(LLMSettings(api_key="sk-test", model="o1-preview"), client=client)

        model.generate("classify this")

        call = client.chat.completions.calls[0]
        assert [m["role"] for m in call["messages"]] == ["user"]
        assert call["max_completion_tokens"] == 1500
        assert "temperature" not in call

    def test_responses_request(self):
        client = FakeClient()
        model = OpenAILanguageModel(LLMSettings(api_key="sk-test", model="gpt-5"), client=client)

        assert model.generate("classify this") == '{"category": "closing"}'
        assert client.responses.calls[0]["input"].endswith("classify this")

    def test_model_config_prefix_match(self):
        model = OpenAILanguageModel(LLMSettings(api_key="sk-test", model="gpt-4o-mini-2024-07-18"),
                                    client=FakeClient())

        assert model.model_config["description"] == "Cost-effective GPT-4o variant"

    def test_unknown_model_defaults_to_chat(self):
        model = OpenAILanguageModel(LLMSettings(api_key="sk-test", model="my-model"), client=FakeClient())

        info = model.get_model_info()

        assert info["config"]["api"] == "chat"
        assert info["temperature"] == 0.1
