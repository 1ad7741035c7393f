import logging
from typing import Any, Dict, Optional, Protocol

from openai import OpenAI

from .config import LLMSettings

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = (
    "You are an expert sales AI assistant analyzing Thai/English sales conversations. "
    "Always respond with valid JSON."
)

# Model configuration profiles
MODEL_CONFIGS = {
    "gpt-5": {
        "token_param": "max_completion_tokens",
        "supports_temperature": False,
        "api": "responses",
        "description": "Latest frontier model with 400k context"
    },
    "gpt-4o": {
        "token_param": "max_tokens",
        "supports_temperature": True,
        "api": "chat",
        "description": "Standard GPT-4o model"
    },
    "gpt-4o-mini": {
        "token_param": "max_tokens",
        "supports_temperature": True,
        "api": "chat",
        "description": "Cost-effective GPT-4o variant"
    },
    "gpt-4.1": {
        "token_param": "max_tokens",
        "supports_temperature": True,
        "api": "chat",
        "description": "GPT-4.1 family"
    },
    "o1": {
        "token_param": "max_completion_tokens",
        "supports_temperature": False,
        "api": "o1",
        "description": "Reasoning model, no system message support"
    },
}


class LanguageModel(Protocol):
    """Anything that turns a prompt into raw response text"""

    def generate(self, prompt: str) -> str:
        ...


class OpenAILanguageModel:
    """OpenAI-backed text generation; API errors propagate to the caller"""

    def __init__(self, settings: LLMSettings, client: Optional[OpenAI] = None):
        if not settings.api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set")

        self.settings = settings
        self.model = settings.model
        self.client = client or OpenAI(api_key=settings.api_key, timeout=settings.timeout)
        self.model_config = self._get_model_config()

    def _get_model_config(self) -> Dict[str, Any]:
        """Get configuration for the current model"""
        if self.model in MODEL_CONFIGS:
            return MODEL_CONFIGS[self.model]

        # Longest prefix wins so gpt-4o-mini-2024 maps to gpt-4o-mini, not gpt-4o
        for config_model in sorted(MODEL_CONFIGS, key=len, reverse=True):
            if self.model.startswith(config_model):
                return MODEL_CONFIGS[config_model]

        # Unknown models are assumed to behave like GPT-4
        return {
            "token_param": "max_tokens",
            "supports_temperature": True,
            "api": "chat",
            "description": f"Unknown model: {self.model}"
        }

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "config": self.model_config.copy(),
            "temperature": self.settings.temperature if self.model_config.get("supports_temperature", True) else 1.0,
            "max_tokens": self.settings.max_tokens
        }

    def generate(self, prompt: str) -> str:
        api = self.model_config.get("api", "chat")
        logger.debug("Requesting %s completion via %s API", self.model, api)

        if api == "responses":
            return self._responses_request(prompt)
        if api == "o1":
            return self._o1_chat_request(prompt)
        return self._chat_completions_request(prompt)

    def _responses_request(self, prompt: str) -> str:
        # Reasoning models need more headroom for output tokens
        max_out = max(self.settings.max_tokens, 1500)
        response = self.client.responses.create(
            model=self.model,
            input=f"{SYSTEM_INSTRUCTION}\n\n{prompt}",
            reasoning={"effort": "minimal"},
            text={"verbosity": "low"},
            max_output_tokens=max_out
        )
        return response.output_text or ""

    def _o1_chat_request(self, prompt: str) -> str:
        max_out = max(self.settings.max_tokens, 1500)
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": f"{SYSTEM_INSTRUCTION}\n\n{prompt}"}],
            max_completion_tokens=max_out
        )
        return response.choices[0].message.content or ""

    def _chat_completions_request(self, prompt: str) -> str:
        request_params = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": prompt}
            ]
        }

        token_param = self.model_config.get("token_param", "max_tokens")
        request_params[token_param] = self.settings.max_tokens

        if self.model_config.get("supports_temperature", True):
            request_params["temperature"] = self.settings.temperature

        response = self.client.chat.completions.create(**request_params)
        return response.choices[0].message.content or ""


def build_language_model(settings: Optional[LLMSettings] = None) -> Optional[OpenAILanguageModel]:
    """OpenAI collaborator for the given settings, or None when no API key is configured"""
    settings = settings or LLMSettings.from_env()
    if not settings.configured:
        logger.info("No OPENAI_API_KEY configured; classification will be rule-based")
        return None
    return OpenAILanguageModel(settings)
