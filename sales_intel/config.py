import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()


class LLMSettings(BaseModel):
    """Language model configuration, read once from the environment and handed to the classifier"""
    api_key: Optional[str] = Field(None, description="OpenAI API key; None runs rule-based only")
    model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.1)
    max_tokens: int = Field(default=1000)
    timeout: float = Field(default=120.0, description="Request timeout in seconds")

    @classmethod
    def from_env(cls) -> "LLMSettings":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("DEFAULT_LLM_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.1")),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", "1000")),
            timeout=float(os.getenv("LLM_TIMEOUT", "120")),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)
