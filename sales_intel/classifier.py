import json
import logging
import math
from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel

from .language_model import LanguageModel
from .rules import ClassificationRules
from .schemas import (
    CATEGORIES, ClassificationOutcome, ClassificationResult, CustomerInfo, DealInfo, ExtractedData
)

logger = logging.getLogger(__name__)


CLASSIFICATION_PROMPT = """
You are an expert sales AI assistant. Analyze this Thai/English sales conversation and provide a comprehensive classification.

Conversation: "{transcript}"
Activity Type: {activity_type}

Please analyze and provide the following in JSON format:

{{
  "category": "one of: prospecting, qualification, presentation, negotiation, closing, follow-up, support",
  "subCategory": "specific sub-category (e.g., cold-call, demo, proposal-review, price-negotiation, contract-signing)",
  "confidence": 0.0-1.0,
  "extractedData": {{
    "customerInfo": {{
      "name": "customer name if mentioned",
      "company": "company name if mentioned",
      "position": "job title if mentioned",
      "email": "email if mentioned",
      "phone": "phone if mentioned"
    }},
    "dealInfo": {{
      "value": "deal value/budget if mentioned",
      "status": "current deal status",
      "probability": 0-100,
      "expectedCloseDate": "if mentioned"
    }},
    "actionItems": ["list of follow-up actions"],
    "nextSteps": ["planned next steps"],
    "painPoints": ["customer problems/challenges mentioned"],
    "decisionMakers": ["decision makers mentioned"],
    "competitors": ["competitors mentioned"],
    "timeline": "project/decision timeline",
    "budget": "budget information"
  }},
  "reasoning": "explanation of why this category was chosen",
  "qualityScore": 0-100
}}

Category Guidelines:
- prospecting: Initial outreach, cold calls, research
- qualification: Discovery calls, needs assessment, BANT qualification
- presentation: Product demos, solution presentations, capability overview
- negotiation: Price discussions, terms negotiation, objection handling
- closing: Final proposals, contract signing, deal finalization
- follow-up: Post-meeting follow-ups, check-ins, relationship building
- support: Customer service, troubleshooting, account management

Quality Score Factors:
- Conversation depth and engagement
- Clear outcomes and next steps
- Customer information gathered
- Pain points identified
- Decision process understanding

Respond only with valid JSON.
"""

DEFAULT_REASONING = "Automated classification based on conversation content"
LIST_FIELDS = ("action_items", "next_steps", "pain_points", "decision_makers", "competitors")


class InvalidResponseError(ValueError):
    """Language model response could not be turned into a classification"""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_float(value: Any) -> Optional[float]:
    """Finite float for a JSON number, else None"""
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _clamp(value: Any, low: float, high: float, default: float) -> float:
    number = _as_float(value)
    if number is None:
        return default
    return max(low, min(high, number))


def extract_json_object(content: str) -> Dict[str, Any]:
    """First balanced {...} in the text that decodes to a JSON object"""
    if not isinstance(content, str) or not content.strip():
        raise InvalidResponseError("Empty response from language model")

    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]

    decoder = json.JSONDecoder()
    start = content.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(content, start)
        except RecursionError:
            raise InvalidResponseError("JSON nested too deeply")
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = content.find("{", start + 1)

    raise InvalidResponseError("No JSON object found in response")


class ActivityClassifier:
    """
    Classifies a transcript into a sales funnel stage.

    With a language model the AI path is tried first; a missing model, a failed
    call or an unusable response all fall back to the keyword rules.
    """

    def __init__(self, language_model: Optional[LanguageModel] = None,
                 rules: Optional[ClassificationRules] = None):
        self.language_model = language_model
        self.rules = rules or ClassificationRules()

    @property
    def ai_enabled(self) -> bool:
        return self.language_model is not None

    def classify(self, transcript: str, activity_type: Optional[str] = None) -> ClassificationResult:
        return self.classify_with_outcome(transcript, activity_type).result

    def classify_with_outcome(self, transcript: str, activity_type: Optional[str] = None) -> ClassificationOutcome:
        transcript = transcript or ""

        if self.language_model is None:
            logger.debug("Language model not configured, using rule-based classification")
            return self._rule_outcome(transcript, activity_type, None)

        prompt = self.build_prompt(transcript, activity_type)
        try:
            content = self.language_model.generate(prompt)
        except Exception as e:
            logger.warning("Language model classification error: %s", e)
            return self._rule_outcome(transcript, activity_type, f"API error: {e}")

        try:
            parsed = extract_json_object(content)
            result = self.validate_classification(parsed)
        except Exception as e:
            logger.warning("Failed to parse classification response: %s", e)
            return self._rule_outcome(transcript, activity_type, f"Invalid response: {e}")

        return ClassificationOutcome(path="ai", result=result)

    def _rule_outcome(self, transcript: str, activity_type: Optional[str],
                      reason: Optional[str]) -> ClassificationOutcome:
        return ClassificationOutcome(
            path="rule",
            result=self.rules.classify(transcript, activity_type),
            fallback_reason=reason,
        )

    def build_prompt(self, transcript: str, activity_type: Optional[str] = None) -> str:
        return CLASSIFICATION_PROMPT.format(transcript=transcript, activity_type=activity_type or "unknown")

    def validate_classification(self, parsed: Dict[str, Any]) -> ClassificationResult:
        """Sanitize a decoded response into a well-formed classification"""
        category = parsed.get("category")
        if category not in CATEGORIES:
            category = "qualification"

        sub_category = parsed.get("subCategory")
        if not isinstance(sub_category, str) or not sub_category.strip():
            sub_category = "general"

        reasoning = parsed.get("reasoning")
        if not isinstance(reasoning, str) or not reasoning.strip():
            reasoning = DEFAULT_REASONING

        extracted = parsed.get("extractedData")
        if not isinstance(extracted, dict):
            extracted = {}

        return ClassificationResult(
            category=category,
            sub_category=sub_category.strip(),
            confidence=_clamp(parsed.get("confidence"), 0, 1, 0.7),
            extracted_data=self._clean_extracted_data(extracted),
            reasoning=reasoning,
            quality_score=_clamp(parsed.get("qualityScore"), 0, 100, 50),
        )

    def _clean_extracted_data(self, data: Dict[str, Any]) -> ExtractedData:
        lists = {}
        for field in LIST_FIELDS:
            lists[field] = self._clean_list(data.get(to_camel(field)))

        return ExtractedData(
            customer_info=CustomerInfo(**self._clean_strings(data.get("customerInfo"), CustomerInfo)),
            deal_info=self._clean_deal_info(data.get("dealInfo")),
            timeline=self._clean_text(data.get("timeline")),
            budget=self._clean_text(data.get("budget")),
            **lists,
        )

    def _clean_list(self, items: Any) -> List[str]:
        if not isinstance(items, list):
            return []
        cleaned = []
        for item in items:
            if isinstance(item, (str, int, float)) and not isinstance(item, bool):
                text = str(item).strip()
                if text:
                    cleaned.append(text)
        return cleaned

    def _clean_text(self, value: Any) -> str:
        if isinstance(value, str):
            return value.strip()
        if _is_number(value):
            return str(value)
        return ""

    def _clean_strings(self, data: Any, model) -> Dict[str, str]:
        """Known string fields with non-empty values, keyed by attribute name"""
        if not isinstance(data, dict):
            return {}
        cleaned = {}
        for name, field in model.model_fields.items():
            if field.annotation != Optional[str]:
                continue
            text = self._clean_text(data.get(to_camel(name), data.get(name)))
            if text:
                cleaned[name] = text
        return cleaned

    def _clean_deal_info(self, data: Any) -> DealInfo:
        fields = self._clean_strings(data, DealInfo)
        if isinstance(data, dict):
            probability = data.get("probability")
            if isinstance(probability, str):
                try:
                    probability = float(probability.strip().rstrip("%"))
                except ValueError:
                    probability = None
            probability = _as_float(probability)
            if probability is not None:
                fields["probability"] = max(0.0, min(100.0, probability))
        return DealInfo(**fields)
