import re
from typing import List, NamedTuple, Optional, Tuple

from .extraction import InformationExtractor
from .schemas import ClassificationResult


class KeywordRule(NamedTuple):
    name: str
    category: str
    sub_category: str
    confidence: float
    keywords: Tuple[str, ...]
    # When set, at least one of these must also appear
    required_with: Tuple[str, ...] = ()


# Evaluated in order; every matching rule overwrites the previous one
CLASSIFICATION_RULES: List[KeywordRule] = [
    KeywordRule(
        name="introduction",
        category="prospecting",
        sub_category="introduction",
        confidence=0.7,
        keywords=("สวัสดี", "hello", "good morning", "good afternoon"),
        required_with=("แนะนำ", "บริษัท", "ผลิตภัณฑ์", "introduce", "company", "product"),
    ),
    KeywordRule(
        name="needs-assessment",
        category="qualification",
        sub_category="needs-assessment",
        confidence=0.8,
        keywords=("ความต้องการ", "งบประมาณ", "ปัญหา", "ใช้งาน", "needs", "requirement", "budget", "problem", "pain point"),
    ),
    KeywordRule(
        name="product-demo",
        category="presentation",
        sub_category="product-demo",
        confidence=0.8,
        keywords=("demo", "demonstrate", "demonstrating", "demonstration", "นำเสนอ", "แสดง", "ฟีเจอร์",
                  "presentation", "present", "feature"),
    ),
    KeywordRule(
        name="price-discussion",
        category="negotiation",
        sub_category="price-discussion",
        confidence=0.8,
        keywords=("ราคา", "เงื่อนไข", "ส่วนลด", "ต่อรอง", "price", "pricing", "terms", "discount", "negotiate", "negotiation", "negotiating"),
    ),
    KeywordRule(
        name="contract-discussion",
        category="closing",
        sub_category="contract-discussion",
        confidence=0.9,
        keywords=("สัญญา", "เซ็น", "ตกลง", "ยืนยัน", "contract", "sign", "agree", "confirm"),
    ),
    KeywordRule(
        name="appointment-setting",
        category="follow-up",
        sub_category="appointment-setting",
        confidence=0.7,
        keywords=("ติดตาม", "นัดหมาย", "ครั้งต่อไป", "สัปดาห์หน้า", "สัปดาหน้า", "follow up", "follow-up", "appointment", "next time", "next week"),
    ),
]


LATIN_INFLECTIONS = r"(?:s|es|d|ed|ing|ion|ions|ation|ations|ment|ments)?"


def contains_keyword(text: str, keyword: str) -> bool:
    """Thai keywords match anywhere; Latin keywords match whole words with common inflections"""
    if keyword.isascii():
        return re.search(r"\b" + re.escape(keyword) + LATIN_INFLECTIONS + r"\b", text) is not None
    return keyword in text


class ClassificationRules:
    """Deterministic keyword classifier used when no language model is available"""

    DEFAULT_CATEGORY = "qualification"
    DEFAULT_SUB_CATEGORY = "general"
    DEFAULT_CONFIDENCE = 0.6
    BASE_QUALITY_SCORE = 50

    def __init__(self, extractor: Optional[InformationExtractor] = None,
                 rules: Optional[List[KeywordRule]] = None):
        self.extractor = extractor or InformationExtractor()
        self.rules = rules if rules is not None else CLASSIFICATION_RULES

    def matching_rules(self, transcript: str) -> List[KeywordRule]:
        text = (transcript or "").lower()
        matched = []
        for rule in self.rules:
            if not any(contains_keyword(text, kw) for kw in rule.keywords):
                continue
            if rule.required_with and not any(contains_keyword(text, kw) for kw in rule.required_with):
                continue
            matched.append(rule)
        return matched

    def classify(self, transcript: str, activity_type: Optional[str] = None) -> ClassificationResult:
        transcript = transcript or ""

        category = self.DEFAULT_CATEGORY
        sub_category = self.DEFAULT_SUB_CATEGORY
        confidence = self.DEFAULT_CONFIDENCE

        matched = self.matching_rules(transcript)
        for rule in matched:
            category = rule.category
            sub_category = rule.sub_category
            confidence = rule.confidence

        extracted = self.extractor.extract(transcript)

        quality_score = self.BASE_QUALITY_SCORE
        if len(transcript) > 500:
            quality_score += 20
        if extracted.action_items:
            quality_score += 15
        if extracted.customer_info.name or extracted.customer_info.company:
            quality_score += 15

        if matched:
            reasoning = "Rule-based classification; matched keywords for: " + ", ".join(r.name for r in matched)
        else:
            reasoning = "Rule-based classification; no category keywords found"
        if activity_type:
            reasoning += f" (activity type: {activity_type})"

        return ClassificationResult(
            category=category,
            sub_category=sub_category,
            confidence=confidence,
            extracted_data=extracted,
            reasoning=reasoning,
            quality_score=min(100, quality_score),
        )
