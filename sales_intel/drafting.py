from datetime import date, timedelta
from typing import List, Optional, Tuple

from .extraction import InformationExtractor
from .schemas import ActivityDraft, CustomerInfo, DealInfo, FieldSuggestion


# First matching entry wins
ACTIVITY_TYPE_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("call", ("โทร", "call", "phone")),
    ("meeting", ("ประชุม", "meeting", "พบ")),
    ("email", ("อีเมล", "email")),
    ("proposal", ("เสนอ", "proposal")),
    ("negotiation", ("เจรจา", "negotiat")),
    ("follow-up-call", ("ติดตาม", "follow")),
    ("demo", ("เดโม", "demo")),
]

CATEGORY_HINTS: List[Tuple[str, Tuple[str, ...]]] = [
    ("prospecting", ("หาลูกค้า", "prospect")),
    ("qualification", ("คัดกรอง", "qualify")),
    ("presentation", ("นำเสนอ", "present")),
    ("negotiation", ("เจรจา", "negotiat")),
    ("closing", ("ปิดดีล", "closing")),
    ("follow-up", ("ติดตาม", "follow")),
    ("support", ("สนับสนุน", "support")),
]

PRIORITY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("urgent", ("ด่วน", "urgent", "เร่ง")),
    ("high", ("สำคัญ", "important", "high")),
]

TAG_KEYWORDS = {
    "ซื้อ": "purchase",
    "ขาย": "sales",
    "เทคโนโลยี": "technology",
    "software": "software",
    "hardware": "hardware",
    "service": "service",
    "บริการ": "service",
    "ปรึกษา": "consultation",
    "ฝึกอบรม": "training",
    "สนใจ": "interested",
    "hot": "hot-lead",
    "qualified": "qualified",
}

DEAL_STATUS_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("qualified", ("สนใจ", "interested")),
    ("negotiation", ("เจรจา", "negotiate")),
    ("closing", ("ปิดดีล", "close")),
]

PROBABILITY_KEYWORDS: List[Tuple[int, Tuple[str, ...]]] = [
    (90, ("แน่ใจ", "certain")),
    (70, ("น่าจะ", "likely")),
    (50, ("อาจจะ", "maybe")),
]

TITLE_PREFIXES = {
    "call": "โทรหา",
    "meeting": "ประชุมกับ",
    "email": "ส่งอีเมลถึง",
    "voice-note": "บันทึกเสียงเกี่ยวกับ",
    "demo": "เดโมให้",
    "proposal": "เสนอราคาให้",
    "negotiation": "เจรจากับ",
    "follow-up-call": "ติดตามกับ",
    "site-visit": "เยี่ยมชม",
}

DESCRIPTION_LIMIT = 200
FOLLOW_UP_DAYS = 7


def _first_match(text: str, table, default):
    for value, keywords in table:
        if any(keyword in text for keyword in keywords):
            return value
    return default


class ActivityDrafter:
    """Builds a pre-filled activity form from a voice transcript"""

    def __init__(self, extractor: Optional[InformationExtractor] = None):
        self.extractor = extractor or InformationExtractor()

    def draft(self, transcript: str, today: Optional[date] = None) -> ActivityDraft:
        text = transcript or ""
        lowered = text.lower()
        extracted = self.extractor.extract(text)

        activity_type = _first_match(lowered, ACTIVITY_TYPE_KEYWORDS, "voice-note")
        customer_name = extracted.customer_info.name or ""
        estimated_value = self.extractor.extract_value(text)

        customer_info = CustomerInfo(
            name=extracted.customer_info.name,
            company=extracted.customer_info.company,
            phone=extracted.customer_info.phone,
            email=extracted.customer_info.email,
        )
        deal_info = DealInfo(
            value=str(estimated_value) if estimated_value else None,
            status=_first_match(lowered, DEAL_STATUS_KEYWORDS, None),
            probability=_first_match(lowered, PROBABILITY_KEYWORDS, 0),
        )

        return ActivityDraft(
            title=self.title(activity_type, customer_name),
            description=text[:DESCRIPTION_LIMIT] + ("..." if len(text) > DESCRIPTION_LIMIT else ""),
            customer_name=customer_name,
            contact_info=customer_info.phone or customer_info.email or "",
            activity_type=activity_type,
            priority=_first_match(lowered, PRIORITY_KEYWORDS, "medium"),
            category=_first_match(lowered, CATEGORY_HINTS, "prospecting"),
            action_items=extracted.action_items,
            tags=self.tags(lowered),
            estimated_value=estimated_value,
            notes=text,
            customer_info=customer_info,
            deal_info=deal_info,
            suggestions=self.suggestions(lowered, customer_name, estimated_value, today or date.today()),
        )

    @staticmethod
    def title(activity_type: str, customer_name: str) -> str:
        prefix = TITLE_PREFIXES.get(activity_type, "กิจกรรมกับ")
        return f"{prefix} {customer_name or 'ลูกค้า'}"

    @staticmethod
    def tags(lowered: str) -> List[str]:
        tags = []
        for keyword, tag in TAG_KEYWORDS.items():
            if keyword in lowered and tag not in tags:
                tags.append(tag)
        return tags

    @staticmethod
    def suggestions(lowered: str, customer_name: str, estimated_value: Optional[int],
                    today: date) -> List[FieldSuggestion]:
        suggestions = []
        if customer_name:
            suggestions.append(FieldSuggestion(
                field="customerName", value=customer_name, confidence=0.8,
                reason="ตรวจพบชื่อลูกค้าในการสนทนา"
            ))
        if estimated_value:
            suggestions.append(FieldSuggestion(
                field="estimatedValue", value=str(estimated_value), confidence=0.7,
                reason="ตรวจพบมูลค่าดีลในการสนทนา"
            ))
        if "ติดตาม" in lowered or "follow" in lowered:
            suggestions.append(FieldSuggestion(
                field="dueDate", value=(today + timedelta(days=FOLLOW_UP_DAYS)).isoformat(), confidence=0.6,
                reason="แนะนำให้ติดตามภายใน 7 วัน"
            ))
        return suggestions


def draft_activity(transcript: str, today: Optional[date] = None) -> ActivityDraft:
    return ActivityDrafter().draft(transcript, today)
