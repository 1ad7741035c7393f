import logging
import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from .schemas import CustomerInfo, DealInfo, ExtractedData

logger = logging.getLogger(__name__)


MAX_ACTION_ITEMS = 5
# Longer digit runs are not amounts
MAX_AMOUNT_DIGITS = 15

# Multiplier for the unit that follows an amount
VALUE_UNITS = {
    "บาท": 1,
    "baht": 1,
    "พัน": 1_000,
    "thousand": 1_000,
    "หมื่น": 10_000,
    "แสน": 100_000,
    "ล้าน": 1_000_000,
    "million": 1_000_000,
}

THAI_LEGAL_SUFFIX = re.compile(r"\s*(?:จำกัด)?\s*(?:\(มหาชน\))?\s*$")


class InformationExtractor:
    """
    Best-effort pattern extraction over Thai/English sales transcripts.

    Every method returns an empty value when nothing matches; none of them raise.
    """

    def __init__(self):
        # Clause starting with an obligation/intent trigger, up to sentence punctuation or line end
        self.action_item_pattern = re.compile(
            r"(?:ต้อง|ควร|จะ|\b(?:need to|must|should|will)\b)[^.!?。\n]*",
            re.IGNORECASE,
        )
        self.thai_company_pattern = re.compile(
            r"(บริษัท|องค์กร)\s*([^\s.,!?]+(?:\s+[^\s.,!?]+){0,3})"
        )
        self.english_company_pattern = re.compile(
            r"\b([A-Z][\w&'-]*(?:\s+[A-Z][\w&'-]*){0,3})\s+"
            r"(?:Co\.?,?\s*Ltd\.?|Company\s+Limited|Ltd\.?|Inc\.?|Corp\.?|Corporation)(?![\w])"
        )
        self.thai_person_pattern = re.compile(r"(?<!ขอบ)(?:คุณ|นางสาว|นาย|นาง)\s+([^\s.,!?]+)")
        self.english_person_pattern = re.compile(r"\b(?:Mr|Mrs|Ms|Dr)\.?\s+([A-Z][a-zA-Z'-]+)")
        self.money_pattern = re.compile(
            r"(\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?\s*(บาท|baht|thousand|million|ล้าน|แสน|หมื่น|พัน)",
            re.IGNORECASE,
        )
        self.dollar_pattern = re.compile(r"\$\s*(\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?")
        self.email_pattern = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
        self.phone_pattern = re.compile(r"(?<!\d)(\d{2,3}[-.\s]?\d{3}[-.\s]?\d{4})(?!\d)")

    def extract(self, transcript: str) -> ExtractedData:
        """Pull customer, deal and action-item candidates out of a transcript"""
        text = transcript or ""

        customer_info = CustomerInfo(
            name=self.extract_person_name(text),
            company=self.extract_company(text),
            email=self.extract_email(text),
            phone=self.extract_phone(text),
        )
        deal_info = DealInfo(value=self.extract_deal_value(text))

        return ExtractedData(
            customer_info=customer_info,
            deal_info=deal_info,
            action_items=self.extract_action_items(text),
        )

    def extract_action_items(self, text: str) -> List[str]:
        """First five obligation clauses in order of appearance; repeats are kept"""
        items = []
        for match in self.action_item_pattern.finditer(text):
            item = match.group(0).strip()
            if item:
                items.append(item)
            if len(items) >= MAX_ACTION_ITEMS:
                break
        return items

    def extract_company(self, text: str) -> Optional[str]:
        match = self.thai_company_pattern.search(text)
        if match:
            marker, tokens = match.group(1), match.group(2).split()
            # Names run up to the legal suffix; without one only the first token is trusted
            name_tokens = tokens[:1]
            for i, token in enumerate(tokens):
                if token.startswith("จำกัด") or token.startswith("(มหาชน)"):
                    name_tokens = tokens[:i] or tokens[:1]
                    break
            name = THAI_LEGAL_SUFFIX.sub("", " ".join(name_tokens)).strip()
            if name:
                return f"{marker} {name}"

        match = self.english_company_pattern.search(text)
        if match:
            return match.group(1).strip()
        return None

    def extract_person_name(self, text: str) -> Optional[str]:
        match = self.thai_person_pattern.search(text)
        if match:
            return match.group(1).strip()

        match = self.english_person_pattern.search(text)
        if match:
            return match.group(1).strip()
        return None

    def extract_deal_value(self, text: str) -> Optional[str]:
        """Amount as spoken, unit included and not normalized"""
        match = self.money_pattern.search(text)
        if match:
            return match.group(0).strip()
        match = self.dollar_pattern.search(text)
        if match:
            return match.group(0).strip()
        return None

    def extract_value(self, text: str) -> Optional[int]:
        """Numeric deal value, scaled by the unit spoken next to the amount"""
        if not text:
            return None

        candidates = []
        match = self.money_pattern.search(text)
        if match:
            candidates.append((match.start(), match.group(0), VALUE_UNITS[match.group(2).lower()]))
        match = self.dollar_pattern.search(text)
        if match:
            candidates.append((match.start(), match.group(0), 1))
        if not candidates:
            return None

        _, raw, multiplier = min(candidates)
        number = re.search(r"\d[\d,]*(?:\.\d+)?", raw).group(0).replace(",", "")
        if len(number.split(".")[0]) > MAX_AMOUNT_DIGITS:
            return None
        try:
            return int(Decimal(number) * multiplier)
        except InvalidOperation:
            return None

    def extract_email(self, text: str) -> Optional[str]:
        match = self.email_pattern.search(text)
        return match.group(0) if match else None

    def extract_phone(self, text: str) -> Optional[str]:
        match = self.phone_pattern.search(text)
        return match.group(1) if match else None
