import pytest
from sales_intel.extraction import InformationExtractor, MAX_ACTION_ITEMS


class TestInformationExtractor:
    def setup_method(self):
        self.extractor = InformationExtractor()

    def test_extract_empty_transcript(self):
        result = self.extractor.extract("")

        assert result.customer_info.name is None
        assert result.customer_info.company is None
        assert result.deal_info.value is None
        assert result.action_items == []

    def test_extract_none_transcript(self):
        result = self.extractor.extract(None)

        assert result.action_items == []
        assert result.customer_info.email is None

    @pytest.mark.parametrize("text", [
        "(((", "[unclosed", "\\", "*+?{", "บริษัท", "คุณ", "$", "๑๒๓ ล้าน" * 200,
        "1" * 400 + " บาท", "$" + "9" * 5000, "งบ " + "9" * 400 + " ล้าน",
    ])
    def test_extract_pathological_input_never_raises(self, text):
        result = self.extractor.extract(text)
        value = self.extractor.extract_value(text)

        assert len(result.action_items) <= MAX_ACTION_ITEMS
        assert value is None or value >= 0

    def test_action_items_capped_and_ordered(self):
        text = "ต้องส่งใบเสนอราคา. ควรโทรกลับ. จะนัดประชุม. We need to call back. You must sign. We should review."

        items = self.extractor.extract_action_items(text)

        assert items == ["ต้องส่งใบเสนอราคา", "ควรโทรกลับ", "จะนัดประชุม", "need to call back", "must sign"]

    def test_action_items_keep_repeats(self):
        items = self.extractor.extract_action_items("ต้องโทร. ต้องโทร.")

        assert items == ["ต้องโทร", "ต้องโทร"]

    def test_thai_company_stops_at_legal_suffix(self):
        company = self.extractor.extract_company("ผมมาจากบริษัท เอบีซี จำกัด ครับ")

        assert company == "บริษัท เอบีซี"

    def test_thai_company_without_suffix_keeps_first_token(self):
        company = self.extractor.extract_company("คุยกับบริษัท สยามเทค เรื่องระบบใหม่")

        assert company == "บริษัท สยามเทค"

    def test_english_company(self):
        company = self.extractor.extract_company("We met with Acme Corp today")

        assert company == "Acme"

    def test_thai_person_name(self):
        name = self.extractor.extract_person_name("สวัสดีครับคุณ สมชาย วันนี้สะดวกไหม")

        assert name == "สมชาย"

    def test_thank_you_is_not_a_name(self):
        assert self.extractor.extract_person_name("ขอบคุณ มากครับ") is None

    def test_english_person_name(self):
        assert self.extractor.extract_person_name("I spoke to Mr. Smith yesterday") == "Smith"

    def test_deal_value_keeps_unit(self):
        assert self.extractor.extract_deal_value("งบประมาณ 500,000 บาท ต่อปี") == "500,000 บาท"

    def test_deal_value_dollars(self):
        assert self.extractor.extract_deal_value("The budget is $5,000") == "$5,000"

    def test_deal_value_missing(self):
        assert self.extractor.extract_deal_value("no numbers here") is None

    @pytest.mark.parametrize("text,expected", [
        ("งบประมาณ 500,000 บาท", 500_000),
        ("ประมาณ 2 ล้าน", 2_000_000),
        ("ราว 3 แสน", 300_000),
        ("around 1.5 million", 1_500_000),
        ("about $5,000", 5_000),
        ("nothing to see", None),
        ("", None),
    ])
    def test_extract_value_scales_by_unit(self, text, expected):
        assert self.extractor.extract_value(text) == expected

    def test_contact_details(self):
        result = self.extractor.extract("ติดต่อ somchai@abc.co.th หรือ 081-234-5678")

        assert result.customer_info.email == "somchai@abc.co.th"
        assert result.customer_info.phone == "081-234-5678"

    def test_extract_value_rejects_runaway_digits(self):
        assert self.extractor.extract_value("1" * 400 + " บาท") is None
        assert self.extractor.extract_value("$" + "9" * 5000) is None

    def test_extract_value_is_exact_for_large_amounts(self):
        assert self.extractor.extract_value("มูลค่า 123,456,789,012,345 บาท") == 123_456_789_012_345
        assert self.extractor.extract_value("ราว 999,999,999.99 ล้าน") == 999_999_999_990_000
