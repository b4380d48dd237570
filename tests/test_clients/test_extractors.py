import base64
import json

import httpx
import pytest

from halo_mocks import (
    MOCK_PAY_TO,
    FakeApiError,
    FakeResponse,
    encode_header,
    make_payment_required_body,
    make_terms,
)
from x402_halo.clients.extractors import (
    RequirementExtractor,
    TermsSource,
    describe_failure,
    from_details,
    from_header,
    from_message,
)
from x402_halo.engine.exceptions import ExtractionFailure


@pytest.fixture
def extractor():
    return RequirementExtractor()


class TestHeaderStrategy:

    def test_plain_dict_headers(self, extractor, payment_required_body):
        error = FakeApiError(
            "402", response=FakeResponse(headers={"payment-required": encode_header(payment_required_body)})
        )
        found = extractor.locate(error)
        assert found.source is TermsSource.HEADER
        assert found.data == payment_required_body

    def test_header_accessor_response(self, extractor, payment_required_body):
        response = httpx.Response(402, headers={"Payment-Required": encode_header(payment_required_body)})
        error = FakeApiError("payment", response=response)
        requirement = extractor.extract(error)
        assert requirement.pay_to == MOCK_PAY_TO
        assert requirement.amount == 1000000
        assert requirement.resource_description == "Gemini generateContent"

    def test_dict_response_with_mixed_case_key(self, payment_required_body):
        error = FakeApiError(response={"headers": {"Payment-Required": encode_header(payment_required_body)}})
        assert from_header(error) == payment_required_body

    def test_undecodable_header_falls_through(self, extractor):
        terms = make_terms(x402Version=2)
        error = FakeApiError(
            "402",
            response=FakeResponse(headers={"payment-required": "%%% not base64 %%%"}),
            error_details=[terms],
        )
        found = extractor.locate(error)
        assert found.source is TermsSource.DETAILS

    def test_bytes_header(self, extractor, payment_required_body):
        header = base64.b64encode(json.dumps(payment_required_body).encode())
        error = FakeApiError("402", response=FakeResponse(headers={"payment-required": header}))
        found = extractor.locate(error)
        assert found.source is TermsSource.HEADER
        assert extractor.normalize(found.data).amount == 1000000

    def test_non_text_header_falls_through(self, extractor):
        terms = make_terms(x402Version=2)
        error = FakeApiError(
            "402",
            response=FakeResponse(headers={"payment-required": ["not", "a", "token"]}),
            error_details=[terms],
        )
        assert from_header(error) is None
        assert extractor.locate(error).source is TermsSource.DETAILS

    def test_no_response(self):
        assert from_header(FakeApiError("402")) is None


class TestDetailsStrategy:

    def test_full_protocol_response(self, extractor, payment_required_body):
        error = FakeApiError("[402 Payment Required]", error_details=[payment_required_body])
        found = extractor.locate(error)
        assert found.source is TermsSource.DETAILS
        assert extractor.normalize(found.data).resource_description == "Gemini generateContent"

    def test_direct_requirement_with_version_tag(self, extractor):
        terms = make_terms(x402Version=2)
        error = FakeApiError("402", error_details=[terms])
        requirement = extractor.extract(error)
        assert requirement.amount == 1000000
        assert requirement.resource_description == ""

    def test_unrecognised_first_entry_is_discarded(self):
        error = FakeApiError("402", error_details=[{"@type": "type.googleapis.com/google.rpc.ErrorInfo"}])
        assert from_details(error) is None

    def test_empty_details(self):
        assert from_details(FakeApiError("402", error_details=[])) is None

    def test_snake_case_attribute(self, payment_required_body):
        error = FakeApiError("402")
        error.error_details = [payment_required_body]
        assert from_details(error) == payment_required_body


class TestMessageStrategy:

    def test_embedded_json(self, extractor, payment_required_body):
        message = f"[GoogleGenerativeAI Error]: 402 Payment Required [{json.dumps(payment_required_body)}]"
        found = extractor.locate(FakeApiError(message))
        assert found.source is TermsSource.MESSAGE
        assert found.data == payment_required_body

    def test_unparseable_json_is_discarded(self):
        assert from_message(FakeApiError("402 [{not json}]")) is None

    def test_str_used_when_no_message_attribute(self, payment_required_body):
        error = RuntimeError(f"402 [{json.dumps(payment_required_body)}]")
        assert from_message(error) == payment_required_body


class TestStrategyOrder:

    def test_header_wins_over_details_and_message(self, extractor):
        header_body = make_payment_required_body(make_terms(amount="1"))
        details_body = make_payment_required_body(make_terms(amount="2"))
        message_body = make_payment_required_body(make_terms(amount="3"))
        error = FakeApiError(
            f"402 [{json.dumps(message_body)}]",
            response=FakeResponse(headers={"payment-required": encode_header(header_body)}),
            error_details=[details_body],
        )
        assert extractor.extract(error).amount == 1

    def test_details_win_over_message(self, extractor):
        details_body = make_payment_required_body(make_terms(amount="2"))
        message_body = make_payment_required_body(make_terms(amount="3"))
        error = FakeApiError(f"402 [{json.dumps(message_body)}]", error_details=[details_body])
        assert extractor.extract(error).amount == 2


class TestFailures:

    def test_nothing_found(self, extractor):
        error = FakeApiError("402 Payment Required", status=402)
        with pytest.raises(ExtractionFailure) as exc_info:
            extractor.extract(error)
        assert exc_info.value.raw["message"] == "402 Payment Required"
        assert exc_info.value.raw["type"].endswith("FakeApiError")

    def test_max_amount_required(self, extractor):
        terms = make_terms()
        terms.pop("amount")
        terms["maxAmountRequired"] = "5000"
        error = FakeApiError("402", error_details=[make_payment_required_body(terms)])
        assert extractor.extract(error).amount == 5000

    def test_blank_amount_falls_back_to_max_amount_required(self, extractor):
        terms = make_terms(amount="", maxAmountRequired="5000")
        error = FakeApiError("402", error_details=[make_payment_required_body(terms)])
        assert extractor.extract(error).amount == 5000

    def test_missing_amount(self, extractor):
        terms = make_terms()
        terms.pop("amount")
        error = FakeApiError("402", error_details=[make_payment_required_body(terms)])
        with pytest.raises(ExtractionFailure):
            extractor.extract(error)

    def test_non_numeric_amount(self, extractor):
        error = FakeApiError("402", error_details=[make_payment_required_body(make_terms(amount="lots"))])
        with pytest.raises(ExtractionFailure):
            extractor.extract(error)

    def test_empty_accepts(self, extractor):
        error = FakeApiError("402", error_details=[{"x402Version": 2, "accepts": []}])
        with pytest.raises(ExtractionFailure):
            extractor.extract(error)


def test_describe_failure_hides_private_attributes():
    error = FakeApiError("boom", status=402)
    error._secret = "hidden"
    dump = describe_failure(error)
    assert "status" in dump["attributes"]
    assert "_secret" not in dump["attributes"]
