"""Tests for receipt extraction backends (mocked OCR and API calls)."""

import json
from unittest.mock import MagicMock, patch

import pytesseract
import pytest
from google.genai import errors

from data_models import ExtractedReceipt
from receipt_extractor import (
    GeminiExtractor,
    ReceiptExtractor,
    TesseractExtractor,
    _parse_response,
    create_extractor,
)


class TestCreateExtractor:
    def test_tesseract(self):
        extractor = create_extractor("tesseract", num_workers=2)
        assert isinstance(extractor, TesseractExtractor)
        assert extractor.processor.num_workers == 2

    def test_gemini(self):
        assert isinstance(create_extractor("gemini"), GeminiExtractor)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown extraction backend"):
            create_extractor("crystal-ball")

    def test_backends_share_interface(self):
        assert issubclass(TesseractExtractor, ReceiptExtractor)
        assert issubclass(GeminiExtractor, ReceiptExtractor)


class TestParseResponse:
    def test_full_object(self):
        text = json.dumps({
            "restaurantName": "Sushi Bar",
            "items": [{"name": "Salmon", "qty": 2, "price": 80000}, {"name": "Tea", "price": 10000}],
            "subtotal": 90000,
            "tax": 9000,
            "serviceCharge": 4500,
            "total": 103500,
        })
        receipt = _parse_response(text)

        assert receipt.name == "Sushi Bar"
        assert [(i.name, i.qty, i.price) for i in receipt.items] == [("Salmon", 2, 80000.0), ("Tea", 1, 10000.0)]
        assert (receipt.subtotal, receipt.tax, receipt.service_charge, receipt.total) == (90000, 9000, 4500, 103500)

    def test_markdown_fences_and_missing_values(self):
        text = '```json\n{"restaurantName": "", "items": [{"name": "Soup", "qty": 0, "price": 5}], "tax": null}\n```'
        receipt = _parse_response(text)

        assert receipt.name == ""
        assert receipt.items[0].qty == 1
        assert receipt.subtotal == 0.0
        assert receipt.tax == 0.0
        assert receipt.to_bill().name == "New bill"


class TestGeminiExtractor:
    def test_missing_api_key(self, tmp_path):
        with pytest.raises(ValueError, match="API key"):
            GeminiExtractor(api_key="").extract(str(tmp_path / "r.jpg"))

    def test_extract_calls_model(self, tmp_path):
        image = tmp_path / "receipt.jpg"
        image.write_bytes(b"\xff\xd8fake")
        response = MagicMock(text=json.dumps({
            "restaurantName": "Cafe", "items": [{"name": "Latte", "qty": 1, "price": 4.5}],
            "subtotal": 4.5, "tax": 0, "serviceCharge": 0, "total": 4.5,
        }))

        with patch("receipt_extractor.genai.Client") as client_cls, patch("receipt_extractor.types") as types_mod:
            client_cls.return_value.models.generate_content.return_value = response
            receipt = GeminiExtractor(api_key="key", model="gemini-test").extract(str(image))

        client_cls.assert_called_once_with(api_key="key")
        kwargs = client_cls.return_value.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        types_mod.Part.from_bytes.assert_called_once_with(data=b"\xff\xd8fake", mime_type="image/jpeg")
        assert receipt.name == "Cafe"
        assert receipt.total == 4.5

    def test_empty_response(self, tmp_path):
        image = tmp_path / "receipt.png"
        image.write_bytes(b"png")

        with patch("receipt_extractor.genai.Client") as client_cls, patch("receipt_extractor.types"):
            client_cls.return_value.models.generate_content.return_value = MagicMock(text="")
            with pytest.raises(ValueError, match="No response"):
                GeminiExtractor(api_key="key").extract(str(image))

    def test_api_error_becomes_value_error(self, tmp_path):
        image = tmp_path / "receipt.png"
        image.write_bytes(b"png")
        unavailable = errors.APIError(503, {"error": {"code": 503, "message": "UNAVAILABLE", "status": "UNAVAILABLE"}})

        with patch("receipt_extractor.genai.Client") as client_cls, patch("receipt_extractor.types"):
            client_cls.return_value.models.generate_content.side_effect = unavailable
            with pytest.raises(ValueError, match="Gemini request failed"):
                GeminiExtractor(api_key="key").extract(str(image))


class TestTesseractExtractor:
    def test_extract_parses_ocr_text(self):
        extractor = TesseractExtractor(num_workers=1)
        with patch.object(extractor.processor, "process_image_parallel", return_value="Soup 10.00\nTOTAL 10.00\n"):
            receipt = extractor.extract("receipt.jpg")

        assert isinstance(receipt, ExtractedReceipt)
        assert [i.name for i in receipt.items] == ["Soup"]
        assert extractor.metrics.items_detected == 1

    def test_tesseract_error_becomes_value_error(self):
        extractor = TesseractExtractor(num_workers=1)
        failure = pytesseract.TesseractError(1, "Error opening data file")
        with patch.object(extractor.processor, "process_image_parallel", side_effect=failure):
            with pytest.raises(ValueError, match="Tesseract failed"):
                extractor.extract("receipt.jpg")
