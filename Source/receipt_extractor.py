"""
Receipt extraction backends for Groupify
Turns a receipt image into an ExtractedReceipt, either locally via Tesseract or via Gemini
"""

import json
import logging
import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path

import pytesseract
from google import genai
from google.genai import errors, types

from config import DEFAULT_MAX_WORKERS, EXTRACTION_BACKEND, GEMINI_API_KEY, GEMINI_MODEL
from data_models import ExtractedItem, ExtractedReceipt
from ocr_processor import ParallelOCRProcessor
from receipt_parser import ReceiptParser

logger = logging.getLogger(__name__)

_PROMPT = """\
Extract the restaurant name, items, quantities, prices, subtotal, tax, service charge, and total from this receipt.
Return the data in JSON format.
- "restaurantName": string (the name of the restaurant or store).
- "items": array of objects with "name" (string), "qty" (number), and "price" (number - total price for that item/qty).
- "subtotal": number (sum of items before tax/service).
- "tax": number (total tax amount).
- "serviceCharge": number (total service charge or tip amount).
- "total": number (final total amount).
If any value is missing or unclear, use 0 or empty string. Ensure prices are numbers, not strings.
Do not include currency symbols in the numbers.
"""

_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "restaurantName": {"type": "STRING"},
        "items": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "qty": {"type": "NUMBER"},
                    "price": {"type": "NUMBER"},
                },
                "required": ["name", "price"],
            },
        },
        "subtotal": {"type": "NUMBER"},
        "tax": {"type": "NUMBER"},
        "serviceCharge": {"type": "NUMBER"},
        "total": {"type": "NUMBER"},
    },
    "required": ["restaurantName", "items", "subtotal", "tax", "serviceCharge", "total"],
}


class ReceiptExtractor(ABC):
    """Abstract base for reading a receipt image"""

    @abstractmethod
    def extract(self, image_path: str) -> ExtractedReceipt:
        ...


class TesseractExtractor(ReceiptExtractor):
    """Local OCR with parallel Tesseract workers and the regex receipt parser"""

    def __init__(self, num_workers: int = DEFAULT_MAX_WORKERS):
        self.processor = ParallelOCRProcessor(num_workers=num_workers)
        self.parser = ReceiptParser()

    @property
    def metrics(self):
        return self.processor.metrics

    def extract(self, image_path: str) -> ExtractedReceipt:
        try:
            ocr_text = self.processor.process_image_parallel(image_path)
        except pytesseract.TesseractError as e:
            raise ValueError(f"Tesseract failed: {e}") from e
        receipt = self.parser.parse(ocr_text)
        self.processor.metrics.items_detected = len(receipt.items)
        return receipt


class GeminiExtractor(ReceiptExtractor):
    """Structured receipt extraction with Google Gemini"""

    def __init__(self, api_key: str = "", model: str = GEMINI_MODEL):
        self._api_key = api_key
        self._model = model

    def extract(self, image_path: str) -> ExtractedReceipt:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is missing. Set GEMINI_API_KEY in the environment."
            )

        data = Path(image_path).read_bytes()
        mime_type = mimetypes.guess_type(image_path)[0] or "image/jpeg"

        client = genai.Client(api_key=self._api_key)
        try:
            response = client.models.generate_content(
                model=self._model,
                contents=[types.Part.from_bytes(data=data, mime_type=mime_type), _PROMPT],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=_RESPONSE_SCHEMA,
                ),
            )
        except errors.APIError as e:
            raise ValueError(f"Gemini request failed: {e}") from e

        if not response.text:
            raise ValueError("No response from Gemini")
        logger.debug("Gemini response: %s", response.text)
        return _parse_response(response.text)


def _parse_response(text: str) -> ExtractedReceipt:
    """Parse Gemini's JSON object; missing numbers become 0"""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)

    parsed = json.loads(cleaned)
    items = [
        ExtractedItem(
            name=item.get("name", ""),
            price=float(item.get("price") or 0),
            qty=int(item.get("qty") or 1),
        )
        for item in parsed.get("items", [])
    ]
    return ExtractedReceipt(
        name=parsed.get("restaurantName") or "",
        items=items,
        subtotal=float(parsed.get("subtotal") or 0),
        tax=float(parsed.get("tax") or 0),
        service_charge=float(parsed.get("serviceCharge") or 0),
        total=float(parsed.get("total") or 0),
    )


def create_extractor(backend: str = EXTRACTION_BACKEND, num_workers: int = DEFAULT_MAX_WORKERS) -> ReceiptExtractor:
    """Create a receipt extractor by backend name"""
    match backend:
        case "tesseract":
            return TesseractExtractor(num_workers=num_workers)
        case "gemini":
            return GeminiExtractor(api_key=GEMINI_API_KEY, model=GEMINI_MODEL)
        case _:
            raise ValueError(
                f"Unknown extraction backend: {backend!r} (choose tesseract or gemini)"
            )
