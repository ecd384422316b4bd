"""
Receipt Parser module for Groupify
Parses OCR text into receipt items and the subtotal / tax / service / total lines
"""

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from difflib import SequenceMatcher
from typing import List, Optional

from config import (
    DUPLICATE_SIMILARITY_THRESHOLD,
    ITEM_PRICE_MIN,
    ITEM_PRICE_MAX,
    TOTAL_MISMATCH_TOLERANCE,
)
from constants import (
    CURRENCY_SUFFIX,
    SERVICE_PATTERNS,
    SKIP_WORDS,
    SUBTOTAL_PATTERNS,
    TAX_PATTERNS,
    TOTAL_PATTERNS,
)
from data_models import ExtractedItem, ExtractedReceipt

logger = logging.getLogger(__name__)

PRICE = r'(?:Rp\.?\s*|\$|€)?([\d][\d,\.]*)'

_SKIP_RE = re.compile(r'\b(?:' + '|'.join(re.escape(w) for w in SKIP_WORDS) + r')\b', re.IGNORECASE)


class ReceiptParser:
    """Parses OCR text to extract receipt items and totals"""

    def _clean_price(self, price_str: str) -> float:
        """Turn '12.50', '12,50', '50.000' or '1,234.56' into a float; 0.0 if implausible"""
        if not price_str:
            return 0.0

        cleaned = re.sub(r'[^\d,\.]', '', str(price_str))

        if ',' in cleaned and '.' in cleaned:
            # whichever separator comes last is the decimal one
            if cleaned.rfind(',') > cleaned.rfind('.'):
                cleaned = cleaned.replace('.', '').replace(',', '.')
            else:
                cleaned = cleaned.replace(',', '')
        elif ',' in cleaned or '.' in cleaned:
            sep = ',' if ',' in cleaned else '.'
            parts = cleaned.split(sep)
            if len(parts) > 2 or len(parts[-1]) == 3:
                cleaned = ''.join(parts)
            else:
                cleaned = cleaned.replace(',', '.')

        try:
            price = float(cleaned)
        except (ValueError, TypeError):
            return 0.0

        if ITEM_PRICE_MIN <= price <= ITEM_PRICE_MAX:
            return price
        return 0.0

    def _normalize_text(self, text: str) -> str:
        """Normalize text for better comparison"""
        normalized = ' '.join(text.lower().split())
        normalized = re.sub(r'[^\w\s]', ' ', normalized)
        return normalized.strip()

    def _is_valid_item_name(self, name: str) -> bool:
        """Check if the name is likely a valid menu item"""
        if not name or len(name.strip()) < 2:
            return False

        if _SKIP_RE.search(self._normalize_text(name)):
            return False

        if not re.search(r'[^\W\d_]', name):
            return False

        if len(re.sub(r'[\d\s\.\,\-]', '', name)) < 2:
            return False

        return True

    def _similarity_score(self, str1: str, str2: str) -> float:
        return SequenceMatcher(None, str1.lower(), str2.lower()).ratio()

    def _deduplicate_by_line_similarity(self, text: str) -> str:
        """Remove duplicate lines that appear due to OCR overlapping regions"""
        unique_lines = []
        seen_exact = set()
        seen_similar = []

        for line in text.split('\n'):
            line = line.strip()
            if not line:
                continue

            if line in seen_exact:
                logger.debug("Skipping exact duplicate: %r", line)
                continue

            is_similar_duplicate = False
            for seen_line in seen_similar[-10:]:
                similarity = self._similarity_score(line, seen_line)
                if similarity > DUPLICATE_SIMILARITY_THRESHOLD:
                    is_similar_duplicate = True
                    logger.debug("Skipping similar duplicate: %r ~ %r (%.3f)", line, seen_line, similarity)
                    break

            if not is_similar_duplicate:
                unique_lines.append(line)
                seen_exact.add(line)
                seen_similar.append(line)

        return '\n'.join(unique_lines)

    def _make_item(self, name: str, quantity: int, price: float) -> Optional[ExtractedItem]:
        name = name.strip(' -–:*')
        if self._is_valid_item_name(name) and price > 0:
            return ExtractedItem(name=name, price=price, qty=max(quantity, 1))
        return None

    def _extract_item_from_line(self, line: str) -> Optional[ExtractedItem]:
        """Try the item line layouts from most to least specific"""
        line = line.strip()
        if not line or _SKIP_RE.search(line):
            return None

        # Name Qty x UnitPrice Total
        match = re.search(r'^(.+?)\s+(\d+)\s*[xX×]\s*([\d,\.]+)\s+' + PRICE + r'\s*' + CURRENCY_SUFFIX + r'\s*$', line)
        if match:
            quantity = int(match.group(2))
            unit_price = self._clean_price(match.group(3))
            total_price = self._clean_price(match.group(4))
            if abs(quantity * unit_price - total_price) < 0.5:
                return self._make_item(match.group(1), quantity, total_price)

        # Name xQty Price
        match = re.search(r'^(.+?)\s*[xX×](\d+)\s+' + PRICE + r'\s*' + CURRENCY_SUFFIX + r'\s*$', line)
        if match:
            return self._make_item(match.group(1), int(match.group(2)), self._clean_price(match.group(3)))

        # Qty [x] Name Price
        match = re.search(r'^(\d+)\s*[xX×]?\s+(.+?)\s+' + PRICE + r'\s*' + CURRENCY_SUFFIX + r'\s*$', line)
        if match:
            return self._make_item(match.group(2), int(match.group(1)), self._clean_price(match.group(3)))

        # Name - Price
        match = re.search(r'^(.+?)\s*[-–]\s*' + PRICE + r'\s*' + CURRENCY_SUFFIX + r'\s*$', line)
        if match:
            return self._make_item(match.group(1), 1, self._clean_price(match.group(2)))

        # Name Price
        match = re.search(r'^(.+?)\s+' + PRICE + r'\s*' + CURRENCY_SUFFIX + r'\s*$', line)
        if match:
            return self._make_item(match.group(1), 1, self._clean_price(match.group(2)))

        return None

    def _find_amount(self, patterns: List[str], lines: List[str]) -> float:
        """First positive amount on a line matching any of the patterns"""
        for line in lines:
            for pattern in patterns:
                match = re.search(pattern, line, re.IGNORECASE)
                if match:
                    amount = self._clean_price(match.group(1))
                    if amount > 0:
                        return amount
        return 0.0

    def _find_name(self, lines: List[str]) -> str:
        """The first line that reads like a header rather than an item or amount"""
        for line in lines[:5]:
            if re.search(r'\d[\d,\.]*\s*$', line) or _SKIP_RE.search(line):
                continue
            if re.search(r'[^\W\d_]{3,}', line):
                return line.strip()
        return ""

    def _detect_currency(self, text: str) -> str:
        """Detect currency used in receipt"""
        idr_indicators = len(re.findall(r'\bRp\b|\bIDR\b', text, re.IGNORECASE))
        usd_indicators = len(re.findall(r'\$|\bUSD\b', text, re.IGNORECASE))
        eur_indicators = len(re.findall(r'€|\bEUR\b', text, re.IGNORECASE))

        best = max(idr_indicators, usd_indicators, eur_indicators)
        if best == 0:
            return ''
        if idr_indicators == best:
            return 'IDR'
        if usd_indicators == best:
            return 'USD'
        return 'EUR'

    def parse(self, ocr_text: str) -> ExtractedReceipt:
        """Parse OCR text into an extracted receipt"""
        logger.debug("Parsing %d characters of OCR text", len(ocr_text))

        cleaned_text = self._deduplicate_by_line_similarity(ocr_text)
        lines = [l for l in cleaned_text.split('\n') if l.strip()]

        receipt = ExtractedReceipt(
            name=self._find_name(lines),
            currency=self._detect_currency(cleaned_text),
        )

        max_workers = max(1, min(8, (os.cpu_count() or 4)))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            receipt.items = [item for item in executor.map(self._extract_item_from_line, lines) if item]

        items_sum = sum(item.price for item in receipt.items)
        receipt.subtotal = self._find_amount(SUBTOTAL_PATTERNS, lines) or items_sum
        receipt.tax = self._find_amount(TAX_PATTERNS, lines)
        receipt.service_charge = self._find_amount(SERVICE_PATTERNS, lines)
        receipt.total = (
            self._find_amount(TOTAL_PATTERNS, lines)
            or receipt.subtotal + receipt.tax + receipt.service_charge
        )

        if receipt.items and abs(items_sum - receipt.subtotal) > TOTAL_MISMATCH_TOLERANCE:
            logger.warning(
                "Subtotal mismatch: items sum to %.2f but receipt says %.2f",
                items_sum, receipt.subtotal,
            )

        logger.info("Parsed %d items, total %.2f %s", len(receipt.items), receipt.total, receipt.currency)
        return receipt
