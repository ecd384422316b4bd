#!/usr/bin/env python3
"""
Utility functions for Groupify
"""

import math
import re
import mimetypes
from pathlib import Path
from typing import Optional
from config import MAX_IMAGE_SIZE_BYTES

ALLOWED_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.gif', '.webp'}


def validate_image_path(image_path: str) -> bool:
    """Check that the path points at a readable image of acceptable size"""
    if not isinstance(image_path, str):
        print("Image path must be a string")
        return False

    path = Path(image_path)

    if '..' in path.parts:
        print(f"Security risk: Invalid path pattern: {image_path}")
        return False

    if not path.exists():
        print(f"File not found: {image_path}")
        return False

    if not path.is_file():
        print(f"Path is not a file: {image_path}")
        return False

    size = path.stat().st_size
    if size > MAX_IMAGE_SIZE_BYTES:
        print(f"File too large: {size} bytes (max: {MAX_IMAGE_SIZE_BYTES})")
        return False

    if path.suffix.lower() not in ALLOWED_IMAGE_EXTENSIONS:
        print(f"Unsupported file extension: {path.suffix}")
        return False

    mime_type, _ = mimetypes.guess_type(str(path))
    if mime_type and not mime_type.startswith('image/'):
        print(f"Invalid MIME type: {mime_type}")
        return False

    return True


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe file operations"""
    if not isinstance(filename, str):
        return "unnamed_file"

    filename = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '', filename)
    filename = filename.replace(' ', '_')

    if len(filename) > 200:
        filename = filename[:200]

    if not filename.strip():
        filename = "unnamed_file"

    return filename


def format_currency(amount: float, currency: str = '') -> str:
    """Format an amount with two decimals and thousands separators"""
    if not isinstance(amount, (int, float)):
        return "0.00"

    currency_symbols = {
        'IDR': 'Rp. ',
        'USD': '$',
        'EUR': '€',
        'GBP': '£',
    }

    if currency in currency_symbols:
        return f"{currency_symbols[currency]}{amount:,.2f}"
    if currency:
        return f"{amount:,.2f} {currency}"
    return f"{amount:,.2f}"


def try_parse_int(value: str) -> Optional[int]:
    """Safely parse integer from string"""
    try:
        return int(value.strip())
    except (ValueError, AttributeError):
        return None


def try_parse_float(value: str) -> Optional[float]:
    """Safely parse float from string"""
    try:
        number = float(value.strip().replace(',', '.'))
    except (ValueError, AttributeError):
        return None
    return number if math.isfinite(number) else None


def validate_menu_choice(choice: str, valid_choices: list[str]) -> Optional[str]:
    """Validate a menu choice against allowed options"""
    if not isinstance(choice, str):
        return None
    choice = choice.strip()
    return choice if choice in set(valid_choices) else None


def clean_text_for_display(text: str, max_length: int = 100) -> str:
    """Clean text for safe display in UI"""
    if not isinstance(text, str):
        return ""

    text = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', text)
    text = ' '.join(text.split())

    if len(text) > max_length:
        text = text[:max_length-3] + "..."

    return text
