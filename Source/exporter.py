"""
Export module for Groupify
Serializes the split result to JSON and renders a shareable summary image
"""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Optional

from PIL import Image, ImageDraw, ImageFont

from bill_splitter import BillSplitter, allocate_bill
from data_models import SessionState
from utils import clean_text_for_display, format_currency

EXPORT_VERSION = '2.0'

IMAGE_WIDTH = 720
ROW_HEIGHT = 28
PADDING = 32
BACKGROUND = '#f9fafb'
ACCENT = '#4f46e5'
TEXT = '#111827'
MUTED = '#9ca3af'
OWED = '#10b981'
OWES = '#ef4444'


def build_summary(state: SessionState) -> Dict[str, Any]:
    """Everything a renderer needs, people in the order they were added"""
    splitter = BillSplitter(state)
    totals = splitter.person_totals()
    settlements = splitter.settlements()
    names = {person.id: person.name for person in state.people}

    bills = []
    for bill in state.bills:
        shares = allocate_bill(bill, state.people)
        bills.append({
            'id': bill.id,
            'name': bill.name,
            'subtotal': bill.subtotal,
            'tax': bill.tax,
            'service_charge': bill.service_charge,
            'total': bill.total,
            'items': [asdict(item) for item in bill.items],
            'unassigned_items': len(bill.unassigned_items()),
            'shares': [
                {'person_id': person_id, 'name': names[person_id], **share}
                for person_id, share in shares.items()
            ],
        })

    return {
        'total_bill': splitter.total_bill(),
        'total_paid': splitter.total_paid(),
        'unassigned_items': splitter.unassigned_count(),
        'bills': bills,
        'people': [asdict(stats) for stats in totals],
        'payments': [asdict(payment) for payment in state.payments],
        'settlements': [asdict(s) for s in settlements],
        'transactions_needed': len(settlements),
        'payment_instructions': [
            f"{s.from_person} pays {s.to_person} {s.amount:.2f}" for s in settlements
        ],
    }


def export_json(state: SessionState, path: str) -> str:
    data = {
        'export_info': {
            'timestamp': datetime.now().isoformat(),
            'version': EXPORT_VERSION,
        },
        **build_summary(state),
    }
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


def _balance_label(balance: float, currency: str) -> tuple[str, str]:
    if balance > 0.01:
        return f"Owed {format_currency(balance, currency)}", OWED
    if balance < -0.01:
        return f"Owes {format_currency(abs(balance), currency)}", OWES
    return "Settled", MUTED


def render_summary_image(state: SessionState, path: str, currency: str = '',
                         title: Optional[str] = None) -> str:
    """Draw the per-person totals and settlements into a PNG"""
    summary = build_summary(state)
    people = summary['people']
    settlements = summary['settlements']

    rows = 4 + len(people) * 2 + 2 + max(len(settlements), 1)
    height = PADDING * 2 + rows * ROW_HEIGHT
    image = Image.new('RGB', (IMAGE_WIDTH, height), BACKGROUND)
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()
    right = IMAGE_WIDTH - PADDING

    y = PADDING
    heading = title or ', '.join(bill['name'] for bill in summary['bills']) or 'Split bill'
    draw.text((PADDING, y), clean_text_for_display(heading, 60), fill=ACCENT, font=font)
    y += ROW_HEIGHT
    draw.text((PADDING, y), f"Total {format_currency(summary['total_bill'], currency)}", fill=TEXT, font=font)
    y += ROW_HEIGHT
    if summary['unassigned_items']:
        draw.text((PADDING, y), f"{summary['unassigned_items']} item(s) not assigned to anyone",
                  fill=OWES, font=font)
    y += ROW_HEIGHT * 2

    for stats in people:
        dot = stats['color'] or ACCENT
        draw.ellipse((PADDING, y + 4, PADDING + 12, y + 16), fill=dot)
        draw.text((PADDING + 20, y), clean_text_for_display(stats['name'], 30), fill=TEXT, font=font)
        total_text = format_currency(stats['final_total'], currency)
        draw.text((right - draw.textlength(total_text, font=font), y), total_text, fill=TEXT, font=font)
        y += ROW_HEIGHT
        label, color = _balance_label(stats['balance'], currency)
        detail = (f"items {format_currency(stats['item_total'], currency)}  "
                  f"tax {format_currency(stats['tax_share'], currency)}  "
                  f"service {format_currency(stats['service_share'], currency)}  "
                  f"paid {format_currency(stats['amount_paid'], currency)}")
        draw.text((PADDING + 20, y), detail, fill=MUTED, font=font)
        draw.text((right - draw.textlength(label, font=font), y), label, fill=color, font=font)
        y += ROW_HEIGHT

    y += ROW_HEIGHT
    draw.text((PADDING, y), "Settlements", fill=ACCENT, font=font)
    y += ROW_HEIGHT
    if not settlements:
        draw.text((PADDING, y), "No transfers needed", fill=MUTED, font=font)
    for s in settlements:
        line = f"{s['from_person']} -> {s['to_person']}: {format_currency(s['amount'], currency)}"
        draw.text((PADDING, y), line, fill=TEXT, font=font)
        y += ROW_HEIGHT

    image.save(path, format='PNG')
    return path
