# Amount patterns for receipt summary lines. The first capture group is the amount.
SUBTOTAL_PATTERNS = [
    r'\b(?:SUB\s*-?\s*TOTAL|SUBTOTAL)[:\s]*(?:Rp\.?|\$|€)?\s*([\d][\d,\.]*)',
]

TAX_PATTERNS = [
    r'\b(?:TAX|VAT|PPN|PB1|PAJAK)(?:\s*\d+(?:[\.,]\d+)?\s*%)?[:\s]*(?:Rp\.?|\$|€)?\s*([\d][\d,\.]*)',
]

SERVICE_PATTERNS = [
    r'\b(?:SERVICE(?:\s+CHARGE)?|SVC|LAYANAN|TIP|GRATUITY)(?:\s*\d+(?:[\.,]\d+)?\s*%)?[:\s]*(?:Rp\.?|\$|€)?\s*([\d][\d,\.]*)',
]

TOTAL_PATTERNS = [
    r'^\s*(?:GRAND\s+TOTAL|TOTAL\s+DUE|AMOUNT\s+DUE|TOTAL|JUMLAH|TAGIHAN)[:\s]*(?:Rp\.?|\$|€)?\s*([\d][\d,\.]*)',
]

CURRENCY_SUFFIX = r'(?:Rp\.?|IDR|\$|USD|€|EUR)?'

# Words that mark a line as not being a purchasable item
SKIP_WORDS = [
    'total', 'subtotal', 'sub total', 'tax', 'vat', 'ppn', 'pb1', 'pajak',
    'service', 'svc', 'layanan', 'gratuity', 'tip',
    'cash', 'change', 'card', 'kembali', 'tunai', 'debit', 'credit',
    'receipt', 'invoice', 'date', 'time', 'cashier', 'kasir', 'thank',
    'terima kasih', 'table', 'meja', 'order', 'jumlah', 'tagihan',
]
