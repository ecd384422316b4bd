"""
Groupify - Receipt Capture & Bill Splitter

groupify                              # Interactive CLI mode
groupify receipt.jpg                  # Process image and start CLI
groupify receipt.jpg --quick          # Quick mode - just show results
groupify receipt.jpg --backend gemini # Extract with Gemini instead of Tesseract
groupify --help                       # Show help
"""

import argparse
import logging
import sys

from config import (
    DEFAULT_MAX_WORKERS,
    EXTRACTION_BACKEND,
    LOG_LEVEL,
    WORKERS_MAX,
    WORKERS_MIN,
)
from cli_interface import GroupifyCLI
from receipt_extractor import create_extractor
from session_store import SessionStore
from utils import format_currency, validate_image_path

__version__ = "2.0.0"


def quick_process(image_path: str, backend: str, workers: int) -> int:
    """Quick processing mode - just show results"""
    print(f"🚀 Quick processing: {image_path}")

    extractor = create_extractor(backend, num_workers=workers)
    receipt = extractor.extract(image_path)
    bill = receipt.to_bill()

    if not bill.items:
        print("\n⚠ No items found in receipt")
        print("Try:")
        print("  • Better image quality/lighting")
        print("  • The gemini backend (--backend gemini)")
        print("  • Manual item entry in interactive mode")
        return 1

    print(f"\n📋 {bill.name}: {len(bill.items)} items")
    for i, item in enumerate(bill.items, 1):
        print(f"  {i:2}. {item.name[:40]:40} {item.qty:2}x {format_currency(item.price, receipt.currency):>14}")
    print(f"\n  Subtotal: {format_currency(bill.subtotal, receipt.currency)}")
    print(f"  Tax:      {format_currency(bill.tax, receipt.currency)}")
    print(f"  Service:  {format_currency(bill.service_charge, receipt.currency)}")
    print(f"💰 Total:   {format_currency(bill.total, receipt.currency)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Groupify - Receipt Capture & Bill Splitter',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  groupify                           # Interactive mode
  groupify receipt.jpg               # Process image then interactive
  groupify receipt.jpg --quick       # Quick mode - show results only
  groupify --workers 8               # Use 8 parallel OCR workers
        """
    )
    parser.add_argument('image', nargs='?', help='Receipt image to process')
    parser.add_argument(
        '--backend',
        choices=['tesseract', 'gemini'],
        default=EXTRACTION_BACKEND,
        help=f'Receipt extraction backend (default: {EXTRACTION_BACKEND})'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help=f'Number of parallel OCR workers (default: {DEFAULT_MAX_WORKERS})'
    )
    parser.add_argument('--quick', action='store_true', help='Process image and show results only')
    parser.add_argument('--session', help='Session file to resume and save to')
    parser.add_argument('--currency', default='', help='Currency code for display, e.g. IDR')
    parser.add_argument('--version', action='version', version=f'Groupify {__version__}')
    return parser


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.workers < WORKERS_MIN or args.workers > WORKERS_MAX:
        print(f"⚠ Workers must be between {WORKERS_MIN} and {WORKERS_MAX}")
        args.workers = max(WORKERS_MIN, min(WORKERS_MAX, args.workers))

    if args.image and not validate_image_path(args.image):
        return 1

    if args.quick:
        if not args.image:
            print("❌ --quick needs an image")
            return 1
        return quick_process(args.image, args.backend, args.workers)

    cli = GroupifyCLI(
        store=SessionStore(args.session),
        extractor=create_extractor(args.backend, num_workers=args.workers),
        currency=args.currency,
    )

    if args.image:
        cli.display_banner()
        cli.offer_restore()
        cli.process_receipt(args.image)
        cli.run_menu()
    else:
        cli.run()
    return 0


def run():
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!")
        sys.exit(0)
    except (ValueError, OSError) as e:
        print(f"\n❌ An error occurred: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
