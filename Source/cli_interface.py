"""
CLI Interface module for Groupify
Command-line interface for receipt capture and bill splitting
"""

from datetime import datetime
from typing import Optional

from bill_splitter import BillSplitter
from data_models import Bill
from exporter import export_json, render_summary_image
from receipt_extractor import ReceiptExtractor, TesseractExtractor, create_extractor
from session import SplitSession
from session_store import SessionStore
from utils import (
    clean_text_for_display,
    format_currency,
    sanitize_filename,
    try_parse_float,
    try_parse_int,
    validate_image_path,
    validate_menu_choice,
)


class GroupifyCLI:
    """Command-line interface for Groupify"""

    def __init__(self, store: Optional[SessionStore] = None,
                 extractor: Optional[ReceiptExtractor] = None, currency: str = ''):
        self.store = store or SessionStore()
        self.session = SplitSession(store=self.store)
        self._extractor = extractor
        self.currency = currency

    @property
    def extractor(self) -> ReceiptExtractor:
        if self._extractor is None:
            self._extractor = create_extractor()
        return self._extractor

    def money(self, amount: float) -> str:
        return format_currency(amount, self.currency)

    def display_banner(self):
        print("\n" + "="*60)
        print("🍽️  GROUPIFY - Bill Splitter")
        print("Receipt capture, shared items & settlements")
        print("="*60)

    # ---------- session ----------

    def offer_restore(self):
        """Ask whether to resume a stored session that has bills"""
        saved = self.store.load()
        if saved is None or not saved.bills:
            return
        print("\n🔄 Found an unfinished session "
              f"({len(saved.bills)} bill(s), {len(saved.people)} people).")
        choice = input("1. Resume  2. Start over\nChoice: ").strip()
        if choice == '1':
            self.session = SplitSession(saved, self.store)
            print("✓ Session restored")
        else:
            self.session.reset()
            print("✓ Started a new session")

    # ---------- bills ----------

    def process_receipt(self, image_path: str) -> Optional[Bill]:
        """Extract a receipt image into a new bill"""
        print(f"\n📸 Processing receipt: {image_path}")
        self.session.set_step('PROCESSING')
        try:
            extracted = self.extractor.extract(image_path)
        except (ValueError, OSError) as e:
            print(f"❌ Failed to process receipt: {e}")
            self.session.set_step('UPLOAD')
            return None

        if extracted.currency and not self.currency:
            self.currency = extracted.currency
        bill = self.session.add_bill(extracted.to_bill())
        self.session.set_step('BILL_NAME')

        self.display_bill(bill)
        if isinstance(self.extractor, TesseractExtractor):
            self.display_metrics()
        return bill

    def enter_manual_bill(self):
        name = input("Bill name: ").strip()
        bill = self.session.add_manual_bill(name)
        print(f"✓ Created bill '{bill.name}'")
        self.edit_items()

    def switch_bill(self):
        bills = self.session.state.bills
        if not bills:
            print("\n⚠ No bills yet")
            return
        for i, bill in enumerate(bills, 1):
            marker = '*' if bill.id == self.session.state.current_bill_id else ' '
            print(f"{marker}{i}. {bill.name} ({self.money(bill.total)})")
        idx = try_parse_int(input("Select bill number: "))
        if idx is not None and 1 <= idx <= len(bills):
            self.session.select_bill(bills[idx - 1].id)
            print(f"✓ Current bill: {bills[idx - 1].name}")

    def display_bill(self, bill: Optional[Bill] = None):
        bill = bill or self.session.current_bill
        if bill is None:
            print("\n⚠ No bill selected")
            return

        names = {p.id: p.name for p in self.session.state.people}
        print("\n" + "="*50)
        print(f"📋 {clean_text_for_display(bill.name, 40)}")
        print("="*50)

        if not bill.items:
            print("No items yet")
        for i, item in enumerate(bill.items, 1):
            assigned = ', '.join(names.get(pid, '?') for pid in item.shared_by) or 'Unassigned'
            print(f"{i:2}. {item.name[:30]:30} {item.qty:2}x {self.money(item.price):>12} [{assigned}]")

        print("-"*50)
        print(f"{'SUBTOTAL:':30} {self.money(bill.subtotal):>14}")
        print(f"{'TAX:':30} {self.money(bill.tax):>14}")
        print(f"{'SERVICE:':30} {self.money(bill.service_charge):>14}")
        print(f"{'TOTAL:':30} {self.money(bill.total):>14}")

    def display_metrics(self):
        m = self.extractor.metrics
        print("\n" + "="*50)
        print("🚀 PROCESSING METRICS")
        print("="*50)
        print(f"Workers Used:      {m.workers_used}")
        print(f"Processing Time:   {m.processing_time:.2f}s")
        print(f"Items Detected:    {m.items_detected}")
        print(f"Regions Processed: {m.regions_processed}")

    def edit_items(self):
        """Add, change or delete items on the current bill"""
        bill = self.session.current_bill
        if bill is None:
            print("\n⚠ No bill selected")
            return

        while True:
            self.display_bill(bill)
            print("\n1. Add item")
            print("2. Edit item")
            print("3. Remove item")
            print("4. Rename bill")
            print("5. Done")

            choice = validate_menu_choice(input("\nChoice: "), ['1', '2', '3', '4', '5']) or ''
            print("-"*50)

            if choice == '1':
                name = input("Item name: ").strip() or "New item"
                price = try_parse_float(input("Price (line total): "))
                qty = try_parse_int(input("Quantity [1]: ") or "1")
                self.session.add_item(name, price or 0.0, qty or 1)
                print(f"✓ Added {name}")
            elif choice in ('2', '3'):
                idx = try_parse_int(input("Item number: "))
                if idx is None or not 1 <= idx <= len(bill.items):
                    print("Invalid selection")
                    continue
                item = bill.items[idx - 1]
                if choice == '3':
                    self.session.remove_item(item.id)
                    print(f"✓ Removed {item.name}")
                    continue
                name = input(f"Name [{item.name}]: ").strip() or None
                price = try_parse_float(input(f"Price [{item.price:.2f}]: "))
                qty = try_parse_int(input(f"Quantity [{item.qty}]: "))
                self.session.update_item(item.id, name=name, price=price, qty=qty)
                print("✓ Updated")
            elif choice == '4':
                name = input("New bill name: ").strip()
                if name:
                    self.session.rename_bill(name)
            elif choice == '5':
                break

    # ---------- people ----------

    def manage_people(self):
        self.session.set_step('ADD_PEOPLE')
        print("\n" + "="*50)
        print("👥 PEOPLE MANAGEMENT")
        print("="*50)

        while True:
            people = self.session.state.people
            print(f"\nCurrent people: {', '.join(p.name for p in people) if people else 'None'}")
            print("\n1. Add person")
            print("2. Remove person")
            print("3. Done")

            choice = validate_menu_choice(input("\nChoice: "), ['1', '2', '3']) or ''
            print("-"*50)

            if choice == '1':
                person = self.session.add_person(input("Enter name: "))
                if person:
                    print(f"✓ Added {person.name}")
            elif choice == '2':
                for i, person in enumerate(people, 1):
                    print(f"{i}. {person.name}")
                idx = try_parse_int(input("Select person number to remove: "))
                if idx is not None and 1 <= idx <= len(people):
                    removed = people[idx - 1]
                    self.session.remove_person(removed.id)
                    print(f"✓ Removed {removed.name}")
                else:
                    print("Invalid selection")
            elif choice == '3':
                break

    # ---------- assignment ----------

    def assign_items(self):
        bill = self.session.current_bill
        if bill is None or not bill.items:
            print("\n⚠ No bill items to assign")
            return

        people = self.session.state.people
        if not people:
            print("\n⚠ No people added yet")
            return

        self.session.set_step('ASSIGN_ITEMS')
        print("\n" + "="*50)
        print("🔍 ITEM ASSIGNMENT")
        print("="*50)

        names = {p.id: p.name for p in people}
        for item in bill.items:
            print(f"\n{item.name} - {self.money(item.price)}")
            print(f"Shared by: {', '.join(names.get(pid, '?') for pid in item.shared_by) or 'Nobody'}")

            print("\n1. Everyone / nobody")
            print("2. Choose people")
            print("3. Skip")

            choice = validate_menu_choice(input("Choice: "), ['1', '2', '3']) or ''
            print("-"*50)

            if choice == '1':
                self.session.select_all_people_for_item(item.id)
                print(f"✓ Shared by {len(item.shared_by)} people")
            elif choice == '2':
                for i, person in enumerate(people, 1):
                    print(f"{i}. {person.name}")
                selections = input("Enter person numbers (comma-separated): ")
                indices = [try_parse_int(x) for x in selections.split(',')]
                chosen = [people[i - 1].id for i in indices if i is not None and 1 <= i <= len(people)]
                self.session.assign_item(item.id, chosen)
                print(f"✓ Assigned to {', '.join(names[pid] for pid in chosen) or 'nobody'}")

    # ---------- tax & service ----------

    def set_tax_service(self):
        bill = self.session.current_bill
        if bill is None:
            print("\n⚠ No bill selected")
            return

        self.session.set_step('TAX_SERVICE')
        tax_pct = bill.tax_percentage()
        service_pct = bill.service_percentage()
        tax_in = try_parse_float(input(f"\nTax % [{tax_pct:.2f}]: ") or f"{tax_pct}")
        service_in = try_parse_float(input(f"Service % [{service_pct:.2f}]: ") or f"{service_pct}")
        if tax_in is None or service_in is None or tax_in < 0 or service_in < 0:
            print("Invalid percentage")
            return

        self.session.apply_tax_service(tax_in, service_in)
        print(f"✓ Tax {self.money(bill.tax)}, service {self.money(bill.service_charge)}")
        print(f"New total: {self.money(bill.total)}")

    # ---------- payments ----------

    def manage_payments(self):
        if not self.session.state.bills:
            print("\n⚠ No bills yet")
            return

        self.session.set_step('PAYMENTS')
        while True:
            names = {p.id: p.name for p in self.session.state.people}
            remaining = self.session.remaining_amount()
            print("\n" + "="*50)
            print("💳 PAYMENTS")
            print("="*50)
            print(f"Total bill: {self.money(self.session.total_bill())}")
            print(f"Remaining:  {self.money(remaining) if remaining > 0.01 else 'Paid in full!'}")
            for i, payment in enumerate(self.session.state.payments, 1):
                print(f"{i:2}. {names.get(payment.person_id, '?'):15} {self.money(payment.amount):>14}  {payment.note}")

            print("\n1. Add payment")
            print("2. Edit payment")
            print("3. Remove payment")
            print("4. Done")

            choice = validate_menu_choice(input("\nChoice: "), ['1', '2', '3', '4']) or ''
            print("-"*50)
            payments = self.session.state.payments

            if choice == '1':
                people = self.session.state.people
                for i, person in enumerate(people, 1):
                    print(f"{i}. {person.name}")
                idx = try_parse_int(input("Who paid? "))
                if idx is None or not 1 <= idx <= len(people):
                    print("Invalid selection")
                    continue
                amount = try_parse_float(input("Amount [remaining]: ") or "")
                note = input("Note [Paid]: ").strip() or "Paid"
                self.session.add_payment(people[idx - 1].id, amount, note)
            elif choice in ('2', '3'):
                idx = try_parse_int(input("Payment number: "))
                if idx is None or not 1 <= idx <= len(payments):
                    print("Invalid selection")
                    continue
                payment = payments[idx - 1]
                if choice == '3':
                    self.session.remove_payment(payment.id)
                    continue
                amount = try_parse_float(input(f"Amount [{payment.amount:.2f}]: "))
                note = input(f"Note [{payment.note}]: ").strip() or None
                self.session.update_payment(payment.id, amount=amount, note=note)
            elif choice == '4':
                break

    # ---------- results ----------

    def calculate_settlements(self):
        if not self.session.state.people or not self.session.state.bills:
            print("\n⚠ Need bills and people to calculate settlements")
            return

        self.session.set_step('SUMMARY')
        splitter = BillSplitter(self.session.state)

        unassigned = splitter.unassigned_count()
        if unassigned:
            print(f"\n⚠ {unassigned} item(s) are not assigned to anyone. Totals may be inaccurate.")

        print("\n" + "-"*50)
        print("💰 INDIVIDUAL SHARES")
        print("-"*50)
        for stats in splitter.person_totals():
            if stats.balance > 0.01:
                status = f"owed {self.money(stats.balance)}"
            elif stats.balance < -0.01:
                status = f"owes {self.money(-stats.balance)}"
            else:
                status = "settled"
            print(f"{stats.name:15} : {self.money(stats.final_total):>14}  "
                  f"(paid {self.money(stats.amount_paid)}, {status})")

        settlements = splitter.settlements()
        print("\n" + "="*50)
        print("💸 SETTLEMENTS")
        print("="*50)
        if not settlements:
            print("\n🎉 No transfers needed!")
        for s in settlements:
            print(f"{s.from_person:15} → {s.to_person:15} : {self.money(s.amount):>14}")

        print("\n" + "-"*50)
        print(f"Total Amount:     {self.money(splitter.total_bill())}")
        print(f"Total Paid:       {self.money(splitter.total_paid())}")
        print(f"Transactions:     {len(settlements)}")

    def export_results(self):
        if not self.session.state.bills:
            print("\n⚠ Nothing to export")
            return

        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        base = sanitize_filename(f"groupify_summary_{stamp}")
        try:
            json_path = export_json(self.session.state, f"{base}.json")
            image_path = render_summary_image(self.session.state, f"{base}.png", currency=self.currency)
        except OSError as e:
            print(f"\nExport failed: {e}")
            return
        print(f"\n✅ Exported {json_path} and {image_path}")

    def reset_session(self):
        if input("Clear all bills, people and payments? (y/N): ").strip().lower() == 'y':
            self.session.reset()
            print("✓ Session cleared")

    def run(self):
        """Run the CLI application"""
        self.display_banner()
        self.offer_restore()
        self.run_menu()

    def run_menu(self):
        actions = {
            '1': self._prompt_receipt,
            '2': self.enter_manual_bill,
            '3': self.switch_bill,
            '4': self.edit_items,
            '5': self.manage_people,
            '6': self.assign_items,
            '7': self.set_tax_service,
            '8': self.manage_payments,
            '9': self.calculate_settlements,
            '10': self.export_results,
            '11': self.reset_session,
        }

        while True:
            print("\n" + "="*50)
            print("MAIN MENU")
            print("="*50)
            print("1. Process receipt image")
            print("2. Enter bill manually")
            print("3. Switch bill")
            print("4. Edit items")
            print("5. Manage people")
            print("6. Assign items to people")
            print("7. Tax & service")
            print("8. Payments")
            print("9. Calculate settlements")
            print("10. Export results")
            print("11. Reset session")
            print("0. Exit")

            choice = input("\nChoice: ").strip()
            if choice == '0':
                print("\n👋 Thank you for using Groupify!")
                break
            action = actions.get(choice)
            if action is not None:
                action()

    def _prompt_receipt(self):
        image_path = input("Enter image path: ").strip()
        if validate_image_path(image_path):
            self.process_receipt(image_path)
        else:
            print("⚠ Invalid or unsupported image")
