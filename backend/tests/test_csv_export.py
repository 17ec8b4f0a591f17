import csv
import io
import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from receiptly.schemas.receipt import LineItem, Receipt
from receiptly.services.csv_export import build_receipt_csv, escape, format_amount, format_date

RECEIPT_ID = "0b3f1c52-8d7e-4a61-9c2f-5e8a7b6d4c3e"


def _parse_single_field(text: str) -> str:
    rows = list(csv.reader(io.StringIO(text)))
    assert len(rows) == 1 and len(rows[0]) == 1
    return rows[0][0]


class EscapeTests(unittest.TestCase):
    def test_none_is_empty(self):
        self.assertEqual(escape(None), "")

    def test_plain_values_are_stringified(self):
        self.assertEqual(escape("Cafe"), "Cafe")
        self.assertEqual(escape(3), "3")
        self.assertEqual(escape(1.5), "1.5")

    def test_special_characters_are_quoted(self):
        self.assertEqual(escape("a,b"), '"a,b"')
        self.assertEqual(escape('say "hi"'), '"say ""hi"""')
        self.assertEqual(escape("line1\nline2"), '"line1\nline2"')

    def test_other_characters_untouched(self):
        self.assertEqual(escape("tab\there; semi"), "tab\there; semi")

    def test_csv_reader_recovers_original(self):
        samples = [
            "plain",
            "comma, inside",
            'quote " inside',
            '"fully quoted"',
            "multi\nline, with \"everything\"",
            "",
            "trailing,",
        ]
        for sample in samples:
            with self.subTest(sample=sample):
                escaped = escape(sample)
                if sample == "":
                    self.assertEqual(escaped, "")
                    continue
                self.assertEqual(_parse_single_field(escaped), sample)


class FormatAmountTests(unittest.TestCase):
    def test_missing_values(self):
        self.assertEqual(format_amount(None), "")
        self.assertEqual(format_amount(""), "")
        self.assertEqual(format_amount("   "), "")

    def test_unparseable(self):
        self.assertEqual(format_amount("abc"), "")
        self.assertEqual(format_amount("12,50"), "")
        self.assertEqual(format_amount(float("nan")), "")
        self.assertEqual(format_amount(float("inf")), "")
        self.assertEqual(format_amount("Infinity"), "")

    def test_two_decimals(self):
        self.assertEqual(format_amount("12"), "12.00")
        self.assertEqual(format_amount(12.5), "12.50")
        self.assertEqual(format_amount(0), "0.00")
        self.assertEqual(format_amount(Decimal("7.1")), "7.10")
        self.assertEqual(format_amount(1234567.891), "1234567.89")

    def test_half_up_rounding(self):
        self.assertEqual(format_amount(12.345), "12.35")
        self.assertEqual(format_amount("0.005"), "0.01")
        self.assertEqual(format_amount(2.675), "2.68")


class FormatDateTests(unittest.TestCase):
    def test_missing_values(self):
        self.assertEqual(format_date(None), "")
        self.assertEqual(format_date(""), "")

    def test_unparseable(self):
        self.assertEqual(format_date("not-a-date"), "")
        self.assertEqual(format_date(12345), "")

    def test_iso_timestamp(self):
        self.assertEqual(format_date("2024-03-05T10:00:00Z"), "2024-03-05")
        self.assertEqual(format_date("2024-03-05"), "2024-03-05")

    def test_converts_to_utc(self):
        self.assertEqual(format_date("2024-03-05T23:30:00-02:00"), "2024-03-06")
        self.assertEqual(format_date("2024-03-05T00:30:00+02:00"), "2024-03-04")

    def test_trimmed_fractional_seconds(self):
        self.assertEqual(format_date("2024-03-05T10:00:00.5+00:00"), "2024-03-05")
        self.assertEqual(format_date("2024-03-05T10:00:00.25+00:00"), "2024-03-05")
        self.assertEqual(format_date("2024-03-05T23:59:59.12345-01:00"), "2024-03-06")
        self.assertEqual(format_date("2024-03-05 10:00:00.1234567Z"), "2024-03-05")

    def test_naive_timestamp_is_utc(self):
        self.assertEqual(format_date("2024-03-05T23:59:59"), "2024-03-05")

    def test_date_objects(self):
        self.assertEqual(format_date(date(2024, 1, 2)), "2024-01-02")
        tz = timezone(timedelta(hours=9))
        self.assertEqual(format_date(datetime(2024, 1, 2, 3, 0, tzinfo=tz)), "2024-01-01")


class BuildReceiptCsvTests(unittest.TestCase):
    def _receipt(self, **kwargs) -> Receipt:
        data = {
            "id": RECEIPT_ID,
            "owner_id": "user-1",
            "merchant": "Cafe",
            "purchase_date": "2024-03-05T10:00:00Z",
            "total": 12.5,
            "currency": "EUR",
            "category": "Food & Drink",
        }
        data.update(kwargs)
        return Receipt(**data)

    def test_full_layout(self):
        receipt = self._receipt(
            items=[
                LineItem(name="Coffee", quantity=2, price=4),
                LineItem(name="Bagel, toasted", quantity=None, price="4.5"),
            ]
        )
        self.assertEqual(
            build_receipt_csv(receipt),
            "\n".join(
                [
                    "Merchant,Cafe",
                    "Purchase Date,2024-03-05",
                    "Total,12.50",
                    "Currency,EUR",
                    "Category,Food & Drink",
                    f"Receipt ID,{RECEIPT_ID}",
                    "",
                    "Items",
                    "Name,Quantity,Price",
                    "Coffee,2,4.00",
                    '"Bagel, toasted",,4.50',
                ]
            ),
        )

    def test_no_items_keeps_header(self):
        lines = build_receipt_csv(self._receipt()).split("\n")
        self.assertEqual(lines[-2:], ["Items", "Name,Quantity,Price"])

    def test_bad_fields_degrade_to_empty_cells(self):
        receipt = self._receipt(
            merchant=None,
            purchase_date="yesterday",
            total="twelve",
            currency=None,
            category=None,
            items=[LineItem(name="Mystery", quantity=None, price="n/a")],
        )
        lines = build_receipt_csv(receipt).split("\n")
        self.assertEqual(lines[:5], ["Merchant,", "Purchase Date,", "Total,", "Currency,", "Category,"])
        self.assertEqual(lines[-1], "Mystery,,")


if __name__ == "__main__":
    unittest.main()
