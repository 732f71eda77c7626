# tests/test_formatters.py

"""Tests for dashboard display helpers."""

import unittest

from ec2_pricing.ui.formatters import (
    format_date,
    format_memory,
    format_percentage,
    format_price,
    format_price_breakdown,
    percentage_difference,
)


class TestFormatters(unittest.TestCase):
    """Formatting of prices, dates and percentages."""

    def test_format_price(self) -> None:
        """Prices use four decimals and N/A for None."""
        self.assertEqual(format_price(0.0104), "$0.0104")
        self.assertEqual(format_price(12.5, 2), "$12.50")
        self.assertEqual(format_price(None), "N/A")
        self.assertEqual(format_price(0.0), "$0.0000")

    def test_format_price_breakdown(self) -> None:
        """Monthly uses 730 hours and yearly twelve months."""
        self.assertEqual(format_price_breakdown(0.1), {
            "hourly": "$0.1000",
            "monthly": "$73.00",
            "yearly": "$876.00",
        })
        self.assertEqual(
            format_price_breakdown(None)["monthly"], "N/A",
        )

    def test_format_date(self) -> None:
        """ISO strings render as date and time; junk passes through."""
        self.assertEqual(
            format_date("2024-06-01T12:30:00+00:00"), "2024-06-01 12:30",
        )
        self.assertEqual(
            format_date("2024-06-01T12:30:00Z"), "2024-06-01 12:30",
        )
        self.assertEqual(format_date(None), "N/A")
        self.assertEqual(format_date("yesterday"), "yesterday")

    def test_format_percentage(self) -> None:
        """Positive values carry a plus sign."""
        self.assertEqual(format_percentage(12.345), "+12.3%")
        self.assertEqual(format_percentage(-70.0), "-70.0%")
        self.assertEqual(format_percentage(5, include_sign=False), "5.0%")
        self.assertEqual(format_percentage(None), "N/A")

    def test_percentage_difference(self) -> None:
        """Missing or zero bases give None."""
        self.assertAlmostEqual(percentage_difference(0.10, 0.03) or 0, -70.0)
        self.assertIsNone(percentage_difference(None, 0.03))
        self.assertIsNone(percentage_difference(0.0, 0.03))

    def test_format_memory(self) -> None:
        """Memory drops trailing zeros and adds GiB."""
        self.assertEqual(format_memory(1.0), "1 GiB")
        self.assertEqual(format_memory(0.5), "0.5 GiB")
        self.assertEqual(format_memory(None), "N/A")
