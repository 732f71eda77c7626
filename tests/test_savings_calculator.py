# tests/test_savings_calculator.py

"""Tests for the reserved / spot savings calculator."""

import unittest

from ec2_pricing.services.savings_calculator import calculate_savings


class TestCalculateSavings(unittest.TestCase):
    """Cost arithmetic against the static price table."""

    def test_full_month_no_upfront(self) -> None:
        """A 730 hour month matches the hourly rates."""
        result = calculate_savings("t2.micro", "us-east-1", "Linux", 730)
        self.assertAlmostEqual(result["onDemandMonthly"], 73.0)
        self.assertAlmostEqual(result["reservedMonthly"], 0.07 * 730)
        self.assertAlmostEqual(
            result["reservedSavings"], 0.10 * 730 - result["reservedMonthly"],
        )
        self.assertAlmostEqual(result["spotMonthly"], 0.03 * 730)
        self.assertAlmostEqual(result["spotSavingsPercentage"], 70.0)

    def test_upfront_amortised_over_twelve_months(self) -> None:
        """Upfront cost is spread over twelve months."""
        result = calculate_savings(
            "t2.micro", "us-east-1", "Linux", 730,
            ri_term="1yr", ri_payment="partial_upfront",
        )
        self.assertAlmostEqual(result["reservedUpfront"], 100.0)
        self.assertAlmostEqual(
            result["reservedMonthly"], 0.04 * 730 + 100.0 / 12,
        )

    def test_three_year_all_upfront(self) -> None:
        """Three-year all upfront has no hourly charge."""
        result = calculate_savings(
            "t2.micro", "us-east-1", "Linux", 730,
            ri_term="3yr", ri_payment="all_upfront",
        )
        self.assertAlmostEqual(result["reservedMonthly"], 1500.0 / 12)
        self.assertLess(result["reservedSavings"], 0)

    def test_echoes_request(self) -> None:
        """The request parameters are echoed back."""
        result = calculate_savings("m5.large", "eu-west-1", "Windows", 100)
        self.assertEqual(result["instanceType"], "m5.large")
        self.assertEqual(result["region"], "eu-west-1")
        self.assertEqual(result["os"], "Windows")
        self.assertEqual(result["riTerm"], "1yr")
        self.assertEqual(result["riPayment"], "no_upfront")

    def test_non_positive_hours_rejected(self) -> None:
        """Zero or negative hours raise ValueError."""
        for hours in (0, -5):
            with self.subTest(hours=hours):
                with self.assertRaises(ValueError):
                    calculate_savings("t2.micro", "us-east-1", "Linux", hours)

    def test_unknown_option_rejected(self) -> None:
        """Unknown terms and payments raise ValueError."""
        with self.assertRaises(ValueError):
            calculate_savings(
                "t2.micro", "us-east-1", "Linux", 730, ri_term="5yr",
            )
        with self.assertRaises(ValueError):
            calculate_savings(
                "t2.micro", "us-east-1", "Linux", 730,
                ri_payment="monthly",
            )

    def test_zero_on_demand_gives_zero_percentage(self) -> None:
        """A zero On-Demand cost gives zero percent."""
        prices = {
            "onDemand": 0.0,
            "spot": 0.0,
            "reserved": {"1yr": {"no_upfront": {"hourly": 0.0, "upfront": 0.0}}},
        }
        result = calculate_savings(
            "t2.micro", "us-east-1", "Linux", 730, prices=prices,
        )
        self.assertEqual(result["reservedSavingsPercentage"], 0.0)
        self.assertEqual(result["spotSavingsPercentage"], 0.0)
