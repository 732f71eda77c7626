# ec2_pricing/services/savings_calculator.py

"""Compare On-Demand, Reserved and Spot costs for a usage profile."""

from typing import Any

from ec2_pricing.config.reference_data import SAVINGS_PRICE_TABLE


def _percentage(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole else 0.0


def calculate_savings(
    instance_type: str,
    region: str,
    os_name: str,
    hours: float,
    ri_term: str = "1yr",
    ri_payment: str = "no_upfront",
    prices: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return hourly/monthly costs per pricing kind and the savings.

    Upfront payments are amortised over 12 months whatever the term
    length.  Prices come from the static table, not from live data.

    Raises:
        ValueError: ``hours`` is not positive, or the term / payment
            option is not in the price table.
    """
    if hours <= 0:
        raise ValueError("Hours must be greater than zero")

    table = prices or SAVINGS_PRICE_TABLE
    try:
        reserved_option = table["reserved"][ri_term][ri_payment]
    except KeyError:
        raise ValueError(
            f"Unknown reserved option: {ri_term}/{ri_payment}"
        ) from None

    on_demand_hourly = float(table["onDemand"])
    spot_hourly = float(table["spot"])
    reserved_hourly = float(reserved_option["hourly"])
    reserved_upfront = float(reserved_option["upfront"])

    on_demand_monthly = on_demand_hourly * hours
    spot_monthly = spot_hourly * hours
    reserved_monthly = reserved_hourly * hours + reserved_upfront / 12

    reserved_savings = on_demand_monthly - reserved_monthly
    spot_savings = on_demand_monthly - spot_monthly

    return {
        "instanceType": instance_type,
        "region": region,
        "os": os_name,
        "hours": hours,
        "riTerm": ri_term,
        "riPayment": ri_payment,
        "onDemandHourly": on_demand_hourly,
        "onDemandMonthly": on_demand_monthly,
        "reservedHourly": reserved_hourly,
        "reservedUpfront": reserved_upfront,
        "reservedMonthly": reserved_monthly,
        "spotHourly": spot_hourly,
        "spotMonthly": spot_monthly,
        "reservedSavings": reserved_savings,
        "reservedSavingsPercentage": _percentage(
            reserved_savings, on_demand_monthly
        ),
        "spotSavings": spot_savings,
        "spotSavingsPercentage": _percentage(
            spot_savings, on_demand_monthly
        ),
    }
