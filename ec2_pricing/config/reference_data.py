# ec2_pricing/config/reference_data.py

"""Static reference tables served alongside live pricing data.

These tables are hand-maintained.  ``SAVINGS_PRICE_TABLE`` in particular
holds illustrative prices for the savings calculator and is not
refreshed from the Price List API.
"""

from typing import Any

INSTANCE_SPECS: dict[str, dict[str, Any]] = {
    "t2.micro": {
        "processorInfo": "Intel Xeon Family",
        "maxBandwidth": "Low to Moderate",
        "ebs": "EBS-Only",
        "networkPerformance": "Low to Moderate",
        "maxEbsBandwidth": "Moderate",
        "clockSpeed": "Up to 3.3 GHz",
        "burstablePerformance": True,
        "dedicatedEbsBandwidth": False,
    },
    "t3.micro": {
        "processorInfo": "Intel Xeon Platinum 8259CL",
        "maxBandwidth": "5 Gbps",
        "ebs": "EBS-Only",
        "networkPerformance": "Up to 5 Gigabit",
        "maxEbsBandwidth": "2,085 Mbps",
        "clockSpeed": "2.5 GHz",
        "burstablePerformance": True,
        "dedicatedEbsBandwidth": False,
    },
    "m5.large": {
        "processorInfo": "Intel Xeon Platinum 8175M",
        "maxBandwidth": "10 Gbps",
        "ebs": "EBS-Only",
        "networkPerformance": "Up to 10 Gigabit",
        "maxEbsBandwidth": "4,750 Mbps",
        "clockSpeed": "3.1 GHz",
        "burstablePerformance": False,
        "dedicatedEbsBandwidth": True,
    },
    "c5.large": {
        "processorInfo": "Intel Xeon Platinum 8124M",
        "maxBandwidth": "10 Gbps",
        "ebs": "EBS-Only",
        "networkPerformance": "Up to 10 Gigabit",
        "maxEbsBandwidth": "4,750 Mbps",
        "clockSpeed": "3.4 GHz",
        "burstablePerformance": False,
        "dedicatedEbsBandwidth": True,
    },
    "r5.large": {
        "processorInfo": "Intel Xeon Platinum 8175M",
        "maxBandwidth": "10 Gbps",
        "ebs": "EBS-Only",
        "networkPerformance": "Up to 10 Gigabit",
        "maxEbsBandwidth": "4,750 Mbps",
        "clockSpeed": "3.1 GHz",
        "burstablePerformance": False,
        "dedicatedEbsBandwidth": True,
    },
}

RI_TERMS: dict[str, dict[str, dict[str, Any]]] = {
    "1yr": {
        "no_upfront": {
            "term": "1 year", "payment": "No Upfront", "discount": 0.25,
        },
        "partial_upfront": {
            "term": "1 year", "payment": "Partial Upfront", "discount": 0.35,
        },
        "all_upfront": {
            "term": "1 year", "payment": "All Upfront", "discount": 0.40,
        },
    },
    "3yr": {
        "no_upfront": {
            "term": "3 year", "payment": "No Upfront", "discount": 0.45,
        },
        "partial_upfront": {
            "term": "3 year", "payment": "Partial Upfront", "discount": 0.55,
        },
        "all_upfront": {
            "term": "3 year", "payment": "All Upfront", "discount": 0.60,
        },
    },
}

# Hourly prices (USD) plus one-off upfront payments per RI option
SAVINGS_PRICE_TABLE: dict[str, Any] = {
    "onDemand": 0.10,
    "spot": 0.03,
    "reserved": {
        "1yr": {
            "no_upfront": {"hourly": 0.07, "upfront": 0.0},
            "partial_upfront": {"hourly": 0.04, "upfront": 100.0},
            "all_upfront": {"hourly": 0.0, "upfront": 700.0},
        },
        "3yr": {
            "no_upfront": {"hourly": 0.05, "upfront": 0.0},
            "partial_upfront": {"hourly": 0.03, "upfront": 200.0},
            "all_upfront": {"hourly": 0.0, "upfront": 1500.0},
        },
    },
}
