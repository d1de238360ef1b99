"""Shipment KPI dashboard core.

Turns a shipment-tracking spreadsheet export into transit-time KPIs,
duration buckets and data-quality reports for interactive review.
"""

__version__ = "0.1.0"
