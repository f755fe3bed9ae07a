"""Asset Register Reporting Module.

This module turns the register backend's asset data into station reports:
- Group a station's assigned units Asset -> Batch -> Item with a total value
- Print station reports and station/department directories as HTML
- Export station reports as CSV or Excel
- Batch valuation, station-scoped asset views, and dashboard analytics
- Station, batch, and account maintenance gated by role

Architecture: Clean Architecture with Hexagonal (Ports & Adapters)
"""
