"""
Reporting Kernel

Shared infrastructure for the periodic financial reporting engine:
- Structured JSON logging
- Typed exception hierarchy with machine-readable codes
- Injectable clock and calendar-month value objects
- Snapshot persistence for the reporting-period collection
"""

__version__ = "0.1.0"
