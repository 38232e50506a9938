"""
Zoom Phone call report

Correlates Zoom Phone call history legs into per-representative
customer call reports.
"""

__version__ = '1.0.0'
