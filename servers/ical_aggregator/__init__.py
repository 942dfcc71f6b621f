"""
iCal Feed Aggregator

This server provides tools for:
- Fetching calendar feeds from multiple local organizations concurrently
- Normalizing locations and dropping closed/cancelled entries per source
- Rendering the merged events as CSV, HTML or JSON

Target: Greater Portland, ME area
"""

__version__ = "1.0.0"
