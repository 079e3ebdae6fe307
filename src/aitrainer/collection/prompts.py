"""Prompt for the competitor generator."""

COMPETITOR_LIST_PROMPT = """\
Find {count} real, existing websites of competitors for a "{business_type}" business.

Return ONLY a JSON array in this format:
[
  {{
    "name": "Real Company Name",
    "url": "https://real-company-site.example",
    "description": "Short description of the business"
  }}
]

Requirements:
- Only real, currently existing websites
- Local and national small-to-medium businesses
- Sites likely to use stock photography
- No large corporations with strict copyright policies
- Valid, working, absolute URLs
- No markdown, no commentary, nothing outside the JSON array
"""
