"""
Instruction template for electric-bill extraction.
"""
from __future__ import annotations

from typing import Optional

EXTRACTION_PROMPT = """You are an expert electrical bill extractor. Review the provided bill(s) and extract key information as instructed for each meter & billing period. Do not include gas meters. Extract ONLY the following from the provided text:
1. meter_number: The electrical meter number for this reading (string, or null)
2. start_date: The start date of the billing period for this meter (YYYY-MM-DD format, or null)
3. end_date: The end date of the billing period for this meter (YYYY-MM-DD format, or null)
4. total_kwh: The total electricity usage in kWh on this meter for the current billing period (number, or null if not found). This should be a single number on the page somewhere, without having to add anything up.
5. total_charges: The total electrical charges in USD on this meter for the current billing period (number, or null), excluding any gas charges. This should be a single number on the page somewhere, without having to add anything up.
6. adjustments: The value of any line item listed as an 'adjustment' on this meter for the current billing period (number, or null)
Return ONLY an array of JSON objects as property 'results', each element having these 6 keys. Do not include any other text, markdown, or explanation. For example:
{
  "results": [
    {
      "meter_number": "KU39487",
      "start_date": "2024-12-12",
      "end_date": "2025-01-13",
      "total_kwh": 19560,
      "total_charges": 2271.93,
      "adjustments": 0
    },
    {
      "meter_number": "1124520",
      "start_date": "2025-11-01",
      "end_date": "2025-12-01",
      "total_kwh": 225,
      "total_charges": 379.20,
      "adjustments": -420.22
    }
  ]
}"""

GUESS_HINT = "\n\nThe total_kwh should be close to {guess}."


def get_extraction_prompt(retry: bool = False, guess: Optional[float] = None) -> str:
    """Return the system prompt, biased toward *guess* on a re-query."""
    if retry and guess is not None:
        return EXTRACTION_PROMPT + GUESS_HINT.format(guess=f"{guess:g}")
    return EXTRACTION_PROMPT
