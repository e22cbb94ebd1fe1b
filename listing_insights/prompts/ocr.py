"""
Prompt for reading product fields off a screenshot.
"""
from .common import JSON_OUTPUT_STRICT

SCREENSHOT_EXTRACTION_PROMPT = """Extract the following data from this Amazon product page screenshot:

1. Price (look for the main price, ignore crossed-out list prices)
2. Shipping date (find text like "FREE delivery Thursday, October 16" or "Get it by Tuesday")
3. Number of reviews (find the review count number)
4. Star rating (find the star rating like 4.7)

Return a JSON object with this exact format:
{
  "price": 80.99,
  "shippingDate": "Thursday, October 16",
  "reviews": 1345,
  "rating": 4.7
}

Be precise with the numbers. Do not include dollar signs in the price, just the number.
If the image is blank or is not an Amazon product page, say so in plain text instead of returning JSON.
""" + JSON_OUTPUT_STRICT
