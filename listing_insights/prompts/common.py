"""
Common prompt components and instructions.

Reusable prompt snippets that can be composed into full prompts.
"""

# ============================================================================
# JSON OUTPUT INSTRUCTIONS
# ============================================================================

JSON_OUTPUT_STRICT = """
**CRITICAL: OUTPUT FORMAT**
- Return ONLY valid JSON, no explanations before or after
- No markdown code blocks (no ```json```)
- Ensure proper JSON escaping for quotes and special characters
- Structure must exactly match the schema provided
"""

# ============================================================================
# POLL PRINCIPLES
# ============================================================================

FRESH_POLL_INSTRUCTION = """
**FRESH POLL**
- This is a FRESH, UNIQUE poll - generate new responses every time
- Do not reuse percentages or sample responses from previous polls
- Base responses on typical consumer behavior for this demographic
"""

ANONYMITY_INSTRUCTION = """
**PRODUCT IDENTIFIERS**
- Each product is identified by a label such as P1, P2, P3
- Refer to products ONLY by these labels in your answer
- Do not guess or mention brand names
"""
