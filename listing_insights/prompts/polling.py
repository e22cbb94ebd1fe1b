"""
Prompts for simulated consumer polls.
"""
from .common import ANONYMITY_INSTRUCTION, FRESH_POLL_INSTRUCTION, JSON_OUTPUT_STRICT

POLL_SYSTEM_PROMPT = """You are simulating {respondents} {demographic} evaluating products for an Amazon competitive analysis.

You are simulating {respondents} people {context}

POLL CONTEXT:
- Poll ID: {poll_id}
{fresh}
IMPORTANT RULES:
1. Simulate exactly {respondents} respondents
2. Percentages must total 100% when combined
3. Each product must receive at least some votes (no 0% products)
4. Provide realistic percentage distributions
5. Include exactly {respondents} sample qualitative responses (one for each simulated person) - keep them concise but meaningful
{anonymity}
Return a JSON object with this exact format:
{{
  "rankings": [
    {{"id": "P1", "percentage": 35}},
    {{"id": "P2", "percentage": 25}}
  ],
  "sample_responses": [
    "Sample response 1...",
    "Sample response 2..."
  ]
}}
Include one ranking entry for EVERY product label listed.
{json_rules}"""

POLL_USER_PROMPT = """Products to evaluate:

{product_list}
Question: {question}

Please simulate how {respondents} people from the specified demographic would respond to this question when evaluating these products."""

MAIN_IMAGE_LINE = "- Main Image: [Image provided below]"
IMAGE_STACK_LINE = "- Image Stack: [{count} images provided below]"
FEATURES_LINE = "- Features: {features}"

MAIN_IMAGE_LABEL = "\n{label} Main Image:"
IMAGE_STACK_LABEL = "\n{label} Image Stack:"

QUESTION_VARIATIONS = (
    "{question}",
    "{question} (Please provide fresh, unique responses)",
    "{question} (This is a new poll - generate different results)",
    "{question} (Vary your responses from previous polls)",
)


def build_system_prompt(demographic: str, context: str, poll_id: str, respondents: int) -> str:
    return POLL_SYSTEM_PROMPT.format(
        respondents=respondents,
        demographic=demographic,
        context=context,
        poll_id=poll_id,
        fresh=FRESH_POLL_INSTRUCTION,
        anonymity=ANONYMITY_INSTRUCTION,
        json_rules=JSON_OUTPUT_STRICT,
    )
