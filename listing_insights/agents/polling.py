"""
Simulated consumer poll.

Asks the vision model to simulate a panel of respondents choosing between
competing products, then maps the returned percentage distribution back to
the products.

Bias control:
- products are shown in a random order on every call
- products are labelled P1..Pn in presentation order, never by name
- image-stack images are shuffled within each product

The model echoes the labels in its answer, so mapping back is a label lookup.
Exact name, fuzzy name and positional matching remain as logged fallbacks.
"""
import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..constants import (
    LLM_TEMP_POLL_SIMULATION,
    MAX_STACK_IMAGES_PER_PRODUCT,
    POLL_LABEL_PREFIX,
    POLL_MAX_TOKENS,
    POLL_MIN_SAMPLE_RESPONSES,
    POLL_PERCENTAGE_TOLERANCE,
    POLL_RESPONDENT_COUNT,
    PollType,
)
from ..models import PollRequest, PollResult, Product, Ranking
from ..prompts.polling import (
    FEATURES_LINE,
    IMAGE_STACK_LABEL,
    IMAGE_STACK_LINE,
    MAIN_IMAGE_LABEL,
    MAIN_IMAGE_LINE,
    POLL_USER_PROMPT,
    QUESTION_VARIATIONS,
    build_system_prompt,
)
from ..services.llm import ContentBlock, LLMClient, extract_json_object
from ..utils.api_helpers import DEFAULT_POLL_RETRY_POLICY, OnRetry, RetryPolicy, SleepFunc
from ..utils.errors import ResponseParsingError
from ..utils.images import decode_image_input

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresentedProduct:
    """A product as shown to the model: its label and original position."""
    label: str
    product: Product
    original_index: int


def shuffle_products(products: Sequence[Product], rng: random.Random) -> List[PresentedProduct]:
    """Randomise presentation order and assign labels P1..Pn in that order."""
    order = list(range(len(products)))
    rng.shuffle(order)
    presented = [
        PresentedProduct(
            label=f"{POLL_LABEL_PREFIX}{position}",
            product=products[index],
            original_index=index,
        )
        for position, index in enumerate(order, start=1)
    ]
    logger.debug(
        "Poll presentation order: "
        + ", ".join(f"{p.label}=#{p.original_index + 1}" for p in presented)
    )
    return presented


def build_user_prompt(
    presented: Sequence[PresentedProduct],
    question: str,
    poll_type: PollType,
    rng: random.Random,
) -> str:
    lines = []
    for item in presented:
        lines.append(f"{item.label}:")
        if poll_type == PollType.MAIN_IMAGE:
            lines.append(MAIN_IMAGE_LINE)
        elif poll_type == PollType.IMAGE_STACK:
            count = min(len(item.product.additional_images), MAX_STACK_IMAGES_PER_PRODUCT)
            lines.append(IMAGE_STACK_LINE.format(count=count))
        else:
            lines.append(FEATURES_LINE.format(features=item.product.features or "Not specified"))
        lines.append("")

    return POLL_USER_PROMPT.format(
        product_list="\n".join(lines),
        question=rng.choice(QUESTION_VARIATIONS).format(question=question),
        respondents=POLL_RESPONDENT_COUNT,
    )


def build_content_blocks(
    prompt: str,
    presented: Sequence[PresentedProduct],
    poll_type: PollType,
    rng: random.Random,
) -> List[ContentBlock]:
    """
    Assemble the prompt text followed by each product's labelled images.

    Images that fail to decode are skipped with a warning.
    """
    blocks: List[ContentBlock] = [prompt]
    if not poll_type.is_image_poll:
        return blocks

    for item in presented:
        if poll_type == PollType.MAIN_IMAGE:
            attachment = decode_image_input(item.product.main_image)
            if attachment is None:
                logger.warning(f"{item.label}: main image missing or invalid, skipped")
                continue
            blocks.append(MAIN_IMAGE_LABEL.format(label=item.label))
            blocks.append(attachment)
        else:
            images = list(item.product.additional_images)
            if not images:
                logger.warning(f"{item.label}: no additional images for image stack")
                continue
            rng.shuffle(images)
            blocks.append(IMAGE_STACK_LABEL.format(label=item.label))
            valid = 0
            for image in images[:MAX_STACK_IMAGES_PER_PRODUCT]:
                attachment = decode_image_input(image)
                if attachment is None:
                    continue
                blocks.append(attachment)
                valid += 1
            if valid == 0:
                logger.warning(f"{item.label}: none of the stack images could be decoded")
    return blocks


def parse_poll_response(text: str) -> Dict[str, Any]:
    """
    Extract and shape-check the poll JSON from a model reply.

    Raises:
        ResponseParsingError: missing/empty rankings or non-numeric percentages
    """
    parsed = extract_json_object(text)
    rankings = parsed.get("rankings")
    if not isinstance(rankings, list) or not rankings:
        raise ResponseParsingError("Poll response JSON has no rankings")

    cleaned = []
    for entry in rankings:
        if not isinstance(entry, dict):
            raise ResponseParsingError(f"Poll ranking entry is not an object: {entry!r}")
        try:
            percentage = float(entry.get("percentage"))
        except (TypeError, ValueError):
            raise ResponseParsingError(f"Poll ranking entry has no numeric percentage: {entry!r}")
        cleaned.append({
            "id": str(entry.get("id") or entry.get("label") or "").strip(),
            "product": str(entry.get("product") or "").strip(),
            "percentage": percentage,
        })

    samples = parsed.get("sample_responses") or []
    if not isinstance(samples, list):
        samples = []
    return {
        "rankings": cleaned,
        "sample_responses": [str(s) for s in samples if str(s).strip()],
    }


def convert_to_rankings(
    raw_rankings: List[Dict[str, Any]],
    presented: Sequence[PresentedProduct],
) -> Tuple[List[Ranking], int]:
    """
    Order the distribution by share and attach each entry to a product.

    Matching order: echoed label, exact name, substring name match, then
    position. A label echoed twice is honoured once; later entries are
    rematched, and positional matching prefers products no label claims.
    An entry left over when every product is taken keeps an empty
    ``product_id``. Every fallback is logged and counted.

    Returns:
        (rankings with rank 1..n, number of entries mapped by fallback)
    """
    by_label = {item.label.upper(): item.product for item in presented}
    originals = [item.product for item in sorted(presented, key=lambda p: p.original_index)]
    assigned = set()
    fallbacks = 0
    rankings = []
    claimed = {
        by_label[label].id
        for label in (
            (entry.get(field) or "").upper() for entry in raw_rankings for field in ("id", "product")
        )
        if label in by_label
    }

    ordered = sorted(raw_rankings, key=lambda r: r["percentage"], reverse=True)
    for index, entry in enumerate(ordered):
        key = (entry.get("id") or "").upper()
        name = entry.get("product") or ""
        fallback = False
        if name.upper() in by_label:
            if key not in by_label:
                key = name.upper()
            name = ""

        product: Optional[Product] = by_label.get(key)
        if product is not None and product.id in assigned:
            fallback = True
            logger.warning(f"Label {key} already attributed to '{product.name}', rematching entry")
            product = None

        if product is None and name:
            product = next((p for p in originals if p.name == name and p.id not in assigned), None)
            if product is None:
                lowered = name.lower()
                product = next(
                    (
                        p for p in originals
                        if p.id not in assigned
                        and (lowered in p.name.lower() or p.name.lower() in lowered)
                    ),
                    None,
                )
                if product is not None:
                    fallback = True
                    logger.warning(f"Ranking '{name}' matched by partial name to '{product.name}'")

        if product is None:
            fallback = True
            logger.warning(f"Could not find product for ranking entry {entry!r}")
            candidates = [p for p in originals if p.id not in assigned]
            unclaimed = [p for p in candidates if p.id not in claimed]
            if index < len(originals) and originals[index].id in {p.id for p in unclaimed}:
                product = originals[index]
            else:
                product = next(iter(unclaimed or candidates), None)
            if product is not None:
                logger.warning(f"Using positional fallback product at position {index}: {product.name}")
            else:
                logger.warning(f"Ranking entry {entry!r} left unattributed: every product is taken")

        if product is not None:
            assigned.add(product.id)
        fallbacks += fallback

        rankings.append(Ranking(
            product_id=product.id if product else "",
            rank=index + 1,
            percentage=entry["percentage"],
        ))

    return rankings, fallbacks


def validate_rankings(rankings: Sequence[Ranking]) -> bool:
    """
    True iff every share is positive, the shares sum to 100 (within 0.1)
    and each ranking is attributed to a distinct product.
    """
    if not rankings:
        return False
    ids = [r.product_id for r in rankings]
    if not all(ids) or len(set(ids)) != len(ids):
        return False
    total = sum(r.percentage for r in rankings)
    return (
        abs(total - 100) <= POLL_PERCENTAGE_TOLERANCE + 1e-9
        and all(r.percentage > 0 for r in rankings)
    )


def validate_poll_result(result: PollResult) -> bool:
    """Rankings are valid and at least one sample response came back."""
    return validate_rankings(result.rankings) and len(result.sample_responses) > 0


async def run_poll_simulation(
    request: PollRequest,
    llm: LLMClient,
    *,
    policy: RetryPolicy = DEFAULT_POLL_RETRY_POLICY,
    on_retry: Optional[OnRetry] = None,
    cancel: Optional[asyncio.Event] = None,
    rng: Optional[random.Random] = None,
    sleep: Optional[SleepFunc] = None,
) -> PollResult:
    """
    Run one simulated poll.

    Issues exactly one LLM completion (retried on transient failures) and
    returns the ranked distribution mapped back to the request's products.

    Args:
        request: Products, demographic, question and poll type
        llm: LLM adapter
        policy: Retry policy (long-running defaults)
        on_retry: Retry observer or callback for progress reporting
        cancel: Cancellation event
        rng: Random source for shuffling (seeded in tests)
        sleep: Sleep override for the retry executor (tests)

    Returns:
        PollResult with rankings sorted by share, highest first

    Raises:
        InvalidInputError: image poll without a single decodable image
        CreditsExhaustedError: the LLM account has no credits
    """
    rng = rng or random.Random()
    poll_id = uuid.uuid4().hex[:12]
    poll_type = request.poll_type

    logger.info(
        f"Poll {poll_id} start: type={poll_type.value}, products={len(request.products)}"
    )

    presented = shuffle_products(request.products, rng)
    system_prompt = build_system_prompt(
        request.demographic, poll_type.context, poll_id, POLL_RESPONDENT_COUNT
    )
    user_prompt = build_user_prompt(presented, request.question, poll_type, rng)
    blocks = build_content_blocks(f"{system_prompt}\n\n{user_prompt}", presented, poll_type, rng)

    try:
        parsed = await llm.complete(
            blocks,
            policy=policy,
            temperature=LLM_TEMP_POLL_SIMULATION,
            max_tokens=POLL_MAX_TOKENS,
            parse=parse_poll_response,
            require_images=poll_type.is_image_poll,
            on_retry=on_retry,
            cancel=cancel,
            sleep=sleep,
        )
    except Exception as e:
        logger.error(f"Poll {poll_id} failed: {e}")
        raise

    rankings, fallbacks = convert_to_rankings(parsed["rankings"], presented)

    sample_responses = parsed["sample_responses"]
    if not sample_responses:
        logger.warning(f"Poll {poll_id}: no sample responses found in poll result")
    elif len(sample_responses) < POLL_MIN_SAMPLE_RESPONSES:
        logger.warning(
            f"Poll {poll_id}: only {len(sample_responses)} responses generated, "
            f"expected {POLL_MIN_SAMPLE_RESPONSES}"
        )

    logger.info(f"Poll {poll_id} complete: {len(rankings)} rankings, {fallbacks} mapping fallbacks")

    return PollResult(
        type=poll_type,
        demographic=request.demographic,
        question=request.question,
        rankings=rankings,
        sample_responses=sample_responses,
        mapping_warnings=fallbacks,
    )
