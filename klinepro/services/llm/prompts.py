"""
LLM Prompt Templates

Structured prompts for the trade opinion layer.

CRITICAL RULES (enforced in all prompts):
- LLM does NO math - all numbers come from indicator data
- Probabilities, never certainty
- Respond with a single JSON object
"""

import json
from typing import Any, Optional

from klinepro.schemas.indicators import IndicatorReport, IndicatorSnapshot

# Floats in prompts are rounded here and nowhere else
PROMPT_DECIMALS = 4

# =============================================================================
# TRADE OPINION PROMPTS
# =============================================================================

OPINION_SYSTEM_PROMPT = """You are a technical analyst for crypto spot markets.

YOUR ROLE:
- Read pre-computed technical indicators for a window of candlesticks
- Estimate the probability that price moves up or down next
- Recommend BUY, SELL or HOLD

CRITICAL RULES:
1. NEVER do math - all indicator values are provided. Do not recalculate them.
2. probability_up and probability_down are numbers between 0 and 1.
3. If the indicators conflict or data is insufficient, answer HOLD.
4. Never claim certainty.

OUTPUT FORMAT:
Respond with ONE JSON object and nothing else:
{
  "probability_up": <0..1>,
  "probability_down": <0..1>,
  "action": "BUY" | "SELL" | "HOLD",
  "entry_price": <number or null>,
  "reason": "<one or two sentences>"
}"""

OPINION_USER_PROMPT_TEMPLATE = """Analyze the following indicator data ({bar_count} bars).

LATEST VALUES:
{snapshot}

FULL INDICATOR SERIES (each series starts at bar index "offset"):
{report}

Return your opinion as JSON."""


def round_floats(value: Any, decimals: int = PROMPT_DECIMALS) -> Any:
    """Recursively round floats inside dicts and lists."""
    if isinstance(value, float):
        return round(value, decimals)
    if isinstance(value, dict):
        return {k: round_floats(v, decimals) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [round_floats(v, decimals) for v in value]
    return value


def format_opinion_prompt(
    report: IndicatorReport,
    snapshot: Optional[IndicatorSnapshot] = None,
) -> str:
    """Format the user prompt for one indicator report."""
    report_dict = round_floats(report.model_dump(mode="json", exclude={"config"}))
    snapshot_dict = (
        round_floats(snapshot.model_dump(mode="json")) if snapshot is not None else {}
    )

    return OPINION_USER_PROMPT_TEMPLATE.format(
        bar_count=report.bar_count,
        snapshot=json.dumps(snapshot_dict, ensure_ascii=False),
        report=json.dumps(report_dict, ensure_ascii=False),
    )
