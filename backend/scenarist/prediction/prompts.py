"""Prompts for historical-pattern discovery and scenario generation.

Prompt builders are pure functions of their inputs so that, together with
temperature 0, the same event and evidence pool always yield the same request.
"""

from scenarist.prediction.models import (
    UNCONFIRMED_URL,
    ArticleEvidence,
    EventData,
    HistoricalPatternEvidence,
)

HISTORIAN_SYSTEM_PROMPT = (
    "You are an expert historian. Identify relevant historical patterns with "
    "reliable source URLs. Return ONLY a JSON object."
)

SCENARIO_SYSTEM_PROMPT = (
    "You are an expert intelligence analyst. Generate realistic, actionable "
    "scenarios with well-calibrated probabilities. Every evidence must reference "
    "real sources with URLs. Return ONLY a JSON object."
)


def build_historical_patterns_prompt(event: EventData) -> str:
    """Ask for 2-3 well-documented historical analogues of the event."""
    return f"""You are a historian and intelligence analyst. Identify 2-3 well-documented historical events or patterns that are similar or relevant to this event.

Event: {event.title}
Summary: {event.summary}
Entities: {', '.join(event.entities)}

For each historical pattern, provide:
- title: Name of the historical event/pattern
- date_range: When it occurred (e.g., "2008-2009", "1997-1998")
- url: A reliable source URL (Wikipedia, IMF, World Bank, government site, or reputable news archive)
- why_relevant: 1 sentence explaining relevance

Return JSON:
{{
  "patterns": [
    {{
      "title": "...",
      "date_range": "...",
      "url": "https://...",
      "why_relevant": "..."
    }}
  ]
}}"""


def format_evidence_list(
    evidence: list[ArticleEvidence | HistoricalPatternEvidence],
    snippet_chars: int = 200,
) -> str:
    """Render the evidence pool as a numbered reference list."""
    blocks: list[str] = []
    for idx, item in enumerate(evidence, 1):
        if isinstance(item, ArticleEvidence):
            lines = [
                f'{idx}. ARTICLE: "{item.title}" '
                f"({item.publisher or 'unknown'}, {item.date or 'unknown'})",
                f"   URL: {item.url}",
                f"   Relevance: {item.why_relevant}",
            ]
            if item.snippet:
                lines.append(f"   Snippet: {item.snippet[:snippet_chars]}...")
        else:
            lines = [
                f'{idx}. HISTORICAL PATTERN: "{item.title}" ({item.date_range or "unknown"})',
                f"   URL: {item.url}",
                f"   Relevance: {item.why_relevant}",
            ]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) if blocks else "(no evidence available)"


def format_claims(event: EventData) -> str:
    if not event.claims:
        return ""
    lines = [
        f"{idx}. [{claim.type}] {claim.text} (certainty: {claim.certainty * 100:.0f}%)"
        for idx, claim in enumerate(event.claims, 1)
    ]
    return "\n\nClaims extracted from event:\n" + "\n".join(lines)


def build_scenario_prompt(
    event: EventData,
    evidence: list[ArticleEvidence | HistoricalPatternEvidence],
    num_scenarios: int,
    snippet_chars: int = 200,
    counter_evidence_top_n: int = 3,
) -> str:
    """Build the strict scenario generation prompt."""
    context_lines = [
        f"Title: {event.title}",
        f"Summary: {event.summary}",
        f"Entities: {', '.join(event.entities)}",
    ]
    if event.countries:
        context_lines.append(f"Countries: {', '.join(event.countries)}")
    if event.topics:
        context_lines.append(f"Topics: {', '.join(event.topics)}")

    event_block = "\n".join(context_lines)
    evidence_block = format_evidence_list(evidence, snippet_chars)
    claims_block = format_claims(event)

    return f"""You are an expert intelligence analyst specializing in probabilistic scenario analysis.

EVENT:
{event_block}

EVIDENCE (ALL SOURCES MUST BE FROM THIS LIST):
{evidence_block}{claims_block}

Generate exactly {num_scenarios} plausible scenario outlooks. Each outlook must:

1. Have a clear title (max 10 words)
2. Have a probability (0-1) - ALL probabilities must sum to approximately 1.0
3. Reference SPECIFIC evidence from the list above (use evidence numbers like "Evidence #3")
4. Include 2-6 supporting_evidence items (ALL must have URLs from the evidence list)
5. Include counter_evidence for the top {counter_evidence_top_n} scenarios by probability (evidence that contradicts)
6. Include 2-5 watch_indicators (what to monitor)
7. Have a time_horizon: "1-2 weeks" | "1-3 months" | "6-12 months" | "1-2 years" | "2+ years"
8. Have a mechanism (2-4 sentences explaining causal chain)
9. Have confidence: "high" | "medium" | "low"

CRITICAL RULES:
- Every supporting_evidence MUST reference an evidence item from the list (use its exact URL)
- If evidence is missing, use the URL "{UNCONFIRMED_URL}"
- Probabilities must sum to 1.0 (you can adjust slightly, we'll normalize)
- Be specific, not vague
- Scenarios should be mutually exclusive or at least distinct

Return JSON:
{{
  "assumptions": ["assumption 1", "assumption 2"],
  "outlooks": [
    {{
      "id": "O1",
      "title": "...",
      "probability": 0.35,
      "time_horizon": "1-3 months",
      "mechanism": "...",
      "supporting_evidence": [
        {{
          "type": "article",
          "title": "...",
          "url": "...",
          "why_relevant": "..."
        }}
      ],
      "counter_evidence": [
        {{
          "type": "historical_pattern",
          "title": "...",
          "url": "...",
          "why_relevant": "..."
        }}
      ],
      "watch_indicators": ["indicator 1", "indicator 2"],
      "confidence": "high"
    }}
  ]
}}"""
