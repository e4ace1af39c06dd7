"""
Unit Tests: Evidence Extractor

Test cases:
- Snippet derivation (word then character ceiling)
- Tier-bounded extraction slice, metadata for the rest
- Fetch failures and timeouts fall back to metadata evidence
- Unavailable retrieval never shrinks the evidence list
"""

import asyncio

from scenarist.config import ExtractorConfig, Settings
from scenarist.prediction.extractor import (
    GROUNDED_REASON,
    SOURCE_REASON,
    SUPPORTING_REASON,
    EvidenceExtractor,
    make_snippet,
)
from scenarist.prediction.models import CandidateArticle

from fakes import FakeFetcher

SETTINGS = Settings(_env_file=None)


def _articles(count: int) -> list[CandidateArticle]:
    return [
        CandidateArticle(url=f"https://news.example.com/{i}", title=f"Article {i}", date="2025-02-28")
        for i in range(count)
    ]


def test_make_snippet_limits():
    words = " ".join(f"w{i}" for i in range(400))

    assert len(make_snippet(words).split()) <= 250
    assert len(make_snippet(words)) <= 500
    assert make_snippet("alpha   beta\n\ngamma", max_words=2) == "alpha beta"


def test_fetches_tier_slice_only():
    articles = _articles(6)
    fetcher = FakeFetcher(contents={a.url: f"Full text of {a.title}" for a in articles})
    extractor = EvidenceExtractor(fetcher, SETTINGS.extractor, SETTINGS.costs)

    result = asyncio.run(extractor.extract(articles, SETTINGS.tier_profile("standard")))

    assert fetcher.fetched == [a.url for a in articles[:3]]
    assert len(result.evidence) == 6
    assert [e.why_relevant for e in result.evidence] == [GROUNDED_REASON] * 3 + [
        SUPPORTING_REASON
    ] * 3
    assert result.evidence[0].snippet == "Full text of Article 0"
    assert result.evidence[0].publisher == "news.example.com"
    assert all(e.snippet is None for e in result.evidence[3:])
    assert result.api_calls == 3


def test_total_evidence_capped_at_ten():
    extractor = EvidenceExtractor(FakeFetcher(), SETTINGS.extractor, SETTINGS.costs)

    result = asyncio.run(extractor.extract(_articles(15), SETTINGS.tier_profile("fast")))

    assert len(result.evidence) == 10


def test_fetch_failure_falls_back_to_metadata():
    articles = _articles(3)
    fetcher = FakeFetcher(
        contents={articles[0].url: "Body text"},
        fail_urls=(articles[1].url,),
    )
    extractor = EvidenceExtractor(fetcher, SETTINGS.extractor, SETTINGS.costs)

    result = asyncio.run(extractor.extract(articles, SETTINGS.tier_profile("standard")))

    assert [e.url for e in result.evidence] == [a.url for a in articles]
    assert result.evidence[0].snippet == "Body text"
    # Failure and empty content both degrade to source metadata
    assert result.evidence[1].snippet is None
    assert result.evidence[1].why_relevant == SOURCE_REASON
    assert result.evidence[2].why_relevant == SOURCE_REASON
    # Every attempt is counted, successful or not
    assert result.api_calls == 3


def test_fetch_timeout_falls_back_to_metadata():
    config = ExtractorConfig(fetch_timeout_seconds=0.01)
    extractor = EvidenceExtractor(
        FakeFetcher(contents={"https://news.example.com/0": "late"}, delay=0.5),
        config,
        SETTINGS.costs,
    )

    result = asyncio.run(extractor.extract(_articles(1), SETTINGS.tier_profile("fast")))

    assert len(result.evidence) == 1
    assert result.evidence[0].snippet is None
    assert result.api_calls == 1


def test_unavailable_retrieval_keeps_all_articles():
    articles = _articles(4)

    for fetcher in (None, FakeFetcher(available=False)):
        extractor = EvidenceExtractor(fetcher, SETTINGS.extractor, SETTINGS.costs)
        result = asyncio.run(extractor.extract(articles, SETTINGS.tier_profile("deep")))

        assert len(result.evidence) == 4
        assert all(e.why_relevant == SOURCE_REASON for e in result.evidence)
        assert result.api_calls == 0
        assert result.estimated_cost == 0.0
