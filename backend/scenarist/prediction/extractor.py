"""Evidence Extractor: turn candidate articles into grounded evidence items."""

import asyncio
import logging

from scenarist.config import CostConfig, ExtractorConfig, TierProfile
from scenarist.prediction.models import ArticleEvidence, CandidateArticle, ExtractedEvidence
from scenarist.prediction.protocols import DocumentFetcher
from scenarist.services.exa import hostname

logger = logging.getLogger(__name__)

GROUNDED_REASON = "Direct source article with extracted content"
SOURCE_REASON = "Source article related to this event"
SUPPORTING_REASON = "Supporting source article"


def make_snippet(content: str, max_words: int = 250, max_chars: int = 500) -> str:
    """First `max_words` words of the content, capped at `max_chars` characters."""
    return " ".join(content.split()[:max_words])[:max_chars]


def metadata_evidence(article: CandidateArticle, why_relevant: str) -> ArticleEvidence:
    return ArticleEvidence(
        title=article.title,
        publisher=article.publisher,
        date=article.date,
        url=article.url,
        why_relevant=why_relevant,
    )


class EvidenceExtractor:
    """Fetches full content for a tier-bounded slice of articles.

    Retrieval failures degrade to metadata-only evidence; the number of
    evidence items never shrinks because of a fetch outage.
    """

    def __init__(
        self,
        fetcher: DocumentFetcher | None,
        config: ExtractorConfig | None = None,
        costs: CostConfig | None = None,
    ):
        self.fetcher = fetcher
        self.config = config or ExtractorConfig()
        self.costs = costs or CostConfig()

    async def extract(
        self, articles: list[CandidateArticle], tier: TierProfile
    ) -> ExtractedEvidence:
        result = ExtractedEvidence()
        bounded = articles[: self.config.max_evidence]

        if self.fetcher is None or not self.fetcher.available:
            logger.info("Document retrieval unavailable - using article metadata only")
            result.evidence = [metadata_evidence(a, SOURCE_REASON) for a in bounded]
            return result

        depth = min(tier.extraction_depth, len(bounded))
        for article in bounded[:depth]:
            result.evidence.append(await self._extract_one(article, result))

        for article in bounded[depth:]:
            result.evidence.append(metadata_evidence(article, SUPPORTING_REASON))

        grounded = sum(1 for e in result.evidence if e.snippet)
        logger.info(f"Extracted {grounded}/{len(result.evidence)} grounded evidence items")
        return result

    async def _extract_one(
        self, article: CandidateArticle, result: ExtractedEvidence
    ) -> ArticleEvidence:
        try:
            content = await asyncio.wait_for(
                self.fetcher.fetch(article.url),
                timeout=self.config.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Content retrieval timed out after {self.config.fetch_timeout_seconds}s: {article.url}"
            )
            content = None
        except Exception as e:
            logger.error(f"Error retrieving {article.url}: {e}")
            content = None
        finally:
            result.api_calls += 1
            result.estimated_cost += self.costs.fetch_call

        if not content or not content.strip():
            return metadata_evidence(article, SOURCE_REASON)

        return ArticleEvidence(
            title=article.title,
            publisher=article.publisher or hostname(article.url),
            date=article.date,
            url=article.url,
            snippet=make_snippet(
                content, self.config.snippet_max_words, self.config.snippet_max_chars
            ),
            why_relevant=GROUNDED_REASON,
        )
