"""Fan-out/fan-in fetching across independent sources."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from .core.items import Item, Source, SourceKind
from .core.visibility import visible_sources
from .core.window import Window
from .errors import FetchFailure, NextupError
from .ports.item_provider import ItemProvider

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """What to do when one source's query fails."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass
class FetchBatch:
    """Per-source results of one aggregate fetch, in source order."""

    sources: list[Source] = field(default_factory=list)
    results: list[list[Item]] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def items(self) -> list[Item]:
        return [item for results in self.results for item in results]


class SourceFetcher:
    """
    Queries each source independently and collects the results.

    Queries run concurrently in worker threads. With FailurePolicy.ABORT any
    failed source fails the whole fetch; with FailurePolicy.SKIP failed sources
    are logged, recorded in the batch, and left out.
    """

    def __init__(self, provider: ItemProvider, policy: FailurePolicy = FailurePolicy.ABORT):
        self.provider = provider
        self.policy = policy

    async def list_sources(self, kind: SourceKind, hidden: frozenset[str] = frozenset()) -> list[Source]:
        """List the visible sources of a kind. ProviderUnavailable propagates."""
        sources = await asyncio.to_thread(self.provider.list_sources, kind)
        return visible_sources(sources, hidden)

    async def fetch(self, sources: list[Source], window: Window) -> FetchBatch:
        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self.provider.query, source, window) for source in sources),
            return_exceptions=True,
        )

        batch = FetchBatch()
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, NextupError):
                batch.failures[source.id] = outcome
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            batch.sources.append(source)
            batch.results.append(list(outcome))

        if batch.failures:
            failed = ", ".join(batch.failures)
            if self.policy == FailurePolicy.ABORT:
                raise FetchFailure(f"Failed to fetch sources: {failed}", batch.failures)
            for source_id, error in batch.failures.items():
                logger.warning(f"Skipping source {source_id}: {error}")

        return batch
