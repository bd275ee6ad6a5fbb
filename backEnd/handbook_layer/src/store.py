"""
Handbook store with snapshot-first loading and in-process caching.

The store is the single owner of parsed handbooks. A handbook is
loaded on first request and then served from memory for the life
of the process:

1. Memory cache hit -> return the cached entry
2. Unknown document id -> StoreError(UNKNOWN_DOCUMENT)
3. Snapshot on disk -> load it (a corrupt snapshot is ignored)
4. Otherwise parse the PDF, write a snapshot, cache the result

Loading is serialized per document id with an asyncio lock, so
concurrent first requests share a single PDF parse. Different
handbooks load independently. A failed load caches nothing and
the next request tries again.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from .descriptors import DescriptorRegistry
from .errors import IngestError, SnapshotError, StoreError, StoreErrorKind
from .parse_pdf import ingest_pdf
from .schemas.descriptor import DocumentDescriptor
from .schemas.page import Corpus
from .snapshot import load_snapshot, save_snapshot, snapshot_path

logger = logging.getLogger(__name__)

Ingestor = Callable[[Path, str], Corpus]


@dataclass(frozen=True)
class HandbookEntry:
    """A cached handbook: its corpus and flattened page-tagged text."""

    document_id: str
    corpus: Corpus
    text: str
    source: str  # "snapshot" or "ingest"


class HandbookStore:
    """
    Process-wide handbook cache.

    Construct one per application and pass it to whatever needs
    handbook text; there is no module-level instance.
    """

    def __init__(
        self,
        registry: DescriptorRegistry,
        snapshot_dir: Path,
        ingestor: Ingestor = ingest_pdf,
        persist_snapshots: bool = True,
    ):
        self.registry = registry
        self.snapshot_dir = Path(snapshot_dir)
        self.persist_snapshots = persist_snapshots
        self._ingestor = ingestor

        self._cache: dict[str, HandbookEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

        # Number of PDF parses started by this store
        self.ingest_count = 0

    def is_cached(self, document_id: str) -> bool:
        return document_id in self._cache

    @property
    def cached_ids(self) -> list[str]:
        return list(self._cache)

    def snapshot_path_for(self, document_id: str) -> Path:
        return snapshot_path(self.snapshot_dir, document_id)

    async def get_or_load(self, document_id: str) -> Corpus:
        """Return the corpus for a handbook, loading it on first use."""
        entry = await self.get_entry(document_id)
        return entry.corpus

    async def get_entry(self, document_id: str, refresh: bool = False) -> HandbookEntry:
        """
        Return the cached entry for a handbook, loading it on first use.

        With refresh=True the PDF is re-parsed even if the handbook is cached
        or has a snapshot. The old snapshot is only replaced after a
        successful parse.

        Raises:
            StoreError: UNKNOWN_DOCUMENT for ids missing from the registry,
                UNAVAILABLE when neither snapshot nor PDF can be read
        """
        entry = None if refresh else self._cache.get(document_id)
        if entry is not None:
            logger.debug(f"Serving {document_id} handbook from memory")
            return entry

        descriptor = self.registry.get(document_id)
        if descriptor is None:
            raise StoreError(
                StoreErrorKind.UNKNOWN_DOCUMENT,
                f"No handbook configured for '{document_id}'",
                document_id=document_id,
            )

        lock = self._locks.setdefault(document_id, asyncio.Lock())
        async with lock:
            # Another request may have finished loading while we waited
            entry = None if refresh else self._cache.get(document_id)
            if entry is not None:
                return entry

            entry = await self._load(descriptor, use_snapshot=not refresh)
            self._cache[document_id] = entry
            logger.info(
                f"Cached {descriptor.name} handbook "
                f"({entry.corpus.page_count} pages, {len(entry.text)} chars, from {entry.source})"
            )
            return entry

    async def preload(
        self,
        document_ids: Optional[Iterable[str]] = None,
        refresh: bool = False,
    ) -> dict[str, Union[HandbookEntry, StoreError]]:
        """
        Load several handbooks concurrently.

        Args:
            document_ids: Ids to load (every configured handbook if None)
            refresh: Re-parse PDFs instead of using cache or snapshots

        Returns:
            Mapping of id -> entry, or the StoreError that id failed with
        """
        ids = list(document_ids) if document_ids is not None else list(self.registry)

        async def load_one(document_id: str) -> Union[HandbookEntry, StoreError]:
            try:
                return await self.get_entry(document_id, refresh=refresh)
            except StoreError as e:
                logger.warning(f"Could not load {document_id} handbook: {e}")
                return e

        results = await asyncio.gather(*(load_one(doc_id) for doc_id in ids))
        return dict(zip(ids, results))

    async def _load(self, descriptor: DocumentDescriptor, use_snapshot: bool = True) -> HandbookEntry:
        document_id = descriptor.document_id
        path = self.snapshot_path_for(document_id)

        if use_snapshot and path.is_file():
            try:
                corpus, text = await asyncio.to_thread(load_snapshot, path, document_id)
            except (FileNotFoundError, SnapshotError) as e:
                logger.warning(f"Ignoring snapshot {path.name}, re-parsing PDF: {e}")
            else:
                logger.info(f"Loaded {descriptor.name} handbook from snapshot {path.name}")
                return HandbookEntry(document_id, corpus, text, source="snapshot")

        self.ingest_count += 1
        try:
            corpus = await asyncio.to_thread(self._ingestor, descriptor.source_path, document_id)
        except IngestError as e:
            logger.error(f"Failed to load {descriptor.name} handbook: {e}")
            raise StoreError(
                StoreErrorKind.UNAVAILABLE,
                f"Handbook '{document_id}' is unavailable ({e.kind.value})",
                document_id=document_id,
            ) from e

        text = corpus.to_text()

        if self.persist_snapshots:
            try:
                await asyncio.to_thread(save_snapshot, corpus, path)
                logger.info(f"Saved {descriptor.name} snapshot to {path}")
            except OSError as e:
                logger.warning(f"Failed to save snapshot {path}: {e}")

        return HandbookEntry(document_id, corpus, text, source="ingest")
