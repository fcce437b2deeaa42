"""In-memory data types for discovery sessions and batch ingestion."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from videomind.utils.exceptions import ErrorKind


@dataclass(frozen=True)
class DiscoveredLink:
    """A candidate content URL with a human-readable title."""

    url: str
    title: str


class DiscoveryPhase(str, Enum):
    """Discovery cascade phase that produced a link set."""

    SEARCH = "search"
    CRAWL = "crawl"
    PREDICTION = "prediction"


@dataclass
class DiscoveryResult:
    """Outcome of a discovery cascade run.

    ``error`` is only set when the cascade ended with zero links; individual
    phase failures are recorded in ``phase_errors`` either way.
    """

    links: list[DiscoveredLink] = field(default_factory=list)
    phases_run: list[DiscoveryPhase] = field(default_factory=list)
    phase_errors: dict[DiscoveryPhase, str] = field(default_factory=dict)
    error: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        """Whether at least one link was discovered."""
        return bool(self.links)


@dataclass
class DiscoverySession:
    """Candidate links of one discovery run plus the user's selection."""

    links: list[DiscoveredLink] = field(default_factory=list)
    selected: set[str] = field(default_factory=set)

    @classmethod
    def start(cls, links: Iterable[DiscoveredLink]) -> "DiscoverySession":
        """Create a session with every discovered link selected."""
        links = list(links)
        return cls(links=links, selected={link.url for link in links})

    def toggle(self, url: str) -> bool:
        """Flip selection of a URL; returns whether it is now selected."""
        if url in self.selected:
            self.selected.discard(url)
            return False
        if any(link.url == url for link in self.links):
            self.selected.add(url)
            return True
        return False

    def select_only(self, urls: Iterable[str]) -> None:
        """Replace the selection with the given URLs, ignoring undiscovered ones."""
        known = {link.url for link in self.links}
        self.selected = {url for url in urls if url in known}

    def selected_links(self) -> list[DiscoveredLink]:
        """Selected links in discovery order."""
        return [link for link in self.links if link.url in self.selected]

    def selected_urls(self) -> list[str]:
        """URLs of the selected links in discovery order."""
        return [link.url for link in self.selected_links()]

    def clear(self) -> None:
        """Drop every link and selection, e.g. after a batch was ingested."""
        self.links = []
        self.selected = set()

    @property
    def is_empty(self) -> bool:
        return not self.links


@dataclass(frozen=True)
class IngestOutcome:
    """Per-URL result of a batch run."""

    url: str
    ok: bool
    error: ErrorKind | None = None
    item_id: str | None = None


class BatchStatus(str, Enum):
    """Lifecycle and terminal classification of a batch run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"
    ALL_FAILED = "all_failed"


@dataclass
class BatchSummary:
    """Counters and outcomes accumulated over one batch run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    outcomes: list[IngestOutcome] = field(default_factory=list)

    def record(self, outcome: IngestOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.ok:
            self.succeeded += 1
        else:
            self.failed += 1

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed

    @property
    def status(self) -> BatchStatus:
        """Terminal classification once every URL has been processed."""
        if self.total > 0 and self.succeeded == 0:
            return BatchStatus.ALL_FAILED
        if self.failed > 0:
            return BatchStatus.COMPLETED_WITH_FAILURES
        return BatchStatus.COMPLETED

    @property
    def failures(self) -> list[IngestOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]
