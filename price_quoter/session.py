"""
Search Session Management
Owns the clerk's current search (term, region, phase) and sequences calls to
the price verifier. Typed searches, catalog quick-picks and barcode scans all
go through submit().
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from price_quoter import config
from price_quoter.models import Region, ReportMeta, SearchResult
from price_quoter.reports.quotation_pdf import RenderedReport, render_quotation
from price_quoter.utils.logger import get_logger
from price_quoter.verification import ErrorKind, PriceVerifier, VerificationError


SEARCH_ERROR_MESSAGE = "Ocurrió un error al consultar los precios. Intenta nuevamente."


class SearchPhase(Enum):
    """Search lifecycle phase"""
    IDLE = 'idle'
    LOADING = 'loading'
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True)
class SearchSessionState:
    """
    Snapshot of the session. `result` is set only in SUCCESS and
    `error_message` only in ERROR; any other combination is rejected.
    """
    region: Region
    query: str = ""
    phase: SearchPhase = SearchPhase.IDLE
    result: Optional[SearchResult] = None
    error_message: Optional[str] = None
    scanner_open: bool = False

    def __post_init__(self):
        if (self.result is not None) != (self.phase is SearchPhase.SUCCESS):
            raise ValueError(f"result must be set exactly in SUCCESS (phase={self.phase.value})")
        if (self.error_message is not None) != (self.phase is SearchPhase.ERROR):
            raise ValueError(f"error_message must be set exactly in ERROR (phase={self.phase.value})")

    @property
    def is_loading(self) -> bool:
        return self.phase is SearchPhase.LOADING

    @property
    def can_export(self) -> bool:
        return self.phase is SearchPhase.SUCCESS

    @property
    def has_citations(self) -> bool:
        return self.result is not None and bool(self.result.grounding_urls)


Listener = Callable[[SearchSessionState], None]


class SearchSession:
    """Single-clerk search session driven from one asyncio event loop"""

    def __init__(self, verifier=None, region: Optional[Region] = None, logger=None):
        """
        Initialize an idle session

        Args:
            verifier: Object exposing verify(term, region) -> SearchResult.
                Defaults to a PriceVerifier on the configured Gemini model.
            region: Starting region (defaults to config.DEFAULT_REGION)
            logger: QuoterLogger (defaults to the global logger)
        """
        self.verifier = verifier or PriceVerifier()
        self.logger = logger or get_logger()
        self._state = SearchSessionState(
            region=region or Region.from_label(config.DEFAULT_REGION)
        )
        self._latest_sequence = 0
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SearchSessionState:
        return self._state

    @property
    def latest_sequence(self) -> int:
        return self._latest_sequence

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for every state change; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, **changes) -> SearchSessionState:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    # ── Input-side transitions ──────────────────────────────────

    def set_query(self, text: str) -> None:
        """Mirror the search box; does not search"""
        self._transition(query=text)

    def change_region(self, region: Region) -> None:
        """Switch region at any phase; the next submit uses it"""
        self._transition(region=region)

    def open_scanner(self) -> None:
        self._transition(scanner_open=True)

    def close_scanner(self) -> None:
        self._transition(scanner_open=False)

    # ── Search lifecycle ────────────────────────────────────────

    def begin(self, term: str) -> Optional[int]:
        """
        Enter LOADING for a new search

        Returns:
            Sequence number tagging this search, or None when the term is blank
            (state untouched).
        """
        if not (term or "").strip():
            return None

        self._latest_sequence += 1
        self._transition(
            query=term,
            phase=SearchPhase.LOADING,
            result=None,
            error_message=None,
        )
        self.logger.log_search_start(self._latest_sequence, term, self._state.region.label)
        return self._latest_sequence

    def apply_success(self, sequence: int, result: SearchResult) -> bool:
        """Enter SUCCESS if `sequence` is still the latest search; returns whether applied"""
        if sequence != self._latest_sequence:
            self.logger.log_search_superseded(sequence, self._latest_sequence)
            return False
        self._transition(phase=SearchPhase.SUCCESS, result=result, error_message=None)
        self.logger.log_search_complete(sequence, len(result.products), len(result.grounding_urls))
        return True

    def apply_failure(self, sequence: int, error: VerificationError) -> bool:
        """Enter ERROR if `sequence` is still the latest search; returns whether applied"""
        if sequence != self._latest_sequence:
            self.logger.log_search_superseded(sequence, self._latest_sequence)
            return False
        self._transition(phase=SearchPhase.ERROR, result=None, error_message=SEARCH_ERROR_MESSAGE)
        self.logger.log_search_failed(sequence, error.kind.value, str(error))
        return True

    async def submit(self, term: str, timeout: Optional[float] = None) -> Optional[int]:
        """
        Run a search for `term` in the current region

        Args:
            term: Raw search text; blank input is ignored
            timeout: Optional seconds to wait for the service; expiry counts
                as a transport failure

        Returns:
            Sequence number of the search, or None when nothing was submitted
        """
        sequence = self.begin(term)
        if sequence is None:
            return None

        region = self._state.region
        call = asyncio.to_thread(self.verifier.verify, term, region)
        try:
            if timeout is not None:
                result = await asyncio.wait_for(call, timeout)
            else:
                result = await call
        except asyncio.TimeoutError as e:
            self.apply_failure(sequence, VerificationError(
                ErrorKind.TRANSPORT_FAILURE, f"No reply within {timeout}s", cause=e
            ))
        except VerificationError as e:
            self.apply_failure(sequence, e)
        except Exception as e:
            self.apply_failure(sequence, VerificationError(
                ErrorKind.TRANSPORT_FAILURE, f"Verifier failed for '{term}'", cause=e
            ))
        else:
            self.apply_success(sequence, result)
        return sequence

    async def quick_pick(self, item: str, timeout: Optional[float] = None) -> Optional[int]:
        """Search a catalog entry"""
        self.set_query(item)
        return await self.submit(item, timeout=timeout)

    async def scan_complete(self, decoded_text: str, timeout: Optional[float] = None) -> Optional[int]:
        """Search a decoded barcode and close the scanner overlay"""
        self._transition(scanner_open=False, query=decoded_text)
        return await self.submit(decoded_text, timeout=timeout)

    # ── Export ──────────────────────────────────────────────────

    def export_report(self, generated_at: Optional[datetime] = None) -> RenderedReport:
        """Render the current result as a quotation PDF"""
        state = self._state
        if state.result is None:
            raise RuntimeError("No search result to export")

        meta = ReportMeta(
            region=state.region,
            query=state.query,
            generated_at=generated_at or datetime.now(),
        )
        report = render_quotation(state.result, meta)
        self.logger.log_report_export(report.filename, len(state.result.products), len(report.content))
        return report
