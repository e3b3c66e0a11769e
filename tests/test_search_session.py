"""
Search Session Tests
====================

Verifies:
- Blank terms never leave the current state.
- Every non-blank submit enters LOADING and clears the previous outcome.
- Success / failure transitions and the fixed user-facing error message.
- Last-submitted-wins when replies arrive out of order.
- Region changes, quick-pick and scan entry points.
All verifier calls are faked; no network access.
"""
import asyncio
import json
import os
import sys
import threading
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from price_quoter.models import Citation, ProductPriceLine, Region, SearchResult
from price_quoter.verification import ErrorKind, VerificationError


def _result(name, price=10.0):
    return SearchResult(
        products=(ProductPriceLine(product_name=name, estimated_price=price, currency="MXN"),),
        grounding_urls=(Citation("BEES", "https://bees.example"),),
    )


class GatedVerifier:
    """Each term blocks until release(term) is called, then returns its outcome."""

    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.gates = {term: threading.Event() for term in outcomes}
        self.calls = []

    def release(self, term):
        self.gates[term].set()

    def release_all(self):
        for gate in self.gates.values():
            gate.set()

    def verify(self, term, region):
        self.calls.append((term, region))
        self.gates[term].wait(timeout=5)
        outcome = self.outcomes[term]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class InstantVerifier:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def verify(self, term, region):
        self.calls.append((term, region))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _session(verifier, region=Region.SINALOA):
    from price_quoter.session import SearchSession
    return SearchSession(verifier=verifier, region=region, logger=MagicMock())


class TestSessionState(unittest.TestCase):
    def test_initial_state_is_idle(self):
        from price_quoter.session import SearchPhase

        session = _session(InstantVerifier(_result("x")))
        state = session.state
        self.assertEqual(state.phase, SearchPhase.IDLE)
        self.assertEqual(state.query, "")
        self.assertEqual(state.region, Region.SINALOA)
        self.assertIsNone(state.result)
        self.assertIsNone(state.error_message)
        self.assertFalse(state.can_export)

    def test_default_region_comes_from_config(self):
        from unittest.mock import patch
        from price_quoter.session import SearchSession

        with patch("price_quoter.config.DEFAULT_REGION", "Jalisco"):
            session = SearchSession(verifier=InstantVerifier(None), logger=MagicMock())
        self.assertEqual(session.state.region, Region.JALISCO)

    def test_inconsistent_state_cannot_be_built(self):
        from price_quoter.session import SearchPhase, SearchSessionState

        with self.assertRaises(ValueError):
            SearchSessionState(region=Region.SINALOA, phase=SearchPhase.SUCCESS)
        with self.assertRaises(ValueError):
            SearchSessionState(region=Region.SINALOA, phase=SearchPhase.ERROR,
                               result=_result("x"), error_message="boom")
        with self.assertRaises(ValueError):
            SearchSessionState(region=Region.SINALOA, phase=SearchPhase.LOADING,
                               error_message="boom")

    def test_blank_term_is_noop(self):
        session = _session(InstantVerifier(_result("x")))
        before = session.state
        for term in ("", "   ", "\t\n"):
            self.assertIsNone(session.begin(term))
        self.assertIs(session.state, before)
        self.assertEqual(session.latest_sequence, 0)

    def test_begin_clears_previous_outcome(self):
        from price_quoter.session import SearchPhase

        session = _session(InstantVerifier(None))
        seq = session.begin("Corona")
        session.apply_success(seq, _result("Corona"))
        self.assertEqual(session.state.phase, SearchPhase.SUCCESS)

        seq = session.begin("Victoria")
        self.assertEqual(session.state.phase, SearchPhase.LOADING)
        self.assertIsNone(session.state.result)
        self.assertEqual(session.state.query, "Victoria")

        session.apply_failure(seq, VerificationError(ErrorKind.TRANSPORT_FAILURE, "down"))
        self.assertEqual(session.state.phase, SearchPhase.ERROR)

        session.begin("Pacífico")
        self.assertEqual(session.state.phase, SearchPhase.LOADING)
        self.assertIsNone(session.state.error_message)

    def test_stale_sequence_is_discarded(self):
        from price_quoter.session import SearchPhase

        session = _session(InstantVerifier(None))
        first = session.begin("A")
        second = session.begin("B")
        self.assertGreater(second, first)

        self.assertFalse(session.apply_success(first, _result("A")))
        self.assertEqual(session.state.phase, SearchPhase.LOADING)
        self.assertTrue(session.apply_success(second, _result("B")))
        self.assertFalse(session.apply_failure(first, VerificationError(ErrorKind.TRANSPORT_FAILURE, "x")))
        self.assertEqual(session.state.result, _result("B"))

    def test_change_region_does_not_search(self):
        from price_quoter.session import SearchPhase

        verifier = InstantVerifier(_result("x"))
        session = _session(verifier)
        session.change_region(Region.NAYARIT)
        self.assertEqual(session.state.region, Region.NAYARIT)
        self.assertEqual(session.state.phase, SearchPhase.IDLE)
        self.assertEqual(verifier.calls, [])

    def test_listeners_see_each_transition(self):
        from price_quoter.session import SearchPhase

        session = _session(InstantVerifier(None))
        seen = []
        unsubscribe = session.subscribe(lambda state: seen.append(state.phase))

        seq = session.begin("Corona")
        session.apply_success(seq, _result("Corona"))
        unsubscribe()
        session.begin("Victoria")

        self.assertEqual(seen, [SearchPhase.LOADING, SearchPhase.SUCCESS])

    def test_export_without_result_raises(self):
        session = _session(InstantVerifier(None))
        with self.assertRaises(RuntimeError):
            session.export_report()


class TestSessionSubmit(unittest.IsolatedAsyncioTestCase):
    async def test_submit_success(self):
        from price_quoter.session import SearchPhase

        verifier = InstantVerifier(_result("Corona"))
        session = _session(verifier)
        seq = await session.submit("Corona Extra")

        self.assertEqual(seq, 1)
        self.assertEqual(session.state.phase, SearchPhase.SUCCESS)
        self.assertEqual(session.state.result, _result("Corona"))
        self.assertEqual(session.state.query, "Corona Extra")
        self.assertTrue(session.state.has_citations)
        self.assertEqual(verifier.calls, [("Corona Extra", Region.SINALOA)])

    async def test_submit_blank_never_calls_verifier(self):
        verifier = InstantVerifier(_result("x"))
        session = _session(verifier)
        self.assertIsNone(await session.submit("   "))
        self.assertEqual(verifier.calls, [])

    async def test_failure_shows_generic_message(self):
        from price_quoter.session import SEARCH_ERROR_MESSAGE, SearchPhase

        for kind in (ErrorKind.TRANSPORT_FAILURE, ErrorKind.MALFORMED_RESPONSE):
            session = _session(InstantVerifier(VerificationError(kind, "internal detail")))
            await session.submit("Corona")
            self.assertEqual(session.state.phase, SearchPhase.ERROR)
            self.assertEqual(session.state.error_message, SEARCH_ERROR_MESSAGE)
            self.assertIsNone(session.state.result)
            session.logger.log_search_failed.assert_called_once()

    async def test_submit_uses_region_at_submit_time(self):
        verifier = InstantVerifier(_result("x"))
        session = _session(verifier)
        session.change_region(Region.JALISCO)
        await session.submit("Corona")
        self.assertEqual(verifier.calls, [("Corona", Region.JALISCO)])

    async def test_newer_submission_wins_over_late_reply(self):
        from price_quoter.session import SearchPhase

        verifier = GatedVerifier({"A": _result("A"), "B": _result("B")})
        session = _session(verifier)
        try:
            task_a = asyncio.create_task(session.submit("A"))
            await asyncio.sleep(0)
            task_b = asyncio.create_task(session.submit("B"))
            await asyncio.sleep(0)
            self.assertEqual(session.state.phase, SearchPhase.LOADING)

            verifier.release("B")
            await task_b
            self.assertEqual(session.state.result, _result("B"))

            verifier.release("A")
            await task_a
            self.assertEqual(session.state.phase, SearchPhase.SUCCESS)
            self.assertEqual(session.state.result, _result("B"))
            self.assertEqual(session.state.query, "B")
        finally:
            verifier.release_all()

    async def test_late_failure_of_superseded_search_is_ignored(self):
        from price_quoter.session import SearchPhase

        verifier = GatedVerifier({
            "A": VerificationError(ErrorKind.TRANSPORT_FAILURE, "timeout"),
            "B": _result("B"),
        })
        session = _session(verifier)
        try:
            task_a = asyncio.create_task(session.submit("A"))
            await asyncio.sleep(0)
            task_b = asyncio.create_task(session.submit("B"))
            await asyncio.sleep(0)

            # A answers first, while B is still loading
            verifier.release("A")
            await task_a
            self.assertEqual(session.state.phase, SearchPhase.LOADING)

            verifier.release("B")
            await task_b
            self.assertEqual(session.state.phase, SearchPhase.SUCCESS)
            self.assertEqual(session.state.result, _result("B"))
        finally:
            verifier.release_all()

    async def test_timeout_becomes_error(self):
        from price_quoter.session import SearchPhase

        verifier = GatedVerifier({"Corona": _result("Corona")})
        session = _session(verifier)
        try:
            await session.submit("Corona", timeout=0.05)
            self.assertEqual(session.state.phase, SearchPhase.ERROR)
            args = session.logger.log_search_failed.call_args[0]
            self.assertEqual(args[1], ErrorKind.TRANSPORT_FAILURE.value)
        finally:
            verifier.release_all()

    async def test_unexpected_verifier_exception_becomes_error(self):
        from price_quoter.session import SEARCH_ERROR_MESSAGE, SearchPhase

        cause = RuntimeError("client bug")
        session = _session(InstantVerifier(cause))
        await session.submit("Corona")

        self.assertEqual(session.state.phase, SearchPhase.ERROR)
        self.assertEqual(session.state.error_message, SEARCH_ERROR_MESSAGE)
        args = session.logger.log_search_failed.call_args[0]
        self.assertEqual(args[1], ErrorKind.TRANSPORT_FAILURE.value)
        self.assertIn("client bug", args[2])

    async def test_quick_pick_honours_timeout(self):
        from price_quoter.session import SearchPhase

        verifier = GatedVerifier({"Corona Mega 1.2L": _result("Corona Mega 1.2L")})
        session = _session(verifier)
        try:
            await session.quick_pick("Corona Mega 1.2L", timeout=0.05)
            self.assertEqual(session.state.phase, SearchPhase.ERROR)
        finally:
            verifier.release_all()

    async def test_scan_complete_honours_timeout(self):
        from price_quoter.session import SearchPhase

        verifier = GatedVerifier({"7501064191428": _result("x")})
        session = _session(verifier)
        try:
            session.open_scanner()
            await session.scan_complete("7501064191428", timeout=0.05)
            self.assertEqual(session.state.phase, SearchPhase.ERROR)
            self.assertFalse(session.state.scanner_open)
        finally:
            verifier.release_all()

    async def test_quick_pick_sets_query_and_searches(self):
        from price_quoter.catalog import all_items
        from price_quoter.session import SearchPhase

        item = all_items()[0]
        verifier = InstantVerifier(_result(item))
        session = _session(verifier)
        await session.quick_pick(item)
        self.assertEqual(session.state.query, item)
        self.assertEqual(session.state.phase, SearchPhase.SUCCESS)
        self.assertEqual(verifier.calls[0][0], item)

    async def test_scan_complete_closes_scanner_and_searches(self):
        from price_quoter.session import SearchPhase

        verifier = InstantVerifier(_result("7501064191428"))
        session = _session(verifier)
        session.open_scanner()
        self.assertTrue(session.state.scanner_open)

        await session.scan_complete("7501064191428")
        self.assertFalse(session.state.scanner_open)
        self.assertEqual(session.state.query, "7501064191428")
        self.assertEqual(session.state.phase, SearchPhase.SUCCESS)

    async def test_corona_scenario_end_to_end(self):
        """Real client mapping + session + renderer with a canned Gemini reply."""
        from datetime import datetime
        from price_quoter.reports.quotation_pdf import quotation_rows
        from price_quoter.session import SearchPhase
        from price_quoter.verification import PriceVerifier

        payload = {
            "products": [{
                "productName": "Corona Extra Bote 355ml",
                "presentation": "Lata 355ml",
                "packType": "Charola 24",
                "estimatedPrice": 305.5,
                "currency": "MXN",
                "notes": "Promo vigente",
            }],
            "groundingUrls": [{"title": "BEES", "uri": "https://bees.example"}],
        }
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(text=json.dumps(payload), candidates=[])

        session = _session(PriceVerifier(client=client), region=Region.SINALOA)
        await session.submit("Corona Extra Bote 355ml")

        self.assertEqual(session.state.phase, SearchPhase.SUCCESS)
        self.assertEqual(len(session.state.result.products), 1)
        self.assertEqual(quotation_rows(session.state.result)[0][3], "$305.50 MXN")

        report = session.export_report(generated_at=datetime(2026, 10, 19, 14, 5))
        self.assertTrue(report.content.startswith(b"%PDF"))
        self.assertIn("Sinaloa", report.filename)


if __name__ == "__main__":
    unittest.main()
