"""
Tests for the bounded OCR dispatcher.

Real threads, stub backends with artificial delays.
"""

import time

import pytest

from paradoc.dispatcher import OCRDispatcher
from paradoc.models import OCRTask, PageImage

from conftest import StubOCR, StubRenderer


def _tasks(renderer, pages, hints=("eng",)):
    return [OCRTask(n, PageImage("doc.pdf", n, renderer), list(hints)) for n in pages]


def test_empty_task_list_returns_no_results():
    backend = StubOCR()
    assert OCRDispatcher(backend, max_concurrency=2).dispatch([]) == []
    assert backend.calls == []


def test_every_task_yields_exactly_one_result():
    renderer = StubRenderer()
    backend = StubOCR(texts={n: f"text {n}" for n in range(1, 11)})

    results = OCRDispatcher(backend, max_concurrency=3).dispatch(_tasks(renderer, range(1, 11)))

    assert sorted(r.page_number for r in results) == list(range(1, 11))
    assert all(r.succeeded for r in results)
    assert {r.page_number: r.text for r in results}[7] == "text 7"


def test_concurrency_is_bounded():
    renderer = StubRenderer()
    backend = StubOCR(delays={n: 0.05 for n in range(1, 13)})

    OCRDispatcher(backend, max_concurrency=3).dispatch(_tasks(renderer, range(1, 13)))

    assert len(backend.calls) == 12
    assert 1 < backend.max_in_flight <= 3


def test_single_worker_runs_serially():
    backend = StubOCR(delays={n: 0.01 for n in range(1, 6)})

    OCRDispatcher(backend, max_concurrency=1).dispatch(_tasks(StubRenderer(), range(1, 6)))

    assert backend.max_in_flight == 1


def test_failure_is_isolated_to_its_page():
    backend = StubOCR(texts={1: "one", 2: "two", 3: "three"}, fail_pages={2})

    results = OCRDispatcher(backend, max_concurrency=2).dispatch(_tasks(StubRenderer(), [1, 2, 3]))
    by_page = {r.page_number: r for r in results}

    assert by_page[1].succeeded and by_page[1].text == "one"
    assert by_page[3].succeeded and by_page[3].text == "three"
    assert not by_page[2].succeeded
    assert "unreadable image on page 2" in by_page[2].error_reason


def test_render_failure_becomes_failed_result():
    renderer = StubRenderer(fail_pages={1})
    backend = StubOCR(texts={2: "two"})

    results = OCRDispatcher(backend, max_concurrency=2).dispatch(_tasks(renderer, [1, 2]))
    by_page = {r.page_number: r for r in results}

    assert not by_page[1].succeeded
    assert by_page[1].error_reason.startswith("Render failed")
    assert by_page[2].text == "two"
    assert backend.calls == [2]


def test_pages_are_rendered_only_when_dispatched():
    renderer = StubRenderer()
    tasks = _tasks(renderer, [2, 5])
    assert renderer.rendered == []

    OCRDispatcher(StubOCR(), max_concurrency=2).dispatch(tasks)

    assert sorted(renderer.rendered) == [2, 5]


def test_timeout_fails_only_the_slow_page():
    backend = StubOCR(texts={1: "fast", 2: "slow", 3: "fast too"}, delays={2: 2.0})
    dispatcher = OCRDispatcher(backend, max_concurrency=2, per_task_timeout=0.3)

    start = time.perf_counter()
    results = dispatcher.dispatch(_tasks(StubRenderer(), [1, 2, 3]))
    elapsed = time.perf_counter() - start
    by_page = {r.page_number: r for r in results}

    assert elapsed < 1.5
    assert not by_page[2].succeeded
    assert by_page[2].error_reason == "timed out after 0.3s"
    assert by_page[1].text == "fast"
    assert by_page[3].text == "fast too"


def test_backend_that_accepts_timeout_receives_it():
    class TimeoutAwareOCR:
        def __init__(self):
            self.timeouts = []

        def recognize(self, image, language_hints, timeout=None):
            self.timeouts.append(timeout)
            return "ok"

    backend = TimeoutAwareOCR()
    OCRDispatcher(backend, max_concurrency=1, per_task_timeout=12).dispatch(_tasks(StubRenderer(), [1]))

    assert backend.timeouts == [12.0]


def test_language_hints_are_forwarded_in_order():
    backend = StubOCR()

    OCRDispatcher(backend, max_concurrency=1).dispatch(_tasks(StubRenderer(), [1], hints=("vie", "eng")))

    assert backend.hints == [["vie", "eng"]]


def test_none_from_backend_is_empty_text():
    class NoneOCR:
        def recognize(self, image, language_hints):
            return None

    results = OCRDispatcher(NoneOCR(), max_concurrency=1).dispatch(_tasks(StubRenderer(), [1]))

    assert results[0].succeeded and results[0].text == ""


@pytest.mark.parametrize("kwargs", [
    {"max_concurrency": 0},
    {"max_concurrency": -1},
    {"max_concurrency": 2.0},
    {"max_concurrency": 2, "per_task_timeout": 0},
    {"max_concurrency": 2, "per_task_timeout": -3},
])
def test_invalid_settings_are_rejected(kwargs):
    with pytest.raises(ValueError):
        OCRDispatcher(StubOCR(), **kwargs)


def test_abandoned_calls_still_count_against_the_bound():
    backend = StubOCR(texts={7: "seven", 8: "eight"}, delays={n: 0.5 for n in range(1, 7)})
    dispatcher = OCRDispatcher(backend, max_concurrency=2, per_task_timeout=0.1)

    results = dispatcher.dispatch(_tasks(StubRenderer(), range(1, 7)))

    assert len(results) == 6
    assert not any(r.succeeded for r in results)
    assert backend.max_in_flight <= 2
    assert any("waiting for a free OCR slot" in r.error_reason for r in results)

    # once the slow calls finish their slots are free again
    time.sleep(0.7)
    results = dispatcher.dispatch(_tasks(StubRenderer(), [7, 8]))

    assert {r.page_number: r.text for r in results} == {7: "seven", 8: "eight"}
    assert backend.max_in_flight <= 2


def test_pages_wait_for_a_slot_before_rendering():
    renderer = StubRenderer()
    backend = StubOCR(delays={1: 0.5})
    dispatcher = OCRDispatcher(backend, max_concurrency=1, per_task_timeout=0.1)

    results = dispatcher.dispatch(_tasks(renderer, [1, 2]))
    by_page = {r.page_number: r for r in results}

    assert by_page[1].error_reason == "timed out after 0.1s"
    assert by_page[2].error_reason == "timed out after 0.1s waiting for a free OCR slot"
    assert renderer.rendered == [1]
    time.sleep(0.5)
