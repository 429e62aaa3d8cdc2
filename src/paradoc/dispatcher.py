# src/paradoc/dispatcher.py
"""
Bounded-concurrency OCR dispatch.

A fixed-size thread pool works through the task list. Each worker renders
its own page image right before recognition and drops it as soon as the
result is recorded. A slot semaphore is held from render until the backend
call returns, so at most `max_concurrency` calls and rendered pages are alive
even when timed-out calls are still running in the background.

Every task yields exactly one OCRResult: success, failure or timeout. A
failing page never aborts its siblings. Results come back in completion
order; callers sort by page number.
"""
from __future__ import annotations

import inspect
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence

from tqdm import tqdm

from .config import DEFAULT_TASK_TIMEOUT, default_concurrency
from .logger import LOGGER_NAME
from .models import OCRResult, OCRTask

logger = logging.getLogger(LOGGER_NAME)


class OCRTimeout(Exception):
    pass


def _accepts_timeout(fn) -> bool:
    try:
        params = inspect.signature(fn).parameters
    except (TypeError, ValueError):
        return False
    return "timeout" in params or any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values()
    )


class OCRDispatcher:
    def __init__(
        self,
        backend: Any,
        max_concurrency: Optional[int] = None,
        per_task_timeout: float = DEFAULT_TASK_TIMEOUT,
        show_progress: bool = False,
    ):
        if max_concurrency is None:
            max_concurrency = default_concurrency()
        if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1:
            raise ValueError(f"max_concurrency must be a positive integer, got {max_concurrency!r}")
        if not per_task_timeout or per_task_timeout <= 0:
            raise ValueError(f"per_task_timeout must be positive, got {per_task_timeout!r}")

        self.backend = backend
        self.max_concurrency = max_concurrency
        self.per_task_timeout = float(per_task_timeout)
        self.show_progress = show_progress
        # backends that take a timeout can kill their own call (tesseract does)
        self._pass_timeout = _accepts_timeout(backend.recognize)
        # bounds live backend calls, including ones a timeout has abandoned
        self._slots = threading.BoundedSemaphore(max_concurrency)

    # -----------------------------
    # Public entry point
    # -----------------------------
    def dispatch(self, tasks: Sequence[OCRTask]) -> List[OCRResult]:
        if not tasks:
            return []

        total = len(tasks)
        n_workers = min(self.max_concurrency, total)
        logger.info(
            "Dispatching %d page(s) for OCR, workers, %d, timeout, %gs",
            total, n_workers, self.per_task_timeout,
        )

        results: List[OCRResult] = []
        with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="paradoc-ocr") as pool:
            futures = {pool.submit(self._run_task, task): task.page_number for task in tasks}
            for fut in tqdm(as_completed(futures), total=total, desc="OCR pages",
                            disable=not self.show_progress):
                page_number = futures[fut]
                try:
                    result = fut.result()
                except Exception as e:
                    # _run_task catches backend errors, this only guards the worker itself
                    logger.exception("OCR worker crashed on page %d", page_number)
                    result = OCRResult.failed(page_number, f"Worker crashed, {e}")
                results.append(result)
                logger.progress(
                    "ocr progress",
                    extra={"phase": "ocr", "current": len(results), "total": total},
                )

        failed = sum(1 for r in results if not r.succeeded)
        if failed:
            logger.warning("OCR failed on %d of %d page(s)", failed, total)
        return results

    # -----------------------------
    # Worker helpers
    # -----------------------------
    def _run_task(self, task: OCRTask) -> OCRResult:
        start = time.perf_counter()
        page_number = task.page_number

        # a slot is held from render until the backend call really returns,
        # abandoned calls included
        if not self._slots.acquire(timeout=self.per_task_timeout):
            logger.warning("No free OCR slot for page %d after %gs", page_number, self.per_task_timeout)
            return OCRResult.failed(
                page_number,
                f"timed out after {self.per_task_timeout:g}s waiting for a free OCR slot",
                time.perf_counter() - start,
            )
        handed_off = False
        image = None
        try:
            try:
                image = task.image.render()
            except Exception as e:
                logger.warning("Failed to render page %d, %s", page_number, e)
                return OCRResult.failed(page_number, f"Render failed, {e}", time.perf_counter() - start)

            handed_off = True
            text = self._recognize(image, list(task.language_hints))
        except OCRTimeout:
            logger.warning("OCR timed out on page %d after %gs", page_number, self.per_task_timeout)
            return OCRResult.failed(
                page_number, f"timed out after {self.per_task_timeout:g}s", time.perf_counter() - start
            )
        except Exception as e:
            logger.warning("OCR failed on page %d, %s", page_number, e)
            return OCRResult.failed(page_number, f"OCR failed, {e}", time.perf_counter() - start)
        finally:
            del image
            if not handed_off:
                self._slots.release()

        duration = time.perf_counter() - start
        logger.debug("OCR page %d done, %d chars, %.2fs", page_number, len(text), duration)
        return OCRResult.ok(page_number, text, duration)

    def _recognize(self, image: Any, language_hints: List[str]) -> str:
        """
        Run one backend call with a deadline.
        The call runs in a daemon thread so a hung backend cannot hold this
        worker past the timeout. The call thread owns the caller's slot and
        releases it when the backend returns.
        """
        outcome: Dict[str, Any] = {}
        done = threading.Event()
        kwargs = {"timeout": self.per_task_timeout} if self._pass_timeout else {}

        def _call():
            try:
                outcome["text"] = self.backend.recognize(image, language_hints, **kwargs)
            except Exception as e:
                outcome["error"] = e
            finally:
                self._slots.release()
                done.set()

        t = threading.Thread(target=_call, name="paradoc-ocr-call", daemon=True)
        try:
            t.start()
        except RuntimeError:
            self._slots.release()
            raise
        if not done.wait(self.per_task_timeout):
            raise OCRTimeout()

        if "error" in outcome:
            raise outcome["error"]
        text = outcome.get("text")
        return "" if text is None else str(text)
