"""Coordinates discovery, extraction, ranking and comparison of candidates."""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, TypeVar

from ..errors import DifferFailure, ExtractionFailure, describe
from ..models import CandidateArena, PairComparison, RepoCandidate
from ..schemas import ExcludedCandidate, RankedCandidates, ScanReport
from .discovery import Discovery
from .metadata_extractor import MetadataExtractor
from .ranker import Ranker
from .structural_differ import StructuralDiffer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkerPool:
    """
    Bounded thread pool for blocking per-candidate and per-pair work.

    Each call waits at most its timeout. A timed-out call keeps its worker
    thread until it returns, so its slot is released by the thread itself
    and no more than ``max_workers`` calls ever run at once. ``shutdown``
    never waits for such stragglers.
    """

    def __init__(self, max_workers: int):
        self.max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="repo-variants"
        )

    async def run(self, timeout: Optional[float], func: Callable[..., T], *args: Any) -> T:
        """Run ``func(*args)`` on a worker; raises asyncio.TimeoutError after ``timeout``."""
        await self._semaphore.acquire()
        loop = asyncio.get_running_loop()
        try:
            future = self._executor.submit(func, *args)
        except BaseException:
            self._semaphore.release()
            raise
        future.add_done_callback(lambda _: _release_threadsafe(loop, self._semaphore))
        return await asyncio.wait_for(asyncio.wrap_future(future), timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class ScanCoordinator:
    """Runs one scan: discover, extract, rank and optionally deep-compare."""

    def __init__(
        self,
        discovery: Discovery,
        extractor: MetadataExtractor,
        ranker: Ranker,
        differ: Optional[StructuralDiffer] = None,
        max_workers: int = 4,
        extraction_timeout: Optional[float] = None,
        diff_timeout: Optional[float] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.discovery = discovery
        self.extractor = extractor
        self.ranker = ranker
        self.differ = differ
        self.max_workers = max_workers
        self.extraction_timeout = extraction_timeout
        self.diff_timeout = diff_timeout

    async def _extract_one(self, pool: WorkerPool, path: str) -> RepoCandidate:
        try:
            return await pool.run(self.extraction_timeout, self.extractor.extract, path)
        except asyncio.TimeoutError:
            raise ExtractionFailure(
                path, f"timed out after {self.extraction_timeout}s"
            ) from None
        except ExtractionFailure:
            raise
        except Exception as e:  # noqa: BLE001 - one candidate must not abort the batch
            raise ExtractionFailure(path, describe(e)) from e

    def _compare_pair(self, baseline: str, other: str) -> PairComparison:
        result = self.differ.compare(baseline, other)
        patch = self.differ.unified_diff(result)
        return PairComparison(
            baseline_path=baseline, other_path=other, result=result, patch=patch
        )

    async def _compare_one(
        self, pool: WorkerPool, baseline: str, other: str
    ) -> PairComparison:
        try:
            return await pool.run(
                self.diff_timeout, self._compare_pair, baseline, other
            )
        except asyncio.TimeoutError:
            reason = f"timed out after {self.diff_timeout}s"
        except DifferFailure as e:
            reason = e.reason
        except Exception as e:  # noqa: BLE001 - one pair must not abort the batch
            reason = describe(e)
        logger.warning(f"Deep compare failed for {baseline} vs {other}: {reason}")
        return PairComparison(baseline_path=baseline, other_path=other, error=reason)

    async def scan_stream(
        self, root: str, deep_compare: bool = False
    ) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Run a scan and stream progress events.

        Events are dicts with a ``type`` of ``status``, ``warning``,
        ``candidate`` or ``complete``. The final ``complete`` event carries
        the ScanReport under ``report``. NotFoundError from discovery
        propagates; every per-candidate or per-pair failure is reported as a
        warning and the scan continues.
        """
        start_time = time.time()
        yield {"type": "status", "message": f"Searching: {root}", "progress": 0}

        discovery = await asyncio.to_thread(self.discovery.discover, root)
        for skipped in discovery.skipped:
            yield {
                "type": "warning",
                "message": f"Skipped unreadable subtree {skipped.path}: {skipped.reason}",
            }

        arena = CandidateArena(discovery.candidates)
        total = len(arena)
        if not total:
            report = ScanReport(
                root=discovery.root,
                name_filters=self.discovery.name_filters,
                ranking=RankedCandidates(mode=self.ranker.mode),
                skipped=discovery.skipped,
            )
            yield {
                "type": "complete",
                "message": "No candidates found",
                "report": report,
                "progress": 100,
            }
            return

        yield {
            "type": "status",
            "message": f"Found {total} candidate(s). Collecting metadata...",
            "progress": 10,
            "total_candidates": total,
        }

        pool = WorkerPool(self.max_workers)
        try:
            tasks = {
                asyncio.ensure_future(self._extract_one(pool, path)): path
                for path in arena.paths
            }
            excluded: Dict[str, str] = {}
            done = 0
            for future in asyncio.as_completed(list(tasks)):
                done += 1
                progress = 10 + (done / total) * 60
                try:
                    candidate = await future
                except ExtractionFailure as e:
                    excluded[e.path] = e.reason
                    logger.warning(f"Excluding {e.path}: {e.reason}")
                    yield {
                        "type": "warning",
                        "message": f"Metadata extraction failed for {e.path}: {e.reason}",
                        "progress": progress,
                    }
                    continue
                arena.store(candidate)
                yield {
                    "type": "candidate",
                    "message": f"Scanned: {candidate.path}",
                    "path": candidate.path,
                    "progress": progress,
                }

            ranking = self.ranker.rank(arena.candidates())
            yield {
                "type": "status",
                "message": f"Ranked {len(ranking)} candidate(s) ({ranking.mode.value} mode)",
                "progress": 75,
            }

            comparisons: List[PairComparison] = []
            if deep_compare and self.differ is not None and len(ranking) > 1:
                baseline = ranking.best.path
                others = [c.path for c in ranking.candidates[1:]]
                yield {
                    "type": "status",
                    "message": f"Deep comparing {len(others)} candidate(s) against {baseline}",
                    "progress": 80,
                }
                comparisons = list(
                    await asyncio.gather(
                        *(self._compare_one(pool, baseline, o) for o in others)
                    )
                )
                for comparison in comparisons:
                    if not comparison.ok:
                        yield {
                            "type": "warning",
                            "message": (
                                f"Deep compare failed for {comparison.other_path}: "
                                f"{comparison.error}"
                            ),
                        }
        finally:
            pool.shutdown()

        report = ScanReport(
            root=discovery.root,
            name_filters=self.discovery.name_filters,
            ranking=ranking,
            excluded=[
                ExcludedCandidate(path=path, reason=excluded[path])
                for path in arena.missing()
                if path in excluded
            ],
            skipped=discovery.skipped,
            comparisons=comparisons,
        )
        yield {
            "type": "complete",
            "message": (
                f"Scan complete: {len(ranking)} ranked, {len(report.excluded)} excluded"
            ),
            "report": report,
            "total_time_seconds": round(time.time() - start_time, 2),
            "progress": 100,
        }

    async def run(self, root: str, deep_compare: bool = False) -> ScanReport:
        """Run a scan to completion and return its report."""
        report: Optional[ScanReport] = None
        async for event in self.scan_stream(root, deep_compare=deep_compare):
            if event["type"] == "complete":
                report = event["report"]
        return report


def _release_threadsafe(
    loop: asyncio.AbstractEventLoop, semaphore: asyncio.Semaphore
) -> None:
    try:
        loop.call_soon_threadsafe(semaphore.release)
    except RuntimeError:
        # The scan has finished and its loop is closed; nobody waits for the slot
        logger.debug("Worker finished after its scan ended")
