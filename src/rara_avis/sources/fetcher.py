"""
Concurrent sample fetching.

Fetch cycles must never block the tick loop. SampleFetcher submits
source calls to a thread pool and hands back whatever has finished when
the Director polls it. Worker threads only run SampleSource.fetch();
all pool mutation happens on the tick thread after collect().

Each request carries the Director's freshness epoch so results that
started before a force refresh can be recognized and dropped.
"""

from concurrent.futures import Executor, Future, ThreadPoolExecutor
import concurrent.futures
from dataclasses import dataclass, field
from typing import Any, List, Optional, TYPE_CHECKING

from ..audio.sample import Sample
from ..config.models import SourceType

if TYPE_CHECKING:
    from .base import SampleSource


@dataclass
class FetchRequest:
    """One submitted source call."""
    source_type: SourceType
    provider: str
    lat: float
    lng: float
    radius_km: float
    epoch: int
    requested_at: Optional[float] = None


@dataclass
class FetchResult:
    """
    Outcome of one source call.
    
    A failed call is a result with no samples and an error message.
    """
    request: FetchRequest
    samples: List[Sample] = field(default_factory=list)
    error: Optional[str] = None
    
    @property
    def ok(self) -> bool:
        return self.error is None
    
    @property
    def source_type(self) -> SourceType:
        return self.request.source_type
    
    @property
    def epoch(self) -> int:
        return self.request.epoch


class SampleFetcher:
    """
    Runs SampleSource calls in the background.
    
    Example:
        >>> fetcher = SampleFetcher(max_workers=2)
        >>> fetcher.submit(bio_source, 51.5, -0.1, 30.0, epoch=0)   # doctest: +SKIP
        >>> for result in fetcher.collect():                         # doctest: +SKIP
        ...     print(result.request.provider, len(result.samples))
    """
    
    def __init__(self, max_workers: int = 2,
                 executor: Optional[Executor] = None,
                 logger: Optional[Any] = None):
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="rara-avis-fetch")
        self.logger = logger
        self._in_flight: List[tuple] = []
        
        self.stats = {
            'submitted': 0,
            'succeeded': 0,
            'failed': 0,
        }
    
    @property
    def in_flight(self) -> int:
        return len(self._in_flight)
    
    def submit(self, source: 'SampleSource', lat: float, lng: float,
               radius_km: float, epoch: int,
               requested_at: Optional[float] = None) -> Future:
        """Start a source call without waiting for it."""
        request = FetchRequest(
            source_type=source.source_type,
            provider=source.name,
            lat=lat,
            lng=lng,
            radius_km=radius_km,
            epoch=epoch,
            requested_at=requested_at,
        )
        future = self._executor.submit(source.fetch, lat, lng, radius_km)
        self._in_flight.append((future, request))
        self.stats['submitted'] += 1
        return future
    
    def collect(self) -> List[FetchResult]:
        """
        Take every finished call, in submission order.
        
        Exceptions raised by a source are logged and turned into empty
        results; they never reach the caller.
        """
        finished = []
        still_running = []
        for future, request in self._in_flight:
            if not future.done():
                still_running.append((future, request))
                continue
            finished.append(self._result(future, request))
        self._in_flight = still_running
        return finished
    
    def _result(self, future: Future, request: FetchRequest) -> FetchResult:
        try:
            samples = list(future.result() or [])
        except Exception as e:
            self.stats['failed'] += 1
            if self.logger is not None:
                self.logger.warning("fetch", f"{request.provider} fetch failed",
                                    error=str(e), epoch=request.epoch)
            return FetchResult(request=request, error=str(e) or e.__class__.__name__)
        
        self.stats['succeeded'] += 1
        return FetchResult(request=request, samples=samples)
    
    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until every in-flight call finishes (simulator and tests)."""
        futures = [future for future, _ in self._in_flight]
        if futures:
            concurrent.futures.wait(futures, timeout=timeout)
    
    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
    
    def __repr__(self) -> str:
        return f"SampleFetcher(in_flight={self.in_flight})"
