"""
Resolve sources use case.

Orchestrates: descriptor -> open -> sample -> detect -> ResolvedSource.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping

from logresolve.application.ports import FormatDetectorPort, OpenedSourcePort, SourceOpenerPort
from logresolve.core.exceptions import DetectionFailed, LogResolveError, OpenError
from logresolve.core.models import FailurePolicy, Options, SourceDescriptor
from logresolve.detection.catalog import BUILTIN_CATALOG, FormatCatalog
from logresolve.detection.detector import TimestampDetector
from logresolve.domain.entities import ProgressCallback, ResolvedSource
from logresolve.infrastructure.sources import open_bytes, open_source, open_stdin, read_sample

__all__ = ["ResolveFailure", "ResolveResult", "SourceResolver"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveFailure:
    """A source that could not be resolved, attributed to its name and path."""
    name: str
    path: str
    error: LogResolveError

    @property
    def kind(self) -> str:
        return self.error.kind

    def __str__(self) -> str:
        return f"{self.name} ({self.path}): {self.kind}: {self.error.message}"


@dataclass
class ResolveResult:
    """
    Outcome of resolving a list of descriptors.

    Iterating yields the resolved sources in descriptor order. Sources
    that failed under FailurePolicy.CONTINUE are listed in ``failures``.
    """
    sources: list[ResolvedSource] = field(default_factory=list)
    failures: list[ResolveFailure] = field(default_factory=list)

    def __iter__(self) -> Iterator[ResolvedSource]:
        return iter(self.sources)

    def __len__(self) -> int:
        return len(self.sources)

    @property
    def ok(self) -> bool:
        return not self.failures

    def close(self) -> None:
        """Close every resolved source."""
        for source in self.sources:
            source.close()

    def __enter__(self) -> "ResolveResult":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _close_resolved(outcomes: Iterable[ResolvedSource | ResolveFailure]) -> None:
    for outcome in outcomes:
        if isinstance(outcome, ResolvedSource):
            outcome.close()


class SourceResolver:
    """
    Use case: turn source descriptors into resolved, timestamped streams.

    The detector is built once up front, so an invalid custom regex raises
    CompileError before any source is opened.

    Example:
        resolver = SourceResolver(Options(window=2_000_000_000))
        with resolver.resolve([SourceDescriptor.for_path("app.log")]) as result:
            for source in result:
                for record in source.records():
                    ...
    """

    def __init__(
        self,
        options: Options | None = None,
        catalog: FormatCatalog = BUILTIN_CATALOG,
        max_workers: int = 1,
        opener: SourceOpenerPort = open_source,
        detector: FormatDetectorPort | None = None,
        progress_callback: ProgressCallback | None = None,
        callback_interval: int = 10000,
    ):
        """
        Args:
            options: Resolution options
            catalog: Catalog used when options carry no fallback specs
            max_workers: Threads used to open and detect sources
            opener: Function opening a path as an OpenedSource
            detector: Detector override (defaults to TimestampDetector)
            progress_callback: Passed to every ResolvedSource
            callback_interval: Lines between progress callbacks
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.options = options or Options()
        self.detector = detector or TimestampDetector(self.options, catalog)
        self.max_workers = max_workers
        self._opener = opener
        self._progress_callback = progress_callback
        self._callback_interval = callback_interval

    def resolve(self, descriptors: Iterable[SourceDescriptor | Mapping[str, Any]]) -> ResolveResult:
        """
        Resolve every location of every descriptor.

        Returns:
            ResolveResult with sources in descriptor order

        Raises:
            LogResolveError: The first failure in descriptor order, under
                FailurePolicy.ABORT (everything opened so far is closed)
        """
        jobs = []
        for descriptor in descriptors:
            if isinstance(descriptor, Mapping):
                descriptor = SourceDescriptor.from_dict(descriptor)
            if not descriptor.locations:
                jobs.append((descriptor, None))
            for location in descriptor.locations:
                jobs.append((descriptor, location.path))

        abort = self.options.failure_policy is FailurePolicy.ABORT
        result = ResolveResult()

        outcomes: list[ResolvedSource | ResolveFailure] = []
        try:
            if self.max_workers > 1 and len(jobs) > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    futures = [pool.submit(self._attempt, *job) for job in jobs]
                # Every job has finished once the pool is shut down
                outcomes = [f.result() for f in futures if f.exception() is None]
                for future in futures:
                    future.result()
            else:
                for job in jobs:
                    outcome = self._attempt(*job)
                    outcomes.append(outcome)
                    if abort and isinstance(outcome, ResolveFailure):
                        break
        except BaseException:
            _close_resolved(outcomes)
            raise

        for outcome in outcomes:
            if isinstance(outcome, ResolvedSource):
                result.sources.append(outcome)
                continue
            if abort:
                _close_resolved(outcomes)
                raise outcome.error
            logger.warning("Skipping source %s", outcome)
            result.failures.append(outcome)

        return result

    def pipe_stdin(self, stream: Any = None, name: str = "stdin") -> list[ResolvedSource]:
        """
        Resolve standard input as a single source.

        Raises:
            OpenError: If stdin cannot be read
            DetectionFailed: If no timestamp format matched
        """
        return [self._resolve(lambda: open_stdin(stream, name=name), name, "log")]

    def pipe_bytes(self, data: bytes, name: str = "bytes") -> list[ResolvedSource]:
        """
        Resolve an in-memory buffer as a single source.

        Raises:
            OpenError: If a gzip buffer is corrupt
            DetectionFailed: If no timestamp format matched
        """
        return [self._resolve(lambda: open_bytes(data, name=name), name, "log")]

    def _attempt(self, descriptor: SourceDescriptor, path: str | None) -> ResolvedSource | ResolveFailure:
        if path is None:
            error = OpenError("Data source has no locations", source_name=descriptor.name)
            return ResolveFailure(name=descriptor.name, path="", error=error)
        try:
            return self._resolve(lambda: self._opener(path, name=descriptor.name), descriptor.name, descriptor.kind)
        except (OpenError, DetectionFailed) as e:
            return ResolveFailure(name=descriptor.name, path=path, error=e)

    def _resolve(self, open_fn, name: str, kind: str) -> ResolvedSource:
        opened: OpenedSourcePort = open_fn()
        try:
            sample, reader = read_sample(opened.reader, self.options.sample_size, source_name=name)
            detection = self.detector.detect(sample)
        except OpenError as e:
            opened.close()
            raise OpenError(e.message, path=opened.path, source_name=name) from (e.__cause__ or e)
        except DetectionFailed as e:
            opened.close()
            raise DetectionFailed(
                f"{e.message} in {opened.path}",
                source_name=name,
                last_error=e.last_error,
                attempts=e.attempts,
            ) from e.last_error
        except Exception:
            opened.close()
            raise

        logger.info(
            "Resolved %s (%s): format=%s strategy=%s size=%d",
            name, opened.path, detection.format.value, detection.strategy, opened.size,
        )
        return ResolvedSource(
            name=name,
            path=opened.path,
            reader=reader,
            size=opened.size,
            detection=detection,
            window=self.options.window,
            kind=kind,
            closer=opened.close,
            progress_callback=self._progress_callback,
            callback_interval=self._callback_interval,
        )
