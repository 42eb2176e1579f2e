"""
PARALLEL EXTRACTION PIPELINE

Architecture:
- One producer thread reads lines, reassembles statements and resolves the
  schema binding. This part is order dependent and runs strictly in sequence.
- Completed statements become self-contained WorkUnits (statement bytes plus
  a copy of the binding) on a bounded multiprocessing queue.
- A pool of worker processes parses statements and extracts rows. Results
  come back in per-unit batches with no ordering guarantee.

Every per-statement failure is returned as an error result. Only a failure
to read the input stops the scan, raised as DumpReadError once the work
already queued has been drained.
"""

import logging
import multiprocessing
import threading
import time
import zlib
from dataclasses import dataclass
from queue import Empty, Full
from typing import Iterable, Iterator, List, Optional

from .config import Config
from .extractor import extract_insert
from .logs import get_worker_logger
from .reassembler import StatementReassembler, strip_line_terminator
from .results import DumpReadError, ExtractionError, ExtractionResult, SqlSyntaxError
from .schema import SchemaBinding, resolve_schema, wrong_table_error
from .statements import ParsedStatement, StatementKind, parse_statement

logger = logging.getLogger(__name__)

# Seconds between liveness checks while waiting on worker results
RESULT_TIMEOUT = 30
# Seconds between stop checks while the task queue is full
PUT_TIMEOUT = 1
EXCERPT_MARKER = " [...]"


@dataclass
class ScanCounts:
    """Progress of one scan, readable while it runs"""
    lines: int = 0
    statements: int = 0


@dataclass(frozen=True)
class WorkUnit:
    """A statement to extract, or an error already found by the producer"""
    statement: Optional[bytes] = None
    binding: Optional[SchemaBinding] = None
    error: Optional[str] = None


def syntax_error_message(error: SqlSyntaxError, statement: bytes, excerpt_length: int) -> str:
    excerpt = statement.decode("utf-8", errors="replace")[:excerpt_length] + EXCERPT_MARKER
    return f"{error} (while parsing: {excerpt})"


def handle_statement(
    statement: ParsedStatement,
    binding: Optional[SchemaBinding],
    config: Config
) -> List[ExtractionResult]:
    """Results for a parsed statement once the schema stage is behind it"""
    if statement.kind is StatementKind.INSERT:
        return extract_insert(statement, binding, config)
    if statement.kind is StatementKind.CREATE_TABLE:
        error = wrong_table_error(statement, config)
        return [error or ExtractionResult.error("Unexpected CREATE TABLE")]
    return [ExtractionResult.error(f"Not an insert statement: {statement.keyword}")]


def process_unit(unit: WorkUnit, config: Config) -> List[ExtractionResult]:
    if unit.error is not None:
        return [ExtractionResult.error(unit.error)]
    try:
        parsed = parse_statement(unit.statement)
    except SqlSyntaxError as e:
        return [ExtractionResult.error(syntax_error_message(e, unit.statement, config.excerpt_length))]
    return handle_statement(parsed, unit.binding, config)


def run_unit(unit: WorkUnit, config: Config, log: logging.Logger) -> List[ExtractionResult]:
    """process_unit, with any unexpected failure turned into an error result"""
    try:
        return process_unit(unit, config)
    except Exception as e:
        log.error(f"Unexpected failure while processing a statement: {e}", exc_info=True)
        return [ExtractionResult.error(f"Unexpected failure while processing statement: {e!r}")]


# ============================================================================
# SEQUENTIAL STAGE
# ============================================================================

class ScanState:
    """Reassembly buffer and schema binding for one scan"""

    def __init__(self, config: Config, counts: Optional[ScanCounts] = None):
        self.config = config
        self.reassembler = StatementReassembler()
        self.binding: Optional[SchemaBinding] = None
        self.counts = counts if counts is not None else ScanCounts()

    def add_line(self, line: bytes) -> Optional[WorkUnit]:
        self.counts.lines += 1
        statement = self.reassembler.consume(line)
        if statement is None:
            return None
        self.counts.statements += 1
        return self.dispatch(statement)

    def dispatch(self, statement: bytes) -> Optional[WorkUnit]:
        if self.binding is not None:
            return WorkUnit(statement=statement, binding=self.binding)

        # Until the binding is known every statement is parsed here, in order
        try:
            parsed = parse_statement(statement)
        except SqlSyntaxError as e:
            return WorkUnit(error=syntax_error_message(e, statement, self.config.excerpt_length))
        except Exception as e:
            logger.error(f"Unexpected failure while parsing a statement: {e}", exc_info=True)
            return WorkUnit(error=f"Unexpected failure while processing statement: {e!r}")

        if parsed.kind is StatementKind.CREATE_TABLE:
            binding, errors = resolve_schema(parsed, self.config)
            if binding is None:
                return WorkUnit(error=errors[0].message)
            self.binding = binding
            logger.info(f"Resolved columns {self.config.columns} of '{parsed.table}' to positions {binding}")
            return None

        errors = handle_statement(parsed, None, self.config)
        return WorkUnit(error=errors[0].message)

    def scan(self, lines: Iterable[bytes]) -> Iterator[WorkUnit]:
        """Work units for the input, in input order"""
        iterator = iter(lines)
        while True:
            try:
                line = next(iterator)
            except StopIteration:
                break
            except (OSError, EOFError, zlib.error) as e:
                raise DumpReadError(f"Unable to read line {self.counts.lines + 1}: {e}") from e

            unit = self.add_line(strip_line_terminator(line))
            if unit is not None:
                yield unit
        self.finish()

    def finish(self):
        if self.reassembler.pending_bytes:
            logger.warning(
                f"Input ended inside a statement; {self.reassembler.pending_bytes:,} bytes discarded"
            )
        if self.binding is None:
            logger.warning(f"No CREATE TABLE for '{self.config.table}' with columns {self.config.columns} was found")
        logger.info(f"Scan finished: {self.counts.lines:,} lines, {self.counts.statements:,} statements")


# ============================================================================
# WORKERS
# ============================================================================

def extraction_worker(worker_id: int, task_queue, result_queue, config: Config):
    """Consumer: parse statements and extract rows until a None sentinel arrives"""
    log = get_worker_logger(worker_id, config)
    units = 0
    try:
        while True:
            unit = task_queue.get()
            if unit is None:
                break
            results = run_unit(unit, config, log)
            if results:
                result_queue.put(results)
            units += 1
    finally:
        result_queue.put(None)
        log.debug(f"Worker finished. Units processed: {units:,}")


def _put(task_queue, item, stop: threading.Event) -> bool:
    """Blocking put that gives up once stop is set"""
    while not stop.is_set():
        try:
            task_queue.put(item, timeout=PUT_TIMEOUT)
            return True
        except Full:
            continue
    return False


def _produce(
    lines: Iterable[bytes],
    state: ScanState,
    task_queue,
    num_workers: int,
    failures: list,
    stop: threading.Event
):
    try:
        for unit in state.scan(lines):
            if not _put(task_queue, unit, stop):
                logger.debug("Producer stopped before the end of input")
                return
    except BaseException as e:
        failures.append(e)
    finally:
        for _ in range(num_workers):
            _put(task_queue, None, stop)


def _iter_inline(lines: Iterable[bytes], state: ScanState) -> Iterator[ExtractionResult]:
    for unit in state.scan(lines):
        yield from run_unit(unit, state.config, logger)


def _iter_parallel(lines: Iterable[bytes], state: ScanState) -> Iterator[ExtractionResult]:
    config = state.config
    ctx = multiprocessing.get_context()
    task_queue = ctx.Queue(maxsize=config.queue_size)
    result_queue = ctx.Queue()

    workers = [
        ctx.Process(
            target=extraction_worker,
            args=(i, task_queue, result_queue, config),
            name=f"extraction-worker-{i}",
            daemon=True
        )
        for i in range(config.num_workers)
    ]
    for worker in workers:
        worker.start()
    logger.info(f"Started {len(workers)} extraction workers")

    failures = []
    stop = threading.Event()
    producer = threading.Thread(
        target=_produce,
        args=(lines, state, task_queue, len(workers), failures, stop),
        name="scan-producer",
        daemon=True
    )
    producer.start()

    finished = 0
    try:
        while finished < len(workers):
            try:
                batch = result_queue.get(timeout=RESULT_TIMEOUT)
            except Empty:
                if not any(worker.is_alive() for worker in workers):
                    raise ExtractionError("All extraction workers exited before finishing")
                logger.debug("Waiting on extraction workers...")
                continue

            if batch is None:
                finished += 1
                continue
            yield from batch

        producer.join()
        for worker in workers:
            worker.join()
    finally:
        stop.set()
        for worker in workers:
            if worker.is_alive():
                worker.terminate()
        # Units still buffered for terminated workers must not block interpreter exit
        task_queue.cancel_join_thread()
        result_queue.cancel_join_thread()

    if failures:
        raise failures[0]


def iter_extraction_results(
    lines: Iterable[bytes],
    config: Config,
    counts: Optional[ScanCounts] = None
) -> Iterator[ExtractionResult]:
    """
    Stream extraction results for a dump given as raw lines.

    Results arrive in no particular order. Raises DumpReadError if reading
    the lines fails; everything dispatched before the failure is still yielded.
    Pass a ScanCounts to follow how many lines and statements were scanned.
    Closing the generator early stops the scan and terminates the workers.
    """
    start = time.time()
    state = ScanState(config, counts)
    if config.num_workers == 0:
        yield from _iter_inline(lines, state)
    else:
        yield from _iter_parallel(lines, state)
    logger.debug(f"Extraction finished in {time.time() - start:.1f}s")
