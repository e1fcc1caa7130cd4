#!/usr/bin/env python3
import sys, os, re, time, json, argparse, logging, threading
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import FrozenSet, List, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

MB = 1024 * 1024

_INT_TOKEN = re.compile(r"[+-]?[0-9]+")

# ---- Errors ----
class StatsError(Exception):
    """Base failure of a stats run; no partial result exists when raised."""
    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path

class FileAccessError(StatsError):
    pass

class CorruptedFileError(StatsError):
    def __init__(self, path: str, line_number: Optional[int], token: Optional[str] = None, reason: str = ""):
        if not reason:
            reason = f"non-integer token {token!r}"
        if line_number is not None:
            reason = f"line {line_number}: {reason}"
        super().__init__(path, reason)
        self.line_number = line_number
        self.token = token

# ---- Result ----
@dataclass(frozen=True)
class StatsResult:
    """Statistics for the integers of one csv file.

    ``mean`` is rounded toward positive infinity at the third decimal and is
    exactly zero for a file without integers, in which case ``modes`` is empty
    too. Several integers share ``modes`` when they tie on frequency.
    """
    total_count: int
    mean: Decimal
    max_per_line: int
    modes: FrozenSet[int]

    def sorted_modes(self) -> List[int]:
        return sorted(self.modes)

    def to_dict(self) -> dict:
        return {
            "total_count": self.total_count,
            "mean": str(self.mean),
            "max_per_line": self.max_per_line,
            "modes": self.sorted_modes(),
        }

    def __str__(self) -> str:
        return (f"StatsResult{{total={self.total_count}, mean={self.mean}, "
                f"max_per_line={self.max_per_line}, modes={self.sorted_modes()}}}")

# ---- Aggregation ----
def ceiling_mean(total: int, count: int) -> Decimal:
    """Exact ``total / count`` rounded up at the third decimal; 0 when count is 0."""
    if count == 0:
        return Decimal(0)
    thousandths = -((-total * 1000) // count)
    return Decimal(f"{thousandths}E-3")

def split_tokens(line: str, delimiter: str) -> List[str]:
    tokens = line.split(delimiter)
    while tokens and tokens[-1] == "":
        tokens.pop()
    return tokens

def parse_int(token: str) -> Optional[int]:
    if _INT_TOKEN.fullmatch(token) is None:
        return None
    return int(token)

def create_stats(path: str, *, delimiter: str = ",", quote: str = '"', encoding: str = "utf-8") -> StatsResult:
    """Read ``path`` once and return its StatsResult.

    Raises FileAccessError when the file cannot be opened or read and
    CorruptedFileError as soon as a line holds a token that is not an integer.
    """
    if not delimiter:
        raise ValueError("delimiter must be a non-empty string")
    logger.debug("%s: aggregating (delimiter=%r, quote=%r)", path, delimiter, quote)
    total_count = 0
    total = 0
    max_per_line = 0
    freq: Counter = Counter()
    try:
        with open(path, encoding=encoding, newline=None) as f:
            for line_number, raw in enumerate(f, start=1):
                line = raw.rstrip("\r\n")
                if quote:
                    line = line.replace(quote, "")
                if not line:
                    continue
                tokens = split_tokens(line, delimiter)
                consumed = 0
                for token in tokens:
                    value = parse_int(token)
                    if value is None:
                        break
                    consumed += 1
                    total += value
                    freq[value] += 1
                # leftovers mean the walk stopped on a bad token
                if consumed < len(tokens):
                    logger.debug("%s: line %d stops at token %r", path, line_number, tokens[consumed])
                    raise CorruptedFileError(path, line_number, tokens[consumed])
                total_count += consumed
                if consumed > max_per_line:
                    max_per_line = consumed
    except UnicodeDecodeError as e:
        raise CorruptedFileError(path, None, reason=f"undecodable bytes ({encoding})") from e
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e)) from e

    max_frequency = max(freq.values(), default=0)
    modes = frozenset(value for value, n in freq.items() if n == max_frequency)
    logger.debug("%s: %d distinct integers, top frequency %d", path, len(freq), max_frequency)
    result = StatsResult(
        total_count=total_count,
        mean=ceiling_mean(total, total_count),
        max_per_line=max_per_line,
        modes=modes,
    )
    logger.debug("%s: %s", path, result)
    return result

# ---- Measurement ----
def _mb(n_bytes: Optional[int]) -> str:
    if not n_bytes:
        return "N/A"
    return f"{n_bytes/MB:.1f} MB"

def measure_with_memory(path: str, **options) -> Tuple[float, Optional[int], StatsResult]:
    """Run create_stats while sampling peak RSS; returns (elapsed, peak_rss, result)."""
    peak_rss = 0
    stop = threading.Event()
    proc = psutil.Process(os.getpid())
    def sampler():
        nonlocal peak_rss
        while not stop.is_set():
            try:
                rss = proc.memory_info().rss
            except psutil.Error:
                logger.debug("rss sample failed", exc_info=True)
            else:
                if rss > peak_rss:
                    peak_rss = rss
            stop.wait(0.05)
    th = threading.Thread(target=sampler, daemon=True)
    th.start()
    t0 = time.perf_counter()
    try:
        result = create_stats(path, **options)
    finally:
        elapsed = time.perf_counter() - t0
        stop.set()
        th.join(timeout=0.2)
    try:
        rss = proc.memory_info().rss
    except psutil.Error:
        logger.debug("final rss sample failed", exc_info=True)
    else:
        if rss > peak_rss:
            peak_rss = rss
    return elapsed, (peak_rss if peak_rss else None), result

# ---- Output ----
def print_stats(result: StatsResult, out=None):
    out = out or sys.stdout
    def pr(label: str, value):
        print(f"    {label.ljust(44)}{value}", file=out)
    pr("Total number of integers:", f"{result.total_count:,}")
    pr("Mean value of all integers (3 decimal places):", result.mean)
    pr("Highest number of integers in a single line:", result.max_per_line)
    modes = ", ".join(str(m) for m in result.sorted_modes()) or "None"
    pr("Most common integer(s):", modes)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="csvint-stats", description="Statistics for the integers of a csv text file")
    ap.add_argument("file", help="CSV path")
    ap.add_argument("--delimiter", default=",", help="Token delimiter (default ',')")
    ap.add_argument("--quote", default='"', help="Character stripped from every line before splitting ('' disables)")
    ap.add_argument("--encoding", default="utf-8", help="File encoding (default utf-8)")
    ap.add_argument("--json", action="store_true", help="Emit the statistics as JSON")
    ap.add_argument("--measure", action="store_true", help="Report elapsed time and peak RSS of the run on stderr")
    ap.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level (default WARNING)")
    return ap

def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if not args.delimiter:
        ap.error("--delimiter must not be empty")
    logging.basicConfig(level=args.log_level, stream=sys.stderr,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    options = dict(delimiter=args.delimiter, quote=args.quote, encoding=args.encoding)
    if not args.json:
        print(f"Processing csv file {args.file} ...")
    try:
        if args.measure:
            elapsed, peak, result = measure_with_memory(args.file, **options)
        else:
            result = create_stats(args.file, **options)
    except StatsError as e:
        print(f"There was a problem processing the selected file [ {args.file} ]. "
              "Full details are available in the log output.", file=sys.stderr)
        logger.error("%s", e)
        return 1
    logger.info("Stats for file %s are %s", args.file, result)
    if args.json:
        print(json.dumps(result.to_dict()))
    else:
        print_stats(result)
    if args.measure:
        print(f"Elapsed: {elapsed:.3f}s | Peak RSS: {_mb(peak)}", file=sys.stderr)
    return 0

if __name__ == "__main__":
    sys.exit(main())
