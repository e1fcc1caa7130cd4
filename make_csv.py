#!/usr/bin/env python3
import random, sys
from pathlib import Path

# Usage: python make_csv.py out.csv rows max_per_line quote_rate seed
# Example: python make_csv.py /tmp/ints_1m.csv 1_000_000 12 0.25 1337

def write_int_csv(path, rows: int, max_per_line: int, quote_rate: float, seed: int,
                  low: int = -1000, high: int = 1000) -> int:
    """Write ``rows`` lines of 0..max_per_line integers; returns the integer count.

    Every token draws its quote decision even when quote_rate is 0, so files
    sharing a seed hold the same integers whatever their quote_rate.
    """
    random.seed(seed)
    rr = random.random
    ri = random.randint
    written = 0
    p = Path(path)
    with p.open("w", newline="") as f:
        for _ in range(rows):
            tokens = []
            for _ in range(ri(0, max_per_line)):
                value = ri(low, high)
                if rr() < quote_rate:
                    tokens.append(f'"{value}"')
                else:
                    tokens.append(str(value))
            written += len(tokens)
            f.write(",".join(tokens) + "\n")
    return written

def main():
    if len(sys.argv) != 6:
        print("Usage: python make_csv.py out.csv rows max_per_line quote_rate seed", file=sys.stderr)
        sys.exit(2)
    out, rows, max_per_line, quote_rate, seed = (
        sys.argv[1], int(sys.argv[2].replace('_','')), int(sys.argv[3]),
        float(sys.argv[4]), int(sys.argv[5])
    )
    n = write_int_csv(out, rows, max_per_line, quote_rate, seed)
    print(f"{out}: {rows:,} lines, {n:,} integers")

if __name__ == "__main__":
    main()
