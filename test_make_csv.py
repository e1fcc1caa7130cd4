from collections import Counter
from fractions import Fraction
import math

from csvint_stats import create_stats
from make_csv import write_int_csv

def test_generated_file_matches_direct_computation(tmp_path):
    path = tmp_path / "gen.csv"
    n = write_int_csv(path, rows=200, max_per_line=9, quote_rate=0.3, seed=7)
    lines = [[int(t.strip('"')) for t in ln.split(",") if t] for ln in path.read_text().splitlines()]
    values = [v for ln in lines for v in ln]
    assert n == len(values)

    stats = create_stats(str(path))
    counts = Counter(values)
    top = max(counts.values())
    assert stats.total_count == len(values)
    assert stats.max_per_line == max(len(ln) for ln in lines)
    assert stats.modes == {v for v, c in counts.items() if c == top}
    assert Fraction(stats.mean) == Fraction(math.ceil(Fraction(sum(values) * 1000, len(values))), 1000)

def test_quote_rate_does_not_change_stats(tmp_path):
    plain, quoted = tmp_path / "plain.csv", tmp_path / "quoted.csv"
    write_int_csv(plain, rows=100, max_per_line=6, quote_rate=0.0, seed=1337)
    write_int_csv(quoted, rows=100, max_per_line=6, quote_rate=1.0, seed=1337)
    assert '"' not in plain.read_text()
    assert plain.read_text() != quoted.read_text()
    assert create_stats(str(plain)) == create_stats(str(quoted))
