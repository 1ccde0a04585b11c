# plrkit

Tools for splitting sorted data into line segments whose prediction error
stays within a fixed bound `epsilon`. Such segmentations are the building
block of learned indexes, which map a key to its approximate position in a
sorted array.

The package has three segmentation flavours and one small data helper:

- `plrkit.optimal_plr` works on 2-D points (`Point(x, y)`) and returns
  `Segment` objects with a slope, an intercept, the integral part of the
  first `x` covered (`first_x`, also `key()`) and a running `seg_id`.
- `plrkit.keyed_plr` works on a sorted sequence of keys, using each key's
  index as its `y` value, and returns `KeySegment` objects.
- `plrkit.paraoptimal` keeps the feasible region of (slope, intercept)
  pairs explicitly and clips it point by point (`ParaoptimalPLR`,
  `FeasibleRegion`), emitting `CanonicalSegment` objects that cover
  `[first_x, last_x]`.
- `plrkit.tsvtools` drops the first (label) column from a tab-separated
  file.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

Tests are run with the `test` extra:

```
pip install ".[test]"
pytest
```

## Segmenting points

```python
from plrkit.optimal_plr import OptimalPLR, Point, make_segmentation

points = [Point(x, 2 * x + 1) for x in range(100)]
segments = OptimalPLR(epsilon=1.0).segment_data(points)

seg = segments[0]
print(seg.slope, seg.intercept, seg.key())
print(seg(10))          # predicted y at x = 10

segs = make_segmentation(len(points), 1.0, points)   # same result as above
```

Segments order by their first key and compare with plain numbers
(`seg < 5`). `translate(segments, first, last)` turns
`segments[first:last]` into points `(first_x, seg_id)`, which can be
segmented again to build an upper level.

`make_segmentation_par(n, epsilon, points, parallelism=16)` cuts the first
`n` points into `parallelism` chunks of at least 1000 points, segments each
chunk on its own and joins the lists; segment ids restart in every chunk.
Inputs shorter than 32768 points, or `parallelism=1`, are segmented in a
single pass.

## Segmenting sorted keys

```python
from plrkit.keyed_plr import KeyedOptimalPLR, make_segmentation, translate

keys = [3, 7, 12, 20, 21, 35, 40, 58, 60, 75]
segments = KeyedOptimalPLR(epsilon=2).segment_data(keys)
print([s.key() for s in segments])

# The first keys of segments [first, last) can seed an upper level.
upper_keys = translate(segments, 0, len(segments))
```

`make_segmentation(n, epsilon, data)` and
`make_segmentation_par(n, epsilon, data, parallelism=16)` behave as in
`optimal_plr`; in chunked mode the positions restart at zero in every chunk.

## Paraoptimal segmentation

```python
from plrkit.paraoptimal import make_segmentation

keys = list(range(0, 2000, 3))
canonical = make_segmentation(len(keys), 4, keys)
for cs in canonical:
    seg = cs.canonical_segment()
    print(seg.first_x, seg.last_x, seg.slope, seg.intercept)
```

`make_segmentation(n, epsilon, keys, start=0, end=None)` segments
`keys[start:end]` against their positions. At the end of a run of equal
keys the next key up (the next float for float keys) is mapped to the run's
last position, and the chunk that reaches `n` also maps the key after the
last one to `n`. `make_segmentation_par(n, epsilon, keys, parallelism=16)`
does the same chunk by chunk, moving each chunk's start past a run of equal
keys.

A `ParaoptimalPLR` can also be driven by hand: `add_point(x, y)` returns
`False` once the new point no longer fits the current segment and empties
the model; take the finished segment with `get_segment()` and add the point
again to start the next one. `reset()` forgets the current segment. A
negative `epsilon` raises `ValueError`.

## Checking the error bound

Each of the three segmentation modules has a `check_for_epsilon` function
that walks the data against a range of segments, prints what it sees, and
returns a list of `(segment index, max residual)` pairs, residuals being
measured against each item's index in the data.

## Stripping label columns from TSV files

```
plrkit-tsv INPUT.tsv OUTPUT.txt
```

Every line of the input is split on tabs; lines with at least two fields
are written without their first field, other lines are dropped. Without
arguments the command reads
`../data/UCRArchive_2018/CricketY/CricketY_TRAIN.tsv` and writes
`CricketY_output.txt`. If a file cannot be opened it prints an error and
exits with status 1. The same is available from Python as
`strip_first_column(lines)` and `convert_file(source, destination)`, which
returns the number of rows written.

## What it does not do

- There is no index structure here: the package produces segments but does
  not build a multi-level index over them or answer search queries.
- The chunked `make_segmentation_par` functions process their chunks one
  after another in the calling thread; they split the work as a parallel
  run would, but do not run it in parallel.