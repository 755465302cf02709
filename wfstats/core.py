# BSD 3-Clause License

# Copyright (c) 2025, Miguel Dovale

# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:

# 1. Redistributions of source code must retain the above copyright notice, this
#    list of conditions and the following disclaimer.

# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.

# 3. Neither the name of the copyright holder nor the names of its
#    contributors may be used to endorse or promote products derived from
#    this software without specific prior written permission.

# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
# SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
# OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

# This software may be subject to U.S. export control laws. By accepting this
# software, the user agrees to comply with all applicable U.S. export laws and
# regulations. User has the responsibility to obtain export licenses, or other
# export authority as may be required before exporting such information to
# foreign countries or providing access to foreign persons.
#
"""
core.py - single-pass waveform statistics kernels
-----------------------------------------------------------------------------
Design notes
- Control flow is Selector -> Accumulator -> Finalizer, once per call, with no
  state carried between calls.
- The abscissa of the least-squares fit is shifted so that the last selected
  index sits at x = 0; the intercept is the fitted value at that sample.
- The accumulator returns the "running sums" 9-tuple:
    (count, sum_a, sum_aa, min_a, max_a, max_abs, sum_x, sum_xx, sum_xa)
  from which every reported statistic is derived.
- The JIT kernel and the pure-NumPy kernel agree to rounding; the NumPy one
  is the readable reference and is used by the tests as a cross-check.
-----------------------------------------------------------------------------
"""
__all__ = [
    "Selection",
    "WindowSums",
    "Statistics",
    "select_window",
    "resolve_interval",
    "accumulate",
    "window_median",
    "finalize",
    "window_statistics",
    # helpers
    "_coerce_mask",
    "_in_use_flags_np",
    # jitted helpers / kernels
    "_in_use",
    "_accumulate_nb",
    # numpy fallback
    "_accumulate_np",
]

import math
from typing import NamedTuple, Optional, Tuple

import numpy as np
from numba import njit

from ._config import DEFAULT_INTERVAL
from .errors import InvalidRange, EmptyAfterMask


_NO_MASK = np.zeros(0, dtype=np.int32)


# Typed containers -------------------------------------------------------------

class Selection(NamedTuple):
    """
    Effective index window ``[offset, offset + size)`` and its mask.

    offset : int
        First selected sample index.
    size : int
        Number of selected indices (>= 1).
    mask : (M,) ndarray of int32
        Mask bits (LSB only) indexed by absolute sample index. Empty when
        no integer mask was supplied.
    mask_is_integer : bool
        False means every selected sample is in use.
    """
    offset: int
    size: int
    mask: np.ndarray
    mask_is_integer: bool

    @property
    def last_point(self) -> int:
        return self.offset + self.size - 1

    def in_use(self, j: int) -> bool:
        """The in-use predicate for absolute index `j`."""
        return bool(_in_use(j, self.mask, self.mask_is_integer))

    def in_use_flags(self) -> np.ndarray:
        """Boolean array over the window, True where the sample is in use."""
        return _in_use_flags_np(self.offset, self.size, self.mask, self.mask_is_integer)


class WindowSums(NamedTuple):
    """Running sums collected by the accumulator over the in-use samples."""
    count: int
    sum_a: float
    sum_aa: float
    min_a: float
    max_a: float
    max_abs: float
    sum_x: float
    sum_xx: float
    sum_xa: float


class Statistics(NamedTuple):
    """
    The 12 reported statistics, in host output-slot order (VALA..VALL).
    """
    mean: float
    min: float
    max: float
    sample_stddev: float
    sum: float
    median: float
    slope: float
    intercept: float
    max_abs: float
    rms: float
    pop_stddev: float
    count: int


# Selector ---------------------------------------------------------------------

def _coerce_mask(mask, mask_is_integer: Optional[bool]) -> Tuple[np.ndarray, bool]:
    """
    Normalize a user mask to an int32 LSB array plus the integer-type flag.

    When `mask_is_integer` is None it is inferred from the dtype: integer and
    boolean masks count as integer masks, anything else does not.
    """
    if mask is None:
        return _NO_MASK, False
    m = np.asarray(mask)
    if m.ndim != 1:
        raise ValueError(f"mask must be 1D, got shape {m.shape}.")
    if mask_is_integer is None:
        mask_is_integer = m.dtype.kind in "biu"
    if not mask_is_integer:
        return _NO_MASK, False
    return np.bitwise_and(m.astype(np.int64, copy=False), 1).astype(np.int32), True


def select_window(
    n_elements: int,
    requested_size: int,
    offset: int = 0,
    mask=None,
    mask_is_integer: Optional[bool] = None,
) -> Selection:
    """
    Resolve the selection window.

    Parameters
    ----------
    n_elements : int
        Number of valid samples in the buffer (N).
    requested_size : int
        Requested number of samples.
    offset : int
        Index of the first sample; applies to the mask as well.
    mask : array-like, optional
        Per-sample mask; only the least significant bit is looked at.
    mask_is_integer : bool, optional
        Whether the mask is an integer mask. If False the mask is ignored.

    Returns
    -------
    Selection

    Raises
    ------
    InvalidRange
        If ``min(n_elements - offset, requested_size) < 1`` or ``offset < 0``.
    """
    n_elements = int(n_elements)
    requested_size = int(requested_size)
    offset = int(offset)

    size = min(n_elements - offset, requested_size)
    if size < 1 or offset < 0:
        raise InvalidRange(n_elements, offset, requested_size)

    m, is_int = _coerce_mask(mask, mask_is_integer)
    return Selection(offset, size, m, is_int)


def resolve_interval(interval: Optional[float]) -> float:
    """Sample interval, with None and 0.0 both meaning the default of 1.0."""
    if interval is None:
        return DEFAULT_INTERVAL
    interval = float(interval)
    if interval == 0.0:
        return DEFAULT_INTERVAL
    return interval


def _in_use_flags_np(offset: int, size: int, mask: np.ndarray, mask_is_integer: bool) -> np.ndarray:
    flags = np.ones(size, dtype=bool)
    if not mask_is_integer:
        return flags
    j = np.arange(offset, offset + size)
    covered = j < mask.shape[0]
    flags[covered] = (mask[j[covered]] & 1) == 1
    return flags


# Accumulator (JIT) ------------------------------------------------------------

@njit(cache=True)
def _in_use(j, mask, mask_is_integer):
    """
    True unless the mask is an integer mask that covers `j` with its LSB clear.
    """
    return (not mask_is_integer) or j >= mask.shape[0] or (mask[j] & 1) == 1


# No fastmath: the min/max seeds are infinities.
@njit(cache=True)
def _accumulate_nb(samples, offset, size, interval, mask, mask_is_integer):
    """
    Single forward pass over the window collecting the running sums.

    Parameters
    ----------
    samples : (N,) ndarray
        Sample buffer (float64).
    offset, size : int
        Selection window.
    interval : float
        Sample interval used to scale the fit abscissa.
    mask : (M,) ndarray
        int32 mask, LSB significant.
    mask_is_integer : bool
        Whether the mask applies at all.

    Returns
    -------
    count, sum_a, sum_aa, min_a, max_a, max_abs, sum_x, sum_xx, sum_xa
    """
    last_point = offset + size - 1

    count = 0
    sum_a = 0.0
    sum_aa = 0.0
    min_a = np.inf
    max_a = -np.inf
    max_abs = 0.0
    sum_x = 0.0
    sum_xx = 0.0
    sum_xa = 0.0

    for j in range(offset, offset + size):
        if not _in_use(j, mask, mask_is_integer):
            continue
        a = samples[j]

        sum_a += a
        sum_aa += a * a
        min_a = min(min_a, a)
        max_a = max(max_a, a)
        max_abs = max(max_abs, abs(a))

        # a plays the role of y
        x = (j - last_point) * interval
        sum_x += x
        sum_xx += x * x
        sum_xa += x * a

        count += 1

    return count, sum_a, sum_aa, min_a, max_a, max_abs, sum_x, sum_xx, sum_xa


# Pure-NumPy fallback ----------------------------------------------------------

def _accumulate_np(samples, offset, size, interval, mask, mask_is_integer):
    """
    NumPy fallback: vectorized running sums (matches the JIT kernel to rounding).
    """
    last_point = offset + size - 1
    flags = _in_use_flags_np(offset, size, mask, mask_is_integer)
    j = np.arange(offset, offset + size)[flags]
    if j.size == 0:
        return 0, 0.0, 0.0, math.inf, -math.inf, 0.0, 0.0, 0.0, 0.0

    a = samples[j]
    x = (j - last_point) * float(interval)
    return (
        int(j.size),
        float(np.sum(a)),
        float(np.dot(a, a)),
        float(np.min(a)),
        float(np.max(a)),
        float(np.max(np.abs(a))),
        float(np.sum(x)),
        float(np.dot(x, x)),
        float(np.dot(x, a)),
    )


def accumulate(
    samples: np.ndarray,
    selection: Selection,
    interval: float = DEFAULT_INTERVAL,
    use_numba: bool = True,
) -> WindowSums:
    """
    Run the accumulator over `selection`.

    Raises
    ------
    EmptyAfterMask
        If no sample of the window is in use.
    """
    kernel = _accumulate_nb if use_numba else _accumulate_np
    out = kernel(
        samples,
        selection.offset,
        selection.size,
        float(interval),
        selection.mask,
        selection.mask_is_integer,
    )
    sums = WindowSums(int(out[0]), *(float(v) for v in out[1:]))
    if sums.count < 1:
        raise EmptyAfterMask(selection.offset, selection.size)
    return sums


# Finalizer --------------------------------------------------------------------

def window_median(
    samples: np.ndarray,
    selection: Selection,
    count: int,
    inplace: bool = False,
) -> float:
    """
    Median of the in-use samples: ``sorted[count // 2]``.

    For an even count this is the upper of the two middle values; the two
    are not averaged.

    With ``inplace=True`` and at least one sample masked out, the in-use
    values are first compacted into ``samples[0:count]``, overwriting the
    caller's buffer. Otherwise a scratch array is used and `samples` is left
    untouched.
    """
    lo = selection.offset
    hi = selection.offset + selection.size
    if count == selection.size:
        work = np.sort(samples[lo:hi])
    else:
        kept = samples[lo:hi][selection.in_use_flags()]
        if inplace:
            samples[:count] = kept
            work = np.sort(samples[:count])
        else:
            work = np.sort(kept)
    return float(work[count // 2])


def finalize(sums: WindowSums, median: float) -> Statistics:
    """
    Derive the reported statistics from the running sums.

    The variance uses E[a^2] - E[a]^2, clamped at zero. A degenerate fit
    (one in-use sample, so the normal-equation denominator vanishes) reports
    the horizontal line through the data: slope 0, intercept equal to the mean.
    """
    n = sums.count
    mean = sums.sum_a / n
    mean = min(max(mean, sums.min_a), sums.max_a)
    mean_sq = sums.sum_aa / n

    pop_variance = max(mean_sq - mean * mean, 0.0)
    if n >= 2:
        sam_variance = (n * pop_variance) / (n - 1.0)
    else:
        sam_variance = 0.0

    delta = n * sums.sum_xx - sums.sum_x * sums.sum_x
    if delta == 0.0:
        slope = 0.0
        intercept = mean
    else:
        slope = (n * sums.sum_xa - sums.sum_x * sums.sum_a) / delta
        intercept = (sums.sum_a * sums.sum_xx - sums.sum_x * sums.sum_xa) / delta

    return Statistics(
        mean=mean,
        min=sums.min_a,
        max=sums.max_a,
        sample_stddev=math.sqrt(sam_variance),
        sum=sums.sum_a,
        median=float(median),
        slope=slope,
        intercept=intercept,
        max_abs=sums.max_abs,
        rms=math.sqrt(mean_sq),
        pop_stddev=math.sqrt(pop_variance),
        count=n,
    )


# Kernel entry -----------------------------------------------------------------

def window_statistics(
    samples,
    requested_size: int,
    offset: int = 0,
    interval: Optional[float] = None,
    mask=None,
    mask_is_integer: Optional[bool] = None,
    inplace_median: bool = False,
    use_numba: bool = True,
) -> Statistics:
    """
    Compute the full statistics bundle over one selection window.

    Parameters
    ----------
    samples : array-like
        1D sample buffer. A float64 ndarray is used as is (and is the buffer
        rearranged by `inplace_median`); anything else is converted.
    requested_size : int
        Requested number of samples; clipped to ``len(samples) - offset``.
    offset : int, optional
        First sample index. Defaults to 0.
    interval : float, optional
        Sample interval; None or 0.0 means 1.0.
    mask : array-like, optional
        Per-sample mask, LSB significant, indexed by absolute sample index.
        Indices beyond its length are in use.
    mask_is_integer : bool, optional
        Override of the integer-mask detection; False ignores the mask.
    inplace_median : bool, optional
        Compact in-use samples into the front of `samples` for the median.
    use_numba : bool, optional
        Use the JIT accumulator (default) or the NumPy one.

    Returns
    -------
    Statistics

    Raises
    ------
    InvalidRange, EmptyAfterMask
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim != 1:
        raise ValueError(f"samples must be 1D, got shape {samples.shape}.")

    selection = select_window(samples.shape[0], requested_size, offset, mask, mask_is_integer)
    sums = accumulate(samples, selection, resolve_interval(interval), use_numba)
    median = window_median(samples, selection, sums.count, inplace=inplace_median)
    return finalize(sums, median)
