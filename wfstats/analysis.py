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
import time
import logging
from typing import Dict, Any, Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes

from ._config import DEFAULT_INTERVAL
from .core import (
    Selection,
    Statistics,
    select_window,
    resolve_interval,
    accumulate,
    window_median,
    finalize,
)


class WaveformStatistics:
    """
    Configures and executes a waveform statistics calculation.

    Takes a 1D sample buffer and the parameters that select which samples
    take part (offset, size, mask) and how the least-squares abscissa is
    scaled (interval). The computation itself is deferred until `.compute()`
    is called, and may be repeated. The selected window is copied when the
    object is built and every call works on that copy, so calls are
    independent of each other and of later changes to `data`.
    """

    def __init__(
        self,
        data: np.ndarray,
        *,
        offset: int = 0,
        size: Optional[int] = None,
        interval: Optional[float] = DEFAULT_INTERVAL,
        mask: Optional[np.ndarray] = None,
        inplace_median: bool = False,
        use_numba: bool = True,
        verbose: bool = False,
    ):
        """
        Initializes the statistics calculation.

        Parameters
        ----------
        data : np.ndarray
            Input samples, 1D. A float64 array is used without copying.
        offset : int, optional
            Index of the first sample to use. Defaults to 0.
        size : int, optional
            Number of samples to use, clipped to the end of `data`. None
            selects everything from `offset` onwards. Defaults to None.
        interval : float, optional
            Sample interval, used to scale the slope. None or 0.0 mean 1.0.
            Defaults to 1.0.
        mask : np.ndarray, optional
            Integer or boolean per-sample mask indexed like `data`; a sample
            is used when the least significant bit is set. Samples beyond the
            end of the mask are used. A floating-point mask is ignored.
            Defaults to None (all samples used).
        inplace_median : bool, optional
            If True, and the mask excludes at least one sample, the in-use
            samples are compacted into the front of `data` when computing the
            median, as a side effect on the caller's buffer. The statistics
            themselves are unaffected. Defaults to False.
        use_numba : bool, optional
            Use the JIT-compiled accumulator. Defaults to True.
        verbose : bool, optional
            If True, logs a configuration summary and timings. Defaults to False.
        """
        x = np.asarray(data, dtype=np.float64)
        if x.ndim != 1:
            raise ValueError(f"Input data must be a 1D array, got shape {x.shape}.")
        if x.size == 0:
            raise ValueError("Input data must contain at least one sample.")

        interval = resolve_interval(interval)
        if not np.isfinite(interval):
            raise ValueError(f"`interval` must be finite, got {interval!r}.")

        self.data = x
        self.nx = int(x.shape[0])
        self.verbose = bool(verbose)

        mask_is_integer = None
        if mask is not None:
            m = np.asarray(mask)
            if m.ndim != 1:
                raise ValueError(f"`mask` must be a 1D array, got shape {m.shape}.")
            if m.dtype.kind not in "biu":
                logging.warning(
                    f"Mask of dtype {m.dtype} is not an integer mask; all samples are used."
                )
                mask_is_integer = False
            mask = m

        if size is None:
            size = self.nx - int(offset)

        # Raises InvalidRange right away rather than at compute time
        self.selection: Selection = select_window(self.nx, size, offset, mask, mask_is_integer)

        self.config: Dict[str, Any] = {
            "N": self.nx,
            "offset": self.selection.offset,
            "requested_size": int(size),
            "size": self.selection.size,
            "interval": interval,
            "mask_is_integer": self.selection.mask_is_integer,
            "inplace_median": bool(inplace_median),
            "use_numba": bool(use_numba),
        }

        lo = self.selection.offset
        self._window = self.data[lo:lo + self.selection.size].copy()
        # Window and mask re-based to index 0
        self._local = Selection(
            0,
            self.selection.size,
            self.selection.mask[lo:],
            self.selection.mask_is_integer,
        )

        if not np.all(np.isfinite(self._window)):
            logging.warning("Selected samples contain NaN/Inf; results may be undefined.")

        if self.verbose:
            logging.info(
                f"WaveformStatistics: N={self.nx} | offset={self.selection.offset} | "
                f"size={self.selection.size} | interval={interval:g} | "
                f"mask={'integer' if self.selection.mask_is_integer else 'none'} | "
                f"kernel={'numba' if use_numba else 'numpy'}"
            )

    def compute(self) -> "StatisticsResult":
        """
        Runs the accumulator and finalizer over the selected window.

        Returns
        -------
        StatisticsResult

        Raises
        ------
        EmptyAfterMask
            If the mask excludes every selected sample.
        """
        t0 = time.perf_counter()
        sums = accumulate(
            self._window,
            self._local,
            self.config["interval"],
            use_numba=self.config["use_numba"],
        )
        median = window_median(self._window, self._local, sums.count)
        stats = finalize(sums, median)

        if self.config["inplace_median"] and sums.count < self.selection.size:
            self.data[:sums.count] = self._window[self._local.in_use_flags()]

        t_total = time.perf_counter() - t0

        if self.verbose:
            logging.info(
                f"Computed statistics over {stats.count}/{self.selection.size} samples "
                f"in {t_total * 1e3:.3f} ms."
            )

        return StatisticsResult(stats, self.selection, dict(self.config), self._window)


class StatisticsResult:
    """
    Container for the statistics of one waveform window.

    Each of the 12 statistics is available as an attribute (``result.mean``,
    ``result.slope``, ``result.count``, ...).

    Attributes
    ----------
    stats : Statistics
        The statistics tuple, in host output-slot order.
    selection : Selection
        The window the statistics were computed over.
    config : dict
        Resolved configuration of the calculation.
    """

    def __init__(
        self,
        stats: Statistics,
        selection: Selection,
        config: Dict[str, Any],
        window: np.ndarray,
    ):
        self.stats = stats
        self.selection = selection
        self.config = config
        # Samples of the window as selected, before any in-place compaction
        self._window = window
        self._flags = selection.in_use_flags()

    def __getattr__(self, name: str) -> Any:
        stats = self.__dict__.get("stats")
        if stats is not None and name in Statistics._fields:
            return getattr(stats, name)
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute '{name}'"
        )

    def __dir__(self):
        return sorted(set(list(super().__dir__()) + list(Statistics._fields)))

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self.stats._asdict().items())
        return f"StatisticsResult({body})"

    def as_dict(self) -> Dict[str, Any]:
        """The statistics as a plain dict, in output-slot order."""
        return dict(self.stats._asdict())

    def to_dataframe(self) -> pd.DataFrame:
        """
        Exports the statistics to a single-row pandas DataFrame.

        Returns
        -------
        pd.DataFrame
            One column per statistic, indexed by the window offset.
        """
        df = pd.DataFrame([self.as_dict()])
        df.index = pd.Index([self.selection.offset], name="offset")
        return df.astype({"count": np.int32})

    def fit_line(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Evaluates the least-squares line over the whole window.

        Returns
        -------
        x : np.ndarray
            Abscissa relative to the last selected sample (so x <= 0).
        y : np.ndarray
            Fitted values ``slope * x + intercept``.
        """
        j = np.arange(self.selection.offset, self.selection.offset + self.selection.size)
        x = (j - self.selection.last_point) * self.config["interval"]
        return x, self.stats.slope * x + self.stats.intercept

    def plot(
        self,
        *,
        ax: Optional[Axes] = None,
        fit: bool = True,
        band: bool = True,
        sigma: int = 1,
        **kwargs,
    ) -> Tuple[Figure, Axes]:
        """
        Plots the selected samples together with the fitted line.

        Parameters
        ----------
        ax : matplotlib.axes.Axes, optional
            An existing Axes object to plot on. If None, a new Figure and Axes
            are created. Defaults to None.
        fit : bool, optional
            Draw the least-squares line. Defaults to True.
        band : bool, optional
            Shade mean ± sigma sample standard deviations. Defaults to True.
        sigma : int, optional
            Width of the band in standard deviations. Defaults to 1.
        **kwargs
            Passed to the `plot` call drawing the in-use samples.

        Returns
        -------
        tuple
            The matplotlib Figure and Axes.
        """
        fig, ax1 = (ax.get_figure(), ax) if ax is not None else plt.subplots()

        x, y_fit = self.fit_line()
        used = self._flags
        ax1.plot(x[used], self._window[used], ".", label="in use", **kwargs)
        if not np.all(used):
            ax1.plot(x[~used], self._window[~used], "x", color="0.6", label="masked")
        if fit:
            ax1.plot(x, y_fit, "-", label=f"fit (m={self.stats.slope:.4g})")
        if band:
            ax1.axhline(self.stats.mean, color="0.3", lw=0.8)
            ax1.fill_between(
                x,
                self.stats.mean - sigma * self.stats.sample_stddev,
                self.stats.mean + sigma * self.stats.sample_stddev,
                alpha=0.2,
                color="0.5",
                label=f"±{sigma}σ",
            )

        ax1.set_xlabel("Time relative to last sample")
        ax1.set_ylabel("Value")
        ax1.legend()
        fig.tight_layout()
        return fig, ax1


def compute_statistics(data: np.ndarray, **kwargs) -> StatisticsResult:
    """
    Computes waveform statistics in a single call.

    Parameters
    ----------
    data : np.ndarray
        Input samples, 1D.
    **kwargs :
        Keyword arguments passed to `WaveformStatistics`: `offset`, `size`,
        `interval`, `mask`, `inplace_median`, `use_numba`, `verbose`.

    Returns
    -------
    StatisticsResult
    """
    analyzer = WaveformStatistics(data, **kwargs)
    return analyzer.compute()
