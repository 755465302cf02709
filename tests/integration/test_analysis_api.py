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
import logging

import pytest
from pytest import approx

import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from matplotlib.axes import Axes

from wfstats import (
    compute_statistics,
    WaveformStatistics,
    StatisticsResult,
    Statistics,
    InvalidRange,
    EmptyAfterMask,
    window_statistics,
)


@pytest.mark.parametrize("use_numba", [True, False], ids=["numba", "numpy"])
def test_compute_statistics_matches_kernel(noisy_trend_data, use_numba):
    p = noisy_trend_data
    result = compute_statistics(
        p["data"], offset=10, size=1200, interval=p["interval"], mask=p["mask"],
        use_numba=use_numba,
    )
    ref = window_statistics(p["data"], 1200, 10, interval=p["interval"], mask=p["mask"])

    assert isinstance(result, StatisticsResult)
    assert isinstance(result.stats, Statistics)
    np.testing.assert_allclose(result.stats, ref, rtol=1e-10, atol=1e-12)
    assert result.count == ref.count
    assert result.slope == approx(ref.slope)


def test_defaults_select_whole_buffer(ramp_data):
    analyzer = WaveformStatistics(ramp_data)
    assert analyzer.config["size"] == 5
    assert analyzer.config["interval"] == 1.0
    assert analyzer.config["mask_is_integer"] is False

    result = analyzer.compute()
    assert result.mean == approx(3.0)
    assert result.intercept == approx(5.0)
    # repeated computes are independent
    assert analyzer.compute().as_dict() == result.as_dict()


def test_size_is_clipped(ramp_data):
    result = compute_statistics(ramp_data, offset=3, size=100)
    assert result.config["size"] == 2
    assert result.config["requested_size"] == 100
    assert result.count == 2
    assert result.median == 5.0


def test_as_dict_and_dataframe(ramp_data):
    result = compute_statistics(ramp_data, offset=1)
    d = result.as_dict()
    assert list(d) == list(Statistics._fields)

    df = result.to_dataframe()
    assert isinstance(df, pd.DataFrame)
    assert df.shape == (1, 12)
    assert df.index.name == "offset"
    assert df.index[0] == 1
    assert df["count"].dtype == np.int32
    assert df.loc[1, "mean"] == approx(3.5)


def test_fit_line(ramp_data):
    result = compute_statistics(ramp_data, interval=0.5)
    x, y = result.fit_line()
    np.testing.assert_allclose(x, [-2.0, -1.5, -1.0, -0.5, 0.0])
    np.testing.assert_allclose(y, ramp_data)


def test_plot(ramp_data):
    result = compute_statistics(ramp_data, mask=np.array([1, 1, 0, 1, 1]))
    fig, ax = result.plot()
    assert isinstance(fig, Figure)
    assert isinstance(ax, Axes)

    fig2, ax2 = result.plot(ax=ax, fit=False, band=False)
    assert ax2 is ax
    assert fig2 is fig


def test_unknown_attribute(ramp_data):
    result = compute_statistics(ramp_data)
    with pytest.raises(AttributeError):
        result.kurtosis
    assert "pop_stddev" in dir(result)
    assert "count=5" in repr(result)


def test_repeated_computes_with_inplace_median(ramp_data):
    analyzer = WaveformStatistics(ramp_data, mask=[0, 1, 0, 1, 1], inplace_median=True)
    first = analyzer.compute()
    second = analyzer.compute()

    assert second.as_dict() == first.as_dict()
    assert (first.min, first.median, first.count) == (2.0, 4.0, 3)
    assert first.mean == approx(11.0 / 3.0)
    # the caller's buffer still carries the compaction
    np.testing.assert_array_equal(ramp_data, [2.0, 4.0, 5.0, 4.0, 5.0])


def test_inplace_median_with_offset(ramp_data):
    analyzer = WaveformStatistics(
        ramp_data, offset=1, mask=[1, 1, 0, 1, 0], inplace_median=True
    )
    ref = window_statistics([1.0, 2.0, 3.0, 4.0, 5.0], 4, 1, mask=[1, 1, 0, 1, 0])
    for _ in range(2):
        np.testing.assert_allclose(analyzer.compute().stats, ref, rtol=1e-12)
    np.testing.assert_array_equal(ramp_data[:2], [2.0, 4.0])


def test_later_buffer_changes_do_not_leak(ramp_data):
    analyzer = WaveformStatistics(ramp_data)
    ramp_data[:] = 0.0
    assert analyzer.compute().mean == approx(3.0)


def test_inplace_median_option(ramp_data):
    result = compute_statistics(ramp_data, mask=[0, 1, 0, 1, 1], inplace_median=True)
    assert result.median == 4.0
    np.testing.assert_array_equal(ramp_data[:3], [2.0, 4.0, 5.0])
    # the result keeps the window as it was
    x, _ = result.fit_line()
    assert x.size == 5


@pytest.mark.parametrize(
    "kwargs, exc",
    [
        ({"offset": 5}, InvalidRange),
        ({"size": 0}, InvalidRange),
        ({"interval": np.nan}, ValueError),
        ({"interval": np.inf}, ValueError),
        ({"mask": np.zeros((2, 2), dtype=int)}, ValueError),
    ],
)
def test_validation(ramp_data, kwargs, exc):
    with pytest.raises(exc):
        WaveformStatistics(ramp_data, **kwargs)


def test_bad_data_shapes():
    with pytest.raises(ValueError):
        WaveformStatistics(np.zeros((3, 3)))
    with pytest.raises(ValueError):
        WaveformStatistics(np.array([]))


def test_empty_after_mask_at_compute(ramp_data):
    analyzer = WaveformStatistics(ramp_data, mask=np.zeros(5, dtype=np.int32))
    with pytest.raises(EmptyAfterMask):
        analyzer.compute()


def test_float_mask_warns(ramp_data, caplog):
    with caplog.at_level(logging.WARNING):
        result = compute_statistics(ramp_data, mask=np.zeros(5))
    assert "not an integer mask" in caplog.text
    assert result.count == 5


def test_non_finite_warns(caplog):
    with caplog.at_level(logging.WARNING):
        compute_statistics(np.array([1.0, np.nan, 2.0]), offset=2)
        assert "NaN/Inf" not in caplog.text
        compute_statistics(np.array([1.0, np.nan, 2.0]))
    assert "NaN/Inf" in caplog.text


def test_verbose_logging(ramp_data, caplog):
    with caplog.at_level(logging.INFO):
        compute_statistics(ramp_data, verbose=True)
    assert "WaveformStatistics: N=5" in caplog.text
    assert "Computed statistics over 5/5 samples" in caplog.text
