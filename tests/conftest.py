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
import matplotlib

matplotlib.use("Agg")

import pytest
import numpy as np

from wfstats import ASubRecord, FieldType


@pytest.fixture
def ramp_data():
    """Five-sample ramp 1..5 with known statistics."""
    return np.array([1.0, 2.0, 3.0, 4.0, 5.0])


@pytest.fixture
def noisy_trend_data():
    """Linear trend with white noise and a nonzero mean."""
    rng = np.random.default_rng(seed=7)
    n = 2000
    t = np.arange(n, dtype=np.float64)
    return {
        "data": 0.02 * t - 3.0 + rng.normal(scale=0.5, size=n),
        "mask": (rng.random(n) > 0.3).astype(np.int32),
        "interval": 0.01,
    }


@pytest.fixture
def stats_record(ramp_data):
    """A host record wired for the ramp, with VALL typed as LONG."""
    rec = ASubRecord("TEST:WFS")
    rec.set_input("a", ramp_data, FieldType.DOUBLE)
    rec.set_input("b", 5, FieldType.LONG)
    rec.set_input("c", 0, FieldType.LONG)
    rec.set_output_type("l", FieldType.LONG)
    return rec
