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
Exceptions raised by the waveform statistics kernel.

All three failure kinds are fatal to the current invocation. The Python API
raises them; the host routines in `wfstats.subroutines` turn them into a
nonzero status and a single diagnostic line.
"""

__all__ = [
    "WaveformStatisticsError",
    "TypeContractViolation",
    "InvalidRange",
    "EmptyAfterMask",
]


class WaveformStatisticsError(Exception):
    """Base class for all kernel failures."""


class TypeContractViolation(WaveformStatisticsError, TypeError):
    """A required input field is advertised with the wrong type."""


class InvalidRange(WaveformStatisticsError, ValueError):
    """
    The selection window is empty.

    Raised when ``min(n_elements - offset, requested_size) < 1``, or when the
    offset points before the start of the buffer.
    """

    def __init__(self, n_elements: int, offset: int, requested_size: int):
        self.n_elements = int(n_elements)
        self.offset = int(offset)
        self.requested_size = int(requested_size)
        super().__init__(
            f"size, min of (noa={self.n_elements} - offset={self.offset}, "
            f"requested={self.requested_size}), must be at least 1"
        )


class EmptyAfterMask(WaveformStatisticsError, ValueError):
    """Every sample in the selection window is masked out."""

    def __init__(self, offset: int, size: int):
        self.offset = int(offset)
        self.size = int(size)
        super().__init__(
            f"at least one element must be included "
            f"(all {self.size} elements from offset {self.offset} are masked out)"
        )
