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
Waveform statistics routines for aSub-style host records.

Field usage:
    A: DOUBLE array - input values
    B: LONG - requested data size, must be > 0
    C: LONG - data offset, must be >= 0 and < NOA
    D: DOUBLE - sample interval; 1.0 if the field is not DOUBLE or is zero
    E: LONG array - mask; LSB defines the mask value, other bits ignored

The number of elements processed is min(NOA - C, B). The offset applies to
both A and E. If E is not LONG every element is used; elements at or beyond
NOE are used too, so an unset mask means "use everything".

Outputs (each written only when its type field matches):
    VALA mean, VALB min, VALC max, VALD sample std. dev. (/(N-1)), VALE sum,
    VALF median, VALG fit slope, VALH fit intercept, VALI max |value|,
    VALJ rms, VALK population std. dev. (/N) - all DOUBLE
    VALL number of elements used - LONG
"""
import logging

import numpy as np

from ._config import DIAGNOSTIC_PREFIX
from .core import Statistics, window_statistics
from .errors import WaveformStatisticsError, TypeContractViolation
from .record import FieldType
from .registry import register_function


# slot -> (output field letter, required type)
OUTPUT_SLOTS = (
    ("mean", "a", FieldType.DOUBLE),
    ("min", "b", FieldType.DOUBLE),
    ("max", "c", FieldType.DOUBLE),
    ("sample_stddev", "d", FieldType.DOUBLE),
    ("sum", "e", FieldType.DOUBLE),
    ("median", "f", FieldType.DOUBLE),
    ("slope", "g", FieldType.DOUBLE),
    ("intercept", "h", FieldType.DOUBLE),
    ("max_abs", "i", FieldType.DOUBLE),
    ("rms", "j", FieldType.DOUBLE),
    ("pop_stddev", "k", FieldType.DOUBLE),
    ("count", "l", FieldType.LONG),
)


def check_input_types(precord):
    """Raises TypeContractViolation unless FTA/FTB/FTC are DOUBLE/LONG/LONG."""
    if (precord.fta != FieldType.DOUBLE
            or precord.ftb != FieldType.LONG
            or precord.ftc != FieldType.LONG):
        raise TypeContractViolation(
            f"incorrect FTA, FTB and/or FTC type specified "
            f"(got {FieldType(precord.fta).name}, {FieldType(precord.ftb).name}, "
            f"{FieldType(precord.ftc).name}; need DOUBLE, LONG, LONG)"
        )


def write_outputs(precord, stats: Statistics) -> int:
    """
    Writes each statistic whose output field has the required type.

    Returns the number of fields written.
    """
    written = 0
    for slot, letter, ftype in OUTPUT_SLOTS:
        if getattr(precord, f"ftv{letter}") != ftype:
            continue
        getattr(precord, f"val{letter}")[0] = getattr(stats, slot)
        written += 1
    return written


@register_function(name="Waveform_Statistics_Init")
def waveform_statistics_init(precord) -> int:
    """Placeholder init routine; nothing to prepare."""
    return 0


@register_function(name="Waveform_Statistics_Process")
def waveform_statistics_process(precord) -> int:
    """
    Computes the waveform statistics of `precord` and writes its outputs.

    Returns 0 on success. On failure logs one diagnostic line, leaves every
    output untouched and returns -1.
    """
    try:
        check_input_types(precord)

        number_elements = int(precord.noa)
        requested_size = int(precord.b[0])
        offset = int(precord.c[0])

        if precord.ftd == FieldType.DOUBLE:
            interval = float(precord.d[0])
        else:
            interval = None

        if precord.fte == FieldType.LONG:
            mask = precord.e[:int(precord.noe)]
            mask_is_integer = True
        else:
            mask = None
            mask_is_integer = False

        samples = precord.a[:number_elements]
        if 0 <= offset < number_elements:
            window = samples[offset:offset + max(requested_size, 0)]
            if not np.all(np.isfinite(window)):
                logging.warning(
                    f"{DIAGNOSTIC_PREFIX}: ({precord.name}) input contains NaN/Inf; "
                    f"results may be undefined."
                )

        stats = window_statistics(
            samples,
            requested_size,
            offset,
            interval=interval,
            mask=mask,
            mask_is_integer=mask_is_integer,
        )
    except WaveformStatisticsError as exc:
        logging.error(f"{DIAGNOSTIC_PREFIX}: ({precord.name}) {exc}")
        return -1

    write_outputs(precord, stats)
    return 0
