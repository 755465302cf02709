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
In-memory model of an aSub-style host record.

A record carries up to five input fields ``a..e``, each a buffer with an
element count (``noa..noe``) and a type tag (``fta..fte``), and twelve output
fields ``vala..vall`` with type tags ``ftva..ftvl``. Routines look at the
type tags to decide how (and whether) to read or write each field.
"""
from enum import IntEnum
from typing import Optional, Union

import numpy as np

from .registry import lookup_function


INPUT_LETTERS = "abcde"
OUTPUT_LETTERS = "abcdefghijkl"


class FieldType(IntEnum):
    """Field type menu of the host record, in the host's order."""
    STRING = 0
    CHAR = 1
    UCHAR = 2
    SHORT = 3
    USHORT = 4
    LONG = 5
    ULONG = 6
    INT64 = 7
    UINT64 = 8
    FLOAT = 9
    DOUBLE = 10
    ENUM = 11


_DTYPES = {
    FieldType.STRING: np.dtype("S40"),
    FieldType.CHAR: np.dtype(np.int8),
    FieldType.UCHAR: np.dtype(np.uint8),
    FieldType.SHORT: np.dtype(np.int16),
    FieldType.USHORT: np.dtype(np.uint16),
    FieldType.LONG: np.dtype(np.int32),
    FieldType.ULONG: np.dtype(np.uint32),
    FieldType.INT64: np.dtype(np.int64),
    FieldType.UINT64: np.dtype(np.uint64),
    FieldType.FLOAT: np.dtype(np.float32),
    FieldType.DOUBLE: np.dtype(np.float64),
    FieldType.ENUM: np.dtype(np.uint16),
}


def field_dtype(ftype: FieldType) -> np.dtype:
    """NumPy dtype of a buffer holding values of type `ftype`."""
    return _DTYPES[FieldType(ftype)]


class ASubRecord:
    """
    A host record with typed input and output buffers.

    All fields default to DOUBLE with room for one element, as on a freshly
    loaded record. `inam` and `snam` name the init and process routines,
    which are looked up in the function registry.
    """

    def __init__(
        self,
        name: str,
        *,
        inam: Optional[str] = "Waveform_Statistics_Init",
        snam: Optional[str] = "Waveform_Statistics_Process",
    ):
        self.name = name
        self.inam = inam
        self.snam = snam
        for letter in INPUT_LETTERS:
            self._alloc_input(letter, FieldType.DOUBLE, 1)
        for letter in OUTPUT_LETTERS:
            self.set_output_type(letter, FieldType.DOUBLE)

    def _alloc_input(self, letter: str, ftype: FieldType, nelm: int):
        setattr(self, f"ft{letter}", FieldType(ftype))
        setattr(self, letter, np.zeros(max(1, int(nelm)), dtype=field_dtype(ftype)))
        setattr(self, f"no{letter}", 1)

    def set_input(
        self,
        letter: str,
        value: Union[float, int, np.ndarray, list],
        ftype: Optional[FieldType] = None,
    ):
        """
        Stores `value` in input field `letter` and sets its element count.

        If `ftype` is given the field is retyped first; otherwise the value
        is converted to the field's current type.
        """
        letter = letter.lower()
        if letter not in INPUT_LETTERS:
            raise ValueError(f"Unknown input field '{letter}'.")
        if ftype is None:
            ftype = getattr(self, f"ft{letter}")
        values = np.atleast_1d(np.asarray(value))
        if values.ndim != 1:
            raise ValueError(f"Input field '{letter}' takes scalars or 1D arrays.")
        self._alloc_input(letter, ftype, values.size)
        buf = getattr(self, letter)
        buf[:values.size] = values.astype(buf.dtype)
        setattr(self, f"no{letter}", int(values.size))

    def set_output_type(self, letter: str, ftype: FieldType):
        """Retypes output field `letter`, resetting its value to zero."""
        letter = letter.lower()
        if letter not in OUTPUT_LETTERS:
            raise ValueError(f"Unknown output field 'val{letter}'.")
        setattr(self, f"ftv{letter}", FieldType(ftype))
        setattr(self, f"val{letter}", np.zeros(1, dtype=field_dtype(ftype)))

    def get_output(self, letter: str):
        """Current scalar value of output field `letter`."""
        return getattr(self, f"val{letter.lower()}")[0]

    def init(self) -> int:
        """Calls the registered init routine, if any; returns its status."""
        if not self.inam:
            return 0
        return lookup_function(self.inam)(self)

    def process(self) -> int:
        """Calls the registered process routine; returns its status."""
        if not self.snam:
            raise RuntimeError(f"Record {self.name} has no process routine (snam).")
        return lookup_function(self.snam)(self)
