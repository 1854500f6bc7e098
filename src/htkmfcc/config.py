# Copyright 2021 Sean Robertson

# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Package constants used throughout htkmfcc

The ``DEFAULT_*`` values are the HTK settings the package is tuned to reproduce.
"""

from typing import Tuple

__all__ = [
    "DEFAULT_FRAME_LENGTH_MS",
    "DEFAULT_FRAME_SHIFT_MS",
    "DEFAULT_FREQ_RANGE",
    "DEFAULT_LIFTER",
    "DEFAULT_NUM_CEPS",
    "DEFAULT_NUM_FILTS",
    "DEFAULT_PREEMPH_COEFF",
    "DEFAULT_WINDOW",
    "LOG_FLOOR_VALUE",
    "USE_FFTPACK",
]


USE_FFTPACK = False
"""bool : Whether to use :mod:`scipy.fftpack`

The scipy implementation of the FFT can be much faster than the numpy one. This is set
automatically to :obj:`True` if :mod:`scipy.fftpack` can be imported. It can be set to
:obj:`False` to use the numpy implementation.

:meta hide-value:
"""
try:
    from scipy import fftpack  # noqa: F401

    USE_FFTPACK = True
except ImportError:
    pass

LOG_FLOOR_VALUE = 1e-5
"""float : Value used as floor when taking log in computations"""

DEFAULT_FRAME_LENGTH_MS = 25.0
"""float : Analysis frame duration, in milliseconds"""

DEFAULT_FRAME_SHIFT_MS = 10.0
"""float : Analysis frame shift, in milliseconds"""

DEFAULT_PREEMPH_COEFF = 0.97
"""float : First-order preemphasis coefficient"""

DEFAULT_WINDOW = "hamming"
"""str : Alias of the analysis window"""

DEFAULT_FREQ_RANGE: Tuple[float, float] = (300.0, 3700.0)
"""tuple : Lower and upper edges of the filter bank, in Hertz"""

DEFAULT_NUM_FILTS = 20
"""int : Number of triangular filters in the mel filter bank"""

DEFAULT_NUM_CEPS = 13
"""int : Number of cepstral coefficients, including the 0th"""

DEFAULT_LIFTER = 22
"""int : Sinusoidal cepstral lifter parameter"""
