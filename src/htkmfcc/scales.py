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


"""Scaling functions

Scaling functions transform a scalar in the frequency domain to some other real domain
(the "scale" domain). The scaling functions should be invertible. Their primary purpose
is to place the vertices of the filters in :mod:`htkmfcc.filters`.
"""


import abc
from typing import Union

import numpy as np

from htkmfcc.alias import AliasedFactory

__all__ = [
    "MelScaling",
    "ScalingFunction",
]

Scalar = Union[float, np.ndarray]


class ScalingFunction(AliasedFactory):
    """Converts a frequency to some scale and back again

    Both directions accept either a scalar or a numpy array of frequencies.
    """

    @abc.abstractmethod
    def scale_to_hertz(self, scale: Scalar) -> Scalar:
        """Convert scale to frequency (in Hertz)"""
        pass

    @abc.abstractmethod
    def hertz_to_scale(self, hertz: Scalar) -> Scalar:
        """Convert frequency (in Hertz) to scalar"""
        pass


class MelScaling(ScalingFunction):
    r"""Psychoacoustic scaling function

    Based of the experiment in [stevens1937]_ wherein participants adjusted a second
    tone until it was half the pitch of the first. The functional approximation is the
    one used by HTK [young]_:

    .. math::

        s = 2595 \log_{10} \left(1 + \frac{f}{700} \right)

    Where :math:`s` is the scale and :math:`f` is the frequency in Hertz. Up to floating
    point error this is the same as :math:`1127 \ln(1 + f / 700)`.
    """

    aliases = {"mel", "htk"}  #:

    def scale_to_hertz(self, scale: Scalar) -> Scalar:
        return 700.0 * (np.power(10.0, np.divide(scale, 2595.0)) - 1.0)

    def hertz_to_scale(self, hertz: Scalar) -> Scalar:
        return 2595.0 * np.log10(1.0 + np.divide(hertz, 700.0))
