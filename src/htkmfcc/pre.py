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

"""Classes for pre-processing speech signals"""

import abc

import numpy as np

from htkmfcc import config
from htkmfcc.alias import AliasedFactory

__all__ = [
    "PreProcessor",
    "Preemphasize",
]


class PreProcessor(AliasedFactory):
    """A container for pre-processing signals with a transform"""

    @abc.abstractmethod
    def apply(
        self, signal: np.ndarray, axis: int = -1, in_place: bool = False
    ) -> np.ndarray:
        """Applies the transformation to a signal tensor

        Consult the class documentation for more details on what the transformation
        is.

        Parameters
        ----------
        signal
        axis
            The axis of `signal` to apply the transformation along
        in_place
            Whether it is okay to modify `signal` (:obj:`True`) or whether a copy
            should be made (:obj:`False`)

        Returns
        -------
        out : np.ndarray
            The transformed signal
        """
        pass


class Preemphasize(PreProcessor):
    """Attenuate the low frequencies of a signal by taking sample differences

    The following transformation is applied along the target axis

    ::

        new[i] = old[i] - coeff * old[i-1] for i > 0
        new[0] = old[0]

    This is essentially a convolution with a Haar wavelet for positive `coeff`. It
    emphasizes high frequencies. A `coeff` of 0 leaves the signal untouched.

    Intermediate values are calculated as 64-bit floats. The result is cast back to the
    input data type if it is floating point, otherwise it is left as a 64-bit float.

    Parameters
    ----------
    coeff
    """

    aliases = {"preemphasize", "preemphasis", "preemph"}  #:
    coeff: float  #:

    def __init__(self, coeff: float = config.DEFAULT_PREEMPH_COEFF):
        self.coeff = coeff
        super().__init__()

    def apply(
        self, signal: np.ndarray, axis: int = -1, in_place: bool = False
    ) -> np.ndarray:
        signal = np.asarray(signal)
        if not signal.ndim:
            raise ValueError("Cannot preemphasize a scalar")
        if np.issubdtype(signal.dtype, np.floating):
            signal_dtype = signal.dtype
        else:
            signal_dtype = np.float64
        if not in_place or signal.dtype != np.float64:
            signal = signal.astype(np.float64)
        if signal.shape[axis] > 1 and self.coeff:
            tensor_slice_cur = [slice(None)] * signal.ndim
            tensor_slice_prev = [slice(None)] * signal.ndim
            tensor_slice_cur[axis] = slice(1, None)
            tensor_slice_prev[axis] = slice(None, -1)
            signal[tuple(tensor_slice_cur)] -= (
                self.coeff * signal[tuple(tensor_slice_prev)]
            )
        return signal.astype(signal_dtype, copy=False)
