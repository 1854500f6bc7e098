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

"""Window functions and filter banks"""

import abc
import logging
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from htkmfcc.alias import AliasedFactory, alias_factory_subclass_from_arg
from htkmfcc.scales import ScalingFunction
from htkmfcc.util import bin_to_hertz, hertz_to_bin, is_power_of_two

__all__ = [
    "CallableWindow",
    "HammingWindow",
    "HannWindow",
    "LinearFilterBank",
    "RectangularWindow",
    "TriangularMelFilterBank",
    "WindowFunction",
    "window_function_from_arg",
]

logger = logging.getLogger(__name__)

# banks


class LinearFilterBank(AliasedFactory):
    """A collection of real, zero-phase filters defined in the frequency domain

    A :class:`LinearFilterBank` provides the magnitude response of a fixed number of
    filters sampled at the bins of a DFT. Filters are organized lowest frequency
    first.
    """

    @property
    @abc.abstractmethod
    def num_filts(self) -> int:
        """Number of filters in the bank"""
        pass

    @property
    @abc.abstractmethod
    def sampling_rate(self) -> float:
        """Number of samples in a second of a target recording"""
        pass

    @property
    @abc.abstractmethod
    def centers_hz(self) -> Tuple[float, ...]:
        """The point of maximum gain in each filter's frequency response, in Hz"""
        pass

    @property
    @abc.abstractmethod
    def supports_hz(self) -> Tuple[Tuple[float, float], ...]:
        """Boundaries of the support of each filter's frequency response, in Hz

        Returns a tuple of length `num_filts` containing pairs of floats of the low
        and high frequencies. The response is zero outside the span.
        """
        pass

    @abc.abstractmethod
    def get_frequency_response(self, filt_idx: int, width: int) -> np.ndarray:
        """Construct the half-spectrum frequency response of one filter

        Parameters
        ----------
        filt_idx
            The index of the filter to generate. Less than `num_filts`
        width
            The length of the DFT the response will be applied to

        Returns
        -------
        response : np.ndarray
            1D float64 array of length ``width // 2 + 1``, covering the DFT bins
            between DC and the Nyquist inclusive
        """
        pass

    def get_matrix(self, width: int) -> np.ndarray:
        """Stack every filter's frequency response into a matrix

        Parameters
        ----------
        width
            The length of the DFT the bank will be applied to

        Returns
        -------
        bank : np.ndarray
            2D float64 array of shape ``(num_filts, width // 2 + 1)``. Row ``m`` is
            ``get_frequency_response(m, width)``
        """
        if not is_power_of_two(width):
            raise ValueError(f"DFT width must be a positive power of two, got {width}")
        return np.stack(
            [self.get_frequency_response(idx, width) for idx in range(self.num_filts)]
        )


class TriangularMelFilterBank(LinearFilterBank):
    """Triangular filters whose vertices are uniformly spaced on the mel scale

    ``num_filts + 2`` vertices are placed uniformly along the scale between `low_hz`
    and `high_hz`. Filter ``m`` rises from zero at vertex ``m`` to one at vertex
    ``m + 1`` (its center) and falls back to zero at vertex ``m + 2``. Neighbouring
    filters overlap only on their slopes.

    The triangles are equal-height (unnormalized): every filter peaks at 1 regardless
    of its bandwidth, as in HTK [young]_. No equal-area scaling is applied.

    If `snap_to_bins` is :obj:`True`, each vertex is first rounded to its nearest DFT
    bin and the triangle is drawn between bins, so each center bin has a weight of
    exactly 1. At low frequencies with a coarse DFT, adjacent vertices can land on
    the same bin. The zero-width slope is then skipped and, if both slopes vanish,
    the filter collapses to a single unit weight at its center bin.

    If `snap_to_bins` is :obj:`False`, the triangles are evaluated at the exact bin
    frequencies ``k * sampling_rate / width`` against the unrounded vertices. The
    peak reaches 1 only if a bin lies exactly on the center frequency.

    Parameters
    ----------
    num_filts
        The number of filters in the bank
    low_hz
        The bottommost edge of the filters
    high_hz
        The topmost edge of the filters. Defaults to the Nyquist
    sampling_rate
        The sampling rate (cycles/sec) of the target recordings
    scaling_function
        Dictates the layout of vertices. Can be a :class:`ScalingFunction` or something
        compatible with :func:`htkmfcc.alias.alias_factory_subclass_from_arg`
    snap_to_bins
        Whether vertices are rounded to DFT bins before drawing the triangles

    Raises
    ------
    ValueError
        If `num_filts` is not a positive integer, `sampling_rate` is not positive,
        `low_hz` is below 0, `high_hz` is above the Nyquist, or ``high_hz <= low_hz``
    """

    aliases = {"mel", "tri", "triangular", "fbank"}  #:
    snap_to_bins: bool  #:

    def __init__(
        self,
        num_filts: int = 20,
        low_hz: float = 0.0,
        high_hz: Optional[float] = None,
        sampling_rate: float = 16000,
        scaling_function: Union[ScalingFunction, str, Mapping[str, Any]] = "mel",
        snap_to_bins: bool = True,
    ):
        if sampling_rate <= 0:
            raise ValueError(f"Sampling rate must be positive, got {sampling_rate}")
        if int(num_filts) != num_filts or num_filts < 1:
            raise ValueError(
                f"Number of filters must be a positive integer, got {num_filts}"
            )
        if high_hz is None:
            high_hz = sampling_rate / 2
        if low_hz < 0 or high_hz <= low_hz or high_hz > sampling_rate / 2:
            raise ValueError(
                f"Invalid frequency range: ({low_hz:.2f},{high_hz:.2f}). Expected "
                f"0 <= low < high <= {sampling_rate / 2:.2f}"
            )
        scaling_function = alias_factory_subclass_from_arg(
            ScalingFunction, scaling_function
        )
        self._rate = sampling_rate
        self.snap_to_bins = bool(snap_to_bins)
        scale_low = scaling_function.hertz_to_scale(low_hz)
        scale_high = scaling_function.hertz_to_scale(high_hz)
        vertices = scaling_function.scale_to_hertz(
            np.linspace(scale_low, scale_high, int(num_filts) + 2)
        )
        # undo floating point drift so the edges are exactly what was asked for
        vertices[0], vertices[-1] = low_hz, high_hz
        self._vertices = tuple(float(v) for v in vertices)

    @property
    def num_filts(self) -> int:
        return len(self._vertices) - 2

    @property
    def sampling_rate(self) -> float:
        return self._rate

    @property
    def vertices_hz(self) -> Tuple[float, ...]:
        """All ``num_filts + 2`` edge and center frequencies, in Hz, ascending"""
        return self._vertices

    @property
    def centers_hz(self) -> Tuple[float, ...]:
        return self._vertices[1:-1]

    @property
    def supports_hz(self) -> Tuple[Tuple[float, float], ...]:
        return tuple(
            (low, high) for low, high in zip(self._vertices[:-2], self._vertices[2:])
        )

    def get_vertex_bins(self, width: int) -> np.ndarray:
        """The DFT bin nearest to each vertex, for a DFT of length `width`"""
        return hertz_to_bin(np.array(self._vertices), width, self._rate)

    def get_frequency_response(self, filt_idx: int, width: int) -> np.ndarray:
        if not 0 <= filt_idx < self.num_filts:
            raise IndexError(f"filter index {filt_idx} out of range")
        res = np.zeros(width // 2 + 1, dtype=np.float64)
        if self.snap_to_bins:
            left, mid, right = (
                int(b) for b in self.get_vertex_bins(width)[filt_idx : filt_idx + 3]
            )
            if mid > left:
                idxs = np.arange(left, mid)
                res[idxs] = (idxs - left) / (mid - left)
            if right > mid:
                idxs = np.arange(mid + 1, right + 1)
                res[idxs] = (right - idxs) / (right - mid)
            if mid == left or right == mid:
                logger.debug(
                    "Filter %d (center %.2f Hz) has a slope narrower than one bin "
                    "for a DFT of length %d",
                    filt_idx,
                    self._vertices[filt_idx + 1],
                    width,
                )
            res[mid] = 1.0
        else:
            left, mid, right = self._vertices[filt_idx : filt_idx + 3]
            hz = bin_to_hertz(np.arange(len(res)), width, self._rate)
            rising = (hz >= left) & (hz <= mid)
            res[rising] = (hz[rising] - left) / (mid - left)
            falling = (hz > mid) & (hz <= right)
            res[falling] = (right - hz[falling]) / (right - mid)
        return res


# windows


class WindowFunction(AliasedFactory):
    """A real, symmetric analysis window

    Instances are callable: ``window(width)`` is ``window.get_impulse_response(width)``
    """

    @abc.abstractmethod
    def get_impulse_response(self, width: int) -> np.ndarray:
        """Write the window into a numpy array of fixed width"""
        pass

    def __call__(self, width: int) -> np.ndarray:
        return self.get_impulse_response(width)


class HammingWindow(WindowFunction):
    """The (unnormalized) Hamming window used by HTK

    ``0.54 - 0.46 * cos(2 * pi * n / (width - 1))``

    See Also
    --------
    numpy.hamming
    """

    aliases = {"hamming"}  #:

    def get_impulse_response(self, width: int) -> np.ndarray:
        return np.hamming(width)


class HannWindow(WindowFunction):
    """The (unnormalized) Hann window

    See Also
    --------
    numpy.hanning
    """

    aliases = {"hanning", "hann"}  #:

    def get_impulse_response(self, width: int) -> np.ndarray:
        return np.hanning(width)


class RectangularWindow(WindowFunction):
    """A window of ones, i.e. no windowing at all"""

    aliases = {"rectangular", "rect", "boxcar", "none"}  #:

    def get_impulse_response(self, width: int) -> np.ndarray:
        return np.ones(width, dtype=np.float64)


class CallableWindow(WindowFunction):
    """Wrap a plain function of the window width as a :class:`WindowFunction`

    Parameters
    ----------
    func
        Maps a width to a sequence of that many coefficients, e.g.
        ``lambda N: 0.54 - 0.46 * np.cos(2 * np.pi * np.arange(N) / (N - 1))``
    """

    func: Callable[[int], Sequence[float]]  #:

    def __init__(self, func: Callable[[int], Sequence[float]]):
        self.func = func

    def get_impulse_response(self, width: int) -> np.ndarray:
        return np.asarray(self.func(width), dtype=np.float64).ravel()


def window_function_from_arg(
    arg: Union[
        WindowFunction,
        str,
        Mapping[str, Any],
        Callable[[int], Sequence[float]],
        np.ndarray,
        Sequence[float],
        None,
    ]
) -> WindowFunction:
    """Get a :class:`WindowFunction` from any of the forms a window can be given in

    :obj:`None` is a :class:`RectangularWindow`. A callable that is not already a
    :class:`WindowFunction` is wrapped in a :class:`CallableWindow`, as is an array,
    list or tuple of precomputed coefficients (which then only suits frames of its own
    length). Anything else is passed to
    :func:`htkmfcc.alias.alias_factory_subclass_from_arg`.
    """
    if arg is None:
        return RectangularWindow()
    elif isinstance(arg, (np.ndarray, list, tuple)):
        coeffs = np.asarray(arg, dtype=np.float64)
        return CallableWindow(lambda width: coeffs)
    elif not isinstance(arg, WindowFunction) and callable(arg):
        return CallableWindow(arg)
    return alias_factory_subclass_from_arg(WindowFunction, arg)
