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

"""Compute mel-frequency cepstral coefficients from speech signals

The pipeline follows HTK [young]_:

1. The whole signal is preemphasized
2. The signal is split into overlapping frames, each multiplied by a window
3. The magnitude of the DFT of each frame is taken, keeping the bins from DC to the
   Nyquist
4. A bank of triangular filters, uniformly spaced on the mel scale, sums the magnitude
   spectrum into filter bank energies (FBEs)
5. The FBEs are floored and log-compressed
6. A DCT-II decorrelates the log FBEs into cepstral coefficients
7. A sinusoidal lifter re-weights the coefficients

Every stage is available as a function operating on all frames at once. Frames are
always the second (column) axis.
"""

import abc
import logging
import warnings
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from htkmfcc import config
from htkmfcc.alias import AliasedFactory
from htkmfcc.filters import (
    TriangularMelFilterBank,
    WindowFunction,
    window_function_from_arg,
)
from htkmfcc.pre import Preemphasize
from htkmfcc.scales import ScalingFunction
from htkmfcc.util import is_power_of_two, ms_to_samples, next_power_of_two

__all__ = [
    "dct_matrix",
    "filterbank_energies",
    "frame_signal",
    "FrameComputer",
    "lifter_weights",
    "log_compress",
    "magnitude_spectrum",
    "mfcc",
    "MFCCFrameComputer",
]

logger = logging.getLogger(__name__)

WindowLike = Union[
    WindowFunction,
    str,
    Mapping[str, Any],
    Callable[[int], Sequence[float]],
    np.ndarray,
    Sequence[float],
    None,
]


def _check_positive_int(name: str, value) -> int:
    if int(value) != value or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return int(value)


def _window_coefficients(window: WindowLike, frame_length: int) -> np.ndarray:
    coeffs = window_function_from_arg(window).get_impulse_response(frame_length)
    coeffs = np.asarray(coeffs, dtype=np.float64)
    if coeffs.shape != (frame_length,):
        raise ValueError(
            f"Window returned {coeffs.shape} coefficients for a frame of length "
            f"{frame_length}"
        )
    return coeffs


def frame_signal(
    signal: np.ndarray,
    frame_length: int,
    frame_shift: int,
    window: WindowLike = None,
) -> np.ndarray:
    """Split a signal into overlapping, windowed frames

    The k-th frame is ``signal[k * frame_shift:k * frame_shift + frame_length]``
    multiplied elementwise by the window. Only whole frames are produced; samples past
    the last whole frame are dropped, making for
    ``(len(signal) - frame_length) // frame_shift + 1`` frames.

    Parameters
    ----------
    signal
        1D signal
    frame_length
        Samples per frame
    frame_shift
        Samples between the starts of successive frames
    window
        Anything :func:`htkmfcc.filters.window_function_from_arg` accepts, evaluated
        once for `frame_length` samples, or an array of `frame_length` precomputed
        coefficients. Defaults to a rectangular window

    Returns
    -------
    frames : np.ndarray
        A float64 array of shape ``(frame_length, num_frames)``, one frame per column.
        If `signal` is shorter than `frame_length`, `num_frames` is 0 and a warning is
        issued

    Raises
    ------
    ValueError
        If `signal` is not 1D, the lengths are not positive integers, or the window
        does not produce `frame_length` coefficients
    """
    signal = np.asarray(signal)
    if signal.ndim != 1:
        raise ValueError(f"Expected a 1D signal, got shape {signal.shape}")
    frame_length = _check_positive_int("frame_length", frame_length)
    frame_shift = _check_positive_int("frame_shift", frame_shift)
    window = _window_coefficients(window, frame_length)
    num_frames = max(0, (len(signal) - frame_length) // frame_shift + 1)
    if not num_frames:
        warnings.warn(
            f"Signal of length {len(signal)} is shorter than one frame "
            f"({frame_length}). No frames were produced"
        )
        return np.empty((frame_length, 0), dtype=np.float64)
    idxs = np.arange(frame_length)[:, None]
    idxs = idxs + frame_shift * np.arange(num_frames)[None, :]
    return signal[idxs].astype(np.float64) * window[:, None]


def magnitude_spectrum(
    frames: np.ndarray, dft_size: Optional[int] = None
) -> np.ndarray:
    """Magnitude of the DFT of every frame, from DC to the Nyquist

    Parameters
    ----------
    frames
        2D array of shape ``(frame_length, num_frames)``
    dft_size
        Length of the DFT. Frames are zero-padded (or truncated) to this length.
        Defaults to the smallest power of two no less than ``frame_length``

    Returns
    -------
    spect : np.ndarray
        A float64 array of shape ``(dft_size // 2 + 1, num_frames)``

    Raises
    ------
    ValueError
        If `frames` is not 2D or `dft_size` is not a positive power of two
    """
    frames = np.asarray(frames, dtype=np.float64)
    if frames.ndim != 2:
        raise ValueError(f"Expected 2D frames, got shape {frames.shape}")
    if dft_size is None:
        dft_size = next_power_of_two(max(1, frames.shape[0]))
    elif not is_power_of_two(dft_size):
        raise ValueError(f"DFT size must be a positive power of two, got {dft_size}")
    dft_size = int(dft_size)
    half_len = dft_size // 2 + 1
    if not frames.shape[1]:
        return np.empty((half_len, 0), dtype=np.float64)
    if config.USE_FFTPACK:
        from scipy import fftpack

        # packed as [y(0), Re(y(1)), Im(y(1)), ..., Re(y(n/2))] for even n
        packed = fftpack.rfft(frames, n=dft_size, axis=0)
        spect = np.empty((half_len, frames.shape[1]), dtype=np.float64)
        spect[0] = np.abs(packed[0])
        if dft_size > 1:
            spect[1:-1] = np.hypot(packed[1:-1:2], packed[2:-1:2])
            spect[-1] = np.abs(packed[-1])
    else:
        spect = np.abs(np.fft.rfft(frames, n=dft_size, axis=0))
    return spect


def filterbank_energies(bank: np.ndarray, spect: np.ndarray) -> np.ndarray:
    """Apply a ``(num_filts, K)`` filter bank matrix to a ``(K, num_frames)`` spectrum

    Returns the ``(num_filts, num_frames)`` filter bank energies
    """
    bank = np.asarray(bank, dtype=np.float64)
    spect = np.asarray(spect, dtype=np.float64)
    if bank.ndim != 2 or spect.ndim != 2 or bank.shape[1] != spect.shape[0]:
        raise ValueError(
            f"Cannot apply filter bank of shape {bank.shape} to spectrum of shape "
            f"{spect.shape}"
        )
    return bank @ spect


def log_compress(fbe: np.ndarray, floor: Optional[float] = None) -> np.ndarray:
    """Natural log of filter bank energies, floored to avoid ``log(0)``

    Parameters
    ----------
    fbe
    floor
        Values below `floor` are replaced by it before the log. Defaults to
        :obj:`htkmfcc.config.LOG_FLOOR_VALUE`
    """
    if floor is None:
        floor = config.LOG_FLOOR_VALUE
    if floor <= 0:
        raise ValueError(f"Log floor must be positive, got {floor}")
    return np.log(np.maximum(np.asarray(fbe, dtype=np.float64), floor))


def dct_matrix(num_ceps: int, num_filts: int) -> np.ndarray:
    r"""The HTK DCT-II matrix

    .. math::

        D_{j,m} = \sqrt{\frac{2}{M}} \cos\left(\frac{\pi j (m + 1/2)}{M}\right)

    for :math:`0 \leq j < N` and :math:`0 \leq m < M`. Unlike the orthonormal DCT-II,
    row 0 keeps the :math:`\sqrt{2/M}` factor, so the 0th cepstral coefficient is
    :math:`\sqrt{2/M}` times the sum of the log filter bank energies.

    Returns
    -------
    dct : np.ndarray
        Of shape ``(num_ceps, num_filts)``
    """
    num_ceps = _check_positive_int("num_ceps", num_ceps)
    num_filts = _check_positive_int("num_filts", num_filts)
    angles = np.outer(
        np.arange(num_ceps), np.pi * (np.arange(num_filts) + 0.5) / num_filts
    )
    return np.sqrt(2.0 / num_filts) * np.cos(angles)


def lifter_weights(num_ceps: int, lifter: int) -> np.ndarray:
    r"""Sinusoidal lifter weights

    .. math:: w_k = 1 + \frac{L}{2} \sin\left(\frac{\pi k}{L}\right)

    A `lifter` of 0 disables liftering (all weights 1). :math:`w_0` is always 1.
    """
    num_ceps = _check_positive_int("num_ceps", num_ceps)
    if int(lifter) != lifter or lifter < 0:
        raise ValueError(f"lifter must be a non-negative integer, got {lifter}")
    if not lifter:
        return np.ones(num_ceps, dtype=np.float64)
    return 1.0 + 0.5 * lifter * np.sin(np.pi * np.arange(num_ceps) / lifter)


class FrameComputer(AliasedFactory):
    """Construct features from a signal from fixed-length segments

    A signal is treated as a (possibly overlapping) time series of frames. The k-th
    frame covers ``signal[k * frame_shift:k * frame_shift + frame_length]``.
    """

    @property
    @abc.abstractmethod
    def sampling_rate(self) -> float:
        """Number of samples in a second of a target recording"""
        pass

    @property
    @abc.abstractmethod
    def frame_length(self) -> int:
        """Number of samples which dictate a feature vector"""
        pass

    @property
    def frame_length_ms(self) -> float:
        """Number of milliseconds of audio which dictate a feature vector"""
        return self.frame_length * 1000 / self.sampling_rate

    @property
    @abc.abstractmethod
    def frame_shift(self) -> int:
        """Number of samples absorbed between successive frame computations"""
        pass

    @property
    def frame_shift_ms(self) -> float:
        """Number of milliseconds between successive frame computations"""
        return self.frame_shift * 1000 / self.sampling_rate

    @property
    @abc.abstractmethod
    def num_coeffs(self) -> int:
        """Number of coefficients returned per frame"""
        pass

    def get_num_frames(self, num_samples: int) -> int:
        """Number of frames a signal of `num_samples` samples is split into"""
        return max(0, (num_samples - self.frame_length) // self.frame_shift + 1)

    @abc.abstractmethod
    def compute_full(self, signal: np.ndarray) -> Tuple[np.ndarray, ...]:
        """Compute a full signal's worth of feature coefficients

        Parameters
        ----------
        signal
            A 1D float array of the entire signal

        Returns
        -------
        outputs : tuple
            The first element is always a 2D float array of shape
            ``(num_coeffs, num_frames)``. Further elements are implementation-specific
            intermediate values, also with frames along the second axis
        """
        pass


def _freeze(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class MFCCFrameComputer(FrameComputer):
    """Compute HTK-style mel-frequency cepstral coefficients

    All parameters are fixed at construction. The window, filter bank, DCT matrix and
    lifter weights are computed once and shared (read-only) by every call to
    :func:`compute_full`, which itself keeps no state.

    Parameters
    ----------
    sampling_rate
        Sampling rate of the signals, in Hertz
    frame_length_ms
        Analysis frame duration, in milliseconds. Rounded to the nearest sample
    frame_shift_ms
        Analysis frame shift, in milliseconds. Rounded to the nearest sample. No
        greater than `frame_length_ms`
    preemph_coeff
        Coefficient of the first-order preemphasis filter. 0 disables preemphasis
    window
        Analysis window. Anything :func:`htkmfcc.filters.window_function_from_arg`
        accepts, including a plain function of the frame length
    freq_range
        The ``(low_hz, high_hz)`` edges of the filter bank, with
        ``0 <= low_hz < high_hz <= sampling_rate / 2``
    num_filts
        Number of triangular filters
    num_ceps
        Number of cepstral coefficients, including the 0th. At most
        ``num_filts + 1``
    lifter
        Sinusoidal lifter parameter. 0 disables liftering
    dft_size
        DFT length. A positive power of two. Defaults to the smallest power of two no
        less than the frame length. If smaller than the frame length, frames are
        truncated before the DFT
    scaling_function
        The scale filter vertices are uniformly spaced on
    snap_to_bins
        See :class:`htkmfcc.filters.TriangularMelFilterBank`
    log_floor
        Floor applied to the filter bank energies before the log. Defaults to
        :obj:`htkmfcc.config.LOG_FLOOR_VALUE`

    Raises
    ------
    ValueError
        If any of the parameters are invalid. Nothing is computed in that case
    """

    aliases = {"mfcc", "htk"}  #:

    def __init__(
        self,
        sampling_rate: float = 16000,
        frame_length_ms: float = config.DEFAULT_FRAME_LENGTH_MS,
        frame_shift_ms: float = config.DEFAULT_FRAME_SHIFT_MS,
        preemph_coeff: float = config.DEFAULT_PREEMPH_COEFF,
        window: WindowLike = config.DEFAULT_WINDOW,
        freq_range: Tuple[float, float] = config.DEFAULT_FREQ_RANGE,
        num_filts: int = config.DEFAULT_NUM_FILTS,
        num_ceps: int = config.DEFAULT_NUM_CEPS,
        lifter: int = config.DEFAULT_LIFTER,
        dft_size: Optional[int] = None,
        scaling_function: Union[ScalingFunction, str, Mapping[str, Any]] = "mel",
        snap_to_bins: bool = True,
        log_floor: Optional[float] = None,
    ):
        if sampling_rate <= 0:
            raise ValueError(f"Sampling rate must be positive, got {sampling_rate}")
        if frame_length_ms <= 0 or frame_shift_ms <= 0:
            raise ValueError(
                f"Frame length ({frame_length_ms}ms) and shift ({frame_shift_ms}ms) "
                "must be positive"
            )
        if frame_shift_ms > frame_length_ms:
            raise ValueError(
                f"Frame shift ({frame_shift_ms}ms) cannot exceed frame length "
                f"({frame_length_ms}ms)"
            )
        frame_length = ms_to_samples(frame_length_ms, sampling_rate)
        frame_shift = ms_to_samples(frame_shift_ms, sampling_rate)
        if frame_shift < 1:
            raise ValueError(
                f"Frame shift of {frame_shift_ms}ms is less than one sample at "
                f"{sampling_rate}Hz"
            )
        num_filts = _check_positive_int("num_filts", num_filts)
        num_ceps = _check_positive_int("num_ceps", num_ceps)
        if num_ceps > num_filts + 1:
            raise ValueError(
                f"Cannot compute {num_ceps} cepstral coefficients from {num_filts} "
                "filters"
            )
        if int(lifter) != lifter or lifter < 0:
            raise ValueError(f"lifter must be a non-negative integer, got {lifter}")
        if len(freq_range) != 2:
            raise ValueError(
                f"Expected frequency range to be a (low, high) pair, got {freq_range}"
            )
        if dft_size is None:
            dft_size = next_power_of_two(frame_length)
        elif not is_power_of_two(dft_size):
            raise ValueError(
                f"DFT size must be a positive power of two, got {dft_size}"
            )
        elif dft_size < frame_length:
            warnings.warn(
                f"DFT size ({dft_size}) is less than the frame length "
                f"({frame_length}). Frames will be truncated"
            )
        if log_floor is not None and log_floor <= 0:
            raise ValueError(f"Log floor must be positive, got {log_floor}")
        self._rate = sampling_rate
        self._frame_length = frame_length
        self._frame_shift = frame_shift
        self._dft_size = int(dft_size)
        self._log_floor = log_floor
        self._preemph = Preemphasize(preemph_coeff)
        self._window = window_function_from_arg(window)
        self._window_coeffs = _freeze(_window_coefficients(self._window, frame_length))
        self._bank = TriangularMelFilterBank(
            num_filts,
            low_hz=freq_range[0],
            high_hz=freq_range[1],
            sampling_rate=sampling_rate,
            scaling_function=scaling_function,
            snap_to_bins=snap_to_bins,
        )
        self._bank_matrix = _freeze(self._bank.get_matrix(self._dft_size))
        self._dct = _freeze(dct_matrix(num_ceps, num_filts))
        self._lifter = _freeze(lifter_weights(num_ceps, lifter))
        logger.debug(
            "MFCC frames of %d samples every %d samples, DFT of size %d, "
            "%d filters between %.2f and %.2f Hz",
            self._frame_length,
            self._frame_shift,
            self._dft_size,
            num_filts,
            freq_range[0],
            freq_range[1],
        )

    @property
    def sampling_rate(self) -> float:
        return self._rate

    @property
    def frame_length(self) -> int:
        return self._frame_length

    @property
    def frame_shift(self) -> int:
        return self._frame_shift

    @property
    def dft_size(self) -> int:
        """Length of the DFT applied to each frame"""
        return self._dft_size

    @property
    def num_coeffs(self) -> int:
        return len(self._lifter)

    @property
    def num_filts(self) -> int:
        """Number of filters in the filter bank"""
        return self._bank.num_filts

    @property
    def preemph_coeff(self) -> float:
        """Preemphasis coefficient"""
        return self._preemph.coeff

    @property
    def window(self) -> WindowFunction:
        """The analysis window"""
        return self._window

    @property
    def bank(self) -> TriangularMelFilterBank:
        """The mel filter bank"""
        return self._bank

    @property
    def bank_matrix(self) -> np.ndarray:
        """The read-only ``(num_filts, dft_size // 2 + 1)`` filter bank matrix"""
        return self._bank_matrix

    @property
    def dct_matrix(self) -> np.ndarray:
        """The read-only ``(num_coeffs, num_filts)`` DCT matrix"""
        return self._dct

    @property
    def lifter_weights(self) -> np.ndarray:
        """The read-only lifter weights, one per coefficient"""
        return self._lifter

    def compute_full(
        self, signal: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Compute the MFCCs of a whole signal

        Parameters
        ----------
        signal
            A 1D array of the entire signal, sampled at `sampling_rate`. It is not
            modified

        Returns
        -------
        cepstra : np.ndarray
            Liftered cepstral coefficients of shape ``(num_coeffs, num_frames)``
        log_fbe : np.ndarray
            Log filter bank energies of shape ``(num_filts, num_frames)``
        frames : np.ndarray
            Preemphasized, windowed frames of shape ``(frame_length, num_frames)``

        Raises
        ------
        ValueError
            If `signal` is not 1D
        """
        signal = np.asarray(signal)
        if signal.ndim != 1:
            raise ValueError(f"Expected a 1D signal, got shape {signal.shape}")
        signal = self._preemph.apply(signal)
        frames = frame_signal(
            signal, self._frame_length, self._frame_shift, self._window_coeffs
        )
        spect = magnitude_spectrum(frames, self._dft_size)
        fbe = filterbank_energies(self._bank_matrix, spect)
        log_fbe = log_compress(fbe, self._log_floor)
        cepstra = self._lifter[:, None] * (self._dct @ log_fbe)
        return cepstra, log_fbe, frames


def mfcc(
    signal: np.ndarray,
    sampling_rate: float,
    frame_length_ms: float = config.DEFAULT_FRAME_LENGTH_MS,
    frame_shift_ms: float = config.DEFAULT_FRAME_SHIFT_MS,
    preemph_coeff: float = config.DEFAULT_PREEMPH_COEFF,
    window: WindowLike = config.DEFAULT_WINDOW,
    freq_range: Tuple[float, float] = config.DEFAULT_FREQ_RANGE,
    num_filts: int = config.DEFAULT_NUM_FILTS,
    num_ceps: int = config.DEFAULT_NUM_CEPS,
    lifter: int = config.DEFAULT_LIFTER,
    dft_size: Optional[int] = None,
    **kwargs,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Mel-frequency cepstral coefficients of a signal, closely matching HTK

    A shorthand for building a :class:`MFCCFrameComputer` and calling
    :func:`MFCCFrameComputer.compute_full` once. See :class:`MFCCFrameComputer` for
    the parameters. Additional keyword arguments are passed to its constructor.

    Returns
    -------
    cepstra : np.ndarray
        Of shape ``(num_ceps, num_frames)``
    log_fbe : np.ndarray
        Of shape ``(num_filts, num_frames)``
    frames : np.ndarray
        Of shape ``(frame_length, num_frames)``

    Examples
    --------
    >>> speech = np.random.randn(16000)
    >>> hamming = lambda N: 0.54 - 0.46 * np.cos(2 * np.pi * np.arange(N) / (N - 1))
    >>> cepstra, log_fbe, frames = mfcc(
    ...     speech, 16000, 25, 10, 0.97, hamming, (300, 3700), 20, 13, 22)
    """
    computer = MFCCFrameComputer(
        sampling_rate,
        frame_length_ms=frame_length_ms,
        frame_shift_ms=frame_shift_ms,
        preemph_coeff=preemph_coeff,
        window=window,
        freq_range=freq_range,
        num_filts=num_filts,
        num_ceps=num_ceps,
        lifter=lifter,
        dft_size=dft_size,
        **kwargs,
    )
    return computer.compute_full(signal)
