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

"""Miscellaneous utility functions"""

from typing import Union

import numpy as np

__all__ = [
    "bin_to_hertz",
    "hertz_to_bin",
    "is_power_of_two",
    "ms_to_samples",
    "next_power_of_two",
]


def next_power_of_two(length: int) -> int:
    """Smallest power of two greater than or equal to `length`"""
    if length < 1:
        raise ValueError(f"Expected a positive length, got {length}")
    return int(2 ** np.ceil(np.log2(length)))


def is_power_of_two(length: int) -> bool:
    """Whether `length` is a positive integer power of two"""
    if int(length) != length or length < 1:
        return False
    length = int(length)
    return not (length & (length - 1))


def ms_to_samples(ms: float, sampling_rate: float) -> int:
    """Convert a duration in milliseconds to the nearest whole number of samples

    Exact halves round up, so 25ms at 44.1kHz is 1103 samples.
    """
    return int(np.floor(ms * sampling_rate / 1000 + 0.5))


def hertz_to_bin(
    hertz: Union[float, np.ndarray], dft_size: int, sampling_rate: float
) -> Union[int, np.ndarray]:
    """Index of the DFT bin nearest to a (non-negative) frequency

    Exact halves round up to the higher bin.
    """
    bins = np.floor(np.multiply(hertz, dft_size) / sampling_rate + 0.5)
    bins = bins.astype(np.int64)
    return bins if bins.ndim else int(bins)


def bin_to_hertz(
    bins: Union[int, np.ndarray], dft_size: int, sampling_rate: float
) -> Union[float, np.ndarray]:
    """Frequency (in Hertz) at the center of DFT bin(s)"""
    return np.multiply(bins, sampling_rate) / dft_size
