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

"""HTK-compatible mel-frequency cepstral coefficients

References
----------
.. [stevens1937] S. S. Stevens, J. Volkmann, and E. B. Newman, "A Scale for the
   Measurement of the Psychological Magnitude Pitch," The Journal of the Acoustical
   Society of America, vol. 8, no. 3, pp. 185-190, 1937.
.. [huang2001] X. Huang, A. Acero, and H. Hon, Spoken Language Processing: A guide to
   theory, algorithm, and system development. Prentice Hall, 2001, pp. 314-315.
.. [ellis2005] D. Ellis, "Reproducing the feature outputs of common programs using
   Matlab and melfcc.m," 2005.
.. [young] S. Young et al., "The HTK book (for HTK version 3.4)," Cambridge
   university engineering department, vol. 2, no. 2, pp. 2-3, 2006.
"""

__author__ = "Sean Robertson"
__email__ = "sdrobert@cs.toronto.edu"
__license__ = "Apache 2.0"
__copyright__ = "Copyright 2021 Sean Robertson"

__all__ = [
    "alias",
    "compute",
    "config",
    "filters",
    "pre",
    "scales",
    "util",
]


try:
    from ._version import version as __version__  # type: ignore
except ImportError:
    __version__ = "inplace"
