import warnings

from zlib import adler32

import numpy as np
import pytest

from htkmfcc import config

warnings.simplefilter("error")
# # annoying scipy errors. Not mah fault!
warnings.filterwarnings("ignore", message="numpy.dtype size changed")
warnings.filterwarnings("ignore", message="numpy.ufunc size changed")
warnings.filterwarnings("ignore", category=ImportWarning)
warnings.filterwarnings("ignore", category=DeprecationWarning)


@pytest.fixture(params=[True, False], ids=["fftpack", "numpy"])
def use_fftpack(request, monkeypatch):
    if request.param and not config.USE_FFTPACK:
        pytest.skip("scipy.fftpack is unavailable")
    monkeypatch.setattr(config, "USE_FFTPACK", request.param)
    return request.param


def pytest_runtest_setup(item):
    # implicitly seeds all tests for the sake of reproducibility
    np.random.seed(abs(adler32(bytes(item.name, "utf-8"))))
