import doctest

import numpy as np
import pytest

import htkmfcc.compute as compute
import htkmfcc.config as config

from htkmfcc.alias import alias_factory_subclass_from_arg
from htkmfcc.filters import HammingWindow


def hamming(N):
    return 0.54 - 0.46 * np.cos(2 * np.pi * np.arange(N) / (N - 1))


@pytest.fixture(params=[
    lambda: compute.MFCCFrameComputer(),
    lambda: compute.MFCCFrameComputer(
        sampling_rate=8000,
        frame_length_ms=32,
        frame_shift_ms=16,
        window=hamming,
        freq_range=(0, 4000),
        num_filts=26,
        num_ceps=27,
        lifter=0,
    ),
    lambda: alias_factory_subclass_from_arg(compute.FrameComputer, {
        'alias': 'htk',
        'sampling_rate': 16000,
        'window': {'alias': 'hann'},
        'freq_range': [64, 8000],
        'num_filts': 40,
        'dft_size': 1024,
        'snap_to_bins': False,
    }),
], ids=[
    'defaults',
    'narrowband',
    'from dict',
], scope='module',)
def computer(request):
    return request.param()


@pytest.fixture(params=[
    0,
    1,
    2 ** 8,
    2 ** 10,
    16000,
], ids=[
    'empty buffer',
    'length 1 buffer',
    'medium buffer',
    'large buffer',
    'one second',
], scope="module")
def buff(request):
    b = np.random.random(request.param)
    b.flags.writeable = False
    return b


def test_output_shapes(computer, buff):
    num_frames = computer.get_num_frames(len(buff))
    if num_frames:
        cepstra, log_fbe, frames = computer.compute_full(buff)
    else:
        with pytest.warns(UserWarning):
            cepstra, log_fbe, frames = computer.compute_full(buff)
    assert cepstra.shape == (computer.num_coeffs, num_frames)
    assert log_fbe.shape == (computer.num_filts, num_frames)
    assert frames.shape == (computer.frame_length, num_frames)
    assert np.all(np.isfinite(cepstra))
    assert np.all(log_fbe >= np.log(config.LOG_FLOOR_VALUE))


def test_stages_compose(computer):
    buff = np.random.randn(4000)
    cepstra, log_fbe, frames = computer.compute_full(buff)
    emph = np.concatenate([buff[:1], buff[1:] - computer.preemph_coeff * buff[:-1]])
    frames_exp = compute.frame_signal(
        emph, computer.frame_length, computer.frame_shift, computer.window)
    assert np.allclose(frames, frames_exp)
    spect = compute.magnitude_spectrum(frames, computer.dft_size)
    assert spect.shape == (computer.dft_size // 2 + 1, frames.shape[1])
    fbe = compute.filterbank_energies(computer.bank_matrix, spect)
    assert np.allclose(log_fbe, compute.log_compress(fbe))
    cepstra_exp = computer.dct_matrix @ log_fbe
    cepstra_exp *= computer.lifter_weights[:, None]
    assert np.allclose(cepstra, cepstra_exp)


def test_c0_proportional_to_log_energy_sum(computer):
    buff = np.random.randn(3000)
    cepstra, log_fbe, _ = computer.compute_full(buff)
    assert computer.lifter_weights[0] == 1
    assert np.allclose(
        cepstra[0], np.sqrt(2 / computer.num_filts) * log_fbe.sum(0))


def test_shared_matrices_are_read_only(computer):
    for array in (
            computer.bank_matrix, computer.dct_matrix, computer.lifter_weights):
        with pytest.raises(ValueError):
            array[0] = 1


@pytest.mark.parametrize('length,frame_length,frame_shift', [
    (400, 400, 160),
    (401, 400, 160),
    (559, 400, 160),
    (560, 400, 160),
    (16000, 400, 160),
    (1000, 10, 10),
    (1000, 7, 3),
    (5, 1, 1),
])
def test_frame_signal(length, frame_length, frame_shift):
    signal = np.random.randn(length)
    frames = compute.frame_signal(signal, frame_length, frame_shift)
    num_frames = (length - frame_length) // frame_shift + 1
    assert frames.shape == (frame_length, num_frames)
    for frame_idx in range(num_frames):
        start = frame_idx * frame_shift
        assert np.array_equal(
            frames[:, frame_idx], signal[start:start + frame_length])
    window = np.random.random(frame_length)
    assert np.allclose(
        compute.frame_signal(signal, frame_length, frame_shift, window),
        frames * window[:, None],
    )


def test_frame_signal_too_short():
    with pytest.warns(UserWarning):
        frames = compute.frame_signal(np.random.randn(399), 400, 160, 'hamming')
    assert frames.shape == (400, 0)
    assert compute.magnitude_spectrum(frames).shape == (257, 0)


def test_frame_signal_rejects_bad_input():
    with pytest.raises(ValueError):
        compute.frame_signal(np.random.randn(10, 10), 4, 2)
    with pytest.raises(ValueError):
        compute.frame_signal(np.random.randn(10), 0, 2)
    with pytest.raises(ValueError):
        compute.frame_signal(np.random.randn(10), 4, 2, lambda N: np.ones(N + 1))


def test_magnitude_spectrum_peak(use_fftpack):
    fs, hz, frame_length = 16000, 1000, 400
    signal = np.sin(2 * np.pi * hz * np.arange(frame_length) / fs)
    frames = compute.frame_signal(signal, frame_length, 160, 'hamming')
    assert frames.shape == (frame_length, 1)
    for dft_size in (None, 512, 1024, 4096):
        spect = compute.magnitude_spectrum(frames, dft_size)
        if dft_size is None:
            dft_size = 512
        assert spect.shape == (dft_size // 2 + 1, 1)
        assert np.argmax(spect[:, 0]) == round(hz * dft_size / fs)


@pytest.mark.parametrize('dft_size', [1, 2, 8, 256, 512])
def test_magnitude_spectrum_matches_numpy(use_fftpack, dft_size):
    frames = np.random.randn(200, 7)
    spect = compute.magnitude_spectrum(frames, dft_size)
    assert spect.shape == (dft_size // 2 + 1, 7)
    assert np.allclose(spect, np.abs(np.fft.fft(frames, dft_size, axis=0))[
        :dft_size // 2 + 1])


def test_magnitude_spectrum_rejects_bad_size():
    with pytest.raises(ValueError):
        compute.magnitude_spectrum(np.random.randn(400, 1), 400)
    with pytest.raises(ValueError):
        compute.magnitude_spectrum(np.random.randn(400), 512)


def test_log_compress_floors():
    fbe = np.array([[0., 1e-10], [1., np.e]])
    log_fbe = compute.log_compress(fbe)
    assert np.allclose(log_fbe, [
        [np.log(config.LOG_FLOOR_VALUE)] * 2, [0., 1.]])
    assert np.allclose(compute.log_compress(fbe, 1e-3)[0], np.log(1e-3))
    with pytest.raises(ValueError):
        compute.log_compress(fbe, 0)


@pytest.mark.parametrize('num_ceps,num_filts', [
    (1, 1), (13, 20), (20, 20), (12, 40)])
def test_dct_matches_scipy(num_ceps, num_filts):
    fftpack = pytest.importorskip('scipy.fftpack')
    log_fbe = np.random.randn(num_filts, 5)
    exp = fftpack.dct(log_fbe, type=2, norm='ortho', axis=0)[:num_ceps]
    exp[0] *= np.sqrt(2)
    assert np.allclose(compute.dct_matrix(num_ceps, num_filts) @ log_fbe, exp)


def test_dct_of_constant_is_zero_past_c0():
    D = compute.dct_matrix(21, 20)
    c = D @ np.full(20, -3.)
    assert np.isclose(c[0], -3. * 20 * np.sqrt(2 / 20))
    assert np.allclose(c[1:20], 0)


def test_lifter_weights():
    assert np.array_equal(compute.lifter_weights(13, 0), np.ones(13))
    for L in range(0, 30):
        assert compute.lifter_weights(13, L)[0] == 1
    w = compute.lifter_weights(13, 22)
    assert np.allclose(w, 1 + 11 * np.sin(np.pi * np.arange(13) / 22))
    assert np.argmax(w) == 11
    assert np.isclose(w[11], 12)
    with pytest.raises(ValueError):
        compute.lifter_weights(13, -1)
    with pytest.raises(ValueError):
        compute.lifter_weights(0, 22)


def test_zero_lifter_leaves_coefficients_unchanged():
    buff = np.random.randn(8000)
    liftered, log_fbe, _ = compute.mfcc(buff, 16000, lifter=22)
    unliftered, log_fbe_2, _ = compute.mfcc(buff, 16000, lifter=0)
    assert np.array_equal(log_fbe, log_fbe_2)
    assert np.allclose(unliftered, compute.dct_matrix(13, 20) @ log_fbe)
    assert np.allclose(
        liftered, unliftered * compute.lifter_weights(13, 22)[:, None])


def test_silence():
    buff = np.zeros(16000)
    cepstra, log_fbe, frames = compute.mfcc(
        buff, 16000, 25, 10, .97, hamming, (300, 3700), 20, 13, 22)
    assert cepstra.shape == (13, 98)
    assert log_fbe.shape == (20, 98)
    assert frames.shape == (400, 98)
    assert np.all(frames == 0)
    assert np.all(log_fbe == np.log(config.LOG_FLOOR_VALUE))
    assert np.allclose(
        cepstra[0], np.sqrt(2 / 20) * 20 * np.log(config.LOG_FLOOR_VALUE))
    assert np.allclose(cepstra[1:], 0)


def test_sinusoid_peaks_in_nearest_filter():
    computer = compute.MFCCFrameComputer()
    filt_idx = 10
    hz = computer.bank.centers_hz[filt_idx]
    buff = np.sin(2 * np.pi * hz * np.arange(16000) / 16000)
    _, log_fbe, _ = computer.compute_full(buff)
    energies = log_fbe.mean(1)
    assert np.argmax(energies) == filt_idx
    near = energies[filt_idx - 1:filt_idx + 2]
    far = np.concatenate([energies[:filt_idx - 2], energies[filt_idx + 3:]])
    assert far.max() < energies[filt_idx] - 2
    assert far.max() < near.min()


def test_callable_window_matches_alias():
    buff = np.random.randn(4000)
    a = compute.mfcc(buff, 16000, window=hamming)
    b = compute.mfcc(buff, 16000, window='hamming')
    c = compute.mfcc(buff, 16000, window=HammingWindow())
    for x, y, z in zip(a, b, c):
        assert np.allclose(x, y)
        assert np.allclose(y, z)


def test_input_signal_untouched():
    buff = (np.random.randn(4000) * 1000).astype(np.int16)
    buff_copy = buff.copy()
    buff.flags.writeable = False
    cepstra, _, _ = compute.mfcc(buff, 16000)
    assert np.array_equal(buff, buff_copy)
    assert cepstra.dtype == np.float64


def test_fftpack_matches_numpy(monkeypatch):
    if not config.USE_FFTPACK:
        pytest.skip("scipy.fftpack is unavailable")
    buff = np.random.randn(8000)
    exp = compute.mfcc(buff, 16000)
    monkeypatch.setattr(config, "USE_FFTPACK", False)
    act = compute.mfcc(buff, 16000)
    for x, y in zip(exp, act):
        assert np.allclose(x, y)


def test_computer_properties():
    computer = compute.MFCCFrameComputer(
        sampling_rate=16000, frame_length_ms=25, frame_shift_ms=10)
    assert computer.frame_length == 400
    assert computer.frame_shift == 160
    assert computer.frame_length_ms == 25
    assert computer.frame_shift_ms == 10
    assert computer.dft_size == 512
    assert computer.num_coeffs == 13
    assert computer.num_filts == 20
    assert computer.bank_matrix.shape == (20, 257)
    assert computer.dct_matrix.shape == (13, 20)
    assert computer.get_num_frames(16000) == 98
    assert computer.get_num_frames(399) == 0
    assert compute.MFCCFrameComputer(num_ceps=21).num_coeffs == 21


@pytest.mark.parametrize('sampling_rate,frame_length,frame_shift', [
    (44100, 1103, 441),
    (22050, 551, 221),
])
def test_computer_rounds_half_samples_up(sampling_rate, frame_length, frame_shift):
    computer = compute.MFCCFrameComputer(sampling_rate=sampling_rate)
    assert computer.frame_length == frame_length
    assert computer.frame_shift == frame_shift
    assert computer.dft_size == (2048 if sampling_rate == 44100 else 1024)
    assert computer.get_num_frames(sampling_rate) == (
        (sampling_rate - frame_length) // frame_shift + 1)


def test_list_window_matches_array():
    coeffs = np.hamming(400)
    buff = np.random.randn(4000)
    a = compute.mfcc(buff, 16000, window=coeffs)
    b = compute.mfcc(buff, 16000, window=list(coeffs))
    for x, y in zip(a, b):
        assert np.allclose(x, y)


def test_short_dft_truncates_frames():
    with pytest.warns(UserWarning):
        computer = compute.MFCCFrameComputer(dft_size=256)
    cepstra, log_fbe, frames = computer.compute_full(np.random.randn(1600))
    assert frames.shape == (400, 8)
    assert computer.bank_matrix.shape == (20, 129)
    assert np.all(np.isfinite(cepstra))


@pytest.mark.parametrize('kwargs', [
    {'sampling_rate': 0},
    {'frame_length_ms': 0},
    {'frame_shift_ms': -10},
    {'frame_length_ms': 10, 'frame_shift_ms': 25},
    {'frame_shift_ms': 0.01},
    {'num_filts': 0},
    {'num_ceps': 0},
    {'num_ceps': 22},
    {'lifter': -1},
    {'lifter': 1.5},
    {'freq_range': (3700, 300)},
    {'freq_range': (300, 9000)},
    {'freq_range': (-1, 3700)},
    {'freq_range': (300,)},
    {'dft_size': 500},
    {'window': lambda N: np.ones(N - 1)},
    {'window': [1.0] * 399},
    {'window': 'not a window'},
    {'log_floor': 0},
], ids=[
    'zero rate',
    'zero length',
    'negative shift',
    'shift > length',
    'shift < sample',
    'no filters',
    'no ceps',
    'too many ceps',
    'negative lifter',
    'fractional lifter',
    'reversed range',
    'range above nyquist',
    'negative range',
    'short range',
    'non power of two dft',
    'bad window length',
    'bad window list length',
    'unknown window',
    'zero floor',
])
def test_computer_rejects_bad_parameters(kwargs):
    with pytest.raises(ValueError):
        compute.MFCCFrameComputer(**kwargs)


def test_computer_rejects_non_1d_signal():
    computer = compute.MFCCFrameComputer()
    with pytest.raises(ValueError):
        computer.compute_full(np.random.randn(2, 4000))


def test_unknown_computer_alias():
    with pytest.raises(ValueError):
        alias_factory_subclass_from_arg(compute.FrameComputer, {'alias': 'plp'})
    with pytest.raises(ValueError):
        alias_factory_subclass_from_arg(compute.FrameComputer, {'rate': 16000})


def test_docstring_examples_run():
    failures, _ = doctest.testmod(compute)
    assert not failures
