#!/usr/bin/env python3

"""
Unit tests for the three-band equalizer.
"""

# Standard Library
import os
import sys

# PIP3 modules
import numpy
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

from speechtrimlib.core.errors import InvalidConfiguration
from speechtrimlib.media import equalizer

#============================================

def test_preset_gains() -> None:
	assert equalizer.preset_gains('clear') == (-3.0, 4.0, 2.0)
	assert equalizer.preset_gains('warm') == (2.0, -2.0, 1.0)
	assert equalizer.preset_gains('cinematic') == (5.0, -3.0, 2.0)
	assert equalizer.preset_gains('flat') == (0.0, 0.0, 0.0)
	assert equalizer.preset_gains('custom', 1, -1, 3) == (1.0, -1.0, 3.0)

#============================================

def test_unknown_preset_rejected() -> None:
	with pytest.raises(InvalidConfiguration):
		equalizer.preset_gains('loud')

#============================================

def test_flat_gains_pass_signal_through() -> None:
	rng = numpy.random.default_rng(7)
	samples = rng.uniform(-0.5, 0.5, 4096)
	output = equalizer.apply_equalizer(samples, 44100, 0.0, 0.0, 0.0)
	assert output.shape == samples.shape
	numpy.testing.assert_allclose(output, samples, atol=1e-9)

#============================================

def test_low_shelf_scales_dc() -> None:
	"""
	A constant signal settles at the low shelf gain.
	"""
	samples = numpy.full(16000, 0.1)
	output = equalizer.apply_equalizer(samples, 16000, 6.0, 0.0, 0.0)
	assert output[-1] == pytest.approx(0.1 * 10 ** (6.0 / 20.0), rel=1e-3)

#============================================

def test_high_shelf_leaves_dc_alone() -> None:
	samples = numpy.full(48000, 0.1)
	output = equalizer.apply_equalizer(samples, 48000, 0.0, 0.0, 6.0)
	assert output[-1] == pytest.approx(0.1, rel=1e-3)

#============================================

def test_high_shelf_above_nyquist_is_passthrough() -> None:
	section = equalizer.high_shelf_section(10000.0, 6.0, 16000)
	numpy.testing.assert_array_equal(section, [1.0, 0.0, 0.0, 1.0, 0.0, 0.0])
	section = equalizer.peaking_section(3000.0, 6.0, 0.9, 4000)
	numpy.testing.assert_array_equal(section, [1.0, 0.0, 0.0, 1.0, 0.0, 0.0])

#============================================

def test_low_shelf_above_nyquist_is_constant_gain() -> None:
	section = equalizer.low_shelf_section(120.0, 20.0, 200)
	assert section[0] == pytest.approx(10.0)
	assert section[1:3].tolist() == [0.0, 0.0]

#============================================

def test_sos_shape() -> None:
	sos = equalizer.build_sos(44100, 2.0, -2.0, 1.0)
	assert sos.shape == (3, 6)
	numpy.testing.assert_array_equal(sos[:, 3], [1.0, 1.0, 1.0])

#============================================

def test_empty_input() -> None:
	output = equalizer.apply_equalizer(numpy.zeros(0), 16000, 2.0, -2.0, 1.0)
	assert output.size == 0
