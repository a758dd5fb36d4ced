#!/usr/bin/env python3

"""
Three-band voice equalizer: low shelf, peaking mid, high shelf.

Coefficients follow the RBJ audio EQ cookbook in the form used by the
Web Audio BiquadFilterNode (shelf slope 1).
"""

import math
import numpy
import scipy.signal
from speechtrimlib.core.errors import InvalidConfiguration

#============================================

LOW_SHELF_HZ = 120.0
PEAKING_HZ = 3000.0
PEAKING_Q = 0.9
HIGH_SHELF_HZ = 10000.0

EQ_PRESETS = {
	# lighter low end, presence and air
	'clear': (-3.0, 4.0, 2.0),
	# fuller low end, softer upper mids
	'warm': (2.0, -2.0, 1.0),
	# deep low end, small mid cut
	'cinematic': (5.0, -3.0, 2.0),
	'flat': (0.0, 0.0, 0.0),
}

#============================================

def preset_gains(preset: str, low_db: float = 0.0, mid_db: float = 0.0,
	high_db: float = 0.0) -> tuple:
	"""
	Resolve a preset name to (low_db, mid_db, high_db).

	'custom' returns the explicit gains.
	"""
	if preset == 'custom':
		return (float(low_db), float(mid_db), float(high_db))
	gains = EQ_PRESETS.get(preset)
	if gains is None:
		raise InvalidConfiguration(f"unknown equalizer preset: {preset}")
	return gains

#============================================

def _normalize(b0, b1, b2, a0, a1, a2) -> numpy.ndarray:
	return numpy.array([b0 / a0, b1 / a0, b2 / a0, 1.0, a1 / a0, a2 / a0],
		dtype=numpy.float64)

#============================================

def _passthrough() -> numpy.ndarray:
	return numpy.array([1.0, 0.0, 0.0, 1.0, 0.0, 0.0], dtype=numpy.float64)

#============================================

def _constant_gain(gain_db: float) -> numpy.ndarray:
	gain = 10.0 ** (gain_db / 20.0)
	return numpy.array([gain, 0.0, 0.0, 1.0, 0.0, 0.0], dtype=numpy.float64)

#============================================

def low_shelf_section(frequency: float, gain_db: float, sample_rate: int) -> numpy.ndarray:
	nyquist = sample_rate / 2.0
	if frequency >= nyquist:
		return _constant_gain(gain_db)
	if frequency <= 0:
		return _passthrough()
	amp = 10.0 ** (gain_db / 40.0)
	w0 = 2.0 * math.pi * frequency / sample_rate
	cos_w0 = math.cos(w0)
	alpha = math.sin(w0) / 2.0 * math.sqrt(2.0)
	sqrt_amp = 2.0 * math.sqrt(amp) * alpha
	b0 = amp * ((amp + 1) - (amp - 1) * cos_w0 + sqrt_amp)
	b1 = 2 * amp * ((amp - 1) - (amp + 1) * cos_w0)
	b2 = amp * ((amp + 1) - (amp - 1) * cos_w0 - sqrt_amp)
	a0 = (amp + 1) + (amp - 1) * cos_w0 + sqrt_amp
	a1 = -2 * ((amp - 1) + (amp + 1) * cos_w0)
	a2 = (amp + 1) + (amp - 1) * cos_w0 - sqrt_amp
	return _normalize(b0, b1, b2, a0, a1, a2)

#============================================

def peaking_section(frequency: float, gain_db: float, q: float,
	sample_rate: int) -> numpy.ndarray:
	nyquist = sample_rate / 2.0
	if frequency >= nyquist or frequency <= 0:
		return _passthrough()
	if q <= 0:
		return _constant_gain(gain_db)
	amp = 10.0 ** (gain_db / 40.0)
	w0 = 2.0 * math.pi * frequency / sample_rate
	cos_w0 = math.cos(w0)
	alpha = math.sin(w0) / (2.0 * q)
	b0 = 1 + alpha * amp
	b1 = -2 * cos_w0
	b2 = 1 - alpha * amp
	a0 = 1 + alpha / amp
	a1 = -2 * cos_w0
	a2 = 1 - alpha / amp
	return _normalize(b0, b1, b2, a0, a1, a2)

#============================================

def high_shelf_section(frequency: float, gain_db: float, sample_rate: int) -> numpy.ndarray:
	nyquist = sample_rate / 2.0
	if frequency >= nyquist:
		return _passthrough()
	if frequency <= 0:
		return _constant_gain(gain_db)
	amp = 10.0 ** (gain_db / 40.0)
	w0 = 2.0 * math.pi * frequency / sample_rate
	cos_w0 = math.cos(w0)
	alpha = math.sin(w0) / 2.0 * math.sqrt(2.0)
	sqrt_amp = 2.0 * math.sqrt(amp) * alpha
	b0 = amp * ((amp + 1) + (amp - 1) * cos_w0 + sqrt_amp)
	b1 = -2 * amp * ((amp - 1) + (amp + 1) * cos_w0)
	b2 = amp * ((amp + 1) + (amp - 1) * cos_w0 - sqrt_amp)
	a0 = (amp + 1) - (amp - 1) * cos_w0 + sqrt_amp
	a1 = 2 * ((amp - 1) - (amp + 1) * cos_w0)
	a2 = (amp + 1) - (amp - 1) * cos_w0 - sqrt_amp
	return _normalize(b0, b1, b2, a0, a1, a2)

#============================================

def build_sos(sample_rate: int, low_db: float, mid_db: float,
	high_db: float) -> numpy.ndarray:
	"""
	Second-order sections for the three bands, in processing order.

	Returns:
		numpy.ndarray: (3, 6) array usable with scipy.signal.sosfilt.
	"""
	return numpy.vstack([
		low_shelf_section(LOW_SHELF_HZ, low_db, sample_rate),
		peaking_section(PEAKING_HZ, mid_db, PEAKING_Q, sample_rate),
		high_shelf_section(HIGH_SHELF_HZ, high_db, sample_rate),
	])

#============================================

def apply_equalizer(samples, sample_rate: int, low_db: float, mid_db: float,
	high_db: float) -> numpy.ndarray:
	"""
	Filter a mono buffer through the three bands.

	Args:
		samples: Mono float samples.
		sample_rate: Sample rate in Hz.
		low_db: Low shelf gain in dB.
		mid_db: Peaking gain in dB.
		high_db: High shelf gain in dB.

	Returns:
		numpy.ndarray: New array of the same length.
	"""
	values = numpy.asarray(samples, dtype=numpy.float64).reshape(-1)
	if values.size == 0:
		return values.copy()
	sos = build_sos(sample_rate, low_db, mid_db, high_db)
	return scipy.signal.sosfilt(sos, values)
