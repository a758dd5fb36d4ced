#!/usr/bin/env python3

"""
Unit tests for silence based speech segmentation.
"""

# Standard Library
import os
import random
import sys

# PIP3 modules
import numpy
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

from speechtrimlib.core import segmenter
from speechtrimlib.core import utils

#============================================

def _tone(count: int, amplitude: float = 0.5) -> numpy.ndarray:
	"""
	Square wave that never drops below the amplitude.
	"""
	pattern = numpy.where(numpy.arange(count) % 40 < 20, 1.0, -1.0)
	return amplitude * pattern

#============================================

def _scan_per_sample(samples, threshold: float, min_silence_samples: int) -> list:
	scanner = segmenter.SpeechScanner(min_silence_samples)
	for index, value in enumerate(samples):
		scanner.step(index, abs(value) < threshold)
	return scanner.finish(len(samples))

#============================================

def test_scanner_starts_in_speech() -> None:
	scanner = segmenter.SpeechScanner(3)
	assert scanner.state == segmenter.IN_SPEECH
	assert scanner.speech_start == 0
	assert scanner.silence_run == 0

#============================================

def test_scanner_transitions() -> None:
	"""
	Walk the state table by hand: loud, long silence, loud again.
	"""
	scanner = segmenter.SpeechScanner(3)
	for index in range(5):
		scanner.step(index, False)
	scanner.step(5, True)
	scanner.step(6, True)
	assert scanner.state == segmenter.IN_SPEECH
	assert scanner.silence_run == 2
	scanner.step(7, True)
	# closes [0, 7 - 3) since the run began at index 5
	assert scanner.state == segmenter.IN_SILENCE
	assert scanner.segments == [{'start': 0, 'end': 4}]
	scanner.step(8, True)
	assert scanner.silence_run == 4
	scanner.step(9, False)
	assert scanner.state == segmenter.IN_SPEECH
	assert scanner.speech_start == 9
	assert scanner.silence_run == 0
	segments = scanner.finish(12)
	assert segments == [{'start': 0, 'end': 4}, {'start': 9, 'end': 12}]

#============================================

def test_short_silence_does_not_split() -> None:
	scanner = segmenter.SpeechScanner(4)
	predicates = [False, True, True, True, False, False]
	for index, is_silent in enumerate(predicates):
		scanner.step(index, is_silent)
	assert scanner.state == segmenter.IN_SPEECH
	assert scanner.finish(len(predicates)) == [{'start': 0, 'end': 6}]

#============================================

def test_advance_run_matches_per_sample_steps() -> None:
	"""
	Ensure run-wise feeding reproduces per-sample stepping on random input.
	"""
	rng = random.Random(1234)
	for _ in range(200):
		length = rng.randint(0, 60)
		samples = []
		while len(samples) < length:
			run = rng.randint(1, 8)
			value = rng.choice([0.0, 0.002, 0.3, -0.4])
			samples.extend([value] * run)
		samples = samples[:length]
		min_silence = rng.randint(0, 10)
		expected = _scan_per_sample(samples, 0.01, min_silence)
		actual = segmenter.detect_speech_segments(numpy.array(samples), 1000,
			0.01, min_silence)
		assert actual == expected

#============================================

def test_advance_run_with_prior_silence() -> None:
	per_sample = segmenter.SpeechScanner(5)
	by_run = segmenter.SpeechScanner(5)
	for index in range(3):
		per_sample.step(index, False)
	by_run.advance_run(0, 3, False)
	for index in range(3, 5):
		per_sample.step(index, True)
	by_run.advance_run(3, 2, True)
	for index in range(5, 9):
		per_sample.step(index, True)
	by_run.advance_run(5, 4, True)
	assert by_run.segments == per_sample.segments
	assert by_run.state == per_sample.state
	assert by_run.silence_run == per_sample.silence_run

#============================================

def test_threshold_comparison_is_strict() -> None:
	"""
	A sample equal to the threshold counts as speech.
	"""
	samples = numpy.full(100, 0.01)
	segments = segmenter.detect_speech_segments(samples, 1000, 0.01, 10)
	assert segments == [{'start': 0, 'end': 100}]
	mask = segmenter.silence_mask(numpy.array([0.0099, 0.01, -0.0101]), 0.01)
	assert mask.tolist() == [True, False, False]

#============================================

def test_all_silent_buffer_uses_fallback() -> None:
	sample_rate = 16000
	samples = numpy.zeros(sample_rate)
	min_silence = utils.ms_to_samples(100, sample_rate)
	segments = segmenter.detect_speech_segments(samples, sample_rate, 0.01, min_silence)
	assert segments == [{'start': 0, 'end': 16000}]

#============================================

def test_silent_buffer_shorter_than_min_silence_stays_whole() -> None:
	samples = numpy.zeros(50)
	segments = segmenter.detect_speech_segments(samples, 1000, 0.01, 100)
	assert segments == [{'start': 0, 'end': 50}]

#============================================

def test_all_loud_buffer_is_one_segment() -> None:
	samples = _tone(3000)
	segments = segmenter.detect_speech_segments(samples, 16000, 0.01, 160)
	assert segments == [{'start': 0, 'end': 3000}]

#============================================

def test_tone_gap_tone_splits_in_two() -> None:
	"""
	0.5 s tone, 0.3 s silence, 0.5 s tone at 16 kHz.
	"""
	sample_rate = 16000
	samples = numpy.concatenate((_tone(8000), numpy.zeros(4800), _tone(8000)))
	min_silence = utils.ms_to_samples(200, sample_rate)
	assert min_silence == 3200
	segments = segmenter.detect_speech_segments(samples, sample_rate, 0.01, min_silence)
	# the closing index is i - silence_run, one before the run start
	assert segments == [
		{'start': 0, 'end': 7999},
		{'start': 12800, 'end': 20800},
	]

#============================================

def test_leading_silence_is_dropped() -> None:
	samples = numpy.concatenate((numpy.zeros(300), _tone(500)))
	segments = segmenter.detect_speech_segments(samples, 1000, 0.01, 100)
	assert segments == [{'start': 300, 'end': 800}]

#============================================

def test_trailing_silence_is_dropped() -> None:
	samples = numpy.concatenate((_tone(500), numpy.zeros(300)))
	segments = segmenter.detect_speech_segments(samples, 1000, 0.01, 100)
	assert segments == [{'start': 0, 'end': 499}]

#============================================

def test_zero_min_silence_splits_on_every_quiet_sample() -> None:
	samples = numpy.array([0.5, 0.5, 0.5, 0.0, 0.5, 0.5, 0.5])
	segments = segmenter.detect_speech_segments(samples, 1000, 0.01, 0)
	assert segments == [{'start': 0, 'end': 2}, {'start': 4, 'end': 7}]

#============================================

def test_empty_buffer_fallback() -> None:
	segments = segmenter.detect_speech_segments(numpy.zeros(0), 16000, 0.01, 10)
	assert segments == [{'start': 0, 'end': 0}]

#============================================

@pytest.mark.parametrize("seed", [3, 17, 99])
def test_segments_are_ordered_and_in_bounds(seed: int) -> None:
	rng = numpy.random.default_rng(seed)
	samples = rng.uniform(-1.0, 1.0, 5000)
	samples[rng.uniform(size=5000) < 0.6] = 0.0
	segments = segmenter.detect_speech_segments(samples, 8000, 0.05, 3)
	assert len(segments) > 0
	assert segmenter.segments_are_ordered(segments)
	assert segments[0]['start'] >= 0
	assert segments[-1]['end'] <= samples.size

#============================================

def test_mask_runs() -> None:
	mask = numpy.array([True, True, False, True, False, False])
	starts, lengths, values = segmenter.mask_runs(mask)
	assert starts.tolist() == [0, 2, 3, 4]
	assert lengths.tolist() == [2, 1, 1, 2]
	assert values.tolist() == [True, False, True, False]
