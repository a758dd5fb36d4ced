#!/usr/bin/env python3

"""
Silence based speech segmentation.

Speech regions are the parts of a mono buffer that are not covered by a
silence run of at least min_silence_samples samples. A sample is silent when
its absolute amplitude is strictly below the threshold.
"""

import math
import numpy

#============================================

MERGE_GAP_SECONDS = 0.03

IN_SPEECH = 'in_speech'
IN_SILENCE = 'in_silence'

#============================================

class SpeechScanner():
	"""
	Two-state machine that turns a stream of silence predicates into
	speech segments.

	The machine starts in speech with speech_start = 0 and silence_run = 0.
	Feed samples in order with step(), or whole runs of equal predicates
	with advance_run(), then call finish() once with the buffer length.
	"""
	def __init__(self, min_silence_samples: int):
		self.min_silence_samples = max(0, int(min_silence_samples))
		self.state = IN_SPEECH
		self.speech_start = 0
		self.silence_run = 0
		self.segments = []

	#============================
	@property
	def in_silence(self) -> bool:
		return self.state == IN_SILENCE

	#============================
	def step(self, index: int, is_silent: bool) -> None:
		self.advance_run(index, 1, is_silent)
		return

	#============================
	def advance_run(self, start: int, length: int, is_silent: bool) -> None:
		"""
		Apply length consecutive samples that share one silence predicate.

		Produces the same state and segments as calling step() for every
		index in [start, start + length).
		"""
		if length <= 0:
			return
		if not is_silent:
			if self.state == IN_SILENCE:
				self.speech_start = start
				self.state = IN_SPEECH
			self.silence_run = 0
			return
		prior_run = self.silence_run
		self.silence_run = prior_run + length
		if self.state == IN_SILENCE:
			return
		# first index where the running count reaches the minimum
		needed = max(self.min_silence_samples - prior_run, 1)
		if needed > length:
			return
		trigger_index = start + needed - 1
		run_at_trigger = prior_run + needed
		self._close_segment(self.speech_start, trigger_index - run_at_trigger)
		self.state = IN_SILENCE
		return

	#============================
	def _close_segment(self, start: int, end: int) -> None:
		if end > start:
			self.segments.append({'start': start, 'end': end})
		return

	#============================
	def finish(self, total_samples: int) -> list:
		"""
		Apply the tail and fallback rules and return the segment list.
		"""
		if self.state == IN_SPEECH and self.speech_start < total_samples:
			self._close_segment(self.speech_start, total_samples)
		if len(self.segments) == 0:
			self.segments.append({'start': 0, 'end': total_samples})
		return [dict(segment) for segment in self.segments]

#============================================

def silence_mask(samples: numpy.ndarray, silence_threshold: float) -> numpy.ndarray:
	return numpy.abs(samples) < silence_threshold

#============================================

def mask_runs(mask: numpy.ndarray) -> tuple:
	"""
	Split a boolean mask into runs of equal values.

	Args:
		mask: Boolean array.

	Returns:
		tuple: (starts, lengths, values) arrays, one entry per run.
	"""
	if mask.size == 0:
		empty = numpy.array([], dtype=numpy.int64)
		return empty, empty, numpy.array([], dtype=bool)
	mask_int = mask.astype(numpy.int8)
	change_idxs = numpy.where(numpy.diff(mask_int) != 0)[0] + 1
	starts = numpy.concatenate((numpy.array([0], dtype=numpy.int64), change_idxs))
	ends = numpy.concatenate((change_idxs, numpy.array([mask.size], dtype=numpy.int64)))
	return starts, ends - starts, mask[starts]

#============================================

def detect_speech_segments(samples: numpy.ndarray, sample_rate: int,
	silence_threshold: float, min_silence_samples: int) -> list:
	"""
	Scan a mono buffer for speech regions separated by long silences.

	Args:
		samples: Mono float samples.
		sample_rate: Sample rate in Hz.
		silence_threshold: Amplitude below which a sample is silent.
		min_silence_samples: Silence run length that splits speech.

	Returns:
		list: Non-empty ordered list of {'start', 'end'} sample ranges.
	"""
	samples = numpy.asarray(samples, dtype=numpy.float64)
	scanner = SpeechScanner(min_silence_samples)
	mask = silence_mask(samples, silence_threshold)
	starts, lengths, values = mask_runs(mask)
	for start, length, is_silent in zip(starts, lengths, values):
		scanner.advance_run(int(start), int(length), bool(is_silent))
	return scanner.finish(int(samples.size))

#============================================

def merge_gap_samples(sample_rate: int) -> int:
	return int(math.floor(sample_rate * MERGE_GAP_SECONDS))

#============================================

def merge_segments(segments: list, gap_samples: int) -> list:
	"""
	Join segments whose gap to the previous kept segment is at most
	gap_samples. Absorbs flicker around the threshold.

	Args:
		segments: Ordered segments with start/end.
		gap_samples: Largest gap that still merges.

	Returns:
		list: Merged segments; the input list is left untouched.
	"""
	merged = []
	for segment in segments:
		if len(merged) == 0:
			merged.append({'start': segment['start'], 'end': segment['end']})
			continue
		previous = merged[-1]
		if segment['start'] - previous['end'] <= gap_samples:
			previous['end'] = segment['end']
		else:
			merged.append({'start': segment['start'], 'end': segment['end']})
	return merged

#============================================

def segments_are_ordered(segments: list) -> bool:
	for segment in segments:
		if segment['end'] <= segment['start']:
			return False
	for previous, current in zip(segments, segments[1:]):
		if previous['end'] > current['start']:
			return False
	return True
