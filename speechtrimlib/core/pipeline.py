#!/usr/bin/env python3

import numpy
from speechtrimlib.core import segmenter
from speechtrimlib.core import stitcher
from speechtrimlib.core import utils
from speechtrimlib.core.buffer import SampleBuffer
from speechtrimlib.core.buffer import downmix_to_mono
from speechtrimlib.core.errors import InvalidBuffer
from speechtrimlib.core.errors import InvalidConfiguration
from speechtrimlib.core.settings import TrimSettings
from speechtrimlib.media import equalizer
from speechtrimlib.media import wav

#============================================

class TrimPipeline():
	"""
	Downmix, cut long silences, crossfade the remaining speech, and
	optionally equalize. run() returns the encoded wav.
	"""
	def __init__(self, settings: TrimSettings = None):
		if settings is None:
			settings = TrimSettings()
		if not isinstance(settings, TrimSettings):
			raise InvalidConfiguration("settings must be a TrimSettings")
		self.settings = settings
		self.stats = {}

	#============================
	def _validate(self, buffer: SampleBuffer) -> None:
		if not isinstance(buffer, SampleBuffer):
			raise InvalidBuffer("input must be a SampleBuffer")
		self.settings.validate()
		buffer.validate()

	#============================
	def process(self, buffer: SampleBuffer) -> numpy.ndarray:
		"""
		Run every stage up to the final mono float buffer.

		Args:
			buffer: Input samples, any channel count.

		Returns:
			numpy.ndarray: Processed mono samples.
		"""
		self._validate(buffer)
		sample_rate = int(buffer.sample_rate)
		mono = downmix_to_mono(buffer).channels[0]
		min_silence_samples = utils.ms_to_samples(self.settings.min_silence_ms, sample_rate)
		overlap_samples = utils.ms_to_samples(self.settings.overlap_ms, sample_rate)
		gap_samples = segmenter.merge_gap_samples(sample_rate)
		if mono.size == 0:
			raw_segments = []
			segments = []
			output = numpy.zeros(0, dtype=numpy.float64)
		else:
			raw_segments = segmenter.detect_speech_segments(mono, sample_rate,
				self.settings.silence_threshold, min_silence_samples)
			segments = segmenter.merge_segments(raw_segments, gap_samples)
			output = stitcher.stitch_segments(mono, segments, overlap_samples)
		if self.settings.eq_enabled and output.size > 0:
			gains = equalizer.preset_gains(self.settings.eq_preset,
				self.settings.eq_low_db, self.settings.eq_mid_db,
				self.settings.eq_high_db)
			output = equalizer.apply_equalizer(output, sample_rate, *gains)
		self.stats = self._build_stats(buffer, mono.size, output.size,
			raw_segments, segments, min_silence_samples, overlap_samples,
			gap_samples)
		return output

	#============================
	def run(self, buffer: SampleBuffer) -> wav.EncodedAudio:
		output = self.process(buffer)
		encoded = wav.encode_wav(output, int(buffer.sample_rate))
		self.stats['byte_length'] = encoded.byte_length
		return encoded

	#============================
	def _build_stats(self, buffer: SampleBuffer, input_samples: int,
		output_samples: int, raw_segments: list, segments: list,
		min_silence_samples: int, overlap_samples: int, gap_samples: int) -> dict:
		sample_rate = int(buffer.sample_rate)
		removed = input_samples - output_samples
		removed_pct = 0.0
		if input_samples > 0:
			removed_pct = (removed / float(input_samples)) * 100.0
		return {
			'sample_rate': sample_rate,
			'channels': buffer.channel_count,
			'input_samples': input_samples,
			'output_samples': output_samples,
			'input_seconds': utils.samples_to_seconds(input_samples, sample_rate),
			'output_seconds': utils.samples_to_seconds(output_samples, sample_rate),
			'removed_pct': removed_pct,
			'min_silence_samples': min_silence_samples,
			'overlap_samples': overlap_samples,
			'merge_gap_samples': gap_samples,
			'raw_segment_count': len(raw_segments),
			'segment_count': len(segments),
			'boundary_overlaps': stitcher.boundary_overlaps(segments, overlap_samples),
			'segments': [dict(segment) for segment in segments],
			'eq_enabled': bool(self.settings.eq_enabled),
		}

#============================================

def process_buffer(buffer: SampleBuffer, settings: TrimSettings = None) -> wav.EncodedAudio:
	return TrimPipeline(settings).run(buffer)
