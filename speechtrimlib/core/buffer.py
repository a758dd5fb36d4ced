#!/usr/bin/env python3

import numpy
from speechtrimlib.core.errors import InvalidBuffer

#============================================

class SampleBuffer():
	"""
	Float samples for one clip, stored as one array per channel.

	Values are nominally in [-1, 1]. The buffer owns its arrays; callers
	that hand in numpy arrays get copies made at construction.
	"""
	def __init__(self, channels, sample_rate: int):
		if isinstance(channels, numpy.ndarray):
			if channels.ndim == 1:
				channels = [channels]
		elif len(channels) == 0 or numpy.ndim(channels[0]) == 0:
			# flat or empty sequence is a single channel
			channels = [channels]
		self.channels = [numpy.array(data, dtype=numpy.float64, copy=True).reshape(-1)
			for data in channels]
		self.sample_rate = sample_rate

	#============================
	@classmethod
	def from_interleaved(cls, samples, channel_count: int, sample_rate: int):
		if channel_count <= 0:
			raise InvalidBuffer("channel count must be positive")
		flat = numpy.asarray(samples, dtype=numpy.float64).reshape(-1)
		if flat.size % channel_count != 0:
			raise InvalidBuffer(
				f"interleaved length {flat.size} is not a multiple of {channel_count} channels"
			)
		frames = flat.reshape(-1, channel_count)
		return cls([frames[:, index] for index in range(channel_count)], sample_rate)

	#============================
	@property
	def channel_count(self) -> int:
		return len(self.channels)

	#============================
	def __len__(self) -> int:
		if len(self.channels) == 0:
			return 0
		return int(self.channels[0].size)

	#============================
	def validate(self) -> None:
		if isinstance(self.sample_rate, bool) or not isinstance(self.sample_rate, (int, numpy.integer)):
			raise InvalidBuffer("sample rate must be an integer")
		if self.sample_rate <= 0:
			raise InvalidBuffer(f"sample rate must be positive, got {self.sample_rate}")
		if len(self.channels) == 0:
			raise InvalidBuffer("buffer has no channels")
		length = self.channels[0].size
		for index, data in enumerate(self.channels):
			if data.size != length:
				raise InvalidBuffer(
					f"channel {index} has {data.size} samples, expected {length}"
				)
			if not numpy.all(numpy.isfinite(data)):
				raise InvalidBuffer(f"channel {index} contains non-finite samples")
		return

#============================================

def downmix_to_mono(buffer: SampleBuffer) -> SampleBuffer:
	"""
	Collapse all channels into one by averaging each sample index.

	A single-channel buffer comes back as a copy, never a view.

	Args:
		buffer: Source buffer with one or more equal-length channels.

	Returns:
		SampleBuffer: New mono buffer at the same sample rate.
	"""
	if buffer.channel_count == 0:
		raise InvalidBuffer("buffer has no channels")
	length = buffer.channels[0].size
	for index, data in enumerate(buffer.channels):
		if data.size != length:
			raise InvalidBuffer(
				f"channel {index} has {data.size} samples, expected {length}"
			)
	if buffer.channel_count == 1:
		mono = buffer.channels[0].copy()
	else:
		stacked = numpy.vstack(buffer.channels)
		mono = numpy.mean(stacked, axis=0, dtype=numpy.float64)
	return SampleBuffer([mono], buffer.sample_rate)
