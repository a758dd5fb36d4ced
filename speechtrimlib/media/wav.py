#!/usr/bin/env python3

"""
RIFF/WAVE reading and 16-bit mono PCM encoding.
"""

import os
import struct
import wave
import numpy
import soundfile
from speechtrimlib.core import utils
from speechtrimlib.core.buffer import SampleBuffer
from speechtrimlib.core.errors import InvalidBuffer

#============================================

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = 2
PCM_FORMAT = 1
FMT_CHUNK_SIZE = 16
POSITIVE_SCALE = 32767.0
NEGATIVE_SCALE = 32768.0

# RIFF id, size, WAVE, fmt id, fmt size, format, channels, rate,
# byte rate, block align, bits, data id, data size
HEADER_STRUCT = struct.Struct('<4sI4s4sIHHIIHH4sI')

#============================================

class EncodedAudio():
	"""
	Framed WAV bytes produced by encode_wav(); never modified afterwards.
	"""
	__slots__ = ('_data', '_sample_rate', '_sample_count')

	def __init__(self, data: bytes, sample_rate: int, sample_count: int):
		object.__setattr__(self, '_data', bytes(data))
		object.__setattr__(self, '_sample_rate', sample_rate)
		object.__setattr__(self, '_sample_count', sample_count)

	#============================
	def __setattr__(self, name, value):
		raise AttributeError("EncodedAudio is immutable")

	#============================
	@property
	def data(self) -> bytes:
		return self._data

	#============================
	@property
	def byte_length(self) -> int:
		return len(self._data)

	#============================
	@property
	def sample_rate(self) -> int:
		return self._sample_rate

	#============================
	@property
	def sample_count(self) -> int:
		return self._sample_count

	#============================
	@property
	def data_size(self) -> int:
		return self._sample_count * BYTES_PER_SAMPLE

#============================================

def float_to_pcm16(samples) -> numpy.ndarray:
	"""
	Convert float samples to signed 16-bit values.

	Samples are clamped to [-1, 1]; non-negative values scale by 32767 and
	negative values by 32768, then round half up.

	Args:
		samples: Float samples.

	Returns:
		numpy.ndarray: int16 array of the same length.
	"""
	values = numpy.clip(numpy.asarray(samples, dtype=numpy.float64), -1.0, 1.0)
	scaled = numpy.where(values >= 0, values * POSITIVE_SCALE, values * NEGATIVE_SCALE)
	rounded = numpy.floor(scaled + 0.5)
	return numpy.clip(rounded, -NEGATIVE_SCALE, POSITIVE_SCALE).astype(numpy.int16)

#============================================

def build_wav_header(sample_rate: int, sample_count: int) -> bytes:
	data_size = sample_count * BYTES_PER_SAMPLE
	block_align = BYTES_PER_SAMPLE
	byte_rate = sample_rate * block_align
	return HEADER_STRUCT.pack(
		b'RIFF', 36 + data_size, b'WAVE',
		b'fmt ', FMT_CHUNK_SIZE, PCM_FORMAT, 1, sample_rate,
		byte_rate, block_align, BITS_PER_SAMPLE,
		b'data', data_size,
	)

#============================================

def encode_wav(samples, sample_rate: int) -> EncodedAudio:
	"""
	Encode mono float samples as a 16-bit PCM WAV container.

	Args:
		samples: Mono float samples.
		sample_rate: Sample rate in Hz.

	Returns:
		EncodedAudio: Header plus little-endian sample data.
	"""
	if isinstance(sample_rate, bool) or not isinstance(sample_rate, (int, numpy.integer)):
		raise InvalidBuffer("sample rate must be an integer")
	if sample_rate <= 0:
		raise InvalidBuffer(f"sample rate must be positive, got {sample_rate}")
	values = numpy.asarray(samples, dtype=numpy.float64).reshape(-1)
	if not numpy.all(numpy.isfinite(values)):
		raise InvalidBuffer("cannot encode non-finite samples")
	pcm = float_to_pcm16(values).astype('<i2', copy=False)
	header = build_wav_header(int(sample_rate), int(values.size))
	return EncodedAudio(header + pcm.tobytes(), int(sample_rate), int(values.size))

#============================================

def write_wav_file(output_file: str, encoded: EncodedAudio) -> str:
	os.makedirs(os.path.dirname(output_file) or '.', exist_ok=True)
	with open(output_file, 'wb') as handle:
		handle.write(encoded.data)
	return output_file

#============================================

def get_wav_info(audio_path: str) -> dict:
	"""
	Get wav metadata.

	Args:
		audio_path: Audio file path.

	Returns:
		dict: Wav info.
	"""
	with wave.open(audio_path, 'rb') as wav_handle:
		channels = wav_handle.getnchannels()
		sample_rate = wav_handle.getframerate()
		sample_width = wav_handle.getsampwidth()
		total_frames = wav_handle.getnframes()
	if sample_rate <= 0:
		raise InvalidBuffer("audio sample rate must be positive")
	if channels <= 0:
		raise InvalidBuffer("audio channel count must be positive")
	return {
		'channels': channels,
		'sample_rate': sample_rate,
		'sample_width': sample_width,
		'total_frames': total_frames,
		'duration': total_frames / float(sample_rate),
	}

#============================================

def read_wav(audio_path: str) -> SampleBuffer:
	"""
	Read a wav file into float samples.

	Integer PCM at 8, 16 or 32 bits goes through the wave module. Float,
	24-bit and WAVE_FORMAT_EXTENSIBLE files go through soundfile.

	Args:
		audio_path: Wav file path.

	Returns:
		SampleBuffer: One float array per channel.
	"""
	utils.ensure_file_exists(audio_path)
	try:
		info = get_wav_info(audio_path)
	except (wave.Error, EOFError):
		return read_sound_file(audio_path)
	channels = info['channels']
	sample_width = info['sample_width']
	dtype_map = {
		1: numpy.dtype('u1'),
		2: numpy.dtype('<i2'),
		4: numpy.dtype('<i4'),
	}
	if sample_width not in dtype_map:
		return read_sound_file(audio_path)
	with wave.open(audio_path, 'rb') as wav_handle:
		data = wav_handle.readframes(info['total_frames'])
	samples = numpy.frombuffer(data, dtype=dtype_map[sample_width])
	if sample_width == 1:
		values = (samples.astype(numpy.float64) - 128.0) / 128.0
	else:
		full_scale = float(2 ** (8 * sample_width - 1))
		values = samples.astype(numpy.float64) / full_scale
	frame_count = values.size // channels
	values = values[:frame_count * channels]
	return SampleBuffer.from_interleaved(values, channels, info['sample_rate'])

#============================================

def read_sound_file(audio_path: str) -> SampleBuffer:
	"""
	Read any libsndfile-supported file into float samples.
	"""
	try:
		data, sample_rate = soundfile.read(audio_path, dtype='float64', always_2d=True)
	except RuntimeError as exc:
		raise InvalidBuffer(f"cannot decode {audio_path}: {exc}") from exc
	if sample_rate <= 0 or data.shape[1] <= 0:
		raise InvalidBuffer(f"cannot decode {audio_path}: no audio stream")
	channels = [data[:, index] for index in range(data.shape[1])]
	return SampleBuffer(channels, int(sample_rate))
