#!/usr/bin/env python3

import os
import tempfile
from speechtrimlib.core import utils
from speechtrimlib.core.buffer import SampleBuffer
from speechtrimlib.core.errors import InvalidBuffer
from speechtrimlib.media import wav

#============================================

WAV_EXTENSIONS = ('.wav', '.wave')

#============================================

def make_temp_wav() -> str:
	temp_handle, temp_path = tempfile.mkstemp(prefix="speechtrim-", suffix=".wav")
	os.close(temp_handle)
	return temp_path

#============================================

def extract_audio(input_file: str, wav_path: str, sample_rate: int = None) -> str:
	"""
	Decode any media file to 16-bit PCM wav with ffmpeg.

	The channel layout is kept, so downmixing happens in the pipeline.

	Args:
		input_file: Source media path.
		wav_path: Output wav path.
		sample_rate: Optional resample rate; source rate when None.

	Returns:
		str: Output wav path.
	"""
	utils.ensure_file_exists(input_file)
	utils.check_dependency("ffmpeg")
	cmd = [
		"ffmpeg", "-y", "-hide_banner", "-loglevel", "error",
		"-i", input_file,
		"-vn", "-sn",
		"-acodec", "pcm_s16le",
	]
	if sample_rate is not None:
		cmd += ["-ar", str(int(sample_rate))]
	cmd.append(wav_path)
	utils.run_process(cmd, capture_output=True)
	if not os.path.isfile(wav_path):
		raise RuntimeError("audio extraction failed")
	return wav_path

#============================================

def load_audio(input_file: str, sample_rate: int = None,
	keep_wav: bool = False) -> SampleBuffer:
	"""
	Load samples from a wav file directly, or through ffmpeg otherwise.

	Args:
		input_file: Source media path.
		sample_rate: Optional resample rate for ffmpeg decoding.
		keep_wav: Keep the intermediate wav next to the temp dir.

	Returns:
		SampleBuffer: Decoded samples.
	"""
	utils.ensure_file_exists(input_file)
	extension = os.path.splitext(input_file)[1].lower()
	if extension in WAV_EXTENSIONS and sample_rate is None:
		try:
			return wav.read_wav(input_file)
		except InvalidBuffer as exc:
			utils.log(f"Direct wav read failed ({exc}), decoding with ffmpeg")
	temp_wav = make_temp_wav()
	try:
		extract_audio(input_file, temp_wav, sample_rate=sample_rate)
		buffer = wav.read_wav(temp_wav)
	finally:
		if keep_wav:
			utils.log(f"Kept decoded wav: {temp_wav}")
		elif os.path.exists(temp_wav):
			os.remove(temp_wav)
	return buffer
