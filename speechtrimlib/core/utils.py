#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess
from fractions import Fraction

#============================================

QUIET_MODE = False

#============================================

def set_quiet_mode(quiet: bool) -> None:
	global QUIET_MODE
	QUIET_MODE = bool(quiet)
	return

#============================================

def log(message: str) -> None:
	if QUIET_MODE:
		return
	print(message)
	return

#============================================

def run_process(cmd: list, capture_output: bool = True) -> subprocess.CompletedProcess:
	"""
	Run a subprocess command.

	Args:
		cmd: Command list to execute.
		capture_output: Capture stdout and stderr when True.

	Returns:
		subprocess.CompletedProcess: The completed process.
	"""
	showcmd = shlex.join(cmd)
	log(f"CMD: '{showcmd}'")
	proc = subprocess.run(cmd, capture_output=capture_output, text=True)
	if proc.returncode != 0:
		stderr_text = (proc.stderr or "").strip()
		raise RuntimeError(f"command failed: {showcmd}\n{stderr_text}")
	return proc

#============================================

def check_dependency(cmd_name: str) -> None:
	if shutil.which(cmd_name) is None:
		raise RuntimeError(f"missing dependency: {cmd_name}")
	return

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.isfile(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return

#============================================

def round_half_up_fraction(value: Fraction) -> int:
	numerator = value.numerator
	denominator = value.denominator
	whole = numerator // denominator
	remainder = numerator - (whole * denominator)
	if remainder * 2 >= denominator:
		return whole + 1
	return whole

#============================================

def round_half_up(value: float) -> int:
	"""
	Round to the nearest integer, ties toward positive infinity.
	"""
	return round_half_up_fraction(Fraction(value))

#============================================

def ms_to_samples(ms: float, sample_rate: int) -> int:
	samples = round_half_up((ms / 1000.0) * sample_rate)
	return max(0, samples)

#============================================

def samples_to_seconds(samples: int, sample_rate: int) -> float:
	if sample_rate <= 0:
		return 0.0
	return samples / float(sample_rate)

#============================================

def format_timestamp(seconds: float) -> str:
	"""
	Format seconds as HH:MM:SS.mmm, rounding to the nearest millisecond.
	"""
	total_millis = max(0, round_half_up_fraction(Fraction(str(seconds)) * 1000))
	minutes, millis = divmod(total_millis, 60000)
	hours, minutes = divmod(minutes, 60)
	return f"{hours:02d}:{minutes:02d}:{millis // 1000:02d}.{millis % 1000:03d}"
