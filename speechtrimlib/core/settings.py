#!/usr/bin/env python3

"""
Trim settings and the versioned YAML config file that stores them.
"""

import math
import os
import yaml
from speechtrimlib.core import utils
from speechtrimlib.core.errors import InvalidConfiguration

#============================================

CONFIG_VERSION = 1

DEFAULT_SILENCE_THRESHOLD = 0.015
DEFAULT_MIN_SILENCE_MS = 200
DEFAULT_OVERLAP_MS = 60
DEFAULT_EQ_PRESET = 'warm'

EQ_PRESET_NAMES = ('clear', 'warm', 'cinematic', 'flat', 'custom')

BOOL_WORDS = {
	'true': True, 'yes': True, 'on': True, '1': True,
	'false': False, 'no': False, 'off': False, '0': False,
}

#============================================

class TrimSettings():
	"""
	Parameters for one pipeline run.

	silence_threshold: amplitude below which a sample counts as silent.
	min_silence_ms: shortest silence, in milliseconds, that gets cut.
	overlap_ms: crossfade length at each cut, in milliseconds.
	eq_*: optional three-band equalizer applied after stitching.
	"""
	def __init__(self, silence_threshold: float = DEFAULT_SILENCE_THRESHOLD,
		min_silence_ms: float = DEFAULT_MIN_SILENCE_MS,
		overlap_ms: float = DEFAULT_OVERLAP_MS,
		eq_enabled: bool = False, eq_preset: str = DEFAULT_EQ_PRESET,
		eq_low_db: float = 0.0, eq_mid_db: float = 0.0, eq_high_db: float = 0.0):
		self.silence_threshold = silence_threshold
		self.min_silence_ms = min_silence_ms
		self.overlap_ms = overlap_ms
		self.eq_enabled = eq_enabled
		self.eq_preset = eq_preset
		self.eq_low_db = eq_low_db
		self.eq_mid_db = eq_mid_db
		self.eq_high_db = eq_high_db

	#============================
	def validate(self) -> None:
		_require_finite(self.silence_threshold, "silence_threshold")
		_require_finite(self.min_silence_ms, "min_silence_ms")
		_require_finite(self.overlap_ms, "overlap_ms")
		if self.silence_threshold <= 0:
			raise InvalidConfiguration("silence_threshold must be positive")
		if self.min_silence_ms < 0:
			raise InvalidConfiguration("min_silence_ms must be 0 or positive")
		if self.overlap_ms < 0:
			raise InvalidConfiguration("overlap_ms must be 0 or positive")
		if self.eq_preset not in EQ_PRESET_NAMES:
			raise InvalidConfiguration(
				f"eq_preset must be one of {', '.join(EQ_PRESET_NAMES)}"
			)
		for name in ('eq_low_db', 'eq_mid_db', 'eq_high_db'):
			_require_finite(getattr(self, name), name)
		return

	#============================
	def as_dict(self) -> dict:
		return {
			'silence_threshold': self.silence_threshold,
			'min_silence_ms': self.min_silence_ms,
			'overlap_ms': self.overlap_ms,
			'eq_enabled': self.eq_enabled,
			'eq_preset': self.eq_preset,
			'eq_low_db': self.eq_low_db,
			'eq_mid_db': self.eq_mid_db,
			'eq_high_db': self.eq_high_db,
		}

#============================================

def _require_finite(value, name: str) -> None:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise InvalidConfiguration(f"{name} must be a number")
	if not math.isfinite(value):
		raise InvalidConfiguration(f"{name} must be finite")
	return

#============================================

def coerce_bool(value, config_path: str, key_path: str) -> bool:
	"""
	Accept YAML booleans, 0/1, or on/off style words.
	"""
	if isinstance(value, (bool, int)):
		if value in (0, 1):
			return bool(value)
	elif isinstance(value, str):
		word = value.strip().lower()
		if word in BOOL_WORDS:
			return BOOL_WORDS[word]
	raise InvalidConfiguration(f"config {config_path}: {key_path} must be a boolean")

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise InvalidConfiguration(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError as exc:
			raise InvalidConfiguration(
				f"config {config_path}: {key_path} must be a number"
			) from exc
	raise InvalidConfiguration(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise InvalidConfiguration(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, float):
		return utils.round_half_up(value)
	if isinstance(value, str):
		try:
			return utils.round_half_up(float(value))
		except ValueError as exc:
			raise InvalidConfiguration(
				f"config {config_path}: {key_path} must be an integer"
			) from exc
	raise InvalidConfiguration(f"config {config_path}: {key_path} must be an integer")

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default configuration values.
	"""
	return {
		'speechtrim': CONFIG_VERSION,
		'settings': {
			'detection': {
				'silence_threshold': DEFAULT_SILENCE_THRESHOLD,
				'min_silence_ms': DEFAULT_MIN_SILENCE_MS,
			},
			'stitch': {
				'overlap_ms': DEFAULT_OVERLAP_MS,
			},
			'equalizer': {
				'enabled': False,
				'preset': DEFAULT_EQ_PRESET,
				'low_db': 0.0,
				'mid_db': 0.0,
				'high_db': 0.0,
			},
		},
	}

#============================================

def default_config_path(input_file: str) -> str:
	return f"{input_file}.speechtrim.config.yaml"

#============================================

def build_config_text(config: dict) -> str:
	"""
	Build YAML text for the config file.

	Args:
		config: Config dictionary.

	Returns:
		str: YAML content.
	"""
	settings = config.get('settings', {})
	detection = settings.get('detection', {})
	stitch = settings.get('stitch', {})
	equalizer = settings.get('equalizer', {})
	lines = []
	lines.append(f"speechtrim: {CONFIG_VERSION}")
	lines.append("settings:")
	lines.append("  detection:")
	lines.append(
		f"    silence_threshold: {detection.get('silence_threshold', DEFAULT_SILENCE_THRESHOLD)}"
	)
	lines.append(
		f"    min_silence_ms: {detection.get('min_silence_ms', DEFAULT_MIN_SILENCE_MS)}"
	)
	lines.append("  stitch:")
	lines.append(f"    overlap_ms: {stitch.get('overlap_ms', DEFAULT_OVERLAP_MS)}")
	lines.append("  equalizer:")
	lines.append(f"    enabled: {str(bool(equalizer.get('enabled', False))).lower()}")
	lines.append(f"    preset: {equalizer.get('preset', DEFAULT_EQ_PRESET)}")
	lines.append(f"    low_db: {equalizer.get('low_db', 0.0)}")
	lines.append(f"    mid_db: {equalizer.get('mid_db', 0.0)}")
	lines.append(f"    high_db: {equalizer.get('high_db', 0.0)}")
	lines.append("")
	return "\n".join(lines)

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	text = build_config_text(config)
	os.makedirs(os.path.dirname(config_path) or '.', exist_ok=True)
	with open(config_path, 'w', encoding='utf-8') as handle:
		handle.write(text)
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config dictionary.
	"""
	with open(config_path, 'r', encoding='utf-8') as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise InvalidConfiguration("config file must be a mapping")
	if data.get('speechtrim') != CONFIG_VERSION:
		raise InvalidConfiguration(f"config file must set speechtrim: {CONFIG_VERSION}")
	return data

#============================================

def _section(overrides: dict, name: str, config_path: str) -> dict:
	section = overrides.get(name)
	if section is None:
		return {}
	if not isinstance(section, dict):
		raise InvalidConfiguration(f"config {config_path}: settings.{name} must be a mapping")
	return section

#============================================

def build_settings(config: dict, config_path: str) -> TrimSettings:
	"""
	Normalize a parsed config into TrimSettings, filling defaults.

	Args:
		config: Raw config dictionary.
		config_path: Config file path, used in error messages.

	Returns:
		TrimSettings: Validated settings.
	"""
	defaults = default_config()['settings']
	overrides = {}
	if isinstance(config, dict):
		overrides = config.get('settings') or {}
	if not isinstance(overrides, dict):
		raise InvalidConfiguration(f"config {config_path}: settings must be a mapping")
	detection = _section(overrides, 'detection', config_path)
	stitch = _section(overrides, 'stitch', config_path)
	equalizer = _section(overrides, 'equalizer', config_path)
	silence_threshold = coerce_float(detection.get('silence_threshold',
		defaults['detection']['silence_threshold']), config_path,
		"settings.detection.silence_threshold")
	min_silence_ms = coerce_int(detection.get('min_silence_ms',
		defaults['detection']['min_silence_ms']), config_path,
		"settings.detection.min_silence_ms")
	overlap_ms = coerce_int(stitch.get('overlap_ms',
		defaults['stitch']['overlap_ms']), config_path,
		"settings.stitch.overlap_ms")
	eq_enabled = coerce_bool(equalizer.get('enabled',
		defaults['equalizer']['enabled']), config_path,
		"settings.equalizer.enabled")
	eq_preset = equalizer.get('preset', defaults['equalizer']['preset'])
	if not isinstance(eq_preset, str):
		raise InvalidConfiguration(f"config {config_path}: settings.equalizer.preset must be a string")
	eq_low_db = coerce_float(equalizer.get('low_db',
		defaults['equalizer']['low_db']), config_path,
		"settings.equalizer.low_db")
	eq_mid_db = coerce_float(equalizer.get('mid_db',
		defaults['equalizer']['mid_db']), config_path,
		"settings.equalizer.mid_db")
	eq_high_db = coerce_float(equalizer.get('high_db',
		defaults['equalizer']['high_db']), config_path,
		"settings.equalizer.high_db")
	settings = TrimSettings(
		silence_threshold=silence_threshold,
		min_silence_ms=min_silence_ms,
		overlap_ms=overlap_ms,
		eq_enabled=eq_enabled,
		eq_preset=eq_preset.strip().lower(),
		eq_low_db=eq_low_db,
		eq_mid_db=eq_mid_db,
		eq_high_db=eq_high_db,
	)
	settings.validate()
	return settings
