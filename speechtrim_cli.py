#!/usr/bin/env python3

"""
speechtrim_cli.py

Trim long silences out of a speech recording and write a mono 16-bit wav
with the remaining speech crossfaded together.
"""

# Standard Library
import argparse
import os

# PIP3 modules
import yaml

# local repo modules
from speechtrimlib.core import settings as settings_lib
from speechtrimlib.core import utils
from speechtrimlib.core.pipeline import TrimPipeline
from speechtrimlib.media import ffmpeg_extract
from speechtrimlib.media import wav

#============================================

def parse_args(argv: list = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.

	Returns:
		argparse.Namespace: Parsed command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Cut long pauses from a speech recording and crossfade the rest."
	)
	parser.add_argument(
		'-i', '--input', dest='input_file', required=True,
		help="Input audio or video file path."
	)
	parser.add_argument(
		'-o', '--output', dest='output_file', default=None,
		help="Output wav path (default: <input>-processed.wav)."
	)
	parser.add_argument(
		'-c', '--config', dest='config_file', default=None,
		help="Path to a speechtrim config YAML."
	)
	parser.add_argument(
		'-t', '--threshold', dest='silence_threshold', type=float, default=None,
		help="Override silence amplitude threshold."
	)
	parser.add_argument(
		'-s', '--min-silence-ms', dest='min_silence_ms', type=int, default=None,
		help="Override minimum silence length in milliseconds."
	)
	parser.add_argument(
		'-v', '--overlap-ms', dest='overlap_ms', type=int, default=None,
		help="Override crossfade length in milliseconds."
	)
	parser.add_argument(
		'-e', '--eq', dest='eq_enabled', action='store_true',
		help="Apply the three-band equalizer."
	)
	parser.add_argument(
		'-E', '--no-eq', dest='eq_enabled', action='store_false',
		help="Skip the equalizer."
	)
	parser.add_argument(
		'-p', '--eq-preset', dest='eq_preset', default=None,
		choices=settings_lib.EQ_PRESET_NAMES,
		help="Equalizer preset."
	)
	parser.add_argument('--eq-low', dest='eq_low_db', type=float, default=None,
		help="Custom low shelf gain in dB.")
	parser.add_argument('--eq-mid', dest='eq_mid_db', type=float, default=None,
		help="Custom peaking gain in dB.")
	parser.add_argument('--eq-high', dest='eq_high_db', type=float, default=None,
		help="Custom high shelf gain in dB.")
	parser.add_argument(
		'-r', '--report', dest='report_file', default=None,
		help="Write a YAML segment report to this path."
	)
	parser.add_argument(
		'-k', '--keep-wav', dest='keep_wav', action='store_true',
		help="Keep the wav decoded from non-wav input."
	)
	parser.add_argument(
		'-K', '--no-keep-wav', dest='keep_wav', action='store_false',
		help="Remove the decoded wav after processing."
	)
	parser.add_argument(
		'-d', '--debug', dest='debug', action='store_true',
		help="Print settings and segment details."
	)
	parser.add_argument(
		'-q', '--quiet', dest='quiet', action='store_true',
		help="Suppress status output."
	)
	parser.set_defaults(keep_wav=False)
	parser.set_defaults(eq_enabled=None)
	parser.set_defaults(debug=False)
	parser.set_defaults(quiet=False)
	args = parser.parse_args(argv)
	return args

#============================================

def default_output_path(input_file: str) -> str:
	base = os.path.splitext(input_file)[0]
	return f"{base}-processed.wav"

#============================================

def resolve_settings(args: argparse.Namespace) -> settings_lib.TrimSettings:
	"""
	Load settings from the config file and apply command-line overrides.

	Args:
		args: Parsed arguments.

	Returns:
		TrimSettings: Validated settings.
	"""
	config_path = args.config_file
	if config_path is None:
		config_path = settings_lib.default_config_path(args.input_file)
		if not os.path.exists(config_path):
			settings_lib.write_config_file(config_path, settings_lib.default_config())
			utils.log(f"Wrote default config: {config_path}")
	config = settings_lib.load_config(config_path)
	settings = settings_lib.build_settings(config, config_path)
	if args.silence_threshold is not None:
		settings.silence_threshold = args.silence_threshold
	if args.min_silence_ms is not None:
		settings.min_silence_ms = args.min_silence_ms
	if args.overlap_ms is not None:
		settings.overlap_ms = args.overlap_ms
	if args.eq_enabled is not None:
		settings.eq_enabled = args.eq_enabled
	if args.eq_preset is not None:
		settings.eq_preset = args.eq_preset
	custom_gains = (args.eq_low_db, args.eq_mid_db, args.eq_high_db)
	if any(gain is not None for gain in custom_gains):
		settings.eq_preset = 'custom'
		if args.eq_low_db is not None:
			settings.eq_low_db = args.eq_low_db
		if args.eq_mid_db is not None:
			settings.eq_mid_db = args.eq_mid_db
		if args.eq_high_db is not None:
			settings.eq_high_db = args.eq_high_db
	settings.validate()
	return settings

#============================================

def build_report(input_file: str, output_file: str,
	settings: settings_lib.TrimSettings, stats: dict) -> dict:
	"""
	Build the segment report mapping.

	Args:
		input_file: Input file path.
		output_file: Output wav path.
		settings: Settings used for the run.
		stats: Pipeline stats.

	Returns:
		dict: Report data ready for YAML output.
	"""
	sample_rate = stats['sample_rate']
	segments = []
	for segment in stats['segments']:
		start_sec = utils.samples_to_seconds(segment['start'], sample_rate)
		end_sec = utils.samples_to_seconds(segment['end'], sample_rate)
		segments.append({
			'start': segment['start'],
			'end': segment['end'],
			'start_tc': utils.format_timestamp(start_sec),
			'end_tc': utils.format_timestamp(end_sec),
		})
	return {
		'speechtrim_report': 1,
		'input': input_file,
		'output': output_file,
		'settings': settings.as_dict(),
		'stats': {
			'sample_rate': sample_rate,
			'channels': stats['channels'],
			'input_samples': stats['input_samples'],
			'output_samples': stats['output_samples'],
			'input_seconds': round(stats['input_seconds'], 3),
			'output_seconds': round(stats['output_seconds'], 3),
			'removed_pct': round(stats['removed_pct'], 2),
			'raw_segment_count': stats['raw_segment_count'],
			'segment_count': stats['segment_count'],
		},
		'segments': segments,
	}

#============================================

def write_report(report_file: str, report: dict) -> None:
	os.makedirs(os.path.dirname(report_file) or '.', exist_ok=True)
	with open(report_file, 'w', encoding='utf-8') as handle:
		handle.write(yaml.safe_dump(report, sort_keys=False))
	return

#============================================

def print_debug_summary(settings: settings_lib.TrimSettings, stats: dict) -> None:
	utils.log("")
	utils.log("Debug")
	for key, value in settings.as_dict().items():
		utils.log(f"  {key}: {value}")
	utils.log(f"  min_silence_samples: {stats['min_silence_samples']}")
	utils.log(f"  overlap_samples: {stats['overlap_samples']}")
	utils.log(f"  merge_gap_samples: {stats['merge_gap_samples']}")
	utils.log(f"  raw segments: {stats['raw_segment_count']}")
	for segment, overlap in zip(stats['segments'], [0] + stats['boundary_overlaps']):
		utils.log(f"  [{segment['start']}, {segment['end']}) overlap {overlap}")
	return

#============================================

def print_summary(input_file: str, output_file: str, stats: dict,
	report_file: str = None) -> None:
	utils.log("")
	utils.log("Speech Trim Summary")
	utils.log(f"Input: {input_file}")
	utils.log(
		f"Duration: {utils.format_timestamp(stats['input_seconds'])} "
		f"({stats['input_seconds']:.3f}s)"
	)
	utils.log(
		f"Trimmed: {utils.format_timestamp(stats['output_seconds'])} "
		f"({stats['output_seconds']:.3f}s)"
	)
	utils.log(f"Removed: {stats['removed_pct']:.2f}%")
	utils.log(f"Speech segments: {stats['segment_count']}")
	utils.log(f"Output: {output_file}")
	if report_file is not None:
		utils.log(f"Report: {report_file}")
	utils.log("")
	return

#============================================

def main(argv: list = None) -> None:
	args = parse_args(argv)
	utils.set_quiet_mode(args.quiet)
	utils.ensure_file_exists(args.input_file)
	settings = resolve_settings(args)
	output_file = args.output_file
	if output_file is None:
		output_file = default_output_path(args.input_file)
	buffer = ffmpeg_extract.load_audio(args.input_file, keep_wav=args.keep_wav)
	pipeline = TrimPipeline(settings)
	encoded = pipeline.run(buffer)
	wav.write_wav_file(output_file, encoded)
	if args.report_file is not None:
		report = build_report(args.input_file, output_file, settings, pipeline.stats)
		write_report(args.report_file, report)
	if args.debug:
		print_debug_summary(settings, pipeline.stats)
	print_summary(args.input_file, output_file, pipeline.stats, args.report_file)
	return

#============================================

if __name__ == '__main__':
	main()
