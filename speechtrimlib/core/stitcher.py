#!/usr/bin/env python3

import numpy
from speechtrimlib.core.errors import InvalidBuffer

#============================================

def boundary_overlaps(segments: list, overlap_samples: int) -> list:
	"""
	Crossfade length used at each boundary between adjacent segments.

	Args:
		segments: Ordered segments with start/end.
		overlap_samples: Requested crossfade length.

	Returns:
		list: One overlap per boundary, len(segments) - 1 entries.
	"""
	overlap_samples = max(0, int(overlap_samples))
	overlaps = []
	for previous, current in zip(segments, segments[1:]):
		prev_len = previous['end'] - previous['start']
		cur_len = current['end'] - current['start']
		overlaps.append(min(overlap_samples, prev_len, cur_len))
	return overlaps

#============================================

def stitched_length(segments: list, overlap_samples: int) -> int:
	total = sum(segment['end'] - segment['start'] for segment in segments)
	if len(segments) <= 1:
		return total
	return total - sum(boundary_overlaps(segments, overlap_samples))

#============================================

def check_segment_bounds(segments: list, total_samples: int) -> None:
	for segment in segments:
		start = segment['start']
		end = segment['end']
		if start < 0 or end > total_samples or end < start:
			raise InvalidBuffer(
				f"segment [{start}, {end}) outside buffer of {total_samples} samples"
			)
	return

#============================================

def stitch_segments(samples: numpy.ndarray, segments: list,
	overlap_samples: int) -> numpy.ndarray:
	"""
	Concatenate segments of a mono buffer with linear crossfades.

	Each boundary blends the last ov samples already written with the first
	ov samples of the next segment, ov = min(overlap, len(prev), len(cur)).

	Args:
		samples: Source mono samples.
		segments: Ordered, non-overlapping segments with start/end.
		overlap_samples: Requested crossfade length in samples.

	Returns:
		numpy.ndarray: New float64 array with the stitched audio.
	"""
	samples = numpy.asarray(samples, dtype=numpy.float64)
	check_segment_bounds(segments, samples.size)
	if len(segments) == 0:
		return numpy.zeros(0, dtype=numpy.float64)
	if len(segments) == 1:
		return samples[segments[0]['start']:segments[0]['end']].copy()
	overlaps = boundary_overlaps(segments, overlap_samples)
	output = numpy.empty(stitched_length(segments, overlap_samples),
		dtype=numpy.float64)
	first = segments[0]
	write_pos = first['end'] - first['start']
	output[:write_pos] = samples[first['start']:first['end']]
	for segment, ov in zip(segments[1:], overlaps):
		current = samples[segment['start']:segment['end']]
		write_pos -= ov
		if ov > 0:
			fade_in = numpy.arange(ov, dtype=numpy.float64) / ov
			fade_out = 1.0 - fade_in
			tail = output[write_pos:write_pos + ov]
			output[write_pos:write_pos + ov] = tail * fade_out + current[:ov] * fade_in
		output[write_pos + ov:write_pos + current.size] = current[ov:]
		write_pos += current.size
	return output
