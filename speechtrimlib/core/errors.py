#!/usr/bin/env python3

#============================================

class InvalidBuffer(RuntimeError):
	"""Sample data that cannot enter the pipeline."""

#============================================

class InvalidConfiguration(RuntimeError):
	"""Settings values outside their allowed range."""
