"""
lib/Utils.py

Purpose:
Small helpers shared by the whole library: backoff timing, option parsing and string-based path splitting.

Place in Architecture:
Leaf module. The Gateway uses the backoff helper, the Configuration uses the parsers and the naming rules use udirname / ubasename.

Interface:

	BackoffDelay(n, start, max_sleep): Delay for the n-th retry.
	parse_size(size_str), parse_lifetime(lifetime_str), parse_log_level(log_level), parse_bool(value)
	udirname(upath), ubasename(upath)

TODOs/FIXMEs:
None.
"""

import re
import logging
import posixpath

# Delay for exponentially increasing time. `n` is the number of retries
# made so far.
def BackoffDelay(n, start=0.1, max_sleep=60):
	return min(start * (2**n), max_sleep)


def parse_size(size_str):
	if (type(size_str) == int):
		return size_str

	multipliers = {
		't': 1000**4,
		'g': 1000**3,
		'm': 1000**2,
		'k': 1000**1,
		'tb': 1000**4,
		'gb': 1000**3,
		'mb': 1000**2,
		'kb': 1000**1,
		'tib': 1024**4,
		'gib': 1024**3,
		'mib': 1024**2,
		'kib': 1024**1,
	}
	size_re = re.compile(r'^\s*(\d+)\s*(%s)?\s*$' % ("|".join(list(multipliers.keys())),),
						 re.I)

	m = size_re.match(size_str)
	if not m:
		raise ValueError("not a valid size specifier")

	size = int(m.group(1))
	multiplier = m.group(2)
	if multiplier is not None:
		try:
			size *= multipliers[multiplier.lower()]
		except KeyError:
			raise ValueError("invalid size multiplier")

	return size


def parse_lifetime(lifetime_str):
	if (type(lifetime_str) == int):
		return lifetime_str

	if lifetime_str.lower() in ('inf', 'infinity', 'infinite'):
		return 100*365*24*60*60

	try:
		return int(lifetime_str)
	except ValueError:
		raise ValueError("invalid lifetime specifier")


def parse_log_level(log_level):
	try:
		return {'error': logging.ERROR,
				'warning': logging.WARNING,
				'info': logging.INFO,
				'debug': logging.DEBUG}[log_level]
	except KeyError:
		raise ValueError("invalid log level specifier")


def parse_bool(value):
	if (type(value) == bool):
		return value
	if (str(value).lower() in ('1', 'true', 'yes', 'on')):
		return True
	if (str(value).lower() in ('', '0', 'false', 'no', 'off')):
		return False
	raise ValueError("invalid boolean specifier")


# Parent of a slash separated path, as path.Dir would compute it:
# "/a/b" -> "/a", "/a" -> "/", "a" -> ".".
def udirname(upath):
	parent = posixpath.dirname(upath)
	if (not parent):
		return "."
	return parent


def ubasename(upath):
	return upath.rstrip("/").split("/")[-1]
