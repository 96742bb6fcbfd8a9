"""
lib/Upath.py

Purpose:
Implements the naming rules that turn filesystem paths into the query strings used to match topics (directories) and messages (files).

Place in Architecture:
Used throughout the code so that paths are always handled in one canonical, slash separated, absolute form rooted at the virtual root.
A directory's topic title is its full query string and a file's message body is its full query string; parents are always computed with udirname, never stored.

Interface:

	Clean(path): Forces a leading and trailing slash, then normalizes. The empty path is the root.
	Canonicalize(path): Clean without a trailing slash (except for "/" itself). Idempotent.
	TrailSlash(), UntrailSlash(), LeadSlash(), UnleadSlash(): Separator helpers.
	ujoin(*elements): Joins and cleans, skipping empty elements.
	RootFor(root): Absolute query of a configured filesystem root below VIRTUAL_ROOT.
	RemoteFrom(root, absolute): The path of an entry relative to a filesystem root.
	TopicPath(root, relative): The (root, relative, query) triple for an entry.

TODOs/FIXMEs:
None.
"""

import re
import posixpath
from .Utils import ubasename

VIRTUAL_ROOT = "/root"
SEPARATOR = "/"


def TrailSlash(upath):
	return upath + SEPARATOR


def UntrailSlash(upath):
	if (upath == SEPARATOR):
		return upath
	return upath[:-1] if upath.endswith(SEPARATOR) else upath


def LeadSlash(upath):
	return SEPARATOR + upath


def UnleadSlash(upath):
	return upath[1:] if upath.startswith(SEPARATOR) else upath


# Paths should not be other than ASCII characters, but that is left to the remote to reject.
def Clean(upath):
	if (not upath):
		return SEPARATOR

	if (not upath.startswith(SEPARATOR)):
		upath = LeadSlash(upath)
	if (not upath.endswith(SEPARATOR)):
		upath = TrailSlash(upath)

	# posixpath keeps a leading "//", a topic title never has one.
	return re.sub(r'^/+', SEPARATOR, posixpath.normpath(upath))


def Canonicalize(upath):
	return UntrailSlash(Clean(upath))


def ujoin(*elements):
	parts = [element for element in elements if element]
	if (not parts):
		return ""
	return Clean(SEPARATOR.join(parts))


def RootFor(root=""):
	return Canonicalize(ujoin(VIRTUAL_ROOT, Clean(root)))


def RemoteFrom(root, absolute):
	if (absolute == root):
		return ubasename(root)
	prefix = TrailSlash(root)
	return absolute[len(prefix):] if absolute.startswith(prefix) else absolute


# TopicPath carries the three names every filesystem operation needs.
# root is the absolute query of the filesystem root, relative is what the caller asked for and query is what gets matched against topic titles and message bodies.
class TopicPath:
	def __init__(this, root, relative=""):
		if (isinstance(root, TopicPath)):
			root = root.root
		this.root = root
		this.relative = relative
		this.absolute = ujoin(root, relative)
		this.query = UntrailSlash(this.absolute)

	def __str__(this):
		return this.query

	def __repr__(this):
		return f"<TopicPath {this.query} (relative: {this.relative!r})>"

	def Locate(this):
		return this.root, this.relative, this.query
