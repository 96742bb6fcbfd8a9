"""
lib/TopicFS.py

Purpose:
Presents one channel of the remote chat service as a hierarchical file store: topics are directories, search indexed messages are files.

Place in Architecture:
The facade over everything else. It composes the naming rules (Upath), the DirectoryResolver, the TopicSearch iterator and the Gateway into the list / mkdir / rmdir / lookup operations a storage backend must offer.
Each operation is a self-contained request / response sequence; TopicFS keeps no state between them beyond what the LookupCaches hold.
The remote does not guarantee any filesystem invariant, so they are enforced here: no deleting non-empty directories, no deleting the root, no returning a directory where a file was asked for.

Interface:

	__init__(configuration, gateway, resolver=None, searcher=None, name="topicfs", uploader=None)
	Root(), Locate(relative) -> (absolute, relative, query)
	Directory(query), Directories(), DirectoriesFrom(topic), Objects(topic), ObjectSearch(topic, query)
	List(relative), MakeDirectory(relative), RemoveDirectory(relative), FindObject(relative), Put(source, relative), GetAttributes(relative)
	Features(), Hashes(), Usage(), Precision(), Name(), String()
	Open(), Close() and context manager support.

TODOs/FIXMEs:
None.
"""

import logging
from .Errors import *
from .Upath import RootFor, TopicPath
from .Utils import udirname
from .MultipartHash import MultipartHasher
from .fs.DirectoryResolver import DirectoryResolver
from .fs.MessageSearch import TopicSearch
from .fs.Entries import DirectoryEntry, TopicObject


# TopicFS is stateless apart from its collaborators, which are immutable once constructed.
# NOTE: It is illegal to change the configuration of a TopicFS after it has been constructed.
class TopicFS(object):
	def __init__(this, configuration, gateway, resolver=None, searcher=None, name="topicfs", uploader=None):
		this.configuration = configuration
		this.gateway = gateway
		this.resolver = resolver or DirectoryResolver.FromConfiguration(configuration, gateway)
		this.searcher = searcher or TopicSearch(gateway, this.resolver, configuration.search_limit)
		this.name = name
		this.root = configuration.root

		# Collaborator that writes a file, called as uploader(source, absolute, relative, query).
		this.uploader = uploader

	def Name(this):
		return this.name

	def Root(this):
		return RootFor(this.root)

	def Locate(this, relative=""):
		upath = TopicPath(this.Root(), relative)
		logging.debug(f"Locate query for entry -> Absolute: {upath.absolute}, Relative: {upath.relative}, Query: {upath.query}")
		return upath.absolute, upath.relative, upath.query

	def Directory(this, query):
		topic = this.resolver.FindDirectory(query)
		if (topic is None):
			raise DirectoryNotFound(f"directory not found: {query}")
		return topic

	def Directories(this):
		return this.resolver.GetTopics(this.Root())

	def DirectoriesFrom(this, topic):
		return this.resolver.ListChildDirectories(topic)

	# RETURNS (objects directly inside topic, count of every user message in topic).
	def Objects(this, topic):
		search = this.searcher.SearchInTopic(topic, topic.title)
		objects = []
		for message in search:
			if (udirname(message.body) == topic.title):
				logging.debug(f"Object found (as Message): {message.body}, id: {message.id}")
				objects.append(TopicObject(this, message))
		return objects, search.count

	def ObjectSearch(this, topic, query):
		message = this.searcher.FindInTopic(topic, query)
		if (message is None):
			raise ObjectNotFound(f"object not found: {query}")
		return TopicObject(this, message)

	def List(this, relative=""):
		absolute, relative, query = this.Locate(relative)

		try:
			topic = this.Directory(query)
		except DirectoryNotFound:
			if (relative == ""):
				return this._ListSingleObject(query)
			raise ListAborted(f"list aborted, no such directory: {query}")

		try:
			topics = this.DirectoriesFrom(topic)
		except Exception as e:
			logging.error(f"Error listing folders (as Topics) in: {query}: {e}")
			raise ListAborted(f"list aborted: {query}") from e

		entries = []
		for subtopic in topics:
			try:
				_, items = this.Objects(subtopic)
			except Exception as e:
				logging.error(f"Error getting objects from folder (as a Topic): {subtopic.title}, topicId: {subtopic.id}: {e}")
				items = -1
			entries.append(DirectoryEntry(this.Root(), subtopic, items))

		try:
			objects, _ = this.Objects(topic)
		except Exception as e:
			logging.error(f"Error listing objects in: {query}: {e}")
			raise ListAborted(f"list aborted: {query}") from e

		entries.extend(objects)
		return entries

	# Some callers list the exact path of a file as if it were a directory.
	def _ListSingleObject(this, query):
		try:
			topic = this.Directory(udirname(query))
			return [this.ObjectSearch(topic, query)]
		except (DirectoryNotFound, ObjectNotFound):
			raise DirectoryNotFound(f"directory not found: {query}")

	def MakeDirectory(this, relative):
		absolute, relative, query = this.Locate(relative)
		logging.debug(f"Creating folder (as a Topic): {query}")

		try:
			topic, created = this.resolver.CreateDirectory(query)
		except Exception as e:
			logging.error(f"Error creating folder (as a Topic): {query}: {e}")
			raise

		if (created):
			logging.info(f"Folder created (as a Topic): {query}")
		else:
			logging.info(f"Folder already exists (as a Topic): {query}")
		return topic

	def RemoveDirectory(this, relative):
		absolute, relative, query = this.Locate(relative)
		topic = this.Directory(query)

		if (topic.IsRoot()):
			logging.error(f"Error deleting folder (as a Topic): {query}, the root folder cannot be deleted")
			raise UnsupportedOperation(f"the root directory cannot be deleted: {query}")

		try:
			children = this.DirectoriesFrom(topic)
		except Exception as e:
			raise NotDeletingDirs(f"could not list children of: {query}") from e

		if (children):
			logging.error(f"Error deleting folder (as a Topic): {query}, folder is not empty")
			raise DirectoryNotEmpty(f"directory not empty: {query}")

		# Service messages never count.
		try:
			_, items = this.Objects(topic)
		except Exception as e:
			raise NotDeletingDirs(f"could not list objects of: {query}") from e

		if (items > 0):
			logging.error(f"Error deleting folder (as a Topic): {query}, folder is not empty")
			raise DirectoryNotEmpty(f"directory not empty: {query}")

		try:
			this.resolver.DeleteDirectory(topic)
		except UnsupportedOperation:
			raise
		except Exception as e:
			logging.error(f"Error deleting folder (as a Topic): {query}: {e}")
			raise NotDeletingDirs(f"could not delete: {query}") from e

	def FindObject(this, relative):
		absolute, relative, query = this.Locate(relative)

		# Files can only be searched for inside a topic.
		topic = this.Directory(udirname(query))

		try:
			topics = this.DirectoriesFrom(topic)
		except Exception as e:
			raise DirectoryNotFound(f"directory not found: {topic.title}") from e

		for subtopic in topics:
			if (subtopic.title == query):
				raise IsADirectory(f"is a directory not a file: {query}")

		return this.ObjectSearch(topic, query)

	def Put(this, source, relative):
		target = TopicObject.FromRelative(this, relative)
		logging.info(f"Put: {target.absolute}")
		target.Update(source)
		return target

	def GetAttributes(this, relative=""):
		absolute, relative, query = this.Locate(relative)
		if (query == this.Root()):
			return DirectoryEntry(this.Root(), this.Directory(query)).GetAttributes()

		try:
			return this.FindObject(relative).GetAttributes()
		except IsADirectory:
			return DirectoryEntry(this.Root(), this.Directory(query)).GetAttributes()

	def Features(this):
		return dict(
			case_insensitive=False,
			duplicate_files=False,
			can_have_empty_directories=True,
			bucket_based=False,
			is_local=False,
			slow_mod_time=False,
			slow_hash=True,
			read_metadata=True,
			write_metadata=False,
			partial_uploads=False,
			filter_aware=True,
		)

	def Hashes(this):
		return [MultipartHasher.name]

	# The remote reports no quota.
	def Usage(this):
		return dict()

	# Timestamps of topics and messages are whole seconds.
	def Precision(this):
		return 1

	def Open(this):
		this.gateway.Open()
		return this

	def Close(this):
		this.gateway.Close()

	def __enter__(this):
		return this.Open()

	def __exit__(this, type, value, traceback):
		this.Close()

	def String(this):
		return f"Topic filesystem mounted at: {this.name}:{this.root}"

	def __str__(this):
		return this.String()
