"""
lib/fs/DirectoryResolver.py

Purpose:
Translates directory paths into topics of the backing channel: finds them, lists their direct children, creates and deletes them.

Place in Architecture:
Sits between the Facade and the Gateway, with a LookupCache for the channel record and one for topic listings.
The remote only offers a flat list of topics per channel, so the tree is virtual: a topic's title is the full path of its directory and its parent is always recomputed with udirname.
All directory mutations (create, delete) are serialized by a single lock; that is what keeps two callers from creating the same directory twice.

Interface:

	__init__(gateway, channel_id, channels, topics)
	FromConfiguration(configuration, gateway)
	GetChannel(): RETURNS the backing Channel or raises InvalidChannel.
	GetTopics(query, fresh=False): Topics whose title matches the remote's title filter for query.
	FindDirectory(query): RETURNS the Topic titled exactly query, or None.
	ListChildDirectories(topic): Direct children of topic, not the whole subtree.
	CreateDirectory(query): RETURNS (topic, created). Idempotent.
	DeleteDirectory(topic): Deletes a topic. Never recursive; refuses the root topic.

TODOs/FIXMEs:
None.
"""

import logging
import threading
from ..api.Types import Channel, Topic, MessageKind
from ..cache.LookupCache import CreateLookupCache
from ..Errors import InvalidChannel, OperationWithoutUpdates, UnsupportedOperation
from ..Utils import udirname

# The channel record is cached under a single key.
CHANNEL_KEY = "mtproto"


class DirectoryResolver(object):
	def __init__(this, gateway, channel_id, channels, topics):
		this.gateway = gateway
		this.channel_id = channel_id
		this.channels = channels
		this.topics = topics
		this.lock = threading.Lock()

	@classmethod
	def FromConfiguration(cls, configuration, gateway):
		channels = CreateLookupCache(
			configuration,
			"channels",
			lambda channel: channel.ToData(),
			Channel.FromData
		)
		topics = CreateLookupCache(
			configuration,
			"topics",
			lambda topics: [topic.ToData() for topic in topics],
			lambda data: [Topic.FromData(topic) for topic in data]
		)
		return cls(gateway, configuration.channel_id, channels, topics)

	def GetChannel(this):
		def Load(key):
			return this.gateway.Call(lambda session: session.GetChannel(this.channel_id))

		try:
			channel = this.channels.Get(CHANNEL_KEY, Load)
		except InvalidChannel:
			raise
		except Exception as e:
			logging.error(f"Could not look up channel {this.channel_id}: {e}")
			raise InvalidChannel() from e

		if (channel is None):
			logging.error(f"Channel {this.channel_id} does not exist or is not visible to the session.")
			raise InvalidChannel()
		return channel

	def GetTopics(this, query, fresh=False):
		def Load(key):
			channel = this.GetChannel()
			logging.debug(f"Searching for folders (as Topics) with title: {key}, channel: {channel.id}")
			try:
				return this.gateway.Call(lambda session: session.GetForumTopics(channel, key))
			except Exception as e:
				logging.error(f"Could not list topics for query: {key}, channel: {channel.id}: {e}")
				raise

		if (fresh):
			return Load(query)
		return this.topics.Get(query, Load)

	def FindDirectory(this, query):
		for topic in this.GetTopics(query):
			if (topic.title == query):
				return topic
		return None

	def ListChildDirectories(this, topic):
		return [
			subtopic for subtopic in this.GetTopics(topic.title)
			if subtopic.title != topic.title and udirname(subtopic.title) == topic.title
		]

	def CreateDirectory(this, query):
		with this.lock:
			# Bypass the cache here: a stale listing must not lead to a duplicate topic.
			for topic in this.GetTopics(query, fresh=True):
				if (topic.title == query):
					return topic, False

			channel = this.GetChannel()
			try:
				updates = this.gateway.Call(lambda session: session.CreateForumTopic(channel, query))
			except Exception as e:
				logging.error(f"Could not create folder (as a Topic): {query}, channel: {channel.id}: {e}")
				raise

			topic = this.Receipt(query, updates)
			if (topic is None):
				logging.error(f"Folder (as a Topic) requested but no creation notice came back: {query}")
				raise OperationWithoutUpdates(f"no creation notice received for: {query}")
			return topic, True

	# The remote only confirms a topic through the service message that opens it.
	# RETURNS the Topic described by that notice or None.
	def Receipt(this, query, updates):
		for message in updates or []:
			if (message.kind == MessageKind.SERVICE and message.body == query):
				return Topic(message.id, query, message.date)
		return None

	def DeleteDirectory(this, topic):
		with this.lock:
			if (topic.IsRoot()):
				logging.error(f"Refusing to delete the root folder (as a Topic): {topic.title}")
				raise UnsupportedOperation(f"the root directory cannot be deleted: {topic.title}")

			channel = this.GetChannel()
			try:
				this.gateway.Call(lambda session: session.DeleteTopicHistory(channel, topic.id))
			except Exception as e:
				logging.error(f"Could not delete folder (as a Topic): {topic.title}, topicId: {topic.id}: {e}")
				raise
