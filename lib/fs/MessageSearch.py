"""
lib/fs/MessageSearch.py

Purpose:
Enumerates the messages (files) of a topic through the remote's paginated search, tolerating partial pages.

Place in Architecture:
Used by the Facade both for listings (every page is read) and for single lookups (reading stops at the first exact match).
All page requests go through one lock, so message searches never run against each other.

Interface:

	TopicSearch(gateway, resolver, limit):
		Page(topic, query, offset): One raw SearchPage.
		SearchInTopic(topic, query): RETURNS a MessageSearch over every user message.
		FindInTopic(topic, query): RETURNS the message whose body is exactly query, or None.
	MessageSearch: A one-shot iterator of Messages with a running `count`. Iterating again does not restart it; a new search starts from offset zero.

TODOs/FIXMEs:
None.
"""

import logging
import threading


class MessageSearch(object):
	def __init__(this, searcher, topic, query, exact=False):
		this.searcher = searcher
		this.topic = topic
		this.query = query
		this.exact = exact

		this.count = 0 # User messages seen so far. Service and other entries never count.
		this.pages = 0

		this._messages = this._Walk()

	def __iter__(this):
		return this

	def __next__(this):
		return next(this._messages)

	def _Walk(this):
		offset = 0
		while (True):
			logging.debug(f"Searching for objects (as Messages): {this.query}, topic: {this.topic.title}, topicId: {this.topic.id}, offset: {offset}")

			page = this.searcher.Page(this.topic, this.query, offset)
			this.pages += 1
			messages, incomplete, next_offset = page.Pagination(offset)

			for message in messages:
				if (not message.IsUser()):
					logging.debug(f"Ignoring {message.kind} entry {message.id} in topic: {this.topic.title}, offset: {offset}")
					continue

				this.count += 1
				if (not this.exact):
					yield message
				elif (message.body == this.query):
					logging.debug(f"Object found (as Message): {this.query}, offset: {offset}, id: {message.id}")
					yield message
					return

			# A continuation that does not move would loop forever.
			if (incomplete and next_offset != offset):
				offset = next_offset
				continue

			if (this.exact):
				logging.debug(f"Object not found (as Message): {this.query}")
			return


class TopicSearch(object):
	def __init__(this, gateway, resolver, limit=100):
		this.gateway = gateway
		this.resolver = resolver
		this.limit = limit
		this.lock = threading.Lock()

	def Page(this, topic, query, offset):
		with this.lock:
			channel = this.resolver.GetChannel()
			try:
				return this.gateway.Call(lambda session: session.SearchMessages(channel, topic.id, query, offset, this.limit))
			except Exception as e:
				logging.error(f"Search failed for: {query}, topic: {topic.title}, topicId: {topic.id}, offset: {offset}: {e}")
				raise

	def SearchInTopic(this, topic, query):
		return MessageSearch(this, topic, query)

	def FindInTopic(this, topic, query):
		search = MessageSearch(this, topic, query, exact=True)
		for message in search:
			return message
		return None
