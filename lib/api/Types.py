"""
lib/api/Types.py

Purpose:
Defines the transient values exchanged with the remote service: the channel, its topics (directories), its messages (files) and the pages a message search returns.

Place in Architecture:
Produced by a remote session (see TelegramSession) and consumed by the Resolver, the Message Search Iterator and the Facade. None of these values are persisted; each is rebuilt from the search that found it.

Interface:

	MessageKind / PageKind: The tags distinguishing message and page variants.
	Channel(id, access_hash, title)
	Topic(id, title, date): IsRoot().
	Message(id, body, date, topic_id, kind): IsUser(), plus the User(), Service() and Other() constructors.
	SearchPage(kind, messages, count, offset): Pagination(requested) -> (messages, incomplete, next_offset).

TODOs/FIXMEs:
None.
"""

from enum import Enum
from ..Errors import OperationWithoutUpdates

# The default topic of a forum channel. It holds the virtual root and can never be deleted.
ROOT_TOPIC_ID = 1

# The remote signals throttling ("flood wait") with this code.
THROTTLE_CODE = 420


# Everything found in a topic's message stream is one of these.
# Only USER messages are files; SERVICE messages are the remote's own notices (e.g. "topic created").
class MessageKind(Enum):
	USER = 0
	SERVICE = 1
	OTHER = 2

	def __str__(self):
		return self.name


# The shapes a message search result can take.
# MESSAGES is a complete result, SLICE and CHANNEL are partial results with a continuation offset and NOT_MODIFIED carries no messages at all.
class PageKind(Enum):
	MESSAGES = 0
	SLICE = 1
	CHANNEL = 2
	NOT_MODIFIED = 3
	UNKNOWN = 4

	def __str__(self):
		return self.name


class Channel(object):
	def __init__(this, id, access_hash=0, title=""):
		this.id = id
		this.access_hash = access_hash
		this.title = title

	def ToData(this):
		return {'id': this.id, 'access_hash': this.access_hash, 'title': this.title}

	@classmethod
	def FromData(cls, data):
		return cls(data['id'], data.get('access_hash', 0), data.get('title', ""))

	def __eq__(this, other):
		return isinstance(other, Channel) and this.id == other.id

	def __hash__(this):
		return hash(this.id)

	def __repr__(this):
		return f"<Channel {this.title} ({this.id})>"


# A Topic is a directory. Its title is the full query path of that directory.
class Topic(object):
	def __init__(this, id, title, date=0):
		this.id = id
		this.title = title
		this.date = date

	def IsRoot(this):
		return this.id == ROOT_TOPIC_ID

	def ToData(this):
		return {'id': this.id, 'title': this.title, 'date': this.date}

	@classmethod
	def FromData(cls, data):
		return cls(data['id'], data['title'], data.get('date', 0))

	def __eq__(this, other):
		return isinstance(other, Topic) and this.id == other.id and this.title == other.title

	def __hash__(this):
		return hash((this.id, this.title))

	def __repr__(this):
		return f"<Topic {this.title} ({this.id})>"


# A Message is a file when it is a USER message. Its body is the full query path of that file.
class Message(object):
	def __init__(this, id, body="", date=0, topic_id=None, kind=MessageKind.USER):
		this.id = id
		this.body = body
		this.date = date
		this.topic_id = topic_id
		this.kind = kind

	@classmethod
	def User(cls, id, body, date=0, topic_id=None):
		return cls(id, body, date, topic_id, MessageKind.USER)

	# For a topic creation notice, body is the title of the created topic.
	@classmethod
	def Service(cls, id, body="", date=0, topic_id=None):
		return cls(id, body, date, topic_id, MessageKind.SERVICE)

	@classmethod
	def Other(cls, id, date=0, topic_id=None):
		return cls(id, "", date, topic_id, MessageKind.OTHER)

	def IsUser(this):
		return this.kind == MessageKind.USER

	def __repr__(this):
		return f"<Message {this.kind} {this.body!r} ({this.id})>"


class SearchPage(object):
	def __init__(this, kind, messages=None, count=0, offset=0):
		this.kind = kind
		this.messages = list(messages or [])
		this.count = count
		this.offset = offset

	# Reduce any page shape to what pagination needs.
	# RETURNS (messages, incomplete, next_offset). When a page is complete next_offset is the requested one.
	def Pagination(this, requested):
		if (this.kind == PageKind.MESSAGES):
			return this.messages, False, requested
		elif (this.kind == PageKind.SLICE):
			return this.messages, True, this.offset
		elif (this.kind == PageKind.CHANNEL):
			return this.messages, 0 < this.count, this.offset
		elif (this.kind == PageKind.NOT_MODIFIED):
			return [], True, requested

		raise OperationWithoutUpdates(f"search returned an unknown page shape at offset {requested}")

	def __repr__(this):
		return f"<SearchPage {this.kind} messages={len(this.messages)} count={this.count} offset={this.offset}>"
