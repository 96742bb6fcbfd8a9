"""
lib/api/TelegramSession.py

Purpose:
The MTProto transport: a synchronous session object over a Telethon client, translating the remote's types into lib/api/Types values.

Place in Architecture:
Built by the factories the Gateway is given; nothing else in the library imports Telethon.
Telethon is asyncio based while the filesystem is threaded, so every client runs on one private event loop in a daemon thread and each call blocks on the coroutine it scheduled there for at most net_timeout seconds, and cancels it once that wait runs out.
Telethon's own flood handling is disabled (flood_sleep_threshold=0) so that throttling reaches the Gateway, which owns retries.

Interface:

	TelegramSession(configuration, bot=False): The session contract documented in lib/api/Session.py.
	PrimarySessionFactory(configuration), SecondarySessionFactory(configuration): Factories for the Gateway.
	ToMessage(raw), ToTopic(raw), ToPage(raw), PagedTopics(fetch)

TODOs/FIXMEs:
None.
"""

import asyncio
import logging
import threading
import concurrent.futures

from telethon import TelegramClient, functions, types
from telethon.sessions import StringSession

from .Types import Channel, Topic, Message, SearchPage, PageKind
from ..Errors import InvalidClient

# Test servers are reached through this data center.
TEST_DC = (2, '149.154.167.40', 80)

# Largest page the remote hands out for topic listings.
TOPIC_LIMIT = 100


def Timestamp(date):
	if (date is None):
		return 0
	return int(date.timestamp())


def ToMessage(raw):
	topic_id = None
	reply_to = getattr(raw, 'reply_to', None)
	if (reply_to is not None):
		topic_id = getattr(reply_to, 'reply_to_top_id', None) or getattr(reply_to, 'reply_to_msg_id', None)

	if (isinstance(raw, types.Message)):
		return Message.User(raw.id, raw.message or "", Timestamp(raw.date), topic_id)

	if (isinstance(raw, types.MessageService)):
		body = ""
		if (isinstance(raw.action, types.MessageActionTopicCreate)):
			body = raw.action.title
		return Message.Service(raw.id, body, Timestamp(raw.date), topic_id)

	return Message.Other(getattr(raw, 'id', 0), 0, topic_id)


# Deleted topics come back as a different type and are ignored.
def ToTopic(raw):
	if (not isinstance(raw, types.ForumTopic)):
		return None
	return Topic(raw.id, raw.title, Timestamp(raw.date))


def ToPage(raw):
	if (isinstance(raw, types.messages.Messages)):
		return SearchPage(PageKind.MESSAGES, [ToMessage(m) for m in raw.messages], len(raw.messages))
	if (isinstance(raw, types.messages.MessagesSlice)):
		return SearchPage(PageKind.SLICE, [ToMessage(m) for m in raw.messages], raw.count, raw.offset_id_offset or 0)
	if (isinstance(raw, types.messages.ChannelMessages)):
		return SearchPage(PageKind.CHANNEL, [ToMessage(m) for m in raw.messages], raw.count, raw.offset_id_offset or 0)
	if (isinstance(raw, types.messages.MessagesNotModified)):
		return SearchPage(PageKind.NOT_MODIFIED, [], raw.count)
	return SearchPage(PageKind.UNKNOWN)


# Topic listings come in pages of at most TOPIC_LIMIT; each page continues after the last topic of the one before.
# fetch(offset_date, offset_id, offset_topic) RETURNS one raw page.
def PagedTopics(fetch):
	topics = []
	seen = 0
	offset_date, offset_id, offset_topic = None, 0, 0
	while (True):
		result = fetch(offset_date, offset_id, offset_topic)
		page = list(result.topics)
		seen += len(page)
		topics.extend(topic for topic in map(ToTopic, page) if topic is not None)

		if (len(page) < TOPIC_LIMIT or seen >= getattr(result, 'count', seen)):
			return topics

		last = page[-1]
		if (last.id == offset_topic):
			logging.warning(f"Topic listing did not advance past topic {offset_topic}; stopping at {len(topics)} topics.")
			return topics
		offset_date = getattr(last, 'date', None)
		offset_id = getattr(last, 'top_message', 0)
		offset_topic = last.id


# Every message a creation request produced, in the order the remote reported them.
def UpdateMessages(updates):
	messages = []
	for update in getattr(updates, 'updates', []) or []:
		message = getattr(update, 'message', None)
		if (message is not None):
			messages.append(ToMessage(message))
	return messages


class TelegramSession(object):
	def __init__(this, configuration, bot=False):
		this.configuration = configuration
		this.bot = bot
		this.timeout = configuration.net_timeout
		this.client = None
		this.loop = None
		this.thread = None

	# A call the caller stopped waiting for must not complete behind its back.
	def Run(this, coroutine):
		future = asyncio.run_coroutine_threadsafe(coroutine, this.loop)
		try:
			return future.result(this.timeout)
		except concurrent.futures.TimeoutError:
			future.cancel()
			logging.warning(f"Remote call abandoned after {this.timeout}s; it was cancelled.")
			raise

	def StartLoop(this):
		this.loop = asyncio.new_event_loop()
		this.thread = threading.Thread(
			target=this.loop.run_forever,
			name=f"telethon-{'bot' if this.bot else 'user'}",
			daemon=True
		)
		this.thread.start()

	def StopLoop(this):
		if (this.loop is None):
			return
		this.loop.call_soon_threadsafe(this.loop.stop)
		this.thread.join(this.timeout)
		this.loop.close()
		this.loop = None
		this.thread = None

	# The client must be created on the loop it will run on.
	async def _Create(this):
		configuration = this.configuration
		session = StringSession(None if this.bot else configuration.string_session)
		client = TelegramClient(
			session,
			configuration.app_id,
			configuration.app_hash,
			timeout=configuration.net_timeout,
			flood_sleep_threshold=0
		)
		if (configuration.test_server):
			client.session.set_dc(*TEST_DC)
		return client

	async def _Connect(this):
		this.client = await this._Create()
		await this.client.connect()

		if (this.bot):
			await this.client.sign_in(bot_token=this.configuration.bot_token)
			return

		if (not await this.client.is_user_authorized()):
			raise InvalidClient("the string session is not authorized; log in again")

	def Connect(this):
		this.StartLoop()
		try:
			this.Run(this._Connect())
		except Exception as e:
			logging.error(f"Could not connect the {'bot' if this.bot else 'user'} session: {e}")
			this.Disconnect()
			raise

	def IsConnected(this):
		return this.client is not None and this.client.is_connected()

	def Reconnect(this):
		if (this.loop is None):
			return this.Connect()
		this.Run(this.client.connect())

	def Disconnect(this):
		try:
			if (this.client is not None and this.loop is not None):
				this.Run(this.client.disconnect())
		finally:
			this.client = None
			this.StopLoop()

	def GetMe(this):
		me = this.Run(this.client.get_me())
		if (me is None):
			return "<unknown>"
		return me.username or f"{me.first_name} ({me.id})"

	async def _GetChannel(this, channel_id):
		try:
			entity = await this.client.get_entity(types.PeerChannel(channel_id))
		except ValueError:
			return None
		if (not isinstance(entity, types.Channel)):
			return None
		return Channel(entity.id, entity.access_hash, entity.title)

	def GetChannel(this, channel_id):
		return this.Run(this._GetChannel(channel_id))

	def InputChannel(this, channel):
		return types.InputChannel(channel.id, channel.access_hash)

	def GetForumTopics(this, channel, query):
		return PagedTopics(lambda offset_date, offset_id, offset_topic: this.Run(this.client(functions.channels.GetForumTopicsRequest(
			channel=this.InputChannel(channel),
			offset_date=offset_date,
			offset_id=offset_id,
			offset_topic=offset_topic,
			limit=TOPIC_LIMIT,
			q=query
		))))

	def CreateForumTopic(this, channel, title):
		updates = this.Run(this.client(functions.channels.CreateForumTopicRequest(
			channel=this.InputChannel(channel),
			title=title
		)))
		return UpdateMessages(updates)

	# The remote deletes history in batches and reports a non-zero offset while there is more to go.
	def DeleteTopicHistory(this, channel, topic_id):
		while (True):
			affected = this.Run(this.client(functions.channels.DeleteTopicHistoryRequest(
				channel=this.InputChannel(channel),
				top_msg_id=topic_id
			)))
			if (not affected.offset):
				return

	def SearchMessages(this, channel, topic_id, query, offset, limit):
		result = this.Run(this.client(functions.messages.SearchRequest(
			peer=types.InputPeerChannel(channel.id, channel.access_hash),
			q=query,
			filter=types.InputMessagesFilterEmpty(),
			min_date=None,
			max_date=None,
			offset_id=offset,
			add_offset=0,
			limit=limit,
			max_id=0,
			min_id=0,
			hash=0,
			top_msg_id=topic_id
		)))
		return ToPage(result)


def PrimarySessionFactory(configuration):
	return lambda: TelegramSession(configuration, bot=False)


# On the test servers the bot handle is simulated with the user one.
def SecondarySessionFactory(configuration):
	if (configuration.test_server):
		return None
	return lambda: TelegramSession(configuration, bot=True)
