"""
lib/api/Session.py

Purpose:
Tracks the liveness of one remote session and re-establishes it on demand.

Place in Architecture:
Owned by the Gateway, which keeps one ManagedSession for the primary handle and one for the secondary (elevated) handle.
The wrapped session object is created lazily by a factory so that nothing touches the network before the first call.

Interface:

	SessionState: DISCONNECTED, CONNECTING, CONNECTED.
	ManagedSession(factory, name):
		EnsureConnected(): RETURNS a connected session, connecting or reconnecting as needed.
		Disconnect(): Tears the session down. Safe to call more than once.
		GetState()

	A session produced by the factory must provide:
		Connect(), IsConnected(), Reconnect(), Disconnect(), GetMe(),
		GetChannel(channel_id), GetForumTopics(channel, query), CreateForumTopic(channel, title),
		DeleteTopicHistory(channel, topic_id), SearchMessages(channel, topic_id, query, offset, limit).

TODOs/FIXMEs:
None.
"""

import logging
import threading
from enum import Enum


class SessionState(Enum):
	DISCONNECTED = 0
	CONNECTING = 1
	CONNECTED = 2

	def __str__(self):
		return self.name


class ManagedSession(object):
	def __init__(this, factory, name="primary"):
		this.factory = factory
		this.name = name
		this.session = None
		this.state = SessionState.DISCONNECTED
		this.lock = threading.RLock()

	def GetState(this):
		return this.state

	# Check the transport before every call and repair it if it dropped.
	def EnsureConnected(this):
		with this.lock:
			if (this.state == SessionState.CONNECTED and this.session.IsConnected()):
				return this.session

			if (this.state == SessionState.CONNECTED):
				logging.info(f"Session {this.name} dropped its connection; reconnecting.")

			this.state = SessionState.CONNECTING
			try:
				if (this.session is None):
					session = this.factory()
					session.Connect()
					this.session = session
				else:
					this.session.Reconnect()
			except Exception as e:
				this.state = SessionState.DISCONNECTED
				logging.error(f"Session {this.name} could not connect: {e}")
				raise

			this.state = SessionState.CONNECTED
			return this.session

	def Disconnect(this):
		with this.lock:
			if (this.session is not None and this.state != SessionState.DISCONNECTED):
				try:
					this.session.Disconnect()
				finally:
					this.state = SessionState.DISCONNECTED

	def __repr__(this):
		return f"<ManagedSession {this.name} {this.state}>"
