"""
lib/api/Gateway.py

Purpose:
Wraps every remote call with connection repair, pacing and retry-on-throttle, so the filesystem stays usable under the remote service's flood control.

Place in Architecture:
The only way the rest of the library reaches the remote service. The Resolver and the Message Search Iterator pass small operations (functions of a session) to Call().
The Gateway exclusively owns both session handles.

Interface:

	__init__(primary_factory, secondary_factory=None, max_connections=10, max_retries=10, retry_backoff=0.1, max_backoff=60, test_server=False)
	FromConfiguration(configuration, primary_factory, secondary_factory=None)
	Call(operation, elevated=False, deadline=None): RETURNS operation(session). Throttling is retried; anything else is raised at once.
	Primary(), Secondary(): Connected session handles, reconnected on demand. In test_server mode they are the same session.
	Open(): Connects both handles and logs who they are.
	Cancel(), Close(): Stop sleeping retries; Close also disconnects both handles.
	A closed gateway that is used again reconnects and gets its retry budget back.
	Usable as a context manager (Open on enter, Close on exit).

TODOs/FIXMEs:
None.
"""

import time
import logging
import threading
from .Session import ManagedSession, SessionState
from .Types import THROTTLE_CODE
from ..Utils import BackoffDelay


def IsThrottle(error):
	return getattr(error, 'code', None) == THROTTLE_CODE


class Gateway(object):
	def __init__(this, primary_factory, secondary_factory=None, max_connections=10, max_retries=10, retry_backoff=0.1, max_backoff=60, test_server=False):
		this.test_server = test_server
		this.primary = ManagedSession(primary_factory, "primary")

		# On the test servers the secondary session is simulated with the primary one.
		if (test_server or secondary_factory is None):
			this.secondary = this.primary
		else:
			this.secondary = ManagedSession(secondary_factory, "secondary")

		this.max_connections = max(1, max_connections)
		this.semaphore = threading.BoundedSemaphore(this.max_connections)

		this.max_retries = max_retries
		this.retry_backoff = retry_backoff
		this.max_backoff = max_backoff

		this.cancelled = threading.Event()

	@classmethod
	def FromConfiguration(cls, configuration, primary_factory, secondary_factory=None):
		return cls(
			primary_factory,
			secondary_factory,
			max_connections=configuration.max_connections,
			max_retries=configuration.max_retries,
			retry_backoff=configuration.retry_backoff,
			max_backoff=configuration.max_backoff,
			test_server=configuration.test_server
		)

	# A closed gateway that is used again starts over with its full retry budget.
	def Connected(this, session):
		if (session.GetState() != SessionState.CONNECTED and this.cancelled.is_set()):
			logging.debug(f"Reopening the {session.name} session after a close.")
			this.cancelled.clear()
		return session.EnsureConnected()

	def Primary(this):
		return this.Connected(this.primary)

	def Secondary(this):
		return this.Connected(this.secondary)

	# How long to wait before the retry numbered `retry`.
	# A wait demanded by the remote is honoured, up to max_backoff.
	def Backoff(this, retry, error=None):
		delay = BackoffDelay(retry, this.retry_backoff, this.max_backoff)
		demanded = getattr(error, 'seconds', None)
		if (isinstance(demanded, (int, float))):
			delay = min(max(delay, demanded), this.max_backoff)
		return delay

	def Call(this, operation, elevated=False, deadline=None):
		retry = 0
		while (True):
			with this.semaphore:
				session = this.Secondary() if elevated else this.Primary()
				try:
					return operation(session)
				except Exception as e:
					if (not IsThrottle(e)):
						raise
					error = e

			if (retry >= this.max_retries):
				logging.warning(f"Throttled by the remote and out of retries ({this.max_retries}): {error}")
				raise error

			delay = this.Backoff(retry, error)
			retry += 1
			logging.warning(f"Throttled by the remote (retry {retry}/{this.max_retries}, waiting {delay:.2f}s): {error}")

			if (deadline is not None and time.time() + delay > deadline):
				logging.warning(f"Throttled by the remote past the caller's deadline: {error}")
				raise error

			if (this.cancelled.wait(delay)):
				logging.warning(f"Throttled call cancelled while waiting: {error}")
				raise error

	def Open(this):
		this.cancelled.clear()
		primary = this.Primary()
		logging.info(f"Primary session working with: {primary.GetMe()}")

		if (this.secondary is this.primary):
			logging.info("Simulating the secondary session with the primary one.")
		else:
			secondary = this.Secondary()
			logging.info(f"Secondary session working with: {secondary.GetMe()}")
		return this

	def Cancel(this):
		this.cancelled.set()

	def Close(this):
		this.Cancel()
		try:
			if (this.secondary is not this.primary):
				this.secondary.Disconnect()
		finally:
			this.primary.Disconnect()

	def IsConnected(this):
		return this.primary.GetState() == SessionState.CONNECTED

	def __enter__(this):
		return this.Open()

	def __exit__(this, type, value, traceback):
		this.Close()
