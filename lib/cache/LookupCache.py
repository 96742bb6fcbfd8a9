"""
lib/cache/LookupCache.py

Purpose:
Short lived, memoized results of remote lookups (the channel record and topic listings), keyed by query string.

Place in Architecture:
Interposed between the Resolver and the Gateway. Remote list and search calls are expensive and rate limited, while list / stat / mkdir repeat the same queries constantly, so a bounded staleness window buys a large cut in call volume.
Entries expire by lifetime only. Mutations do not purge them, so a just created directory may stay invisible to listings until its entry expires.

Interface:

	LookupCache(ttl, name):
		Get(key, loader): RETURNS the cached value or loader(key). A result is stored only if the loader returned something other than None.
		Lookup(key) -> (hit, value), Store(key, value): The storage backend; override these for other backends.
		IsFresh(retrieved)
	RedisLookupCache(ttl, client, namespace, encode, decode): Shares entries between processes through Redis.
	CreateLookupCache(configuration, name, encode, decode): Builds whichever backend the configuration asks for.

TODOs/FIXMEs:
None.
"""

import time
import json
import logging
import threading

import redis


class LookupCache(object):
	def __init__(this, ttl, name="lookup"):
		this.ttl = ttl
		this.name = name
		this.entries = {}
		this.lock = threading.Lock()

		# One lock per key being loaded, so concurrent misses on the same key load it once.
		this.loading = {}

	def IsFresh(this, retrieved):
		return time.time() < retrieved + this.ttl

	def Lookup(this, key):
		with this.lock:
			if (key not in this.entries):
				return False, None

			retrieved, value = this.entries[key]
			if (not this.IsFresh(retrieved)):
				del this.entries[key]
				return False, None
			return True, value

	def Store(this, key, value):
		with this.lock:
			this.entries[key] = (time.time(), value)

	def Get(this, key, loader):
		hit, value = this.Lookup(key)
		if (hit):
			return value

		with this.lock:
			keyLock = this.loading.setdefault(key, threading.Lock())

		try:
			with keyLock:
				# Someone else may have loaded it while we waited.
				hit, value = this.Lookup(key)
				if (hit):
					return value

				logging.debug(f"Cache {this.name} miss for: {key}")
				value = loader(key)
				if (value is not None):
					this.Store(key, value)
				return value
		finally:
			with this.lock:
				if (this.loading.get(key) is keyLock and not keyLock.locked()):
					del this.loading[key]

	def __len__(this):
		with this.lock:
			return len(this.entries)


class RedisLookupCache(LookupCache):
	def __init__(this, ttl, client, namespace, encode, decode, name="lookup"):
		super().__init__(ttl, name)
		this.client = client
		this.namespace = namespace
		this.encode = encode
		this.decode = decode

	def RedisKey(this, key):
		return f"{this.namespace}:{key}"

	def Lookup(this, key):
		raw = this.client.get(this.RedisKey(key))
		if (raw is None):
			return False, None
		try:
			return True, this.decode(json.loads(raw))
		except (ValueError, KeyError, TypeError) as e:
			logging.error(f"Cache {this.name} holds an unreadable entry for {key}: {e}")
			return False, None

	# Redis expires the entry itself.
	def Store(this, key, value):
		if (this.ttl <= 0):
			return
		this.client.set(this.RedisKey(key), json.dumps(this.encode(value)), ex=int(this.ttl))

	def __len__(this):
		return len(list(this.client.scan_iter(match=this.RedisKey("*"))))


def CreateLookupCache(configuration, name, encode, decode):
	if (configuration.cache_backend == 'redis'):
		client = redis.Redis(
			host=configuration.redis_host,
			port=configuration.redis_port,
			db=configuration.redis_db
		)
		return RedisLookupCache(
			configuration.cache_ttl,
			client,
			f"topicfs:{configuration.channel_id}:{name}",
			encode,
			decode,
			name=name
		)
	return LookupCache(configuration.cache_ttl, name)
