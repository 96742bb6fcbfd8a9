"""
lib/Configuration.py

Purpose:
Holds the validated configuration of one filesystem instance: credentials, the backing channel, connection and retry limits and the cache lifetime.

Place in Architecture:
Produced once by the executor (or by tests) and handed to the Gateway, the LookupCache factory and TopicFS at construction. Nothing writes to it afterwards.

Interface:

	Configuration(**options): Stores the options over the defaults. Unknown options are refused.
	Validate(): Coerces and checks every option. RETURNS *this.

TODOs/FIXMEs:
None.
"""

from .Errors import InvalidConfiguration
from .Utils import parse_size, parse_lifetime, parse_bool


class Configuration(object):
	required = [
		'app_id',
		'app_hash',
		'channel_id',
	]

	optional = {
		'bot_token': "",
		'string_session': "",
		'phone_number': "",
		'root': "",
		'max_connections': 10,
		'max_retries': 10,
		'retry_backoff': 0.1,
		'max_backoff': 60,
		'cache_ttl': 10,
		'cache_backend': "memory",
		'redis_host': "",
		'redis_port': 6379,
		'redis_db': 0,
		'net_timeout': 30,
		'chunk_size': "512MiB",
		'test_server': False,
		'search_limit': 100,
	}

	def __init__(this, **options):
		for key in options:
			if (key not in this.required and key not in this.optional):
				raise InvalidConfiguration(f"unknown option: {key}")

		for key in this.required:
			setattr(this, key, options.get(key))

		for key, default in this.optional.items():
			setattr(this, key, options.get(key, default))

		this.validated = False

	def Validate(this):
		for key in this.required:
			if (getattr(this, key) in (None, "")):
				raise InvalidConfiguration(f"missing required option: {key}")

		this.app_id = this._Coerce('app_id', int)
		this.channel_id = this._Coerce('channel_id', int)
		this.app_hash = str(this.app_hash).strip()
		this.bot_token = str(this.bot_token or "").strip()
		this.string_session = str(this.string_session or "").strip()
		this.root = str(this.root or "")

		this.test_server = this._Coerce('test_server', parse_bool)
		if (not this.test_server and not this.bot_token):
			raise InvalidConfiguration("missing required option: bot_token")

		for key in ['max_connections', 'max_retries', 'search_limit', 'redis_port', 'redis_db']:
			setattr(this, key, this._Coerce(key, int))
		if (this.max_connections < 1):
			raise InvalidConfiguration(f"max_connections {this.max_connections} must be at least 1")
		if (this.max_retries < 0):
			raise InvalidConfiguration(f"max_retries {this.max_retries} must not be negative")
		if (this.search_limit < 1):
			raise InvalidConfiguration(f"search_limit {this.search_limit} must be at least 1")

		for key in ['retry_backoff', 'max_backoff', 'net_timeout']:
			setattr(this, key, this._Coerce(key, float))
		if (this.retry_backoff < 0 or this.max_backoff < 0):
			raise InvalidConfiguration("backoff values must not be negative")
		if (not 0 < this.net_timeout < float('inf')):
			raise InvalidConfiguration(f"net_timeout {this.net_timeout} is not a valid timeout")

		this.cache_ttl = this._Coerce('cache_ttl', parse_lifetime)
		if (this.cache_ttl < 0):
			raise InvalidConfiguration(f"cache_ttl {this.cache_ttl} is not a valid lifetime")

		this.chunk_size = this._Coerce('chunk_size', parse_size)

		this.cache_backend = str(this.cache_backend).lower()
		if (this.cache_backend not in ('memory', 'redis')):
			raise InvalidConfiguration(f"cache_backend {this.cache_backend} is not one of: memory, redis")
		if (this.cache_backend == 'redis' and not this.redis_host):
			raise InvalidConfiguration("missing required option: redis_host")

		this.validated = True
		return this

	def _Coerce(this, key, kind):
		value = getattr(this, key)
		try:
			return kind(value)
		except (TypeError, ValueError, AttributeError):
			raise InvalidConfiguration(f"{key} {value!r} is not valid")

	def __repr__(this):
		return f"<Configuration channel={this.channel_id} root={this.root!r} test_server={this.test_server}>"
