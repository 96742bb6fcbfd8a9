"""
lib/fs/Entries.py

Purpose:
The entries a listing hands back: DirectoryEntry for a topic and TopicObject for a message.

Place in Architecture:
Built by the Facade from the Topics and Messages it found. They are read-only views; nothing in them talks to the remote except TopicObject.Update, which hands off to the upload collaborator.

Interface:

	DirectoryEntry(root, topic, items=-1): Name(), Remote(), ModTime(), Items(), Size() (always -1), ID(), IsDir(), GetAttributes().
	TopicObject(filesystem, message) / TopicObject.FromRelative(filesystem, relative):
		Name(), Remote(), Directory(), DirectoryRelative(), ModTime(), Size() (the size ceiling), Hash(file_hashes=None),
		Storable(), SetModTime(), Open(), Update(), Remove(), Locate(), GetAttributes(), IsDir().

TODOs/FIXMEs:
None.
"""

import logging
from cryptography.hazmat.primitives import hashes
from ..api.Types import Message
from ..Errors import UnsupportedOperation
from ..MultipartHash import FromFileHashes
from ..Upath import RemoteFrom, TopicPath
from ..Utils import udirname, ubasename

# The largest object the remote accepts. Per-file sizes are not tracked, so every file reports this.
MAX_OBJECT_SIZE = 2 << 30


class DirectoryEntry(object):
	def __init__(this, root, topic, items=-1):
		this.topic = topic
		this.remote = RemoteFrom(root, topic.title)
		this.items = items

	def Name(this):
		return ubasename(this.remote)

	def Remote(this):
		return this.remote

	def ModTime(this):
		return this.topic.date

	def Items(this):
		return this.items

	# Directory size is not meaningful here.
	def Size(this):
		return -1

	def ID(this):
		return str(this.topic.id)

	def IsDir(this):
		return True

	def GetAttributes(this):
		return dict(type='dir',
					id=this.ID(),
					items=this.items,
					size=this.Size(),
					ctime=this.topic.date,
					mtime=this.topic.date)

	def __repr__(this):
		return f"<DirectoryEntry {this.remote} ({this.topic.id}) items={this.items}>"


class TopicObject(object):
	def __init__(this, filesystem, message):
		this.filesystem = filesystem
		this.message = message
		this.absolute = message.body
		this.relative = this.Remote()

	# Objects that do not exist yet (e.g. the destination of a Put) carry a placeholder message with id 0.
	@classmethod
	def FromRelative(cls, filesystem, relative):
		upath = TopicPath(filesystem.Root(), relative)
		return cls(filesystem, Message.User(0, upath.query))

	def Name(this):
		return ubasename(this.relative)

	def Remote(this):
		return RemoteFrom(this.filesystem.Root(), this.absolute)

	def Directory(this):
		return udirname(this.absolute)

	def DirectoryRelative(this):
		return udirname(this.relative)

	def Locate(this):
		return this.filesystem.Locate(this.relative)

	# The time the message was created or last edited.
	def ModTime(this):
		return this.message.date

	def Size(this):
		return MAX_OBJECT_SIZE

	# With the chunk hashes of an upload this is the multipart checksum.
	# Without them it is an opaque stand-in derived from the path.
	def Hash(this, file_hashes=None):
		if (file_hashes):
			return FromFileHashes(file_hashes).hex()

		digest = hashes.Hash(hashes.SHA256())
		digest.update(this.absolute.encode('utf-8'))
		return digest.finalize().hex()

	def Storable(this):
		return True

	def SetModTime(this, mtime):
		pass

	def Open(this):
		raise UnsupportedOperation(f"reading is not implemented: {this.absolute}")

	def Update(this, source):
		uploader = this.filesystem.uploader
		if (uploader is None):
			raise UnsupportedOperation(f"no upload pipeline configured for: {this.absolute}")

		absolute, relative, query = this.Locate()
		logging.debug(f"Handing upload to the uploader -> Absolute: {this.absolute}, Relative: {relative}, Query: {query}")
		return uploader(source, this.absolute, relative, query)

	def Remove(this):
		raise UnsupportedOperation(f"removing files is not implemented: {this.absolute}")

	def IsDir(this):
		return False

	def GetAttributes(this):
		return dict(type='file',
					id=str(this.message.id),
					size=this.Size(),
					ctime=this.message.date,
					mtime=this.message.date)

	def __str__(this):
		return (f"On filesystem {this.filesystem.Name()}, object with message ID {this.message.id}, "
				f"stored at path {this.absolute}, relative to root {this.relative}")

	def __repr__(this):
		return f"<TopicObject {this.absolute} ({this.message.id})>"
