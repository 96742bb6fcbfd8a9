"""
lib/MultipartHash.py

Purpose:
Computes the checksum the filesystem reports for a file: a digest of the per-chunk hash list, not of the file bytes themselves.

Place in Architecture:
The content identity collaborator. The upload side hands over the (offset, hash) pairs the remote reports for each uploaded chunk; TopicObject.Hash() folds them with FromFileHashes.
The serialization is fixed so that checksums stay comparable with those computed by earlier implementations: chunks sorted by offset, duplicate offsets dropped, compact JSON with Offset / Limit / base64 Hash keys, then SHA-512.

Interface:

	PART_SIZE: Chunk size used when hashing raw bytes (128 KiB).
	FileHash(offset, limit, hash): One chunk's hash. From(item) accepts a FileHash or an (offset, hash) / (offset, limit, hash) tuple.
	FromFileHashes(file_hashes): RETURNS the SHA-512 digest (bytes) of the deduplicated chunk list.
	MultipartHasher: hashlib-like update() / digest() / hexdigest() / copy() / reset() over raw bytes.

TODOs/FIXMEs:
None.
"""

import json
import base64
from cryptography.hazmat.primitives import hashes

PART_SIZE = 131072


class FileHash(object):
	def __init__(this, offset, limit, hash):
		this.offset = offset
		this.limit = limit
		this.hash = hash

	@classmethod
	def From(cls, item):
		if (isinstance(item, FileHash)):
			return item
		if (len(item) == 2):
			return cls(item[0], PART_SIZE, item[1])
		return cls(item[0], item[1], item[2])

	# Key order and names are part of the checksum.
	def ToData(this):
		return {
			'Offset': this.offset,
			'Limit': this.limit,
			'Hash': base64.b64encode(this.hash).decode('ascii')
		}

	def __repr__(this):
		return f"<FileHash @{this.offset}+{this.limit}>"


def FromFileHashes(file_hashes):
	ordered = sorted((FileHash.From(item) for item in file_hashes), key=lambda fileHash: fileHash.offset)

	unique = []
	for fileHash in ordered:
		if (not unique or fileHash.offset != unique[-1].offset):
			unique.append(fileHash)

	data = json.dumps([fileHash.ToData() for fileHash in unique], separators=(',', ':'))

	digest = hashes.Hash(hashes.SHA512())
	digest.update(data.encode('utf-8'))
	return digest.finalize()


def _Sha256(data):
	digest = hashes.Hash(hashes.SHA256())
	digest.update(data)
	return digest.finalize()


class MultipartHasher(object):
	name = "topicfs-multipart"
	digest_size = 64
	block_size = 128

	def __init__(this, data=b""):
		this.data = bytearray(data)

	def update(this, data):
		this.data += data

	def FileHashes(this):
		return [
			FileHash(offset, PART_SIZE, _Sha256(bytes(this.data[offset:offset + PART_SIZE])))
			for offset in range(0, len(this.data), PART_SIZE)
		]

	def digest(this):
		return FromFileHashes(this.FileHashes())

	def hexdigest(this):
		return this.digest().hex()

	def copy(this):
		return MultipartHasher(bytes(this.data))

	def reset(this):
		this.data = bytearray()
