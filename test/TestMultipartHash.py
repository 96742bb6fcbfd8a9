import json
import base64
import hashlib
from StandardTestFixture import StandardTestFixture

from libtopicfs.MultipartHash import FileHash, FromFileHashes, MultipartHasher, PART_SIZE


class TestFromFileHashes(StandardTestFixture):

	hashes = [
		(0, PART_SIZE, b"\x01" * 32),
		(PART_SIZE, PART_SIZE, b"\x02" * 32),
		(2 * PART_SIZE, 17, b"\x03" * 32),
	]

	def test_order_independent(this):
		reordered = [this.hashes[2], this.hashes[0], this.hashes[1]]
		this.assert_equal(FromFileHashes(reordered), FromFileHashes(this.hashes))

	def test_duplicate_offsets_are_dropped(this):
		duplicated = this.hashes + [this.hashes[1], this.hashes[0]]
		this.assert_equal(FromFileHashes(duplicated), FromFileHashes(this.hashes))

	def test_first_duplicate_wins(this):
		first = [(0, PART_SIZE, b"\x01" * 32), (0, PART_SIZE, b"\x09" * 32)]
		this.assert_equal(FromFileHashes(first), FromFileHashes(first[:1]))

	def test_serialization(this):
		expected = json.dumps([
			{'Offset': 0, 'Limit': PART_SIZE, 'Hash': base64.b64encode(b"\x01" * 32).decode('ascii')},
			{'Offset': PART_SIZE, 'Limit': PART_SIZE, 'Hash': base64.b64encode(b"\x02" * 32).decode('ascii')},
			{'Offset': 2 * PART_SIZE, 'Limit': 17, 'Hash': base64.b64encode(b"\x03" * 32).decode('ascii')},
		], separators=(',', ':'))
		this.assert_equal(FromFileHashes(this.hashes), hashlib.sha512(expected.encode('utf-8')).digest())

	def test_empty(this):
		this.assert_equal(FromFileHashes([]), hashlib.sha512(b"[]").digest())

	def test_pairs_default_to_a_full_part(this):
		this.assert_equal(FileHash.From((5, b"x")).limit, PART_SIZE)
		this.assert_equal(FileHash.From((5, b"x")).ToData()['Hash'], "eA==")


class TestMultipartHasher(StandardTestFixture):

	def test_parts(this):
		hasher = MultipartHasher()
		data = b"a" * (PART_SIZE + 10)
		hasher.update(data[:100])
		hasher.update(data[100:])
		parts = hasher.FileHashes()
		this.assert_equal([(part.offset, part.limit) for part in parts], [(0, PART_SIZE), (PART_SIZE, PART_SIZE)])
		this.assert_equal(parts[1].hash, hashlib.sha256(b"a" * 10).digest())

	def test_digest(this):
		hasher = MultipartHasher(b"hello")
		this.assert_equal(len(hasher.digest()), MultipartHasher.digest_size)
		this.assert_equal(hasher.hexdigest(), FromFileHashes([(0, PART_SIZE, hashlib.sha256(b"hello").digest())]).hex())

	def test_copy_and_reset(this):
		hasher = MultipartHasher(b"hello")
		copy = hasher.copy()
		hasher.reset()
		this.assert_equal(copy.hexdigest(), MultipartHasher(b"hello").hexdigest())
		this.assert_equal(hasher.FileHashes(), [])
