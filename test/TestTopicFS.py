import errno
import threading
import pytest
import hashlib
from StandardTestFixture import StandardTestFixture

from libtopicfs.Errors import *
from libtopicfs.fs.Entries import TopicObject, MAX_OBJECT_SIZE
from libtopicfs.MultipartHash import MultipartHasher
from FakeTelegram import FakeFilesystem, FloodWait, RemoteFailure


class TestListing(StandardTestFixture):

	@classmethod
	def Constructor(this):
		super().Constructor()
		this.options = {'cache_ttl': 0}

	def test_child_directory_with_item_count(this):
		a = this.remote.AddTopic("/root/a")
		b = this.remote.AddTopic("/root/a/b")
		this.remote.AddMessage(b, "/root/a/b/one")
		this.remote.AddMessage(b, "/root/a/b/two")

		entries = this.filesystem.List("a")
		this.assert_equal(len(entries), 1)
		entry = entries[0]
		assert entry.IsDir()
		this.assert_equal(entry.Name(), "b")
		this.assert_equal(entry.Remote(), "a/b")
		this.assert_equal(entry.Items(), 2)
		this.assert_equal(entry.Size(), -1)
		this.assert_equal(entry.ID(), str(b.id))

	def test_files_directly_inside(this):
		a = this.remote.AddTopic("/root/a")
		this.remote.AddMessage(a, "/root/a/x.txt", date=300)
		this.remote.AddMessage(a, "/root/a/deeper/y.txt")

		entries = this.filesystem.List("a")
		this.assert_equal([entry.Remote() for entry in entries], ["a/x.txt"])
		file = entries[0]
		assert not file.IsDir()
		this.assert_equal(file.Name(), "x.txt")
		this.assert_equal(file.ModTime(), 300)
		this.assert_equal(file.Size(), MAX_OBJECT_SIZE)

	def test_list_root(this):
		this.remote.AddTopic("/root/a")
		this.remote.AddMessage(this.root, "/root/readme")
		entries = this.filesystem.List("")
		this.assert_equal(sorted(entry.Remote() for entry in entries), ["a", "readme"])

	def test_missing_directory_aborts(this):
		this.assert_raises(ListAborted, this.filesystem.List, "missing")

	def test_child_failures_do_not_abort(this):
		this.remote.AddTopic("/root/a")
		this.remote.AddTopic("/root/b")
		# One for the first child, then the root's own files succeed.
		this.remote.Fail("SearchMessages", RemoteFailure("flaky"))
		entries = this.filesystem.List("")
		this.assert_equal(sorted((entry.Name(), entry.Items()) for entry in entries), [("a", -1), ("b", 0)])

	def test_own_file_failure_aborts(this):
		this.remote.Fail("SearchMessages", RemoteFailure("down"))
		this.assert_raises(ListAborted, this.filesystem.List, "")

	def test_throttled_listing_succeeds(this):
		this.remote.AddTopic("/root/a")
		this.remote.Fail("GetForumTopics", FloodWait(), FloodWait(), FloodWait())
		this.assert_equal([entry.Name() for entry in this.filesystem.List("")], ["a"])


# An instance rooted at a file: the root request names that file.
class TestListingSingleFile(StandardTestFixture):

	@classmethod
	def Constructor(this):
		super().Constructor()
		this.options = {'root': "notes.txt"}

	def test_root_request_falls_back_to_the_file(this):
		this.remote.AddMessage(this.root, "/root/notes.txt")
		entries = this.filesystem.List("")
		this.assert_equal(len(entries), 1)
		this.assert_equal(entries[0].absolute, "/root/notes.txt")
		this.assert_equal(entries[0].Remote(), "notes.txt")

	def test_neither_file_nor_directory(this):
		this.assert_raises(DirectoryNotFound, this.filesystem.List, "")


class TestMakeDirectory(StandardTestFixture):

	def test_make_twice(this):
		first = this.filesystem.MakeDirectory("new")
		second = this.filesystem.MakeDirectory("new/")
		this.assert_equal((first.id, first.title), (second.id, second.title))
		this.assert_equal(first.title, "/root/new")
		this.assert_equal(this.remote.Count("CreateForumTopic"), 1)

	def test_concurrent_creation_makes_one_topic(this):
		this.remote.latency = 0.01
		results = []
		errors = []

		def Make():
			try:
				results.append(this.filesystem.MakeDirectory("new"))
			except Exception as e:
				errors.append(e)

		threads = [threading.Thread(target=Make) for i in range(8)]
		for thread in threads:
			thread.start()
		for thread in threads:
			thread.join(5)
		this.assert_equal(errors, [])
		this.assert_equal(len(results), 8)
		this.assert_equal(set(topic.id for topic in results), {results[0].id})
		this.assert_equal(this.remote.Count("CreateForumTopic"), 1)

	def test_unconfirmed_creation(this):
		this.remote.confirm_creates = False
		this.assert_raises(OperationWithoutUpdates, this.filesystem.MakeDirectory, "new")

	def test_stale_listing_is_tolerated(this):
		this.filesystem.List("")
		this.filesystem.MakeDirectory("new")
		# The root listing is still cached.
		this.assert_equal(this.filesystem.List(""), [])


class TestRemoveDirectory(StandardTestFixture):

	@classmethod
	def Constructor(this):
		super().Constructor()
		this.options = {'cache_ttl': 0}

	def test_remove_empty(this):
		a = this.remote.AddTopic("/root/a")
		this.filesystem.RemoveDirectory("a")
		assert a.id not in this.remote.topics

	def test_root_is_never_removed(this):
		this.assert_raises(UnsupportedOperation, this.filesystem.RemoveDirectory, "")
		this.remote.AddMessage(this.root, "/root/file")
		this.assert_raises(UnsupportedOperation, this.filesystem.RemoveDirectory, "")
		this.assert_equal(this.remote.Count("DeleteTopicHistory"), 0)

	def test_child_directory_blocks(this):
		this.remote.AddTopic("/root/a")
		this.remote.AddTopic("/root/a/b")
		this.assert_raises(DirectoryNotEmpty, this.filesystem.RemoveDirectory, "a")

	def test_file_blocks(this):
		a = this.remote.AddTopic("/root/a")
		this.remote.AddMessage(a, "/root/a/file")
		this.assert_raises(DirectoryNotEmpty, this.filesystem.RemoveDirectory, "a")

	# Only the creation notice is left in an empty topic.
	def test_service_messages_do_not_block(this):
		a = this.remote.AddTopic("/root/a")
		this.assert_equal(len(this.remote.messages[a.id]), 1)
		this.filesystem.RemoveDirectory("a")

	def test_missing(this):
		this.assert_raises(DirectoryNotFound, this.filesystem.RemoveDirectory, "missing")

	def test_remote_failure(this):
		this.remote.AddTopic("/root/a")
		this.remote.Fail("DeleteTopicHistory", RemoteFailure("denied"))
		this.assert_raises(NotDeletingDirs, this.filesystem.RemoveDirectory, "a")

	def test_error_codes(this):
		this.remote.AddTopic("/root/a")
		this.remote.AddTopic("/root/a/b")
		with pytest.raises(DirectoryNotEmpty) as error:
			this.filesystem.RemoveDirectory("a")
		this.assert_equal(error.value.errno, errno.ENOTEMPTY)


class TestFindObject(StandardTestFixture):

	def test_directory_is_not_a_file(this):
		this.remote.AddTopic("/root/a")
		this.assert_raises(IsADirectory, this.filesystem.FindObject, "a")
		this.assert_raises(IsADirectoryError, this.filesystem.FindObject, "a")

	def test_found(this):
		a = this.remote.AddTopic("/root/a")
		message = this.remote.AddMessage(a, "/root/a/x.txt")
		found = this.filesystem.FindObject("a/x.txt")
		this.assert_equal(found.message.id, message.id)
		this.assert_equal(found.Remote(), "a/x.txt")
		this.assert_equal(found.Directory(), "/root/a")
		this.assert_equal(found.DirectoryRelative(), "a")

	def test_missing_file(this):
		this.remote.AddTopic("/root/a")
		this.assert_raises(ObjectNotFound, this.filesystem.FindObject, "a/x.txt")

	def test_missing_parent(this):
		this.assert_raises(DirectoryNotFound, this.filesystem.FindObject, "a/x.txt")

	def test_attributes(this):
		a = this.remote.AddTopic("/root/a")
		this.remote.AddMessage(a, "/root/a/x.txt", date=300)
		this.assert_equal(this.filesystem.GetAttributes("")['type'], 'dir')
		this.assert_equal(this.filesystem.GetAttributes("a")['type'], 'dir')
		attributes = this.filesystem.GetAttributes("a/x.txt")
		this.assert_equal(attributes['type'], 'file')
		this.assert_equal(attributes['mtime'], 300)
		this.assert_raises(ObjectNotFound, this.filesystem.GetAttributes, "a/y.txt")


class TestFileEntries(StandardTestFixture):

	def test_placeholder_hash(this):
		a = this.remote.AddTopic("/root/a")
		this.remote.AddMessage(a, "/root/a/x.txt")
		found = this.filesystem.FindObject("a/x.txt")
		this.assert_equal(found.Hash(), hashlib.sha256(b"/root/a/x.txt").hexdigest())
		this.assert_equal(found.Hash(), TopicObject.FromRelative(this.filesystem, "a/x.txt").Hash())
		assert found.Hash() != TopicObject.FromRelative(this.filesystem, "a/y.txt").Hash()

	def test_multipart_hash(this):
		found = TopicObject.FromRelative(this.filesystem, "x")
		hasher = MultipartHasher()
		hasher.update(b"content")
		this.assert_equal(found.Hash(hasher.FileHashes()), hasher.hexdigest())

	def test_unsupported_operations(this):
		found = TopicObject.FromRelative(this.filesystem, "x")
		assert found.Storable()
		found.SetModTime(5)
		this.assert_raises(UnsupportedOperation, found.Open)
		this.assert_raises(UnsupportedOperation, found.Remove)
		this.assert_raises(UnsupportedOperation, found.Update, b"data")

	def test_put_hands_off_the_names(this):
		received = []
		filesystem = FakeFilesystem(this.remote, uploader=lambda *a: received.append(a))
		target = filesystem.Put(b"data", "a/x.txt")
		this.assert_equal(received, [(b"data", "/root/a/x.txt", "a/x.txt", "/root/a/x.txt")])
		this.assert_equal(target.Remote(), "a/x.txt")

	def test_locate(this):
		this.assert_equal(this.filesystem.Locate("a/b/"), ("/root/a/b", "a/b/", "/root/a/b"))
		this.assert_equal(this.filesystem.Locate(""), ("/root", "", "/root"))


class TestDescription(StandardTestFixture):

	@classmethod
	def Constructor(this):
		super().Constructor()
		this.options = {'root': "backups"}

	def test_root(this):
		this.assert_equal(this.filesystem.Root(), "/root/backups")

	def test_self_description(this):
		this.assert_equal(this.filesystem.Precision(), 1)
		this.assert_equal(this.filesystem.Usage(), {})
		this.assert_equal(this.filesystem.Hashes(), [MultipartHasher.name])
		assert not this.filesystem.Features()['case_insensitive']
		assert this.filesystem.Features()['can_have_empty_directories']
		this.assert_equal(this.filesystem.Name(), "topicfs")
		this.assert_equal(str(this.filesystem), "Topic filesystem mounted at: topicfs:backups")

	def test_directories(this):
		this.remote.AddTopic("/root/backups")
		this.remote.AddTopic("/root/backups/daily")
		this.remote.AddTopic("/root/other")
		this.assert_equal([topic.title for topic in this.filesystem.Directories()], ["/root/backups", "/root/backups/daily"])

	def test_open_and_close(this):
		with this.filesystem as filesystem:
			assert filesystem.gateway.IsConnected()
		assert not this.filesystem.gateway.IsConnected()
