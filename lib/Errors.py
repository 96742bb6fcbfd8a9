"""
lib/Errors.py

Purpose:
Defines the errors the filesystem reports. Each one is an OSError carrying a fixed errno so that mount layers can return -errno directly.

Place in Architecture:
Raised by the Resolver, the Message Search Iterator and the Facade. The Gateway never raises these itself; it only retries or re-raises what the remote raised.

Interface:

	Not found: DirectoryNotFound, ObjectNotFound.
	Invariant violations: DirectoryNotEmpty, IsADirectory, UnsupportedOperation.
	Listing / deleting aborted by an underlying failure: ListAborted, NotDeletingDirs.
	Protocol faults: InvalidChannel, OperationWithoutUpdates, InvalidClient.
	Configuration: InvalidConfiguration (a ValueError).

TODOs/FIXMEs:
None.
"""

import errno


class TopicFSError(OSError):
	code = errno.EIO
	default = "the filesystem operation failed"

	def __init__(this, message=None):
		super().__init__(this.code, message or this.default)


class DirectoryNotFound(TopicFSError, FileNotFoundError):
	code = errno.ENOENT
	default = "directory not found"


class ObjectNotFound(TopicFSError, FileNotFoundError):
	code = errno.ENOENT
	default = "object not found"


class DirectoryNotEmpty(TopicFSError):
	code = errno.ENOTEMPTY
	default = "directory not empty"


class IsADirectory(TopicFSError, IsADirectoryError):
	code = errno.EISDIR
	default = "is a directory not a file"


class UnsupportedOperation(TopicFSError):
	code = errno.EPERM
	default = "the operation is not supported by the filesystem"


class ListAborted(TopicFSError):
	code = errno.EIO
	default = "list aborted"


class NotDeletingDirs(TopicFSError):
	code = errno.EIO
	default = "not deleting directories as there were IO errors"


class InvalidChannel(TopicFSError):
	code = errno.EREMOTEIO
	default = "the channel is invalid or inexistent, check your configuration and bot join status"


class OperationWithoutUpdates(TopicFSError):
	code = errno.EREMOTEIO
	default = "the operation was executed without any updates returned"


class InvalidClient(TopicFSError):
	code = errno.ECONNREFUSED
	default = "cannot connect to the remote service, check your credentials and configuration"


class InvalidConfiguration(ValueError):
	pass
