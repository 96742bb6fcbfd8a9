import eons
import stat
import errno
import logging
import logging.handlers
import fuse

from libtopicfs import TopicFS, Configuration, Gateway, InvalidConfiguration, UnleadSlash, parse_log_level
from libtopicfs.api.TelegramSession import PrimarySessionFactory, SecondarySessionFactory

from .FuseMethod import *

fuse.fuse_python_api = (0, 2)

# TopicFS mounts a channel of forum topics on the local filesystem.
# Name is caps to make it executable per eons weirdness.
class TOPICFS(eons.Executor, fuse.Fuse):
	def __init__(this, name="TopicFS"):
		super(TOPICFS, this).__init__(name)

		this.arg.kw.required.append("mount")

		for option in Configuration.required:
			this.arg.kw.static.append(option)
		for option, default in Configuration.optional.items():
			this.arg.kw.optional[option] = default

		this.arg.kw.optional["daemon"] = False
		this.arg.kw.optional["log_level"] = "warning"

		# Supported FUSE args
		this.arg.kw.optional["multithreaded"] = True

		this.filesystem = None

	# ValidateArgs is automatically called before Function, per eons.Functor.
	def ValidateArgs(this):
		super().ValidateArgs()

		try:
			this.log_level = parse_log_level(this.log_level)
		except ValueError:
			raise eons.MissingArgumentError(f"error: --log-level {this.log_level} is not a valid log level")

		options = {}
		for option in list(Configuration.required) + list(Configuration.optional.keys()):
			options[option] = getattr(this, option)

		try:
			this.configuration = Configuration(**options).Validate()
		except InvalidConfiguration as e:
			raise eons.MissingArgumentError(f"error: {e}")

	def BeforeFunction(this):
		this.SetupLogging()

		gateway = Gateway.FromConfiguration(
			this.configuration,
			PrimarySessionFactory(this.configuration),
			SecondarySessionFactory(this.configuration)
		)
		this.filesystem = TopicFS(this.configuration, gateway, name=this.name)

	def SetupLogging(this):
		logger = logging.getLogger('')
		if (not this.daemon):
			# console logging only
			handler = logging.StreamHandler()
			fmt = logging.Formatter(fmt=("%(asctime)s topicfs[%(process)d]: " +
										 str(this.mount) + " %(levelname)s: %(message)s"))
		else:
			# to syslog
			handler = logging.handlers.SysLogHandler(address='/dev/log')
			fmt = logging.Formatter(fmt=("topicfs[%(process)d]: " +
										 str(this.mount) + ": %(levelname)s: %(message)s"))

		handler.setFormatter(fmt)
		logger.addHandler(handler)
		logger.setLevel(this.log_level)

	def Function(this):
		this.fuse_args = fuse.FuseArgs()
		this.fuse_args.mountpoint = this.mount

		if (not this.daemon):
			this.fuse_args.setmod('foreground')

		with this.filesystem:
			logging.info(f"{this.filesystem} on {this.mount}")
			fuse.Fuse.main(this)

	# FUSE paths are absolute to the mountpoint; the filesystem takes them relative to its root.
	def GetRelative(this, path):
		return UnleadSlash(path)

	# -- Directory ops

	@FuseMethod
	def readdir(this, path, offset):
		entries = [fuse.Direntry('.'),
				   fuse.Direntry('..')]

		for entry in this.filesystem.List(this.GetRelative(path)):
			entries.append(fuse.Direntry(entry.Name()))

		return entries

	@FuseMethod
	def rmdir(this, path):
		this.filesystem.RemoveDirectory(this.GetRelative(path))
		return 0

	@FuseMethod
	def mkdir(this, path, mode):
		# *mode* is dropped; topics have no permissions
		this.filesystem.MakeDirectory(this.GetRelative(path))
		return 0

	# -- File ops

	@FuseMethod
	def open(this, path, flags):
		this.filesystem.FindObject(this.GetRelative(path)).Open()
		return 0

	@FuseMethod
	def unlink(this, path):
		this.filesystem.FindObject(this.GetRelative(path)).Remove()
		return 0

	# -- Handleless ops

	@FuseMethod
	def getattr(this, path):
		info = this.filesystem.GetAttributes(this.GetRelative(path))

		st = fuse.Stat()
		if info['type'] == 'dir':
			st.st_mode = stat.S_IFDIR | stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR
			st.st_nlink = 1
		elif info['type'] == 'file':
			st.st_mode = stat.S_IFREG | stat.S_IRUSR
			st.st_nlink = 1
			st.st_size = info['size']
		else:
			return -errno.EBADF

		st.st_mtime = info['mtime']
		st.st_ctime = info['ctime']
		return st

	@FuseMethod
	def statfs(this):
		st = fuse.StatVfs()
		st.f_bsize = 4096
		st.f_namemax = 255
		return st


def main():
	TOPICFS()()
