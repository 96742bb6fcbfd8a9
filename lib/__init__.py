from .Errors import *
from .Utils import *
from .Upath import *
from .Configuration import *
from .MultipartHash import *
from .api import *
from .cache import *
from .fs import *
from .TopicFS import *
