from .DirectoryResolver import *
from .MessageSearch import *
from .Entries import *
