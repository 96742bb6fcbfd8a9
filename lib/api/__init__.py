from .Types import *
from .Session import *
from .Gateway import *
