from .FuseMethod import *
