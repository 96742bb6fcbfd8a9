from .LookupCache import *
