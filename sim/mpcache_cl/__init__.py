#=========================================================================
# mpcache_cl
#=========================================================================
# Cycle-level model of a multi-port set-associative cache controller.

from .CacheConfig       import CacheConfig
from .CacheControllerCL import CacheControllerCL
from .CacheExceptions   import ConfigError, InvalidRequest
from .CacheMsgs         import CacheReq, CacheResp, CacheCounters, CycleResult, mk_req
from .SimpleMemory      import SimpleMemory
