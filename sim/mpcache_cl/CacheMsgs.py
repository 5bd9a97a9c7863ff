#=========================================================================
# CacheMsgs
#=========================================================================
# Per-cycle request/response messages, the counter block, and the
# bundle returned by one clock step of the cache controller.

#-------------------------------------------------------------------------
# CacheReq
#-------------------------------------------------------------------------

class CacheReq( object ):

  TYPE_READ  = 0
  TYPE_WRITE = 1

  def __init__( s, port, type_, addr, data=None ):
    s.port  = port
    s.type_ = type_
    s.addr  = addr
    s.data  = data

  def is_write( s ):
    return s.type_ == CacheReq.TYPE_WRITE

  def __repr__( s ):
    return "CacheReq({}, {}, {:#x}, {})".format(
      s.port, 'wr' if s.is_write() else 'rd', s.addr, s.data )

  def __str__( s ):
    type_str = 'wr' if s.is_write() else 'rd'
    if s.is_write():
      return "{}:{}:{:08x}:{:x}".format( s.port, type_str, s.addr, s.data or 0 )
    return "{}:{}:{:08x}".format( s.port, type_str, s.addr )

#-------------------------------------------------------------------------
# CacheResp
#-------------------------------------------------------------------------
# ready is False when the arbiter denied the port this cycle; all other
# fields are then meaningless and the request must be resubmitted.

class CacheResp( object ):

  def __init__( s, port, type_ ):
    s.port      = port
    s.type_     = type_
    s.ready     = False
    s.hit       = False
    s.miss      = False
    s.error     = False
    s.corrected = False
    s.data      = 0
    s.way       = None

  def __repr__( s ):
    return ( "CacheResp(port={}, ready={}, hit={}, miss={}, error={}, "
             "corrected={}, data={:#x}, way={})" ).format(
               s.port, s.ready, s.hit, s.miss, s.error,
               s.corrected, s.data, s.way )

  def __str__( s ):
    if not s.ready:
      return "{}:#".format( s.port )
    status = 'H' if s.hit else 'M'
    if s.error:
      status += '!'
    elif s.corrected:
      status += 'c'
    return "{}:{}:{:x}".format( s.port, status, s.data )

#-------------------------------------------------------------------------
# CacheCounters
#-------------------------------------------------------------------------

class CacheCounters( object ):

  FIELDS = (
    'hits', 'misses', 'replacements', 'dirty_evictions', 'prefetches',
    'way_pred_correct', 'way_pred_wrong', 'latency', 'bandwidth',
    'ecc_corrected', 'ecc_uncorrectable', 'bank_conflicts', 'bypasses',
  )

  def __init__( s ):
    for name in CacheCounters.FIELDS:
      setattr( s, name, 0 )

  def copy( s ):
    snapshot = CacheCounters()
    for name in CacheCounters.FIELDS:
      setattr( snapshot, name, getattr( s, name ) )
    return snapshot

  def as_dict( s ):
    return { name: getattr( s, name ) for name in CacheCounters.FIELDS }

  def hit_rate( s ):
    accesses = s.hits + s.misses
    if accesses == 0:
      return 0.0
    return s.hits / accesses

  def report( s ):
    lines = [ "{:<18} {}".format( name, getattr( s, name ) )
              for name in CacheCounters.FIELDS ]
    lines.append( "{:<18} {:.2f}%".format( 'hit_rate', 100.0 * s.hit_rate() ) )
    return "\n".join( lines )

  def __repr__( s ):
    return "CacheCounters({})".format(
      ", ".join( "{}={}".format( k, v ) for k, v in s.as_dict().items() ) )

#-------------------------------------------------------------------------
# CycleResult
#-------------------------------------------------------------------------
# Everything one call to advance() hands back. resps is aligned with the
# order the requests were passed in.

class CycleResult( object ):

  def __init__( s, resps, counters, ai_adaptive_active, ways_active ):
    s.resps              = resps
    s.counters           = counters
    s.ai_adaptive_active = ai_adaptive_active
    s.compression_active = False
    s.ways_active        = ways_active

#-------------------------------------------------------------------------
# mk_req
#-------------------------------------------------------------------------
# Shorthand used by the driver and the tests: mk_req( 'wr', 0, 0x1000, 5 )

def mk_req( type_, port, addr, data=None ):
  if   type_ == 'rd': return CacheReq( port, CacheReq.TYPE_READ,  addr, data )
  elif type_ == 'wr': return CacheReq( port, CacheReq.TYPE_WRITE, addr, data )
  raise ValueError( "unknown request type {!r}".format( type_ ) )
