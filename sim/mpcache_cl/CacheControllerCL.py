#=========================================================================
# CacheControllerCL
#=========================================================================
# A cycle-level model of a multi-port, set-associative cache controller
# with pluggable replacement, per-word SECDED protection, way
# prediction, stride prefetching, access-pattern classification and a
# logical way-activity mask. One call to advance() is one clock cycle.

from .AddressDecoder    import AddressDecoder
from .CacheConfig       import CacheConfig
from .CacheExceptions   import InvalidRequest
from .CacheMsgs         import CacheReq, CacheResp, CacheCounters, CycleResult
from .EccCodec          import EccCodec
from .PatternClassifier import PatternClassifier
from .PortArbiter       import PortArbiter
from .PowerController   import PowerController
from .Prefetcher        import PrefetchQueue, StridePrefetcher
from .ReplacementEngine import mk_replacement_engine
from .SimpleMemory      import SimpleMemory
from .TagDirectory      import TagDirectory
from .WayPredictor      import WayPredictor

#-------------------------------------------------------------------------
# CacheControllerCL
#-------------------------------------------------------------------------

class CacheControllerCL( object ):

  HIT_LATENCY  = 1
  MISS_PENALTY = 10

  def __init__( s, cfg=None, mem=None ):

    s.cfg = cfg if cfg is not None else CacheConfig()
    s.mem = mem if mem is not None else SimpleMemory( s.cfg )

    # Datapath components

    s.decoder = AddressDecoder( s.cfg )
    s.ecc     = EccCodec( s.cfg.data_width ) if s.cfg.ecc_enabled else None
    s.engine  = mk_replacement_engine( s.cfg )
    s.tags    = TagDirectory( s.cfg, s.engine, s.ecc )
    s.arbiter = PortArbiter( s.cfg.client_ports, s.cfg.banking_enabled )
    s.power   = PowerController( s.cfg.ways )

    # Optional observers; omitted entirely when disabled

    s.way_pred = None
    if s.cfg.way_predict_enabled:
      s.way_pred = WayPredictor( s.cfg.offset_width )

    s.prefetch_queue = PrefetchQueue()
    s.prefetcher     = None
    if s.cfg.prefetch_enabled:
      s.prefetcher = StridePrefetcher( s.cfg.client_ports,
                                       ( 1 << s.cfg.address_width ) - 1,
                                       s.prefetch_queue )

    s.classifier = None
    if s.cfg.ai_adaptive_enabled:
      s.classifier = PatternClassifier()

    s.counters = CacheCounters()
    s.cycle    = 0

    # Word writes granted this cycle, committed at the end of advance

    s.pending_writes = []

    # Requests and responses of the last cycle, for line tracing

    s.trace_reqs  = []
    s.trace_resps = []
    s.trace_index = None

  #-----------------------------------------------------------------------
  # check_reqs
  #-----------------------------------------------------------------------
  # Reject malformed requests before anything reaches arbitration, so a
  # bad cycle leaves the cache untouched.

  def check_reqs( s, reqs ):

    if len( reqs ) > s.cfg.client_ports:
      raise InvalidRequest( "{} requests for {} ports".format(
        len( reqs ), s.cfg.client_ports ) )

    ports = set()
    for req in reqs:

      if not isinstance( req, CacheReq ):
        raise InvalidRequest( "not a CacheReq: {!r}".format( req ) )

      if not isinstance( req.port, int ) or not 0 <= req.port < s.cfg.client_ports:
        raise InvalidRequest( "unsupported port id {!r}".format( req.port ) )

      if req.port in ports:
        raise InvalidRequest( "port {} issued twice in one cycle".format( req.port ) )
      ports.add( req.port )

      if req.type_ not in ( CacheReq.TYPE_READ, CacheReq.TYPE_WRITE ):
        raise InvalidRequest( "unknown request type {!r}".format( req.type_ ) )

      if not isinstance( req.addr, int ) or not s.decoder.in_range( req.addr ):
        raise InvalidRequest( "address {!r} out of range".format( req.addr ) )

      if req.is_write():
        if req.data is None:
          raise InvalidRequest( "write on port {} carries no data".format( req.port ) )
        if not isinstance( req.data, int ):
          raise InvalidRequest( "write data {!r} is not an integer".format( req.data ) )
        if not 0 <= req.data < ( 1 << s.cfg.data_width ):
          raise InvalidRequest( "write data {:#x} wider than {} bits".format(
            req.data, s.cfg.data_width ) )

  #-----------------------------------------------------------------------
  # advance
  #-----------------------------------------------------------------------
  # One clock cycle. Granted ports are processed in priority order, so
  # when several ports miss in the same set a lower port id allocates
  # first. Data words written this cycle are buffered and committed in
  # the same priority order at the end of the call: reads made during
  # the call see the words as they stood after the previous call, and a
  # later write to a word overwrites an earlier one. Responses and the
  # counter snapshot are handed back together at the end of the call.

  def advance( s, reqs, prefetch_hint=False, qos_mask=None, low_power=False ):

    reqs = list( reqs )
    s.check_reqs( reqs )

    addrs  = [ s.decoder.decode( req.addr ) for req in reqs ]
    grants = s.arbiter.arbitrate( [ ( req.port, addr.bank )
                                    for req, addr in zip( reqs, addrs ) ] )

    if not s.cfg.qos_enabled:
      qos_mask = None
    elif qos_mask is None:
      qos_mask = s.cfg.all_ways_mask

    resps   = [ CacheResp( req.port, req.type_ ) for req in reqs ]
    touched = []

    s.trace_index = None

    for i in sorted( range( len( reqs ) ), key=lambda i: reqs[i].port ):

      req = reqs[i]

      if not s.arbiter.granted( grants, req.port ):
        s.counters.bank_conflicts += 1
        continue

      resps[i].ready = True

      way = s.process_req( req, addrs[i], resps[i], qos_mask )
      if way is not None:
        touched.append( way )

      if s.trace_index is None:
        s.trace_index = addrs[i].index

      s.observe( req, prefetch_hint )

    s.commit_writes()

    # Per-cycle state advance

    s.engine.tick()
    s.cycle += 1

    s.trace_reqs  = reqs
    s.trace_resps = resps

    ways_active = s.power.active_ways( touched, low_power )
    adaptive    = s.classifier.adaptive_active if s.classifier else False

    return CycleResult( resps, s.counters.copy(), adaptive, ways_active )

  #-----------------------------------------------------------------------
  # commit_writes
  #-----------------------------------------------------------------------
  # Apply the buffered writes in the order they were granted. Passing an
  # index and tag commits only the writes to that line, which allocate
  # uses before it evicts the line. A write whose line is not resident
  # goes straight to memory.

  def commit_writes( s, index=None, tag=None ):

    pending = []
    for req, addr in s.pending_writes:

      if index is not None and ( addr.index, addr.tag ) != ( index, tag ):
        pending.append( ( req, addr ) )
        continue

      way = s.tags.lookup( addr.index, addr.tag )
      if way is None:
        s.mem.write_word( req.addr, req.data )
        continue

      s.tags.write_word( addr.index, way, addr.word_offset, req.data )
      if s.cfg.write_back:
        s.tags.line( addr.index, way ).dirty = True
      else:
        s.writeback( addr.index, way )

    s.pending_writes = pending

  #-----------------------------------------------------------------------
  # observe
  #-----------------------------------------------------------------------
  # Feed the heuristics that watch the request stream. None of them can
  # change a hit, a miss or the data returned.

  def observe( s, req, prefetch_hint ):

    if s.prefetcher is not None:
      if s.prefetcher.observe( req.port, req.addr, prefetch_hint ) is not None:
        s.counters.prefetches += 1

    if s.classifier is not None:
      s.classifier.observe( req.addr )

  #-----------------------------------------------------------------------
  # process_req
  #-----------------------------------------------------------------------
  # Returns the way touched by this request, or None on a write bypass.

  def process_req( s, req, addr, resp, qos_mask ):

    s.counters.bandwidth += s.cfg.word_bytes

    predicted = None
    if s.way_pred is not None:
      predicted = s.way_pred.predict( req.addr )

    way = s.tags.lookup( addr.index, addr.tag )

    # Hit

    if way is not None:

      resp.hit = True
      s.counters.hits    += 1
      s.counters.latency += s.HIT_LATENCY

      if s.way_pred is not None:
        if s.way_pred.update( req.addr, way, predicted ):
          s.counters.way_pred_correct += 1
        else:
          s.counters.way_pred_wrong += 1

      if req.is_write(): s.process_write_hit( req, addr )
      else:              s.process_read_hit ( addr, way, resp )

      s.engine.on_access( s.tags.get_set( addr.index ), way )

    # Miss

    else:

      resp.miss = True
      s.counters.misses  += 1
      s.counters.latency += s.MISS_PENALTY

      if req.is_write() and not s.cfg.write_back and not s.cfg.write_allocate:
        s.process_write_bypass( req, addr )
        return None

      way = s.allocate( addr, qos_mask )

      if req.is_write(): s.process_write_hit( req, addr )
      else:              resp.data = s.tags.line( addr.index, way ).data[addr.word_offset]

      s.engine.on_access( s.tags.get_set( addr.index ), way, fill=True )

    resp.way = way
    return way

  #-----------------------------------------------------------------------
  # process_read_hit
  #-----------------------------------------------------------------------
  # A correctable error is fixed in the returned data only; the stored
  # word keeps its flipped bit. An uncorrectable error returns the raw
  # word with error set and does not stall anything.

  def process_read_hit( s, addr, way, resp ):

    data, parity = s.tags.read_word( addr.index, way, addr.word_offset )

    if s.ecc is not None:
      data, correctable, uncorrectable = s.ecc.decode( data, parity )
      if correctable:
        resp.corrected = True
        s.counters.ecc_corrected += 1
      if uncorrectable:
        resp.error = True
        s.counters.ecc_uncorrectable += 1

    resp.data = data

  #-----------------------------------------------------------------------
  # process_write_hit
  #-----------------------------------------------------------------------
  # Also used for the write half of a write-allocate miss. The word is
  # buffered until the end of the cycle. On commit, write-back marks the
  # line dirty; write-through hands the updated line to memory right away
  # and never keeps a dirty bit.

  def process_write_hit( s, req, addr ):
    s.pending_writes.append( ( req, addr ) )

  #-----------------------------------------------------------------------
  # process_write_bypass
  #-----------------------------------------------------------------------
  # Write-through, no-write-allocate miss: the word goes to memory at the
  # end of the cycle and no cache state changes.

  def process_write_bypass( s, req, addr ):
    s.counters.bypasses += 1
    s.pending_writes.append( ( req, addr ) )

  #-----------------------------------------------------------------------
  # writeback
  #-----------------------------------------------------------------------
  # Send a resident line to memory. Every word goes through the SECDED
  # decoder first, so a correctable error never reaches memory.

  def writeback( s, index, way ):

    words, ncorrected, nuncorrectable = s.tags.read_line( index, way )
    s.counters.ecc_corrected     += ncorrected
    s.counters.ecc_uncorrectable += nuncorrectable

    line = s.tags.line( index, way )
    s.mem.writeback_line( s.decoder.line_addr( line.tag, index ), words )

  #-----------------------------------------------------------------------
  # allocate
  #-----------------------------------------------------------------------
  # Evict the victim (writing it back if dirty) and refill the line from
  # memory. Writes buffered this cycle for the victim land before it
  # leaves. The old contents are always gone before the new tag is
  # installed, so a set never holds a tag twice.

  def allocate( s, addr, qos_mask ):

    cset = s.tags.get_set( addr.index )
    way  = s.engine.select_victim( cset, qos_mask )
    line = cset.lines[way]

    if line.valid:
      s.commit_writes( addr.index, line.tag )
      s.counters.replacements += 1
      if line.dirty:
        s.writeback( addr.index, way )
        line.dirty = False
        s.counters.dirty_evictions += 1

    line_addr = s.decoder.line_addr( addr.tag, addr.index )
    s.tags.install( addr.index, way, addr.tag, s.mem.fetch_line( line_addr ) )

    return way


  #-----------------------------------------------------------------------
  # inject_error
  #-----------------------------------------------------------------------
  # Flip bits of the stored word holding addr. Returns False if the line
  # is not resident.

  def inject_error( s, addr, bits ):
    a   = s.decoder.decode( addr )
    way = s.tags.lookup( a.index, a.tag )
    if way is None:
      return False
    s.tags.inject_fault( a.index, way, a.word_offset, bits )
    return True

  #-----------------------------------------------------------------------
  # line_trace
  #-----------------------------------------------------------------------

  def line_trace( s ):

    by_port = {}
    for req, resp in zip( s.trace_reqs, s.trace_resps ):
      by_port[req.port] = "{}>{}".format( req, resp )

    width = 24
    trace_strs = [ by_port.get( port, '' ).ljust( width )
                   for port in range( s.cfg.client_ports ) ]

    flags = "pf{} {}".format( len( s.prefetch_queue ),
                              'seq' if s.classifier and s.classifier.adaptive_active else '   ' )

    # replacement state of the set the highest-priority port touched

    if s.trace_index is not None:
      flags += " {}".format( s.engine.state_str( s.tags.get_set( s.trace_index ) ) )

    return "{} [{}]".format( '|'.join( trace_strs ), flags )
