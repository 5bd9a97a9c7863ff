#=========================================================================
# Prefetcher
#=========================================================================
# Per-port stride detection feeding a shared, bounded prefetch queue.
# The queue is drained by whoever services memory; the cache itself
# never issues the prefetches.

#-------------------------------------------------------------------------
# PrefetchQueue
#-------------------------------------------------------------------------
# Circular buffer. A push into a full queue overwrites the entry at the
# head pointer, which is the oldest one.

class PrefetchQueue( object ):

  def __init__( s, capacity=8 ):
    s.capacity = capacity
    s.entries  = [ None ] * capacity
    s.head     = 0
    s.count    = 0

  def full( s ):
    return s.count == s.capacity

  def empty( s ):
    return s.count == 0

  def push( s, addr ):
    tail = ( s.head + s.count ) % s.capacity
    s.entries[tail] = addr
    if s.full():
      s.head = ( s.head + 1 ) % s.capacity
    else:
      s.count += 1

  def peek( s ):
    assert not s.empty(), "prefetch queue empty"
    return s.entries[s.head]

  def pop( s ):
    addr = s.peek()
    s.entries[s.head] = None
    s.head   = ( s.head + 1 ) % s.capacity
    s.count -= 1
    return addr

  def __len__( s ):
    return s.count

  def __iter__( s ):
    for i in range( s.count ):
      yield s.entries[ ( s.head + i ) % s.capacity ]

#-------------------------------------------------------------------------
# StrideEntry
#-------------------------------------------------------------------------

class StrideEntry( object ):

  def __init__( s ):
    s.last_addr   = 0
    s.last_stride = 0
    s.confirmed   = False

#-------------------------------------------------------------------------
# StridePrefetcher
#-------------------------------------------------------------------------

class StridePrefetcher( object ):

  def __init__( s, nports, addr_mask, queue=None ):
    s.entries   = [ StrideEntry() for _ in range( nports ) ]
    s.addr_mask = addr_mask
    s.queue     = queue if queue is not None else PrefetchQueue()
    s.issued    = 0

  # Observe one access. Returns the prefetch address pushed into the
  # queue, or None.

  def observe( s, port, addr, hint=False ):

    entry  = s.entries[port]
    target = None

    if addr > entry.last_addr:

      new_stride = addr - entry.last_addr

      if new_stride == entry.last_stride:
        entry.confirmed = True
      else:
        entry.last_stride = new_stride
        entry.confirmed   = False

      if entry.confirmed or hint:
        target = ( addr + entry.last_stride ) & s.addr_mask
        s.queue.push( target )
        s.issued += 1

    entry.last_addr = addr
    return target
