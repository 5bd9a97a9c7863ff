#=========================================================================
# ReplacementEngine
#=========================================================================
# Victim selection and per-access state update for one set. Each engine
# owns the layout of the replacement state stored in CacheSet.repl_state
# and is the only code that mutates it. The policy is chosen once when
# the controller is built.

from pymtl3.datatypes import clog2, concat, mk_bits

#-------------------------------------------------------------------------
# apply_qos_mask
#-------------------------------------------------------------------------
# Scan upward from the policy's choice to the first way the mask allows.
# No wrap: if nothing at or above the choice is allowed, the last way is
# used regardless of the mask.

def apply_qos_mask( way, mask, nways ):
  for w in range( way, nways ):
    if ( mask >> w ) & 1:
      return w
  return nways - 1

#-------------------------------------------------------------------------
# ReplacementEngine
#-------------------------------------------------------------------------

class ReplacementEngine( object ):

  name = None

  def __init__( s, nways ):
    s.nways     = nways
    s.way_width = clog2( nways )

  def init_state( s ):
    return None

  # Called once per clock step, after all ports were processed.

  def tick( s ):
    pass

  def choose( s, cset ):
    raise NotImplementedError

  def on_access( s, cset, way, fill=False ):
    raise NotImplementedError

  def select_victim( s, cset, qos_mask=None ):
    way = s.choose( cset )
    if qos_mask is None:
      return way
    return apply_qos_mask( way, qos_mask, s.nways )

  def state_str( s, cset ):
    return str( cset.repl_state )

#-------------------------------------------------------------------------
# TreePLRU
#-------------------------------------------------------------------------
# ways-1 tree bits in heap order: node n has children 2n+1 and 2n+2, and
# leaves map to ways left to right. A node bit of 1 sends the victim
# search to the right child. For four ways this is
#
#   victim = b0 ? ( b2 ? way3 : way2 ) : ( b1 ? way1 : way0 )
#
# and an access points every node on the path away from the accessed
# way:
#
#   way0: b0=1 b1=1   way1: b0=1 b1=0   way2: b0=0 b2=1   way3: b0=0 b2=0

class TreePLRU( ReplacementEngine ):

  name = 'PLRU'

  def init_state( s ):
    return 0

  def choose( s, cset ):
    node = 0
    for _ in range( s.way_width ):
      bit  = ( cset.repl_state >> node ) & 1
      node = 2*node + 1 + bit
    return node - ( s.nways - 1 )

  def on_access( s, cset, way, fill=False ):
    state = cset.repl_state
    node  = 0
    for level in range( s.way_width ):
      right = ( way >> ( s.way_width - 1 - level ) ) & 1
      if right:
        state &= ~( 1 << node )
      else:
        state |= 1 << node
      node = 2*node + 1 + right
    cset.repl_state = state

  def state_str( s, cset ):
    if s.nways == 1:
      return '-'
    return "{:0{}b}".format( cset.repl_state, s.nways - 1 )

#-------------------------------------------------------------------------
# TrueLRU
#-------------------------------------------------------------------------
# Per-way log2(ways)-bit counters. Every access increments the accessed
# way's own counter (wrapping at the counter width); the victim is the
# way with the smallest counter, lowest index on ties. This tracks
# access counts since the last wrap rather than strict recency.

class TrueLRU( ReplacementEngine ):

  name = 'LRU'

  def init_state( s ):
    return [ 0 ] * s.nways

  def choose( s, cset ):
    counters = cset.repl_state
    victim   = 0
    for way in range( 1, s.nways ):
      if counters[way] < counters[victim]:
        victim = way
    return victim

  def on_access( s, cset, way, fill=False ):
    cset.repl_state[way] = ( cset.repl_state[way] + 1 ) % ( 1 << s.way_width )

#-------------------------------------------------------------------------
# Fifo
#-------------------------------------------------------------------------
# A global cycle counter is stamped into the allocated way; hits leave
# the stamps alone. The counter starts at 1 so a stamp of 0 marks a way
# that was never filled, and it wraps from 2**32-1 back to 1. Victim
# order across a wrap is only approximate.

class Fifo( ReplacementEngine ):

  STAMP_MASK = ( 1 << 32 ) - 1

  name = 'FIFO'

  def __init__( s, nways ):
    super().__init__( nways )
    s.cycle = 1

  def init_state( s ):
    return [ 0 ] * s.nways

  def tick( s ):
    s.cycle = s.cycle + 1 if s.cycle < Fifo.STAMP_MASK else 1

  def choose( s, cset ):
    stamps = cset.repl_state
    victim = 0
    for way in range( 1, s.nways ):
      if stamps[way] < stamps[victim]:
        victim = way
    return victim

  def on_access( s, cset, way, fill=False ):
    if fill:
      cset.repl_state[way] = s.cycle

#-------------------------------------------------------------------------
# RandomLFSR
#-------------------------------------------------------------------------
# One 16-bit Fibonacci LFSR shared by every set, shifted left once per
# clock step with feedback from bits 15, 13, 12 and 10. The victim is
# the low log2(ways) bits of the current state.

class RandomLFSR( ReplacementEngine ):

  SEED = 0xACE1

  name = 'RANDOM'

  def __init__( s, nways, seed=SEED ):
    super().__init__( nways )
    s.lfsr = mk_bits( 16 )( seed )

  def tick( s ):
    feedback = s.lfsr[15] ^ s.lfsr[13] ^ s.lfsr[12] ^ s.lfsr[10]
    s.lfsr   = concat( s.lfsr[0:15], feedback )

  def choose( s, cset ):
    if s.way_width == 0:
      return 0
    return s.lfsr[0:s.way_width].uint()

  def on_access( s, cset, way, fill=False ):
    pass

  def state_str( s, cset ):
    return "{:04x}".format( s.lfsr.uint() )

#-------------------------------------------------------------------------
# mk_replacement_engine
#-------------------------------------------------------------------------

engine_types = {
  'PLRU'   : TreePLRU,
  'LRU'    : TrueLRU,
  'FIFO'   : Fifo,
  'RANDOM' : RandomLFSR,
}

def mk_replacement_engine( cfg ):
  return engine_types[ cfg.policy ]( cfg.ways )
