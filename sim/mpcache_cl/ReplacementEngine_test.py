#=========================================================================
# ReplacementEngine_test.py
#=========================================================================

import pytest
import random

from pymtl3.stdlib.test_utils import mk_test_case_table

from mpcache_cl.CacheConfig       import CacheConfig
from mpcache_cl.ReplacementEngine import ( TreePLRU, TrueLRU, Fifo, RandomLFSR,
                                           apply_qos_mask, mk_replacement_engine )
from mpcache_cl.TagDirectory      import CacheSet

def mk_set( engine ):
  return CacheSet( engine.nways, 4, engine.init_state() )

#-------------------------------------------------------------------------
# TreePLRU
#-------------------------------------------------------------------------

def test_plru_victim_formula():
  engine = TreePLRU( 4 )
  cset   = mk_set( engine )
  for state in range( 8 ):
    b0, b1, b2 = state & 1, ( state >> 1 ) & 1, ( state >> 2 ) & 1
    cset.repl_state = state
    expected = ( 3 if b2 else 2 ) if b0 else ( 1 if b1 else 0 )
    assert engine.choose( cset ) == expected

test_case_table = mk_test_case_table([
  (                       "state_in way state_out" ),
  [ "way0_from_zero",      0b000,   0,  0b011     ],
  [ "way1_from_zero",      0b000,   1,  0b001     ],
  [ "way2_from_zero",      0b000,   2,  0b100     ],
  [ "way3_from_zero",      0b000,   3,  0b000     ],
  [ "way3_keeps_b1",       0b111,   3,  0b010     ],
  [ "way0_keeps_b2",       0b100,   0,  0b111     ],
])

@pytest.mark.parametrize( **test_case_table )
def test_plru_update( test_params ):
  engine = TreePLRU( 4 )
  cset   = mk_set( engine )
  cset.repl_state = test_params.state_in
  engine.on_access( cset, test_params.way )
  assert cset.repl_state == test_params.state_out
  assert engine.choose( cset ) != test_params.way

def test_plru_fill_order():
  engine = TreePLRU( 4 )
  cset   = mk_set( engine )
  order  = []
  for _ in range( 4 ):
    way = engine.select_victim( cset )
    order.append( way )
    engine.on_access( cset, way, fill=True )
  assert order == [ 0, 2, 1, 3 ]

# A binary tree protects the last two distinct ways it saw; the third
# most recent can already be the victim (0, 1, 2 -> victim 0).

@pytest.mark.parametrize( "nways", [ 2, 4, 8, 16 ] )
def test_plru_recency( nways ):

  rgen = random.Random()
  rgen.seed( 0x91e0 + nways )

  engine = TreePLRU( nways )
  cset   = mk_set( engine )
  recent = []

  for _ in range( 500 ):
    way = rgen.randrange( nways )
    engine.on_access( cset, way )
    if way in recent:
      recent.remove( way )
    recent.insert( 0, way )
    protected = recent[:min( len( recent ), 2, nways - 1 )]
    assert engine.choose( cset ) not in protected

def test_plru_third_recent_not_protected():
  engine = TreePLRU( 4 )
  cset   = mk_set( engine )
  for way in [ 0, 1, 2 ]:
    engine.on_access( cset, way )
  assert engine.choose( cset ) == 0

def test_plru_one_way():
  engine = TreePLRU( 1 )
  cset   = mk_set( engine )
  engine.on_access( cset, 0 )
  assert engine.choose( cset ) == 0

#-------------------------------------------------------------------------
# TrueLRU
#-------------------------------------------------------------------------

def test_lru_min_counter():
  engine = TrueLRU( 4 )
  cset   = mk_set( engine )
  assert engine.choose( cset ) == 0
  engine.on_access( cset, 0 )
  assert engine.choose( cset ) == 1
  engine.on_access( cset, 1 )
  engine.on_access( cset, 2 )
  assert cset.repl_state == [ 1, 1, 1, 0 ]
  assert engine.choose( cset ) == 3
  engine.on_access( cset, 3 )
  assert engine.choose( cset ) == 0

def test_lru_counter_wraps():
  engine = TrueLRU( 4 )
  cset   = mk_set( engine )
  for _ in range( 3 ):
    engine.on_access( cset, 2 )
  assert cset.repl_state[2] == 3
  engine.on_access( cset, 2 )
  assert cset.repl_state[2] == 0

def test_lru_counts_frequency_not_recency():
  engine = TrueLRU( 4 )
  cset   = mk_set( engine )
  for way in [ 0, 0, 1, 1, 2, 2, 3 ]:
    engine.on_access( cset, way )
  # way 3 was touched last but has the smallest count
  assert engine.choose( cset ) == 3

#-------------------------------------------------------------------------
# Fifo
#-------------------------------------------------------------------------

def test_fifo_stamps_on_fill_only():
  engine = Fifo( 4 )
  cset   = mk_set( engine )

  for way in range( 4 ):
    assert engine.choose( cset ) == way
    engine.on_access( cset, way, fill=True )
    engine.tick()

  stamps = list( cset.repl_state )
  assert stamps == [ 1, 2, 3, 4 ]

  for way in [ 0, 0, 3, 1 ]:
    engine.on_access( cset, way )
    engine.tick()
  assert cset.repl_state == stamps

  assert engine.choose( cset ) == 0
  engine.on_access( cset, 0, fill=True )
  assert engine.choose( cset ) == 1

def test_fifo_tie_lowest_way():
  engine = Fifo( 4 )
  cset   = mk_set( engine )
  engine.on_access( cset, 0, fill=True )
  engine.on_access( cset, 1, fill=True )
  engine.on_access( cset, 2, fill=True )
  engine.on_access( cset, 3, fill=True )
  assert engine.choose( cset ) == 0

def test_fifo_stamp_wraps_to_one():
  engine = Fifo( 4 )
  engine.cycle = Fifo.STAMP_MASK
  engine.tick()
  assert engine.cycle == 1

#-------------------------------------------------------------------------
# RandomLFSR
#-------------------------------------------------------------------------

def test_lfsr_sequence():
  engine = RandomLFSR( 4 )
  cset   = mk_set( engine )
  assert engine.lfsr.uint() == 0xace1
  assert engine.choose( cset ) == 1
  engine.tick()
  assert engine.lfsr.uint() == 0x59c3
  assert engine.choose( cset ) == 3
  engine.tick()
  assert engine.lfsr.uint() == 0xb387

def test_lfsr_only_moves_on_tick():
  engine = RandomLFSR( 8 )
  cset   = mk_set( engine )
  victim = engine.choose( cset )
  for way in range( 8 ):
    engine.on_access( cset, way, fill=True )
  assert engine.choose( cset ) == victim

def test_lfsr_shared_across_sets():
  engine = RandomLFSR( 4 )
  a = mk_set( engine )
  b = mk_set( engine )
  for _ in range( 20 ):
    assert engine.choose( a ) == engine.choose( b )
    engine.tick()

def test_lfsr_never_locks_up():
  engine = RandomLFSR( 4 )
  seen   = set()
  for _ in range( 1000 ):
    engine.tick()
    assert engine.lfsr.uint() != 0
    seen.add( engine.lfsr.uint() )
  assert len( seen ) > 500

#-------------------------------------------------------------------------
# QoS mask
#-------------------------------------------------------------------------

test_case_table = mk_test_case_table([
  (                    "way mask   result" ),
  [ "allowed",          1,  0b1111, 1      ],
  [ "scan_up",          0,  0b1100, 2      ],
  [ "scan_up_one",      1,  0b0100, 2      ],
  [ "none_above",       2,  0b0011, 3      ],
  [ "only_below",       1,  0b0001, 3      ],
  [ "empty_mask",       0,  0b0000, 3      ],
  [ "last_allowed",     3,  0b1000, 3      ],
])

@pytest.mark.parametrize( **test_case_table )
def test_qos_mask( test_params ):
  assert apply_qos_mask( test_params.way, test_params.mask, 4 ) == test_params.result

def test_select_victim_applies_mask():
  engine = TreePLRU( 4 )
  cset   = mk_set( engine )
  assert engine.select_victim( cset )         == 0
  assert engine.select_victim( cset, 0b1110 ) == 1
  assert engine.select_victim( cset, 0b1111 ) == 0

#-------------------------------------------------------------------------
# Factory
#-------------------------------------------------------------------------

@pytest.mark.parametrize( "policy, engine_type", [
  ( 'PLRU', TreePLRU ), ( 'LRU', TrueLRU ), ( 'FIFO', Fifo ), ( 'RANDOM', RandomLFSR ),
])
def test_factory( policy, engine_type ):
  engine = mk_replacement_engine( CacheConfig( policy=policy ) )
  assert isinstance( engine, engine_type )
  assert engine.name == policy
  assert engine.nways == 4
