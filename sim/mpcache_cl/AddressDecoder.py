#=========================================================================
# AddressDecoder
#=========================================================================
# Splits a physical address into tag, set index, block offset, word
# offset and bank:
#
#   | tag | index | word offset | byte-in-word |
#                 |<------ block offset ------>|

from collections import namedtuple

from pymtl3.datatypes import clog2, mk_bits

DecodedAddr = namedtuple( 'DecodedAddr',
                          'tag index offset word_offset bank' )

class AddressDecoder( object ):

  def __init__( s, cfg ):

    s.cfg      = cfg
    s.AddrType = mk_bits( cfg.address_width )

    # Bit positions of each field

    s.offset_lo = 0
    s.offset_hi = cfg.offset_width
    s.word_lo   = clog2( cfg.word_bytes )
    s.word_hi   = cfg.offset_width
    s.index_lo  = cfg.offset_width
    s.index_hi  = cfg.offset_width + cfg.index_width
    s.tag_lo    = s.index_hi
    s.tag_hi    = cfg.address_width

    assert s.tag_hi >= s.tag_lo

  def _field( s, addr, lo, hi ):
    if hi == lo:
      return 0
    return addr[lo:hi].uint()

  #-----------------------------------------------------------------------
  # decode
  #-----------------------------------------------------------------------

  def decode( s, addr ):

    a = s.AddrType( addr )

    tag         = s._field( a, s.tag_lo,    s.tag_hi    )
    index       = s._field( a, s.index_lo,  s.index_hi  )
    offset      = s._field( a, s.offset_lo, s.offset_hi )
    word_offset = s._field( a, s.word_lo,   s.word_hi   )

    bank = 0
    if s.cfg.banking_enabled:
      bank = index % s.cfg.num_banks

    return DecodedAddr( tag, index, offset, word_offset, bank )

  #-----------------------------------------------------------------------
  # Address reconstruction
  #-----------------------------------------------------------------------

  def line_addr( s, tag, index ):
    return ( tag << s.tag_lo ) | ( index << s.index_lo )

  def block_addr( s, addr ):
    return addr & ~( ( 1 << s.offset_hi ) - 1 )

  def compose( s, tag, index, offset ):
    return s.line_addr( tag, index ) | offset

  def in_range( s, addr ):
    return 0 <= addr < ( 1 << s.cfg.address_width )
