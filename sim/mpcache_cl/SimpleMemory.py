#=========================================================================
# SimpleMemory
#=========================================================================
# Reference memory collaborator for the cache controller. Any object
# with the same three methods can be injected instead:
#
#   fetch_line( addr )            -> list of words for the block at addr
#   writeback_line( addr, words )    store a whole block
#   write_word( addr, word )         store one word (write bypass)
#
# Storage is sparse; unwritten words read as zero. Every call is
# recorded so tests can check the obligations the cache emitted.

class SimpleMemory( object ):

  def __init__( s, cfg ):
    s.word_bytes     = cfg.word_bytes
    s.words_per_line = cfg.words_per_line
    s.block_size     = cfg.block_size
    s.mem            = {}

    s.fetches     = []
    s.writebacks  = []
    s.word_writes = []

  def _word_addr( s, addr ):
    return addr - ( addr % s.word_bytes )

  #-----------------------------------------------------------------------
  # Direct access for loading and checking
  #-----------------------------------------------------------------------

  def read( s, addr ):
    return s.mem.get( s._word_addr( addr ), 0 )

  def write( s, addr, data ):
    s.mem[ s._word_addr( addr ) ] = data

  #-----------------------------------------------------------------------
  # Collaborator interface
  #-----------------------------------------------------------------------

  def fetch_line( s, addr ):
    assert addr % s.block_size == 0, "unaligned refill {:#x}".format( addr )
    s.fetches.append( addr )
    return [ s.read( addr + i*s.word_bytes ) for i in range( s.words_per_line ) ]

  def writeback_line( s, addr, words ):
    assert addr % s.block_size == 0, "unaligned writeback {:#x}".format( addr )
    assert len( words ) == s.words_per_line
    s.writebacks.append( ( addr, list( words ) ) )
    for i, word in enumerate( words ):
      s.write( addr + i*s.word_bytes, word )

  def write_word( s, addr, word ):
    s.word_writes.append( ( addr, word ) )
    s.write( addr, word )
