#=========================================================================
# TagDirectory
#=========================================================================
# Owns the persistent state of the cache: one CacheSet per index, each
# holding a fixed array of CacheLines plus the replacement state of the
# set. All access goes through ( index, way ) coordinates.

#-------------------------------------------------------------------------
# CacheLine
#-------------------------------------------------------------------------
# Class to hold cache line state including valid bit, dirty bit, tag,
# data words and the ECC parity of each word

class CacheLine( object ):

  def __init__( s, nwords ):
    s.valid = False
    s.dirty = False
    s.tag   = 0
    s.data  = [ 0 ] * nwords
    s.ecc   = [ 0 ] * nwords

#-------------------------------------------------------------------------
# CacheSet
#-------------------------------------------------------------------------

class CacheSet( object ):

  def __init__( s, nways, nwords, repl_state ):
    s.lines      = [ CacheLine( nwords ) for _ in range( nways ) ]
    s.repl_state = repl_state

#-------------------------------------------------------------------------
# TagDirectory
#-------------------------------------------------------------------------

class TagDirectory( object ):

  def __init__( s, cfg, engine, ecc=None ):

    s.cfg    = cfg
    s.engine = engine
    s.ecc    = ecc
    s.nways  = cfg.ways
    s.nwords = cfg.words_per_line

    s.sets = [ CacheSet( s.nways, s.nwords, engine.init_state() )
               for _ in range( cfg.num_sets ) ]

  def get_set( s, index ):
    return s.sets[index]

  def line( s, index, way ):
    return s.sets[index].lines[way]

  #-----------------------------------------------------------------------
  # lookup
  #-----------------------------------------------------------------------
  # Ways are compared in increasing order and the first valid match
  # wins, so the result is deterministic even if a set ever held two
  # copies of a tag.

  def lookup( s, index, tag ):
    for way, line in enumerate( s.sets[index].lines ):
      if line.valid and line.tag == tag:
        return way
    return None

  #-----------------------------------------------------------------------
  # Data words
  #-----------------------------------------------------------------------

  def read_word( s, index, way, word ):
    line = s.line( index, way )
    return line.data[word], line.ecc[word]

  def write_word( s, index, way, word, data ):
    line = s.line( index, way )
    line.data[word] = data
    if s.ecc is not None:
      line.ecc[word] = s.ecc.encode( data )

  #-----------------------------------------------------------------------
  # read_line
  #-----------------------------------------------------------------------
  # Decode every word of a line on its way out to memory. A correctable
  # error is fixed in the returned words and scrubbed in the array too.
  # An uncorrectable word is returned as stored. Returns the words and
  # the number of corrected and uncorrectable words.

  def read_line( s, index, way ):

    line = s.line( index, way )
    if s.ecc is None:
      return list( line.data ), 0, 0

    words = []
    ncorrected = nuncorrectable = 0
    for word in range( s.nwords ):
      data, correctable, uncorrectable = s.ecc.decode( line.data[word], line.ecc[word] )
      if correctable:
        ncorrected += 1
        s.write_word( index, way, word, data )
      if uncorrectable:
        nuncorrectable += 1
      words.append( data )

    return words, ncorrected, nuncorrectable

  #-----------------------------------------------------------------------
  # install
  #-----------------------------------------------------------------------
  # Overwrites the whole line. Callers evict the old contents first.

  def install( s, index, way, tag, data ):

    assert len( data ) == s.nwords, \
      "refill returned {} words, line holds {}".format( len( data ), s.nwords )

    line = s.line( index, way )
    line.valid = True
    line.dirty = False
    line.tag   = tag
    line.data  = list( data )
    if s.ecc is not None:
      line.ecc = [ s.ecc.encode( word ) for word in line.data ]
    else:
      line.ecc = [ 0 ] * s.nwords

  #-----------------------------------------------------------------------
  # inject_fault
  #-----------------------------------------------------------------------
  # Flip stored bits without touching the parity, for fault injection.
  # Bits below data_width land in the data word, the rest in the parity.

  def inject_fault( s, index, way, word, bits ):
    line = s.line( index, way )
    for bit in bits:
      if bit < s.cfg.data_width:
        line.data[word] ^= 1 << bit
      else:
        line.ecc[word] ^= 1 << ( bit - s.cfg.data_width )

  def valid_ways( s, index ):
    return [ way for way, line in enumerate( s.sets[index].lines ) if line.valid ]

  #-----------------------------------------------------------------------
  # line_trace
  #-----------------------------------------------------------------------
  # Tags of one set, blank for invalid ways, '*' marks dirty lines

  def line_trace( s, index ):
    trace_strs = []
    for line in s.sets[index].lines:
      if not line.valid:
        trace_strs.append( ' '*6 )
      else:
        trace_strs.append( "{:05x}{}".format( line.tag, '*' if line.dirty else ' ' ) )
    return "({})".format( '|'.join( trace_strs ) )
