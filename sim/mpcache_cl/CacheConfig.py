#=========================================================================
# CacheConfig
#=========================================================================
# Immutable parameter set for the cache model. All widths used by the
# address decoder, tag directory and replacement engine are derived here
# once and validated at construction.

from dataclasses import dataclass

from pymtl3.datatypes import clog2

from .CacheExceptions import ConfigError

POLICIES = ( 'PLRU', 'LRU', 'FIFO', 'RANDOM' )

# Long names accepted by from_args for the two size fields

FIELD_ALIASES = {
  'cache_size_bytes' : 'cache_size',
  'block_size_bytes' : 'block_size',
}

def is_pow2( n ):
  return n > 0 and ( n & ( n - 1 ) ) == 0

#-------------------------------------------------------------------------
# CacheConfig
#-------------------------------------------------------------------------

@dataclass( frozen=True )
class CacheConfig:
  """
  Cache parameters.

  Attributes:
    address_width: physical address width in bits
    cache_size:    total data capacity in bytes
    block_size:    cache line size in bytes
    ways:          associativity
    client_ports:  number of request ports
    data_width:    word width in bits (one access moves one word)
    policy:        one of PLRU, LRU, FIFO, RANDOM
    write_back:    write-back if True, write-through otherwise
    write_allocate: allocate a line on a write miss
    num_banks:     banks used by the arbiter when banking is enabled
  """

  address_width      : int  = 32
  cache_size         : int  = 4096
  block_size         : int  = 16
  ways               : int  = 4
  client_ports       : int  = 2
  data_width         : int  = 32
  policy             : str  = 'PLRU'
  write_back         : bool = True
  write_allocate     : bool = True
  ecc_enabled        : bool = True
  way_predict_enabled: bool = True
  prefetch_enabled   : bool = True
  banking_enabled    : bool = False
  num_banks          : int  = 4
  ai_adaptive_enabled: bool = True
  qos_enabled        : bool = False

  def __post_init__( s ):

    if s.policy not in POLICIES:
      raise ConfigError( "unknown replacement policy {!r}".format( s.policy ) )

    if s.address_width <= 0:
      raise ConfigError( "address_width must be positive" )

    if s.data_width < 8 or s.data_width % 8 != 0:
      raise ConfigError( "data_width must be a positive multiple of 8" )

    if not is_pow2( s.block_size ):
      raise ConfigError( "block_size must be a power of two" )

    if s.block_size % s.word_bytes != 0:
      raise ConfigError( "block_size must hold a whole number of words" )

    if not is_pow2( s.ways ):
      raise ConfigError( "ways must be a power of two" )

    if s.client_ports < 1:
      raise ConfigError( "client_ports must be at least 1" )

    if s.cache_size <= 0 or s.cache_size % ( s.ways * s.block_size ) != 0:
      raise ConfigError(
        "cache_size {} is not ways*block_size*blocks_per_way".format( s.cache_size ) )

    if not is_pow2( s.blocks_per_way ):
      raise ConfigError( "blocks_per_way must be a power of two" )

    if s.banking_enabled and not is_pow2( s.num_banks ):
      raise ConfigError( "num_banks must be a power of two" )

    if s.tag_width < 0:
      raise ConfigError(
        "index and offset need {} bits but addresses are {} bits wide".format(
          s.index_width + s.offset_width, s.address_width ) )

  #-----------------------------------------------------------------------
  # Derived parameters
  #-----------------------------------------------------------------------

  @property
  def blocks_per_way( s ):
    return s.cache_size // ( s.ways * s.block_size )

  @property
  def num_sets( s ):
    return s.blocks_per_way

  @property
  def word_bytes( s ):
    return s.data_width // 8

  @property
  def words_per_line( s ):
    return s.block_size // s.word_bytes

  @property
  def offset_width( s ):
    return clog2( s.block_size )

  @property
  def word_offset_width( s ):
    return clog2( s.words_per_line )

  @property
  def index_width( s ):
    return clog2( s.blocks_per_way )

  @property
  def tag_width( s ):
    return s.address_width - s.index_width - s.offset_width

  @property
  def way_width( s ):
    return clog2( s.ways )

  @property
  def cache_size_bytes( s ):
    return s.cache_size

  @property
  def block_size_bytes( s ):
    return s.block_size

  @property
  def all_ways_mask( s ):
    return ( 1 << s.ways ) - 1

  #-----------------------------------------------------------------------
  # from_args
  #-----------------------------------------------------------------------
  # Build a config from an argparse namespace, keeping defaults for any
  # field the namespace does not carry.

  @classmethod
  def from_args( cls, args ):
    fields = {}
    for alias, name in FIELD_ALIASES.items():
      value = getattr( args, alias, None )
      if value is not None:
        fields[name] = value
    for name in cls.__dataclass_fields__:
      value = getattr( args, name, None )
      if value is not None:
        fields[name] = value
    return cls( **fields )
