#=========================================================================
# EccCodec
#=========================================================================
# Extended Hamming SECDED code over one data word.
#
# Data bits occupy the non-power-of-two positions of a Hamming codeword
# starting at position 1. Hamming parity bit j covers every codeword
# position with bit j set. One extra overall parity bit covers all data
# and Hamming bits. The parity value returned by encode packs the
# Hamming bits in bits [0, nhamming) and the overall bit at bit
# nhamming, so a parity value is ceil(log2(data_width)) + 2 bits wide.
#
# Syndrome decoding:
#
#   hamming syndrome  overall  meaning
#   ----------------  -------  -------------------------------------
#   0                 0        no error
#   any               1        single-bit error, correctable
#   nonzero           0        double-bit error, uncorrectable

from pymtl3.datatypes import clog2, mk_bits, reduce_xor

class EccCodec( object ):

  def __init__( s, data_width ):

    s.data_width = data_width
    s.nhamming   = clog2( data_width ) + 1
    s.nparity    = s.nhamming + 1

    s.DataType   = mk_bits( data_width )
    s.HamType    = mk_bits( s.nhamming )

    # Codeword position of every data bit

    s.data_pos = []
    pos = 1
    while len( s.data_pos ) < data_width:
      if pos & ( pos - 1 ):
        s.data_pos.append( pos )
      pos += 1

    assert s.data_pos[-1] < ( 1 << s.nhamming )

    s.pos_to_bit = { p: i for i, p in enumerate( s.data_pos ) }

    # Parity check matrix, one data-bit mask per Hamming bit

    s.masks = []
    for j in range( s.nhamming ):
      mask = 0
      for i, p in enumerate( s.data_pos ):
        if p & ( 1 << j ):
          mask |= 1 << i
      s.masks.append( mask )

  #-----------------------------------------------------------------------
  # Helpers
  #-----------------------------------------------------------------------

  def _hamming( s, word ):
    bits = 0
    for j, mask in enumerate( s.masks ):
      bits |= int( reduce_xor( word & mask ) ) << j
    return bits

  def _overall( s, word, hamming ):
    return int( reduce_xor( word ) ) ^ int( reduce_xor( s.HamType( hamming ) ) )

  #-----------------------------------------------------------------------
  # encode
  #-----------------------------------------------------------------------

  def encode( s, data ):
    word    = s.DataType( data )
    hamming = s._hamming( word )
    return hamming | ( s._overall( word, hamming ) << s.nhamming )

  #-----------------------------------------------------------------------
  # syndrome
  #-----------------------------------------------------------------------

  def syndrome( s, data, parity ):
    word           = s.DataType( data )
    stored_hamming = parity & ( ( 1 << s.nhamming ) - 1 )
    stored_overall = ( parity >> s.nhamming ) & 1

    hamming = s._hamming( word ) ^ stored_hamming
    overall = s._overall( word, stored_hamming ) ^ stored_overall
    return hamming | ( overall << s.nhamming )

  #-----------------------------------------------------------------------
  # decode
  #-----------------------------------------------------------------------
  # Returns ( data, correctable, uncorrectable ). On an uncorrectable
  # error the data comes back unmodified.

  def decode( s, data, parity ):

    syndrome = s.syndrome( data, parity )

    if syndrome == 0:
      return data, False, False

    position = syndrome & ( ( 1 << s.nhamming ) - 1 )
    overall  = syndrome >> s.nhamming

    if not overall:
      return data, False, True

    # Position 0 is the overall bit, powers of two are Hamming bits;
    # both leave the data intact.

    if position == 0 or not ( position & ( position - 1 ) ):
      return data, True, False

    # A position past the last data bit can only come from three or
    # more flips.

    if position not in s.pos_to_bit:
      return data, False, True

    return data ^ ( 1 << s.pos_to_bit[position] ), True, False
