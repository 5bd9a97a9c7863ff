#=========================================================================
# PatternClassifier
#=========================================================================
# Keeps the last sixteen addresses seen on any port. Each time the write
# pointer wraps, the window is classified as sequential when every
# address is strictly greater than the one before it. The result only
# drives the adaptive_active flag.

class PatternClassifier( object ):

  def __init__( s, depth=16 ):
    s.depth           = depth
    s.history         = [ 0 ] * depth
    s.wr_ptr          = 0
    s.adaptive_active = False
    s.windows         = 0

  def observe( s, addr ):
    s.history[s.wr_ptr] = addr
    s.wr_ptr = ( s.wr_ptr + 1 ) % s.depth
    if s.wr_ptr == 0:
      s.adaptive_active = s.is_sequential()
      s.windows += 1

  def is_sequential( s ):
    return all( s.history[i] < s.history[i+1] for i in range( s.depth - 1 ) )
