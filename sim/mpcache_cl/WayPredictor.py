#=========================================================================
# WayPredictor
#=========================================================================
# MRU way predictor: a 1024-entry table indexed by the low ten bits of
# the block address. The table is trained with the hit way on every hit;
# misses neither train it nor count toward accuracy.

class WayPredictor( object ):

  def __init__( s, offset_width, index_bits=10 ):
    s.offset_width = offset_width
    s.table_size   = 1 << index_bits
    s.mask         = s.table_size - 1
    s.table        = [ 0 ] * s.table_size

    # Stats

    s.correct = 0
    s.wrong   = 0

  def index( s, addr ):
    return ( addr >> s.offset_width ) & s.mask

  def predict( s, addr ):
    return s.table[ s.index( addr ) ]

  # Train on a hit. Returns True when the prediction was correct.

  def update( s, addr, hit_way, predicted ):
    correct = predicted == hit_way
    if correct:
      s.correct += 1
    else:
      s.wrong += 1
    s.table[ s.index( addr ) ] = hit_way
    return correct

  def accuracy( s ):
    total = s.correct + s.wrong
    if total == 0:
      return 0.0
    return s.correct / total

  def report( s ):
    total = s.correct + s.wrong
    if total == 0:
      return "WayPredictor: no hits predicted"
    return "WayPredictor: {}/{} correct ({:.2f}% accuracy)".format(
      s.correct, total, 100.0 * s.accuracy() )
