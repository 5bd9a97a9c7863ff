#=========================================================================
# PowerController
#=========================================================================
# Logical way-activity mask. In normal mode every way is active; in
# low-power mode only the ways touched this cycle are.

class PowerController( object ):

  def __init__( s, nways ):
    s.all_ways = ( 1 << nways ) - 1

  def active_ways( s, touched_ways, low_power=False ):
    if not low_power:
      return s.all_ways
    mask = 0
    for way in touched_ways:
      mask |= 1 << way
    return mask
